from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class StoreObserver(Protocol):
    """
    Receives structured events from the chunked store.

    Events: "put" (layout, size, chunks), "get" (layout, hit), "delete",
    "stale_chunks_removed" (count), "integrity_error" (expected, missing_index).
    """

    def on_event(self, event: str, key: str, **fields: Any) -> None: ...


class LoggingStoreObserver(StoreObserver):
    """Default observer: forwards events to the `persistence.observers` logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def on_event(self, event: str, key: str, **fields: Any) -> None:
        details = " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        if event == "integrity_error":
            self._log.error("KV %s: key=%s %s", event, key, details)
        elif event == "put" and fields.get("layout") == "chunked":
            size_mb = fields.get("size", 0) / (1024 * 1024)
            self._log.info("KV put: key=%s stored %s chunks (%.2fMB)", key, fields.get("chunks"), size_mb)
        else:
            self._log.debug("KV %s: key=%s %s", event, key, details)


class RecordingStoreObserver(StoreObserver):
    """Keeps events in memory; handy for diagnostics endpoints and tests."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def on_event(self, event: str, key: str, **fields: Any) -> None:
        self.events.append((event, key, dict(fields)))

    def names(self) -> list[str]:
        return [e[0] for e in self.events]
