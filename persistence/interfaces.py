from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StoredObject:
    key: str
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


class KeyValueBackend(Protocol):
    """
    Minimal bounded key-value capability: every value is UTF-8 text no larger
    than `max_value_size` bytes once encoded.
    """

    max_value_size: int

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    def put(self, key: str, value: str) -> None:
        """Store `value`, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove `key`; a missing key is not an error."""
        ...

    def list(self, prefix: str = "") -> list[str]:
        """Return all keys starting with `prefix`, sorted."""
        ...

    def close(self) -> None:
        ...


class ObjectBackend(Protocol):
    """Single-shot binary blob storage keyed by an opaque string."""

    def put(self, key: str, data: bytes, content_type: str) -> None: ...

    def get(self, key: str) -> StoredObject | None: ...

    def delete(self, key: str) -> None: ...

    def close(self) -> None: ...
