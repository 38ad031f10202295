from __future__ import annotations

import enum
import json
from typing import Any, Callable, TypeVar

from .chunking import (
    MAX_CHUNK_SIZE,
    chunk_value,
    encode_chunk_metadata,
    needs_chunking,
    parse_chunk_metadata,
    reconstruct_value,
    utf8_length,
)
from .errors import IntegrityError, NotFound, SerializationError, StorageUnavailable
from .interfaces import KeyValueBackend
from .keys import chunk_key, logical_keys, metadata_key, namespace_prefix, namespaced_key
from .observers import LoggingStoreObserver, StoreObserver

T = TypeVar("T")


class Layout(str, enum.Enum):
    ABSENT = "absent"
    PLAIN = "plain"
    CHUNKED = "chunked"


class ChunkedStore:
    """
    Stores text values of any size on a key-value backend with a per-value cap.

    A logical key lives in exactly one layout:

    - plain:   "<key>" holds the text.
    - chunked: "<key>__chunks__" holds {"chunks": N} and "<key>__chunk_0" ..
               "<key>__chunk_{N-1}" hold consecutive UTF-8-safe pieces.

    Every put/delete removes whatever the previous layout left behind. Calls
    are independent backend operations: there is no rollback and no locking,
    so a crash mid-put can leave a partially written key.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        max_chunk_size: int = MAX_CHUNK_SIZE,
        observer: StoreObserver | None = None,
        strict_integrity: bool = False,
    ) -> None:
        cap = getattr(backend, "max_value_size", None)
        if isinstance(cap, int) and max_chunk_size >= cap:
            raise ValueError(f"max_chunk_size ({max_chunk_size}) must be below the backend cap ({cap})")
        self._backend = backend
        self._max_chunk_size = max_chunk_size
        self._observer = observer or LoggingStoreObserver()
        self._strict_integrity = strict_integrity

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    @property
    def max_chunk_size(self) -> int:
        return self._max_chunk_size

    # ------------------------------------------------------------------
    # Backend access with error context
    # ------------------------------------------------------------------
    def _call(self, phase: str, key: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except StorageUnavailable as e:
            if e.key is None:
                e.key = key
            if e.phase is None:
                e.phase = phase
            raise
        except OSError as e:
            raise StorageUnavailable(f"backend {phase} failed: {e}", key=key, phase=phase) from e

    def _read_metadata(self, full: str) -> tuple[bool, int | None]:
        raw = self._call("metadata_read", full, self._backend.get, metadata_key(full))
        return raw is not None, parse_chunk_metadata(raw)

    def _delete_chunks(self, full: str, count: int) -> None:
        for i in range(count):
            self._call("chunk_delete", full, self._backend.delete, chunk_key(full, i))
        self._observer.on_event("stale_chunks_removed", full, count=count)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def put_text(self, key: str, text: str, namespace: str | None = None) -> None:
        full = namespaced_key(key, namespace)
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise SerializationError(f"value is not valid UTF-8 text: {e}", key=full, phase="serialize") from e
        meta_present, old_count = self._read_metadata(full)

        if needs_chunking(text, self._max_chunk_size):
            if old_count:
                self._delete_chunks(full, old_count)
            chunks = chunk_value(text, self._max_chunk_size)
            for i, chunk in enumerate(chunks):
                self._call("chunk_write", full, self._backend.put, chunk_key(full, i), chunk)
            self._call("metadata_write", full, self._backend.put, metadata_key(full), encode_chunk_metadata(len(chunks)))
            self._call("plain_delete", full, self._backend.delete, full)
            self._observer.on_event("put", full, layout=Layout.CHUNKED.value, size=utf8_length(text), chunks=len(chunks))
            return

        if old_count:
            self._delete_chunks(full, old_count)
        if meta_present:
            self._call("metadata_delete", full, self._backend.delete, metadata_key(full))
        self._call("plain_write", full, self._backend.put, full, text)
        self._observer.on_event("put", full, layout=Layout.PLAIN.value, size=utf8_length(text), chunks=0)

    def get_text(self, key: str, namespace: str | None = None) -> str | None:
        """
        Return the stored text, or None when the key is absent.

        A key whose metadata points at missing chunks also reads as None
        (or raises IntegrityError when the store is strict); a truncated
        value is never returned.
        """
        return self._get_text(namespaced_key(key, namespace), strict=self._strict_integrity)

    def get_text_or_raise(self, key: str, namespace: str | None = None) -> str:
        """Like get_text, but raises NotFound for absence and IntegrityError for broken chunks."""
        full = namespaced_key(key, namespace)
        text = self._get_text(full, strict=True)
        if text is None:
            raise NotFound("no value stored", key=full, phase="plain_read")
        return text

    def _get_text(self, full: str, *, strict: bool) -> str | None:
        _, count = self._read_metadata(full)

        if count:
            missing: list[int] = []

            def _read(index: int) -> str | None:
                chunk = self._call("chunk_read", full, self._backend.get, chunk_key(full, index))
                if chunk is None:
                    missing.append(index)
                return chunk

            text = reconstruct_value(_read, count)
            if text is not None:
                self._observer.on_event("get", full, layout=Layout.CHUNKED.value, hit=True, chunks=count)
                return text
            self._observer.on_event("integrity_error", full, expected=count, missing_index=missing[0])
            if strict:
                raise IntegrityError(
                    f"chunk {missing[0]} of {count} is missing", key=full, phase="chunk_read"
                )
            return None

        text = self._call("plain_read", full, self._backend.get, full)
        self._observer.on_event("get", full, layout=Layout.PLAIN.value, hit=text is not None)
        return text

    def delete(self, key: str, namespace: str | None = None) -> None:
        full = namespaced_key(key, namespace)
        meta_present, count = self._read_metadata(full)
        if count:
            self._delete_chunks(full, count)
        if meta_present:
            self._call("metadata_delete", full, self._backend.delete, metadata_key(full))
        self._call("plain_delete", full, self._backend.delete, full)
        self._observer.on_event("delete", full)

    def list(self, namespace: str | None = None, *, logical_only: bool = False) -> list[str]:
        prefix = namespace_prefix(namespace)
        keys = self._call("list", prefix, self._backend.list, prefix)
        return logical_keys(keys) if logical_only else keys

    def layout(self, key: str, namespace: str | None = None) -> Layout:
        full = namespaced_key(key, namespace)
        _, count = self._read_metadata(full)
        if count:
            return Layout.CHUNKED
        if self._call("plain_read", full, self._backend.get, full) is not None:
            return Layout.PLAIN
        return Layout.ABSENT


class DocumentStore:
    """
    JSON adapter over ChunkedStore.

    Documents are serialized compactly with non-ASCII kept as-is, so the
    chunk threshold applies to the real UTF-8 size. Stored text that is not
    valid JSON comes back as the raw string when `raw_text_fallback` is on,
    otherwise reading it raises SerializationError.
    """

    def __init__(self, store: ChunkedStore, *, raw_text_fallback: bool = True) -> None:
        self._store = store
        self._raw_text_fallback = raw_text_fallback

    @property
    def store(self) -> ChunkedStore:
        return self._store

    @staticmethod
    def serialize(document: Any, key: str | None = None) -> str:
        try:
            text = json.dumps(document, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
            # lone surrogates survive dumps but have no UTF-8 encoding
            text.encode("utf-8")
            return text
        except (TypeError, ValueError) as e:
            raise SerializationError(f"document is not JSON-serializable: {e}", key=key, phase="serialize") from e

    def _deserialize(self, text: str, key: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            if self._raw_text_fallback:
                return text
            raise SerializationError(f"stored value is not valid JSON: {e}", key=key, phase="deserialize") from e

    def put(self, key: str, document: Any, namespace: str | None = None) -> None:
        text = self.serialize(document, namespaced_key(key, namespace))
        self._store.put_text(key, text, namespace)

    def get(self, key: str, namespace: str | None = None) -> Any | None:
        text = self._store.get_text(key, namespace)
        if text is None:
            return None
        return self._deserialize(text, namespaced_key(key, namespace))

    def get_or_raise(self, key: str, namespace: str | None = None) -> Any:
        text = self._store.get_text_or_raise(key, namespace)
        return self._deserialize(text, namespaced_key(key, namespace))

    def delete(self, key: str, namespace: str | None = None) -> None:
        self._store.delete(key, namespace)

    def list(self, namespace: str | None = None, *, logical_only: bool = False) -> list[str]:
        return self._store.list(namespace, logical_only=logical_only)
