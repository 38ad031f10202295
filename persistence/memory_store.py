from __future__ import annotations

import threading

from .chunking import MAX_VALUE_SIZE, utf8_length
from .errors import StorageUnavailable, ValueTooLarge
from .interfaces import KeyValueBackend, ObjectBackend, StoredObject


class InMemoryKeyValueBackend(KeyValueBackend):
    """
    Process-local key-value store with the same per-value cap as the hosted one.

    Default when PERSIST_TO_DISK is off; contents reset on restart.
    """

    def __init__(self, max_value_size: int = MAX_VALUE_SIZE) -> None:
        self.max_value_size = max_value_size
        self._lock = threading.Lock()
        self._data: dict[str, str] = {}
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise StorageUnavailable("key-value backend is closed")

    def get(self, key: str) -> str | None:
        with self._lock:
            self._check_open()
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        size = utf8_length(value)
        if size > self.max_value_size:
            raise ValueTooLarge(f"value for {key!r} is {size} bytes, limit is {self.max_value_size}")
        with self._lock:
            self._check_open()
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._check_open()
            self._data.pop(key, None)

    def list(self, prefix: str = "") -> list[str]:
        with self._lock:
            self._check_open()
            return sorted(k for k in self._data if k.startswith(prefix))

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def __enter__(self) -> "InMemoryKeyValueBackend":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class InMemoryObjectBackend(ObjectBackend):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._objects: dict[str, StoredObject] = {}
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise StorageUnavailable("object backend is closed")

    def put(self, key: str, data: bytes, content_type: str) -> None:
        with self._lock:
            self._check_open()
            self._objects[key] = StoredObject(key=key, data=bytes(data), content_type=content_type)

    def get(self, key: str) -> StoredObject | None:
        with self._lock:
            self._check_open()
            return self._objects.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._check_open()
            self._objects.pop(key, None)

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def __enter__(self) -> "InMemoryObjectBackend":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
