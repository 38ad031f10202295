from __future__ import annotations

from pathlib import Path
from urllib.parse import quote, unquote

from json_store import atomic_write_bytes, atomic_write_json, atomic_write_text, read_json

from .chunking import MAX_VALUE_SIZE, utf8_length
from .errors import StorageUnavailable, ValueTooLarge
from .interfaces import KeyValueBackend, ObjectBackend, StoredObject
from .locks import GLOBAL_PATH_LOCKS

VALUE_SUFFIX = ".val"
BLOB_SUFFIX = ".bin"
META_SUFFIX = ".meta.json"


def _encode_name(key: str) -> str:
    # quote() leaves "." alone; the suffix keeps "." and ".." from being special.
    return quote(key, safe="")


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


class DiskKeyValueBackend(KeyValueBackend):
    """
    Stores each key as its own UTF-8 file under a root directory.

    - File name is the percent-encoded key plus ".val".
    - Writes are atomic (temp file + replace) and serialized per path.
    - Enforces the same per-value cap as the hosted store.
    """

    def __init__(self, root: Path, max_value_size: int = MAX_VALUE_SIZE) -> None:
        self._root = _ensure_dir(Path(root))
        self.max_value_size = max_value_size
        self._closed = False

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        if self._closed:
            raise StorageUnavailable("key-value backend is closed")
        return self._root / f"{_encode_name(key)}{VALUE_SUFFIX}"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        with GLOBAL_PATH_LOCKS.lock_for(path):
            try:
                return path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None

    def put(self, key: str, value: str) -> None:
        size = utf8_length(value)
        if size > self.max_value_size:
            raise ValueTooLarge(f"value for {key!r} is {size} bytes, limit is {self.max_value_size}")
        path = self._path(key)
        with GLOBAL_PATH_LOCKS.lock_for(path):
            atomic_write_text(path, value)

    def delete(self, key: str) -> None:
        path = self._path(key)
        with GLOBAL_PATH_LOCKS.lock_for(path):
            path.unlink(missing_ok=True)

    def list(self, prefix: str = "") -> list[str]:
        if self._closed:
            raise StorageUnavailable("key-value backend is closed")
        keys = []
        for f in self._root.iterdir():
            if not f.is_file() or not f.name.endswith(VALUE_SUFFIX):
                continue
            key = unquote(f.name[: -len(VALUE_SUFFIX)])
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> "DiskKeyValueBackend":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class DiskObjectBackend(ObjectBackend):
    """
    Stores blobs as "<encoded key>.bin" with a "<encoded key>.meta.json"
    sidecar holding the content type.
    """

    def __init__(self, root: Path) -> None:
        self._root = _ensure_dir(Path(root))
        self._closed = False

    def _paths(self, key: str) -> tuple[Path, Path]:
        if self._closed:
            raise StorageUnavailable("object backend is closed", key=key)
        name = _encode_name(key)
        return self._root / f"{name}{BLOB_SUFFIX}", self._root / f"{name}{META_SUFFIX}"

    def put(self, key: str, data: bytes, content_type: str) -> None:
        blob, meta = self._paths(key)
        with GLOBAL_PATH_LOCKS.lock_for(blob):
            atomic_write_bytes(blob, data)
            atomic_write_json(meta, {"content_type": content_type, "size": len(data)})

    def get(self, key: str) -> StoredObject | None:
        blob, meta = self._paths(key)
        with GLOBAL_PATH_LOCKS.lock_for(blob):
            try:
                data = blob.read_bytes()
            except FileNotFoundError:
                return None
            info = read_json(meta)
        content_type = info.get("content_type") if isinstance(info, dict) else None
        return StoredObject(key=key, data=data, content_type=content_type or "application/octet-stream")

    def delete(self, key: str) -> None:
        blob, meta = self._paths(key)
        with GLOBAL_PATH_LOCKS.lock_for(blob):
            blob.unlink(missing_ok=True)
            meta.unlink(missing_ok=True)

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> "DiskObjectBackend":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
