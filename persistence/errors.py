from __future__ import annotations


class StorageError(Exception):
    """
    Base class for persistence failures.

    `key` is the namespaced logical key, `phase` names the step that failed
    (metadata_read, chunk_write, plain_read, ...).
    """

    def __init__(self, message: str, *, key: str | None = None, phase: str | None = None):
        super().__init__(message)
        self.key = key
        self.phase = phase

    def __str__(self) -> str:
        msg = super().__str__()
        ctx = []
        if self.key is not None:
            ctx.append(f"key={self.key!r}")
        if self.phase is not None:
            ctx.append(f"phase={self.phase}")
        return f"{msg} ({', '.join(ctx)})" if ctx else msg


class SerializationError(StorageError):
    """Document cannot be converted to or from its stored text form."""


class StorageUnavailable(StorageError):
    """Backing store I/O failed (network, quota, timeout, closed handle)."""


class ValueTooLarge(StorageUnavailable):
    """A single physical value exceeded the backing store's size cap."""


class IntegrityError(StorageError):
    """Chunk metadata exists but one or more chunks are missing."""


class NotFound(StorageError):
    """Key is absent in both plain and chunked layout."""
