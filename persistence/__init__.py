from __future__ import annotations

from .canvas_state import CanvasStateRepository, KVCanvasStateRepository, StoredCanvases
from .chunked_store import ChunkedStore, DocumentStore, Layout
from .disk_store import DiskKeyValueBackend, DiskObjectBackend
from .errors import (
    IntegrityError,
    NotFound,
    SerializationError,
    StorageError,
    StorageUnavailable,
    ValueTooLarge,
)
from .memory_store import InMemoryKeyValueBackend, InMemoryObjectBackend
from .objects import ObjectStore, StoredObjectRef
from .repositories import (
    AsyncCanvasRepository,
    AsyncChunkedDocumentRepository,
    AsyncDocumentRepository,
    AsyncObjectRepository,
    AsyncStoreObjectRepository,
)

__all__ = [
    "CanvasStateRepository",
    "KVCanvasStateRepository",
    "StoredCanvases",
    "ChunkedStore",
    "DocumentStore",
    "Layout",
    "DiskKeyValueBackend",
    "DiskObjectBackend",
    "InMemoryKeyValueBackend",
    "InMemoryObjectBackend",
    "ObjectStore",
    "StoredObjectRef",
    "StorageError",
    "SerializationError",
    "StorageUnavailable",
    "ValueTooLarge",
    "IntegrityError",
    "NotFound",
    "AsyncCanvasRepository",
    "AsyncChunkedDocumentRepository",
    "AsyncDocumentRepository",
    "AsyncObjectRepository",
    "AsyncStoreObjectRepository",
]
