from __future__ import annotations

import asyncio
from typing import Any, Mapping, Protocol

from .canvas_state import CanvasStateRepository, StoredCanvases
from .chunked_store import DocumentStore
from .interfaces import StoredObject
from .objects import ObjectStore, StoredObjectRef


class AsyncDocumentRepository(Protocol):
    async def chunked_get(self, key: str, namespace: str | None = None) -> Any | None: ...
    async def chunked_put(self, key: str, document: Any, namespace: str | None = None) -> None: ...
    async def chunked_delete(self, key: str, namespace: str | None = None) -> None: ...
    async def chunked_list(self, namespace: str | None = None, *, logical_only: bool = False) -> list[str]: ...


class AsyncObjectRepository(Protocol):
    async def object_put(
        self,
        data: bytes,
        content_type: str | None = None,
        filename: str | None = None,
        *,
        base_url: str | None = None,
    ) -> StoredObjectRef: ...

    async def object_get(self, key: str) -> StoredObject: ...
    async def object_delete(self, key: str) -> None: ...


class AsyncChunkedDocumentRepository(AsyncDocumentRepository):
    """
    Async wrapper around the chunked document store.
    Uses asyncio.to_thread so backend I/O never blocks the event loop.
    """

    def __init__(self, documents: DocumentStore) -> None:
        self._documents = documents

    async def chunked_get(self, key: str, namespace: str | None = None) -> Any | None:
        return await asyncio.to_thread(self._documents.get, key, namespace)

    async def chunked_put(self, key: str, document: Any, namespace: str | None = None) -> None:
        await asyncio.to_thread(self._documents.put, key, document, namespace)

    async def chunked_delete(self, key: str, namespace: str | None = None) -> None:
        await asyncio.to_thread(self._documents.delete, key, namespace)

    async def chunked_list(self, namespace: str | None = None, *, logical_only: bool = False) -> list[str]:
        return await asyncio.to_thread(self._documents.list, namespace, logical_only=logical_only)


class AsyncStoreObjectRepository(AsyncObjectRepository):
    def __init__(self, objects: ObjectStore) -> None:
        self._objects = objects

    async def object_put(
        self,
        data: bytes,
        content_type: str | None = None,
        filename: str | None = None,
        *,
        base_url: str | None = None,
    ) -> StoredObjectRef:
        return await asyncio.to_thread(self._objects.object_put, data, content_type, filename, base_url=base_url)

    async def object_get(self, key: str) -> StoredObject:
        return await asyncio.to_thread(self._objects.object_get, key)

    async def object_delete(self, key: str) -> None:
        await asyncio.to_thread(self._objects.object_delete, key)


class AsyncCanvasRepository:
    """Async wrapper around a CanvasStateRepository."""

    def __init__(self, repo: CanvasStateRepository) -> None:
        self._repo = repo

    async def save_canvases(self, canvases: StoredCanvases, tab: str | None = None) -> None:
        await asyncio.to_thread(self._repo.save_canvases, canvases, tab)

    async def load_canvases(self, tab: str | None = None) -> StoredCanvases | None:
        return await asyncio.to_thread(self._repo.load_canvases, tab)

    async def save_canvas_objects(self, canvas_objects: Mapping[str, Any], tab: str | None = None) -> None:
        await asyncio.to_thread(self._repo.save_canvas_objects, canvas_objects, tab)

    async def load_canvas_objects(self, tab: str | None = None) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._repo.load_canvas_objects, tab)
