from __future__ import annotations

import asyncio

import pytest

from persistence.canvas_state import KVCanvasStateRepository, StoredCanvases
from persistence.errors import NotFound
from persistence.memory_store import InMemoryObjectBackend
from persistence.objects import ObjectStore
from persistence.repositories import (
    AsyncCanvasRepository,
    AsyncChunkedDocumentRepository,
    AsyncStoreObjectRepository,
)


def test_async_chunked_document_repository_roundtrip(documents, backend):
    async def _run():
        repo = AsyncChunkedDocumentRepository(documents)

        await repo.chunked_put("doc", {"a": "x"})
        assert await repo.chunked_get("doc") == {"a": "x"}

        big = {"blob": "y" * 100}
        await repo.chunked_put("doc", big, "tab")
        assert await repo.chunked_get("doc", "tab") == big
        assert await repo.chunked_list("tab", logical_only=True) == ["tab-doc"]
        assert "tab-doc__chunks__" in await repo.chunked_list("tab")

        await repo.chunked_delete("doc", "tab")
        await repo.chunked_delete("doc", "tab")
        assert await repo.chunked_get("doc", "tab") is None
        assert backend.list() == ["doc"]

    asyncio.run(_run())


def test_async_object_repository_roundtrip():
    async def _run():
        repo = AsyncStoreObjectRepository(ObjectStore(InMemoryObjectBackend()))
        ref = await repo.object_put(b"video", "video/mp4", base_url="http://localhost")
        assert ref.url.startswith("http://localhost/api/r2/images/")
        assert ref.key.endswith(".mp4")

        obj = await repo.object_get(ref.key)
        assert obj.data == b"video"

        await repo.object_delete(ref.key)
        with pytest.raises(NotFound):
            await repo.object_get(ref.key)

    asyncio.run(_run())


def test_canvas_repository_flow(documents):
    async def _run():
        repo = AsyncCanvasRepository(KVCanvasStateRepository(documents))

        assert await repo.load_canvases() is None

        canvases = StoredCanvases.from_doc(
            {"4:5": {"objects": ["a" * 30]}, "9:16": {"objects": []}, "1:1": {"objects": []}}
        )
        await repo.save_canvases(canvases, tab="marketing")
        loaded = await repo.load_canvases(tab="marketing")
        assert loaded is not None
        assert loaded.to_doc() == {"4:5": {"objects": ["a" * 30]}, "9:16": {"objects": []}, "1:1": {"objects": []}}
        assert await repo.load_canvases() is None

        await repo.save_canvas_objects({"img-1": {"x": 10, "y": 20}}, tab="marketing")
        assert await repo.load_canvas_objects(tab="marketing") == {"img-1": {"x": 10, "y": 20}}
        assert await repo.load_canvas_objects() is None

    asyncio.run(_run())


def test_canvas_repository_rejects_incomplete_layout(documents):
    repo = KVCanvasStateRepository(documents)
    documents.put("canvases", {"4:5": {}})
    assert repo.load_canvases() is None
    documents.put("canvases", ["not", "a", "dict"])
    assert repo.load_canvases() is None
