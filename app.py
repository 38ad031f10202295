from __future__ import annotations

import contextlib
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from persistence.chunked_store import ChunkedStore, DocumentStore
from persistence.disk_store import DiskKeyValueBackend, DiskObjectBackend
from persistence.interfaces import KeyValueBackend, ObjectBackend
from persistence.memory_store import InMemoryKeyValueBackend, InMemoryObjectBackend
from persistence.objects import ObjectStore
from persistence.repositories import AsyncChunkedDocumentRepository, AsyncStoreObjectRepository
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


def open_backends(settings: Settings) -> tuple[KeyValueBackend, ObjectBackend]:
    if settings.persist_to_disk:
        logger.info("Using disk storage at %s", settings.data_dir)
        return (
            DiskKeyValueBackend(settings.kv_dir, max_value_size=settings.max_value_size),
            DiskObjectBackend(settings.objects_dir),
        )
    logger.info("Using in-memory storage (PERSIST_TO_DISK is off)")
    return InMemoryKeyValueBackend(max_value_size=settings.max_value_size), InMemoryObjectBackend()


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    kv, blobs = open_backends(settings)
    try:
        store = ChunkedStore(kv, max_chunk_size=settings.max_chunk_size)
        documents = DocumentStore(store, raw_text_fallback=settings.raw_text_fallback)
        app.state.documents = AsyncChunkedDocumentRepository(documents)
        app.state.objects = AsyncStoreObjectRepository(
            ObjectStore(blobs, public_base_url=settings.public_base_url)
        )
        yield
    finally:
        kv.close()
        blobs.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    load_dotenv("local.env")
    settings = settings or get_settings()

    from endpoints.object_endpoints import router as object_router
    from endpoints.storage_endpoints import router as storage_router

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/health")
    async def health():
        return JSONResponse(
            {
                "status": "healthy",
                "persist_to_disk": settings.persist_to_disk,
                "max_chunk_size": settings.max_chunk_size,
                "max_value_size": settings.max_value_size,
            }
        )

    app.include_router(storage_router)
    app.include_router(object_router)

    return app


app = create_app()
