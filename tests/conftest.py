from __future__ import annotations

import dataclasses
from pathlib import Path
import sys
from typing import Any, Iterator


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


from persistence.chunked_store import ChunkedStore, DocumentStore  # noqa: E402
from persistence.memory_store import InMemoryKeyValueBackend  # noqa: E402
from persistence.observers import RecordingStoreObserver  # noqa: E402

# Small limits so chunking is exercised without megabyte payloads.
TEST_MAX_VALUE_SIZE = 64
TEST_MAX_CHUNK_SIZE = 16


class RecordingBackend(InMemoryKeyValueBackend):
    """In-memory backend that also records every call in order."""

    def __init__(self, max_value_size: int = TEST_MAX_VALUE_SIZE) -> None:
        super().__init__(max_value_size=max_value_size)
        self.calls: list[tuple[str, str]] = []

    def get(self, key: str) -> str | None:
        self.calls.append(("get", key))
        return super().get(key)

    def put(self, key: str, value: str) -> None:
        self.calls.append(("put", key))
        super().put(key, value)

    def delete(self, key: str) -> None:
        self.calls.append(("delete", key))
        super().delete(key)

    def writes(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] != "get"]


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def observer() -> RecordingStoreObserver:
    return RecordingStoreObserver()


@pytest.fixture
def store(backend: RecordingBackend, observer: RecordingStoreObserver) -> ChunkedStore:
    return ChunkedStore(backend, max_chunk_size=TEST_MAX_CHUNK_SIZE, observer=observer)


@pytest.fixture
def documents(store: ChunkedStore) -> DocumentStore:
    return DocumentStore(store)


@pytest.fixture
def app_settings(tmp_path: Path) -> Any:
    """
    Settings for an app under test: in-memory storage, small limits, data dir
    sandboxed to tmp_path so nothing touches a real ./data.
    """
    from settings import get_settings

    return dataclasses.replace(
        get_settings(),
        public_base_url="",
        persist_to_disk=False,
        data_dir=tmp_path / "data",
        max_value_size=TEST_MAX_VALUE_SIZE,
        max_chunk_size=TEST_MAX_CHUNK_SIZE,
        raw_text_fallback=True,
        debug_log_requests=True,
    )


@pytest.fixture
def client(app_settings: Any) -> Iterator[Any]:
    from fastapi.testclient import TestClient

    import app as app_module

    with TestClient(app_module.create_app(app_settings)) as c:
        yield c
