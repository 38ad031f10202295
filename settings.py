from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from persistence.chunking import MAX_CHUNK_SIZE, MAX_VALUE_SIZE


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw.strip())


@dataclass(frozen=True)
class Settings:
    # Deployment / URLs
    public_base_url: str
    cors_allow_origins: tuple[str, ...]

    # Debug
    debug_log_requests: bool

    # Persistence (serverless-friendly default: in-memory)
    persist_to_disk: bool
    data_dir: Path

    # Key-value limits. Changing these on a live deployment changes chunk
    # boundaries but never orphans data; the key suffixes do.
    max_value_size: int
    max_chunk_size: int

    # Non-JSON documents are returned as raw text instead of failing.
    raw_text_fallback: bool

    @property
    def kv_dir(self) -> Path:
        return self.data_dir / "kv"

    @property
    def objects_dir(self) -> Path:
        return self.data_dir / "objects"


def get_settings() -> Settings:
    public_base_url = (os.getenv("PUBLIC_BASE_URL", "")).rstrip("/")

    origins_raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    cors_allow_origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip()) or ("*",)

    debug_log_requests = _env_bool("DEBUG_LOG_REQUESTS", False)

    # Serverless filesystems are ephemeral; default off unless explicitly enabled.
    persist_to_disk = _env_bool("PERSIST_TO_DISK", False)
    data_dir = Path(os.getenv("STORAGE_DATA_DIR", "data")).expanduser()

    max_value_size = _env_int("KV_MAX_VALUE_SIZE", MAX_VALUE_SIZE)
    max_chunk_size = _env_int("KV_MAX_CHUNK_SIZE", MAX_CHUNK_SIZE)
    if max_chunk_size >= max_value_size:
        raise ValueError(
            f"KV_MAX_CHUNK_SIZE ({max_chunk_size}) must be smaller than KV_MAX_VALUE_SIZE ({max_value_size})"
        )

    raw_text_fallback = _env_bool("RAW_TEXT_FALLBACK", True)

    return Settings(
        public_base_url=public_base_url,
        cors_allow_origins=cors_allow_origins,
        debug_log_requests=debug_log_requests,
        persist_to_disk=persist_to_disk,
        data_dir=data_dir,
        max_value_size=max_value_size,
        max_chunk_size=max_chunk_size,
        raw_text_fallback=raw_text_fallback,
    )
