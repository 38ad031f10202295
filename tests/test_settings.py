from __future__ import annotations

from pathlib import Path

import pytest

from settings import get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "PUBLIC_BASE_URL",
        "PERSIST_TO_DISK",
        "STORAGE_DATA_DIR",
        "KV_MAX_VALUE_SIZE",
        "KV_MAX_CHUNK_SIZE",
        "CORS_ALLOW_ORIGINS",
        "RAW_TEXT_FALLBACK",
    ):
        monkeypatch.delenv(name, raising=False)
    s = get_settings()
    assert s.persist_to_disk is False
    assert s.max_value_size == 25 * 1024 * 1024
    assert s.max_chunk_size == 20 * 1024 * 1024
    assert s.cors_allow_origins == ("*",)
    assert s.raw_text_fallback is True
    assert s.kv_dir == Path("data") / "kv"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://assets.example.com/")
    monkeypatch.setenv("PERSIST_TO_DISK", "yes")
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("KV_MAX_VALUE_SIZE", "1000")
    monkeypatch.setenv("KV_MAX_CHUNK_SIZE", "800")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")
    s = get_settings()
    assert s.public_base_url == "https://assets.example.com"
    assert s.persist_to_disk is True
    assert s.objects_dir == tmp_path / "objects"
    assert (s.max_value_size, s.max_chunk_size) == (1000, 800)
    assert s.cors_allow_origins == ("https://a.example", "https://b.example")


def test_chunk_size_must_be_below_value_size(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("KV_MAX_VALUE_SIZE", "100")
    monkeypatch.setenv("KV_MAX_CHUNK_SIZE", "100")
    with pytest.raises(ValueError, match="must be smaller"):
        get_settings()
