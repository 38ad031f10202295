from __future__ import annotations

from typing import Iterable

# Stable for the lifetime of a deployment: changing either orphans chunked data.
METADATA_SUFFIX = "__chunks__"
CHUNK_INFIX = "__chunk_"

NAMESPACE_SEPARATOR = "-"


def namespace_prefix(namespace: str | None) -> str:
    return f"{namespace}{NAMESPACE_SEPARATOR}" if namespace else ""


def namespaced_key(key: str, namespace: str | None = None) -> str:
    if not isinstance(key, str) or not key:
        raise ValueError("key must be a non-empty string")
    full = f"{namespace_prefix(namespace)}{key}"
    # Metadata and chunk names belong to the store; a caller writing one would
    # overwrite another key's chunked layout.
    if is_internal_key(full):
        raise ValueError(f"key {full!r} uses a reserved chunk or metadata name")
    return full


def metadata_key(full_key: str) -> str:
    return f"{full_key}{METADATA_SUFFIX}"


def chunk_prefix(full_key: str) -> str:
    return f"{full_key}{CHUNK_INFIX}"


def chunk_key(full_key: str, index: int) -> str:
    return f"{chunk_prefix(full_key)}{index}"


def is_metadata_key(physical_key: str) -> bool:
    return physical_key.endswith(METADATA_SUFFIX) and len(physical_key) > len(METADATA_SUFFIX)


def is_chunk_key(physical_key: str) -> bool:
    head, sep, tail = physical_key.rpartition(CHUNK_INFIX)
    return bool(sep) and bool(head) and tail.isdigit()


def is_internal_key(physical_key: str) -> bool:
    return is_metadata_key(physical_key) or is_chunk_key(physical_key)


def logical_keys(physical_keys: Iterable[str]) -> list[str]:
    """
    Collapse a physical listing into logical keys: metadata keys map back to
    their owner, chunk keys are dropped, order of first appearance is kept.
    """
    seen: set[str] = set()
    out: list[str] = []
    for k in physical_keys:
        if is_metadata_key(k):
            k = k[: -len(METADATA_SUFFIX)]
        elif is_chunk_key(k):
            continue
        if k not in seen:
            seen.add(k)
            out.append(k)
    return out
