from __future__ import annotations

import json
from typing import Any, Callable

# Backing key-value store's hard per-value cap.
MAX_VALUE_SIZE = 25 * 1024 * 1024

# Chunk threshold; leaves headroom under MAX_VALUE_SIZE for envelope overhead.
MAX_CHUNK_SIZE = 20 * 1024 * 1024

# A UTF-8 codepoint is at most 4 bytes, so every window this size holds a boundary.
MIN_CHUNK_SIZE = 4

ChunkReader = Callable[[int], "str | None"]


def utf8_length(text: str) -> int:
    return len(text.encode("utf-8"))


def _is_continuation_byte(b: int) -> bool:
    return (b & 0xC0) == 0x80


def needs_chunking(serialized: str, max_chunk_size: int = MAX_CHUNK_SIZE) -> bool:
    """True iff the UTF-8 encoding of `serialized` is strictly larger than `max_chunk_size`."""
    return utf8_length(serialized) > max_chunk_size


def chunk_value(serialized: str, max_chunk_size: int = MAX_CHUNK_SIZE) -> list[str]:
    """
    Split `serialized` into pieces of at most `max_chunk_size` UTF-8 bytes.

    Boundaries never fall inside a multi-byte sequence: an interior boundary
    that lands on a continuation byte is moved back to the start of that
    codepoint. Joining the result in order reproduces `serialized` exactly.
    """
    if max_chunk_size < MIN_CHUNK_SIZE:
        raise ValueError(f"max_chunk_size must be at least {MIN_CHUNK_SIZE} bytes")

    data = serialized.encode("utf-8")
    total = len(data)
    chunks: list[str] = []

    start = 0
    while start < total:
        end = min(start + max_chunk_size, total)
        if end < total:
            while end > start and _is_continuation_byte(data[end]):
                end -= 1
            if end == start:
                raise ValueError(f"no codepoint boundary in window starting at byte {start}")
        chunks.append(data[start:end].decode("utf-8"))
        start = end

    return chunks


def reconstruct_value(read_chunk: ChunkReader, num_chunks: int) -> str | None:
    """
    Read chunks 0..num_chunks-1 in order and join them.

    Returns None as soon as any chunk is missing; no partial result is built.
    """
    if num_chunks <= 0:
        return None
    parts: list[str] = []
    for index in range(num_chunks):
        chunk = read_chunk(index)
        if chunk is None:
            return None
        parts.append(chunk)
    return "".join(parts)


def encode_chunk_metadata(num_chunks: int) -> str:
    return json.dumps({"chunks": int(num_chunks)}, separators=(",", ":"))


def parse_chunk_metadata(raw: Any) -> int | None:
    """
    Return the chunk count from a metadata value, or None when it is not
    well-formed (`{"chunks": N}` with N a positive integer).
    """
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(raw, dict):
        return None
    n = raw.get("chunks")
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
        return None
    return n
