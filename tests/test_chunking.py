from __future__ import annotations

import pytest

from persistence.chunking import (
    MAX_CHUNK_SIZE,
    MAX_VALUE_SIZE,
    chunk_value,
    encode_chunk_metadata,
    needs_chunking,
    parse_chunk_metadata,
    reconstruct_value,
    utf8_length,
)


def test_constants_leave_headroom():
    assert MAX_VALUE_SIZE == 25 * 1024 * 1024
    assert MAX_CHUNK_SIZE == 20 * 1024 * 1024
    assert MAX_CHUNK_SIZE < MAX_VALUE_SIZE


def test_needs_chunking_small_value():
    assert needs_chunking("x") is False


def test_needs_chunking_threshold_is_exclusive():
    at_limit = "a" * MAX_CHUNK_SIZE
    assert utf8_length(at_limit) == MAX_CHUNK_SIZE
    assert needs_chunking(at_limit) is False
    assert needs_chunking(at_limit + "a") is True


def test_needs_chunking_21mb_string():
    assert needs_chunking("x" * 21_000_000) is True


def test_needs_chunking_counts_utf8_bytes_not_characters():
    # 6 characters, 18 bytes
    s = "€" * 6
    assert len(s) == 6
    assert needs_chunking(s, max_chunk_size=16) is True
    assert needs_chunking(s, max_chunk_size=18) is False


def test_chunk_value_exact_multiple():
    chunks = chunk_value("abcdefgh", max_chunk_size=4)
    assert chunks == ["abcd", "efgh"]


def test_chunk_value_with_remainder():
    chunks = chunk_value("abcdefghij", max_chunk_size=4)
    assert chunks == ["abcd", "efgh", "ij"]


def test_chunk_value_backs_off_from_split_codepoint():
    # "€" is E2 82 AC; a 4-byte window would end inside it.
    chunks = chunk_value("ab€c", max_chunk_size=4)
    assert chunks == ["ab", "€c"]
    assert "".join(chunks) == "ab€c"


def test_chunk_value_four_byte_codepoint_straddling_boundary():
    chunks = chunk_value("a😀b", max_chunk_size=4)
    assert chunks == ["a", "😀", "b"]
    assert all(utf8_length(c) <= 4 for c in chunks)


def test_chunk_value_roundtrip_mixed_text():
    s = ("héllo wörld — 日本語テキスト 😀🚀 " * 50).strip()
    for size in (4, 5, 7, 16, 33, 100):
        chunks = chunk_value(s, max_chunk_size=size)
        assert "".join(chunks) == s
        assert all(0 < utf8_length(c) <= size for c in chunks)


def test_chunk_value_empty_string():
    assert chunk_value("", max_chunk_size=4) == []


def test_chunk_value_rejects_window_smaller_than_a_codepoint():
    with pytest.raises(ValueError, match="at least"):
        chunk_value("abc", max_chunk_size=3)


def test_chunk_value_real_size_exact_multiple():
    s = "z" * (2 * MAX_CHUNK_SIZE)
    chunks = chunk_value(s)
    assert len(chunks) == 2
    assert "".join(chunks) == s


def test_chunk_value_real_size_multibyte_straddle():
    # Place a 3-byte codepoint across the first 20 MiB boundary.
    s = "a" * (MAX_CHUNK_SIZE - 1) + "€" + "b" * 10
    chunks = chunk_value(s)
    assert len(chunks) == 2
    assert utf8_length(chunks[0]) == MAX_CHUNK_SIZE - 1
    assert chunks[1].startswith("€")
    assert "".join(chunks) == s


def test_reconstruct_value_joins_in_order():
    parts = {0: "ab", 1: "cd", 2: "e"}
    seen: list[int] = []

    def reader(i: int) -> str | None:
        seen.append(i)
        return parts.get(i)

    assert reconstruct_value(reader, 3) == "abcde"
    assert seen == [0, 1, 2]


def test_reconstruct_value_fails_fast_on_missing_chunk():
    parts = {0: "ab", 2: "e"}
    seen: list[int] = []

    def reader(i: int) -> str | None:
        seen.append(i)
        return parts.get(i)

    assert reconstruct_value(reader, 3) is None
    assert seen == [0, 1]


def test_reconstruct_value_zero_chunks():
    assert reconstruct_value(lambda i: "x", 0) is None


def test_reconstruct_value_keeps_empty_chunk():
    assert reconstruct_value(lambda i: "", 2) == ""


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('{"chunks":3}', 3),
        ({"chunks": 1}, 1),
        (b'{"chunks": 2}', 2),
        (None, None),
        ("not json", None),
        ("[]", None),
        ({"chunks": 0}, None),
        ({"chunks": -2}, None),
        ({"chunks": "3"}, None),
        ({"chunks": True}, None),
        ({"count": 3}, None),
    ],
)
def test_parse_chunk_metadata(raw, expected):
    assert parse_chunk_metadata(raw) == expected


def test_encode_chunk_metadata_is_parseable():
    assert encode_chunk_metadata(2) == '{"chunks":2}'
    assert parse_chunk_metadata(encode_chunk_metadata(7)) == 7
