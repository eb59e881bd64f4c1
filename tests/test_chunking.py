"""Tests for byte-bounded chunking."""

import pytest

from chunk_prompter.chunking import chunk_text_by_max_bytes
from chunk_prompter.errors import InvalidInputError


SAMPLES = [
    "hello world",
    "Grüße aus Köln, schöne Straße",
    "日本語のテキストを分割します。",
    "emoji 😀🎉 mixed with ascii and ünïcödé",
    "a" * 37,
    "€€€€€",
]


def _assert_invariants(text: str, max_bytes: int, chunks: list[str]) -> None:
    assert "".join(chunks) == text
    for chunk in chunks:
        encoded = chunk.encode("utf-8")
        assert encoded.decode("utf-8") == chunk
        assert chunk
        if len(encoded) > max_bytes:
            # Only a single oversized code point may exceed the limit
            assert len(chunk) == 1


def test_ascii_split_points():
    assert chunk_text_by_max_bytes("hello world", 5) == ["hello", " worl", "d"]


@pytest.mark.parametrize("text", ["", "abc"])
@pytest.mark.parametrize("max_bytes", [0, -1])
def test_non_positive_max_bytes_returns_empty(text, max_bytes):
    assert chunk_text_by_max_bytes(text, max_bytes) == []


def test_empty_text_returns_empty():
    assert chunk_text_by_max_bytes("", 10) == []


def test_text_shorter_than_limit_is_one_chunk():
    assert chunk_text_by_max_bytes("short", 100) == ["short"]


def test_exact_fit_is_one_chunk():
    assert chunk_text_by_max_bytes("abcd", 4) == ["abcd"]


@pytest.mark.parametrize("text", SAMPLES)
@pytest.mark.parametrize("max_bytes", [1, 2, 3, 4, 5, 7, 16])
def test_invariants_hold(text, max_bytes):
    _assert_invariants(text, max_bytes, chunk_text_by_max_bytes(text, max_bytes))


def test_backs_up_to_code_point_start():
    # "é" is two bytes; a 2-byte window starting at "a" would split it
    assert chunk_text_by_max_bytes("aé", 2) == ["a", "é"]


def test_multibyte_chunks_stay_within_limit():
    chunks = chunk_text_by_max_bytes("日本語テキスト", 7)
    assert chunks == ["日本", "語テ", "キス", "ト"]
    assert all(len(c.encode("utf-8")) <= 7 for c in chunks)


def test_oversized_code_point_is_kept_whole():
    assert chunk_text_by_max_bytes("€", 1) == ["€"]
    assert chunk_text_by_max_bytes("a😀b", 2) == ["a", "😀", "b"]


def test_chunks_are_deterministic():
    text = SAMPLES[3]
    assert chunk_text_by_max_bytes(text, 6) == chunk_text_by_max_bytes(text, 6)


def test_lone_surrogate_is_rejected():
    with pytest.raises(InvalidInputError, match="text is not valid Unicode"):
        chunk_text_by_max_bytes("ab\ud800cd", 2)
