"""Byte-bounded text chunking that never splits a UTF-8 code point."""

from .errors import InvalidInputError


def _is_continuation_byte(byte: int) -> bool:
    """Return True for UTF-8 continuation bytes (0b10xxxxxx)."""
    return (byte & 0xC0) == 0x80


def chunk_text_by_max_bytes(text: str, max_bytes: int) -> list[str]:
    """Split text into UTF-8 safe chunks of at most ``max_bytes`` bytes.

    Args:
        text: Text to split
        max_bytes: Maximum encoded size of a chunk

    Returns:
        List of chunks whose concatenation equals ``text``. Empty when
        ``text`` is empty or ``max_bytes`` is not positive.

    A chunk is larger than ``max_bytes`` only when a single code point is
    longer than ``max_bytes`` (e.g. a 3-byte character with ``max_bytes=2``);
    that chunk then holds exactly that one code point.

    Raises:
        InvalidInputError: ``text`` holds a lone surrogate and has no UTF-8 form
    """
    if max_bytes <= 0 or not text:
        return []

    try:
        data = text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidInputError("text is not valid Unicode", e) from e

    total_len = len(data)
    chunks: list[str] = []
    start = 0

    while start < total_len:
        end = min(start + max_bytes, total_len)
        if end < total_len:
            # Back up to the start of the code point straddling the limit
            while end > start and _is_continuation_byte(data[end]):
                end -= 1
            if end == start:
                # One code point wider than the window: take it whole
                end = start + 1
                while end < total_len and _is_continuation_byte(data[end]):
                    end += 1

        chunks.append(data[start:end].decode("utf-8"))
        start = end

    return chunks
