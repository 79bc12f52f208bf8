"""Detection of printable ASCII and UTF-16 strings in process memory."""

from __future__ import annotations

import logging
import string
from typing import Optional, Tuple

from heapscope.core.errors import MemoryReadFailure
from heapscope.core.heap.interfaces import MemoryReader

logger = logging.getLogger(__name__)

_ESCAPES = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\v": "\\v", "\f": "\\f"})


def _is_text(code: int) -> bool:
    if code >= 0x80:
        return False
    ch = chr(code)
    return ch.isprintable() or ch in string.whitespace


def escape(text: str) -> str:
    """Make control whitespace visible for single-line display."""
    return text.translate(_ESCAPES)


def ascii_string_at(
    reader: MemoryReader, address: int, min_length: int, max_length: int
) -> Optional[Tuple[str, int]]:
    """Return ``(text, length)`` when at least *min_length* ASCII text bytes
    start at *address*.

    Decoding stops at the first byte that is not printable ASCII or
    whitespace, or after *max_length* bytes.
    """
    if max_length <= 0 or min_length > max_length:
        return None
    try:
        data = reader.read_bytes(address, max_length)
    except MemoryReadFailure:
        logger.debug("No readable string data at %#x", address)
        return None

    length = 0
    for byte in data:
        if not _is_text(byte):
            break
        length += 1

    if length < min_length:
        return None
    return data[:length].decode("ascii"), length


def utf16_string_at(
    reader: MemoryReader,
    address: int,
    min_length: int,
    max_length: int,
    byte_order: str = "little",
) -> Optional[Tuple[str, int]]:
    """Like :func:`ascii_string_at` for UTF-16 code units.

    Only units in the ASCII range count as text.

    *max_length* is measured in bytes, the returned length in characters.
    """
    units = max_length // 2
    if units <= 0 or min_length > units:
        return None
    try:
        data = reader.read_bytes(address, units * 2)
    except MemoryReadFailure:
        logger.debug("No readable string data at %#x", address)
        return None

    chars = []
    for i in range(units):
        code = int.from_bytes(data[2 * i:2 * i + 2], byte_order)
        if not _is_text(code):
            break
        chars.append(chr(code))

    if len(chars) < min_length:
        return None
    return "".join(chars), len(chars)
