"""Width-aware decoding of malloc chunk headers.

The header is never overlaid onto remote bytes; fields are unpacked with
``struct`` according to the inferior's pointer size and byte order.
"""

from __future__ import annotations

import struct
from typing import List, Optional

from heapscope.core.heap.interfaces import MemoryReader
from heapscope.core.types.heap import ChunkHeader

_WORD_CODES = {4: "I", 8: "Q"}
_ORDER_PREFIX = {"little": "<", "big": ">"}


def format_pointer(value: int, pointer_size: int = 8) -> str:
    """Format *value* as a zero-padded address of the given width."""
    return f"0x{value:0{pointer_size * 2}x}"


class ChunkLayout:
    """Decodes words and chunk headers for one address width.

    Parameters
    ----------
    pointer_size:
        4 for 32-bit inferiors, 8 for 64-bit ones.
    byte_order:
        ``"little"`` or ``"big"``.
    """

    def __init__(self, pointer_size: int = 8, byte_order: str = "little") -> None:
        if pointer_size not in _WORD_CODES:
            raise ValueError(f"Unsupported pointer size: {pointer_size}")
        if byte_order not in _ORDER_PREFIX:
            raise ValueError(f"Unsupported byte order: {byte_order!r}")
        self.pointer_size = pointer_size
        self.byte_order = byte_order
        prefix = _ORDER_PREFIX[byte_order]
        code = _WORD_CODES[pointer_size]
        self._word = struct.Struct(prefix + code)
        self._header = struct.Struct(prefix + code * 4)
        self._size_field = struct.Struct(prefix + code * 2)

    @property
    def header_size(self) -> int:
        """Bytes occupied by ``prev_size``, ``size``, ``fd`` and ``bk``."""
        return self._header.size

    @property
    def payload_offset(self) -> int:
        """Offset of user data from the chunk address."""
        return 2 * self.pointer_size

    def decode_header(self, data: bytes) -> ChunkHeader:
        """Decode a header; ``fd`` and ``bk`` are zero when *data* stops after ``size``."""
        if len(data) < self._header.size:
            prev_size, size = self._size_field.unpack_from(data)
            return ChunkHeader(prev_size=prev_size, size=size)
        prev_size, size, fd, bk = self._header.unpack_from(data)
        return ChunkHeader(prev_size=prev_size, size=size, fd=fd, bk=bk)

    def decode_word(self, data: bytes) -> int:
        return self._word.unpack_from(data)[0]

    def decode_words(self, data: bytes) -> List[int]:
        """Split *data* into whole words; a trailing partial word is dropped."""
        count = len(data) // self.pointer_size
        return [
            self._word.unpack_from(data, i * self.pointer_size)[0]
            for i in range(count)
        ]

    def read_header(
        self, reader: MemoryReader, address: int, limit: Optional[int] = None
    ) -> ChunkHeader:
        """Read the header at *address* without reading at or past *limit*.

        ``prev_size`` and ``size`` are always read; the list pointers only
        when they fit below *limit*.
        """
        length = self.header_size
        if limit is not None and address + length > limit:
            length = self._size_field.size
        return self.decode_header(reader.read_bytes(address, length))

    def read_word(self, reader: MemoryReader, address: int) -> int:
        return self.decode_word(reader.read_bytes(address, self.pointer_size))
