"""Content identification for chunk payloads."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from heapscope.core.errors import MemoryReadFailure
from heapscope.core.heap.interfaces import MemoryReader, StringDecoder
from heapscope.core.heap.strings import escape
from heapscope.core.types.config import ScanConfig
from heapscope.core.types.heap import Chunk, ChunkState

logger = logging.getLogger(__name__)

# Checked in order against the first bytes of the payload.
SIGNATURES: Tuple[Tuple[bytes, str], ...] = (
    (b"\x89PNG", "PNG IMAGE"),
    (b"/* XPM */", "XPM IMAGE"),
    (b"BZ", "BZIP FILE"),
    (b"\x1f\x9d", "COMPRESS FILE"),
    (b"\x1f\x8b", "GZIP FILE"),
)

_SIGNATURE_WINDOW = 16


def match_signature(data: bytes) -> Optional[str]:
    """Return the format name of the first signature *data* starts with."""
    for magic, name in SIGNATURES:
        if data.startswith(magic):
            return name
    return None


class ChunkClassifier:
    """Tags chunk payloads that hold text or a known file format.

    Precedence is ASCII, then UTF-16, then magic signatures.  Chunks with no
    match keep an empty tag so that pointer detection can annotate them.
    """

    def __init__(
        self,
        reader: MemoryReader,
        strings: StringDecoder,
        config: Optional[ScanConfig] = None,
    ) -> None:
        self.reader = reader
        self.strings = strings
        self.config = config or ScanConfig()

    def classify(self, chunks: Iterable[Chunk]) -> List[Chunk]:
        """Return copies of *chunks* with their content tags filled in."""
        result = []
        for chunk in chunks:
            if chunk.state is ChunkState.TOP:
                result.append(chunk)
                continue
            tag = self.identify(chunk)
            result.append(chunk.model_copy(update={"tag": tag}) if tag else chunk)
        return result

    def identify(self, chunk: Chunk) -> Optional[str]:
        address = chunk.payload_start
        min_length = self.config.min_string_length
        max_length = chunk.payload_size

        found = self.strings.ascii_string_at(address, min_length, max_length)
        if found is not None:
            return f'ASCII "{escape(found[0])}"'

        found = self.strings.utf16_string_at(address, min_length, max_length)
        if found is not None:
            return f'UTF-16 "{escape(found[0])}"'

        try:
            head = self.reader.read_bytes(address, _SIGNATURE_WINDOW)
        except MemoryReadFailure:
            logger.debug("Could not read payload of chunk %#x", chunk.address)
            return None
        return match_signature(head)
