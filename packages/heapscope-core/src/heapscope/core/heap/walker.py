"""Sequential walk over the chunks of a brk heap."""

from __future__ import annotations

import logging
from typing import List, Optional

from heapscope.core.errors import CorruptHeap, HeapScopeError, MemoryReadFailure
from heapscope.core.events import ScanEvent, ScanEventCallback, ScanEventType
from heapscope.core.heap.interfaces import MemoryReader
from heapscope.core.heap.layout import ChunkLayout
from heapscope.core.types.heap import (
    Chunk,
    ChunkHeader,
    ChunkState,
    HeapBounds,
    WalkResult,
)

logger = logging.getLogger(__name__)


class ChunkWalker:
    """Decodes every chunk between the heap bounds, in address order.

    A chunk's own in-use bit lives in the *next* chunk's size field, so each
    step reads two headers: the current one for its size and the following
    one for the current chunk's state.  The chunk whose successor is the heap
    end is the top chunk.
    """

    def __init__(
        self,
        reader: MemoryReader,
        layout: Optional[ChunkLayout] = None,
        event_callback: Optional[ScanEventCallback] = None,
    ) -> None:
        self.reader = reader
        self.layout = layout or ChunkLayout()
        self._event_callback = event_callback

    def walk(self, bounds: HeapBounds) -> WalkResult:
        """Walk ``[bounds.start, bounds.end)``.

        Read failures and corruption stop the walk early; the chunks decoded
        so far are kept and the stopping error is recorded on the result.
        """
        chunks: List[Chunk] = []
        error: Optional[HeapScopeError] = None
        last_progress = -1

        current = bounds.start
        try:
            header = self.layout.read_header(self.reader, current, bounds.end)
        except MemoryReadFailure as exc:
            logger.warning("Heap walk aborted at %#x: %s", current, exc)
            return WalkResult(bounds=bounds, error=exc)

        while True:
            next_address = current + header.chunk_size

            if next_address == bounds.end:
                chunks.append(self._chunk(current, header, ChunkState.TOP))
                break

            if next_address == current:
                error = CorruptHeap(
                    current, next_address, f"Self-referencing chunk at {current:#x}"
                )
                break

            if next_address not in bounds:
                error = CorruptHeap(
                    current,
                    next_address,
                    f"Chunk at {current:#x} points past the heap to {next_address:#x}",
                )
                break

            try:
                next_header = self.layout.read_header(
                    self.reader, next_address, bounds.end
                )
            except MemoryReadFailure as exc:
                error = exc
                break

            state = ChunkState.BUSY if next_header.prev_inuse else ChunkState.FREE
            chunks.append(self._chunk(current, header, state))

            current, header = next_address, next_header

            progress = (current - bounds.start) * 100 // bounds.size
            if progress != last_progress:
                last_progress = progress
                self._emit(ScanEvent(ScanEventType.WALK_PROGRESS, progress=progress))

        if error is not None:
            logger.warning("Heap walk stopped early: %s", error)
        logger.debug("Collected %d chunks", len(chunks))

        result = WalkResult(bounds=bounds, chunks=chunks, error=error)
        self._emit(ScanEvent(
            ScanEventType.WALK_END,
            progress=100,
            metadata={"chunks": len(chunks), "complete": result.complete},
        ))
        return result

    def _chunk(self, address: int, header: ChunkHeader, state: ChunkState) -> Chunk:
        return Chunk(
            address=address,
            size=header.chunk_size,
            state=state,
            header=header,
            pointer_size=self.layout.pointer_size,
        )

    def _emit(self, event: ScanEvent) -> None:
        if self._event_callback is not None:
            self._event_callback(event)
