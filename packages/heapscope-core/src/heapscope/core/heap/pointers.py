"""Detection of payload words that point into other chunks."""

from __future__ import annotations

import logging
from bisect import bisect_right
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from heapscope.core.errors import MemoryReadFailure
from heapscope.core.events import ScanEvent, ScanEventCallback, ScanEventType
from heapscope.core.heap.interfaces import MemoryReader
from heapscope.core.heap.layout import ChunkLayout, format_pointer
from heapscope.core.types.heap import Chunk, PointerEdge

logger = logging.getLogger(__name__)


class PointerIndex(Mapping):
    """Maps every payload word address of every chunk to the owning chunk.

    Behaves like a plain ``{word_address: chunk_address}`` dict but stores
    one range per chunk, so a large heap does not cost one entry per word.
    The index is immutable once built.
    """

    def __init__(self, chunks: Iterable[Chunk], pointer_size: int = 8) -> None:
        self.pointer_size = pointer_size
        ranges = sorted(
            (chunk.payload_start, self._payload_end(chunk), chunk.address)
            for chunk in chunks
        )
        self._starts: Tuple[int, ...] = tuple(r[0] for r in ranges)
        self._ends: Tuple[int, ...] = tuple(r[1] for r in ranges)
        self._owners: Tuple[int, ...] = tuple(r[2] for r in ranges)

    def _payload_end(self, chunk: Chunk) -> int:
        words = chunk.payload_size // self.pointer_size
        return chunk.payload_start + words * self.pointer_size

    def __getitem__(self, address: int) -> int:
        i = bisect_right(self._starts, address) - 1
        if i >= 0 and address < self._ends[i]:
            if (address - self._starts[i]) % self.pointer_size == 0:
                return self._owners[i]
        raise KeyError(address)

    def __iter__(self) -> Iterator[int]:
        for start, end in zip(self._starts, self._ends):
            yield from range(start, end, self.pointer_size)

    def __len__(self) -> int:
        return sum(
            (end - start) // self.pointer_size
            for start, end in zip(self._starts, self._ends)
        )

    def __contains__(self, address: object) -> bool:
        try:
            self[address]  # type: ignore[index]
        except KeyError:
            return False
        return True


def scan_chunk(
    chunk: Chunk,
    index: Mapping,
    reader: MemoryReader,
    layout: ChunkLayout,
) -> Tuple[str, List[PointerEdge]]:
    """Find the words of *chunk*'s payload that are keys of *index*.

    Returns the annotation text and the edges, in payload order.  Chunks
    that already carry a content tag are left alone.
    """
    if chunk.tag or chunk.payload_size < layout.pointer_size:
        return "", []

    try:
        data = reader.read_bytes(chunk.payload_start, chunk.payload_size)
    except MemoryReadFailure as exc:
        logger.debug("Skipping pointer scan of chunk %#x: %s", chunk.address, exc)
        return "", []

    kind = "qword" if layout.pointer_size == 8 else "dword"
    notes: List[str] = []
    edges: List[PointerEdge] = []
    for i, value in enumerate(layout.decode_words(data)):
        owner = index.get(value)
        if owner is None:
            continue
        offset = i * layout.pointer_size
        notes.append(
            f"{kind} ptr [{format_pointer(value, layout.pointer_size)}] @ +{offset:#x}"
        )
        edges.append(
            PointerEdge(source=chunk.address, target=owner, offset=offset, value=value)
        )
    return " | ".join(notes), edges


class PointerDetector:
    """Scans untagged chunks for pointers into the heap on a worker pool."""

    def __init__(
        self,
        reader: MemoryReader,
        layout: Optional[ChunkLayout] = None,
        max_workers: Optional[int] = None,
        event_callback: Optional[ScanEventCallback] = None,
    ) -> None:
        self.reader = reader
        self.layout = layout or ChunkLayout()
        self.max_workers = max_workers
        self._event_callback = event_callback

    def build_index(self, chunks: Iterable[Chunk]) -> PointerIndex:
        return PointerIndex(chunks, self.layout.pointer_size)

    def detect(
        self, chunks: Sequence[Chunk]
    ) -> Tuple[List[Chunk], List[PointerEdge]]:
        """Annotate *chunks* with the pointers they hold.

        Returns the updated chunks (same order) and every detected edge.
        Blocks until all workers are done.
        """
        chunks = tuple(chunks)
        logger.debug("detecting pointers in %d heap blocks", len(chunks))
        index = self.build_index(chunks)
        scan = partial(scan_chunk, index=index, reader=self.reader, layout=self.layout)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            results: Dict[int, Tuple[str, List[PointerEdge]]] = dict(
                zip((c.address for c in chunks), pool.map(scan, chunks))
            )

        updated: List[Chunk] = []
        all_edges: List[PointerEdge] = []
        for chunk in chunks:
            annotation, edges = results[chunk.address]
            if edges:
                chunk = chunk.model_copy(update={
                    "annotation": annotation,
                    "edges": frozenset(e.target for e in edges),
                })
                all_edges.extend(edges)
            updated.append(chunk)

        logger.debug("found %d pointer edges", len(all_edges))
        if self._event_callback is not None:
            self._event_callback(ScanEvent(
                ScanEventType.POINTERS_END,
                metadata={"edges": len(all_edges)},
            ))
        return updated, all_edges
