"""HeapSession: owns one scan's state and runs the scan stages."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from heapscope.core.events import ScanEvent, ScanEventCallback, ScanEventType
from heapscope.core.heap.bounds import HeapBoundsLocator
from heapscope.core.heap.classify import ChunkClassifier
from heapscope.core.heap.graph import GraphBuilder
from heapscope.core.heap.interfaces import HeapTarget
from heapscope.core.heap.layout import ChunkLayout
from heapscope.core.heap.pointers import PointerDetector
from heapscope.core.heap.walker import ChunkWalker
from heapscope.core.types.config import HeapScopeConfig
from heapscope.core.types.heap import (
    Chunk,
    HeapBounds,
    PointerEdge,
    ReachabilityGraph,
    ScanResult,
    WalkResult,
)

logger = logging.getLogger(__name__)


class HeapSession:
    """Binds a :class:`HeapTarget` to the scan stages.

    The stages can be driven one by one (``locate_bounds`` → ``walk`` →
    ``classify`` → ``detect_pointers`` → ``build_graph``) or all at once with
    :meth:`scan`, which keeps the outcome in :attr:`result` until the next
    scan replaces it.
    """

    def __init__(
        self,
        heap_target: HeapTarget,
        config: Optional[HeapScopeConfig] = None,
        event_callback: Optional[ScanEventCallback] = None,
    ):
        self.heap_target = heap_target
        self.config = config or HeapScopeConfig()
        self._event_callback = event_callback
        self.layout = ChunkLayout(heap_target.pointer_size, heap_target.byte_order)
        self.result: Optional[ScanResult] = None

    # -- stages ------------------------------------------------------------

    def locate_bounds(self) -> HeapBounds:
        """Find the heap range; raises ``BoundsNotFound`` on failure."""
        target = self.heap_target
        locator = HeapBoundsLocator(
            reader=target,
            modules=target,
            symbols=target,
            page_size=target,
            regions=target,
            layout=self.layout,
            config=self.config.scan,
        )
        bounds = locator.locate()
        self._emit(ScanEvent(
            ScanEventType.BOUNDS_FOUND,
            message=f"{bounds.start:#x}-{bounds.end:#x}",
            metadata={"start": bounds.start, "end": bounds.end},
        ))
        return bounds

    def walk(self, bounds: HeapBounds) -> WalkResult:
        walker = ChunkWalker(self.heap_target, self.layout, self._event_callback)
        return walker.walk(bounds)

    def classify(self, chunks: Iterable[Chunk]) -> List[Chunk]:
        classifier = ChunkClassifier(
            self.heap_target, self.heap_target, self.config.scan
        )
        return classifier.classify(chunks)

    def detect_pointers(
        self, chunks: Sequence[Chunk]
    ) -> Tuple[List[Chunk], List[PointerEdge]]:
        detector = PointerDetector(
            self.heap_target,
            self.layout,
            max_workers=self.config.scan.max_workers,
            event_callback=self._event_callback,
        )
        return detector.detect(chunks)

    def build_graph(
        self, chunks: Iterable[Chunk], seed_addresses: Iterable[int]
    ) -> ReachabilityGraph:
        """Raises ``GraphTooLarge`` when the selection reaches too many chunks."""
        builder = GraphBuilder(self.config.graph, self._event_callback)
        return builder.build(chunks, seed_addresses)

    # -- whole scan --------------------------------------------------------

    def scan(self) -> ScanResult:
        """Run bounds discovery, the walk, classification and pointer detection.

        ``BoundsNotFound`` propagates with no result stored.  A walk stopped
        by a read failure or corruption still yields a result over the chunks
        collected, with :attr:`ScanResult.error` set.
        """
        self.result = None

        bounds = self.locate_bounds()
        walked = self.walk(bounds)
        chunks = self.classify(walked.chunks)
        chunks, edges = self.detect_pointers(chunks)

        self.result = ScanResult(
            bounds=bounds, chunks=chunks, edges=edges, error=walked.error
        )
        logger.info(
            "Scanned %d chunks, %d pointer edges%s",
            len(chunks),
            len(edges),
            "" if self.result.complete else " (partial)",
        )
        return self.result

    def graph(self, seed_addresses: Iterable[int]) -> ReachabilityGraph:
        """Build a graph over the chunks of the last scan."""
        return self.build_graph(self._require_result().chunks, seed_addresses)

    def dump_chunk(self, address: int) -> bytes:
        """Return the raw bytes of the chunk at *address* from the last scan."""
        chunk = self._require_result().chunk_at(address)
        if chunk is None:
            raise KeyError(f"No chunk starts at {address:#x}")
        return self.heap_target.read_bytes(chunk.address, chunk.size)

    def _require_result(self) -> ScanResult:
        if self.result is None:
            raise RuntimeError("No scan result. Call scan() first.")
        return self.result

    def _emit(self, event: ScanEvent) -> None:
        if self._event_callback is not None:
            self._event_callback(event)
