"""Bounded reachability graphs over detected chunk pointers."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from heapscope.core.errors import GraphTooLarge
from heapscope.core.events import ScanEvent, ScanEventCallback, ScanEventType
from heapscope.core.heap.layout import format_pointer
from heapscope.core.types.config import GraphConfig
from heapscope.core.types.heap import Chunk, ChunkState, GraphNode, ReachabilityGraph

logger = logging.getLogger(__name__)


class GraphBuilder:
    """Collects every chunk reachable from a seed selection.

    Traversal is depth-first over ``Chunk.edges``.  The whole reachable set
    is computed before the size check, so :class:`GraphTooLarge` reports the
    exact count.
    """

    def __init__(
        self,
        config: Optional[GraphConfig] = None,
        event_callback: Optional[ScanEventCallback] = None,
    ) -> None:
        self.config = config or GraphConfig()
        self._event_callback = event_callback

    def build(self, chunks: Iterable[Chunk], seeds: Iterable[int]) -> ReachabilityGraph:
        """Return the graph reachable from the chunks at *seeds*.

        Raises
        ------
        KeyError
            If a seed address is not the address of a chunk.
        GraphTooLarge
            If more than ``config.max_nodes`` chunks are reachable.
        """
        by_address: Dict[int, Chunk] = {chunk.address: chunk for chunk in chunks}

        stack: List[Chunk] = []
        seen: Set[int] = set()
        for seed in seeds:
            if seed not in by_address:
                raise KeyError(f"No chunk starts at {seed:#x}")
            if seed not in seen:
                seen.add(seed)
                stack.append(by_address[seed])

        visited: List[Chunk] = []
        while stack:
            chunk = stack.pop()
            visited.append(chunk)
            for target in sorted(chunk.edges):
                if target in by_address and target not in seen:
                    seen.add(target)
                    stack.append(by_address[target])

        logger.debug("Done processing %d nodes", len(visited))
        if len(visited) > self.config.max_nodes:
            logger.warning("Too many nodes! (%d)", len(visited))
            raise GraphTooLarge(len(visited), self.config.max_nodes)

        nodes = [self._node(chunk) for chunk in visited]
        edges: List[Tuple[int, int]] = [
            (chunk.address, target)
            for chunk in visited
            for target in sorted(chunk.edges)
            if target in seen
        ]
        logger.debug("Done processing %d edges", len(edges))

        if self._event_callback is not None:
            self._event_callback(ScanEvent(
                ScanEventType.GRAPH_BUILT,
                metadata={"nodes": len(nodes), "edges": len(edges)},
            ))
        return ReachabilityGraph(nodes=nodes, edges=edges)

    def _node(self, chunk: Chunk) -> GraphNode:
        colors = {
            ChunkState.BUSY: self.config.busy_color,
            ChunkState.FREE: self.config.free_color,
            ChunkState.TOP: self.config.top_color,
        }
        return GraphNode(
            address=chunk.address,
            state=chunk.state,
            label=format_pointer(chunk.address, chunk.pointer_size),
            color=colors[chunk.state],
        )
