"""Core type definitions for heapscope."""

from __future__ import annotations

from heapscope.core.types.config import (
    GraphConfig,
    HeapScopeConfig,
    ScanConfig,
    load_config,
)
from heapscope.core.types.heap import (
    IS_MMAPPED,
    NON_MAIN_ARENA,
    PREV_INUSE,
    SIZE_BITS,
    Chunk,
    ChunkHeader,
    ChunkState,
    GraphNode,
    HeapBounds,
    PointerEdge,
    ReachabilityGraph,
    ScanResult,
    WalkResult,
)

__all__ = [
    # Config
    "HeapScopeConfig",
    "ScanConfig",
    "GraphConfig",
    "load_config",
    # Heap model
    "PREV_INUSE",
    "IS_MMAPPED",
    "NON_MAIN_ARENA",
    "SIZE_BITS",
    "ChunkState",
    "HeapBounds",
    "ChunkHeader",
    "Chunk",
    "PointerEdge",
    "WalkResult",
    "ScanResult",
    "GraphNode",
    "ReachabilityGraph",
]
