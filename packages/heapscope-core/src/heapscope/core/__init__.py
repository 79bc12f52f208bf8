"""heapscope: malloc heap walker and pointer graph for LLDB-attached processes."""

from __future__ import annotations

from heapscope.core.errors import (
    BoundsNotFound,
    CorruptHeap,
    GraphTooLarge,
    HeapScopeError,
    MemoryReadFailure,
)
from heapscope.core.heapscope import HeapScope
from heapscope.core.session import HeapSession
from heapscope.core.source import LLDBHeapTarget
from heapscope.core.types.config import HeapScopeConfig, load_config
from heapscope.core.types.heap import (
    Chunk,
    ChunkState,
    HeapBounds,
    PointerEdge,
    ReachabilityGraph,
    ScanResult,
)

__all__ = [
    "HeapScope",
    "HeapSession",
    "LLDBHeapTarget",
    "HeapScopeConfig",
    "load_config",
    "HeapBounds",
    "Chunk",
    "ChunkState",
    "PointerEdge",
    "ScanResult",
    "ReachabilityGraph",
    "HeapScopeError",
    "MemoryReadFailure",
    "BoundsNotFound",
    "CorruptHeap",
    "GraphTooLarge",
]
