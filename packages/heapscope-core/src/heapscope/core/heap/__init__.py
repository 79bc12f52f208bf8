"""Scan stages: bounds, walk, classification, pointers and graphs."""

from __future__ import annotations

from heapscope.core.heap.bounds import HeapBoundsLocator, library_names
from heapscope.core.heap.classify import SIGNATURES, ChunkClassifier, match_signature
from heapscope.core.heap.graph import GraphBuilder
from heapscope.core.heap.interfaces import HeapTarget, MemoryReader, StringDecoder
from heapscope.core.heap.layout import ChunkLayout, format_pointer
from heapscope.core.heap.pointers import PointerDetector, PointerIndex, scan_chunk
from heapscope.core.heap.walker import ChunkWalker

__all__ = [
    "HeapBoundsLocator",
    "library_names",
    "ChunkWalker",
    "ChunkClassifier",
    "SIGNATURES",
    "match_signature",
    "PointerDetector",
    "PointerIndex",
    "scan_chunk",
    "GraphBuilder",
    "ChunkLayout",
    "format_pointer",
    "HeapTarget",
    "MemoryReader",
    "StringDecoder",
]
