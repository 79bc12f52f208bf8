"""Error taxonomy for heap scans."""

from __future__ import annotations

from typing import Optional


class HeapScopeError(Exception):
    """Base class for every error raised by the heap analysis core."""


class MemoryReadFailure(HeapScopeError):
    """A read from the inferior's address space failed."""

    def __init__(self, address: int, length: int, reason: Optional[str] = None):
        self.address = address
        self.length = length
        self.reason = reason
        message = f"Failed to read {length} bytes at {address:#x}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class BoundsNotFound(HeapScopeError):
    """None of the bounds discovery strategies produced a usable range."""


class CorruptHeap(HeapScopeError):
    """The chunk walk reached an address that cannot be a valid chunk."""

    def __init__(self, address: int, next_address: int, message: str):
        self.address = address
        self.next_address = next_address
        super().__init__(message)


class GraphTooLarge(HeapScopeError):
    """The reachable set is too large to hand to a renderer."""

    def __init__(self, node_count: int, limit: int):
        self.node_count = node_count
        self.limit = limit
        super().__init__(
            f"Too many nodes reachable from the selection: {node_count} > {limit}"
        )
