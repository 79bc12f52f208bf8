"""Scan event system for observable heap analysis."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Optional


class ScanEventType(Enum):
    """Types of events emitted while a heap scan runs."""

    BOUNDS_FOUND = "bounds_found"
    WALK_PROGRESS = "walk_progress"
    WALK_END = "walk_end"
    POINTERS_END = "pointers_end"
    GRAPH_BUILT = "graph_built"


class ScanEvent:
    """Lightweight event emitted between and during scan stages."""

    __slots__ = ("event_type", "progress", "message", "metadata")

    def __init__(
        self,
        event_type: ScanEventType,
        progress: Optional[int] = None,
        message: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.event_type = event_type
        self.progress = progress
        self.message = message
        self.metadata = metadata or {}


ScanEventCallback = Callable[[ScanEvent], None]
