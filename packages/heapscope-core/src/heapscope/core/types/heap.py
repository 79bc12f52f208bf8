from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from heapscope.core.errors import HeapScopeError

# Low bits of a chunk's size field.
PREV_INUSE = 0x1
IS_MMAPPED = 0x2
NON_MAIN_ARENA = 0x4
SIZE_BITS = PREV_INUSE | IS_MMAPPED | NON_MAIN_ARENA


class ChunkState(str, Enum):
    """Allocation state of a chunk."""

    TOP = "Top"
    BUSY = "Busy"
    FREE = "Free"


class HeapBounds(BaseModel):
    """The ``[start, end)`` address range of the main heap."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    @model_validator(mode="after")
    def _start_before_end(self) -> "HeapBounds":
        if not self.start < self.end:
            raise ValueError(
                f"heap start {self.start:#x} must be below end {self.end:#x}"
            )
        return self

    @property
    def size(self) -> int:
        return self.end - self.start

    def __contains__(self, address: int) -> bool:
        return self.start <= address < self.end


class ChunkHeader(BaseModel):
    """The four header words of a malloc chunk, as read from memory.

    ``fd``/``bk`` only carry meaning while the chunk is free.
    """

    model_config = ConfigDict(frozen=True)

    prev_size: int
    size: int
    fd: int = 0
    bk: int = 0

    @property
    def chunk_size(self) -> int:
        return self.size & ~SIZE_BITS

    @property
    def prev_inuse(self) -> bool:
        return bool(self.size & PREV_INUSE)

    @property
    def is_mmapped(self) -> bool:
        return bool(self.size & IS_MMAPPED)

    @property
    def non_main_arena(self) -> bool:
        return bool(self.size & NON_MAIN_ARENA)


class Chunk(BaseModel):
    """One chunk of the heap together with what the scan learned about it."""

    model_config = ConfigDict(frozen=True)

    address: int
    size: int
    state: ChunkState
    header: ChunkHeader
    pointer_size: int = 8
    tag: Optional[str] = None
    annotation: str = ""
    edges: FrozenSet[int] = frozenset()

    @property
    def end(self) -> int:
        return self.address + self.size

    @property
    def payload_start(self) -> int:
        """First byte after the ``prev_size`` and ``size`` header words."""
        return self.address + 2 * self.pointer_size

    @property
    def payload_size(self) -> int:
        return max(0, self.size - 2 * self.pointer_size)

    @property
    def data(self) -> str:
        """Display text: the content tag, else the pointer annotation."""
        return self.tag or self.annotation


class PointerEdge(BaseModel):
    """A payload word of *source* that points into chunk *target*."""

    model_config = ConfigDict(frozen=True)

    source: int
    target: int
    offset: int
    value: int


class WalkResult(BaseModel):
    """Chunks produced by one walk and why the walk stopped."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    bounds: HeapBounds
    chunks: List[Chunk] = []
    error: Optional[HeapScopeError] = None

    @property
    def complete(self) -> bool:
        """True when the walk reached the top chunk without an error."""
        return self.error is None and bool(self.chunks) and (
            self.chunks[-1].state is ChunkState.TOP
        )


class ScanResult(BaseModel):
    """Everything one scan produced; the unit handed between stages."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    bounds: HeapBounds
    chunks: List[Chunk] = []
    edges: List[PointerEdge] = []
    error: Optional[HeapScopeError] = None

    @property
    def complete(self) -> bool:
        return self.error is None

    def chunk_at(self, address: int) -> Optional[Chunk]:
        """Return the chunk that starts exactly at *address*, if any."""
        for chunk in self.chunks:
            if chunk.address == address:
                return chunk
        return None

    def summary(self) -> Dict[str, Tuple[int, int]]:
        """Map each state name to ``(chunk count, total bytes)``."""
        totals: Dict[str, Tuple[int, int]] = {}
        for chunk in self.chunks:
            count, size = totals.get(chunk.state.value, (0, 0))
            totals[chunk.state.value] = (count + 1, size + chunk.size)
        return totals


class GraphNode(BaseModel):
    """A chunk as it appears in a reachability graph."""

    model_config = ConfigDict(frozen=True)

    address: int
    state: ChunkState
    label: str
    color: str


class ReachabilityGraph(BaseModel):
    """Nodes and edges reachable from a seed selection."""

    nodes: List[GraphNode] = []
    edges: List[Tuple[int, int]] = []

    @property
    def addresses(self) -> FrozenSet[int]:
        return frozenset(node.address for node in self.nodes)

    def to_dot(self, name: str = "heap") -> str:
        """Render the graph as Graphviz DOT text."""
        lines = [f"digraph {name} {{"]
        for node in self.nodes:
            lines.append(
                f'    "{node.label}" [style=filled, fillcolor={node.color}];'
            )
        labels = {node.address: node.label for node in self.nodes}
        for source, target in self.edges:
            lines.append(f'    "{labels[source]}" -> "{labels[target]}";')
        lines.append("}")
        return "\n".join(lines) + "\n"
