"""Memory utility functions for inspecting process memory.

All functions accept a :class:`~heapscope.bridge.process.Process` instance
as their first argument.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

try:
    import lldb
except ImportError:
    lldb = None  # type: ignore[assignment]

from .types import MemoryRegion

if TYPE_CHECKING:
    from .process import Process


# ---------------------------------------------------------------------------
# Memory regions
# ---------------------------------------------------------------------------

def get_memory_regions(process: Process) -> List[MemoryRegion]:
    """Enumerate all memory regions mapped in the process.

    Region names come from the OS mapping table, so the program break
    segment appears as ``[heap]`` on Linux.
    """
    regions: List[MemoryRegion] = []
    region_list = process._sb.GetMemoryRegions()
    region_info = lldb.SBMemoryRegionInfo()
    for i in range(region_list.GetSize()):
        region_list.GetMemoryRegionAtIndex(i, region_info)
        regions.append(
            MemoryRegion(
                start=region_info.GetRegionBase(),
                end=region_info.GetRegionEnd(),
                readable=region_info.IsReadable(),
                writable=region_info.IsWritable(),
                executable=region_info.IsExecutable(),
                name=region_info.GetName() or None,
            )
        )
    return regions
