"""heapscope.bridge -- Pythonic wrapper around LLDB's SB API.

This package provides the small slice of LLDB that heap analysis needs:
attaching to a process (or opening a core file), listing modules, looking up
symbols, enumerating memory regions and reading memory.  LLDB must be
available as a Python module; if it is not, a clear ``RuntimeError`` is
raised when attempting to create a :class:`Debugger`.

Example::

    from heapscope.bridge import Debugger

    with Debugger() as dbg:
        target, process = dbg.attach(1234)
        data = process.read_memory(0x555555559000, 16)
"""

from __future__ import annotations

from .debugger import Debugger
from .memory import get_memory_regions
from .process import Process
from .target import Target
from .types import (
    CommandResult,
    MemoryRegion,
    ModuleInfo,
    ProcessState,
    SymbolInfo,
)

__all__ = [
    # Core classes
    "Debugger",
    "Target",
    "Process",
    # Types
    "ProcessState",
    "MemoryRegion",
    "ModuleInfo",
    "SymbolInfo",
    "CommandResult",
    # Memory utilities
    "get_memory_regions",
]
