"""Bridge-level types for the LLDB wrapper.

Provides enums and dataclasses that map LLDB concepts to clean Python types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ProcessState(Enum):
    """Maps LLDB process states to a Python enum."""

    INVALID = auto()
    UNLOADED = auto()
    CONNECTED = auto()
    ATTACHING = auto()
    LAUNCHING = auto()
    STOPPED = auto()
    RUNNING = auto()
    STEPPING = auto()
    CRASHED = auto()
    DETACHED = auto()
    EXITED = auto()
    SUSPENDED = auto()


@dataclass(frozen=True)
class MemoryRegion:
    """Describes a contiguous region of process memory."""

    start: int
    end: int
    readable: bool
    writable: bool
    executable: bool
    name: Optional[str] = None


@dataclass(frozen=True)
class ModuleInfo:
    """Metadata about a loaded shared library or executable."""

    name: str
    path: str
    uuid: str
    base_address: int


@dataclass(frozen=True)
class SymbolInfo:
    """A symbol resolved to a load address inside one module."""

    name: str
    address: int
    module: str


@dataclass(frozen=True)
class CommandResult:
    """The result of executing an LLDB CLI command."""

    output: str
    error: str
    succeeded: bool
