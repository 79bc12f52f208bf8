"""Protocols for the process-side collaborators a heap scan consumes.

A real debugger backend (see :mod:`heapscope.core.source`) implements all of
them at once as a :class:`HeapTarget`; tests supply an in-memory image.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Tuple, runtime_checkable

from heapscope.bridge.types import MemoryRegion


@runtime_checkable
class MemoryReader(Protocol):
    """Byte-addressable, read-only view of the inferior."""

    def read_bytes(self, address: int, length: int) -> bytes:
        """Return exactly *length* bytes or raise ``MemoryReadFailure``."""
        ...


@runtime_checkable
class ModuleLister(Protocol):
    def loaded_modules(self) -> List[str]:
        """File names of every loaded module (``libc.so.6``, ...)."""
        ...


@runtime_checkable
class SymbolResolver(Protocol):
    def find_symbol(self, qualified_name: str) -> Optional[int]:
        """Resolve ``module::symbol`` to its load address, or ``None``."""
        ...


@runtime_checkable
class RegionLister(Protocol):
    def regions(self) -> List[MemoryRegion]:
        ...


@runtime_checkable
class PageSizeProvider(Protocol):
    def page_size(self) -> int:
        ...


@runtime_checkable
class StringDecoder(Protocol):
    """Detects printable strings stored in the inferior."""

    def ascii_string_at(
        self, address: int, min_length: int, max_length: int
    ) -> Optional[Tuple[str, int]]:
        ...

    def utf16_string_at(
        self, address: int, min_length: int, max_length: int
    ) -> Optional[Tuple[str, int]]:
        ...


@runtime_checkable
class HeapTarget(
    MemoryReader,
    ModuleLister,
    SymbolResolver,
    RegionLister,
    PageSizeProvider,
    StringDecoder,
    Protocol,
):
    """Everything a full scan needs from the debugged process."""

    @property
    def pointer_size(self) -> int:
        ...

    @property
    def byte_order(self) -> str:
        ...
