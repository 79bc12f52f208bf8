"""Discovery of the main heap's address range.

Three strategies are tried in order, the first to produce a bound wins:

1. the ``__curbrk`` variables of the C runtime (end) and the dynamic
   loader (start),
2. a scan near the runtime's ``__curbrk`` for the loader's copy, recognised
   by the page size stored four words before it,
3. the ``[heap]`` entry of the process's memory map.
"""

from __future__ import annotations

import logging
import posixpath
from typing import List, Optional, Tuple

from heapscope.core.errors import BoundsNotFound, MemoryReadFailure
from heapscope.core.heap.interfaces import (
    MemoryReader,
    ModuleLister,
    PageSizeProvider,
    RegionLister,
    SymbolResolver,
)
from heapscope.core.heap.layout import ChunkLayout
from heapscope.core.types.config import ScanConfig
from heapscope.core.types.heap import HeapBounds

logger = logging.getLogger(__name__)

_RUNTIME_PREFIXES = ("libc-", "libc.so")
_LOADER_PREFIXES = ("ld-",)


def library_names(modules: List[str]) -> Tuple[Optional[str], Optional[str]]:
    """Pick the C runtime and dynamic loader out of *modules*.

    Returns ``(runtime, loader)`` file names; either may be ``None``.
    """
    runtime: Optional[str] = None
    loader: Optional[str] = None
    for module in modules:
        if runtime is not None and loader is not None:
            break
        name = posixpath.basename(module)
        if runtime is None and name.startswith(_RUNTIME_PREFIXES):
            runtime = name
            logger.debug("libc library appears to be: %s", name)
        elif loader is None and name.startswith(_LOADER_PREFIXES):
            loader = name
            logger.debug("ld library appears to be: %s", name)
    return runtime, loader


class HeapBoundsLocator:
    """Finds the ``[start, end)`` range of the brk heap in a process."""

    def __init__(
        self,
        reader: MemoryReader,
        modules: ModuleLister,
        symbols: SymbolResolver,
        page_size: PageSizeProvider,
        regions: RegionLister,
        layout: Optional[ChunkLayout] = None,
        config: Optional[ScanConfig] = None,
    ) -> None:
        self.reader = reader
        self.modules = modules
        self.symbols = symbols
        self.page_size = page_size
        self.regions = regions
        self.layout = layout or ChunkLayout()
        self.config = config or ScanConfig()

    def locate(self) -> HeapBounds:
        """Return the heap bounds or raise :class:`BoundsNotFound`."""
        start, end = self._from_symbols()

        if start is None or end is None:
            region_start, region_end = self._from_regions()
            if start is None:
                start = region_start
            if end is None:
                end = region_end

        if not start or not end:
            raise BoundsNotFound("Failed to calculate the bounds of the heap.")
        if start >= end:
            raise BoundsNotFound(
                f"Heap bounds are inverted: start {start:#x}, end {end:#x}"
            )

        logger.info("heap start : %#x", start)
        logger.info("heap end   : %#x", end)
        return HeapBounds(start=start, end=end)

    # -- strategies --------------------------------------------------------

    def _from_symbols(self) -> Tuple[Optional[int], Optional[int]]:
        runtime, loader = library_names(self.modules.loaded_modules())
        symbol = self.config.break_symbol

        end_symbol = None
        if runtime is not None:
            end_symbol = self.symbols.find_symbol(f"{runtime}::{symbol}")
        if end_symbol is None:
            logger.debug("%s symbol not found in libc", symbol)

        start_symbol = None
        if loader is not None:
            start_symbol = self.symbols.find_symbol(f"{loader}::{symbol}")

        start = end = None
        if start_symbol is not None:
            logger.debug("heap start symbol : %#x", start_symbol)
            start = self._deref(start_symbol)
        elif end_symbol is not None:
            logger.debug(
                "%s symbol not found in ld, falling back on heuristic! "
                "This may or may not work.",
                symbol,
            )
            start = self._start_heuristic(end_symbol)
        if end_symbol is not None:
            logger.debug("heap end symbol   : %#x", end_symbol)
            end = self._deref(end_symbol)
        return start, end

    def _start_heuristic(self, end_symbol: int) -> Optional[int]:
        """Scan below the runtime's break variable for the loader's one.

        A candidate matches when the word four pointers below it holds the
        system page size.  Returns the dereferenced value of the first match
        that can be read and is non-zero; matches that cannot are skipped and
        the scan continues.
        """
        word = self.layout.pointer_size
        page_size = self.page_size.page_size()
        for offset in range(0, self.config.heap_start_window, word):
            candidate = end_symbol - offset
            probe = candidate - 4 * word
            try:
                value = self.layout.read_word(self.reader, probe)
            except MemoryReadFailure:
                continue
            if value != page_size:
                continue
            logger.debug("heuristic matched at offset %#x", offset)
            start = self._deref(candidate)
            if start is not None:
                return start
        return None

    def _from_regions(self) -> Tuple[Optional[int], Optional[int]]:
        name = self.config.heap_region_name
        for region in self.regions.regions():
            if region.name == name:
                logger.debug(
                    "Found a memory region named '%s', assuming that it "
                    "provides sane bounds",
                    name,
                )
                return region.start, region.end
        return None, None

    def _deref(self, address: int) -> Optional[int]:
        try:
            value = self.layout.read_word(self.reader, address)
        except MemoryReadFailure:
            logger.debug("Could not read break pointer at %#x", address)
            return None
        return value or None
