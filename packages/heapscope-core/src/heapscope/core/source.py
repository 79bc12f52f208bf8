"""LLDBHeapTarget: exposes a bridge target/process through the scan protocols."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from heapscope.bridge.memory import get_memory_regions
from heapscope.bridge.types import MemoryRegion
from heapscope.core.errors import MemoryReadFailure
from heapscope.core.heap import strings

if TYPE_CHECKING:
    from heapscope.bridge.process import Process
    from heapscope.bridge.target import Target

logger = logging.getLogger(__name__)


class LLDBHeapTarget:
    """Adapter implementing :class:`~heapscope.core.heap.interfaces.HeapTarget`.

    Bridge calls raise ``RuntimeError`` on LLDB failures; reads are
    translated into :class:`MemoryReadFailure` so the scan stages can treat
    them as partial results.
    """

    def __init__(self, target: Target, process: Process) -> None:
        self.target = target
        self.process = process

    @property
    def pointer_size(self) -> int:
        return self.target.address_byte_size

    @property
    def byte_order(self) -> str:
        order = self.target.byte_order
        return order if order in ("little", "big") else "little"

    def read_bytes(self, address: int, length: int) -> bytes:
        try:
            data = self.process.read_memory(address, length)
        except RuntimeError as exc:
            raise MemoryReadFailure(address, length, str(exc)) from exc
        if len(data) != length:
            raise MemoryReadFailure(
                address, length, f"short read of {len(data)} bytes"
            )
        return data

    def loaded_modules(self) -> List[str]:
        return [module.name for module in self.target.modules]

    def find_symbol(self, qualified_name: str) -> Optional[int]:
        module, sep, name = qualified_name.rpartition("::")
        matches = self.target.find_symbols(name, module=module if sep else None)
        if not matches:
            return None
        if len(matches) > 1:
            logger.debug(
                "%d matches for %s, using %#x",
                len(matches), qualified_name, matches[0].address,
            )
        return matches[0].address

    def regions(self) -> List[MemoryRegion]:
        return get_memory_regions(self.process)

    def page_size(self) -> int:
        return self.process.page_size

    def ascii_string_at(
        self, address: int, min_length: int, max_length: int
    ) -> Optional[Tuple[str, int]]:
        return strings.ascii_string_at(self, address, min_length, max_length)

    def utf16_string_at(
        self, address: int, min_length: int, max_length: int
    ) -> Optional[Tuple[str, int]]:
        return strings.utf16_string_at(
            self, address, min_length, max_length, self.byte_order
        )
