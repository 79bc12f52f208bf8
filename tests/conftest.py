"""Root conftest: an in-memory process image for driving the scan stages."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pytest

from heapscope.bridge.types import MemoryRegion
from heapscope.core.errors import MemoryReadFailure
from heapscope.core.heap import strings
from heapscope.core.types.heap import PREV_INUSE


# ---------------------------------------------------------------------------
# Heap image builder
# ---------------------------------------------------------------------------

class HeapImage:
    """Lays out malloc chunks back to back starting at *start*.

    Each chunk's in-use state is encoded, as malloc does, in the PREV_INUSE
    bit of the chunk that follows it.
    """

    def __init__(self, start: int, pointer_size: int = 8, byte_order: str = "little"):
        self.start = start
        self.pointer_size = pointer_size
        self.byte_order = byte_order
        self._chunks: List[Tuple[int, bytes, bool, int]] = []
        self._overrides: Dict[int, int] = {}

    @property
    def end(self) -> int:
        return self.start + sum(c[0] for c in self._chunks)

    def word(self, value: int) -> bytes:
        return value.to_bytes(self.pointer_size, self.byte_order)

    def chunk(self, size: int, payload: bytes = b"", in_use: bool = True, flags: int = 0) -> int:
        """Append a chunk and return its address."""
        assert len(payload) <= size - 2 * self.pointer_size
        address = self.end
        self._chunks.append((size, payload, in_use, flags))
        return address

    def fill(self, address: int, payload: bytes) -> None:
        """Replace the payload of the chunk that starts at *address*."""
        cursor = self.start
        for i, (size, _, in_use, flags) in enumerate(self._chunks):
            if cursor == address:
                self._chunks[i] = (size, payload, in_use, flags)
                return
            cursor += size
        raise KeyError(address)

    def top(self, size: int = 0x40) -> int:
        return self.chunk(size, in_use=True)

    def set_size_field(self, address: int, raw: int) -> None:
        """Overwrite the size word of the chunk at *address* verbatim."""
        self._overrides[address] = raw

    def payload(self, address: int) -> int:
        return address + 2 * self.pointer_size

    def build(self) -> bytes:
        data = bytearray()
        prev_in_use = True
        for size, payload, in_use, flags in self._chunks:
            address = self.start + len(data)
            raw = size | flags | (PREV_INUSE if prev_in_use else 0)
            raw = self._overrides.get(address, raw)
            body = payload.ljust(size - 2 * self.pointer_size, b"\x00")
            data += self.word(0) + self.word(raw) + body
            prev_in_use = in_use
        return bytes(data)


# ---------------------------------------------------------------------------
# Fake debugger-side collaborators
# ---------------------------------------------------------------------------

class FakeHeapTarget:
    """Implements the HeapTarget protocol over a handful of mapped segments."""

    def __init__(
        self,
        pointer_size: int = 8,
        byte_order: str = "little",
        page_size: int = 4096,
    ):
        self.pointer_size = pointer_size
        self.byte_order = byte_order
        self._page_size = page_size
        self._segments: List[Tuple[int, bytes]] = []
        self.modules: List[str] = []
        self.symbols: Dict[str, int] = {}
        self.memory_regions: List[MemoryRegion] = []
        self.reads = 0

    # -- setup -------------------------------------------------------------

    def map(self, base: int, data: bytes) -> None:
        self._segments.append((base, bytes(data)))

    def map_word(self, address: int, value: int) -> None:
        self.map(address, value.to_bytes(self.pointer_size, self.byte_order))

    def map_image(self, image: HeapImage, region: Optional[str] = None) -> None:
        self.map(image.start, image.build())
        if region is not None:
            self.memory_regions.append(
                MemoryRegion(image.start, image.end, True, True, False, region)
            )

    # -- protocol ----------------------------------------------------------

    def read_bytes(self, address: int, length: int) -> bytes:
        self.reads += 1
        # Later mappings shadow earlier ones.
        for base, data in reversed(self._segments):
            if base <= address and address + length <= base + len(data):
                offset = address - base
                return data[offset:offset + length]
        raise MemoryReadFailure(address, length, "unmapped")

    def loaded_modules(self) -> List[str]:
        return list(self.modules)

    def find_symbol(self, qualified_name: str) -> Optional[int]:
        return self.symbols.get(qualified_name)

    def regions(self) -> List[MemoryRegion]:
        return list(self.memory_regions)

    def page_size(self) -> int:
        return self._page_size

    def ascii_string_at(self, address, min_length, max_length):
        return strings.ascii_string_at(self, address, min_length, max_length)

    def utf16_string_at(self, address, min_length, max_length):
        return strings.utf16_string_at(
            self, address, min_length, max_length, self.byte_order
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def make_heap():
    """Factory: ``make_heap(start, pointer_size=8)`` returns a :class:`HeapImage`."""
    return HeapImage


@pytest.fixture()
def make_target():
    """Factory: ``make_target(pointer_size=8)`` returns a :class:`FakeHeapTarget`."""
    return FakeHeapTarget


@pytest.fixture(params=[8, 4], ids=["64bit", "32bit"])
def pointer_size(request):
    return request.param


@pytest.fixture()
def sample_heap(pointer_size):
    """A small heap with a string, a PNG, a free chunk, two linked nodes and top.

    Returns ``(target, image, addresses)`` where *addresses* maps a name to
    each chunk's address.
    """
    w = pointer_size
    image = HeapImage(0x10000, pointer_size=w)
    unit = 4 * w  # minimum chunk size

    addresses: Dict[str, int] = {}
    addresses["text"] = image.chunk(2 * unit, b"hello heap")
    addresses["png"] = image.chunk(2 * unit, b"\x89PNG\r\n\x1a\n")
    addresses["free"] = image.chunk(2 * unit, in_use=False)
    # node_a holds a pointer to node_b's payload, node_b back to node_a's.
    addresses["node_a"] = image.chunk(2 * unit)
    addresses["node_b"] = image.chunk(2 * unit)
    addresses["top"] = image.top(4 * unit)

    a_payload = image.payload(addresses["node_a"])
    b_payload = image.payload(addresses["node_b"])
    image.fill(addresses["node_a"], image.word(7) + image.word(b_payload))
    image.fill(addresses["node_b"], image.word(a_payload))

    target = FakeHeapTarget(pointer_size=w)
    target.map_image(image, region="[heap]")
    return target, image, addresses
