"""Core test fixtures: sessions over the sample heap."""

from __future__ import annotations

import pytest

from heapscope.core.session import HeapSession
from heapscope.core.types.config import HeapScopeConfig, ScanConfig


@pytest.fixture()
def sample_session(sample_heap):
    """A HeapSession over ``sample_heap`` with a single pointer-scan worker."""
    target, _, _ = sample_heap
    config = HeapScopeConfig(scan=ScanConfig(max_workers=1))
    return HeapSession(target, config=config)


@pytest.fixture()
def events():
    """Collects ScanEvents; pass ``events.append`` as the callback."""
    return []
