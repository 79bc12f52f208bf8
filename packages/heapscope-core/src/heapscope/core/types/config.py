from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class ScanConfig(BaseModel):
    """Chunk walk, classification and pointer detection settings."""

    min_string_length: int = Field(default=4, ge=1)
    max_workers: Optional[int] = Field(default=None, ge=1)
    heap_start_window: int = Field(default=0x1000, gt=0)
    break_symbol: str = "__curbrk"
    heap_region_name: str = "[heap]"


class GraphConfig(BaseModel):
    """Reachability graph settings."""

    max_nodes: int = Field(default=3000, ge=1)
    busy_color: str = "green"
    free_color: str = "red"
    top_color: str = "gray"


class HeapScopeConfig(BaseModel):
    """Top-level heapscope configuration."""

    scan: ScanConfig = ScanConfig()
    graph: GraphConfig = GraphConfig()
    verbose: bool = False


def load_config(path: Optional[str] = None) -> HeapScopeConfig:
    """Load configuration from a heapscope.toml file, falling back to defaults.

    Uses ``tomllib`` on Python 3.11+ and ``tomli`` on older versions.
    """

    if sys.version_info >= (3, 11):
        import tomllib
    else:
        try:
            import tomli as tomllib  # type: ignore[no-redef]
        except ImportError:
            # If tomli is not installed and we are on an older Python, just
            # return defaults when no explicit path is given.
            if path is None:
                return HeapScopeConfig()
            raise

    config_path = Path(path) if path else Path("heapscope.toml")

    if not config_path.exists():
        return HeapScopeConfig()

    with open(config_path, "rb") as f:
        raw = tomllib.load(f)

    return HeapScopeConfig(**raw)
