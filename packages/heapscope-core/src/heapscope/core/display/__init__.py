"""Terminal rendering helpers."""

from heapscope.core.display.table import (
    ProgressDisplay,
    chunk_table,
    hexdump,
    summary_text,
)

__all__ = ["ProgressDisplay", "chunk_table", "hexdump", "summary_text"]
