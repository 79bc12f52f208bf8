"""Rich rendering of scan results for the terminal."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.table import Table
from rich.text import Text

from heapscope.core.events import ScanEvent, ScanEventType
from heapscope.core.heap.layout import format_pointer
from heapscope.core.types.heap import ChunkState, ScanResult

_STATE_STYLES = {
    ChunkState.BUSY: "green",
    ChunkState.FREE: "red",
    ChunkState.TOP: "dim",
}


def chunk_table(result: ScanResult) -> Table:
    """Build a table with one row per chunk: address, size, state, data."""
    table = Table(title=(
        f"Heap {result.bounds.start:#x}-{result.bounds.end:#x}"
        + ("" if result.complete else " (partial)")
    ))
    table.add_column("Block", style="cyan", no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("Type")
    table.add_column("Data", overflow="fold")

    for chunk in result.chunks:
        table.add_row(
            format_pointer(chunk.address, chunk.pointer_size),
            str(chunk.size),
            Text(chunk.state.value, style=_STATE_STYLES[chunk.state]),
            Text(chunk.data),
        )
    return table


def summary_text(result: ScanResult) -> Text:
    text = Text()
    for state, (count, size) in sorted(result.summary().items()):
        text.append(f"{state}: ", style="bold")
        text.append(f"{count} chunks, {size} bytes   ")
    text.append(f"edges: {len(result.edges)}", style="bold")
    if result.error is not None:
        text.append(f"\nstopped early: {result.error}", style="yellow")
    return text


def hexdump(data: bytes, base: int = 0, width: int = 16) -> str:
    """Classic offset / hex / ASCII dump of *data* starting at *base*."""
    lines = []
    for offset in range(0, len(data), width):
        row = data[offset:offset + width]
        hex_part = " ".join(f"{b:02x}" for b in row)
        text_part = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in row)
        lines.append(f"{base + offset:016x}  {hex_part:<{width * 3 - 1}}  {text_part}")
    return "\n".join(lines)


class ProgressDisplay:
    """Shows walk progress on stderr; pass ``on_scan_event`` as callback."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console(stderr=True)
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def __enter__(self) -> ProgressDisplay:
        self._progress = Progress(
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            console=self._console,
            transient=True,
        )
        self._progress.start()
        self._task = self._progress.add_task("walking heap", total=100)
        return self

    def __exit__(self, *exc) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def on_scan_event(self, event: ScanEvent) -> None:
        if self._progress is None or self._task is None:
            return
        if event.event_type is ScanEventType.WALK_PROGRESS:
            self._progress.update(self._task, completed=event.progress or 0)
        elif event.event_type is ScanEventType.WALK_END:
            self._progress.update(
                self._task, completed=100, description="detecting pointers"
            )
        elif event.event_type is ScanEventType.POINTERS_END:
            self._progress.update(self._task, description="done")
