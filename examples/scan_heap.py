"""Attach to a running process, walk its malloc heap and print every chunk.

The process is stopped for the duration of the scan so that the chunk
list stays consistent, then detached.

    python examples/scan_heap.py 12345
    python examples/scan_heap.py nginx
"""

import sys

from rich.console import Console

from heapscope.core import ChunkState, HeapScope
from heapscope.core.display import chunk_table, summary_text


def main():
    if len(sys.argv) < 2:
        print("Usage: python scan_heap.py <pid_or_name>")
        sys.exit(1)

    target = sys.argv[1]
    console = Console()

    with HeapScope() as scope:
        if target.isdigit():
            scope.attach(int(target))
        else:
            scope.attach_by_name(target)

        result = scope.scan()

    console.print(chunk_table(result))
    console.print(summary_text(result))

    # The largest busy chunks are usually the interesting ones.
    busy = sorted(
        (c for c in result.chunks if c.state is ChunkState.BUSY),
        key=lambda c: c.size,
        reverse=True,
    )
    console.print("\nLargest allocations:")
    for chunk in busy[:5]:
        console.print(f"  {chunk.address:#x}  {chunk.size:>8}  {chunk.data}", markup=False)


if __name__ == "__main__":
    main()
