"""Follow pointers out of one chunk and export the reachable set as DOT.

Render the output with Graphviz:

    python examples/graph_from_seed.py 12345 0x5555555592a0 > heap.dot
    dot -Tsvg heap.dot -o heap.svg
"""

import sys

from heapscope.core import GraphTooLarge, HeapScope


def main():
    if len(sys.argv) < 3:
        print("Usage: python graph_from_seed.py <pid> <chunk_address> [...]")
        sys.exit(1)

    pid = int(sys.argv[1])
    seeds = [int(arg, 16) for arg in sys.argv[2:]]

    with HeapScope() as scope:
        scope.attach(pid)
        result = scope.scan()
        if not result.complete:
            print(f"warning: partial heap ({result.error})", file=sys.stderr)

        try:
            graph = scope.graph(seeds)
        except GraphTooLarge as exc:
            print(f"{exc}; pick a narrower seed", file=sys.stderr)
            sys.exit(1)

    print(graph.to_dot(), end="")
    print(
        f"{len(graph.nodes)} chunks, {len(graph.edges)} pointers",
        file=sys.stderr,
    )


if __name__ == "__main__":
    main()
