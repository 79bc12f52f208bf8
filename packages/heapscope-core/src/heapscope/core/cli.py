"""heapscope command line: scan a process heap and print or graph it."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from heapscope.core.display import ProgressDisplay, chunk_table, hexdump, summary_text
from heapscope.core.errors import GraphTooLarge, HeapScopeError, MemoryReadFailure
from heapscope.core.types.config import load_config


def _address(text: str) -> int:
    try:
        return int(text, 0) if text.lower().startswith("0x") else int(text, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an address: {text!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="heapscope",
        description="Walk the malloc heap of a live process or core file.",
    )
    parser.add_argument(
        "process",
        help="PID or process name to attach to (the executable with --core)",
    )
    parser.add_argument("--core", metavar="FILE", help="analyse a core dump instead")
    parser.add_argument("--config", metavar="FILE", help="path to heapscope.toml")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument(
        "--min-string", type=int, metavar="N",
        help="minimum string length for content detection",
    )
    parser.add_argument("--workers", type=int, metavar="N", help="pointer scan workers")
    parser.add_argument(
        "--graph", type=_address, nargs="+", metavar="ADDR",
        help="seed chunk addresses (hex) for a reachability graph",
    )
    parser.add_argument("--dot", metavar="FILE", help="write the graph as DOT here")
    parser.add_argument("--dump", type=_address, metavar="ADDR", help="hex dump one chunk")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()

    config = load_config(args.config)
    if args.verbose:
        config.verbose = True
    if args.min_string is not None:
        config.scan.min_string_length = args.min_string
    if args.workers is not None:
        config.scan.max_workers = args.workers

    from heapscope.core.heapscope import HeapScope

    graph = dump = None
    failures: List[str] = []
    try:
        with ProgressDisplay() as progress:
            with HeapScope(config=config, event_callback=progress.on_scan_event) as scope:
                if args.core:
                    scope.load_core(args.process, args.core)
                elif args.process.isdigit():
                    scope.attach(int(args.process))
                else:
                    scope.attach_by_name(args.process)

                result = scope.scan()

                # A graph or dump failure leaves the scan itself usable.
                if args.graph:
                    try:
                        graph = scope.graph(args.graph)
                    except (GraphTooLarge, KeyError) as exc:
                        failures.append(str(exc))
                if args.dump is not None:
                    try:
                        dump = scope.dump_chunk(args.dump)
                    except (MemoryReadFailure, KeyError) as exc:
                        failures.append(str(exc))
    except (HeapScopeError, RuntimeError) as exc:
        console.print(f"[bold red]error:[/bold red] {escape(str(exc))}")
        return 1

    console.print(chunk_table(result))
    console.print(summary_text(result))

    if dump is not None:
        console.print(hexdump(dump, base=args.dump), markup=False, highlight=False)

    if graph is not None:
        console.print(
            f"graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges"
        )
        if args.dot:
            Path(args.dot).write_text(graph.to_dot())
            console.print(f"wrote {args.dot}")
        else:
            console.print(graph.to_dot(), markup=False, highlight=False)

    for message in failures:
        console.print(f"[bold red]error:[/bold red] {escape(message)}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
