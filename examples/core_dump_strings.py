"""List the strings and embedded files found in the heap of a core dump.

Runs offline: no live process is needed, only the executable and its core.

    python examples/core_dump_strings.py ./server core.4242
"""

import sys

from heapscope.core import HeapScope, HeapScopeConfig
from heapscope.core.types import ScanConfig


def main():
    if len(sys.argv) < 3:
        print("Usage: python core_dump_strings.py <executable> <core>")
        sys.exit(1)

    config = HeapScopeConfig(scan=ScanConfig(min_string_length=8))

    with HeapScope(config=config) as scope:
        scope.load_core(sys.argv[1], sys.argv[2])
        result = scope.scan()

        for chunk in result.chunks:
            if chunk.tag is None:
                continue
            print(f"{chunk.address:#x}  {chunk.tag}")
            if not chunk.tag.startswith(("ASCII", "UTF-16")):
                # Binary formats: show the first bytes for a quick look.
                head = scope.dump_chunk(chunk.address)[2 * chunk.pointer_size:][:16]
                print(f"    {head.hex(' ')}")


if __name__ == "__main__":
    main()
