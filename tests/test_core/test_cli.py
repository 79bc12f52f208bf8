"""Tests for the heapscope command line."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from heapscope.core.cli import build_parser, main
from heapscope.core.errors import BoundsNotFound, GraphTooLarge
from heapscope.core.types.heap import (
    Chunk,
    ChunkHeader,
    ChunkState,
    GraphNode,
    HeapBounds,
    ReachabilityGraph,
    ScanResult,
)


def _scan_result():
    chunks = [
        Chunk(
            address=0x1000, size=0x20, state=ChunkState.BUSY,
            header=ChunkHeader(prev_size=0, size=0x21), tag='ASCII "hello"',
        ),
        Chunk(
            address=0x1020, size=0x60, state=ChunkState.TOP,
            header=ChunkHeader(prev_size=0, size=0x61),
        ),
    ]
    return ScanResult(bounds=HeapBounds(start=0x1000, end=0x1080), chunks=chunks)


def _graph():
    return ReachabilityGraph(
        nodes=[GraphNode(address=0x1000, state=ChunkState.BUSY, label="0x1000", color="green")],
        edges=[],
    )


@pytest.fixture()
def scope(tmp_path, monkeypatch):
    """Patch HeapScope; yields the instance the CLI will use."""
    monkeypatch.chdir(tmp_path)
    with patch("heapscope.core.heapscope.HeapScope") as scope_cls:
        instance = MagicMock()
        instance.scan.return_value = _scan_result()
        scope_cls.return_value.__enter__.return_value = instance
        instance.cls = scope_cls
        yield instance


class TestParser:
    def test_hex_addresses(self):
        args = build_parser().parse_args(["1", "--graph", "0x10", "20", "--dump", "ff"])
        assert args.graph == [0x10, 0x20]
        assert args.dump == 0xFF

    def test_bad_address(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["1", "--dump", "zz"])


class TestMain:
    def test_attach_pid(self, scope, capsys):
        assert main(["1234"]) == 0
        scope.attach.assert_called_once_with(1234)
        out = capsys.readouterr().out
        assert "0x0000000000001000" in out
        assert 'ASCII "hello"' in out

    def test_attach_name(self, scope):
        assert main(["nginx"]) == 0
        scope.attach_by_name.assert_called_once_with("nginx")

    def test_core(self, scope):
        assert main(["./a.out", "--core", "core.42"]) == 0
        scope.load_core.assert_called_once_with("./a.out", "core.42")
        scope.attach.assert_not_called()

    def test_overrides_reach_config(self, scope):
        main(["1234", "--min-string", "8", "--workers", "2", "-v"])
        config = scope.cls.call_args.kwargs["config"]
        assert config.scan.min_string_length == 8
        assert config.scan.max_workers == 2
        assert config.verbose is True

    def test_config_file(self, scope, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text("[scan]\nmin_string_length = 12\n")
        main(["1234", "--config", str(path)])
        assert scope.cls.call_args.kwargs["config"].scan.min_string_length == 12

    def test_scan_error(self, scope, capsys):
        scope.scan.side_effect = BoundsNotFound("Failed to calculate the bounds of the heap.")
        assert main(["1234"]) == 1
        assert "bounds of the heap" in capsys.readouterr().out

    def test_graph_to_stdout(self, scope, capsys):
        scope.graph.return_value = _graph()
        assert main(["1234", "--graph", "1000"]) == 0
        scope.graph.assert_called_once_with([0x1000])
        out = capsys.readouterr().out
        assert "graph: 1 nodes, 0 edges" in out
        assert "digraph heap {" in out

    def test_graph_to_dot_file(self, scope, tmp_path):
        scope.graph.return_value = _graph()
        dot = tmp_path / "out.dot"
        assert main(["1234", "--graph", "1000", "--dot", str(dot)]) == 0
        assert dot.read_text().startswith("digraph heap {")

    def test_graph_too_large_keeps_table(self, scope, capsys):
        scope.graph.side_effect = GraphTooLarge(5000, 3000)
        assert main(["1234", "--graph", "1000"]) == 1
        out = capsys.readouterr().out
        assert "0x0000000000001000" in out
        assert "5000 > 3000" in out

    def test_dump(self, scope, capsys):
        scope.dump_chunk.return_value = b"hello"
        assert main(["1234", "--dump", "0x1000"]) == 0
        scope.dump_chunk.assert_called_once_with(0x1000)
        assert "68 65 6c 6c 6f" in capsys.readouterr().out

    def test_dump_unknown_chunk(self, scope, capsys):
        scope.dump_chunk.side_effect = KeyError("No chunk starts at 0x1010")
        assert main(["1234", "--dump", "1010"]) == 1
        assert "No chunk starts at 0x1010" in capsys.readouterr().out
