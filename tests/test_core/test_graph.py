"""Tests for reachability graph construction."""

from __future__ import annotations

import pytest

from heapscope.core.errors import GraphTooLarge
from heapscope.core.events import ScanEventType
from heapscope.core.heap.graph import GraphBuilder
from heapscope.core.types.config import GraphConfig
from heapscope.core.types.heap import Chunk, ChunkHeader, ChunkState


def _chunk(address, edges=(), state=ChunkState.BUSY):
    return Chunk(
        address=address,
        size=0x20,
        state=state,
        header=ChunkHeader(prev_size=0, size=0x21),
        edges=frozenset(edges),
    )


@pytest.fixture()
def heap():
    """a -> b -> c -> a, b -> d (free), e isolated, top."""
    return [
        _chunk(0x1000, {0x1020}),
        _chunk(0x1020, {0x1040, 0x1060}),
        _chunk(0x1040, {0x1000}),
        _chunk(0x1060, state=ChunkState.FREE),
        _chunk(0x1080, {0x1000}),
        _chunk(0x10A0, state=ChunkState.TOP),
    ]


class TestGraphBuilder:
    def test_reachable_set(self, heap):
        graph = GraphBuilder().build(heap, [0x1000])
        assert graph.addresses == {0x1000, 0x1020, 0x1040, 0x1060}
        assert sorted(graph.edges) == [
            (0x1000, 0x1020),
            (0x1020, 0x1040),
            (0x1020, 0x1060),
            (0x1040, 0x1000),
        ]

    def test_edges_stay_inside_the_node_set(self, heap):
        graph = GraphBuilder().build(heap, [0x1020])
        for source, target in graph.edges:
            assert source in graph.addresses
            assert target in graph.addresses
        assert 0x1080 not in graph.addresses

    def test_multiple_seeds(self, heap):
        graph = GraphBuilder().build(heap, [0x1060, 0x10A0, 0x1060])
        assert graph.addresses == {0x1060, 0x10A0}
        assert graph.edges == []

    def test_no_seeds(self, heap):
        graph = GraphBuilder().build(heap, [])
        assert graph.nodes == []

    def test_unknown_seed(self, heap):
        with pytest.raises(KeyError):
            GraphBuilder().build(heap, [0x1010])

    def test_edges_to_unknown_chunks_ignored(self):
        graph = GraphBuilder().build([_chunk(0x1000, {0x9000})], [0x1000])
        assert graph.addresses == {0x1000}
        assert graph.edges == []

    def test_colors(self, heap):
        graph = GraphBuilder().build(heap, [0x1000, 0x10A0])
        colors = {node.address: node.color for node in graph.nodes}
        assert colors[0x1000] == "green"
        assert colors[0x1060] == "red"
        assert colors[0x10A0] == "gray"

    def test_labels(self, heap):
        graph = GraphBuilder().build(heap, [0x1060])
        assert graph.nodes[0].label == "0x0000000000001060"

    def test_event(self, heap, events):
        GraphBuilder(event_callback=events.append).build(heap, [0x1000])
        assert events[0].event_type is ScanEventType.GRAPH_BUILT
        assert events[0].metadata == {"nodes": 4, "edges": 4}


class TestNodeLimit:
    def test_too_many_nodes(self, events):
        chain = [_chunk(0x100000 + i * 0x20, {0x100000 + (i + 1) * 0x20}) for i in range(5000)]

        builder = GraphBuilder(event_callback=events.append)
        with pytest.raises(GraphTooLarge) as info:
            builder.build(chain, [0x100000])

        assert info.value.node_count == 5000
        assert info.value.limit == 3000
        assert events == []

    def test_limit_is_inclusive(self):
        chain = [_chunk(i * 0x20 + 0x20, {(i + 2) * 0x20}) for i in range(10)]
        graph = GraphBuilder(GraphConfig(max_nodes=10)).build(chain, [0x20])
        assert len(graph.nodes) == 10

        with pytest.raises(GraphTooLarge):
            GraphBuilder(GraphConfig(max_nodes=9)).build(chain, [0x20])


class TestDot:
    def test_to_dot(self, heap):
        dot = GraphBuilder().build(heap, [0x1040]).to_dot("g")
        lines = dot.splitlines()
        assert lines[0] == "digraph g {"
        assert lines[-1] == "}"
        assert '    "0x0000000000001060" [style=filled, fillcolor=red];' in lines
        assert '    "0x0000000000001040" -> "0x0000000000001000";' in lines
        assert dot.endswith("}\n")
