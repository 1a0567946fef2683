import random

import pytest

from bananaflow.core.GraphPrimitives import (
    Graph,
    InputPayload,
    OutputPayload,
    Payload,
    ProcessPayload,
    SEED_PROMPT,
    create_seed_graph,
)
from bananaflow.core.Types import NodeKind, Position


class TestGraph:

    def setup_method(self):
        self.graph = Graph()

    def test_add_node_assigns_unique_ids(self):
        ids = {self.graph.add_node(NodeKind.PROCESS, Position(0, 0)) for _ in range(50)}
        assert len(ids) == 50
        assert len(self.graph.nodes) == 50

    def test_add_node_uses_empty_payload_for_kind(self):
        input_id = self.graph.add_node(NodeKind.INPUT, Position(1, 2))
        output_id = self.graph.add_node(NodeKind.OUTPUT, Position(3, 4))

        assert self.graph.get_node(input_id).payload == InputPayload("")
        assert self.graph.get_node(output_id).payload.has_image is False
        assert self.graph.get_node(input_id).position == Position(1, 2)

    def test_kind_is_read_only(self):
        node = self.graph.get_node(self.graph.add_node(NodeKind.INPUT, Position(0, 0)))
        with pytest.raises(AttributeError):
            node.kind = NodeKind.OUTPUT

    def test_payload_must_match_kind(self):
        node_id = self.graph.add_node(NodeKind.INPUT, Position(0, 0))
        with pytest.raises(ValueError):
            self.graph.update_payload(node_id, OutputPayload(b"x"))
        with pytest.raises(ValueError):
            self.graph.add_node(NodeKind.PROCESS, Position(0, 0), InputPayload("nope"))

    def test_payload_registry_covers_every_kind(self):
        assert isinstance(Payload.empty(NodeKind.INPUT), InputPayload)
        assert isinstance(Payload.empty(NodeKind.PROCESS), ProcessPayload)
        assert isinstance(Payload.empty(NodeKind.OUTPUT), OutputPayload)

    def test_update_payload_and_move_ignore_missing_nodes(self):
        self.graph.update_payload("missing", InputPayload("x"))
        self.graph.move_node("missing", Position(5, 5))
        assert self.graph.nodes == {}

    def test_update_payload_replaces(self):
        node_id = self.graph.add_node(NodeKind.OUTPUT, Position(0, 0))
        self.graph.update_payload(node_id, OutputPayload(b"png", "image/jpeg"))

        payload = self.graph.get_node(node_id).payload
        assert payload.image == b"png"
        assert payload.mime_type == "image/jpeg"

    def test_add_edge_requires_both_endpoints(self):
        a = self.graph.add_node(NodeKind.INPUT, Position(0, 0))
        with pytest.raises(ValueError):
            self.graph.add_edge(a, "missing")
        with pytest.raises(ValueError):
            self.graph.add_edge("missing", a)
        assert self.graph.edges == {}

    def test_remove_node_drops_touching_edges(self):
        a = self.graph.add_node(NodeKind.INPUT, Position(0, 0))
        b = self.graph.add_node(NodeKind.PROCESS, Position(0, 0))
        c = self.graph.add_node(NodeKind.OUTPUT, Position(0, 0))
        ab = self.graph.add_edge(a, b)
        bc = self.graph.add_edge(b, c)
        ac = self.graph.add_edge(a, c)

        self.graph.remove_node(b)

        assert self.graph.get_edge(ab) is None
        assert self.graph.get_edge(bc) is None
        assert self.graph.get_edge(ac) is not None
        assert self.graph.incoming_edges(c) == [self.graph.get_edge(ac)]

    def test_remove_node_missing_is_noop(self):
        calls = []
        self.graph.on_node_removed(calls.append)
        self.graph.add_node(NodeKind.INPUT, Position(0, 0))

        self.graph.remove_node("missing")

        assert len(self.graph.nodes) == 1
        assert calls == []

    def test_remove_node_notifies_listeners_after_edges_are_gone(self):
        a = self.graph.add_node(NodeKind.INPUT, Position(0, 0))
        b = self.graph.add_node(NodeKind.PROCESS, Position(0, 0))
        self.graph.add_edge(a, b)
        seen = []
        self.graph.on_node_removed(lambda nid: seen.append((nid, len(self.graph.edges))))

        self.graph.remove_node(a)

        assert seen == [(a, 0)]

    def test_remove_edge(self):
        a = self.graph.add_node(NodeKind.INPUT, Position(0, 0))
        b = self.graph.add_node(NodeKind.PROCESS, Position(0, 0))
        edge_id = self.graph.add_edge(a, b)

        self.graph.remove_edge(edge_id)
        self.graph.remove_edge(edge_id)

        assert self.graph.outgoing_edges(a) == []

    def test_no_dangling_edges_after_random_mutations(self):
        rng = random.Random(1234)
        kinds = list(NodeKind)

        for _ in range(500):
            ids = list(self.graph.nodes)
            roll = rng.random()
            if roll < 0.4 or len(ids) < 2:
                self.graph.add_node(rng.choice(kinds), Position(rng.random(), rng.random()))
            elif roll < 0.75:
                self.graph.add_edge(rng.choice(ids), rng.choice(ids))
            elif roll < 0.95:
                self.graph.remove_node(rng.choice(ids))
            else:
                self.graph.remove_node("not-a-node")

            for edge in self.graph.edges.values():
                assert edge.source in self.graph.nodes
                assert edge.target in self.graph.nodes

    def test_clear_removes_everything(self):
        graph = create_seed_graph()
        graph.clear()
        assert graph.nodes == {}
        assert graph.edges == {}


class TestSeedGraph:

    def test_seed_is_linear_input_process_output(self):
        graph = create_seed_graph()

        (input_node,) = graph.nodes_of_kind(NodeKind.INPUT)
        (process_node,) = graph.nodes_of_kind(NodeKind.PROCESS)
        (output_node,) = graph.nodes_of_kind(NodeKind.OUTPUT)

        assert input_node.payload.text == SEED_PROMPT
        assert output_node.payload.has_image is False
        assert [e.target for e in graph.outgoing_edges(input_node.id)] == [process_node.id]
        assert [e.target for e in graph.outgoing_edges(process_node.id)] == [output_node.id]
        assert input_node.position == Position(50, 100)
        assert output_node.position == Position(650, 100)
        assert process_node.label == "Gemini Generator"

    def test_each_seed_has_fresh_ids(self):
        assert set(create_seed_graph().nodes).isdisjoint(create_seed_graph().nodes)
