from typing import Callable, Dict, List, NamedTuple, Optional, Type
import logging
import uuid

from .Types import NodeKind, Position

logger = logging.getLogger(__name__)


# --- Payloads ---
# One payload class per node kind. The kind lives on the class so a node's
# payload can always be checked against the node it is attached to.

class Payload:
    kind: NodeKind
    _payload_registry: Dict[NodeKind, Type['Payload']] = {}

    @classmethod
    def register(cls, kind: NodeKind) -> Callable[[Type['Payload']], Type['Payload']]:
        """Decorator to register the payload class carried by nodes of *kind*."""
        def decorator(subclass: Type['Payload']) -> Type['Payload']:
            if cls._payload_registry.get(kind):
                raise ValueError(f"Payload for kind '{kind.value}' is already registered.")
            subclass.kind = kind
            cls._payload_registry[kind] = subclass
            return subclass
        return decorator

    @classmethod
    def empty(cls, kind: NodeKind) -> 'Payload':
        if kind not in cls._payload_registry:
            raise ValueError(f"No payload registered for kind '{kind.value}'")
        return cls._payload_registry[kind]()

    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self):
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({fields})"


@Payload.register(NodeKind.INPUT)
class InputPayload(Payload):
    def __init__(self, text: str = ""):
        self.text = text


@Payload.register(NodeKind.PROCESS)
class ProcessPayload(Payload):
    pass


@Payload.register(NodeKind.OUTPUT)
class OutputPayload(Payload):
    def __init__(self, image: Optional[bytes] = None, mime_type: str = "image/png"):
        self.image = image
        self.mime_type = mime_type

    @property
    def has_image(self) -> bool:
        return self.image is not None


DEFAULT_LABELS = {
    NodeKind.INPUT: "Prompt",
    NodeKind.PROCESS: "Gemini Generator",
    NodeKind.OUTPUT: "Result",
}


class Edge(NamedTuple):
    id: str
    source: str
    target: str

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def __repr__(self):
        return f"Edge({self.source} -> {self.target})"


class WorkflowNode:
    def __init__(self,
                 kind: NodeKind,
                 position: Position,
                 payload: Optional[Payload] = None,
                 label: Optional[str] = None):
        self.id = uuid.uuid4().hex
        self._kind = kind
        self.label = label if label is not None else DEFAULT_LABELS[kind]
        self.position = Position(*position)
        self._payload = Payload.empty(kind)
        if payload is not None:
            self.payload = payload

    @property
    def kind(self) -> NodeKind:
        return self._kind

    @property
    def payload(self) -> Payload:
        return self._payload

    @payload.setter
    def payload(self, payload: Payload):
        if getattr(payload, "kind", None) != self._kind:
            raise ValueError(
                f"Payload {type(payload).__name__} does not match node kind '{self._kind.value}'"
            )
        self._payload = payload

    def __repr__(self):
        return f"WorkflowNode({self._kind.value}:{self.id})"


class Graph:
    """
    In-memory workflow graph. Nodes and edges are kept in insertion order.

    Edges never dangle: removing a node removes every edge touching it before
    the node-removed listeners are told about it.
    """

    def __init__(self):
        self.nodes: Dict[str, WorkflowNode] = {}
        self.edges: Dict[str, Edge] = {}
        self._node_removed_listeners: List[Callable[[str], None]] = []

    def on_node_removed(self, callback: Callable[[str], None]) -> None:
        self._node_removed_listeners.append(callback)

    # --- Nodes ---

    def add_node(self,
                 kind: NodeKind,
                 position: Position,
                 payload: Optional[Payload] = None,
                 label: Optional[str] = None) -> str:
        node = WorkflowNode(kind, position, payload, label)
        self.nodes[node.id] = node
        logger.debug("added %r at %s", node, node.position)
        return node.id

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self.nodes.get(node_id)

    def nodes_of_kind(self, kind: NodeKind) -> List[WorkflowNode]:
        return [n for n in self.nodes.values() if n.kind == kind]

    def remove_node(self, node_id: str) -> None:
        node = self.nodes.pop(node_id, None)
        if node is None:
            return

        # Arena pattern: drop every connection to or from this node
        self.edges = {eid: e for eid, e in self.edges.items() if not e.touches(node_id)}
        logger.debug("removed %r", node)

        for callback in self._node_removed_listeners:
            callback(node_id)

    def update_payload(self, node_id: str, payload: Payload) -> None:
        node = self.nodes.get(node_id)
        if node is None:
            return
        node.payload = payload

    def move_node(self, node_id: str, position: Position) -> None:
        node = self.nodes.get(node_id)
        if node is None:
            return
        node.position = Position(*position)

    def clear(self) -> None:
        for node_id in list(self.nodes):
            self.remove_node(node_id)

    # --- Edges ---

    def add_edge(self, source_id: str, target_id: str) -> str:
        if source_id not in self.nodes:
            raise ValueError(f"Source node '{source_id}' does not exist in the graph")
        if target_id not in self.nodes:
            raise ValueError(f"Target node '{target_id}' does not exist in the graph")

        edge = Edge(uuid.uuid4().hex, source_id, target_id)
        self.edges[edge.id] = edge
        return edge.id

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self.edges.get(edge_id)

    def remove_edge(self, edge_id: str) -> None:
        self.edges.pop(edge_id, None)

    def incoming_edges(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges.values() if e.target == node_id]

    def outgoing_edges(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges.values() if e.source == node_id]


SEED_PROMPT = "A cute robot banana eating a pixel apple"


def create_seed_graph() -> Graph:
    """The default Input -> Process -> Output chain every session starts with."""
    graph = Graph()
    seed_into(graph)
    return graph


def seed_into(graph: Graph) -> None:
    input_id = graph.add_node(NodeKind.INPUT, Position(50, 100), InputPayload(SEED_PROMPT))
    process_id = graph.add_node(NodeKind.PROCESS, Position(350, 100))
    output_id = graph.add_node(NodeKind.OUTPUT, Position(650, 100))

    graph.add_edge(input_id, process_id)
    graph.add_edge(process_id, output_id)
