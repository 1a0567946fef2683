from typing import Callable, List, NamedTuple, Optional
import logging

from .GraphPrimitives import Graph, InputPayload, Payload
from .Types import NodeKind, PointerTarget, Position

logger = logging.getLogger(__name__)


class DragSession(NamedTuple):
    """Lives strictly between a pointer-down on a node and the next pointer-up."""
    node_id: str
    start_pointer: Position
    start_position: Position

    def position_for(self, pointer: Position) -> Position:
        # absolute: start position plus the total displacement since pointer-down
        return self.start_position + (pointer - self.start_pointer)


class Editor:
    """
    Interactive layer over a Graph.

    Translates pointer and click events into graph mutations and owns the
    selection and the active drag session. Listeners registered with
    `on_change` receive an event name and the affected node id.
    """

    def __init__(self, graph: Graph):
        self.graph = graph
        self.selected_node_id: Optional[str] = None
        self.drag: Optional[DragSession] = None
        self._listeners: List[Callable[[str, Optional[str]], None]] = []
        graph.on_node_removed(self._node_removed)

    def on_change(self, callback: Callable[[str, Optional[str]], None]) -> None:
        self._listeners.append(callback)

    def _notify(self, event: str, node_id: Optional[str] = None) -> None:
        for callback in self._listeners:
            callback(event, node_id)

    # ── Selection ────────────────────────────────────────────────────────────

    def select(self, node_id: Optional[str]) -> None:
        if node_id is not None and self.graph.get_node(node_id) is None:
            return
        if node_id == self.selected_node_id:
            return
        self.selected_node_id = node_id
        self._notify("selection", node_id)

    def click_node(self, node_id: str) -> bool:
        """Select *node_id*. Returns True: the click is consumed and must not reach the canvas."""
        self.select(node_id)
        return True

    def click_canvas(self) -> None:
        self.select(None)

    # ── Drag protocol ────────────────────────────────────────────────────────

    @property
    def is_dragging(self) -> bool:
        return self.drag is not None

    def pointer_down(self,
                     node_id: str,
                     x: float,
                     y: float,
                     target: PointerTarget = PointerTarget.NODE) -> Optional[DragSession]:
        if target == PointerTarget.PAYLOAD_EDITOR:
            # text selection inside the prompt field, not a drag
            return None

        node = self.graph.get_node(node_id)
        if node is None:
            return None

        # last pointer-down wins
        if self.drag is not None:
            logger.debug("pointer-down on %s ends drag of %s", node_id, self.drag.node_id)
            self.pointer_up()

        self.drag = DragSession(node_id, Position(x, y), node.position)
        self.select(node_id)
        return self.drag

    def pointer_move(self, x: float, y: float) -> Optional[Position]:
        if self.drag is None:
            return None

        position = self.drag.position_for(Position(x, y))
        self.graph.move_node(self.drag.node_id, position)
        self._notify("moved", self.drag.node_id)
        return position

    def pointer_up(self) -> None:
        self.drag = None

    def move_node(self, node_id: str, position: Position) -> None:
        """Place a node at an absolute position, outside of any drag."""
        if self.graph.get_node(node_id) is None:
            return
        self.graph.move_node(node_id, position)
        self._notify("moved", node_id)

    # ── Graph mutations ──────────────────────────────────────────────────────

    def add_node(self,
                 kind: NodeKind,
                 position: Position,
                 payload: Optional[Payload] = None,
                 label: Optional[str] = None) -> str:
        node_id = self.graph.add_node(kind, position, payload, label)
        self._notify("graph", node_id)
        return node_id

    def delete_node(self, node_id: str) -> None:
        if self.graph.get_node(node_id) is None:
            return
        self.graph.remove_node(node_id)
        self._notify("graph", node_id)

    def add_edge(self, source_id: str, target_id: str) -> str:
        edge_id = self.graph.add_edge(source_id, target_id)
        self._notify("graph")
        return edge_id

    def remove_edge(self, edge_id: str) -> None:
        self.graph.remove_edge(edge_id)
        self._notify("graph")

    def edit_text(self, node_id: str, text: str) -> None:
        node = self.graph.get_node(node_id)
        if node is None:
            return
        if node.kind != NodeKind.INPUT:
            raise ValueError(f"Node '{node_id}' is a {node.kind.value} node and has no text")
        self.graph.update_payload(node_id, InputPayload(text))
        self._notify("payload", node_id)

    def clear(self) -> None:
        self.graph.clear()
        self._notify("graph")

    # Runs inside Graph.remove_node, so selection and drag are
    # updated in the same step as the node disappears.
    def _node_removed(self, node_id: str) -> None:
        if self.drag is not None and self.drag.node_id == node_id:
            self.drag = None
        if self.selected_node_id == node_id:
            self.selected_node_id = None
            self._notify("selection", None)
