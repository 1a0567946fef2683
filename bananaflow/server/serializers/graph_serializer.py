"""
Graph serializer.

Converts the workflow Graph / WorkflowNode / Edge objects and the studio
gallery into JSON-safe dicts matching the wire shape the browser UI expects.
Image bytes are emitted as `data:<mime>;base64,...` URLs.
"""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

from bananaflow.core.Editor import Editor
from bananaflow.core.Executor import Executor
from bananaflow.core.GraphPrimitives import (
    Edge,
    Graph,
    InputPayload,
    OutputPayload,
    WorkflowNode,
)

# ── Wire shapes ───────────────────────────────────────────────────────────────
# SerializedNode keys:     id, kind, label, position, data, selected
# SerializedEdge keys:     id, source, target
# SerializedWorkflow keys: nodes, edges, selectedNodeId, dragging, execution


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    b64 = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type};base64,{b64}"


def _serialize_data(node: WorkflowNode) -> Dict[str, Any]:
    payload = node.payload
    if isinstance(payload, InputPayload):
        return {"value": payload.text}
    if isinstance(payload, OutputPayload):
        image = to_data_url(payload.image, payload.mime_type) if payload.has_image else None
        return {"image": image}
    return {}


def serialize_node(node: WorkflowNode, selected_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": node.id,
        "kind": node.kind.value,
        "label": node.label,
        "position": node.position.to_dict(),
        "data": _serialize_data(node),
        "selected": node.id == selected_id,
    }


def serialize_edge(edge: Edge) -> Dict[str, Any]:
    return {"id": edge.id, "source": edge.source, "target": edge.target}


def serialize_execution(executor: Executor) -> Dict[str, Any]:
    return {
        "state": executor.state.name,
        "running": executor.is_running,
        "lastError": executor.last_error,
    }


# ── Public API ─────────────────────────────────────────────────────────────────

def serialize_workflow(graph: Graph, editor: Editor, executor: Executor) -> Dict[str, Any]:
    """
    Serialize the whole canvas into a SerializedWorkflow dict.

    :param graph:    The workflow graph.
    :param editor:   Supplies the selection and drag state.
    :param executor: Supplies the run state and the last error.
    """
    selected = editor.selected_node_id
    nodes: List[Dict[str, Any]] = [serialize_node(n, selected) for n in graph.nodes.values()]
    edges: List[Dict[str, Any]] = [serialize_edge(e) for e in graph.edges.values()]

    return {
        "nodes": nodes,
        "edges": edges,
        "selectedNodeId": selected,
        "dragging": editor.drag.node_id if editor.drag is not None else None,
        "execution": serialize_execution(executor),
    }


def serialize_image(image: Any) -> Dict[str, Any]:
    """Serialize a gallery GeneratedImage, including its download link."""
    return {
        "id": image.id,
        "prompt": image.prompt,
        "source": image.source,
        "timestamp": image.timestamp,
        "mimeType": image.mime_type,
        "image": to_data_url(image.data, image.mime_type),
        "downloadUrl": f"/api/images/{image.id}/download",
    }
