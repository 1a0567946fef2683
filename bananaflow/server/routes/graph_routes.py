"""
Workflow canvas REST routes.

All routes are mounted under /api by main.py. Pointer routes drive the
editor's drag protocol for clients that do not hold a Socket.IO connection.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel

from bananaflow.core.GraphPrimitives import InputPayload, OutputPayload
from bananaflow.core.Types import NodeKind, PointerTarget, Position, RunStatus
from bananaflow.server.serializers.graph_serializer import (
    serialize_edge,
    serialize_node,
    serialize_workflow,
)
from bananaflow.server.state import studio_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflow")


def _snapshot() -> Dict[str, Any]:
    return serialize_workflow(studio_state.graph, studio_state.editor, studio_state.executor)


# ── GET /workflow ─────────────────────────────────────────────────────────────

@router.get("")
async def get_workflow() -> Dict[str, Any]:
    return _snapshot()


# ── POST /workflow/nodes ──────────────────────────────────────────────────────

class PositionBody(BaseModel):
    x: float
    y: float


class CreateNodeBody(BaseModel):
    kind: str
    position: Optional[PositionBody] = None
    label: Optional[str] = None
    text: Optional[str] = None


@router.post("/nodes", status_code=201)
async def create_node(body: CreateNodeBody) -> Dict[str, Any]:
    try:
        kind = NodeKind.parse(body.kind)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    position = Position(body.position.x, body.position.y) if body.position else Position(0, 0)
    payload = InputPayload(body.text) if kind == NodeKind.INPUT and body.text is not None else None

    node_id = studio_state.editor.add_node(kind, position, payload, body.label)
    node = studio_state.graph.get_node(node_id)
    return serialize_node(node, studio_state.editor.selected_node_id)


# ── DELETE /workflow/nodes/:nodeId ────────────────────────────────────────────

@router.delete("/nodes/{node_id}", status_code=204)
async def delete_node(node_id: str) -> Response:
    studio_state.editor.delete_node(node_id)
    return Response(status_code=204)


# ── PUT /workflow/nodes/:nodeId/text ──────────────────────────────────────────

class TextBody(BaseModel):
    text: str


@router.put("/nodes/{node_id}/text", status_code=204)
async def set_node_text(node_id: str, body: TextBody) -> Response:
    try:
        studio_state.editor.edit_text(node_id, body.text)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return Response(status_code=204)


# ── PUT /workflow/nodes/:nodeId/position ──────────────────────────────────────

@router.put("/nodes/{node_id}/position", status_code=204)
async def set_node_position(node_id: str, body: PositionBody) -> Response:
    studio_state.editor.move_node(node_id, Position(body.x, body.y))
    return Response(status_code=204)


# ── GET /workflow/nodes/:nodeId/image ─────────────────────────────────────────

@router.get("/nodes/{node_id}/image")
async def get_node_image(node_id: str) -> Response:
    node = studio_state.graph.get_node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    payload = node.payload
    if not isinstance(payload, OutputPayload) or not payload.has_image:
        raise HTTPException(status_code=404, detail="Node has no image")
    return Response(
        content=payload.image,
        media_type=payload.mime_type,
        headers={"Content-Disposition": f'attachment; filename="banana-flow-{node_id}.png"'},
    )


# ── POST /workflow/edges ──────────────────────────────────────────────────────

class EdgeBody(BaseModel):
    source: str
    target: str


@router.post("/edges", status_code=201)
async def add_edge(body: EdgeBody) -> Dict[str, Any]:
    try:
        edge_id = studio_state.editor.add_edge(body.source, body.target)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_edge(studio_state.graph.get_edge(edge_id))


# ── DELETE /workflow/edges/:edgeId ────────────────────────────────────────────

@router.delete("/edges/{edge_id}", status_code=204)
async def delete_edge(edge_id: str) -> Response:
    studio_state.editor.remove_edge(edge_id)
    return Response(status_code=204)


# ── POST /workflow/select ─────────────────────────────────────────────────────
# nodeId null is a click on empty canvas.

class SelectBody(BaseModel):
    nodeId: Optional[str] = None


@router.post("/select")
async def select_node(body: SelectBody) -> Dict[str, Any]:
    editor = studio_state.editor
    if body.nodeId is None:
        editor.click_canvas()
    else:
        editor.click_node(body.nodeId)
    return {"selectedNodeId": editor.selected_node_id}


# ── POST /workflow/pointer/{down,move,up} ─────────────────────────────────────

class PointerDownBody(BaseModel):
    nodeId: str
    x: float
    y: float
    target: str = PointerTarget.NODE.value


class PointerMoveBody(BaseModel):
    x: float
    y: float


@router.post("/pointer/down")
async def pointer_down(body: PointerDownBody) -> Dict[str, Any]:
    try:
        target = PointerTarget(body.target)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown pointer target '{body.target}'")
    session = studio_state.editor.pointer_down(body.nodeId, body.x, body.y, target)
    return {"dragging": session.node_id if session else None}


@router.post("/pointer/move")
async def pointer_move(body: PointerMoveBody) -> Dict[str, Any]:
    editor = studio_state.editor
    node_id = editor.drag.node_id if editor.drag else None
    position = editor.pointer_move(body.x, body.y)
    return {
        "nodeId": node_id,
        "position": position.to_dict() if position is not None else None,
    }


@router.post("/pointer/up", status_code=204)
async def pointer_up() -> Response:
    studio_state.editor.pointer_up()
    return Response(status_code=204)


# ── POST /workflow/clear ──────────────────────────────────────────────────────

@router.post("/clear", status_code=204)
async def clear_workflow() -> Response:
    studio_state.editor.clear()
    return Response(status_code=204)


# ── POST /workflow/reset ──────────────────────────────────────────────────────

@router.post("/reset", status_code=204)
async def reset_workflow() -> Response:
    studio_state.reseed()
    return Response(status_code=204)


# ── POST /workflow/run ────────────────────────────────────────────────────────

@router.post("/run")
async def run_workflow() -> Dict[str, Any]:
    executor = studio_state.executor
    outcome = await executor.run()

    if outcome.status == RunStatus.REJECTED:
        raise HTTPException(status_code=409, detail=outcome.error)
    if outcome.status == RunStatus.FAILED:
        # no output node located means the pipeline was never started
        status = 400 if outcome.output_node_id is None else 502
        logger.info("workflow run failed (%d): %s", status, outcome.error)
        raise HTTPException(status_code=status, detail=outcome.error)

    return {**outcome.to_dict(), "workflow": _snapshot()}
