"""
Socket.IO server.

Uses python-socketio in ASGI mode so it can wrap FastAPI.
`create_socket_app(fastapi_app)` returns the composite ASGI application to
pass to uvicorn.

Besides broadcasting trace events, clients stream pointer events here while
dragging a node, so a drag does not cost one HTTP request per mouse move.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import socketio

from bananaflow.core.Types import PointerTarget
from bananaflow.server.state import studio_state

from .trace_emitter import global_tracer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Socket.IO instance (async, ASGI mode)
# ---------------------------------------------------------------------------

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


# ---------------------------------------------------------------------------
# Trace fan-out: wire global_tracer → Socket.IO emit
# ---------------------------------------------------------------------------

def _on_trace(event: Dict[str, Any]) -> None:
    """
    Called synchronously by TraceEmitter.fire().
    We schedule an async emit on the running event loop.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return  # fired outside the server loop (scripts, sync tests)
    loop.create_task(sio.emit("trace", event))


global_tracer.on_trace(_on_trace)


# ---------------------------------------------------------------------------
# Socket.IO lifecycle events
# ---------------------------------------------------------------------------

@sio.event
async def connect(sid: str, environ: dict) -> None:
    logger.debug("client connected: %s", sid)


@sio.event
async def disconnect(sid: str) -> None:
    """A client that vanishes mid-drag must not leave the drag session open."""
    studio_state.editor.pointer_up()


# ---------------------------------------------------------------------------
# Pointer events
# ---------------------------------------------------------------------------

@sio.event
async def pointer_down(sid: str, data: Dict[str, Any]) -> Optional[str]:
    try:
        target = PointerTarget(data.get("target", PointerTarget.NODE.value))
        session = studio_state.editor.pointer_down(
            data["nodeId"], float(data["x"]), float(data["y"]), target
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        logger.warning("bad pointer_down from %s: %s", sid, exc)
        return None
    return session.node_id if session else None


@sio.event
async def pointer_move(sid: str, data: Dict[str, Any]) -> None:
    try:
        studio_state.editor.pointer_move(float(data["x"]), float(data["y"]))
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("bad pointer_move from %s: %s", sid, exc)


@sio.event
async def pointer_up(sid: str, data: Any = None) -> None:
    studio_state.editor.pointer_up()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_socket_app(fastapi_app: Any) -> socketio.ASGIApp:
    """Wrap *fastapi_app* inside a Socket.IO ASGI application."""
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
