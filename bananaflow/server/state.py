"""
StudioState: the session held by the server process.

One workflow graph (seeded with Input -> Process -> Output), its editor and
executor, the current app mode and the gallery of images produced by the
text-to-image and image-to-image modes. Nothing is persisted.

Editor and executor changes are forwarded to global_tracer so connected
Socket.IO clients can re-render.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Dict, List, Optional

from bananaflow.core.Editor import Editor
from bananaflow.core.Executor import Executor
from bananaflow.core.GraphPrimitives import Graph, create_seed_graph, seed_into
from bananaflow.core.Interface import IGenerationClient
from bananaflow.core.Types import AppMode, ExecState, NodeKind
from bananaflow.server.trace.trace_emitter import TraceEmitter, global_tracer

logger = logging.getLogger(__name__)

# oldest images are evicted past this many
GALLERY_LIMIT = 50


class GeneratedImage:
    def __init__(self, data: bytes, mime_type: str, prompt: str, source: str) -> None:
        self.id = uuid.uuid4().hex
        self.data = data
        self.mime_type = mime_type
        self.prompt = prompt
        self.source = source    # "text" | "image"
        self.timestamp = int(time.time() * 1000)

    @property
    def filename(self) -> str:
        prefix = "banana-gen" if self.source == "text" else "banana-remix"
        return f"{prefix}-{self.id}.png"


class StudioState:
    """Holds the workflow graph, editor, executor, mode and gallery."""

    def __init__(
        self,
        generation_client: Optional[IGenerationClient] = None,
        tracer: TraceEmitter = global_tracer,
        gallery_limit: int = GALLERY_LIMIT,
    ) -> None:
        self.tracer = tracer
        self.gallery_limit = gallery_limit
        self._generation_client = generation_client
        self.mode = AppMode.TEXT_TO_IMAGE
        self.gallery: Dict[str, GeneratedImage] = {}
        self._build(create_seed_graph())

    # ── Wiring ──────────────────────────────────────────────────────────────

    def _build(self, graph: Graph) -> None:
        self.graph = graph
        self.editor = Editor(graph)
        self.executor = Executor(graph, self.generation_client)
        self.editor.on_change(self._on_editor_change)
        self.executor.on_state_change(self._on_exec_state)

    @property
    def generation_client(self) -> IGenerationClient:
        if self._generation_client is None:
            # only built when no client was injected
            from bananaflow.server.config import load_settings
            from bananaflow.server.gemini_client import GeminiClient

            self._generation_client = GeminiClient(load_settings())
        return self._generation_client

    def reset(self, generation_client: Optional[IGenerationClient] = None) -> None:
        """Start a fresh session: seed graph, empty gallery, default mode."""
        if generation_client is not None:
            self._generation_client = generation_client
        self.mode = AppMode.TEXT_TO_IMAGE
        self.gallery.clear()
        self._build(create_seed_graph())

    def reseed(self) -> None:
        """Replace the canvas with the seed graph, keeping the same editor/executor."""
        self.editor.clear()
        seed_into(self.graph)
        self.tracer.fire({"type": "GRAPH_CHANGED", "nodeId": None})

    # ── Trace forwarding ────────────────────────────────────────────────────

    def _on_editor_change(self, event: str, node_id: Optional[str]) -> None:
        if event == "moved":
            node = self.graph.get_node(node_id)
            if node is not None:
                self.tracer.fire(
                    {"type": "NODE_MOVED", "nodeId": node_id, "position": node.position.to_dict()}
                )
        elif event == "selection":
            self.tracer.fire({"type": "SELECTION_CHANGED", "nodeId": node_id})
        else:
            self.tracer.fire({"type": "GRAPH_CHANGED", "nodeId": node_id})

    def _on_exec_state(self, state: ExecState) -> None:
        if state == ExecState.RUNNING:
            self.tracer.fire({"type": "EXEC_START"})
        self.tracer.fire({"type": "EXEC_STATE", "state": state.name})
        if state == ExecState.FAILED:
            self.tracer.fire({"type": "EXEC_ERROR", "error": self.executor.last_error or ""})
        elif state == ExecState.SUCCEEDED:
            outputs = [n.id for n in self.graph.nodes_of_kind(NodeKind.OUTPUT)]
            self.tracer.fire({"type": "EXEC_DONE", "outputNodeId": outputs[0] if outputs else None})

    # ── Gallery ─────────────────────────────────────────────────────────────

    def add_image(self, data: bytes, mime_type: str, prompt: str, source: str) -> GeneratedImage:
        image = GeneratedImage(data, mime_type, prompt, source)
        self.gallery[image.id] = image
        while len(self.gallery) > self.gallery_limit:
            evicted = next(iter(self.gallery))
            del self.gallery[evicted]
            logger.debug("evicted image %s from the gallery", evicted)
        logger.info("stored %s image %s (%d bytes)", source, image.id, len(data))
        return image

    def get_image(self, image_id: str) -> Optional[GeneratedImage]:
        return self.gallery.get(image_id)

    def list_images(self) -> List[GeneratedImage]:
        return sorted(self.gallery.values(), key=lambda i: i.timestamp, reverse=True)


# ---------------------------------------------------------------------------
# Module-level singleton, created once when this module is first imported.
# ---------------------------------------------------------------------------

studio_state = StudioState()
