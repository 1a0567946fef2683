from typing import Callable, List, Optional, Tuple
from logging import getLogger

from .GraphPrimitives import Graph, InputPayload, OutputPayload, WorkflowNode
from .Interface import GenerationResult, IGenerationClient
from .Types import ExecState, NodeKind, RunStatus

logger = getLogger(__name__)

INCOMPLETE_PIPELINE = "incomplete pipeline: requires exactly one Input -> Process -> Output"
ALREADY_RUNNING = "workflow is already running"


class RunOutcome:
    def __init__(self,
                 status: RunStatus,
                 error: Optional[str] = None,
                 output_node_id: Optional[str] = None):
        self.status = status
        self.error = error
        self.output_node_id = output_node_id

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.SUCCEEDED

    def to_dict(self):
        return {
            "status": self.status.value,
            "error": self.error,
            "outputNodeId": self.output_node_id,
        }

    def __repr__(self):
        return f"RunOutcome({self.status.value}, error={self.error!r})"


class Executor:
    """
    Runs the fixed Input -> Process -> Output pipeline.

    IDLE -> RUNNING -> (SUCCEEDED | FAILED) -> IDLE. The generation call is
    the only await; RUNNING is entered before it so a second run() issued
    while the call is outstanding is rejected rather than racing the first
    one to the same Output node.

    Nodes are located by kind, not by walking edges. Graphs with more than
    one node of a kind are refused.
    """

    def __init__(self, graph: Graph, client: IGenerationClient):
        self.graph = graph
        self.client = client
        self.state = ExecState.IDLE
        self.last_error: Optional[str] = None
        self._state_listeners: List[Callable[[ExecState], None]] = []

    def on_state_change(self, callback: Callable[[ExecState], None]) -> None:
        self._state_listeners.append(callback)

    @property
    def is_running(self) -> bool:
        return self.state == ExecState.RUNNING

    def _transition(self, state: ExecState) -> None:
        self.state = state
        for callback in self._state_listeners:
            callback(state)

    def _finish(self, terminal: ExecState) -> None:
        self._transition(terminal)
        self._transition(ExecState.IDLE)

    def locate_pipeline(self) -> Optional[Tuple[WorkflowNode, WorkflowNode, WorkflowNode]]:
        found = []
        for kind in (NodeKind.INPUT, NodeKind.PROCESS, NodeKind.OUTPUT):
            matches = self.graph.nodes_of_kind(kind)
            if len(matches) != 1:
                logger.info("pipeline has %d %s node(s)", len(matches), kind.value)
                return None
            found.append(matches[0])
        return tuple(found)

    async def run(self) -> RunOutcome:
        if self.is_running:
            logger.info("run() rejected, a generation call is still outstanding")
            return RunOutcome(RunStatus.REJECTED, ALREADY_RUNNING)

        try:
            self._transition(ExecState.RUNNING)
            return await self._run_pipeline()
        finally:
            # cancellation or a raising listener must not leave us RUNNING
            if self.state != ExecState.IDLE:
                logger.warning("run() interrupted in state %s", self.state.name)
                self._transition(ExecState.IDLE)

    async def _run_pipeline(self) -> RunOutcome:
        pipeline = self.locate_pipeline()
        if pipeline is None:
            self.last_error = INCOMPLETE_PIPELINE
            self._finish(ExecState.FAILED)
            return RunOutcome(RunStatus.FAILED, INCOMPLETE_PIPELINE)

        input_node, process_node, output_node = pipeline
        payload = input_node.payload
        prompt = payload.text if isinstance(payload, InputPayload) and payload.text else ""

        logger.info("running pipeline %s -> %s -> %s", input_node.id, process_node.id, output_node.id)
        try:
            result = await self.client.generate_from_text(prompt)
        except Exception as exc:
            logger.exception("generation client raised")
            result = GenerationResult.failure(str(exc) or type(exc).__name__)

        if not result.ok:
            self.last_error = result.error or "generation returned no image"
            self._finish(ExecState.FAILED)
            return RunOutcome(RunStatus.FAILED, self.last_error, output_node.id)

        # no-op if the output node was deleted while the call was outstanding
        self.graph.update_payload(output_node.id, OutputPayload(result.image, result.mime_type))
        self.last_error = None
        self._finish(ExecState.SUCCEEDED)
        return RunOutcome(RunStatus.SUCCEEDED, output_node_id=output_node.id)
