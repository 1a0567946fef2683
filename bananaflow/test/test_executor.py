import asyncio

import pytest

from bananaflow.core.Editor import Editor
from bananaflow.core.Executor import ALREADY_RUNNING, INCOMPLETE_PIPELINE, Executor
from bananaflow.core.GraphPrimitives import InputPayload, create_seed_graph
from bananaflow.core.Interface import GenerationResult
from bananaflow.core.Types import ExecState, NodeKind, Position, RunStatus

from .stubs import IMG1, StubGenerationClient


class TestExecutor:

    def setup_method(self):
        self.graph = create_seed_graph()
        self.client = StubGenerationClient()
        self.executor = Executor(self.graph, self.client)
        self.states = []
        self.executor.on_state_change(self.states.append)
        self.input_node = self.graph.nodes_of_kind(NodeKind.INPUT)[0]
        self.output_node = self.graph.nodes_of_kind(NodeKind.OUTPUT)[0]

    def test_run_writes_image_into_output(self):
        self.graph.update_payload(self.input_node.id, InputPayload("a red apple"))

        outcome = asyncio.run(self.executor.run())

        assert outcome.status == RunStatus.SUCCEEDED
        assert outcome.output_node_id == self.output_node.id
        assert self.output_node.payload.image == IMG1
        assert self.executor.state == ExecState.IDLE
        assert self.executor.last_error is None
        assert self.client.text_prompts == ["a red apple"]
        assert self.states == [ExecState.RUNNING, ExecState.SUCCEEDED, ExecState.IDLE]

    def test_error_result_leaves_output_unset(self):
        self.client.result = GenerationResult.failure("quota exceeded")

        outcome = asyncio.run(self.executor.run())

        assert outcome.status == RunStatus.FAILED
        assert outcome.error == "quota exceeded"
        assert self.executor.last_error == "quota exceeded"
        assert self.output_node.payload.has_image is False
        assert self.executor.state == ExecState.IDLE
        assert self.states == [ExecState.RUNNING, ExecState.FAILED, ExecState.IDLE]

    def test_raising_client_is_a_failure_not_a_crash(self):
        self.client.raises = RuntimeError("connection reset")

        outcome = asyncio.run(self.executor.run())

        assert outcome.status == RunStatus.FAILED
        assert self.executor.last_error == "connection reset"
        assert self.executor.state == ExecState.IDLE

    def test_empty_prompt_is_sent_as_empty_string(self):
        self.graph.update_payload(self.input_node.id, InputPayload(""))
        asyncio.run(self.executor.run())
        assert self.client.text_prompts == [""]

    def test_two_inputs_fail_without_calling_client(self):
        self.graph.add_node(NodeKind.INPUT, Position(0, 300), InputPayload("another"))

        outcome = asyncio.run(self.executor.run())

        assert outcome.status == RunStatus.FAILED
        assert outcome.error == INCOMPLETE_PIPELINE
        assert self.client.call_count == 0
        assert self.states == [ExecState.RUNNING, ExecState.FAILED, ExecState.IDLE]

    def test_zero_outputs_fail_without_calling_client(self):
        self.graph.remove_node(self.output_node.id)

        outcome = asyncio.run(self.executor.run())

        assert outcome.status == RunStatus.FAILED
        assert outcome.output_node_id is None
        assert self.client.call_count == 0
        assert self.executor.state == ExecState.IDLE

    def test_empty_graph_fails(self):
        self.graph.clear()
        outcome = asyncio.run(self.executor.run())
        assert outcome.status == RunStatus.FAILED
        assert self.client.call_count == 0

    def test_second_run_while_pending_is_rejected(self):
        async def scenario():
            self.client.gate = asyncio.Event()
            first = asyncio.ensure_future(self.executor.run())
            await asyncio.sleep(0)
            assert self.executor.state == ExecState.RUNNING

            second = await self.executor.run()

            self.client.gate.set()
            return await first, second

        first, second = asyncio.run(scenario())

        assert self.client.call_count == 1
        assert first.status == RunStatus.SUCCEEDED
        assert second.status == RunStatus.REJECTED
        assert second.error == ALREADY_RUNNING
        assert self.executor.state == ExecState.IDLE

    def test_cancelled_run_returns_to_idle(self):
        async def scenario():
            self.client.gate = asyncio.Event()
            run = asyncio.ensure_future(self.executor.run())
            await asyncio.sleep(0)
            assert self.executor.state == ExecState.RUNNING

            run.cancel()
            with pytest.raises(asyncio.CancelledError):
                await run
            assert self.executor.state == ExecState.IDLE

            self.client.gate = None
            return await self.executor.run()

        retry = asyncio.run(scenario())

        assert retry.status == RunStatus.SUCCEEDED
        assert self.states == [ExecState.RUNNING, ExecState.IDLE,
                               ExecState.RUNNING, ExecState.SUCCEEDED, ExecState.IDLE]

    def test_raising_listener_does_not_leave_executor_running(self):
        def broken(state):
            if state == ExecState.SUCCEEDED:
                raise RuntimeError("listener failed")

        self.executor.on_state_change(broken)

        with pytest.raises(RuntimeError):
            asyncio.run(self.executor.run())

        assert self.executor.state == ExecState.IDLE
        assert self.executor.is_running is False

    def test_editor_stays_usable_while_running(self):
        editor = Editor(self.graph)

        async def scenario():
            self.client.gate = asyncio.Event()
            run = asyncio.ensure_future(self.executor.run())
            await asyncio.sleep(0)

            editor.pointer_down(self.input_node.id, 0, 0)
            editor.pointer_move(25, 0)
            editor.pointer_up()
            editor.edit_text(self.input_node.id, "edited mid-run")

            self.client.gate.set()
            return await run

        outcome = asyncio.run(scenario())

        assert outcome.ok
        assert self.input_node.position == Position(75, 100)
        # the prompt was read when the run started
        assert self.client.text_prompts == ["A cute robot banana eating a pixel apple"]

    def test_output_deleted_mid_run_is_not_resurrected(self):
        async def scenario():
            self.client.gate = asyncio.Event()
            run = asyncio.ensure_future(self.executor.run())
            await asyncio.sleep(0)
            self.graph.remove_node(self.output_node.id)
            self.client.gate.set()
            return await run

        outcome = asyncio.run(scenario())

        assert outcome.ok
        assert self.graph.get_node(self.output_node.id) is None

    def test_can_run_again_after_failure(self):
        self.client.result = GenerationResult.failure("quota exceeded")
        asyncio.run(self.executor.run())

        self.client.result = GenerationResult.success(IMG1)
        outcome = asyncio.run(self.executor.run())

        assert outcome.ok
        assert self.executor.last_error is None
        assert self.output_node.payload.image == IMG1
