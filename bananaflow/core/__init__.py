"""
Workflow core
=============
    Graph     nodes, edges and tagged payloads        (GraphPrimitives)
    Editor    drag sessions, selection, mutations     (Editor)
    Executor  Idle/Running/Succeeded/Failed runner    (Executor)
"""

from .GraphPrimitives import (
    Edge,
    Graph,
    InputPayload,
    OutputPayload,
    Payload,
    ProcessPayload,
    WorkflowNode,
    create_seed_graph,
)
from .Editor import DragSession, Editor
from .Executor import Executor, RunOutcome
from .Interface import GenerationResult, IGenerationClient
from .Types import AppMode, ExecState, NodeKind, PointerTarget, Position, RunStatus
