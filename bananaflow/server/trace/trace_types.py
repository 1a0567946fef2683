"""
TraceEvent type definitions.
All events are plain dicts so they can be emitted over Socket.IO without Pydantic overhead.
"""
from typing import Literal, Optional, TypedDict, Union


class ExecStartEvent(TypedDict):
    type: Literal["EXEC_START"]
    ts: int


class ExecStateEvent(TypedDict):
    type: Literal["EXEC_STATE"]
    state: Literal["IDLE", "RUNNING", "SUCCEEDED", "FAILED"]
    ts: int


class ExecDoneEvent(TypedDict):
    type: Literal["EXEC_DONE"]
    outputNodeId: Optional[str]
    ts: int


class ExecErrorEvent(TypedDict):
    type: Literal["EXEC_ERROR"]
    error: str
    ts: int


class NodeMovedEvent(TypedDict):
    type: Literal["NODE_MOVED"]
    nodeId: str
    position: dict
    ts: int


class SelectionChangedEvent(TypedDict):
    type: Literal["SELECTION_CHANGED"]
    nodeId: Optional[str]
    ts: int


class GraphChangedEvent(TypedDict):
    type: Literal["GRAPH_CHANGED"]
    nodeId: Optional[str]
    ts: int


TraceEvent = Union[
    ExecStartEvent,
    ExecStateEvent,
    ExecDoneEvent,
    ExecErrorEvent,
    NodeMovedEvent,
    SelectionChangedEvent,
    GraphChangedEvent,
]
