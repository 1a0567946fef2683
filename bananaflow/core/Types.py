from enum import Enum, auto
from typing import NamedTuple


class NodeKind(Enum):
    INPUT = "input"
    PROCESS = "process"
    OUTPUT = "output"

    @staticmethod
    def parse(value: str) -> 'NodeKind':
        try:
            return NodeKind(value.lower())
        except ValueError:
            raise ValueError(f"Unknown node kind '{value}'")


class ExecState(Enum):
    IDLE = auto()
    RUNNING = auto()
    SUCCEEDED = auto()
    FAILED = auto()


class RunStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REJECTED = "rejected"   # a run was already in flight


class PointerTarget(Enum):
    NODE = "node"
    # the text control inside a node; never starts a drag
    PAYLOAD_EDITOR = "payload_editor"


class AppMode(Enum):
    TEXT_TO_IMAGE = "TEXT_TO_IMAGE"
    IMAGE_TO_IMAGE = "IMAGE_TO_IMAGE"
    WORKFLOW = "WORKFLOW"


class Position(NamedTuple):
    x: float
    y: float

    def __add__(self, other: 'Position') -> 'Position':
        return Position(self.x + other[0], self.y + other[1])

    def __sub__(self, other: 'Position') -> 'Position':
        return Position(self.x - other[0], self.y - other[1])

    def to_dict(self):
        return {"x": self.x, "y": self.y}
