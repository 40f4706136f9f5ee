"""
Transition Results & Errors
===========================
Every store command reports whether it changed the structure. Precondition
violations are returned as ``Rejected`` values instead of being raised, so the
store stays usable after any input sequence and callers can assert on the
exact reason.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Union


class VoxelStructureError(Exception):
    """Base class for errors raised by this package."""


class InvariantViolation(VoxelStructureError):
    """Internal bookkeeping went out of sync. Only raised in strict mode."""


class RejectReason(StrEnum):
    OCCUPIED = "cell already occupied"
    OFF_GRID = "position is not grid aligned"
    BELOW_GROUND = "position is below ground level"
    UNKNOWN_CUBE = "no cube with that id"
    EMPTY_DRAFT = "no draft cubes to confirm"
    EMPTY_HISTORY = "nothing to undo"
    NOT_UNDOABLE = "last action cannot be undone"
    NO_WARNING = "no collapse warning is active"
    UNKNOWN_ACTION = "unknown action kind"
    INVALID_PAYLOAD = "invalid action payload"


@dataclass(frozen=True)
class Applied:
    kind: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    kind: str
    reason: RejectReason
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    def __str__(self) -> str:
        text = f"{self.kind} rejected: {self.reason}"
        return f"{text} ({self.detail})" if self.detail else text


TransitionResult = Union[Applied, Rejected]
