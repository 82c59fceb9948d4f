"""
Tagged results returned by every table operation.

Table operations never raise into their caller. A failed action comes back as
an ``ActionResult`` whose ``error`` names the failure kind and carries a
message meant for the player who sent the action.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(enum.Enum):
    VALIDATION = "validation"
    PRECONDITION = "precondition"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class ActionError:
    kind: ErrorKind
    message: str


@dataclass
class ActionResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[ActionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "ActionResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "ActionResult[T]":
        return cls(error=ActionError(kind, message))


def invalid(message: str) -> ActionResult:
    return ActionResult.failure(ErrorKind.VALIDATION, message)


def refused(message: str) -> ActionResult:
    return ActionResult.failure(ErrorKind.PRECONDITION, message)


def missing(message: str) -> ActionResult:
    return ActionResult.failure(ErrorKind.NOT_FOUND, message)
