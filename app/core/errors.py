"""
Engine error taxonomy.

The allocation engine never raises for business-rule failures. Each command
returns an OperationResult carrying either a value or an ErrorKind, and the
caller (an API route, a script) decides how to report it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"                    # student/opportunity/application/representative missing
    FORBIDDEN = "forbidden"                    # actor does not own the record or has the wrong role
    INVALID_STATE = "invalid_state"            # status does not allow the operation
    CAPACITY_EXCEEDED = "capacity_exceeded"    # application cap, creation cap or slot cap
    INELIGIBLE_STUDENT = "ineligible_student"  # major/level mismatch
    INVALID_INPUT = "invalid_input"            # malformed opportunity draft


# HTTP status used by the API layer for each kind
HTTP_STATUS_BY_ERROR = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.CAPACITY_EXCEEDED: 409,
    ErrorKind.INELIGIBLE_STUDENT: 422,
    ErrorKind.INVALID_INPUT: 422,
}


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Outcome of an engine command.

    Exactly one of `value` / `error` is meaningful:
        ok=True  -> value holds the command's result (may be None for
                    commands that only mutate)
        ok=False -> error holds the ErrorKind and message explains it
    """
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None, message: str = "") -> "OperationResult[T]":
        return cls(value=value, message=message)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "OperationResult[T]":
        return cls(error=error, message=message)
