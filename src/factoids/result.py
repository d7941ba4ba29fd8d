"""Two-variant result type used by every store operation.

An operation either succeeds with ``Ok(value)`` or reports a data-driven
failure with ``Fail(reason)``. Failures are returned, never raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


class FailReason(str, Enum):
    """Reasons a store operation can fail."""

    NO_FACTOID = "nofactoid"
    MAX_ALIAS_DEPTH_REACHED = "maxaliasdepthreached"
    FROZEN = "frozen"
    DNE = "dne"
    UNCHANGED = "unchanged"
    NO_MESSAGE_LEFT = "nomessageleft"
    MESSAGE_LENGTH_EXCEEDED = "messagelengthexceeded"
    AT_SYMBOL_IN_KEY = "atsymbolinkey"
    UNSAFE_REPLACE = "unsafereplace"
    ADMIN_CHECK_TIMEOUT = "admincheck_timeout"


class UnwrapError(Exception):
    """Raised when unwrapping a Fail."""

    def __init__(self, reason: Any) -> None:
        super().__init__(f"Unhandled error value: {reason}")
        self.reason = reason


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_fail(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.value))

    def map_fail(self, fn: Callable[[Any], Any]) -> "Ok[T]":
        return self

    def and_then(self, fn: "Callable[[T], Outcome[U]]") -> "Outcome[U]":
        return fn(self.value)


@dataclass(frozen=True)
class Fail:
    """Failed outcome carrying a reason.

    The reason is a FailReason for failures the store detects itself, or
    whatever a pre-commit hook chose to report.
    """

    reason: FailReason | str

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_fail(self) -> bool:
        return True

    def unwrap(self) -> Any:
        raise UnwrapError(self.reason)

    def map(self, fn: Callable[[Any], Any]) -> "Fail":
        return self

    def map_fail(self, fn: Callable[[Any], Any]) -> "Fail":
        return Fail(fn(self.reason))

    def and_then(self, fn: Callable[[Any], Any]) -> "Fail":
        return self


Outcome = Union[Ok[T], Fail]


def first_failure(*outcomes: "Outcome[Any]") -> Fail | None:
    """Return the first Fail among outcomes, or None if all succeeded."""
    for outcome in outcomes:
        if isinstance(outcome, Fail):
            return outcome
    return None
