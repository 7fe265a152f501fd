from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Outcome(str, Enum):
    """Category of a service call."""

    OK = "ok"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a Quote Service call.

    `value` is set for OK. A failed `get_all` still carries an empty list so
    callers can render a degraded page.
    """

    outcome: Outcome
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def not_found(self) -> bool:
        return self.outcome is Outcome.NOT_FOUND

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(Outcome.OK, value)

    @classmethod
    def missing(cls) -> "Result[T]":
        return cls(Outcome.NOT_FOUND)

    @classmethod
    def failure(cls, error: Exception, value: T | None = None) -> "Result[T]":
        return cls(Outcome.FAILED, value, error)
