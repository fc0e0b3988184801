"""Error taxonomy for racing operations.

A race either returns exactly one response or raises exactly one error:

- AggregateError when every launched operation failed
- RaceTimeoutError when the overall deadline passed before any success

Single operation failures are only ever reported inside one of those two.
"""

from __future__ import annotations

from typing import Any


class RaceError(Exception):
    """Base exception for everything raised by raceway."""


class OperationError(RaceError):
    """One failed operation, wrapping the executor's exception unchanged."""

    def __init__(self, request: Any, error: BaseException):
        super().__init__(f"{_describe(request)}: {error!r}")
        self.request = request
        self.error = error
        self.__cause__ = error


class AggregateError(RaceError):
    """Every operation in a race failed.

    Errors are kept in the order the operations completed.
    """

    def __init__(self, errors: list[OperationError] | None = None):
        self.errors: list[OperationError] = list(errors or [])
        super().__init__(_format_errors(self.errors))

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)


class EmptyBatchError(AggregateError, ValueError):
    """A race was started with no requests."""

    def __init__(self) -> None:
        super().__init__([])
        self.args = ("cannot race an empty batch of requests",)


class RaceTimeoutError(RaceError, TimeoutError):
    """The overall deadline elapsed before any operation succeeded."""

    def __init__(self, timeout: float, errors: list[OperationError] | None = None):
        self.timeout = timeout
        self.errors: list[OperationError] = list(errors or [])
        message = f"race timed out after {timeout:g}s"
        if self.errors:
            message += f" ({len(self.errors)} operation(s) had already failed)"
        super().__init__(message)


class OperationCancelledError(RaceError):
    """The race no longer needs this operation's result."""


def _describe(request: Any) -> str:
    method = getattr(request, "method", None)
    url = getattr(request, "url", None)
    if method is not None and url is not None:
        return f"{method} {url}"
    return repr(request)


def _format_errors(errors: list[OperationError]) -> str:
    if not errors:
        return "0 errors occurred"
    if len(errors) == 1:
        return f"1 error occurred:\n\t* {errors[0]}"
    points = "\n".join(f"\t* {err}" for err in errors)
    return f"{len(errors)} errors occurred:\n{points}"
