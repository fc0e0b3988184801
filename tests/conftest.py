"""Global pytest configuration and fixtures.

Provides a scripted executor whose operations finish after a fixed delay,
either returning a value or raising, so race timing can be asserted.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from raceway.cancellation import CancellationToken
from raceway.errors import OperationCancelledError


@dataclass
class ScriptedExecutor:
    """Executor double driven by a request -> (delay, result) plan.

    A result that is an exception is raised after the delay.

    Records every call, and which operations saw the race's cancellation
    (only when ``cooperative`` is set, since they must watch the token).
    """

    plan: dict[Any, tuple[float, Any]]
    cooperative: bool = False
    calls: list[Any] = field(default_factory=list)
    cancelled: list[Any] = field(default_factory=list)
    finished: list[Any] = field(default_factory=list)

    async def execute(self, request: Any, token: CancellationToken) -> Any:
        self.calls.append(request)
        delay, result = self.plan[request]
        try:
            if self.cooperative:
                await token.guard(asyncio.sleep(delay))
            else:
                await asyncio.sleep(delay)
        except OperationCancelledError:
            self.cancelled.append(request)
            raise
        self.finished.append(request)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def scripted():
    """Factory for ScriptedExecutor instances."""

    def _make(plan: dict[Any, tuple[float, Any]], cooperative: bool = False) -> ScriptedExecutor:
        return ScriptedExecutor(plan=plan, cooperative=cooperative)

    return _make
