"""Shared plumbing for racing operations against each other.

A RaceScope owns everything one race call needs:
- a CancellationToken shared by every operation it launches
- a single outcome queue (many producers, one consumer)
- the failures collected so far, in completion order

Producers never block: the queue is unbounded, so an operation that finishes
after the race is decided still completes its send and exits. Its outcome is
simply never read.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from types import TracebackType
from typing import Any

from raceway.cancellation import CancellationToken
from raceway.errors import AggregateError, OperationError
from raceway.executor import Executor, HttpxExecutor
from raceway.observability.metrics import get_metrics

logger = logging.getLogger(__name__)

# Strong references to running operations; the event loop only keeps weak ones
_inflight: set[asyncio.Task[None]] = set()


@dataclass(frozen=True)
class Success:
    """An operation returned a response."""

    request: Any
    index: int
    response: Any


@dataclass(frozen=True)
class Failure:
    """An operation raised."""

    request: Any
    index: int
    error: BaseException


Outcome = Success | Failure


def as_batch(requests: Iterable[Any]) -> list[Any]:
    """Materialize a batch; a bare str or bytes is one request, not many."""
    if isinstance(requests, (str, bytes)):
        return [requests]
    return list(requests)


class RaceScope:
    """One race's cancellation scope and merge point.

    Usage:
        async with RaceScope(executor) as scope:
            for request in requests:
                scope.launch(request)
            winner = await scope.first_success()

    Leaving the block cancels the token whether the race was won or not.
    """

    def __init__(self, executor: Executor, token: CancellationToken | None = None) -> None:
        self.executor = executor
        self.token = token if token is not None else CancellationToken()
        self.errors: list[OperationError] = []
        self.launched = 0
        self._pending = 0
        self._outcomes: asyncio.Queue[Outcome] = asyncio.Queue()

    @property
    def pending(self) -> int:
        """Operations launched whose outcome has not been consumed yet."""
        return self._pending

    def launch(self, request: Any) -> None:
        """Start one operation in the background."""
        index = self.launched
        task = asyncio.create_task(self._run(request, index))
        _inflight.add(task)
        task.add_done_callback(_inflight.discard)
        self.launched += 1
        self._pending += 1
        logger.debug(f"Launched operation #{index}")

    async def _run(self, request: Any, index: int) -> None:
        metrics = get_metrics()
        try:
            response = await self.executor.execute(request, self.token)
        except asyncio.CancelledError as e:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            # Raised by something the executor awaited, not by cancelling this task
            metrics.operations_total.labels(outcome="failure").inc()
            self._outcomes.put_nowait(Failure(request, index, e))
        except Exception as e:
            metrics.operations_total.labels(outcome="failure").inc()
            self._outcomes.put_nowait(Failure(request, index, e))
        else:
            metrics.operations_total.labels(outcome="success").inc()
            self._outcomes.put_nowait(Success(request, index, response))

    async def next_outcome(self) -> Outcome:
        """Wait for the next operation to finish.

        Cancelling this wait does not lose the outcome; it stays queued.
        """
        outcome = await self._outcomes.get()
        self._pending -= 1
        return outcome

    def record(self, failure: Failure) -> OperationError:
        """Keep a failure for the aggregate error."""
        error = OperationError(failure.request, failure.error)
        self.errors.append(error)
        logger.debug(f"Operation #{failure.index} failed: {failure.error!r}")
        return error

    async def first_success(self) -> Success:
        """Wait until an operation succeeds or all pending ones have failed.

        Raises:
            AggregateError: If every pending operation failed
        """
        while self._pending:
            outcome = await self.next_outcome()
            if isinstance(outcome, Success):
                return outcome
            self.record(outcome)
        raise AggregateError(self.errors)

    def close(self, reason: str = "race finished") -> None:
        """Tell in-flight operations their results are no longer needed."""
        self.token.cancel(reason)
        if self._pending:
            logger.debug(f"Abandoning {self._pending} in-flight operation(s)")

    async def __aenter__(self) -> RaceScope:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class BaseRacer:
    """Executor ownership shared by the racer front ends.

    A racer built without an executor creates a default HttpxExecutor and
    closes it in aclose(); an injected executor is left to its owner.
    """

    kind = "race"

    def __init__(self, executor: Executor | None = None) -> None:
        self._owns_executor = executor is None
        self.executor = executor if executor is not None else HttpxExecutor.from_settings()

    async def aclose(self) -> None:
        if self._owns_executor and isinstance(self.executor, HttpxExecutor):
            await self.executor.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
