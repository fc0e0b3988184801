"""Race a batch of equivalent requests and keep the first success.

Example:
    from raceway import Racer

    racer = Racer(timeout=2.0)
    response = await racer.between(
        [
            "https://mirror-a.example.com/index.json",
            "https://mirror-b.example.com/index.json",
        ]
    )
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from typing import Any
from uuid import uuid4

from raceway.coordinator import BaseRacer, RaceScope, as_batch
from raceway.errors import AggregateError, EmptyBatchError, RaceTimeoutError
from raceway.executor import Executor
from raceway.observability.logging import LogContext
from raceway.observability.metrics import get_metrics

logger = logging.getLogger(__name__)


class Racer(BaseRacer):
    """Fans a batch out to every request at once.

    Returns the first response; if all fail, raises AggregateError; if the
    overall deadline passes first, raises RaceTimeoutError.
    """

    kind = "race"

    def __init__(
        self,
        executor: Executor | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the racer.

        Args:
            executor: Executor performing each request (default: HttpxExecutor
                built from settings)
            timeout: Default overall deadline in seconds (None or <= 0 = unbounded)
        """
        super().__init__(executor)
        self.timeout = timeout

    async def between(self, requests: Iterable[Any], timeout: float | None = None) -> Any:
        """Send every request concurrently and return the first response.

        Args:
            requests: The batch; order does not affect the winner. A bare string
                is a batch of one.
            timeout: Overall deadline in seconds, overriding the instance default;
                0 disables it for this call

        Returns:
            The response of the first operation to succeed

        Raises:
            EmptyBatchError: If the batch is empty
            AggregateError: If every operation failed, errors in completion order
            RaceTimeoutError: If the deadline passed before any success
        """
        batch = as_batch(requests)
        deadline = timeout if timeout is not None else self.timeout
        if deadline is not None and deadline <= 0:
            deadline = None  # non-positive means no deadline
        metrics = get_metrics()

        if not batch:
            metrics.races_total.labels(kind=self.kind, result="empty").inc()
            raise EmptyBatchError()

        start = time.perf_counter()
        with LogContext(race_id=str(uuid4())[:8], race_kind=self.kind):
            logger.debug(f"Racing {len(batch)} request(s), timeout={deadline}")
            try:
                async with RaceScope(self.executor) as scope:
                    for request in batch:
                        scope.launch(request)
                    try:
                        async with asyncio.timeout(deadline):
                            winner = await scope.first_success()
                    except TimeoutError as e:
                        raise RaceTimeoutError(deadline, scope.errors) from e
            except AggregateError as e:
                metrics.races_total.labels(kind=self.kind, result="all_failed").inc()
                logger.warning(f"All {len(e.errors)} operation(s) failed")
                raise
            except RaceTimeoutError as e:
                metrics.races_total.labels(kind=self.kind, result="timeout").inc()
                logger.warning(f"Race timed out after {deadline}s, {len(e.errors)} failed")
                raise
            finally:
                metrics.race_duration_seconds.labels(kind=self.kind).observe(
                    time.perf_counter() - start
                )

            metrics.races_total.labels(kind=self.kind, result="success").inc()
            logger.info(
                f"Race won by operation #{winner.index} of {len(batch)} "
                f"in {(time.perf_counter() - start) * 1000:.0f}ms"
            )
            return winner.response


async def race(
    requests: Iterable[Any],
    timeout: float | None = None,
    *,
    executor: Executor | None = None,
) -> Any:
    """Race a batch once and return the first response.

    Without an executor, a default HttpxExecutor is created for this call
    and closed when the race ends.
    """
    async with Racer(executor, timeout=timeout) as racer:
        return await racer.between(requests)
