"""Staged (hedged) racing: give a primary request a head start.

The primary runs alone for a warm-up window. If it succeeds in time, no
secondary request is ever sent. If it fails, or the window expires while it
is still running, every secondary is launched and the first success among
all of them, primary included, wins.

Example:
    from raceway import StagedRacer

    racer = StagedRacer(warm_up=0.2)
    response = await racer.first_then_start(
        "https://primary.example.com/data",
        ["https://replica-1.example.com/data", "https://replica-2.example.com/data"],
    )
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from typing import Any
from uuid import uuid4

from raceway.coordinator import BaseRacer, RaceScope, Success, as_batch
from raceway.errors import AggregateError
from raceway.executor import Executor
from raceway.observability.logging import LogContext
from raceway.observability.metrics import get_metrics

logger = logging.getLogger(__name__)


class StagedRacer(BaseRacer):
    """Runs a primary alone first, then races it against the secondaries.

    There is no overall deadline here. Wrap the call in ``asyncio.timeout``
    or configure a timeout on the executor to bound it.
    """

    kind = "staged"

    def __init__(
        self,
        executor: Executor | None = None,
        warm_up: float | None = None,
    ) -> None:
        """Initialize the staged racer.

        Args:
            executor: Executor performing each request (default: HttpxExecutor
                built from settings)
            warm_up: Default head start for the primary in seconds
                (default: settings.warm_up)
        """
        super().__init__(executor)
        if warm_up is None:
            from raceway.config import settings

            warm_up = settings.warm_up
        self.warm_up = warm_up

    async def first_then_start(
        self,
        primary: Any,
        secondaries: Iterable[Any] = (),
        warm_up: float | None = None,
    ) -> Any:
        """Race ``primary`` with a head start against ``secondaries``.

        Args:
            primary: Request launched immediately
            secondaries: Requests launched once the primary fails or is slow; a
                bare string is a single secondary
            warm_up: Head start in seconds, overriding the instance default

        Returns:
            The primary's response if it wins the warm-up, otherwise the
            first response from any launched request

        Raises:
            AggregateError: If the primary and every secondary failed; holds
                1 + len(secondaries) errors
        """
        backups = as_batch(secondaries)
        window = warm_up if warm_up is not None else self.warm_up
        metrics = get_metrics()
        start = time.perf_counter()

        with LogContext(race_id=str(uuid4())[:8], race_kind=self.kind):
            try:
                async with RaceScope(self.executor) as scope:
                    winner = await self._run_stages(scope, primary, backups, window)
            except AggregateError as e:
                metrics.races_total.labels(kind=self.kind, result="all_failed").inc()
                logger.warning(f"Primary and all {len(backups)} secondaries failed")
                raise
            finally:
                metrics.race_duration_seconds.labels(kind=self.kind).observe(
                    time.perf_counter() - start
                )

            metrics.races_total.labels(kind=self.kind, result="success").inc()
            source = "primary" if winner.index == 0 else f"secondary #{winner.index}"
            logger.info(
                f"Staged race won by {source} in {(time.perf_counter() - start) * 1000:.0f}ms"
            )
            return winner.response

    async def _run_stages(
        self,
        scope: RaceScope,
        primary: Any,
        secondaries: list[Any],
        window: float,
    ) -> Success:
        metrics = get_metrics()

        # Phase 1: primary alone
        scope.launch(primary)
        try:
            async with asyncio.timeout(window):
                outcome = await scope.next_outcome()
        except TimeoutError:
            reason = "warm_up_expired"
            logger.info(f"Primary still pending after {window}s, launching secondaries")
        else:
            if isinstance(outcome, Success):
                return outcome
            scope.record(outcome)
            reason = "primary_failed"
            logger.info("Primary failed, launching secondaries")

        # Phase 2: everything still pending races together
        metrics.staged_escalations_total.labels(reason=reason).inc()
        for request in secondaries:
            scope.launch(request)
        return await scope.first_success()


async def race_staged(
    primary: Any,
    warm_up: float,
    secondaries: Iterable[Any] = (),
    *,
    executor: Executor | None = None,
) -> Any:
    """Run one staged race and return the winning response.

    Without an executor, a default HttpxExecutor is created for this call
    and closed when the race ends.
    """
    async with StagedRacer(executor, warm_up=warm_up) as racer:
        return await racer.first_then_start(primary, secondaries)
