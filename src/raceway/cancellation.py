"""Cooperative cancellation scope shared by the operations of one race.

Cancelling a token only signals that a result is no longer needed. Executors
decide how quickly they stop: long-running ones check ``token.cancelled`` or
wrap their I/O in ``token.guard(...)``.

Example:
    token = CancellationToken()

    async def fetch(request, token):
        return await token.guard(client.send(request))

    token.cancel()  # idempotent
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from raceway.errors import OperationCancelledError

T = TypeVar("T")


class CancellationToken:
    """Idempotent cancel signal backed by an asyncio.Event."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        """Signal that results are no longer needed.

        Only the first reason is kept.
        """
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError(self.reason or "operation cancelled")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        If the token is cancelled before the awaitable finishes, the
        awaitable's task is cancelled and OperationCancelledError is raised.
        A result that is already available wins over a simultaneous cancel.

        Raises:
            OperationCancelledError: If the token was cancelled first
        """
        if self._event.is_set():
            # Close a bare coroutine so it does not warn about never being awaited
            close = getattr(awaitable, "close", None)
            if close is not None:
                close()
            self.raise_if_cancelled()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()

        if work.done() and not work.cancelled():
            return work.result()
        raise OperationCancelledError(self.reason or "operation cancelled")
