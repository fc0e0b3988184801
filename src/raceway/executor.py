"""Executors perform a single request on behalf of a race.

A race never talks to the network itself. It hands each request to an
Executor together with the race's CancellationToken and treats a returned
value as success and a raised exception as failure.

Example:
    async with HttpxExecutor.from_settings() as executor:
        response = await Racer(executor).between(
            ["https://mirror-a.example.com/pkg", "https://mirror-b.example.com/pkg"]
        )
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, runtime_checkable

import httpx

from raceway.cancellation import CancellationToken

if TYPE_CHECKING:
    from raceway.config import Settings

logger = logging.getLogger(__name__)

# Type alias for plain async functions usable as executors
ExecuteFn = Callable[[Any, CancellationToken], Awaitable[Any]]


@runtime_checkable
class Executor(Protocol):
    """Capability that runs one request and returns its response.

    Implementations must be safe to call concurrently and must eventually
    return or raise once per call, even after the token is cancelled.
    """

    async def execute(self, request: Any, token: CancellationToken) -> Any: ...


class CallableExecutor:
    """Adapts an ``async def fn(request, token)`` into an Executor."""

    def __init__(self, fn: ExecuteFn) -> None:
        self.fn = fn

    async def execute(self, request: Any, token: CancellationToken) -> Any:
        return await self.fn(request, token)


class HttpxExecutor:
    """Executor sending requests through an httpx.AsyncClient.

    Requests may be ``httpx.Request`` objects or plain URL strings, which are
    sent as GET. Responses are returned with their body already read, and
    any HTTP status counts as success.

    The client's own timeout applies per request. A request hitting it fails
    like any other transport error; the race deadline is separate.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        owns_client: bool | None = None,
    ) -> None:
        self.client = client or httpx.AsyncClient()
        self._owns_client = client is None if owns_client is None else owns_client

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> HttpxExecutor:
        """Build an executor owning a client configured from Settings."""
        if config is None:
            from raceway.config import settings

            config = settings

        client = httpx.AsyncClient(
            timeout=config.http_timeout,
            follow_redirects=config.follow_redirects,
            limits=httpx.Limits(max_connections=config.http_max_connections),
            headers={"User-Agent": config.user_agent},
        )
        return cls(client, owns_client=True)

    def build_request(self, request: httpx.Request | str) -> httpx.Request:
        if isinstance(request, httpx.Request):
            return request
        return self.client.build_request("GET", request)

    async def execute(
        self, request: httpx.Request | str, token: CancellationToken
    ) -> httpx.Response:
        """Send one request, abandoning it if the race is decided first.

        Raises:
            OperationCancelledError: If the token fires before a response arrives
            httpx.HTTPError: On transport failures and client timeouts
        """
        token.raise_if_cancelled()
        http_request = self.build_request(request)
        logger.debug(f"Sending {http_request.method} {http_request.url}")
        return await token.guard(self.client.send(http_request))

    async def aclose(self) -> None:
        """Close the client if this executor created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> HttpxExecutor:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
