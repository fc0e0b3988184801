"""Helpers shared by the race and staged commands."""

from __future__ import annotations

import asyncio
import json
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable

import httpx
import typer
from rich.markup import escape

from raceway.config import settings
from raceway.errors import AggregateError, RaceTimeoutError
from raceway.executor import HttpxExecutor
from raceway.observability.logging import configure_logging

if TYPE_CHECKING:
    from rich.console import Console

EXIT_ALL_FAILED = 1
EXIT_TIMEOUT = 2


def build_executor() -> HttpxExecutor:
    """Create the executor used by CLI commands."""
    return HttpxExecutor.from_settings(settings)


def setup_logging(verbose: bool) -> None:
    configure_logging(
        json_format=settings.log_json,
        level="DEBUG" if verbose else settings.log_level,
    )


def run_race(
    race_fn: Callable[[HttpxExecutor], Awaitable[httpx.Response]],
    output_format: str,
    show_body: bool,
    console: Console,
) -> None:
    """Run one race to completion and report the winner or the failure."""

    async def _run() -> httpx.Response:
        async with build_executor() as executor:
            return await race_fn(executor)

    start = time.perf_counter()
    try:
        response = asyncio.run(_run())
    except RaceTimeoutError as e:
        _report_errors(f"Timed out after {e.timeout:g}s", e.errors, output_format, console)
        raise typer.Exit(code=EXIT_TIMEOUT)
    except AggregateError as e:
        _report_errors("All requests failed", e.errors, output_format, console)
        raise typer.Exit(code=EXIT_ALL_FAILED)

    elapsed_ms = (time.perf_counter() - start) * 1000
    result: dict[str, Any] = {
        "url": str(response.request.url),
        "status": response.status_code,
        "elapsedMs": round(elapsed_ms, 2),
    }
    if show_body:
        result["body"] = response.text

    if output_format == "json":
        typer.echo(json.dumps(result, indent=2))
        return

    console.print(f"[green]Winner:[/green] {result['url']}")
    console.print(f"  [blue]Status:[/blue]  {result['status']}")
    console.print(f"  [blue]Elapsed:[/blue] {elapsed_ms:.0f}ms")
    if show_body:
        console.print()
        console.print(response.text, markup=False, highlight=False)


def _report_errors(
    title: str,
    errors: list[Any],
    output_format: str,
    console: Console,
) -> None:
    if output_format == "json":
        typer.echo(json.dumps({"error": title, "errors": [str(e) for e in errors]}, indent=2))
        return

    console.print(f"[red]{title}[/red] ({len(errors)} error(s))")
    for error in errors:
        console.print(f"  [red]✗[/red] {escape(str(error))}", highlight=False)
