"""CLI command for racing a batch of URLs.

Usage:
    raceway race https://mirror-a.example.com/f https://mirror-b.example.com/f
    raceway race URL URL --timeout 2.5 --format json
"""

from __future__ import annotations

import typer

from raceway.cli.common import run_race, setup_logging
from raceway.config import settings
from raceway.racer import Racer

app = typer.Typer(help="Race several URLs and print the first response")


@app.callback(invoke_without_command=True)
def race(
    urls: list[str] = typer.Argument(
        ...,
        help="Equivalent URLs to request concurrently",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Overall deadline in seconds, 0 for none (default: RACEWAY_RACE_TIMEOUT or none)",
    ),
    output_format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: text, json",
    ),
    body: bool = typer.Option(
        False,
        "--body",
        "-b",
        help="Print the winning response body",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every operation",
    ),
) -> None:
    """Send every URL at once and keep whichever answers first."""
    from rich.console import Console

    setup_logging(verbose)
    deadline = timeout if timeout is not None else settings.race_timeout

    run_race(
        lambda executor: Racer(executor, timeout=deadline).between(urls),
        output_format,
        body,
        Console(),
    )
