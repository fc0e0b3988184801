"""CLI command for a staged race: primary first, secondaries when it lags.

Usage:
    raceway staged https://primary.example.com/f https://replica.example.com/f
    raceway staged PRIMARY SECONDARY --warm-up 0.25 --format json
"""

from __future__ import annotations

import typer

from raceway.cli.common import run_race, setup_logging
from raceway.config import settings
from raceway.staged import StagedRacer

app = typer.Typer(help="Give a primary URL a head start, then race the rest")


@app.callback(invoke_without_command=True)
def staged(
    primary: str = typer.Argument(
        ...,
        help="URL requested first",
    ),
    secondaries: list[str] | None = typer.Argument(
        None,
        help="URLs requested once the primary fails or outlives the warm-up",
    ),
    warm_up: float | None = typer.Option(
        None,
        "--warm-up",
        "-w",
        help="Primary head start in seconds (default: RACEWAY_WARM_UP)",
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
    """Request PRIMARY alone, then hedge with SECONDARIES if it is slow or fails."""
    from rich.console import Console

    setup_logging(verbose)
    window = warm_up if warm_up is not None else settings.warm_up

    run_race(
        lambda executor: StagedRacer(executor, warm_up=window).first_then_start(
            primary, secondaries or []
        ),
        output_format,
        body,
        Console(),
    )
