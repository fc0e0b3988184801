"""CLI commands for raceway.

Provides command-line interface using Typer:
- raceway race: Race several equivalent URLs
- raceway staged: Primary URL first, secondaries after a warm-up

Usage:
    raceway --help
    raceway race https://a.example.com/f https://b.example.com/f --timeout 2
    raceway staged https://a.example.com/f https://b.example.com/f --warm-up 0.2
"""

import typer

from raceway.cli.race_cmd import app as race_app
from raceway.cli.staged_cmd import app as staged_app

# Main CLI application
app = typer.Typer(
    name="raceway",
    help="raceway: race redundant endpoints and keep the first answer",
    no_args_is_help=True,
)

# Add subcommands
app.add_typer(race_app, name="race")
app.add_typer(staged_app, name="staged")


@app.callback()
def callback() -> None:
    """raceway: race redundant endpoints and keep the first answer."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
