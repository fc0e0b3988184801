"""Tests for the raceway CLI."""

import asyncio
import json
from unittest.mock import patch

import httpx
import pytest
from typer.testing import CliRunner

from raceway.cli import app
from raceway.cli.common import EXIT_ALL_FAILED, EXIT_TIMEOUT
from raceway.executor import HttpxExecutor

runner = CliRunner()

# Host -> (delay seconds, body); missing hosts fail to resolve
MIRRORS = {
    "slow.test": (0.5, "slow body"),
    "fast.test": (0.0, "fast body"),
}


async def mirror_handler(request: httpx.Request) -> httpx.Response:
    if request.url.host not in MIRRORS:
        raise httpx.ConnectError(f"unresolvable host {request.url.host}", request=request)
    delay, body = MIRRORS[request.url.host]
    await asyncio.sleep(delay)
    return httpx.Response(200, text=body)


@pytest.fixture(autouse=True)
def mock_executor():
    """Route CLI requests through the mirror transport."""

    def build() -> HttpxExecutor:
        client = httpx.AsyncClient(transport=httpx.MockTransport(mirror_handler))
        return HttpxExecutor(client, owns_client=True)

    with (
        patch("raceway.cli.common.build_executor", side_effect=build) as mock_build,
        patch("raceway.cli.common.configure_logging"),
    ):
        yield mock_build


class TestRaceCommand:
    """Tests for `raceway race`."""

    def test_prints_winner(self) -> None:
        """The fastest URL is reported."""
        result = runner.invoke(app, ["race", "http://slow.test/", "http://fast.test/"])

        assert result.exit_code == 0
        assert "Winner: http://fast.test/" in result.output
        assert "200" in result.output

    def test_json_output_with_body(self) -> None:
        """JSON output carries URL, status and body."""
        result = runner.invoke(
            app, ["race", "http://slow.test/", "http://fast.test/", "--format", "json", "--body"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["url"] == "http://fast.test/"
        assert data["status"] == 200
        assert data["body"] == "fast body"

    def test_all_failed_exit_code(self) -> None:
        """Every URL failing exits with EXIT_ALL_FAILED and lists the errors."""
        result = runner.invoke(app, ["race", "http://nowhere.test/", "http://void.test/"])

        assert result.exit_code == EXIT_ALL_FAILED
        assert "All requests failed" in result.output
        assert "nowhere.test" in result.output
        assert "void.test" in result.output

    def test_timeout_exit_code(self) -> None:
        """A race deadline exits with EXIT_TIMEOUT."""
        result = runner.invoke(
            app, ["race", "http://slow.test/", "--timeout", "0.05", "--format", "json"]
        )

        assert result.exit_code == EXIT_TIMEOUT
        data = json.loads(result.output)
        assert data["error"] == "Timed out after 0.05s"

    def test_zero_timeout_disables_deadline(self) -> None:
        """--timeout 0 waits for the slow mirror instead of timing out."""
        result = runner.invoke(app, ["race", "http://slow.test/", "--timeout", "0"])

        assert result.exit_code == 0
        assert "Winner: http://slow.test/" in result.output

    def test_requires_urls(self) -> None:
        """At least one URL is required."""
        result = runner.invoke(app, ["race"])
        assert result.exit_code != 0


class TestStagedCommand:
    """Tests for `raceway staged`."""

    def test_slow_primary_hedged(self) -> None:
        """A slow primary loses to a secondary after the warm-up."""
        result = runner.invoke(
            app,
            ["staged", "http://slow.test/", "http://fast.test/", "--warm-up", "0.01"],
        )

        assert result.exit_code == 0
        assert "Winner: http://fast.test/" in result.output

    def test_primary_only(self) -> None:
        """No secondaries: the primary's answer is printed."""
        result = runner.invoke(app, ["staged", "http://fast.test/", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["url"] == "http://fast.test/"

    def test_all_failed(self) -> None:
        """Primary and secondary failing exits with EXIT_ALL_FAILED."""
        result = runner.invoke(
            app,
            ["staged", "http://nowhere.test/", "http://void.test/", "--format", "json"],
        )

        assert result.exit_code == EXIT_ALL_FAILED
        data = json.loads(result.output)
        assert len(data["errors"]) == 2


class TestHelp:
    """Top-level help."""

    def test_lists_commands(self) -> None:
        """Both commands are listed."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "race" in result.output
        assert "staged" in result.output
