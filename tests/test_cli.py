"""Tests for the command-line interface."""

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from pnmcts import __version__
from pnmcts.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """The CLI reconfigures loguru against the runner's captured stderr."""
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestCli:
    """Tests for the pnmcts commands."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_search_win_in_one(self) -> None:
        result = runner.invoke(
            app, ["search", "tictactoe", "--position", "XX.OO....", "-n", "100", "--seed", "1"]
        )
        assert result.exit_code == 0, result.output
        assert "Best move: 2" in result.output
        assert "proven" in result.output

    def test_search_debug_table(self) -> None:
        result = runner.invoke(app, ["search", "nim", "-p", "7", "-n", "200", "--debug"])
        assert result.exit_code == 0, result.output
        assert "Root moves" in result.output
        assert "PV:" in result.output

    def test_search_chess(self) -> None:
        result = runner.invoke(
            app, ["search", "chess", "-p", "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1", "-n", "200"]
        )
        assert result.exit_code == 0, result.output
        assert "Best move: a1a8" in result.output

    def test_search_with_config_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "search.yaml"
        config_file.write_text("search:\n  iterations: 30\n  seed: 2\nlogging:\n  level: WARNING\n")

        result = runner.invoke(app, ["search", "tictactoe", "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "30 iterations" in result.output

    def test_invalid_setting(self) -> None:
        result = runner.invoke(app, ["search", "tictactoe", "--set", "search.rave_k=-1"])
        assert result.exit_code == 2
        assert "Invalid configuration" in result.output

    def test_unknown_game(self) -> None:
        result = runner.invoke(app, ["search", "go"])
        assert result.exit_code != 0

    def test_finished_position(self) -> None:
        result = runner.invoke(app, ["search", "tictactoe", "-p", "XXXOO...."])
        assert result.exit_code == 1
        assert "Search failed" in result.output

    def test_ensemble(self) -> None:
        result = runner.invoke(
            app,
            [
                "ensemble",
                "tictactoe",
                "-p",
                "XX.OO....",
                "-n",
                "50",
                "--set",
                "ensemble.executor=serial",
                "--set",
                "ensemble.size=3",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Best move: 2" in result.output
        assert "majority" in result.output

    def test_match(self) -> None:
        result = runner.invoke(
            app,
            [
                "match",
                "nim",
                "-p",
                "4",
                "-n",
                "1000",
                "--opponent-iterations",
                "1000",
                "--seed",
                "0",
                "--set",
                "match.games=2",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "+1 =0 -1" in result.output
