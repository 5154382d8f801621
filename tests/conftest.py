"""Pytest configuration and shared fixtures."""

import pytest

from pnmcts.games import NimState, TicTacToeState, TreeGameState
from pnmcts.search import SearchConfig


@pytest.fixture
def immediate_win() -> TreeGameState:
    """Player A can win on the spot with "win"; the other moves are not wins."""
    return TreeGameState.start(
        {
            "win": "A",
            "other": {"x": "B", "y": "draw"},
            "third": {"z": "draw"},
        }
    )


@pytest.fixture
def forced_loss() -> TreeGameState:
    """Every move of player A loses against best play."""
    return TreeGameState.start(
        {
            "a": "B",
            "b": {"x": "B", "y": "A"},
        }
    )


@pytest.fixture
def winning_nim() -> NimState:
    """Pile of 5 with takes of 1-3: taking 1 is the only winning move."""
    return NimState(5)


@pytest.fixture
def losing_nim() -> NimState:
    """Pile of 4 with takes of 1-3: lost for the player to move."""
    return NimState(4)


@pytest.fixture
def tictactoe_win_in_one() -> TicTacToeState:
    """X to move completes the top row at cell 2."""
    return TicTacToeState.from_string("XX. OO. ...", to_move="X")


@pytest.fixture
def seeded_config() -> SearchConfig:
    """Small, reproducible budget."""
    return SearchConfig(iterations=200, seed=7)
