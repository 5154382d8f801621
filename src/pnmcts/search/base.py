"""Base engine protocol for move selection."""

from collections.abc import Hashable
from typing import Any, Protocol

import numpy as np

from pnmcts.core.errors import NoLegalMovesError


class Engine(Protocol):
    """Protocol for engines that can select moves.

    Engines receive a game state and return a move for the player to move.
    They must not modify the state.
    """

    @property
    def name(self) -> str:
        """Return the name of the engine for logging/display."""
        ...

    def select_move(self, state: Any) -> Hashable:
        """Select a move in the given position.

        Args:
            state: Current game state. Must not be terminal.

        Returns:
            The selected move.
        """
        ...

    def reset(self) -> None:
        """Reset any internal state (for engines that keep a tree).

        Stateless engines make this a no-op.
        """
        ...


class RandomEngine:
    """Baseline engine playing uniformly random legal moves."""

    def __init__(self, seed: int | None = None) -> None:
        self._seed = seed
        self._rng = np.random.default_rng(seed)

    @property
    def name(self) -> str:
        return "Random"

    def select_move(self, state: Any) -> Hashable:
        moves = list(state.legal_moves())
        if not moves:
            raise NoLegalMovesError(f"no legal moves: {state!r}")
        return moves[int(self._rng.integers(len(moves)))]

    def reset(self) -> None:
        self._rng = np.random.default_rng(self._seed)
