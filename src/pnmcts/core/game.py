"""Game-state contract consumed by the search engine.

The engine never knows the rules of the game it searches. Everything it
needs is reached through the small `GameState` protocol below, which a
rules engine (or a thin adapter around one) implements.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from enum import Enum
from typing import Protocol, TypeAlias

Move: TypeAlias = Hashable


class Outcome(Enum):
    """Result of a finished game from one player's point of view."""

    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"

    @property
    def score(self) -> float:
        """Outcome on the [0, 1] value scale used throughout the search."""
        if self is Outcome.WIN:
            return 1.0
        if self is Outcome.LOSS:
            return 0.0
        return 0.5

    def flipped(self) -> Outcome:
        """The same result seen from the other player."""
        if self is Outcome.WIN:
            return Outcome.LOSS
        if self is Outcome.LOSS:
            return Outcome.WIN
        return Outcome.DRAW


class GameState(Protocol):
    """Protocol for immutable two-player game states.

    States are treated as values: `apply_move` must return a new state and
    leave the receiver untouched. Moves must be hashable, and
    `legal_moves` must return them in a deterministic order so that a
    seeded search is reproducible.
    """

    def legal_moves(self) -> Sequence[Move]:
        """Return the legal moves for the player to move."""
        ...

    def apply_move(self, move: Move) -> GameState:
        """Return the successor state after playing `move`."""
        ...

    def is_terminal(self) -> bool:
        """Whether the game is over."""
        ...

    def outcome_for(self, player: Hashable) -> Outcome:
        """Result for `player`. Only valid on terminal states."""
        ...

    def current_mover(self) -> Hashable:
        """Identity of the player to move."""
        ...
