"""Game contract and error types shared by every part of the engine."""

from pnmcts.core.errors import (
    ContractViolationError,
    EmptySearchError,
    NoLegalMovesError,
    PnmctsError,
    SearchConfigError,
)
from pnmcts.core.game import GameState, Move, Outcome

__all__ = [
    "ContractViolationError",
    "EmptySearchError",
    "GameState",
    "Move",
    "NoLegalMovesError",
    "Outcome",
    "PnmctsError",
    "SearchConfigError",
]
