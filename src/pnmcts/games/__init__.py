"""Demo games implementing the game-state contract."""

from pnmcts.games.chess_board import CHESS_HOOKS, ChessState
from pnmcts.games.nim import NimState
from pnmcts.games.tictactoe import TICTACTOE_HOOKS, TicTacToeState
from pnmcts.games.tree import TreeGameState

__all__ = [
    "CHESS_HOOKS",
    "TICTACTOE_HOOKS",
    "ChessState",
    "NimState",
    "TicTacToeState",
    "TreeGameState",
]
