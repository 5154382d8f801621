"""Adapter exposing python-chess positions through the game-state contract."""

from __future__ import annotations

import math
from collections.abc import Sequence

import chess

from pnmcts.core.game import Outcome
from pnmcts.search.hooks import SearchHooks

PIECE_VALUES = {
    chess.PAWN: 1,
    chess.KNIGHT: 3,
    chess.BISHOP: 3,
    chess.ROOK: 5,
    chess.QUEEN: 9,
    chess.KING: 0,
}


class ChessState:
    """Immutable wrapper around a `chess.Board`.

    Players are `chess.WHITE` / `chess.BLACK`, moves are `chess.Move`.
    Successor boards are copied without their move stack, so draws by
    repetition are not detected.
    """

    __slots__ = ("_board",)

    def __init__(self, board: chess.Board | None = None) -> None:
        self._board = board.copy(stack=False) if board is not None else chess.Board()

    @classmethod
    def from_fen(cls, fen: str) -> ChessState:
        return cls(chess.Board(fen))

    @property
    def board(self) -> chess.Board:
        """A copy of the position (the state itself never changes)."""
        return self._board.copy(stack=False)

    def fen(self) -> str:
        return self._board.fen()

    def legal_moves(self) -> list[chess.Move]:
        return list(self._board.legal_moves)

    def apply_move(self, move: chess.Move) -> ChessState:
        if not self._board.is_legal(move):
            raise ValueError(f"illegal move {move} in {self._board.fen()}")
        board = self._board.copy(stack=False)
        board.push(move)
        state = ChessState.__new__(ChessState)
        state._board = board
        return state

    def is_terminal(self) -> bool:
        return self._board.is_game_over()

    def outcome_for(self, player: chess.Color) -> Outcome:
        outcome = self._board.outcome()
        if outcome is None:
            raise ValueError("game is not over")
        if outcome.winner is None:
            return Outcome.DRAW
        return Outcome.WIN if outcome.winner == player else Outcome.LOSS

    def current_mover(self) -> chess.Color:
        return self._board.turn

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChessState):
            return NotImplemented
        return self._board.epd() == other._board.epd()

    def __hash__(self) -> int:
        return hash(self._board.epd())

    def __getstate__(self) -> str:
        return self._board.fen()

    def __setstate__(self, fen: str) -> None:
        self._board = chess.Board(fen)

    def __repr__(self) -> str:
        return f"ChessState({self._board.fen()!r})"


def material_balance(board: chess.Board, player: chess.Color) -> int:
    balance = 0
    for piece_type, value in PIECE_VALUES.items():
        balance += value * len(board.pieces(piece_type, player))
        balance -= value * len(board.pieces(piece_type, not player))
    return balance


def material_evaluation(state: ChessState, player: chess.Color) -> float:
    """Material balance squashed into [0.1, 0.9]."""
    return 0.5 + 0.4 * math.tanh(material_balance(state._board, player) / 10)


def forcing_first(state: ChessState, moves: Sequence[chess.Move]) -> list[chess.Move]:
    """Order checks, then captures, then quiet moves."""
    board = state._board

    def rank(move: chess.Move) -> int:
        if board.gives_check(move):
            return 0
        if board.is_capture(move):
            return 1
        return 2

    return sorted(moves, key=rank)


def position_key(state: ChessState) -> str:
    return state._board.epd()


CHESS_HOOKS = SearchHooks(
    move_ordering=forcing_first,
    static_evaluate=material_evaluation,
    state_key=position_key,
)
