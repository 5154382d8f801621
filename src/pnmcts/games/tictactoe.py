"""Tic-tac-toe, with example hooks for the search engine."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from pnmcts.core.game import Outcome
from pnmcts.search.hooks import SearchHooks

LINES = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)
EMPTY = "."


def other(player: str) -> str:
    return "O" if player == "X" else "X"


@dataclass(frozen=True)
class TicTacToeState:
    """Immutable 3x3 board. Moves are cell indices 0-8, row by row."""

    cells: tuple[str, ...] = (EMPTY,) * 9
    to_move: str = "X"

    @classmethod
    def from_string(cls, board: str, to_move: str | None = None) -> TicTacToeState:
        """Parse a 9-character board such as "X.O.X...." (whitespace ignored).

        The player to move defaults to whoever has placed fewer marks.
        """
        cells = tuple(c for c in board if not c.isspace())
        if len(cells) != 9 or any(c not in "XO." for c in cells):
            raise ValueError(f"expected 9 cells of X, O or '.', got {board!r}")
        if to_move is None:
            to_move = "X" if cells.count("X") <= cells.count("O") else "O"
        return cls(cells, to_move)

    def winner(self) -> str | None:
        for a, b, c in LINES:
            if self.cells[a] != EMPTY and self.cells[a] == self.cells[b] == self.cells[c]:
                return self.cells[a]
        return None

    def legal_moves(self) -> list[int]:
        if self.winner() is not None:
            return []
        return [i for i, cell in enumerate(self.cells) if cell == EMPTY]

    def apply_move(self, move: int) -> TicTacToeState:
        if move not in self.legal_moves():
            raise ValueError(f"illegal move {move!r} in {self}")
        cells = list(self.cells)
        cells[move] = self.to_move
        return TicTacToeState(tuple(cells), other(self.to_move))

    def is_terminal(self) -> bool:
        return self.winner() is not None or EMPTY not in self.cells

    def outcome_for(self, player: str) -> Outcome:
        if not self.is_terminal():
            raise ValueError("game is not over")
        winner = self.winner()
        if winner is None:
            return Outcome.DRAW
        return Outcome.WIN if winner == player else Outcome.LOSS

    def current_mover(self) -> str:
        return self.to_move

    @property
    def fill_ratio(self) -> float:
        return sum(cell != EMPTY for cell in self.cells) / 9

    def __str__(self) -> str:
        rows = ["".join(self.cells[r * 3 : r * 3 + 3]) for r in range(3)]
        return "/".join(rows) + f" {self.to_move}"


def winning_cells(state: TicTacToeState, player: str) -> list[int]:
    """Empty cells that would complete a line for `player`."""
    cells = []
    for line in LINES:
        marks = [state.cells[i] for i in line]
        if marks.count(player) == 2 and marks.count(EMPTY) == 1:
            cell = line[marks.index(EMPTY)]
            if cell not in cells:
                cells.append(cell)
    return cells


def line_evaluation(state: TicTacToeState, player: str) -> float:
    """Score open lines: two-in-a-row counts more than a single mark."""
    score = 0.0
    opponent = other(player)
    for line in LINES:
        marks = [state.cells[i] for i in line]
        if opponent not in marks:
            score += {0: 0.0, 1: 0.05, 2: 0.15, 3: 0.5}[marks.count(player)]
        if player not in marks:
            score -= {0: 0.0, 1: 0.05, 2: 0.15, 3: 0.5}[marks.count(opponent)]
    return min(0.9, max(0.1, 0.5 + score / 2))


def center_first(state: TicTacToeState, moves: Sequence[int]) -> list[int]:
    """Order moves centre, corners, edges."""
    rank = {4: 0, 0: 1, 2: 1, 6: 1, 8: 1}
    return sorted(moves, key=lambda move: rank.get(move, 2))


def blocking_moves(state: TicTacToeState, moves: Sequence[int]) -> list[int]:
    """Winning cells first, else the cells that stop an immediate loss."""
    wins = winning_cells(state, state.to_move)
    if wins:
        return [m for m in moves if m in wins]
    blocks = winning_cells(state, other(state.to_move))
    return [m for m in moves if m in blocks]


def phase_exploration(state: TicTacToeState) -> float:
    """Explore widely on an empty board, narrowly once it fills up."""
    return 1.6 - state.fill_ratio


TICTACTOE_HOOKS = SearchHooks(
    exploration_constant=phase_exploration,
    move_ordering=center_first,
    static_evaluate=line_evaluation,
    threat_response=blocking_moves,
)
