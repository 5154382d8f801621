"""Single-pile subtraction game.

Players alternately remove between 1 and `max_take` stones; whoever takes
the last stone wins. Positions where the pile is a multiple of
`max_take + 1` are lost for the player to move, which makes the game a
convenient target for the proof-number solver.
"""

from __future__ import annotations

from dataclasses import dataclass

from pnmcts.core.game import Outcome

PLAYERS = (0, 1)


@dataclass(frozen=True)
class NimState:
    """Pile size and player to move. A move is the number of stones taken."""

    pile: int
    max_take: int = 3
    to_move: int = 0

    def __post_init__(self) -> None:
        if self.pile < 0 or self.max_take < 1:
            raise ValueError(f"invalid nim state: pile={self.pile}, max_take={self.max_take}")

    def legal_moves(self) -> list[int]:
        return list(range(1, min(self.max_take, self.pile) + 1))

    def apply_move(self, move: int) -> NimState:
        if not 1 <= move <= min(self.max_take, self.pile):
            raise ValueError(f"cannot take {move!r} from a pile of {self.pile}")
        return NimState(self.pile - move, self.max_take, 1 - self.to_move)

    def is_terminal(self) -> bool:
        return self.pile == 0

    def outcome_for(self, player: int) -> Outcome:
        if not self.is_terminal():
            raise ValueError("game is not over")
        # The player who just moved took the last stone.
        return Outcome.LOSS if player == self.to_move else Outcome.WIN

    def current_mover(self) -> int:
        return self.to_move

    def is_losing_for_mover(self) -> bool:
        return self.pile % (self.max_take + 1) == 0
