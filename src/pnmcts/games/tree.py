"""Games given as an explicit tree, for puzzles and tests.

A tree is a nested mapping from move to subtree. A leaf is the name of the
winner ("A" or "B") or "draw". Player "A" moves first and turns alternate:

    {"a": {"x": "A", "y": "B"}, "b": "draw"}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pnmcts.core.game import Outcome

GameTree = str | Mapping[str, Any]
PLAYERS = ("A", "B")
DRAW = "draw"


def _validate(tree: GameTree, path: tuple[str, ...] = ()) -> None:
    if isinstance(tree, str):
        if tree not in (*PLAYERS, DRAW):
            raise ValueError(f"leaf at {'/'.join(path) or 'root'} must be A, B or draw: {tree!r}")
        return
    if not tree:
        raise ValueError(f"internal node at {'/'.join(path) or 'root'} has no moves")
    for move, subtree in tree.items():
        _validate(subtree, (*path, move))


@dataclass(frozen=True)
class TreeGameState:
    """Position in an explicit game tree, identified by the moves played."""

    tree: GameTree = field(compare=False, hash=False, repr=False)
    path: tuple[str, ...] = ()

    @classmethod
    def start(cls, tree: GameTree) -> TreeGameState:
        _validate(tree)
        return cls(tree)

    @property
    def node(self) -> GameTree:
        node = self.tree
        for move in self.path:
            node = node[move]
        return node

    def legal_moves(self) -> list[str]:
        node = self.node
        return [] if isinstance(node, str) else list(node)

    def apply_move(self, move: str) -> TreeGameState:
        node = self.node
        if isinstance(node, str) or move not in node:
            raise ValueError(f"illegal move {move!r} at {'/'.join(self.path) or 'root'}")
        return TreeGameState(self.tree, (*self.path, move))

    def is_terminal(self) -> bool:
        return isinstance(self.node, str)

    def outcome_for(self, player: str) -> Outcome:
        node = self.node
        if not isinstance(node, str):
            raise ValueError("game is not over")
        if node == DRAW:
            return Outcome.DRAW
        return Outcome.WIN if node == player else Outcome.LOSS

    def current_mover(self) -> str:
        return PLAYERS[len(self.path) % 2]
