"""Choice of the move to play once the search budget is spent."""

from __future__ import annotations

from collections.abc import Hashable

from pnmcts.core.errors import EmptySearchError
from pnmcts.search.node import NodeArena, NodeHandle
from pnmcts.search.proof import ProofStatus


def select_final_move(
    arena: NodeArena,
    root: NodeHandle,
    *,
    use_pns: bool = True,
    trust_visits: int = 5,
) -> tuple[Hashable, NodeHandle]:
    """Pick the root move to play.

    1. A Proven child (certain win) is returned immediately, whatever its
       visit count.
    2. Disproven children are never returned while a non-Disproven child
       exists. Those with at least `trust_visits` visits are excluded;
       those below it are demoted behind every other child.
    3. If every child is Disproven there is no forced win. The child with
       the best mean value for the root mover is returned, so a draw is
       preferred to a loss; visits break ties.
    4. Otherwise the most visited candidate wins; ties go to the child
       expanded first.

    Raises:
        EmptySearchError: If the root has no expanded child.
    """
    children = arena.children(root)
    if not children:
        raise EmptySearchError("no root child has been expanded; run at least one iteration")

    def visits(item: tuple[Hashable, NodeHandle]) -> int:
        return arena[item[1]].visits

    if not use_pns:
        return max(children, key=visits)

    proven = [c for c in children if arena[c[1]].status is ProofStatus.PROVEN]
    if proven:
        return max(proven, key=visits)

    def disproven(item: tuple[Hashable, NodeHandle]) -> bool:
        return arena[item[1]].status is ProofStatus.DISPROVEN

    if all(disproven(c) for c in children):
        return max(children, key=lambda item: (arena[item[1]].mean_value, visits(item)))

    candidates = [c for c in children if not (disproven(c) and visits(c) >= trust_visits)]
    return max(candidates, key=lambda item: (not disproven(item), visits(item)))
