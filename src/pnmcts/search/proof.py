"""Proof-number bookkeeping for the solver layer.

Proof status is always relative to the searching player (the player to
move at the root). Nodes where that player moves are OR nodes: one
winning child proves them. Nodes where the opponent moves are AND nodes:
every child has to be a win.

    OR:  pn = min(child pn)    dn = sum(child dn)
    AND: pn = sum(child pn)    dn = min(child dn)

Legal moves that have not been expanded yet count as unit (1, 1) leaves,
so a partially expanded node is never solved on incomplete evidence.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

# Sentinel for an infinite proof or disproof number.
PROOF_INFINITY = 1 << 30


class ProofStatus(Enum):
    """Solver status of a node, relative to the searching player."""

    UNKNOWN = "unknown"
    PROVEN = "proven"  # forced win
    DISPROVEN = "disproven"  # no forced win

    @property
    def is_solved(self) -> bool:
        return self is not ProofStatus.UNKNOWN


@dataclass(frozen=True)
class ProofState:
    """Proof and disproof numbers of a node.

    The status is derived from the numbers, so the two can never disagree.
    Instances are immutable; a node's proof state is replaced as a whole.
    """

    pn: int = 1
    dn: int = 1

    def __post_init__(self) -> None:
        if not (0 <= self.pn <= PROOF_INFINITY and 0 <= self.dn <= PROOF_INFINITY):
            raise ValueError(f"proof numbers out of range: pn={self.pn}, dn={self.dn}")
        if self.pn == 0 and self.dn == 0:
            raise ValueError("a node cannot be both proven and disproven")

    @property
    def status(self) -> ProofStatus:
        if self.pn == 0:
            return ProofStatus.PROVEN
        if self.dn == 0:
            return ProofStatus.DISPROVEN
        return ProofStatus.UNKNOWN

    @classmethod
    def proven(cls) -> ProofState:
        return cls(0, PROOF_INFINITY)

    @classmethod
    def disproven(cls) -> ProofState:
        return cls(PROOF_INFINITY, 0)

    @classmethod
    def unknown(cls) -> ProofState:
        return cls(1, 1)


LEAF = ProofState.unknown()
PROVEN = ProofState.proven()
DISPROVEN = ProofState.disproven()


def saturating_sum(values: Iterable[int]) -> int:
    """Sum proof numbers, capping the result at PROOF_INFINITY."""
    total = 0
    for value in values:
        if value >= PROOF_INFINITY:
            return PROOF_INFINITY
        total += value
        if total >= PROOF_INFINITY:
            return PROOF_INFINITY
    return total


def aggregate(
    children: Iterable[ProofState],
    *,
    untried: int,
    or_node: bool,
) -> ProofState:
    """Combine child proof states into the proof state of their parent.

    Args:
        children: Proof states of the expanded children.
        untried: Number of legal moves not expanded yet (unit leaves).
        or_node: True when the searching player moves at the parent.

    Returns:
        The aggregated proof state. A parent without expanded children is an
        unexpanded leaf and keeps (1, 1).
    """
    states = list(children)
    if not states:
        return LEAF

    pns = [s.pn for s in states] + [1] * untried
    dns = [s.dn for s in states] + [1] * untried

    if or_node:
        return ProofState(pn=min(pns), dn=saturating_sum(dns))
    return ProofState(pn=saturating_sum(pns), dn=min(dns))


def terminal_proof(searching_player_value: float) -> ProofState:
    """Proof state of a terminal node from the searching player's outcome.

    Only an outright win proves a node; draws and losses disprove it.
    """
    return PROVEN if searching_player_value >= 1.0 else DISPROVEN
