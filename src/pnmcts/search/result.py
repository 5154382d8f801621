"""Search results and debug statistics."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from enum import Enum

from pnmcts.search.proof import ProofStatus


class StopReason(Enum):
    """Why a search stopped."""

    BUDGET = "budget"
    SOLVED = "solved"
    DEADLINE = "deadline"
    CANCELLED = "cancelled"
    SINGLE_MOVE = "single_move"


@dataclass(frozen=True)
class ChildStats:
    """Statistics of one root child, seen from the root mover."""

    move: Hashable
    visits: int
    mean_value: float
    proof_number: int
    disproof_number: int
    status: ProofStatus
    trusted: bool
    rave_visits: int
    rave_value: float


@dataclass(frozen=True)
class SearchStats:
    """Debug summary of the root after a search."""

    proven: int
    disproven: int
    unknown: int
    children: list[ChildStats]
    principal_variation: list[Hashable]
    tree_size: int
    cache_hits: int
    exploration_constant: float
    use_rave: bool
    rave_k: float
    playout_depth: int

    def child(self, move: Hashable) -> ChildStats:
        for stats in self.children:
            if stats.move == move:
                return stats
        raise KeyError(move)


@dataclass(frozen=True)
class SearchResult:
    """Outcome of one decision.

    Attributes:
        move: The selected move.
        iterations: Iterations run in this call.
        elapsed: Wall-clock seconds spent.
        stop_reason: Why the loop ended.
        root_status: Solver status of the root for the searching player.
        root_visits: Visit count of every expanded root move.
        stats: Per-child breakdown when the config asks for debug output.
    """

    move: Hashable
    iterations: int
    elapsed: float
    stop_reason: StopReason
    root_status: ProofStatus = ProofStatus.UNKNOWN
    root_visits: dict[Hashable, int] = field(default_factory=dict)
    stats: SearchStats | None = None
