"""Search configuration."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from pnmcts.core.errors import SearchConfigError

DEFAULT_EXPLORATION_CONSTANT = math.sqrt(2)
DEFAULT_USE_RAVE = True
DEFAULT_RAVE_K = 500.0
DEFAULT_PLAYOUT_DEPTH = 5


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for one MCTS decision.

    The four tunables (`exploration_constant`, `use_rave`, `rave_k`,
    `playout_depth`) are static overrides: None means "use the library
    default", and a dynamic hook, when supplied, wins over both. See
    `pnmcts.search.hooks`.

    Attributes:
        iterations: Number of select/expand/simulate/backpropagate rounds.
        exploration_constant: UCT exploration constant C. Higher values
            spread visits more evenly. Library default is sqrt(2).
        use_rave: Blend AMAF statistics into selection.
        rave_k: RAVE decay constant. The RAVE weight falls to 1/2 after
            about k/3 visits of a child.
        playout_depth: Plies simulated after expansion before the position
            is evaluated statically. 0 evaluates the expanded node itself.
        debug: Attach per-child statistics to the search result.
        seed: Seed for the playout RNG. None draws fresh entropy.
        use_pns: Maintain proof numbers and let solved nodes override
            statistics during selection and final move choice.
        pn_weight: Weight of the proof-number rank blended into selection
            scores, in [0, 1]. 0 disables the blend.
        proof_trust_visits: Visits after which a child's Disproven status is
            trusted enough to exclude it outright at the root.
        time_limit: Optional wall-clock budget in seconds, checked between
            iterations.
        stop_when_solved: Stop once the root is proven, or disproven with
            every root move ending the game.
        use_transposition_table: Cache heuristic evaluations per position.
        max_root_moves: Sample at most this many root moves. None keeps all.
        reuse_tree: Keep the subtree of played moves between decisions.
    """

    iterations: int = 100
    exploration_constant: float | None = None
    use_rave: bool | None = None
    rave_k: float | None = None
    playout_depth: int | None = None
    debug: bool = False

    seed: int | None = None
    use_pns: bool = True
    pn_weight: float = 0.0
    proof_trust_visits: int = 5
    time_limit: float | None = None
    stop_when_solved: bool = True
    use_transposition_table: bool = True
    max_root_moves: int | None = None
    reuse_tree: bool = False

    def __post_init__(self) -> None:
        """Validate ranges before any search starts."""
        if self.iterations < 1:
            raise SearchConfigError("iterations", f"must be >= 1, got {self.iterations}")
        validate_tunables(
            exploration_constant=self.exploration_constant,
            rave_k=self.rave_k,
            playout_depth=self.playout_depth,
        )
        if not 0.0 <= self.pn_weight <= 1.0:
            raise SearchConfigError("pn_weight", f"must be in [0, 1], got {self.pn_weight}")
        if self.proof_trust_visits < 0:
            raise SearchConfigError(
                "proof_trust_visits", f"must be >= 0, got {self.proof_trust_visits}"
            )
        if self.time_limit is not None and self.time_limit <= 0:
            raise SearchConfigError("time_limit", f"must be > 0, got {self.time_limit}")
        if self.max_root_moves is not None and self.max_root_moves < 1:
            raise SearchConfigError(
                "max_root_moves", f"must be >= 1, got {self.max_root_moves}"
            )

    def with_overrides(self, **changes: object) -> SearchConfig:
        """Return a copy with some fields replaced (validated again)."""
        return replace(self, **changes)


def validate_tunables(
    *,
    exploration_constant: float | None = None,
    rave_k: float | None = None,
    playout_depth: int | None = None,
) -> None:
    """Reject out-of-range tunables, naming the offending field.

    None values are skipped so the same check serves static overrides and
    hook-resolved values.
    """
    if exploration_constant is not None and (
        exploration_constant < 0 or not math.isfinite(exploration_constant)
    ):
        raise SearchConfigError(
            "exploration_constant", f"must be finite and >= 0, got {exploration_constant}"
        )
    if rave_k is not None and (not math.isfinite(rave_k) or rave_k <= 0):
        raise SearchConfigError("rave_k", f"must be finite and > 0, got {rave_k}")
    if playout_depth is not None and (
        isinstance(playout_depth, bool) or int(playout_depth) != playout_depth or playout_depth < 0
    ):
        raise SearchConfigError(
            "playout_depth", f"must be a non-negative integer, got {playout_depth}"
        )


# Difficulty presets. Few iterations are enough for light games; callers
# searching heavier rules engines should raise them.
DIFFICULTY_PRESETS: dict[str, SearchConfig] = {
    "easy": SearchConfig(iterations=50, playout_depth=3),
    "medium": SearchConfig(iterations=200, playout_depth=4),
    "hard": SearchConfig(iterations=1000, playout_depth=5),
}


def parse_level(level: str | int) -> SearchConfig:
    """Turn a difficulty name or an iteration count into a config.

    Unknown names and non-positive counts fall back to "medium".
    """
    if isinstance(level, str):
        if level in DIFFICULTY_PRESETS:
            return DIFFICULTY_PRESETS[level]
        try:
            level = int(level, 10)
        except ValueError:
            return DIFFICULTY_PRESETS["medium"]

    if level > 0:
        return DIFFICULTY_PRESETS["medium"].with_overrides(iterations=level)
    return DIFFICULTY_PRESETS["medium"]
