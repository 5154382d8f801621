"""Game-profile hooks and per-decision parameter resolution.

A game profile can steer the search through optional callables. Four of
them are tunables that fall back to the static config and then to the
library default:

    dynamic hook(state)  ->  SearchConfig override  ->  library default

Resolution happens once per decision, so an expensive phase estimate in a
hook (board fill, move number) is paid once rather than per iteration.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import numpy as np

from pnmcts.search.config import (
    DEFAULT_EXPLORATION_CONSTANT,
    DEFAULT_PLAYOUT_DEPTH,
    DEFAULT_RAVE_K,
    DEFAULT_USE_RAVE,
    SearchConfig,
    validate_tunables,
)

T = TypeVar("T")


@dataclass(frozen=True)
class Objective:
    """A weighted goal used to score positions that did not finish.

    Attributes:
        checker: Returns how far `player` has achieved the goal, as a bool or
            a float in [0, 1].
        weight: Positive for goals that help the player, negative otherwise.
    """

    checker: Callable[[Any, Hashable], float | bool]
    weight: float


@dataclass(frozen=True)
class SearchHooks:
    """Optional callables supplied by a game profile.

    Attributes:
        exploration_constant: state -> UCT constant for this decision.
        use_rave: state -> whether to blend RAVE for this decision.
        rave_k: state -> RAVE decay constant for this decision.
        playout_depth: state -> playout depth for this decision.
        move_ordering: (state, moves) -> the same moves, best first. Decides
            expansion order and biases playouts.
        static_evaluate: (state, player) -> value for `player` in [0, 1].
        playout_policy: (state, moves, rng) -> the move to play in a playout.
        threat_response: (state, moves) -> root moves that must be considered
            exclusively (e.g. blocks), or an empty sequence.
        objectives: (state, player) -> named objectives scoring unfinished
            positions when no static evaluation is given.
        state_key: state -> hashable key for the evaluation cache.
    """

    exploration_constant: Callable[[Any], float] | None = None
    use_rave: Callable[[Any], bool] | None = None
    rave_k: Callable[[Any], float] | None = None
    playout_depth: Callable[[Any], int] | None = None
    move_ordering: Callable[[Any, Sequence[Hashable]], Sequence[Hashable]] | None = None
    static_evaluate: Callable[[Any, Hashable], float] | None = None
    playout_policy: Callable[[Any, Sequence[Hashable], np.random.Generator], Hashable] | None = None
    threat_response: Callable[[Any, Sequence[Hashable]], Sequence[Hashable]] | None = None
    objectives: Callable[[Any, Hashable], Mapping[str, Objective]] | None = None
    state_key: Callable[[Any], Hashable] | None = None


@dataclass(frozen=True)
class Tunable(Generic[T]):
    """One tunable resolved through hook -> override -> default."""

    name: str
    hook: Callable[[Any], T] | None
    override: T | None
    default: T

    def resolve(self, state: Any) -> T:
        if self.hook is not None:
            value = self.hook(state)
            if value is not None:
                return value
        if self.override is not None:
            return self.override
        return self.default

    def source(self) -> str:
        """Which link of the chain will answer (for logging)."""
        if self.hook is not None:
            return "hook"
        if self.override is not None:
            return "config"
        return "default"


@dataclass(frozen=True)
class ResolvedParameters:
    """Tunables fixed for the duration of one decision."""

    exploration_constant: float
    use_rave: bool
    rave_k: float
    playout_depth: int


def tunables(config: SearchConfig, hooks: SearchHooks) -> tuple[Tunable, ...]:
    """Build the fallback chain for every tunable."""
    return (
        Tunable(
            "exploration_constant",
            hooks.exploration_constant,
            config.exploration_constant,
            DEFAULT_EXPLORATION_CONSTANT,
        ),
        Tunable("use_rave", hooks.use_rave, config.use_rave, DEFAULT_USE_RAVE),
        Tunable("rave_k", hooks.rave_k, config.rave_k, DEFAULT_RAVE_K),
        Tunable("playout_depth", hooks.playout_depth, config.playout_depth, DEFAULT_PLAYOUT_DEPTH),
    )


def resolve_parameters(state: Any, config: SearchConfig, hooks: SearchHooks) -> ResolvedParameters:
    """Resolve every tunable for a decision at `state`.

    Raises:
        SearchConfigError: If a hook returns an out-of-range value.
    """
    values = {tunable.name: tunable.resolve(state) for tunable in tunables(config, hooks)}
    validate_tunables(
        exploration_constant=values["exploration_constant"],
        rave_k=values["rave_k"],
        playout_depth=values["playout_depth"],
    )
    return ResolvedParameters(
        exploration_constant=float(values["exploration_constant"]),
        use_rave=bool(values["use_rave"]),
        rave_k=float(values["rave_k"]),
        playout_depth=int(values["playout_depth"]),
    )
