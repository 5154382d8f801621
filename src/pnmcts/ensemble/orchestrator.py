"""Ensembles of independent search sessions.

Each member runs its own engine on its own arena; nothing is shared
until the final vote. Members can differ in configuration (for example
to average over exploration constants) and always differ in seed, so
their trees explore different parts of the game and cover each other's
blind spots.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Hashable, Sequence
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Literal

from loguru import logger

from pnmcts.core.errors import SearchConfigError
from pnmcts.search.config import SearchConfig
from pnmcts.search.engine import MCTSEngine
from pnmcts.search.hooks import SearchHooks
from pnmcts.search.result import SearchResult

ExecutorKind = Literal["thread", "process", "serial"]


@dataclass(frozen=True)
class EnsembleConfig:
    """Configuration for an ensemble of search sessions.

    Attributes:
        size: Number of members. Ignored when `members` is given.
        members: Explicit per-member configs. Defaults to `size` copies of
            the base config.
        executor: "thread", "process" (hooks and states must be picklable)
            or "serial".
        max_workers: Worker count for pooled executors. None uses `size`.
        split_budget: Divide the base iteration budget between members.
        seed_stride: Member i gets seed `base_seed + i * seed_stride` when
            its config has no seed of its own.
    """

    size: int = 4
    members: tuple[SearchConfig, ...] = ()
    executor: ExecutorKind = "thread"
    max_workers: int | None = None
    split_budget: bool = False
    seed_stride: int = 1

    def __post_init__(self) -> None:
        if not self.members and self.size < 1:
            raise SearchConfigError("size", f"must be >= 1, got {self.size}")
        if self.executor not in ("thread", "process", "serial"):
            raise SearchConfigError("executor", f"unknown executor {self.executor!r}")
        if self.max_workers is not None and self.max_workers < 1:
            raise SearchConfigError("max_workers", f"must be >= 1, got {self.max_workers}")


@dataclass(frozen=True)
class EnsembleResult:
    """Aggregated decision of an ensemble.

    Attributes:
        move: The chosen move.
        method: "majority" when a strict majority agreed, else "visits".
        votes: Final-move vote count per move.
        visits: Root visit counts summed over members.
        members: Individual member results, in member order.
    """

    move: Hashable
    method: str
    votes: dict[Hashable, int]
    visits: dict[Hashable, int]
    members: list[SearchResult] = field(default_factory=list)


def aggregate_results(results: Sequence[SearchResult]) -> EnsembleResult:
    """Combine member results into one decision.

    A strict majority of final moves wins outright, whatever the visit
    counts. Otherwise the move with the most root visits summed over all
    members wins; ties fall to more votes, then to the first move seen.
    """
    if not results:
        raise ValueError("cannot aggregate an empty ensemble")

    votes: Counter[Hashable] = Counter(result.move for result in results)
    visits: Counter[Hashable] = Counter()
    for result in results:
        visits.update(result.root_visits)
        visits[result.move] += 0

    move, count = votes.most_common(1)[0]
    if count * 2 > len(results):
        return EnsembleResult(move, "majority", dict(votes), dict(visits), list(results))

    order = list(visits)
    best = max(order, key=lambda m: (visits[m], votes[m], -order.index(m)))
    return EnsembleResult(best, "visits", dict(votes), dict(visits), list(results))


def _run_member(
    state: Any,
    config: SearchConfig,
    hooks: SearchHooks,
) -> SearchResult:
    """Run one isolated session (module level so process pools can pickle it)."""
    return MCTSEngine(config, hooks).search(state)


class EnsembleOrchestrator:
    """Runs several independent engines and merges their recommendations."""

    def __init__(
        self,
        base_config: SearchConfig | None = None,
        hooks: SearchHooks | None = None,
        ensemble: EnsembleConfig | None = None,
    ) -> None:
        self.base_config = base_config or SearchConfig()
        self.hooks = hooks or SearchHooks()
        self.ensemble = ensemble or EnsembleConfig()

    @property
    def name(self) -> str:
        return f"Ensemble(k={len(self.member_configs())}, n={self.base_config.iterations})"

    def reset(self) -> None:
        """Members keep no state between decisions."""

    def member_configs(self) -> list[SearchConfig]:
        """Per-member configs with distinct seeds and, optionally, split budgets."""
        members = list(self.ensemble.members) or [self.base_config] * self.ensemble.size
        base_seed = self.base_config.seed if self.base_config.seed is not None else 0

        configs = []
        for i, member in enumerate(members):
            changes: dict[str, Any] = {"reuse_tree": False}
            if member.seed is None or not self.ensemble.members:
                changes["seed"] = base_seed + i * self.ensemble.seed_stride
            if self.ensemble.split_budget:
                changes["iterations"] = max(1, self.base_config.iterations // len(members))
            configs.append(member.with_overrides(**changes))
        return configs

    def select_move(self, state: Any) -> Hashable:
        return self.search(state).move

    def search(self, state: Any) -> EnsembleResult:
        """Run every member to completion and aggregate their answers."""
        configs = self.member_configs()
        logger.info(
            f"EnsembleOrchestrator: running {len(configs)} members "
            f"({self.ensemble.executor} executor)"
        )

        if self.ensemble.executor == "serial":
            results = [_run_member(state, config, self.hooks) for config in configs]
        else:
            with self._executor(len(configs)) as executor:
                futures = [
                    executor.submit(_run_member, state, config, self.hooks) for config in configs
                ]
                results = [future.result() for future in futures]

        decision = aggregate_results(results)
        logger.info(
            f"EnsembleOrchestrator: chose {decision.move!r} by {decision.method} "
            f"(votes={decision.votes})"
        )
        return decision

    def _executor(self, members: int) -> Executor:
        workers = self.ensemble.max_workers or members
        if self.ensemble.executor == "process":
            return ProcessPoolExecutor(max_workers=workers)
        return ThreadPoolExecutor(max_workers=workers)
