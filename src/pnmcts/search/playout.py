"""Bounded-depth playouts and position evaluation."""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from pnmcts.core.errors import ContractViolationError
from pnmcts.core.game import Outcome
from pnmcts.search.hooks import SearchHooks

# Cached evaluations are trusted after this many samples.
CACHE_CONFIDENT_VISITS = 3


@dataclass
class PlayoutResult:
    """Outcome of one simulation.

    Attributes:
        value: Value for the searching player on a [0, 1] scale.
        moves: (mover, move) pairs played during the playout, for RAVE.
        exact: Whether `value` comes from a finished game.
    """

    value: float
    moves: list[tuple[Hashable, Hashable]] = field(default_factory=list)
    exact: bool = False


def checked_legal_moves(state: Any) -> list[Hashable]:
    """Legal moves of a non-terminal state, or a contract error if there are none."""
    moves = list(state.legal_moves())
    if not moves:
        raise ContractViolationError(f"non-terminal state has no legal moves: {state!r}")
    return moves


def checked_mover(state: Any) -> Hashable:
    mover = state.current_mover()
    if mover is None:
        raise ContractViolationError(f"non-terminal state has no player to move: {state!r}")
    return mover


def terminal_value(state: Any, player: Hashable) -> float:
    """Exact value of a finished game for `player`."""
    outcome = state.outcome_for(player)
    if not isinstance(outcome, Outcome):
        raise ContractViolationError(
            f"terminal state returned {outcome!r} instead of an Outcome: {state!r}"
        )
    return outcome.score


def ordered_moves(state: Any, moves: Sequence[Hashable], hooks: SearchHooks) -> list[Hashable]:
    """Apply the move-ordering hook, checking it only reorders."""
    if hooks.move_ordering is None:
        return list(moves)
    ordered = list(hooks.move_ordering(state, list(moves)))
    if len(ordered) != len(moves) or set(ordered) != set(moves):
        raise ContractViolationError(
            "move_ordering hook must return a permutation of the legal moves"
        )
    return ordered


class EvaluationCache:
    """Running-mean cache of heuristic evaluations keyed by position.

    Positions reached through different move orders share an entry. Once
    an entry holds `CACHE_CONFIDENT_VISITS` samples its mean is returned
    without calling the evaluator again.
    """

    def __init__(self, hooks: SearchHooks, enabled: bool = True) -> None:
        self._hooks = hooks
        self._enabled = enabled
        self._entries: dict[Hashable, tuple[float, int]] = {}
        self.hits = 0

    def __len__(self) -> int:
        return len(self._entries)

    def _key(self, state: Any) -> Hashable | None:
        if not self._enabled:
            return None
        if self._hooks.state_key is not None:
            return self._hooks.state_key(state)
        if isinstance(state, Hashable):
            return state
        return None

    def evaluate(self, state: Any, player: Hashable) -> float:
        key = self._key(state)
        if key is None:
            return heuristic_value(state, player, self._hooks)

        cached = self._entries.get(key)
        if cached is not None and cached[1] >= CACHE_CONFIDENT_VISITS:
            self.hits += 1
            return cached[0]

        value = heuristic_value(state, player, self._hooks)
        if cached is None:
            self._entries[key] = (value, 1)
        else:
            mean, count = cached
            self._entries[key] = ((mean * count + value) / (count + 1), count + 1)
        return value


def objective_value(state: Any, player: Hashable, hooks: SearchHooks) -> float:
    """Weighted objective score mapped onto [0.1, 0.9].

    The range stays clear of 0 and 1 so a heuristic never looks like a
    finished game.
    """
    assert hooks.objectives is not None
    total = 0.0
    best = 0.0
    worst = 0.0
    for objective in hooks.objectives(state, player).values():
        if objective.weight > 0:
            best += objective.weight
        else:
            worst += objective.weight
        total += objective.weight * float(objective.checker(state, player))

    span = best - worst
    if span == 0:
        return 0.5
    return 0.1 + 0.8 * (total - worst) / span


def heuristic_value(state: Any, player: Hashable, hooks: SearchHooks) -> float:
    """Estimate an unfinished position for `player` on a [0, 1] scale."""
    if hooks.static_evaluate is not None:
        return min(1.0, max(0.0, float(hooks.static_evaluate(state, player))))
    if hooks.objectives is not None:
        return objective_value(state, player, hooks)
    return 0.5


def choose_playout_move(
    state: Any,
    moves: list[Hashable],
    hooks: SearchHooks,
    rng: np.random.Generator,
) -> Hashable:
    """Pick a playout move.

    A playout policy hook decides outright. Otherwise the move-ordering
    hook biases the draw with weights 1/(rank + 1), which keeps every legal
    move possible. Without hooks the choice is uniform.
    """
    if hooks.playout_policy is not None:
        move = hooks.playout_policy(state, moves, rng)
        if move not in moves:
            raise ContractViolationError(f"playout_policy returned illegal move {move!r}")
        return move
    if hooks.move_ordering is not None and len(moves) > 1:
        ordered = ordered_moves(state, moves, hooks)
        weights = 1.0 / np.arange(1, len(ordered) + 1)
        return ordered[int(rng.choice(len(ordered), p=weights / weights.sum()))]
    return moves[int(rng.integers(len(moves)))]


def run_playout(
    state: Any,
    *,
    depth: int,
    searching_player: Hashable,
    hooks: SearchHooks,
    rng: np.random.Generator,
    cache: EvaluationCache,
) -> PlayoutResult:
    """Simulate up to `depth` plies from `state` and score the end position.

    Lookahead surfaces short forced sequences that a single static
    evaluation misses; each extra ply adds roughly linear cost per
    iteration. A finished game returns its exact value.
    """
    played: list[tuple[Hashable, Hashable]] = []
    for _ in range(depth):
        if state.is_terminal():
            break
        mover = checked_mover(state)
        move = choose_playout_move(state, checked_legal_moves(state), hooks, rng)
        played.append((mover, move))
        state = state.apply_move(move)

    if state.is_terminal():
        return PlayoutResult(terminal_value(state, searching_player), played, exact=True)
    return PlayoutResult(cache.evaluate(state, searching_player), played)
