"""Tests for ensemble aggregation and orchestration."""

import pytest

from pnmcts.core.errors import SearchConfigError
from pnmcts.ensemble import (
    EnsembleConfig,
    EnsembleOrchestrator,
    aggregate_results,
)
from pnmcts.games import NimState, TreeGameState
from pnmcts.search import SearchConfig, SearchResult, StopReason


def member(move: str, **visits: int) -> SearchResult:
    return SearchResult(
        move=move,
        iterations=sum(visits.values()),
        elapsed=0.0,
        stop_reason=StopReason.BUDGET,
        root_visits=dict(visits),
    )


class TestAggregateResults:
    """Tests for combining member decisions."""

    def test_unanimous_vote_beats_visits(self) -> None:
        results = [member("x", x=1, y=100) for _ in range(5)]

        decision = aggregate_results(results)

        assert decision.move == "x"
        assert decision.method == "majority"
        assert decision.votes == {"x": 5}
        assert decision.visits == {"x": 5, "y": 500}

    def test_strict_majority(self) -> None:
        results = [
            member("x", x=10, y=40),
            member("x", x=10, y=40),
            member("x", x=10, y=40),
            member("y", x=5, y=50),
            member("y", x=5, y=50),
        ]
        decision = aggregate_results(results)
        assert decision.move == "x"
        assert decision.method == "majority"

    def test_split_vote_falls_back_to_visits(self) -> None:
        results = [
            member("x", x=30, y=10, z=5),
            member("x", x=30, y=10, z=5),
            member("y", x=5, y=40, z=5),
            member("y", x=5, y=40, z=5),
        ]
        decision = aggregate_results(results)

        assert decision.method == "visits"
        assert decision.move == "y"
        assert decision.visits == {"x": 70, "y": 100, "z": 20}

    def test_visit_tie_prefers_more_votes(self) -> None:
        results = [
            member("x", x=10, y=10),
            member("y", x=10, y=10),
            member("y", x=10, y=10),
            member("z", x=10, y=10, z=1),
        ]
        decision = aggregate_results(results)
        assert decision.method == "visits"
        assert decision.move == "y"

    def test_full_tie_prefers_first_seen(self) -> None:
        results = [member("x", x=10, y=10), member("y", x=10, y=10)]
        decision = aggregate_results(results)
        assert decision.move == "x"

    def test_single_member(self) -> None:
        decision = aggregate_results([member("z", z=3)])
        assert decision.move == "z"
        assert decision.method == "majority"

    def test_empty_ensemble(self) -> None:
        with pytest.raises(ValueError):
            aggregate_results([])


class TestEnsembleConfig:
    """Tests for ensemble configuration."""

    def test_invalid_size(self) -> None:
        with pytest.raises(SearchConfigError):
            EnsembleConfig(size=0)

    def test_invalid_executor(self) -> None:
        with pytest.raises(SearchConfigError):
            EnsembleConfig(executor="gpu")

    def test_invalid_workers(self) -> None:
        with pytest.raises(SearchConfigError):
            EnsembleConfig(max_workers=0)


class TestEnsembleOrchestrator:
    """Tests for running ensembles."""

    def test_member_seeds_are_distinct(self) -> None:
        orchestrator = EnsembleOrchestrator(
            SearchConfig(iterations=100, seed=10, reuse_tree=True),
            ensemble=EnsembleConfig(size=3, seed_stride=3),
        )
        configs = orchestrator.member_configs()

        assert [c.seed for c in configs] == [10, 13, 16]
        assert all(not c.reuse_tree for c in configs)
        assert all(c.iterations == 100 for c in configs)

    def test_split_budget(self) -> None:
        orchestrator = EnsembleOrchestrator(
            SearchConfig(iterations=100),
            ensemble=EnsembleConfig(size=4, split_budget=True),
        )
        assert [c.iterations for c in orchestrator.member_configs()] == [25] * 4

    def test_explicit_members_keep_their_seeds(self) -> None:
        members = (
            SearchConfig(iterations=50, exploration_constant=0.5, seed=99),
            SearchConfig(iterations=50, exploration_constant=2.0),
        )
        orchestrator = EnsembleOrchestrator(
            SearchConfig(seed=1),
            ensemble=EnsembleConfig(members=members),
        )
        configs = orchestrator.member_configs()

        assert [c.seed for c in configs] == [99, 2]
        assert [c.exploration_constant for c in configs] == [0.5, 2.0]
        assert orchestrator.name == "Ensemble(k=2, n=100)"

    def test_serial_ensemble_plays_proven_win(self, immediate_win: TreeGameState) -> None:
        orchestrator = EnsembleOrchestrator(
            SearchConfig(iterations=50),
            ensemble=EnsembleConfig(size=5, executor="serial"),
        )
        decision = orchestrator.search(immediate_win)

        assert decision.move == "win"
        assert decision.method == "majority"
        assert decision.votes == {"win": 5}
        assert len(decision.members) == 5

    def test_thread_ensemble(self, winning_nim: NimState) -> None:
        orchestrator = EnsembleOrchestrator(
            SearchConfig(iterations=2000),
            ensemble=EnsembleConfig(size=3, executor="thread"),
        )
        assert orchestrator.select_move(winning_nim) == 1

    def test_process_ensemble(self, winning_nim: NimState) -> None:
        orchestrator = EnsembleOrchestrator(
            SearchConfig(iterations=2000),
            ensemble=EnsembleConfig(size=2, executor="process", max_workers=2),
        )
        decision = orchestrator.search(winning_nim)

        assert decision.move == 1
        assert [r.move for r in decision.members] == [1, 1]

    def test_seeded_ensemble_is_reproducible(self) -> None:
        state = NimState(15)
        ensemble = EnsembleConfig(size=3, executor="thread")
        first = EnsembleOrchestrator(SearchConfig(iterations=200, seed=4), ensemble=ensemble)
        second = EnsembleOrchestrator(SearchConfig(iterations=200, seed=4), ensemble=ensemble)

        a = first.search(state)
        b = second.search(state)

        assert a.move == b.move
        assert a.visits == b.visits
