"""Tests for child selection and final move choice."""

import math

import pytest

from pnmcts.core.errors import EmptySearchError
from pnmcts.search.final import select_final_move
from pnmcts.search.hooks import ResolvedParameters
from pnmcts.search.node import Node, NodeArena, RaveStat
from pnmcts.search.proof import DISPROVEN, LEAF, PROVEN, ProofState
from pnmcts.search.selection import (
    proof_ranks,
    rave_beta,
    select_child,
    uct_rave_score,
    uct_score,
)

PARAMS = ResolvedParameters(
    exploration_constant=1.4, use_rave=True, rave_k=500.0, playout_depth=3
)
NO_RAVE = ResolvedParameters(
    exploration_constant=1.4, use_rave=False, rave_k=500.0, playout_depth=3
)


def make_arena(mover: str, children: list[tuple[str, int, float, ProofState]]) -> NodeArena:
    """Root moved by `mover` with (move, visits, win_score, proof) children."""
    arena = NodeArena()
    total = sum(visits for _, visits, _, _ in children)
    arena.add(
        Node(
            state=None,
            mover=mover,
            legal=frozenset(move for move, *_ in children),
            visits=total,
        )
    )
    other = "B" if mover == "A" else "A"
    for move, visits, win_score, proof in children:
        arena.add(
            Node(
                state=None,
                mover=other,
                parent=0,
                move=move,
                visits=visits,
                win_score=win_score,
                proof=proof,
            )
        )
    return arena


class TestScores:
    """Tests for the UCT and UCT-RAVE formulas."""

    def test_uct_formula(self) -> None:
        score = uct_score(3.0, 4, 10, 1.4)
        assert score == pytest.approx(0.75 + 1.4 * math.sqrt(math.log(10) / 4))

    def test_unvisited_child_is_infinite(self) -> None:
        assert uct_score(0.0, 0, 10, 1.4) == math.inf

    def test_rave_off_equals_plain_uct(self) -> None:
        parent = Node(state=None, mover="A", visits=10)
        parent.rave["a"] = RaveStat(visits=10, score=9.0)
        child = Node(state=None, mover="B", parent=0, move="a", visits=4, win_score=3.0)

        assert uct_rave_score(parent, "a", child, NO_RAVE) == uct_score(3.0, 4, 10, 1.4)

    def test_rave_blend(self) -> None:
        parent = Node(state=None, mover="A", visits=10)
        parent.rave["a"] = RaveStat(visits=10, score=8.0)
        child = Node(state=None, mover="B", parent=0, move="a", visits=4, win_score=3.0)

        beta = math.sqrt(500.0 / (3 * 4 + 500.0))
        expected = beta * 0.8 + (1 - beta) * 0.75 + 1.4 * math.sqrt(math.log(10) / 4)
        assert uct_rave_score(parent, "a", child, PARAMS) == pytest.approx(expected)

    def test_missing_rave_entry_counts_as_half(self) -> None:
        parent = Node(state=None, mover="A", visits=10)
        child = Node(state=None, mover="B", parent=0, move="a", visits=4, win_score=3.0)

        beta = rave_beta(4, 500.0)
        expected = beta * 0.5 + (1 - beta) * 0.75 + 1.4 * math.sqrt(math.log(10) / 4)
        assert uct_rave_score(parent, "a", child, PARAMS) == pytest.approx(expected)

    def test_beta_fades_with_visits(self) -> None:
        assert rave_beta(0, 500.0) == 1.0
        assert rave_beta(1000, 500.0) < rave_beta(10, 500.0)


class TestSelectChild:
    """Tests for select_child."""

    def test_unvisited_child_first(self) -> None:
        arena = make_arena("A", [("a", 5, 4.0, LEAF), ("b", 0, 0.0, LEAF)])
        assert select_child(arena, 0, PARAMS, searching_player="A") == ("b", 2)

    def test_best_score_wins(self) -> None:
        arena = make_arena("A", [("a", 10, 2.0, LEAF), ("b", 10, 8.0, LEAF)])
        move, _ = select_child(arena, 0, NO_RAVE, searching_player="A")
        assert move == "b"

    def test_proven_child_short_circuits_at_or_node(self) -> None:
        arena = make_arena("A", [("a", 10, 9.0, LEAF), ("b", 1, 0.0, PROVEN)])
        move, _ = select_child(arena, 0, PARAMS, searching_player="A")
        assert move == "b"

    def test_disproven_child_skipped_at_or_node(self) -> None:
        arena = make_arena("A", [("a", 10, 10.0, DISPROVEN), ("b", 10, 1.0, LEAF)])
        move, _ = select_child(arena, 0, PARAMS, searching_player="A")
        assert move == "b"

    def test_and_node_prefers_refutation(self) -> None:
        # The opponent moves here: a disproven child refutes the searching player.
        arena = make_arena("B", [("a", 10, 9.0, LEAF), ("b", 2, 0.0, DISPROVEN)])
        move, _ = select_child(arena, 0, PARAMS, searching_player="A")
        assert move == "b"

    def test_and_node_skips_proven(self) -> None:
        arena = make_arena("B", [("a", 10, 9.0, PROVEN), ("b", 10, 1.0, LEAF)])
        move, _ = select_child(arena, 0, PARAMS, searching_player="A")
        assert move == "b"

    def test_all_unwanted_falls_back_to_scores(self) -> None:
        arena = make_arena("A", [("a", 10, 2.0, DISPROVEN), ("b", 10, 8.0, DISPROVEN)])
        move, _ = select_child(arena, 0, NO_RAVE, searching_player="A")
        assert move == "b"

    def test_incomparable_scores_raise(self) -> None:
        params = ResolvedParameters(
            exploration_constant=math.nan, use_rave=False, rave_k=300.0, playout_depth=0
        )
        arena = make_arena("A", [("a", 10, 2.0, LEAF), ("b", 10, 8.0, LEAF)])
        with pytest.raises(ValueError):
            select_child(arena, 0, params, searching_player="A")

    def test_proofs_ignored_without_pns(self) -> None:
        arena = make_arena("A", [("a", 10, 1.0, PROVEN), ("b", 10, 8.0, LEAF)])
        move, _ = select_child(arena, 0, NO_RAVE, searching_player="A", use_pns=False)
        assert move == "b"

    def test_pn_weight_blends_rank(self) -> None:
        arena = make_arena(
            "A",
            [("a", 10, 8.0, ProofState(5, 2)), ("b", 10, 2.0, ProofState(1, 4))],
        )
        assert select_child(arena, 0, NO_RAVE, searching_player="A")[0] == "a"
        move, _ = select_child(arena, 0, NO_RAVE, searching_player="A", pn_weight=1.0)
        assert move == "b"

    def test_no_children_rejected(self) -> None:
        arena = make_arena("A", [])
        with pytest.raises(ValueError):
            select_child(arena, 0, PARAMS, searching_player="A")


class TestProofRanks:
    """Tests for proof_ranks."""

    def test_single_child(self) -> None:
        child = Node(state=None, mover="B")
        assert proof_ranks([("a", child)], or_node=True) == {"a": 0.5}

    def test_or_node_ranks_by_proof_number(self) -> None:
        children = [
            ("a", Node(state=None, mover="B", proof=ProofState(4, 1))),
            ("b", Node(state=None, mover="B", proof=ProofState(1, 9))),
            ("c", Node(state=None, mover="B", proof=ProofState(4, 3))),
        ]
        ranks = proof_ranks(children, or_node=True)
        assert ranks["b"] == 1.0
        assert ranks["a"] == ranks["c"] == 0.5

    def test_and_node_ranks_by_disproof_number(self) -> None:
        children = [
            ("a", Node(state=None, mover="A", proof=ProofState(1, 5))),
            ("b", Node(state=None, mover="A", proof=ProofState(9, 2))),
        ]
        ranks = proof_ranks(children, or_node=False)
        assert ranks == {"b": 1.0, "a": 0.0}


class TestSelectFinalMove:
    """Tests for select_final_move."""

    def test_most_visited(self) -> None:
        arena = make_arena("A", [("a", 3, 1.0, LEAF), ("b", 9, 2.0, LEAF)])
        assert select_final_move(arena, 0) == ("b", 2)

    def test_ties_go_to_first_expanded(self) -> None:
        arena = make_arena("A", [("a", 4, 1.0, LEAF), ("b", 4, 3.0, LEAF)])
        assert select_final_move(arena, 0)[0] == "a"

    def test_proven_ignores_trust_threshold(self) -> None:
        arena = make_arena("A", [("a", 50, 30.0, LEAF), ("b", 1, 1.0, PROVEN)])
        assert select_final_move(arena, 0, trust_visits=5)[0] == "b"

    def test_trusted_disproven_excluded(self) -> None:
        arena = make_arena("A", [("a", 50, 40.0, DISPROVEN), ("b", 2, 0.0, LEAF)])
        assert select_final_move(arena, 0, trust_visits=5)[0] == "b"

    def test_untrusted_disproven_demoted(self) -> None:
        arena = make_arena("A", [("a", 3, 3.0, DISPROVEN), ("b", 1, 0.0, LEAF)])
        assert select_final_move(arena, 0, trust_visits=5)[0] == "b"

    def test_all_disproven_equal_values_returns_most_visited(self) -> None:
        arena = make_arena("A", [("a", 3, 0.0, DISPROVEN), ("b", 7, 0.0, DISPROVEN)])
        assert select_final_move(arena, 0)[0] == "b"

    def test_all_disproven_prefers_draw_to_loss(self) -> None:
        # "b" is a draw seen twice, "a" a loss seen often
        arena = make_arena("A", [("a", 20, 0.0, DISPROVEN), ("b", 2, 1.0, DISPROVEN)])
        assert select_final_move(arena, 0)[0] == "b"

    def test_proofs_ignored_without_pns(self) -> None:
        arena = make_arena("A", [("a", 10, 0.0, DISPROVEN), ("b", 2, 2.0, PROVEN)])
        assert select_final_move(arena, 0, use_pns=False)[0] == "a"

    def test_no_children(self) -> None:
        arena = make_arena("A", [])
        with pytest.raises(EmptySearchError):
            select_final_move(arena, 0)
