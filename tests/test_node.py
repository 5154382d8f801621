"""Tests for search tree nodes and the node arena."""

import pytest

from pnmcts.search.node import Node, NodeArena, RaveStat
from pnmcts.search.proof import LEAF


def build_arena() -> NodeArena:
    """root -(a)-> 1 -(c)-> 3, root -(b)-> 2."""
    arena = NodeArena()
    arena.add(Node(state="root", mover="A", legal=frozenset("ab")))
    arena.add(Node(state="1", mover="B", parent=0, move="a", visits=5))
    arena.add(Node(state="2", mover="B", parent=0, move="b", visits=3))
    arena.add(Node(state="3", mover="A", parent=1, move="c", visits=2))
    arena[0].visits = 8
    return arena


class TestNode:
    """Tests for Node properties."""

    def test_defaults(self) -> None:
        node = Node(state=None, mover="A")
        assert node.visits == 0
        assert node.proof == LEAF
        assert node.mean_value == 0.5
        assert not node.is_terminal
        assert node.is_fully_expanded

    def test_terminal_flag(self) -> None:
        node = Node(state=None, mover=None, terminal_value=1.0)
        assert node.is_terminal

    def test_mean_value(self) -> None:
        node = Node(state=None, mover="A", visits=4, win_score=3.0)
        assert node.mean_value == pytest.approx(0.75)

    def test_rave_stat_default_value(self) -> None:
        assert RaveStat().value == 0.5
        assert RaveStat(visits=4, score=1.0).value == pytest.approx(0.25)


class TestNodeArena:
    """Tests for NodeArena bookkeeping."""

    def test_add_registers_child(self) -> None:
        arena = build_arena()
        assert len(arena) == 4
        assert arena[0].children == {"a": 1, "b": 2}
        assert arena.children(0) == [("a", 1), ("b", 2)]

    def test_duplicate_move_rejected(self) -> None:
        arena = build_arena()
        with pytest.raises(ValueError):
            arena.add(Node(state="dup", mover="B", parent=0, move="a"))

    def test_path_and_depth(self) -> None:
        arena = build_arena()
        assert arena.path_to_root(3) == [3, 1, 0]
        assert arena.depth(3) == 2
        assert arena.depth(0) == 0

    def test_best_child_and_pv(self) -> None:
        arena = build_arena()
        assert arena.best_child_by_visits(0) == ("a", 1)
        assert arena.best_child_by_visits(3) is None
        assert arena.principal_variation(0) == ["a", "c"]
        assert arena.principal_variation(0, max_depth=1) == ["a"]

    def test_visit_distribution(self) -> None:
        arena = build_arena()
        policy = arena.visit_distribution(0)
        assert policy["a"] == pytest.approx(5 / 8)
        assert policy["b"] == pytest.approx(3 / 8)

    def test_subtree_is_parents_first(self) -> None:
        arena = build_arena()
        assert arena.subtree(0) == [0, 1, 2, 3]
        assert arena.subtree(1) == [1, 3]

    def test_extract_reroots(self) -> None:
        arena = build_arena()
        extracted = arena.extract(1)

        assert len(extracted) == 2
        root = extracted[0]
        assert root.state == "1"
        assert root.parent is None
        assert root.move is None
        assert root.visits == 5
        assert root.children == {"c": 1}
        assert extracted[1].parent == 0
        assert extracted[1].state == "3"
