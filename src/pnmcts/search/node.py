"""Search tree nodes and the arena that owns them."""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from dataclasses import dataclass, field
from typing import Any

from pnmcts.search.proof import LEAF, ProofState, ProofStatus

NodeHandle = int


@dataclass
class RaveStat:
    """All-moves-as-first statistics for one move at one node.

    `score` is accumulated from the perspective of the player to move at
    the node owning the table.
    """

    visits: int = 0
    score: float = 0.0

    @property
    def value(self) -> float:
        return self.score / self.visits if self.visits > 0 else 0.5


@dataclass
class Node:
    """A node in the search tree.

    Each node represents the position reached by playing `move` from the
    parent. The root node has move=None and parent=None.

    Statistics:
        visits: Backpropagation passes through this node.
        win_score: Accumulated value on a [0, 1] scale from the perspective
            of the player who chose `move` (the parent's mover). The root
            accumulates from the point of view of its mover's opponent.
        rave: AMAF table for the moves legal at this node, scored from the
            point of view of `mover`.
        proof: Proof and disproof numbers relative to the searching player.
    """

    state: Any
    mover: Hashable | None
    parent: NodeHandle | None = None
    move: Hashable | None = None
    legal: frozenset = frozenset()
    untried: list = field(default_factory=list)
    children: dict[Hashable, NodeHandle] = field(default_factory=dict)

    visits: int = 0
    win_score: float = 0.0
    rave: dict[Hashable, RaveStat] = field(default_factory=dict)
    proof: ProofState = LEAF

    # Exact value for the searching player, set on terminal nodes only.
    terminal_value: float | None = None

    @property
    def is_terminal(self) -> bool:
        return self.terminal_value is not None

    @property
    def is_fully_expanded(self) -> bool:
        return not self.untried

    @property
    def status(self) -> ProofStatus:
        return self.proof.status

    @property
    def mean_value(self) -> float:
        """Mean value from the perspective of the player who chose `move`.

        Returns 0.5 for unvisited nodes.
        """
        return self.win_score / self.visits if self.visits > 0 else 0.5

    def __repr__(self) -> str:
        move_str = "root" if self.parent is None else repr(self.move)
        return (
            f"Node({move_str}, N={self.visits}, Q={self.mean_value:.3f}, "
            f"pn={self.proof.pn}, dn={self.proof.dn})"
        )


class NodeArena:
    """Owns every node of one search tree.

    Nodes are addressed by integer handles, which double as the weak
    parent back-references. Callers never hold nodes beyond the arena's
    lifetime.
    """

    def __init__(self) -> None:
        self._nodes: list[Node] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, handle: NodeHandle) -> Node:
        return self._nodes[handle]

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def add(self, node: Node) -> NodeHandle:
        """Store a node and return its handle.

        A non-root node is registered in its parent's `children` mapping.
        """
        handle = len(self._nodes)
        self._nodes.append(node)
        if node.parent is not None:
            parent = self._nodes[node.parent]
            if node.move in parent.children:
                raise ValueError(f"move {node.move!r} already expanded at node {node.parent}")
            parent.children[node.move] = handle
        return handle

    def children(self, handle: NodeHandle) -> list[tuple[Hashable, NodeHandle]]:
        """(move, child handle) pairs in expansion order."""
        return list(self._nodes[handle].children.items())

    def path_to_root(self, handle: NodeHandle) -> list[NodeHandle]:
        """Handles from `handle` up to and including the root."""
        path = [handle]
        parent = self._nodes[handle].parent
        while parent is not None:
            path.append(parent)
            parent = self._nodes[parent].parent
        return path

    def depth(self, handle: NodeHandle) -> int:
        return len(self.path_to_root(handle)) - 1

    def best_child_by_visits(self, handle: NodeHandle) -> tuple[Hashable, NodeHandle] | None:
        """Return the child with the highest visit count.

        Returns:
            Tuple of (move, child handle) or None if no children.
        """
        children = self.children(handle)
        if not children:
            return None
        return max(children, key=lambda kv: self._nodes[kv[1]].visits)

    def visit_distribution(self, handle: NodeHandle) -> dict[Hashable, float]:
        """Normalized visit counts of the children (policy after search)."""
        children = self.children(handle)
        total = sum(self._nodes[h].visits for _, h in children)
        if total == 0:
            return {move: 0.0 for move, _ in children}
        return {move: self._nodes[h].visits / total for move, h in children}

    def principal_variation(self, handle: NodeHandle, max_depth: int = 10) -> list[Hashable]:
        """Most visited path from `handle`.

        Args:
            handle: Node to start from.
            max_depth: Maximum depth to traverse.

        Returns:
            List of moves forming the principal variation.
        """
        pv: list[Hashable] = []
        for _ in range(max_depth):
            best = self.best_child_by_visits(handle)
            if best is None:
                break
            move, handle = best
            pv.append(move)
        return pv

    def subtree(self, handle: NodeHandle) -> list[NodeHandle]:
        """Handles of the subtree rooted at `handle`, parents before children."""
        order = [handle]
        i = 0
        while i < len(order):
            order.extend(self._nodes[order[i]].children.values())
            i += 1
        return order

    def extract(self, handle: NodeHandle) -> NodeArena:
        """Build a new arena holding only the subtree rooted at `handle`.

        The kept subtree is renumbered with the new root at handle 0 and its
        parent link cleared. Statistics are carried over unchanged. The nodes
        are moved, not copied: this arena must not be used afterwards.
        """
        order = self.subtree(handle)
        remap = {old: new for new, old in enumerate(order)}

        arena = NodeArena()
        for old in order:
            node = self._nodes[old]
            node.parent = None if old == handle else remap[node.parent]
            node.children = {move: remap[child] for move, child in node.children.items()}
            arena._nodes.append(node)
        arena._nodes[0].move = None
        return arena
