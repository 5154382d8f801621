"""Child selection: UCT blended with RAVE, short-circuited by proofs.

For a child reached by move m with n visits under a parent with N visits:

    exploitation = W / n
    exploration  = C * sqrt(ln(N) / n)
    beta         = sqrt(k / (3n + k))
    blended      = beta * rave(m) + (1 - beta) * exploitation
    score        = blended + exploration

`W` is stored from the perspective of the player choosing at the parent,
and the parent's RAVE table is scored from that same player's view, so no
sign flip is needed here. Without RAVE the score is plain UCT.
"""

from __future__ import annotations

import math
from collections.abc import Hashable

from pnmcts.search.hooks import ResolvedParameters
from pnmcts.search.node import Node, NodeArena, NodeHandle
from pnmcts.search.proof import ProofStatus


def uct_score(
    win_score: float,
    visits: int,
    parent_visits: int,
    exploration_constant: float,
) -> float:
    """Plain UCT score of a child. Unvisited children score +inf."""
    if visits == 0:
        return math.inf
    exploitation = win_score / visits
    exploration = exploration_constant * math.sqrt(math.log(max(parent_visits, 1)) / visits)
    return exploitation + exploration


def rave_beta(visits: int, rave_k: float) -> float:
    """Weight of the RAVE estimate; 1 for an unvisited child, fading with visits."""
    return math.sqrt(rave_k / (3 * visits + rave_k))


def uct_rave_score(
    parent: Node,
    move: Hashable,
    child: Node,
    params: ResolvedParameters,
) -> float:
    """Selection score of `child` from the point of view of `parent`'s mover."""
    if child.visits == 0:
        return math.inf
    if not params.use_rave:
        return uct_score(child.win_score, child.visits, parent.visits, params.exploration_constant)

    exploitation = child.win_score / child.visits
    exploration = params.exploration_constant * math.sqrt(
        math.log(max(parent.visits, 1)) / child.visits
    )
    entry = parent.rave.get(move)
    rave_value = entry.value if entry is not None else 0.5
    beta = rave_beta(child.visits, params.rave_k)
    return beta * rave_value + (1 - beta) * exploitation + exploration


def proof_ranks(children: list[tuple[Hashable, Node]], or_node: bool) -> dict[Hashable, float]:
    """Rank children in [0, 1] by how close they are to a result the mover wants.

    OR nodes prefer a low proof number, AND nodes a low disproof number.
    Children with equal numbers share the rank of the first of them.
    """
    if len(children) == 1:
        return {children[0][0]: 0.5}

    def key(item: tuple[Hashable, Node]) -> int:
        proof = item[1].proof
        return proof.pn if or_node else proof.dn

    ordered = sorted(children, key=key)
    max_rank = len(ordered) - 1
    ranks: dict[Hashable, float] = {}
    previous_key = None
    previous_rank = 1.0
    for index, item in enumerate(ordered):
        current = key(item)
        rank = previous_rank if current == previous_key else 1 - index / max_rank
        ranks[item[0]] = rank
        previous_key, previous_rank = current, rank
    return ranks


def select_child(
    arena: NodeArena,
    handle: NodeHandle,
    params: ResolvedParameters,
    *,
    searching_player: Hashable,
    use_pns: bool = True,
    pn_weight: float = 0.0,
) -> tuple[Hashable, NodeHandle]:
    """Pick the child of `handle` to descend into.

    Args:
        arena: Arena holding the tree.
        handle: An expanded node with at least one child.
        params: Resolved tunables for this decision.
        searching_player: The root mover; proof status is relative to it.
        use_pns: Let solved children short-circuit or drop out of selection.
        pn_weight: Weight of the proof-number rank blended into the score.

    Returns:
        Tuple of (move, child handle).
    """
    parent = arena[handle]
    children = [(move, arena[child]) for move, child in parent.children.items()]
    if not children:
        raise ValueError(f"node {handle} has no expanded children")

    or_node = parent.mover == searching_player
    eligible = children
    if use_pns:
        # A win for the mover at this ply is taken outright; a loss is skipped.
        wanted = ProofStatus.PROVEN if or_node else ProofStatus.DISPROVEN
        unwanted = ProofStatus.DISPROVEN if or_node else ProofStatus.PROVEN
        for move, child in children:
            if child.status is wanted:
                return move, parent.children[move]
        eligible = [(m, c) for m, c in children if c.status is not unwanted] or children

    ranks = proof_ranks(eligible, or_node) if use_pns and pn_weight > 0 else None

    best_move = None
    best_score = -math.inf
    for move, child in eligible:
        score = uct_rave_score(parent, move, child, params)
        if ranks is not None and math.isfinite(score):
            score = (1 - pn_weight) * score + pn_weight * ranks[move]
        if score > best_score:
            best_score = score
            best_move = move

    if best_move is None:
        raise ValueError(f"no child of node {handle} has a comparable score")
    return best_move, parent.children[best_move]
