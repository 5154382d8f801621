"""One search session: the tree, its settings and the MCTS loop."""

from __future__ import annotations

import threading
import time
from collections.abc import Hashable
from typing import Any

import numpy as np
from loguru import logger

from pnmcts.core.errors import ContractViolationError, NoLegalMovesError
from pnmcts.search.config import SearchConfig
from pnmcts.search.final import select_final_move
from pnmcts.search.hooks import SearchHooks, resolve_parameters, tunables
from pnmcts.search.node import Node, NodeArena, NodeHandle, RaveStat
from pnmcts.search.playout import (
    EvaluationCache,
    PlayoutResult,
    checked_legal_moves,
    checked_mover,
    ordered_moves,
    run_playout,
    terminal_value,
)
from pnmcts.search.proof import ProofStatus, aggregate, terminal_proof
from pnmcts.search.result import ChildStats, SearchStats, StopReason
from pnmcts.search.selection import select_child

ROOT: NodeHandle = 0


class SearchSession:
    """Owns the arena of one decision and runs iterations on it.

    Each iteration performs:
        1. SELECT: descend with UCT/RAVE, short-circuiting on proofs
        2. EXPAND: create one child for the first untried move
        3. SIMULATE: bounded playout, exact result or heuristic estimate
        4. BACKPROPAGATE: visits, values and RAVE up the path, then proof
           numbers until they stop changing

    A session is single-threaded; ensemble members each get their own.
    """

    def __init__(
        self,
        state: Any,
        config: SearchConfig,
        hooks: SearchHooks | None = None,
    ) -> None:
        if state.is_terminal():
            raise NoLegalMovesError(f"cannot search a finished game: {state!r}")

        self.config = config
        self.hooks = hooks or SearchHooks()
        self.searching_player = checked_mover(state)
        # Resolved before the tree is touched so bad hook values fail early.
        self.params = resolve_parameters(state, config, self.hooks)
        self.rng = np.random.default_rng(config.seed)
        self.cache = EvaluationCache(self.hooks, enabled=config.use_transposition_table)
        self.iterations = 0

        self.arena = NodeArena()
        self.arena.add(self._make_root(state))
        self._log_parameters()

    @property
    def root(self) -> Node:
        return self.arena[ROOT]

    @property
    def root_state(self) -> Any:
        return self.root.state

    def _log_parameters(self) -> None:
        sources = ", ".join(f"{t.name}<-{t.source()}" for t in tunables(self.config, self.hooks))
        logger.debug(
            f"SearchSession: C={self.params.exploration_constant:.3f}, "
            f"rave={self.params.use_rave} (k={self.params.rave_k}), "
            f"playout_depth={self.params.playout_depth} [{sources}]"
        )

    # -------------------------------------------------------------------------
    # Node creation
    # -------------------------------------------------------------------------

    def _make_root(self, state: Any) -> Node:
        moves = checked_legal_moves(state)

        if self.hooks.threat_response is not None:
            forced = list(self.hooks.threat_response(state, moves))
            if any(move not in moves for move in forced):
                raise ContractViolationError("threat_response hook returned an illegal move")
            if forced:
                moves = forced

        limit = self.config.max_root_moves
        if limit is not None and len(moves) > limit:
            keep = np.sort(self.rng.choice(len(moves), size=limit, replace=False))
            moves = [moves[int(i)] for i in keep]

        return Node(
            state=state,
            mover=self.searching_player,
            legal=frozenset(moves),
            untried=ordered_moves(state, moves, self.hooks),
        )

    def _make_node(self, state: Any, parent: NodeHandle, move: Hashable) -> Node:
        if state.is_terminal():
            value = terminal_value(state, self.searching_player)
            return Node(
                state=state,
                mover=None,
                parent=parent,
                move=move,
                terminal_value=value,
                proof=terminal_proof(value),
            )

        moves = checked_legal_moves(state)
        return Node(
            state=state,
            mover=checked_mover(state),
            parent=parent,
            move=move,
            legal=frozenset(moves),
            untried=ordered_moves(state, moves, self.hooks),
        )

    # -------------------------------------------------------------------------
    # Main loop
    # -------------------------------------------------------------------------

    def run(
        self,
        iterations: int,
        *,
        cancel: threading.Event | None = None,
        deadline: float | None = None,
    ) -> StopReason:
        """Run up to `iterations` iterations.

        The cancellation event and the deadline (a `time.monotonic()` value)
        are checked between iterations, after at least one has completed.
        """
        for _ in range(iterations):
            if self.is_solved():
                return StopReason.SOLVED
            self.run_iteration()
            if cancel is not None and cancel.is_set():
                return StopReason.CANCELLED
            if deadline is not None and time.monotonic() >= deadline:
                return StopReason.DEADLINE
        if self.is_solved():
            return StopReason.SOLVED
        return StopReason.BUDGET

    def is_solved(self) -> bool:
        """Whether more iterations can no longer change the decision.

        A Proven root is final. A Disproven root only means no forced win,
        so the search keeps going until every root move ends the game and
        draws can be told apart from losses.
        """
        if not (self.config.use_pns and self.config.stop_when_solved):
            return False
        root = self.root
        if not root.children:
            return False
        if root.status is ProofStatus.PROVEN:
            return True
        return (
            root.status is ProofStatus.DISPROVEN
            and root.is_fully_expanded
            and all(self.arena[child].is_terminal for child in root.children.values())
        )

    def run_iteration(self) -> None:
        arena = self.arena
        handle = ROOT
        node = arena[handle]
        path = [handle]
        trajectory: list[tuple[Hashable, Hashable]] = []

        # SELECT
        while not node.is_terminal and node.is_fully_expanded:
            move, handle = select_child(
                arena,
                handle,
                self.params,
                searching_player=self.searching_player,
                use_pns=self.config.use_pns,
                pn_weight=self.config.pn_weight,
            )
            trajectory.append((node.mover, move))
            node = arena[handle]
            path.append(handle)

        # EXPAND
        if not node.is_terminal:
            move = node.untried.pop(0)
            trajectory.append((node.mover, move))
            handle = arena.add(self._make_node(node.state.apply_move(move), handle, move))
            node = arena[handle]
            path.append(handle)

        # SIMULATE
        if node.is_terminal:
            result = PlayoutResult(node.terminal_value, exact=True)
        else:
            result = run_playout(
                node.state,
                depth=self.params.playout_depth,
                searching_player=self.searching_player,
                hooks=self.hooks,
                rng=self.rng,
                cache=self.cache,
            )
        trajectory.extend(result.moves)

        # BACKPROPAGATE
        self._backpropagate(path, result.value)
        if self.params.use_rave:
            self._update_rave(path, trajectory, result.value)
        self._update_proofs(path)
        self.iterations += 1

    # -------------------------------------------------------------------------
    # Backpropagation
    # -------------------------------------------------------------------------

    def _value_for(self, player: Hashable | None, value: float) -> float:
        """Convert a value for the searching player to `player`'s view."""
        return value if player == self.searching_player else 1.0 - value

    def _backpropagate(self, path: list[NodeHandle], value: float) -> None:
        """Update visits and values from the leaf up to the root.

        Each node is credited from the point of view of the player who moved
        into it; the root from its mover's opponent.
        """
        for handle in reversed(path):
            node = self.arena[handle]
            node.visits += 1
            if node.parent is None:
                node.win_score += 1.0 - self._value_for(node.mover, value)
            else:
                node.win_score += self._value_for(self.arena[node.parent].mover, value)

    def _update_rave(
        self,
        path: list[NodeHandle],
        trajectory: list[tuple[Hashable, Hashable]],
        value: float,
    ) -> None:
        """Credit every later move of a node's mover that was legal at that node.

        trajectory[i] is the move played at path[i] for tree nodes; the
        playout moves follow. Only the first play of a move counts.
        """
        for depth, handle in enumerate(path):
            node = self.arena[handle]
            if node.is_terminal:
                continue
            credit = self._value_for(node.mover, value)
            seen: set[Hashable] = set()
            for mover, move in trajectory[depth:]:
                if mover != node.mover or move in seen:
                    continue
                seen.add(move)
                if move not in node.legal:
                    continue
                stat = node.rave.get(move)
                if stat is None:
                    stat = node.rave[move] = RaveStat()
                stat.visits += 1
                stat.score += credit

    def _recompute_proof(self, node: Node) -> None:
        node.proof = aggregate(
            (self.arena[child].proof for child in node.children.values()),
            untried=len(node.untried),
            or_node=node.mover == self.searching_player,
        )

    def _update_proofs(self, path: list[NodeHandle]) -> None:
        """Re-aggregate proof numbers above the leaf.

        The leaf's own proof was fixed at creation. Solved nodes never change,
        and once a node keeps its proof state nothing above it can change.
        """
        for handle in reversed(path[:-1]):
            node = self.arena[handle]
            if node.status.is_solved:
                break
            before = node.proof
            self._recompute_proof(node)
            if node.proof == before:
                break

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def final_move(self) -> tuple[Hashable, NodeHandle]:
        return select_final_move(
            self.arena,
            ROOT,
            use_pns=self.config.use_pns,
            trust_visits=self.config.proof_trust_visits,
        )

    def root_visits(self) -> dict[Hashable, int]:
        return {move: self.arena[child].visits for move, child in self.root.children.items()}

    def stats(self) -> SearchStats:
        """Per-child breakdown of the root for debugging."""
        root = self.root
        children = []
        for move, handle in root.children.items():
            child = self.arena[handle]
            rave = root.rave.get(move, RaveStat())
            children.append(
                ChildStats(
                    move=move,
                    visits=child.visits,
                    mean_value=child.mean_value,
                    proof_number=child.proof.pn,
                    disproof_number=child.proof.dn,
                    status=child.status,
                    trusted=child.visits >= self.config.proof_trust_visits,
                    rave_visits=rave.visits,
                    rave_value=rave.value,
                )
            )

        counts = {status: 0 for status in ("proven", "disproven", "unknown")}
        for child in children:
            counts[child.status.value] += 1

        return SearchStats(
            proven=counts["proven"],
            disproven=counts["disproven"],
            unknown=counts["unknown"],
            children=children,
            principal_variation=self.arena.principal_variation(ROOT),
            tree_size=len(self.arena),
            cache_hits=self.cache.hits,
            exploration_constant=self.params.exploration_constant,
            use_rave=self.params.use_rave,
            rave_k=self.params.rave_k,
            playout_depth=self.params.playout_depth,
        )

    # -------------------------------------------------------------------------
    # Tree reuse
    # -------------------------------------------------------------------------

    def reroot(self, move: Hashable) -> bool:
        """Keep only the subtree under `move` and make it the new root.

        Returns:
            False when the move was never expanded or leads to a finished
            game; the session is then unusable and should be discarded.
        """
        handle = self.root.children.get(move)
        if handle is None or self.arena[handle].is_terminal:
            return False

        self.arena = self.arena.extract(handle)
        new_root = self.root
        self.params = resolve_parameters(new_root.state, self.config, self.hooks)

        if new_root.mover != self.searching_player:
            self.searching_player = new_root.mover
            self.cache = EvaluationCache(self.hooks, enabled=self.config.use_transposition_table)
            self._rebuild_proofs()

        logger.debug(
            f"SearchSession: re-rooted on {move!r}, kept {len(self.arena)} nodes, "
            f"{new_root.visits} visits"
        )
        return True

    def _rebuild_proofs(self) -> None:
        """Recompute every proof for a new searching player, leaves first."""
        for handle in reversed(self.arena.subtree(ROOT)):
            node = self.arena[handle]
            if node.is_terminal:
                node.terminal_value = terminal_value(node.state, self.searching_player)
                node.proof = terminal_proof(node.terminal_value)
            else:
                self._recompute_proof(node)
