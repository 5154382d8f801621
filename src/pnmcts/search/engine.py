"""MCTS engine with RAVE and proof-number search (game-agnostic)."""

from __future__ import annotations

import threading
import time
from collections.abc import Hashable
from typing import Any

from loguru import logger

from pnmcts.core.errors import NoLegalMovesError, SearchConfigError
from pnmcts.search.config import SearchConfig
from pnmcts.search.hooks import SearchHooks
from pnmcts.search.playout import checked_legal_moves
from pnmcts.search.proof import ProofStatus
from pnmcts.search.result import SearchResult, SearchStats, StopReason
from pnmcts.search.session import SearchSession


class MCTSEngine:
    """MCTS engine blending UCT, RAVE and proof numbers.

    Selection uses the UCT-RAVE score

        score = beta * RAVE(m) + (1 - beta) * W/n + C * sqrt(ln N / n)
        beta  = sqrt(k / (3n + k))

    while proof numbers, maintained over the AND-OR structure of the tree,
    let proven wins and losses override the statistics. The search proceeds
    in four phases per iteration (select, expand, simulate, backpropagate)
    and, after the budget, plays a proven win if one exists, avoids proven
    losses, and otherwise picks the most visited root move.

    The engine builds a fresh tree for every decision unless `reuse_tree`
    is set and the caller reports played moves through `advance`.
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        hooks: SearchHooks | None = None,
    ) -> None:
        """Initialize the MCTSEngine.

        Args:
            config: Search configuration. Uses defaults if None.
            hooks: Optional game-profile hooks.
        """
        self.config = config or SearchConfig()
        self.hooks = hooks or SearchHooks()
        self._session: SearchSession | None = None

        logger.debug(
            f"MCTSEngine initialized with iterations={self.config.iterations}, "
            f"use_pns={self.config.use_pns}, reuse_tree={self.config.reuse_tree}"
        )

    @property
    def name(self) -> str:
        """Return the engine name."""
        return f"MCTS(n={self.config.iterations})"

    @property
    def session(self) -> SearchSession | None:
        """Session of the last decision (None before the first search)."""
        return self._session

    def reset(self) -> None:
        """Reset engine state (clears the search tree)."""
        self._session = None

    def select_move(self, state: Any) -> Hashable:
        """Run a search and return only the chosen move."""
        return self.search(state).move

    def search(
        self,
        state: Any,
        *,
        iterations: int | None = None,
        cancel: threading.Event | None = None,
    ) -> SearchResult:
        """Search `state` and choose a move for the player to move.

        Args:
            state: Root position; must not be terminal.
            iterations: Budget for this call. Defaults to the config value.
            cancel: Optional event; when set, the search stops after the
                current iteration and answers from what it has.

        Returns:
            SearchResult with the move and, in debug mode, root statistics.

        Raises:
            NoLegalMovesError: If `state` is terminal.
            SearchConfigError: If the budget or a resolved tunable is invalid.
            ContractViolationError: If the game breaks its contract.
        """
        start = time.perf_counter()
        budget = self.config.iterations if iterations is None else iterations
        if budget < 1:
            raise SearchConfigError("iterations", f"must be >= 1, got {budget}")
        if state.is_terminal():
            raise NoLegalMovesError(f"cannot search a finished game: {state!r}")

        moves = checked_legal_moves(state)
        if len(moves) == 1:
            self._session = None
            return SearchResult(
                move=moves[0],
                iterations=0,
                elapsed=time.perf_counter() - start,
                stop_reason=StopReason.SINGLE_MOVE,
            )

        session = self._reusable_session(state)
        if session is None:
            session = SearchSession(state, self.config, self.hooks)
        self._session = session

        deadline = None
        if self.config.time_limit is not None:
            deadline = time.monotonic() + self.config.time_limit

        done_before = session.iterations
        reason = session.run(budget, cancel=cancel, deadline=deadline)
        move, _ = session.final_move()
        iterations_run = session.iterations - done_before

        if reason in (StopReason.CANCELLED, StopReason.DEADLINE):
            logger.warning(
                f"MCTSEngine: stopped early ({reason.value}) after "
                f"{iterations_run}/{budget} iterations"
            )
        root_status = session.root.status
        if root_status is ProofStatus.DISPROVEN:
            logger.warning("MCTSEngine: root is disproven, playing the most resilient move")

        elapsed = time.perf_counter() - start
        logger.debug(
            f"MCTSEngine: {iterations_run} iterations in {elapsed:.3f}s "
            f"({reason.value}), root={root_status.value}, move={move!r}"
        )
        return SearchResult(
            move=move,
            iterations=iterations_run,
            elapsed=elapsed,
            stop_reason=reason,
            root_status=root_status,
            root_visits=session.root_visits(),
            stats=session.stats() if self.config.debug else None,
        )

    def _reusable_session(self, state: Any) -> SearchSession | None:
        session = self._session
        if not self.config.reuse_tree or session is None:
            return None
        if session.root_state != state:
            logger.debug("MCTSEngine: retained tree does not match the position, discarding")
            return None
        return session

    def advance(self, move: Hashable) -> None:
        """Report a played move so the retained tree can follow it.

        Call it for every move of the game (own and opponent's). Without
        `reuse_tree` the tree is simply dropped.
        """
        session = self._session
        if session is None:
            return
        if not self.config.reuse_tree or not session.reroot(move):
            self._session = None

    # -------------------------------------------------------------------------
    # Analysis methods
    # -------------------------------------------------------------------------

    def get_pv(self) -> list[Hashable]:
        """Principal variation (most visited path from the root).

        Must be called after search().
        """
        if self._session is None:
            return []
        return self._session.arena.principal_variation(0)

    def get_root_policy(self) -> dict[Hashable, float]:
        """Normalized visit distribution at the root.

        Must be called after search().
        """
        if self._session is None:
            return {}
        return self._session.arena.visit_distribution(0)

    def get_root_value(self) -> float:
        """Mean value of the root for the player to move there.

        Must be called after search().
        """
        if self._session is None:
            return 0.5
        return 1.0 - self._session.root.mean_value

    def get_root_stats(self) -> SearchStats | None:
        """Detailed statistics for all root children, even outside debug mode."""
        if self._session is None:
            return None
        return self._session.stats()
