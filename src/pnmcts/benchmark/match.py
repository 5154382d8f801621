"""Head-to-head matches between two engines.

Handles playing individual games from a start position, alternating which
engine moves first, and summarising the match as a score and an Elo
difference.
"""

from __future__ import annotations

import math
from collections.abc import Hashable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from loguru import logger
from tqdm import tqdm

from pnmcts.core.errors import ContractViolationError
from pnmcts.search.base import Engine


class GameTermination(Enum):
    """How a game ended."""

    FINISHED = "finished"
    MAX_MOVES = "max_moves"
    ENGINE_ERROR = "engine_error"


@dataclass
class MatchConfig:
    """Configuration for a match."""

    games: int = 10
    # Plies before the game is adjudicated a draw
    max_moves: int = 200
    # Swap the first mover every game
    alternate: bool = True

    def __post_init__(self) -> None:
        if self.games < 1:
            msg = f"games must be >= 1, got {self.games}"
            raise ValueError(msg)
        if self.max_moves < 1:
            msg = f"max_moves must be >= 1, got {self.max_moves}"
            raise ValueError(msg)


@dataclass
class GameResult:
    """Result of a single game."""

    # 1.0, 0.0 or 0.5 from Engine A's perspective
    result_value: float
    engine_a_first: bool
    moves: list[Hashable]
    termination: GameTermination

    move_count: int = field(init=False)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self) -> None:
        self.move_count = len(self.moves)


def score_to_elo(score: float) -> float:
    """Convert a match score to an Elo difference (logistic model).

    Capped at +/-1000 for perfect scores.
    """
    if score <= 0.0:
        return -1000.0
    if score >= 1.0:
        return 1000.0
    return -400.0 * math.log10(1.0 / score - 1.0)


@dataclass
class MatchResult:
    """Aggregate of a match, from Engine A's perspective."""

    engine_a: str
    engine_b: str
    games: list[GameResult] = field(default_factory=list)

    @property
    def wins(self) -> int:
        return sum(1 for g in self.games if g.result_value == 1.0)

    @property
    def losses(self) -> int:
        return sum(1 for g in self.games if g.result_value == 0.0)

    @property
    def draws(self) -> int:
        return sum(1 for g in self.games if g.result_value == 0.5)

    @property
    def score(self) -> float:
        """Points per game for Engine A."""
        if not self.games:
            return 0.5
        return sum(g.result_value for g in self.games) / len(self.games)

    @property
    def elo_estimate(self) -> float:
        return score_to_elo(self.score)


class MatchRunner:
    """Plays games between two engines on any game-state implementation."""

    def __init__(self, config: MatchConfig | None = None) -> None:
        self.config = config or MatchConfig()

    def play_game(
        self,
        engine_a: Engine,
        engine_b: Engine,
        start: Any,
        engine_a_first: bool = True,
    ) -> GameResult:
        """Play a single game.

        Args:
            engine_a: The first engine (the one being tested).
            engine_b: The second engine (the baseline).
            start: Starting position; its player to move is the first mover.
            engine_a_first: If True, Engine A moves first.

        Returns:
            GameResult with the outcome.
        """
        engines = (engine_a,) if engine_a is engine_b else (engine_a, engine_b)
        for engine in engines:
            engine.reset()

        player_a = start.current_mover()
        a_to_move = engine_a_first
        state = start
        moves: list[Hashable] = []

        while True:
            if state.is_terminal():
                result_value = state.outcome_for(player_a).score
                if not engine_a_first:
                    # player_a was engine B's side
                    result_value = 1.0 - result_value
                termination = GameTermination.FINISHED
                break

            if len(moves) >= self.config.max_moves:
                result_value = 0.5
                termination = GameTermination.MAX_MOVES
                break

            current = engine_a if a_to_move else engine_b
            try:
                move = current.select_move(state)
                state = state.apply_move(move)
            except ContractViolationError:
                raise
            except Exception as e:
                logger.error(f"Engine error ({current.name}): {e}")
                # Engine that errored loses
                result_value = 0.0 if a_to_move else 1.0
                termination = GameTermination.ENGINE_ERROR
                break

            moves.append(move)
            for engine in engines:
                advance = getattr(engine, "advance", None)
                if advance is not None:
                    advance(move)
            a_to_move = not a_to_move

        logger.debug(
            f"Game over after {len(moves)} moves: {termination.value}, "
            f"{engine_a.name} scored {result_value}"
        )
        return GameResult(
            result_value=result_value,
            engine_a_first=engine_a_first,
            moves=moves,
            termination=termination,
        )

    def play_match(
        self,
        engine_a: Engine,
        engine_b: Engine,
        start: Any,
        show_progress: bool = False,
    ) -> MatchResult:
        """Play `config.games` games and collect the results.

        Args:
            engine_a: The engine being tested.
            engine_b: The baseline.
            start: Starting position of every game.
            show_progress: Display a tqdm progress bar with the running score.

        Returns:
            MatchResult from Engine A's perspective.
        """
        match = MatchResult(engine_a=engine_a.name, engine_b=engine_b.name)

        pbar = None
        if show_progress:
            pbar = tqdm(
                range(self.config.games),
                desc=f"{engine_a.name} vs {engine_b.name}",
                unit="game",
            )
            iterator = pbar
        else:
            iterator = range(self.config.games)

        for game_index in iterator:
            engine_a_first = game_index % 2 == 0 if self.config.alternate else True
            match.games.append(self.play_game(engine_a, engine_b, start, engine_a_first))

            if pbar is not None:
                pbar.set_postfix(
                    wdl=f"{match.wins}-{match.draws}-{match.losses}",
                    score=f"{match.score:.1%}",
                )

        if pbar is not None:
            pbar.close()

        logger.info(
            f"Match {engine_a.name} vs {engine_b.name}: "
            f"+{match.wins} ={match.draws} -{match.losses} "
            f"(score {match.score:.3f}, Elo {match.elo_estimate:+.0f})"
        )
        return match
