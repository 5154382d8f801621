"""Engine-versus-engine matches."""

from pnmcts.benchmark.match import (
    GameResult,
    GameTermination,
    MatchConfig,
    MatchResult,
    MatchRunner,
    score_to_elo,
)

__all__ = [
    "GameResult",
    "GameTermination",
    "MatchConfig",
    "MatchResult",
    "MatchRunner",
    "score_to_elo",
]
