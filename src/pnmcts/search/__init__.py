"""MCTS search with RAVE and proof-number search."""

from pnmcts.search.base import Engine, RandomEngine
from pnmcts.search.config import DIFFICULTY_PRESETS, SearchConfig, parse_level
from pnmcts.search.engine import MCTSEngine
from pnmcts.search.final import select_final_move
from pnmcts.search.hooks import Objective, ResolvedParameters, SearchHooks, Tunable
from pnmcts.search.node import Node, NodeArena, RaveStat
from pnmcts.search.proof import PROOF_INFINITY, ProofState, ProofStatus
from pnmcts.search.result import ChildStats, SearchResult, SearchStats, StopReason
from pnmcts.search.session import SearchSession

__all__ = [
    "DIFFICULTY_PRESETS",
    "PROOF_INFINITY",
    "ChildStats",
    "Engine",
    "MCTSEngine",
    "Node",
    "NodeArena",
    "Objective",
    "ProofState",
    "ProofStatus",
    "RandomEngine",
    "RaveStat",
    "ResolvedParameters",
    "SearchConfig",
    "SearchHooks",
    "SearchResult",
    "SearchSession",
    "SearchStats",
    "StopReason",
    "Tunable",
    "parse_level",
    "select_final_move",
]
