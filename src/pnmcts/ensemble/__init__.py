"""Ensembles of independent MCTS sessions."""

from pnmcts.ensemble.orchestrator import (
    EnsembleConfig,
    EnsembleOrchestrator,
    EnsembleResult,
    aggregate_results,
)

__all__ = ["EnsembleConfig", "EnsembleOrchestrator", "EnsembleResult", "aggregate_results"]
