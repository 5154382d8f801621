"""pnmcts: game-agnostic Monte Carlo Tree Search with RAVE and proof numbers.

The engine searches any two-player game exposed through the small
`GameState` protocol:

- `from pnmcts import MCTSEngine, SearchConfig, SearchHooks`
- `from pnmcts.ensemble import EnsembleOrchestrator`
- `from pnmcts.games import TicTacToeState, ChessState`
"""

__version__ = "0.1.0"

# Re-export common entry points for convenience
from pnmcts.core import GameState, Outcome
from pnmcts.ensemble import EnsembleConfig, EnsembleOrchestrator
from pnmcts.search import MCTSEngine, SearchConfig, SearchHooks, SearchResult
from pnmcts.utils import load_config, save_config, setup_logging

__all__ = [
    "EnsembleConfig",
    "EnsembleOrchestrator",
    "GameState",
    "MCTSEngine",
    "Outcome",
    "SearchConfig",
    "SearchHooks",
    "SearchResult",
    "__version__",
    "load_config",
    "save_config",
    "setup_logging",
]
