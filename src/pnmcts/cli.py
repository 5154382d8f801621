"""Command-line interface for pnmcts."""

from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from pnmcts import __version__
from pnmcts.benchmark import MatchRunner
from pnmcts.core.errors import PnmctsError
from pnmcts.ensemble import EnsembleOrchestrator
from pnmcts.games import (
    CHESS_HOOKS,
    TICTACTOE_HOOKS,
    ChessState,
    NimState,
    TicTacToeState,
)
from pnmcts.search import MCTSEngine, RandomEngine, SearchHooks, SearchStats
from pnmcts.utils import Settings, load_settings, setup_logging

app = typer.Typer(
    name="pnmcts",
    help="pnmcts: MCTS with RAVE and proof-number search",
    add_completion=False,
)
console = Console()

GAMES = ("tictactoe", "nim", "chess")


def _load_game(game: str, position: str | None) -> tuple[Any, SearchHooks]:
    """Build the start state and hooks for one of the bundled games."""
    try:
        if game == "tictactoe":
            state = TicTacToeState.from_string(position) if position else TicTacToeState()
            return state, TICTACTOE_HOOKS
        if game == "nim":
            return NimState(int(position) if position else 21), SearchHooks()
        if game == "chess":
            return (ChessState.from_fen(position) if position else ChessState()), CHESS_HOOKS
    except ValueError as e:
        raise typer.BadParameter(f"invalid {game} position {position!r}: {e}") from e
    raise typer.BadParameter(f"unknown game {game!r}, expected one of {', '.join(GAMES)}")


def _settings(
    config: Path | None,
    overrides: list[str] | None,
    iterations: int | None,
    seed: int | None,
    debug: bool,
) -> Settings:
    """Load settings, apply the dedicated flags and configure logging."""
    try:
        settings = load_settings(config, overrides)
        changes: dict[str, Any] = {}
        if iterations is not None:
            changes["iterations"] = iterations
        if seed is not None:
            changes["seed"] = seed
        if debug:
            changes["debug"] = True
        if changes:
            settings.search = settings.search.with_overrides(**changes)
    except (PnmctsError, FileNotFoundError, TypeError) as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(code=2) from e

    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.file,
        search_trace=settings.logging.search_trace,
    )
    return settings


def _format_move(move: Any) -> str:
    return str(move)


def _stats_table(stats: SearchStats) -> Table:
    table = Table(title="Root moves")
    table.add_column("Move", style="cyan")
    table.add_column("Visits", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("PN", justify="right")
    table.add_column("DN", justify="right")
    table.add_column("Status")
    table.add_column("RAVE", justify="right")

    for child in sorted(stats.children, key=lambda c: -c.visits):
        status = child.status.value if child.trusted else f"{child.status.value}?"
        table.add_row(
            _format_move(child.move),
            str(child.visits),
            f"{child.mean_value:.3f}",
            str(child.proof_number),
            str(child.disproof_number),
            status,
            f"{child.rave_value:.3f} ({child.rave_visits})",
        )
    return table


@app.command()
def version() -> None:
    """Print version information."""
    console.print(f"[bold blue]pnmcts[/bold blue] v{__version__}")


@app.command()
def search(
    game: str = typer.Argument(..., help="Game to search: tictactoe, nim or chess"),
    position: str | None = typer.Option(
        None, "--position", "-p", help="Board string, pile size or FEN"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Settings YAML file"),
    overrides: list[str] | None = typer.Option(
        None, "--set", "-s", help="Override a setting, e.g. search.rave_k=300"
    ),
    iterations: int | None = typer.Option(None, "--iterations", "-n", help="Iteration budget"),
    seed: int | None = typer.Option(None, "--seed", help="Playout RNG seed"),
    debug: bool = typer.Option(False, "--debug", help="Show per-move statistics"),
) -> None:
    """Search a position and print the chosen move."""
    state, hooks = _load_game(game, position)
    settings = _settings(config, overrides, iterations, seed, debug)

    engine = MCTSEngine(settings.search, hooks)
    try:
        result = engine.search(state)
    except PnmctsError as e:
        console.print(f"[bold red]Search failed:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    console.print(
        f"[bold green]Best move:[/bold green] {_format_move(result.move)} "
        f"[dim]({result.iterations} iterations, {result.elapsed:.2f}s, "
        f"{result.stop_reason.value}, root {result.root_status.value})[/dim]"
    )
    if result.stats is not None:
        console.print(_stats_table(result.stats))
        pv = " ".join(_format_move(m) for m in result.stats.principal_variation)
        console.print(f"[bold]PV:[/bold] {pv}")


@app.command()
def ensemble(
    game: str = typer.Argument(..., help="Game to search: tictactoe, nim or chess"),
    position: str | None = typer.Option(
        None, "--position", "-p", help="Board string, pile size or FEN"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Settings YAML file"),
    overrides: list[str] | None = typer.Option(
        None, "--set", "-s", help="Override a setting, e.g. ensemble.size=8"
    ),
    iterations: int | None = typer.Option(None, "--iterations", "-n", help="Budget per member"),
    seed: int | None = typer.Option(None, "--seed", help="Base seed for the members"),
) -> None:
    """Search a position with an ensemble of independent sessions."""
    state, hooks = _load_game(game, position)
    settings = _settings(config, overrides, iterations, seed, debug=False)

    orchestrator = EnsembleOrchestrator(settings.search, hooks, settings.ensemble)
    try:
        decision = orchestrator.search(state)
    except PnmctsError as e:
        console.print(f"[bold red]Search failed:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    table = Table(title=f"Ensemble of {len(decision.members)}")
    table.add_column("Move", style="cyan")
    table.add_column("Votes", justify="right")
    table.add_column("Visits", justify="right")
    for move, visits in sorted(decision.visits.items(), key=lambda item: -item[1]):
        table.add_row(_format_move(move), str(decision.votes.get(move, 0)), str(visits))
    console.print(table)
    console.print(
        f"[bold green]Best move:[/bold green] {_format_move(decision.move)} "
        f"[dim](by {decision.method})[/dim]"
    )


@app.command()
def match(
    game: str = typer.Argument(..., help="Game to play: tictactoe, nim or chess"),
    position: str | None = typer.Option(
        None, "--position", "-p", help="Start position of every game"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Settings YAML file"),
    overrides: list[str] | None = typer.Option(
        None, "--set", "-s", help="Override a setting, e.g. match.games=20"
    ),
    iterations: int | None = typer.Option(None, "--iterations", "-n", help="MCTS budget"),
    opponent_iterations: int | None = typer.Option(
        None, "--opponent-iterations", help="Budget of an MCTS opponent; random play if omitted"
    ),
    seed: int | None = typer.Option(None, "--seed", help="Seed for both engines"),
) -> None:
    """Play MCTS against a baseline and report the score."""
    state, hooks = _load_game(game, position)
    settings = _settings(config, overrides, iterations, seed, debug=False)

    engine_a = MCTSEngine(settings.search, hooks)
    if opponent_iterations is None:
        engine_b: Any = RandomEngine(seed=settings.search.seed)
    else:
        engine_b = MCTSEngine(settings.search.with_overrides(iterations=opponent_iterations), hooks)

    runner = MatchRunner(settings.match)
    result = runner.play_match(engine_a, engine_b, state, show_progress=True)

    console.print(
        f"[bold]{result.engine_a}[/bold] vs [bold]{result.engine_b}[/bold]: "
        f"[green]+{result.wins}[/green] [yellow]={result.draws}[/yellow] "
        f"[red]-{result.losses}[/red]  score {result.score:.1%}, "
        f"Elo {result.elo_estimate:+.0f}"
    )


if __name__ == "__main__":
    app()
