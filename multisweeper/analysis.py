"""Benchmarking tools: how often generated boards can be solved without guessing."""

import logging
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np

from .config import DEFAULT_DENSITY, DEFAULT_MAX_SEARCH_NODES, DIFFICULTY_LEVELS
from .engine import GameStatus, Minesweeper
from .model import SolverResult
from .orchestrator import solve_auto_with_guesses
from .utils import Pos

logger = logging.getLogger(__name__)


def format_board(
    game: Minesweeper,
    result: Optional[SolverResult] = None,
    *,
    show_coords: bool = True,
) -> str:
    """
    Format the visible board, optionally overlaid with a solver result.

    Args:
        game: Game whose visible state is shown.
        result: If given, proven opens are drawn as "o" and proven marks as
            "+n" on top of the hidden cells.
        show_coords: If True, include coordinate labels and a header.

    Returns:
        A text grid: hints for opened cells, "*n" for markers, "." otherwise.
    """
    overlay: Dict[Pos, str] = {}
    if result is not None:
        for pos in result.opens:
            overlay[pos] = "o"
        for row, col, value in result.marks:
            overlay[(row, col)] = f"+{value}"

    def cell_str(r: int, c: int) -> str:
        view = game.cell_view(r, c)
        if view.opened:
            s = str(view.hint) if view.hint is not None else "?"
        elif (r, c) in overlay:
            s = overlay[(r, c)]
        elif view.marker_count != 0:
            s = f"*{view.marker_count}"
        else:
            s = "."
        return f"{s:>3}"

    lines: List[str] = []
    if show_coords:
        header = "".join(f"{c:>3}" for c in range(game.cols))
        lines.append("    " + header)
        lines.append("    " + "-" * (3 * game.cols))

    for r in range(game.rows):
        row = "".join(cell_str(r, c) for c in range(game.cols))
        lines.append(f"{r:2d} |" + row if show_coords else row)

    return "\n".join(lines)


def run_solver_single_test(
    rows: int,
    cols: int,
    mines_total: int,
    max_mines_per_cell: int,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    *,
    density: float = DEFAULT_DENSITY,
    negative_mines: bool = False,
    seed: Optional[int] = None,
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
    show_boards: bool = False,
) -> Dict[str, object]:
    """
    Generate one board and play it end to end with logic plus guesses.

    Args:
        rows: Board height.
        cols: Board width.
        mines_total: Total positive mines on the board.
        max_mines_per_cell: Largest count a cell may hold.
        mines_generation_algorithm: Mine placement rule
            ("safe_first_action_rule" or "safe_neighborhood_rule").
        density: Placement clumping in [0, 1].
        negative_mines: Enable negative mines.
        seed: Board seed.
        max_search_nodes: Whole-board search budget per solver call.
        show_boards: If True, print the underlying and the final visible board.

    Returns:
        Metrics of the play-through: "status" (-1 loss, 1 win, 0 unfinished),
        "guesses", "no_guess", "logical_steps", "opened", "marked",
        "contradiction", "incomplete_steps".
    """
    game = Minesweeper(
        rows,
        cols,
        mines_total,
        max_mines_per_cell=max_mines_per_cell,
        mines_generation_algorithm=mines_generation_algorithm,
        density=density,
        negative_mines=negative_mines,
        seed=seed,
    )
    report = solve_auto_with_guesses(game, max_search_nodes=max_search_nodes)

    if show_boards:
        print(f"Generation mode: {mines_generation_algorithm}")
        print("Underlying board (mines visible):")
        print(game.format_board(reveal_all=True))
        print()
        print("Final visible board:")
        print(format_board(game))
        print()
        print(f"Finished as {report.status.value} after {report.guesses} guesses.")

    status = {GameStatus.WON: 1, GameStatus.LOST: -1}.get(report.status, 0)
    return {
        "status": status,
        "guesses": report.guesses,
        "no_guess": report.no_guess,
        "logical_steps": report.logical_steps,
        "opened": report.opened,
        "marked": report.marked,
        "contradiction": report.contradiction,
        "incomplete_steps": report.incomplete_steps,
    }


def run_solver_many_tests(
    rows: int,
    cols: int,
    mines_total: int,
    max_mines_per_cell: int,
    runs: int,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    *,
    density: float = DEFAULT_DENSITY,
    negative_mines: bool = False,
    base_seed: int = 0,
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
) -> Dict[str, float]:
    """
    Play many independent boards and aggregate their metrics.

    Board i uses seed base_seed + i, so a run is reproducible.

    Returns:
        - win_rate, no_guess_rate
        - avg_guesses, median_guesses, p90_guesses, max_guesses
        - avg_logical_steps, avg_opened, avg_marked
        - contradiction_count, incomplete_runs

    Raises:
        ValueError: If runs is not positive.
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    results = [
        run_solver_single_test(
            rows,
            cols,
            mines_total,
            max_mines_per_cell,
            mines_generation_algorithm,
            density=density,
            negative_mines=negative_mines,
            seed=base_seed + i,
            max_search_nodes=max_search_nodes,
        )
        for i in range(runs)
    ]

    guesses = np.array([r["guesses"] for r in results], dtype=float)
    wins = np.array([r["status"] == 1 for r in results], dtype=float)
    no_guess = np.array([bool(r["no_guess"]) for r in results], dtype=float)

    out: Dict[str, float] = {
        "win_rate": float(wins.mean()),
        "no_guess_rate": float(no_guess.mean()),
        "avg_guesses": float(guesses.mean()),
        "median_guesses": float(np.median(guesses)),
        "p90_guesses": float(np.percentile(guesses, 90)),
        "max_guesses": float(guesses.max()),
        "avg_logical_steps": float(np.mean([r["logical_steps"] for r in results])),
        "avg_opened": float(np.mean([r["opened"] for r in results])),
        "avg_marked": float(np.mean([r["marked"] for r in results])),
        "contradiction_count": float(sum(bool(r["contradiction"]) for r in results)),
        "incomplete_runs": float(sum(r["incomplete_steps"] > 0 for r in results)),
    }
    if out["contradiction_count"]:
        logger.warning(
            "%d of %d boards produced a contradiction; check the generator.",
            int(out["contradiction_count"]),
            runs,
        )
    return out


def run_no_guess_level_analysis(
    runs: int,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    *,
    density: float = DEFAULT_DENSITY,
    negative_mines: bool = False,
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
    levels: Optional[Dict[str, tuple]] = None,
    show: bool = True,
) -> Dict[str, Dict[str, float]]:
    """
    Run aggregated play-throughs per difficulty level and plot summaries.

    Args:
        runs: Number of boards per level.
        mines_generation_algorithm: Mine placement rule.
        density: Placement clumping in [0, 1].
        negative_mines: Enable negative mines.
        max_search_nodes: Whole-board search budget per solver call.
        levels: name -> (rows, cols, mines_total, max_mines_per_cell);
            defaults to `DIFFICULTY_LEVELS`.
        show: Display the figures (disable for headless runs).

    Returns:
        Mapping from level name to the statistics of run_solver_many_tests().
    """
    levels = levels or DIFFICULTY_LEVELS

    results: Dict[str, Dict[str, float]] = {}
    for level, (rows, cols, mines, max_per_cell) in levels.items():
        results[level] = run_solver_many_tests(
            rows,
            cols,
            mines,
            max_per_cell,
            runs,
            mines_generation_algorithm,
            density=density,
            negative_mines=negative_mines,
            max_search_nodes=max_search_nodes,
        )

    level_names = list(levels.keys())
    x = np.arange(len(level_names))
    bar_w = 0.35

    # 1) Win rate and no-guess rate
    win_rates = [results[n]["win_rate"] for n in level_names]
    no_guess_rates = [results[n]["no_guess_rate"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x - bar_w / 2, win_rates, width=bar_w, label="win rate")  # type: ignore[misc]
    plt.bar(x + bar_w / 2, no_guess_rates, width=bar_w, label="no-guess rate")  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Fraction of boards")  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title("Win and no-guess rate by difficulty level")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()

    # 2) Guesses needed
    avg_guesses = [results[n]["avg_guesses"] for n in level_names]
    p90_guesses = [results[n]["p90_guesses"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x - bar_w / 2, avg_guesses, width=bar_w, label="mean")  # type: ignore[misc]
    plt.bar(x + bar_w / 2, p90_guesses, width=bar_w, label="90th percentile")  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Guesses per board")  # type: ignore[misc]
    plt.title("Guesses needed by difficulty level")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()

    if show:
        plt.show()  # type: ignore[misc]

    return results
