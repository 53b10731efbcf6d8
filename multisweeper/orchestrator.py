"""Drives a live game with the logical solver, falling back to guesses when stuck."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .config import (
    DEFAULT_GUESS_POLICY,
    DEFAULT_MAX_LOGICAL_STEPS,
    DEFAULT_MAX_SEARCH_NODES,
    GuessPolicy,
)
from .engine import GameStatus, Minesweeper
from .guesser import choose_guess
from .model import SolverInput, SolverResult
from .solver import solve_logically
from .utils import Pos

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    """Cells changed by one solver step and the solver result behind them."""

    opened: int
    marked: int
    result: SolverResult

    @property
    def progress(self) -> bool:
        return self.opened > 0 or self.marked > 0


@dataclass
class RunOutcome:
    """Totals of a run of logical steps and why it ended."""

    steps: int = 0
    opened: int = 0
    marked: int = 0
    contradiction: bool = False
    reason: Optional[str] = None
    incomplete_steps: int = 0
    stuck: bool = False


@dataclass
class AutoSolveReport:
    """End-to-end play-through statistics for one board."""

    status: GameStatus = GameStatus.PLAYING
    guesses: int = 0
    logical_steps: int = 0
    opened: int = 0
    marked: int = 0
    contradiction: bool = False
    reason: Optional[str] = None
    incomplete_steps: int = 0
    guessed_cells: List[Pos] = field(default_factory=list)

    @property
    def won(self) -> bool:
        return self.status is GameStatus.WON

    @property
    def no_guess(self) -> bool:
        return self.won and self.guesses == 0


def build_solver_input(
    game: Minesweeper,
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
    use_group_totals: bool = True,
) -> SolverInput:
    """
    Snapshot a game for the solver.

    Group totals are only passed once mines have been placed; before that the
    board has no committed distribution.
    """
    group_totals = None
    if use_group_totals and not game.board_blank:
        group_totals = game.group_totals()
    return SolverInput(
        rows=game.rows,
        cols=game.cols,
        cells=game.cell_views(),
        max_mines_per_cell=game.max_mines_per_cell,
        negative_mines=game.negative_mines,
        group_totals=group_totals,
        max_search_nodes=max_search_nodes,
        neighbors=game.neighbors,
    )


def request_hint(
    game: Minesweeper,
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
    use_group_totals: bool = True,
) -> SolverResult:
    """Return the proven opens and marks for the current board without applying them."""
    return solve_logically(build_solver_input(game, max_search_nodes, use_group_totals))


def solve_logical_step(
    game: Minesweeper,
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
    use_group_totals: bool = True,
) -> StepOutcome:
    """
    Run the solver once and apply every forced open and mark to the game.

    Cells changed since the snapshot (opened by an earlier flood fill, or
    marked) are skipped.
    """
    if game.game_over:
        return StepOutcome(0, 0, SolverResult())

    result = request_hint(game, max_search_nodes, use_group_totals)
    if result.contradiction:
        logger.warning("Solver reported a contradiction: %s", result.reason)
        return StepOutcome(0, 0, result)

    opened = 0
    marked = 0
    for row, col in result.opens:
        if game.game_over:
            break
        if game.opened[row][col] or game.markers[row][col] != 0:
            continue
        _, payload = game.reveal(row, col)
        opened += len(payload.get("revealed_cells", ()))

    for row, col, value in result.marks:
        if game.game_over:
            break
        if game.opened[row][col] or game.markers[row][col] != 0:
            continue
        if game.set_marker(row, col, value):
            marked += 1

    return StepOutcome(opened, marked, result)


def solve_logical_until_stuck(
    game: Minesweeper,
    max_steps: int = DEFAULT_MAX_LOGICAL_STEPS,
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
    use_group_totals: bool = True,
) -> RunOutcome:
    """
    Repeat logical steps until one makes no progress.

    Also stops on a contradiction, at game end, or after `max_steps` steps.
    """
    run = RunOutcome()
    while not game.game_over and run.steps < max_steps:
        step = solve_logical_step(game, max_search_nodes, use_group_totals)
        run.steps += 1
        run.opened += step.opened
        run.marked += step.marked
        if not step.result.complete:
            run.incomplete_steps += 1

        if step.result.contradiction:
            run.contradiction = True
            run.reason = step.result.reason
            break
        if not step.progress:
            run.stuck = True
            break

    return run


def _first_click(game: Minesweeper) -> Pos:
    if game.mines_generation_algorithm == "safe_first_action_rule":
        return 0, 0
    return game.rows // 2, game.cols // 2


def solve_auto_with_guesses(
    game: Minesweeper,
    first_click: Optional[Pos] = None,
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
    policy: GuessPolicy = DEFAULT_GUESS_POLICY,
    max_guesses: Optional[int] = None,
    use_group_totals: bool = True,
) -> AutoSolveReport:
    """
    Play a board to the end, alternating "logic until stuck" with one guess.

    Args:
        game: The game to play; it is mutated.
        first_click: Opening move if nothing is open yet (not counted as a
            guess). Defaults to (0, 0) under "safe_first_action_rule" and the
            board center otherwise.
        max_search_nodes: Whole-board search budget per solver call.
        policy: Guesser coefficients.
        max_guesses: Stop instead of guessing once this many guesses were made.
        use_group_totals: Pass the board's group totals to the solver.

    Returns:
        An `AutoSolveReport`; `guesses` is the number of risk-scored guesses
        the board required.
    """
    report = AutoSolveReport()

    if not any(any(row) for row in game.opened) and not game.game_over:
        row, col = first_click if first_click is not None else _first_click(game)
        _, payload = game.reveal(row, col)
        report.opened += len(payload.get("revealed_cells", ()))

    while not game.game_over:
        run = solve_logical_until_stuck(
            game, max_search_nodes=max_search_nodes, use_group_totals=use_group_totals
        )
        report.logical_steps += run.steps
        report.opened += run.opened
        report.marked += run.marked
        report.incomplete_steps += run.incomplete_steps

        if run.contradiction:
            report.contradiction = True
            report.reason = run.reason
            break
        if game.game_over:
            break
        if not run.stuck:
            continue
        if max_guesses is not None and report.guesses >= max_guesses:
            break

        guess = choose_guess(
            game.cell_views(),
            game.neighbors,
            game.max_mines_per_cell,
            game.negative_mines,
            game.group_totals() if use_group_totals and not game.board_blank else None,
            policy,
        )
        if guess is None:
            break

        report.guesses += 1
        report.guessed_cells.append(guess.pos)
        logger.debug("Guessing %s at risk %.3f.", guess.pos, guess.risk)
        _, payload = game.reveal(*guess.pos)
        report.opened += len(payload.get("revealed_cells", ()))

    report.status = game.status
    logger.info(
        "Auto-solve finished: %s after %d guesses and %d logical steps.",
        report.status.value,
        report.guesses,
        report.logical_steps,
    )
    return report


def is_no_guess(
    game: Minesweeper,
    first_click: Optional[Pos] = None,
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES,
) -> bool:
    """Whether the board can be won from its first click by forced deductions alone."""
    report = solve_auto_with_guesses(
        game, first_click=first_click, max_search_nodes=max_search_nodes, max_guesses=0
    )
    return report.no_guess
