"""
Multisweeper logical solver

A deduction engine for minesweeper boards where a cell may hold several
(or, optionally, negative) mines:
- Bound-consistency propagation over the hint equations
- Exact enumeration of each connected component
- Whole-board backtracking with global per-value mine totals
- Risk-scored guessing when no forced move exists
"""

from .analysis import (
    format_board,
    run_no_guess_level_analysis,
    run_solver_many_tests,
    run_solver_single_test,
)
from .config import GuessPolicy
from .engine import GameStatus, Minesweeper
from .guesser import GuessCandidate, choose_guess, rank_guesses
from .model import (
    CellView,
    ContradictionError,
    GroupTotal,
    SolverInput,
    SolverMark,
    SolverResult,
)
from .orchestrator import (
    AutoSolveReport,
    RunOutcome,
    StepOutcome,
    is_no_guess,
    request_hint,
    solve_auto_with_guesses,
    solve_logical_step,
    solve_logical_until_stuck,
)
from .solver import solve_logically
from .utils import grid_neighbors

__version__ = "1.0.0"

__all__ = [
    # Solver contract
    "CellView",
    "GroupTotal",
    "SolverInput",
    "SolverMark",
    "SolverResult",
    "ContradictionError",
    "solve_logically",
    "grid_neighbors",
    # Guessing
    "GuessPolicy",
    "GuessCandidate",
    "rank_guesses",
    "choose_guess",
    # Game and orchestration
    "Minesweeper",
    "GameStatus",
    "StepOutcome",
    "RunOutcome",
    "AutoSolveReport",
    "request_hint",
    "solve_logical_step",
    "solve_logical_until_stuck",
    "solve_auto_with_guesses",
    "is_no_guess",
    # Analysis functions
    "format_board",
    "run_solver_single_test",
    "run_solver_many_tests",
    "run_no_guess_level_analysis",
]
