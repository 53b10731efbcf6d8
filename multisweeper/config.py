"""Default settings for the solver, the guesser and the reference game engine."""

from dataclasses import dataclass
from typing import Dict, Tuple

# Whole-board search budget (nodes) for the global backtracking pass.
DEFAULT_MAX_SEARCH_NODES: int = 5_000_000

# Each connected component gets max(MIN_COMPONENT_SEARCH_NODES, budget // divisor).
MIN_COMPONENT_SEARCH_NODES: int = 200_000
COMPONENT_BUDGET_DIVISOR: int = 4

# Safety cap on logical steps in one "run until stuck" loop.
DEFAULT_MAX_LOGICAL_STEPS: int = 1_000

# Game defaults
MAX_MINES_PER_CELL_LIMIT: int = 6
DEFAULT_MAX_MINES_PER_CELL: int = 6
DEFAULT_DENSITY: float = 0.6
NEGATIVE_MINE_RATIO: float = 0.3
MINES_GENERATION_ALGORITHMS: Tuple[str, ...] = (
    "safe_first_action_rule",
    "safe_neighborhood_rule",
)

# (rows, cols, mines_total, max_mines_per_cell)
DIFFICULTY_LEVELS: Dict[str, Tuple[int, int, int, int]] = {
    "beginner": (9, 9, 14, 2),
    "intermediate": (16, 16, 60, 3),
    "expert": (16, 30, 170, 6),
}


@dataclass(frozen=True)
class GuessPolicy:
    """
    Coefficients of the risk-scored guesser.

    Attributes:
        local_weight: Weight of the averaged clue-local risk.
        global_weight: Weight of the board-wide remaining-mine fraction.
        no_evidence_penalty: Added to the global risk for cells with no clue.
        default_global_risk: Board-wide risk used when group totals are unknown.
        signed_residual: In negative mode, clamp a clue's residual down to
            -max * unknown instead of 0, so negative residuals carry risk.
    """

    local_weight: float = 0.75
    global_weight: float = 0.25
    no_evidence_penalty: float = 0.05
    default_global_risk: float = 0.5
    signed_residual: bool = False

    def __post_init__(self) -> None:
        if self.local_weight < 0 or self.global_weight < 0:
            raise ValueError("Risk weights must be non-negative.")
        if self.no_evidence_penalty < 0:
            raise ValueError("no_evidence_penalty must be non-negative.")
        if not 0.0 <= self.default_global_risk <= 1.0:
            raise ValueError("default_global_risk must lie in [0, 1].")


DEFAULT_GUESS_POLICY = GuessPolicy()
