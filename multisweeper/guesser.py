"""Risk-scored fallback guess for when logical deduction stalls."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .config import DEFAULT_GUESS_POLICY, GuessPolicy
from .model import CellView, GroupTotal
from .utils import NeighborFn, Pos


@dataclass(frozen=True)
class GuessCandidate:
    """A hidden cell with its estimated risk and the number of clues behind it."""

    pos: Pos
    risk: float
    evidence: int


def global_risk(
    cells: Sequence[Sequence[CellView]],
    group_totals: Optional[Sequence[GroupTotal]],
    policy: GuessPolicy = DEFAULT_GUESS_POLICY,
) -> float:
    """
    Fraction of hidden unmarked cells expected to hold a non-zero count.

    Uses the remaining group counts (total minus cells already opened or
    marked with that value); falls back to `policy.default_global_risk` when
    totals are unknown.
    """
    hidden = 0
    fixed: Dict[int, int] = {}
    for row in cells:
        for view in row:
            if view.is_unknown:
                hidden += 1
            elif not view.opened:
                fixed[view.marker_count] = fixed.get(view.marker_count, 0) + 1
            elif view.mine_count:
                fixed[view.mine_count] = fixed.get(view.mine_count, 0) + 1

    if group_totals is None or hidden == 0:
        return policy.default_global_risk

    remaining = sum(
        max(0, total - fixed.get(group, 0)) for group, total in group_totals if group != 0
    )
    return min(1.0, remaining / hidden)


def rank_guesses(
    cells: Sequence[Sequence[CellView]],
    neighbors: NeighborFn,
    max_mines_per_cell: int,
    negative_mines: bool = False,
    group_totals: Optional[Sequence[GroupTotal]] = None,
    policy: GuessPolicy = DEFAULT_GUESS_POLICY,
) -> List[GuessCandidate]:
    """
    Score every hidden unmarked cell and sort from safest to riskiest.

    Each opened neighbor with a hint (a clue) contributes the share of its
    unresolved count spread over its unknown neighbors. The averaged local
    risk is blended with the board-wide risk; cells without any clue get the
    board-wide risk plus a penalty for the missing information.

    Args:
        cells: cells[row][col] snapshot views.
        neighbors: Neighbor capability for the board geometry.
        max_mines_per_cell: Largest count a cell may hold.
        negative_mines: Whether counts down to -max are allowed.
        group_totals: Board-wide totals per non-zero value, if known.
        policy: Blend weights and penalties.

    Returns:
        Candidates sorted by risk, then most evidence, then row-major position.
    """
    board_risk = global_risk(cells, group_totals, policy)
    min_value = -max_mines_per_cell if negative_mines and policy.signed_residual else 0
    scale = max(1, max_mines_per_cell)

    # Clue cells are shared by many candidates; cache their local risk.
    clue_risk: Dict[Pos, Optional[float]] = {}

    def local_risk(clue: Pos) -> Optional[float]:
        if clue in clue_risk:
            return clue_risk[clue]
        view = cells[clue[0]][clue[1]]
        known = 0
        unknown = 0
        for nr, nc in neighbors(*clue):
            nv = cells[nr][nc]
            if nv.opened:
                known += nv.mine_count or 0
            elif nv.marker_count != 0:
                known += nv.marker_count
            else:
                unknown += 1

        risk: Optional[float] = None
        if unknown > 0 and view.hint is not None:
            residual = view.hint - known
            clamped = max(min_value * unknown, min(max_mines_per_cell * unknown, residual))
            risk = abs(clamped) / (scale * unknown)
        clue_risk[clue] = risk
        return risk

    candidates: List[GuessCandidate] = []
    for row in cells:
        for view in row:
            if not view.is_unknown:
                continue

            risks: List[float] = []
            for nr, nc in neighbors(view.row, view.col):
                nv = cells[nr][nc]
                if not nv.opened or nv.hint is None:
                    continue
                r = local_risk((nr, nc))
                if r is not None:
                    risks.append(r)

            if risks:
                local = sum(risks) / len(risks)
                risk = policy.local_weight * local + policy.global_weight * board_risk
            else:
                risk = board_risk + policy.no_evidence_penalty
            candidates.append(GuessCandidate((view.row, view.col), risk, len(risks)))

    candidates.sort(key=lambda g: (g.risk, -g.evidence, g.pos))
    return candidates


def choose_guess(
    cells: Sequence[Sequence[CellView]],
    neighbors: NeighborFn,
    max_mines_per_cell: int,
    negative_mines: bool = False,
    group_totals: Optional[Sequence[GroupTotal]] = None,
    policy: GuessPolicy = DEFAULT_GUESS_POLICY,
) -> Optional[GuessCandidate]:
    """Return the lowest-risk hidden cell, or None if nothing is left to open."""
    ranked = rank_guesses(
        cells, neighbors, max_mines_per_cell, negative_mines, group_totals, policy
    )
    return ranked[0] if ranked else None
