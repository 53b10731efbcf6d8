"""Logical solver: proves safe cells and exact mine counts without guessing."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .components import infer_forced_from_components
from .config import COMPONENT_BUDGET_DIVISOR, MIN_COMPONENT_SEARCH_NODES
from .model import (
    ConstraintModel,
    ContradictionError,
    Equation,
    SolverInput,
    SolverMark,
    SolverResult,
    build_group_totals,
    build_model,
    non_zero_values,
    value_range,
)
from .propagation import propagate_bounds
from .search import ExactSearch
from .utils import Pos

logger = logging.getLogger(__name__)


def solve_logically(solver_input: SolverInput) -> SolverResult:
    """
    Find every cell whose mine count is forced by the visible board.

    The passes run cheapest first and return as soon as one proves something:
    1. Bound-consistency propagation over the hint equations.
    2. Exact enumeration of each connected component.
    3. A whole-board search using the global group totals (only when supplied).

    Args:
        solver_input: Board snapshot, rules and search budget.

    Returns:
        A `SolverResult`. Contradictions are reported in the result rather
        than raised.
    """
    try:
        return _solve(solver_input)
    except ContradictionError as exc:
        logger.warning("Contradiction: %s", exc.reason)
        return SolverResult.from_contradiction(exc.reason)


def _solve(solver_input: SolverInput) -> SolverResult:
    max_value = solver_input.max_mines_per_cell
    min_value = solver_input.min_value
    values = non_zero_values(min_value, max_value)
    use_global_counts = solver_input.group_totals is not None
    group_totals = (
        build_group_totals(values, solver_input.group_totals)
        if use_global_counts
        else None
    )

    model = build_model(
        solver_input.rows,
        solver_input.cols,
        solver_input.cells,
        solver_input.neighbor_fn(),
        group_totals,
    )
    logger.debug(
        "Model: %d unknown, %d constrained, %d equations.",
        model.unknown_count,
        len(model.constrained),
        len(model.equations),
    )

    remaining: Dict[int, int] = {}
    if group_totals is not None:
        remaining = _remaining_counts(model, values, group_totals)
        allowed = [0] + [v for v in values if remaining[v] > 0]
        allowed.sort()
    else:
        allowed = value_range(min_value, max_value)

    propagation = propagate_bounds(model.constrained, model.equations, allowed)
    if propagation.forced:
        return _forced_result(model, propagation.forced)

    component_budget = max(
        MIN_COMPONENT_SEARCH_NODES,
        solver_input.max_search_nodes // COMPONENT_BUDGET_DIVISOR,
    )
    components = infer_forced_from_components(
        model.constrained, model.equations, propagation.domains, component_budget
    )
    if components.forced:
        result = _forced_result(model, components.forced)
        if not components.complete:
            result.complete = False
            result.reason = "Component search budget reached."
        return result

    if not use_global_counts:
        return SolverResult(
            stalled=True,
            complete=components.complete,
            reason=None if components.complete else "Component search budget reached.",
        )

    if not model.constrained:
        return solve_from_global_counts(model, remaining, values)

    return _global_search(
        model, propagation.domains, remaining, solver_input.max_search_nodes
    )


def _remaining_counts(
    model: ConstraintModel, values: Sequence[int], group_totals: Dict[int, int]
) -> Dict[int, int]:
    remaining: Dict[int, int] = {}
    for v in values:
        rem = group_totals.get(v, 0) - model.fixed_counts.get(v, 0)
        if rem < 0:
            raise ContradictionError(f"Too many fixed cells for group {v}.")
        remaining[v] = rem

    if sum(remaining.values()) > model.unknown_count:
        raise ContradictionError("Remaining mine groups exceed unknown cell count.")
    return remaining


def _forced_result(model: ConstraintModel, forced: Dict[int, int]) -> SolverResult:
    opens: List[Pos] = []
    marks: List[SolverMark] = []
    for var_id in sorted(forced):
        row, col = model.unknown_positions[var_id]
        value = forced[var_id]
        if value == 0:
            opens.append((row, col))
        else:
            marks.append(SolverMark(row, col, value))
    return SolverResult(opens=opens, marks=marks, stalled=not (opens or marks))


def exact_single_group(
    counts: Dict[int, int], values: Sequence[int], total: int
) -> Optional[int]:
    """Return the one value whose count equals `total` when every other count is 0."""
    found: Optional[int] = None
    for v in values:
        c = counts.get(v, 0)
        if c == 0:
            continue
        if c == total and found is None:
            found = v
            continue
        return None
    return found


def solve_from_global_counts(
    model: ConstraintModel, remaining: Dict[int, int], values: Sequence[int]
) -> SolverResult:
    """
    Resolve a board with no hint equations from the remaining group counts alone.

    Every unknown cell is free here: all open when nothing remains, all share
    one value when that single value exactly fills them.
    """
    opens: List[Pos] = []
    marks: List[SolverMark] = []
    free_count = len(model.free)
    left = sum(remaining.values())

    if left == 0:
        opens = [model.unknown_positions[v] for v in model.free]
    elif left == free_count:
        exact = exact_single_group(remaining, values, free_count)
        if exact is not None:
            marks = [
                SolverMark(*model.unknown_positions[v], exact) for v in model.free
            ]

    return SolverResult(opens=opens, marks=marks, stalled=not (opens or marks))


def _global_search(
    model: ConstraintModel,
    domains: Dict[int, List[int]],
    remaining: Dict[int, int],
    max_nodes: int,
) -> SolverResult:
    local_index = {v: i for i, v in enumerate(model.constrained)}
    local_equations = [
        Equation(tuple(local_index[v] for v in eq.variables), eq.target)
        for eq in model.equations
    ]
    values = sorted(remaining)
    free_count = len(model.free)

    search = ExactSearch(
        [domains[v] for v in model.constrained],
        local_equations,
        max_nodes=max_nodes,
        group_counts=remaining,
        free_count=free_count,
    )
    outcome = search.run()
    logger.debug(
        "Global search: %d nodes, %d solutions, aborted=%s.",
        outcome.nodes,
        outcome.solutions,
        outcome.aborted,
    )

    if outcome.aborted:
        logger.warning("Global search budget of %d nodes exhausted.", max_nodes)
        return SolverResult(
            stalled=True,
            complete=False,
            reason="Search limit reached before proving forced moves.",
        )

    if outcome.solutions == 0:
        raise ContradictionError("No assignments satisfy the visible constraints.")

    forced = {model.constrained[i]: val for i, val in outcome.forced().items()}
    result = _forced_result(model, forced)

    if free_count > 0:
        opens, marks = _resolve_free_cells(model, outcome.remaining_min, outcome.remaining_max, values)
        result.opens.extend(opens)
        result.marks.extend(marks)

    result.stalled = not result.progress
    return result


def _resolve_free_cells(
    model: ConstraintModel,
    remaining_min: Dict[int, int],
    remaining_max: Dict[int, int],
    values: Sequence[int],
) -> Tuple[List[Pos], List[SolverMark]]:
    free_count = len(model.free)
    min_left = sum(remaining_min.values())
    max_left = sum(remaining_max.values())
    all_fixed = all(remaining_min[v] == remaining_max[v] for v in values)

    if max_left == 0:
        return [model.unknown_positions[v] for v in model.free], []

    if min_left == free_count and max_left == free_count and all_fixed:
        exact = exact_single_group(remaining_min, values, free_count)
        if exact is not None:
            return [], [SolverMark(*model.unknown_positions[v], exact) for v in model.free]

    return [], []
