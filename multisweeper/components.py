"""Connected-component partition and exact per-component solving."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Tuple

from .model import ContradictionError, Equation
from .search import ExactSearch

logger = logging.getLogger(__name__)


@dataclass
class ComponentPassResult:
    """Forced values proven by the component pass, and whether every search finished."""

    forced: Dict[int, int] = field(default_factory=dict)
    complete: bool = True


def find_components(
    constrained: Sequence[int], equations: Sequence[Equation]
) -> List[Tuple[List[int], List[int]]]:
    """
    Partition constrained variables into components linked by shared equations.

    Returns:
        (variable_ids, equation_indices) pairs, in order of each component's
        first variable in `constrained`.
    """
    eq_by_var: Dict[int, List[int]] = {v: [] for v in constrained}
    for ei, eq in enumerate(equations):
        for v in eq.variables:
            if v in eq_by_var:
                eq_by_var[v].append(ei)

    visited: Set[int] = set()
    components: List[Tuple[List[int], List[int]]] = []

    for start in constrained:
        if start in visited:
            continue

        stack: List[int] = [start]
        visited.add(start)
        comp_vars: List[int] = []
        comp_eqs: Set[int] = set()

        while stack:
            v = stack.pop()
            comp_vars.append(v)
            for ei in eq_by_var[v]:
                if ei in comp_eqs:
                    continue
                comp_eqs.add(ei)
                for other in equations[ei].variables:
                    if other not in visited:
                        visited.add(other)
                        stack.append(other)

        components.append((sorted(comp_vars), sorted(comp_eqs)))

    return components


def solve_component(
    comp_vars: Sequence[int],
    comp_eqs: Sequence[int],
    equations: Sequence[Equation],
    domains: Dict[int, List[int]],
    max_nodes: int,
) -> ComponentPassResult:
    """
    Enumerate all assignments of one component and report its forced values.

    Raises:
        ContradictionError: If the finished search found no solution at all.
    """
    local_index = {v: i for i, v in enumerate(comp_vars)}
    local_equations = [
        Equation(
            tuple(local_index[v] for v in equations[ei].variables if v in local_index),
            equations[ei].target,
        )
        for ei in comp_eqs
    ]

    search = ExactSearch(
        [domains[v] for v in comp_vars], local_equations, max_nodes=max_nodes
    )
    outcome = search.run()

    if outcome.aborted:
        logger.debug(
            "Component of %d cells hit its budget after %d solutions.",
            len(comp_vars),
            outcome.solutions,
        )
        return ComponentPassResult(complete=False)

    if outcome.solutions == 0:
        raise ContradictionError("Local constraints are contradictory.")

    forced = {comp_vars[i]: val for i, val in outcome.forced().items()}
    return ComponentPassResult(forced=forced)


def infer_forced_from_components(
    constrained: Sequence[int],
    equations: Sequence[Equation],
    domains: Dict[int, List[int]],
    max_nodes_per_component: int,
) -> ComponentPassResult:
    """
    Solve each connected component exactly and merge their forced values.

    A component whose search ran out of budget contributes nothing and marks
    the pass incomplete.
    """
    result = ComponentPassResult()
    if not constrained or not equations:
        return result

    components = find_components(constrained, equations)
    logger.debug("Component pass over %d components.", len(components))

    for comp_vars, comp_eqs in components:
        local = solve_component(
            comp_vars, comp_eqs, equations, domains, max_nodes_per_component
        )
        if not local.complete:
            result.complete = False
        result.forced.update(local.forced)

    return result
