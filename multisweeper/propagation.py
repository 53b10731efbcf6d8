"""Bound-consistency propagation over the equations of a constraint model."""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .model import ContradictionError, Equation


@dataclass
class PropagationResult:
    """Narrowed domains (ascending lists) and the singletons among them."""

    domains: Dict[int, List[int]]
    forced: Dict[int, int] = field(default_factory=dict)


def propagate_bounds(
    constrained: Sequence[int],
    equations: Sequence[Equation],
    allowed_values: Sequence[int],
) -> PropagationResult:
    """
    Narrow every constrained variable's domain to a bound-consistent fixed point.

    For each equation the achievable [min_sum, max_sum] is computed from the
    participants' current bounds. A variable keeps only the values v with
    target - (max_sum - var_max) <= v <= target - (min_sum - var_min).

    Args:
        constrained: Variable ids that appear in at least one equation.
        equations: The model's equations.
        allowed_values: Initial ascending domain shared by all variables.

    Returns:
        Narrowed domains and the variables left with a single value.

    Raises:
        ContradictionError: If an equation's target falls outside its
            achievable range, or a domain becomes empty.
    """
    domains: Dict[int, List[int]] = {v: list(allowed_values) for v in constrained}
    if not constrained or not equations:
        return PropagationResult(domains)

    changed = True
    while changed:
        changed = False
        for eq in equations:
            min_sum = 0
            max_sum = 0
            for v in eq.variables:
                d = domains[v]
                if not d:
                    raise ContradictionError("A constrained cell has no possible values.")
                min_sum += d[0]
                max_sum += d[-1]

            if eq.target < min_sum or eq.target > max_sum:
                raise ContradictionError("Visible hints are contradictory.")

            for v in eq.variables:
                d = domains[v]
                lo = eq.target - (max_sum - d[-1])
                hi = eq.target - (min_sum - d[0])
                pruned = [x for x in d if lo <= x <= hi]
                if not pruned:
                    raise ContradictionError(
                        "Domain pruning found no valid value for a cell."
                    )
                if len(pruned) != len(d):
                    domains[v] = pruned
                    changed = True

    forced = {v: domains[v][0] for v in constrained if len(domains[v]) == 1}
    return PropagationResult(domains, forced)
