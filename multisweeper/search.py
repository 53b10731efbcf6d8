"""Exhaustive, budgeted enumeration of assignments satisfying a set of equations."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Set

from .model import Equation


@dataclass
class SearchOutcome:
    """
    Summary of every solution found by an `ExactSearch` run.

    Attributes:
        solutions: Number of complete assignments found.
        seen_values: seen_values[i] is the set of values variable i took.
        aborted: True if the node budget ran out before the tree was exhausted.
        nodes: Search-tree nodes visited.
        remaining_min: Per group value, the smallest count left for free cells.
        remaining_max: Per group value, the largest count left for free cells.
    """

    solutions: int
    seen_values: List[Set[int]]
    aborted: bool
    nodes: int
    remaining_min: Dict[int, int] = field(default_factory=dict)
    remaining_max: Dict[int, int] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.aborted

    def forced(self) -> Dict[int, int]:
        """Variables whose value was identical in every solution found."""
        return {
            i: next(iter(values))
            for i, values in enumerate(self.seen_values)
            if len(values) == 1
        }


class ExactSearch:
    """
    Depth-first enumeration of all assignments of `domains` meeting `equations`.

    Variables are local indices 0..n-1. The same routine serves a single
    connected component (no group accounting) and the whole board (with
    `group_counts`, the per-value counts still to be placed, and `free_count`,
    the number of unconstrained cells that can absorb leftovers).

    Every solution is enumerated; the search never stops at the first one, so
    values seen in all solutions are proven rather than guessed.
    """

    def __init__(
        self,
        domains: Sequence[Sequence[int]],
        equations: Sequence[Equation],
        max_nodes: int,
        group_counts: Optional[Dict[int, int]] = None,
        free_count: int = 0,
    ) -> None:
        if max_nodes <= 0:
            raise ValueError("max_nodes must be positive.")
        if free_count < 0:
            raise ValueError("free_count must be non-negative.")

        self.domains: List[List[int]] = [list(d) for d in domains]
        self.n: int = len(self.domains)
        self.eq_vars: List[Sequence[int]] = [eq.variables for eq in equations]
        self.eq_targets: List[int] = [eq.target for eq in equations]
        self.max_nodes: int = max_nodes
        self.group_counts: Optional[Dict[int, int]] = (
            dict(group_counts) if group_counts is not None else None
        )
        self.free_count: int = free_count

        self.var_to_eq: List[List[int]] = [[] for _ in range(self.n)]
        for ei, variables in enumerate(self.eq_vars):
            for vi in variables:
                self.var_to_eq[vi].append(ei)

        # Most-constrained first; ties keep the lower index.
        self.order: List[int] = sorted(
            range(self.n), key=lambda i: -len(self.var_to_eq[i])
        )

    # -------------------------------------------------------------------------
    # Search state
    # -------------------------------------------------------------------------

    def _reset(self) -> None:
        self._dom_min = [d[0] for d in self.domains]
        self._dom_max = [d[-1] for d in self.domains]
        self._assigned = [False] * self.n
        self._value = [0] * self.n
        self._assigned_count = 0
        self._eq_sum = [0] * len(self.eq_vars)
        self._eq_open_min = [
            sum(self._dom_min[vi] for vi in variables) for variables in self.eq_vars
        ]
        self._eq_open_max = [
            sum(self._dom_max[vi] for vi in variables) for variables in self.eq_vars
        ]
        self._remaining: Dict[int, int] = dict(self.group_counts or {})
        self._remaining_total = sum(self._remaining.values())

    def _assign(self, vi: int, val: int) -> None:
        self._assigned[vi] = True
        self._value[vi] = val
        self._assigned_count += 1
        for ei in self.var_to_eq[vi]:
            self._eq_sum[ei] += val
            self._eq_open_min[ei] -= self._dom_min[vi]
            self._eq_open_max[ei] -= self._dom_max[vi]
        if self.group_counts is not None and val != 0:
            self._remaining[val] = self._remaining.get(val, 0) - 1
            self._remaining_total -= 1

    def _unassign(self, vi: int) -> None:
        val = self._value[vi]
        self._assigned[vi] = False
        self._assigned_count -= 1
        for ei in self.var_to_eq[vi]:
            self._eq_sum[ei] -= val
            self._eq_open_min[ei] += self._dom_min[vi]
            self._eq_open_max[ei] += self._dom_max[vi]
        if self.group_counts is not None and val != 0:
            self._remaining[val] += 1
            self._remaining_total += 1

    # -------------------------------------------------------------------------
    # Feasibility checks
    # -------------------------------------------------------------------------

    def _equations_feasible(self) -> bool:
        for ei in range(len(self.eq_vars)):
            rem = self.eq_targets[ei] - self._eq_sum[ei]
            if rem < self._eq_open_min[ei] or rem > self._eq_open_max[ei]:
                return False
        return True

    def _candidate_feasible(self, vi: int, val: int) -> bool:
        for ei in self.var_to_eq[vi]:
            rem = self.eq_targets[ei] - (self._eq_sum[ei] + val)
            lo = self._eq_open_min[ei] - self._dom_min[vi]
            hi = self._eq_open_max[ei] - self._dom_max[vi]
            if rem < lo or rem > hi:
                return False
        return True

    def _groups_feasible(self) -> bool:
        if self.group_counts is None:
            return True
        capacity = (self.n - self._assigned_count) + self.free_count
        for rem in self._remaining.values():
            if rem < 0 or rem > capacity:
                return False
        return self._remaining_total <= capacity

    def _candidates(self, vi: int) -> Iterator[int]:
        for val in self.domains[vi]:
            if (
                self.group_counts is not None
                and val != 0
                and self._remaining.get(val, 0) <= 0
            ):
                continue
            if self._candidate_feasible(vi, val):
                yield val

    # -------------------------------------------------------------------------
    # Enumeration
    # -------------------------------------------------------------------------

    def run(self) -> SearchOutcome:
        """
        Enumerate every satisfying assignment within the node budget.

        Returns:
            A `SearchOutcome`; `aborted` is set if the budget ran out, in which
            case the recorded solutions are only a subset of all solutions.
        """
        seen: List[Set[int]] = [set() for _ in range(self.n)]
        outcome = SearchOutcome(solutions=0, seen_values=seen, aborted=False, nodes=0)

        if any(not d for d in self.domains):
            return outcome

        self._reset()

        outcome.nodes = 1
        if outcome.nodes > self.max_nodes:
            outcome.aborted = True
            return outcome
        if not self._equations_feasible() or not self._groups_feasible():
            return outcome
        if self.n == 0:
            self._record_leaf(outcome)
            return outcome

        # frames[d] iterates candidate values for self.order[d]
        frames: List[Iterator[int]] = [self._candidates(self.order[0])]
        while frames:
            depth = len(frames) - 1
            vi = self.order[depth]
            if self._assigned[vi]:
                self._unassign(vi)

            val = next(frames[-1], None)
            if val is None:
                frames.pop()
                continue

            self._assign(vi, val)
            outcome.nodes += 1
            if outcome.nodes > self.max_nodes:
                outcome.aborted = True
                break

            if not self._groups_feasible():
                continue
            if depth + 1 == self.n:
                self._record_leaf(outcome)
                continue
            frames.append(self._candidates(self.order[depth + 1]))

        return outcome

    def _record_leaf(self, outcome: SearchOutcome) -> None:
        if self.group_counts is not None:
            if self.free_count == 0:
                if any(rem != 0 for rem in self._remaining.values()):
                    return
            elif self._remaining_total > self.free_count:
                return

        outcome.solutions += 1
        for i in range(self.n):
            outcome.seen_values[i].add(self._value[i])

        if self.group_counts is not None:
            for value, rem in self._remaining.items():
                prev_min = outcome.remaining_min.get(value)
                prev_max = outcome.remaining_max.get(value)
                outcome.remaining_min[value] = rem if prev_min is None else min(prev_min, rem)
                outcome.remaining_max[value] = rem if prev_max is None else max(prev_max, rem)
