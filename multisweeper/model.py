"""Board snapshot types and the constraint model built from them."""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from .config import DEFAULT_MAX_SEARCH_NODES, MAX_MINES_PER_CELL_LIMIT
from .utils import NeighborFn, Pos, grid_neighbors


class ContradictionError(RuntimeError):
    """The visible board state admits no assignment of mine counts."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class CellView:
    """Read-only snapshot of one cell as the player sees it."""

    row: int
    col: int
    opened: bool = False
    marker_count: int = 0
    hint: Optional[int] = None
    mine_count: Optional[int] = None

    @property
    def is_unknown(self) -> bool:
        return not self.opened and self.marker_count == 0


class GroupTotal(NamedTuple):
    group: int
    total: int


class SolverMark(NamedTuple):
    row: int
    col: int
    value: int


@dataclass
class SolverResult:
    """
    Outcome of one solver invocation.

    Attributes:
        opens: Cells proven to hold zero mines.
        marks: Cells proven to hold an exact non-zero count.
        stalled: True when nothing was proven.
        contradiction: True when the visible state is impossible.
        reason: Human-readable explanation for contradictions and budget hits.
        complete: False only if a search budget ran out.
    """

    opens: List[Pos] = field(default_factory=list)
    marks: List[SolverMark] = field(default_factory=list)
    stalled: bool = True
    contradiction: bool = False
    reason: Optional[str] = None
    complete: bool = True

    @classmethod
    def from_contradiction(
        cls, reason: str, complete: bool = True
    ) -> "SolverResult":
        return cls(stalled=True, contradiction=True, reason=reason, complete=complete)

    @property
    def progress(self) -> bool:
        return bool(self.opens or self.marks)


@dataclass
class SolverInput:
    """
    Everything the solver reads from the game collaborator.

    Attributes:
        rows: Grid height.
        cols: Grid width.
        cells: cells[row][col] snapshot views.
        max_mines_per_cell: Largest mine count a single cell may hold (1..6).
        negative_mines: Whether cells may hold negative counts down to -max.
        group_totals: Board-wide count per non-zero value, if known.
        max_search_nodes: Node budget of the whole-board search.
        neighbors: Neighbor capability; defaults to the 8-neighbor grid.
    """

    rows: int
    cols: int
    cells: Sequence[Sequence[CellView]]
    max_mines_per_cell: int
    negative_mines: bool = False
    group_totals: Optional[Sequence[GroupTotal]] = None
    max_search_nodes: int = DEFAULT_MAX_SEARCH_NODES
    neighbors: Optional[NeighborFn] = None

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0:
            raise ValueError("rows and cols must be positive.")
        if not 1 <= self.max_mines_per_cell <= MAX_MINES_PER_CELL_LIMIT:
            raise ValueError(
                f"max_mines_per_cell must be in 1..{MAX_MINES_PER_CELL_LIMIT}."
            )
        if self.max_search_nodes <= 0:
            raise ValueError("max_search_nodes must be positive.")
        if len(self.cells) != self.rows or any(
            len(row) != self.cols for row in self.cells
        ):
            raise ValueError("cells grid does not match rows x cols.")

    @property
    def min_value(self) -> int:
        return -self.max_mines_per_cell if self.negative_mines else 0

    def neighbor_fn(self) -> NeighborFn:
        if self.neighbors is not None:
            return self.neighbors
        return grid_neighbors(self.rows, self.cols)


@dataclass(frozen=True)
class Equation:
    """sum(values of `variables`) == target."""

    variables: Tuple[int, ...]
    target: int


@dataclass(frozen=True)
class ConstraintModel:
    """
    Immutable constraint system for one solver call.

    Variable ids index into `unknown_positions` (row-major order).
    """

    unknown_positions: Tuple[Pos, ...]
    equations: Tuple[Equation, ...]
    fixed_counts: Dict[int, int]
    constrained: Tuple[int, ...]
    free: Tuple[int, ...]

    @property
    def unknown_count(self) -> int:
        return len(self.unknown_positions)


def value_range(min_value: int, max_value: int) -> List[int]:
    """Full ascending domain [min_value, max_value]."""
    return list(range(min_value, max_value + 1))


def non_zero_values(min_value: int, max_value: int) -> List[int]:
    return [v for v in range(min_value, max_value + 1) if v != 0]


def build_group_totals(
    values: Sequence[int], totals: Optional[Sequence[GroupTotal]]
) -> Dict[int, int]:
    """
    Map every non-zero value to its board-wide total.

    Values missing from `totals` default to 0; totals naming values outside
    `values` are kept so the builder can still check them.
    """
    mapping: Dict[int, int] = {v: 0 for v in values}
    for group, total in totals or ():
        if total < 0:
            raise ValueError(f"Group total for {group} must be non-negative.")
        mapping[group] = total
    return mapping


def build_model(
    rows: int,
    cols: int,
    cells: Sequence[Sequence[CellView]],
    neighbors: NeighborFn,
    group_totals: Optional[Dict[int, int]] = None,
) -> ConstraintModel:
    """
    Convert a board snapshot into variables and linear equations.

    Args:
        rows: Grid height.
        cols: Grid width.
        cells: cells[row][col] snapshot views.
        neighbors: Neighbor capability for the board geometry.
        group_totals: Value -> board-wide total, when the caller knows them.

    Returns:
        The constraint model for this snapshot.

    Raises:
        ContradictionError: If an opened cell's hint cannot be met, or a fixed
            value is absent from the supplied group totals.
    """
    unknown_positions: List[Pos] = []
    unknown_id: Dict[Pos, int] = {}
    fixed_counts: Dict[int, int] = {}

    for r in range(rows):
        for c in range(cols):
            view = cells[r][c]
            if view.is_unknown:
                unknown_id[(r, c)] = len(unknown_positions)
                unknown_positions.append((r, c))
            elif not view.opened:
                fixed_counts[view.marker_count] = (
                    fixed_counts.get(view.marker_count, 0) + 1
                )
            elif view.mine_count:
                fixed_counts[view.mine_count] = fixed_counts.get(view.mine_count, 0) + 1

    equations: List[Equation] = []
    for r in range(rows):
        for c in range(cols):
            view = cells[r][c]
            if not view.opened or view.hint is None:
                continue

            fixed_sum = 0
            variables: List[int] = []
            for nr, nc in neighbors(r, c):
                nv = cells[nr][nc]
                if nv.opened:
                    fixed_sum += nv.mine_count or 0
                elif nv.marker_count != 0:
                    fixed_sum += nv.marker_count
                else:
                    variables.append(unknown_id[(nr, nc)])

            target = view.hint - fixed_sum
            if not variables:
                if target != 0:
                    raise ContradictionError(f"Hint contradiction at ({r}, {c}).")
                continue

            equations.append(Equation(tuple(variables), target))

    used = [False] * len(unknown_positions)
    for eq in equations:
        for v in eq.variables:
            used[v] = True

    if group_totals is not None:
        for value in fixed_counts:
            if value != 0 and value not in group_totals:
                raise ContradictionError(
                    f"Group {value} is not present in visible totals."
                )

    return ConstraintModel(
        unknown_positions=tuple(unknown_positions),
        equations=tuple(equations),
        fixed_counts=fixed_counts,
        constrained=tuple(i for i, u in enumerate(used) if u),
        free=tuple(i for i, u in enumerate(used) if not u),
    )
