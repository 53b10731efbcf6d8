"""Multi-mine minesweeper game engine with first-click safety and clumped placement."""

import logging
import random
from collections import deque
from enum import Enum
from typing import Deque, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from .config import (
    DEFAULT_DENSITY,
    DEFAULT_MAX_MINES_PER_CELL,
    MAX_MINES_PER_CELL_LIMIT,
    MINES_GENERATION_ALGORITHMS,
    NEGATIVE_MINE_RATIO,
)
from .model import CellView, GroupTotal
from .utils import NeighborFn, Pos, grid_neighbors

logger = logging.getLogger(__name__)


class GameStatus(Enum):
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


class Minesweeper:
    """Minesweeper game engine where a cell may hold several (or negative) mines."""

    def __init__(
        self,
        rows: int,
        cols: int,
        mines_total: int,
        max_mines_per_cell: int = DEFAULT_MAX_MINES_PER_CELL,
        mines_generation_algorithm: str = "safe_neighborhood_rule",
        density: float = DEFAULT_DENSITY,
        negative_mines: bool = False,
        seed: Optional[int] = None,
        neighbors: Optional[NeighborFn] = None,
    ) -> None:
        """
        Initialize a game; mines are placed lazily on the first reveal.

        Args:
            rows: Board height, must be > 0.
            cols: Board width, must be > 0.
            mines_total: Total number of positive mines to place, must be >= 0.
            max_mines_per_cell: Largest count one cell may hold (1..6).
            mines_generation_algorithm: First-move safety rule; one of
                {"safe_first_action_rule", "safe_neighborhood_rule"}.
            density: 0 spreads mines over as many cells as possible, 1 piles
                them into as few cells as possible.
            negative_mines: Also place negative mines on empty cells.
            seed: Seed for the placement RNG.
            neighbors: Neighbor capability; defaults to the 8-neighbor grid.

        Raises:
            ValueError: If any argument is out of range or the mines cannot fit.
        """
        if rows <= 0 or cols <= 0:
            raise ValueError("rows and cols must be positive.")
        if mines_total < 0:
            raise ValueError("mines_total must be non-negative.")
        if not 1 <= max_mines_per_cell <= MAX_MINES_PER_CELL_LIMIT:
            raise ValueError(
                f"max_mines_per_cell must be in 1..{MAX_MINES_PER_CELL_LIMIT}."
            )
        if mines_generation_algorithm not in MINES_GENERATION_ALGORITHMS:
            raise ValueError(
                'mines_generation_algorithm must be "safe_first_action_rule" '
                'or "safe_neighborhood_rule".'
            )
        if not 0.0 <= density <= 1.0:
            raise ValueError("density must lie in [0, 1].")
        neighbor_fn: NeighborFn = neighbors or grid_neighbors(rows, cols)
        safe_area = 1
        if mines_generation_algorithm == "safe_neighborhood_rule":
            safe_area += max(
                len(neighbor_fn(r, c)) for r in range(rows) for c in range(cols)
            )
        max_mines = max(0, rows * cols - safe_area) * max_mines_per_cell
        if mines_total > max_mines:
            raise ValueError(
                f"Too many mines for {mines_generation_algorithm}: "
                f"at most {max_mines} fit on a {rows}x{cols} board."
            )

        self.rows: int = rows
        self.cols: int = cols
        self.mines_total: int = mines_total
        self.max_mines_per_cell: int = max_mines_per_cell
        self.mines_generation_algorithm: str = mines_generation_algorithm
        self.density: float = density
        self.negative_mines: bool = negative_mines
        self.rng: random.Random = random.Random(seed)
        self._neighbors: NeighborFn = neighbor_fn

        self.mine_counts: List[List[int]] = [[0] * cols for _ in range(rows)]
        self.hints: List[List[int]] = [[0] * cols for _ in range(rows)]
        self.opened: List[List[bool]] = [[False] * cols for _ in range(rows)]
        self.markers: List[List[int]] = [[0] * cols for _ in range(rows)]

        self.board_blank: bool = True
        self.first_move: bool = True
        self.status: GameStatus = GameStatus.PLAYING
        self.exploded: Optional[Pos] = None
        self.safe_cell_count: int = 0
        self.opened_safe_count: int = 0

    @classmethod
    def from_mine_counts(
        cls,
        mine_counts: Sequence[Sequence[int]],
        max_mines_per_cell: Optional[int] = None,
        negative_mines: Optional[bool] = None,
        neighbors: Optional[NeighborFn] = None,
    ) -> "Minesweeper":
        """
        Build a game over an already generated board.

        Args:
            mine_counts: mine_counts[row][col] for every cell.
            max_mines_per_cell: Defaults to the largest absolute count (at least 1).
            negative_mines: Defaults to whether any count is negative.
            neighbors: Neighbor capability; defaults to the 8-neighbor grid.
        """
        rows = len(mine_counts)
        cols = len(mine_counts[0]) if rows else 0
        flat = [v for row in mine_counts for v in row]
        if negative_mines is None:
            negative_mines = any(v < 0 for v in flat)
        if max_mines_per_cell is None:
            max_mines_per_cell = max([1] + [abs(v) for v in flat])

        game = cls(
            rows,
            cols,
            mines_total=0,
            max_mines_per_cell=max_mines_per_cell,
            negative_mines=negative_mines,
            neighbors=neighbors,
        )
        lowest = -max_mines_per_cell if negative_mines else 0
        for r in range(rows):
            if len(mine_counts[r]) != cols:
                raise ValueError("mine_counts rows must all have the same length.")
            for c in range(cols):
                v = mine_counts[r][c]
                if not lowest <= v <= max_mines_per_cell:
                    raise ValueError(f"Mine count {v} at ({r}, {c}) is out of range.")
                game.mine_counts[r][c] = v

        game.mines_total = sum(v for v in flat if v > 0)
        game._finish_placement()
        return game

    def neighbors(self, row: int, col: int) -> Tuple[Pos, ...]:
        """Return neighbor coordinates of a cell."""
        return self._neighbors(row, col)

    @property
    def min_value(self) -> int:
        return -self.max_mines_per_cell if self.negative_mines else 0

    # -------------------------------------------------------------------------
    # Board generation
    # -------------------------------------------------------------------------

    def _distribute(
        self, eligible: List[Pos], count: int, step: int
    ) -> int:
        """
        Drop `count` mines of sign `step` onto `eligible` cells with clumping.

        With probability `density` a mine stacks onto a cell that already has
        some; otherwise it goes to an empty cell. Returns how many were placed.
        """
        empty: List[Pos] = list(eligible)
        self.rng.shuffle(empty)
        partial: List[Pos] = []

        placed = 0
        while placed < count:
            if partial and self.rng.random() < self.density:
                target = self.rng.choice(partial)
            elif empty:
                target = self.rng.choice(empty)
            elif partial:
                target = self.rng.choice(partial)
            else:
                break

            r, c = target
            self.mine_counts[r][c] += step
            placed += 1

            if abs(self.mine_counts[r][c]) == 1:
                empty.remove(target)
                partial.append(target)
            if abs(self.mine_counts[r][c]) >= self.max_mines_per_cell:
                partial.remove(target)

        return placed

    def place_mines(self, first_row: int, first_col: int) -> None:
        """
        Place mines on the board (one-time), respecting the first-move safety rule.

        Raises:
            ValueError: If the board is not blank or mines cannot be placed.
        """
        if not self.board_blank:
            raise ValueError("The board is not blank.")

        safe: Set[Pos] = {(first_row, first_col)}
        if self.mines_generation_algorithm == "safe_neighborhood_rule":
            safe.update(self.neighbors(first_row, first_col))

        eligible: List[Pos] = [
            (r, c)
            for r in range(self.rows)
            for c in range(self.cols)
            if (r, c) not in safe
        ]
        if self.mines_total > len(eligible) * self.max_mines_per_cell:
            raise ValueError(
                f"Cannot place enough safe cells to satisfy {self.mines_generation_algorithm}."
            )

        self._distribute(eligible, self.mines_total, 1)

        if self.negative_mines:
            neg_eligible = [(r, c) for r, c in eligible if self.mine_counts[r][c] == 0]
            neg_total = min(
                int(self.mines_total * NEGATIVE_MINE_RATIO),
                len(neg_eligible) * self.max_mines_per_cell,
            )
            self._distribute(neg_eligible, neg_total, -1)

        self._finish_placement()
        logger.debug(
            "Placed %d mines on a %dx%d board (density %.2f).",
            self.mines_total,
            self.rows,
            self.cols,
            self.density,
        )

    def _finish_placement(self) -> None:
        self.compute_hints()
        self.safe_cell_count = sum(
            1 for row in self.mine_counts for v in row if v == 0
        )
        self.board_blank = False
        self.first_move = False

    def compute_hints(self) -> None:
        """Set every cell's hint to the sum of its neighbors' mine counts."""
        for r in range(self.rows):
            for c in range(self.cols):
                self.hints[r][c] = sum(
                    self.mine_counts[nr][nc] for nr, nc in self.neighbors(r, c)
                )

    def has_adjacent_mines(self, row: int, col: int) -> bool:
        return any(self.mine_counts[nr][nc] != 0 for nr, nc in self.neighbors(row, col))

    # -------------------------------------------------------------------------
    # Moves
    # -------------------------------------------------------------------------

    def _in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def flood_fill(self, row: int, col: int) -> List[Pos]:
        """
        Open a connected region starting at a safe cell.

        Expansion continues only through cells with no non-zero neighbor, so a
        zero hint made of cancelling positive and negative mines stops it.

        Returns:
            Newly opened positions.
        """
        frontier: Deque[Pos] = deque([(row, col)])
        visited: Set[Pos] = {(row, col)}
        revealed: List[Pos] = []

        while frontier:
            r, c = frontier.popleft()
            if self.opened[r][c] or self.markers[r][c] != 0:
                continue

            self.opened[r][c] = True
            self.opened_safe_count += 1
            revealed.append((r, c))

            if self.has_adjacent_mines(r, c):
                continue
            for nr, nc in self.neighbors(r, c):
                if (nr, nc) in visited or self.opened[nr][nc]:
                    continue
                visited.add((nr, nc))
                frontier.append((nr, nc))

        return revealed

    def reveal(self, row: int, col: int) -> Tuple[int, Dict[str, object]]:
        """
        Open a single cell and return a status code plus payload.

        Returns:
            Tuple of (status, payload) where status is:
                - -1: a non-zero cell was opened (loss)
                - 0: non-terminal reveal (or no-op)
                - 1: win (every zero cell is open)

            Payload contains "revealed_cells" (list of positions); on a loss it
            also holds "all_mines", the positions of every non-zero cell.

        Raises:
            ValueError: If coordinates are out of bounds.
        """
        if not self._in_bounds(row, col):
            raise ValueError("Cell coordinates are outside the board.")

        if self.status is not GameStatus.PLAYING:
            return 0, {}
        if self.opened[row][col] or self.markers[row][col] != 0:
            return 0, {}

        if self.first_move:
            self.place_mines(row, col)

        if self.mine_counts[row][col] != 0:
            self.opened[row][col] = True
            self.status = GameStatus.LOST
            self.exploded = (row, col)
            all_mines: FrozenSet[Pos] = frozenset(
                (r, c)
                for r in range(self.rows)
                for c in range(self.cols)
                if self.mine_counts[r][c] != 0
            )
            return -1, {"revealed_cells": [(row, col)], "all_mines": all_mines}

        revealed = self.flood_fill(row, col)

        if self.opened_safe_count == self.safe_cell_count:
            self.status = GameStatus.WON
            return 1, {"revealed_cells": revealed}

        return 0, {"revealed_cells": revealed}

    def set_marker(self, row: int, col: int, value: int) -> bool:
        """
        Declare an exact mine count on a hidden cell (0 clears the marker).

        Returns:
            True if the marker changed.

        Raises:
            ValueError: If coordinates or the value are out of range.
        """
        if not self._in_bounds(row, col):
            raise ValueError("Cell coordinates are outside the board.")
        if not self.min_value <= value <= self.max_mines_per_cell:
            raise ValueError(f"Marker value {value} is out of range.")
        if self.status is not GameStatus.PLAYING or self.opened[row][col]:
            return False
        if self.markers[row][col] == value:
            return False
        self.markers[row][col] = value
        return True

    def cycle_marker(self, row: int, col: int) -> None:
        """Advance a hidden cell's marker: 0, 1, ..., max, then -max, ..., -1 in negative mode."""
        cycle = list(range(0, self.max_mines_per_cell + 1))
        if self.negative_mines:
            cycle += list(range(-self.max_mines_per_cell, 0))
        current = self.markers[row][col]
        self.set_marker(row, col, cycle[(cycle.index(current) + 1) % len(cycle)])

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def game_over(self) -> bool:
        return self.status is not GameStatus.PLAYING

    def cell_view(self, row: int, col: int) -> CellView:
        """Snapshot of what the player can see at (row, col)."""
        opened = self.opened[row][col]
        mine_count = self.mine_counts[row][col]
        hint: Optional[int] = None
        if opened or (self.game_over and mine_count == 0):
            hint = self.hints[row][col]
        return CellView(
            row=row,
            col=col,
            opened=opened,
            marker_count=self.markers[row][col],
            hint=hint,
            mine_count=mine_count if opened or self.game_over else None,
        )

    def cell_views(self) -> List[List[CellView]]:
        return [[self.cell_view(r, c) for c in range(self.cols)] for r in range(self.rows)]

    def mine_distribution(self) -> List[Dict[str, int]]:
        """
        Per non-zero value: board total, cells marked with it, and the difference.

        Only values present on the board are listed. Empty before placement.
        """
        totals: Dict[int, int] = {}
        marked: Dict[int, int] = {}
        for r in range(self.rows):
            for c in range(self.cols):
                v = self.mine_counts[r][c]
                if v != 0:
                    totals[v] = totals.get(v, 0) + 1
                m = self.markers[r][c]
                if not self.opened[r][c] and m != 0:
                    marked[m] = marked.get(m, 0) + 1

        return [
            {
                "group": g,
                "total": totals[g],
                "flagged": marked.get(g, 0),
                "remaining": totals[g] - marked.get(g, 0),
            }
            for g in sorted(totals)
        ]

    def group_totals(self) -> List[GroupTotal]:
        return [GroupTotal(d["group"], d["total"]) for d in self.mine_distribution()]

    @property
    def remaining_mines(self) -> int:
        """Positive mine total minus the sum of every marker (negative markers add back)."""
        return self.mines_total - sum(m for row in self.markers for m in row)

    # -------------------------------------------------------------------------
    # Display methods
    # -------------------------------------------------------------------------

    _ANSI_RESET = "\033[0m"
    _ANSI_COORD = "\033[96m"
    _ANSI_MINE = "\033[91m"

    def _c(self, s: str) -> str:
        """Wrap string in coordinate color."""
        return f"{self._ANSI_COORD}{s}{self._ANSI_RESET}"

    def _m(self, s: str) -> str:
        """Wrap string in mine color (red)."""
        return f"{self._ANSI_MINE}{s}{self._ANSI_RESET}"

    def format_board(self, reveal_all: bool = False, color: bool = True) -> str:
        """
        Render the board as a multi-line string for terminal display.

        Opened cells show their hint, markers show as "*n", hidden cells as
        ".". With reveal_all, hidden cells show "Mn" for a count of n.
        """

        def cell_str(r: int, c: int) -> str:
            if self.opened[r][c] and self.mine_counts[r][c] == 0:
                return f"{self.hints[r][c]:>3}"
            if reveal_all or self.opened[r][c]:
                v = self.mine_counts[r][c]
                if v != 0:
                    s = f"{'M' + str(v):>3}"
                    return self._m(s) if color else s
                return f"{self.hints[r][c]:>3}"
            if self.markers[r][c] != 0:
                return f"{'*' + str(self.markers[r][c]):>3}"
            return "  ."

        coord = self._c if color else str
        header_cells = "".join(f"{c:>3}" for c in range(self.cols))
        out = [coord("    ") + coord(header_cells)]
        out.append(coord("    " + "-" * (3 * self.cols)))

        for r in range(self.rows):
            row_cells = "".join(cell_str(r, c) for c in range(self.cols))
            out.append(coord(f"{r:2d} ") + coord("|") + row_cells)

        return "\n".join(out)
