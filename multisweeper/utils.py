"""Neighbor relation helpers shared by the solver, the guesser and the engine."""

from functools import lru_cache
from typing import Callable, Dict, List, Tuple

Pos = Tuple[int, int]
NeighborFn = Callable[[int, int], Tuple[Pos, ...]]

# Distinct board sizes whose neighbor tables are kept.
NEIGHBORHOODS_CACHE_SIZE = 32


@lru_cache(maxsize=NEIGHBORHOODS_CACHE_SIZE)
def _build_neighborhoods(rows: int, cols: int) -> Dict[Pos, Tuple[Pos, ...]]:
    neighborhoods: Dict[Pos, Tuple[Pos, ...]] = {}
    for r in range(rows):
        for c in range(cols):
            nbrs: List[Pos] = []
            for dr in (-1, 0, 1):
                for dc in (-1, 0, 1):
                    if dr == 0 and dc == 0:
                        continue
                    nr, nc = r + dr, c + dc
                    if 0 <= nr < rows and 0 <= nc < cols:
                        nbrs.append((nr, nc))
            neighborhoods[(r, c)] = tuple(nbrs)
    return neighborhoods


def get_neighborhoods(rows: int, cols: int) -> Dict[Pos, Tuple[Pos, ...]]:
    """
    Precompute and cache 8-connected neighbor coordinates for every cell in a grid.

    Tables are read-only geometry; at most NEIGHBORHOODS_CACHE_SIZE board
    sizes are kept, least recently used first out.

    Args:
        rows: Grid height (number of rows). Must be positive.
        cols: Grid width (number of columns). Must be positive.

    Returns:
        Mapping from each cell (row, col) to a tuple of valid neighboring
        coordinates (nr, nc) under 8-connectivity, in row-major order.

    Raises:
        ValueError: If rows or cols is non-positive.
    """
    if rows <= 0 or cols <= 0:
        raise ValueError("rows and cols must be positive.")
    return _build_neighborhoods(rows, cols)


def grid_neighbors(rows: int, cols: int) -> NeighborFn:
    """Return the planar 8-neighbor relation of a rows x cols grid as a callable."""
    neighborhoods = get_neighborhoods(rows, cols)

    def neighbors(row: int, col: int) -> Tuple[Pos, ...]:
        return neighborhoods[(row, col)]

    return neighbors
