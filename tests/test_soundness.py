"""Cross-check solver deductions against brute-force enumeration on small honest boards."""

import itertools
import random

import pytest

from multisweeper import Minesweeper, SolverInput, solve_logically


def _random_game(seed, rows, cols, max_per_cell, negative, max_hidden):
    rng = random.Random(seed)
    low = -max_per_cell if negative else 1
    grid = [
        [
            0 if rng.random() < 0.6 else rng.choice([v for v in range(low, max_per_cell + 1) if v != 0])
            for _ in range(cols)
        ]
        for _ in range(rows)
    ]
    game = Minesweeper.from_mine_counts(
        grid, max_mines_per_cell=max_per_cell, negative_mines=negative
    )

    cells = [(r, c) for r in range(rows) for c in range(cols)]
    for r, c in cells:
        if grid[r][c] == 0 and rng.random() < 0.5:
            game.reveal(r, c)
        elif grid[r][c] != 0 and rng.random() < 0.3:
            game.set_marker(r, c, grid[r][c])

    # Shrink the hidden set until brute force is cheap: mark first, open last.
    hidden = [p for p in cells if not game.opened[p[0]][p[1]] and game.markers[p[0]][p[1]] == 0]
    for r, c in sorted(hidden, key=lambda p: grid[p[0]][p[1]] == 0):
        if len(hidden) <= max_hidden or game.game_over:
            break
        if grid[r][c] != 0:
            game.set_marker(r, c, grid[r][c])
        else:
            game.reveal(r, c)
        hidden = [p for p in cells if not game.opened[p[0]][p[1]] and game.markers[p[0]][p[1]] == 0]

    return game


def _brute_force(game, views, use_totals):
    """Set of values each hidden cell takes over every consistent completion."""
    hidden = [
        (r, c)
        for r in range(game.rows)
        for c in range(game.cols)
        if views[r][c].is_unknown
    ]
    totals = {g: t for g, t in game.group_totals()} if use_totals else None
    domain = range(game.min_value, game.max_mines_per_cell + 1)
    seen = {p: set() for p in hidden}

    for assignment in itertools.product(domain, repeat=len(hidden)):
        value = {p: v for p, v in zip(hidden, assignment)}

        def count_at(r, c):
            view = views[r][c]
            if view.opened:
                return view.mine_count
            if view.marker_count != 0:
                return view.marker_count
            return value[(r, c)]

        ok = all(
            views[r][c].hint == sum(count_at(nr, nc) for nr, nc in game.neighbors(r, c))
            for r in range(game.rows)
            for c in range(game.cols)
            if views[r][c].opened
        )
        if ok and totals is not None:
            counts = {}
            for r in range(game.rows):
                for c in range(game.cols):
                    v = count_at(r, c)
                    if v != 0:
                        counts[v] = counts.get(v, 0) + 1
            ok = all(counts.get(v, 0) == totals.get(v, 0) for v in set(counts) | set(totals))
        if ok:
            for p, v in value.items():
                seen[p].add(v)

    return seen


@pytest.mark.parametrize(
    "max_per_cell, negative, max_hidden",
    [(1, False, 9), (2, False, 7), (2, True, 5)],
)
@pytest.mark.parametrize("use_totals", [False, True])
def test_deductions_match_brute_force(max_per_cell, negative, max_hidden, use_totals):
    checked = 0
    for seed in range(30):
        game = _random_game(seed, 3, 4, max_per_cell, negative, max_hidden)
        if game.game_over:
            continue

        views = game.cell_views()
        result = solve_logically(
            SolverInput(
                rows=game.rows,
                cols=game.cols,
                cells=views,
                max_mines_per_cell=game.max_mines_per_cell,
                negative_mines=game.negative_mines,
                group_totals=game.group_totals() if use_totals else None,
            )
        )
        seen = _brute_force(game, views, use_totals)

        assert not result.contradiction, (seed, result.reason)
        assert result.complete
        for pos in result.opens:
            assert seen[pos] == {0}, (seed, pos, seen[pos])
        for row, col, value in result.marks:
            assert seen[(row, col)] == {value}, (seed, (row, col), seen[(row, col)])
        checked += 1

    assert checked > 0


def test_applied_deductions_stay_consistent():
    """Applying a step and solving again never contradicts the first answer."""
    game = Minesweeper.from_mine_counts(
        [[0, 0, 0, 0], [0, 2, 0, 1], [0, 0, 0, 0]], max_mines_per_cell=2
    )
    game.reveal(0, 0)

    def snapshot():
        return SolverInput(
            rows=game.rows,
            cols=game.cols,
            cells=game.cell_views(),
            max_mines_per_cell=game.max_mines_per_cell,
            group_totals=game.group_totals(),
        )

    first = solve_logically(snapshot())
    for row, col in first.opens:
        game.reveal(row, col)
    for row, col, value in first.marks:
        game.set_marker(row, col, value)

    second = solve_logically(snapshot())

    assert not second.contradiction
    assert not set(second.opens) & {(r, c) for r, c, _ in first.marks}
    for row, col, _ in second.marks:
        assert (row, col) not in first.opens
