import pytest

from multisweeper import GameStatus, Minesweeper


def _positive_total(game):
    return sum(v for row in game.mine_counts for v in row if v > 0)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(rows=0, cols=5, mines_total=1),
        dict(rows=5, cols=5, mines_total=-1),
        dict(rows=5, cols=5, mines_total=1, max_mines_per_cell=7),
        dict(rows=5, cols=5, mines_total=1, mines_generation_algorithm="random"),
        dict(rows=5, cols=5, mines_total=1, density=1.5),
        dict(rows=2, cols=2, mines_total=4, max_mines_per_cell=1),
        dict(rows=3, cols=3, mines_total=8, max_mines_per_cell=1),
        dict(rows=3, cols=3, mines_total=1, max_mines_per_cell=1),
    ],
)
def test_invalid_parameters_raise(kwargs):
    with pytest.raises(ValueError):
        Minesweeper(**kwargs)


def test_mines_are_placed_lazily_on_first_reveal():
    game = Minesweeper(8, 8, 30, max_mines_per_cell=3, seed=1)

    assert game.board_blank
    assert game.mine_distribution() == []

    game.reveal(4, 4)

    assert not game.board_blank
    assert _positive_total(game) == 30
    assert all(0 <= v <= 3 for row in game.mine_counts for v in row)


def test_safe_neighborhood_rule_clears_the_first_click_area():
    game = Minesweeper(8, 8, 40, max_mines_per_cell=3, seed=7)

    status, payload = game.reveal(3, 3)

    assert status != -1
    assert game.mine_counts[3][3] == 0
    for r, c in game.neighbors(3, 3):
        assert game.mine_counts[r][c] == 0
    assert (3, 3) in payload["revealed_cells"]


def test_safe_first_action_rule_clears_only_the_clicked_cell():
    game = Minesweeper(
        4, 4, 40, max_mines_per_cell=3,
        mines_generation_algorithm="safe_first_action_rule", seed=2,
    )

    status, _ = game.reveal(0, 0)

    assert status != -1
    assert game.mine_counts[0][0] == 0
    assert _positive_total(game) == 40


def test_zero_density_spreads_one_mine_per_cell():
    game = Minesweeper(
        6, 6, 10, max_mines_per_cell=3, density=0.0,
        mines_generation_algorithm="safe_first_action_rule", seed=4,
    )
    game.reveal(0, 0)

    assert sorted(v for row in game.mine_counts for v in row if v) == [1] * 10


def test_negative_mines_are_added_on_empty_cells():
    game = Minesweeper(8, 8, 20, max_mines_per_cell=2, negative_mines=True, seed=3)
    game.reveal(4, 4)

    negatives = [v for row in game.mine_counts for v in row if v < 0]
    assert sum(negatives) == -6
    assert all(v >= -2 for v in negatives)
    assert _positive_total(game) == 20


def test_hints_sum_neighbor_counts():
    game = Minesweeper.from_mine_counts([[2, 0, 0], [0, 0, -1], [0, 3, 0]])

    assert game.negative_mines
    assert game.max_mines_per_cell == 3
    assert game.hints[1][1] == 2 - 1 + 3
    assert game.hints[0][1] == 2 - 1
    assert game.hints[2][2] == 3 - 1


def test_flood_fill_opens_the_zero_region():
    game = Minesweeper.from_mine_counts([[0, 0, 0], [0, 0, 0], [0, 0, 1]])

    status, payload = game.reveal(0, 0)

    assert status == 1
    assert game.status is GameStatus.WON
    assert len(payload["revealed_cells"]) == 8
    assert not game.opened[2][2]


def test_cancelling_mines_stop_the_flood():
    """A zero hint made of +1 and -1 neighbors must not auto-open them."""
    game = Minesweeper.from_mine_counts([[1, 0, -1], [0, 0, 0]])

    assert game.hints[0][1] == 0
    _, payload = game.reveal(0, 1)

    assert payload["revealed_cells"] == [(0, 1)]
    assert not game.opened[0][0] and not game.opened[0][2]


def test_revealing_a_mine_loses():
    game = Minesweeper.from_mine_counts([[0, 2], [0, 0]])

    status, payload = game.reveal(0, 1)

    assert status == -1
    assert game.status is GameStatus.LOST
    assert game.exploded == (0, 1)
    assert payload["all_mines"] == frozenset({(0, 1)})
    assert game.reveal(0, 0) == (0, {})


def test_reveal_out_of_bounds_raises():
    game = Minesweeper(
        3, 3, 1, max_mines_per_cell=1,
        mines_generation_algorithm="safe_first_action_rule", seed=0,
    )

    with pytest.raises(ValueError):
        game.reveal(3, 0)


def test_markers_block_reveals_and_respect_range():
    game = Minesweeper.from_mine_counts([[0, 1], [0, 0]])

    assert game.set_marker(0, 1, 1)
    assert not game.set_marker(0, 1, 1)
    assert game.reveal(0, 1) == (0, {})
    with pytest.raises(ValueError):
        game.set_marker(0, 1, 2)
    with pytest.raises(ValueError):
        game.set_marker(0, 1, -1)


def test_cycle_marker_wraps_through_negative_values():
    game = Minesweeper.from_mine_counts([[0, 0], [0, 0]], max_mines_per_cell=2, negative_mines=True)

    seen = []
    for _ in range(5):
        game.cycle_marker(1, 1)
        seen.append(game.markers[1][1])

    assert seen == [1, 2, -2, -1, 0]


def test_mine_distribution_tracks_markers():
    game = Minesweeper.from_mine_counts([[1, 2], [0, 2]])
    game.set_marker(0, 1, 2)

    assert game.mine_distribution() == [
        {"group": 1, "total": 1, "flagged": 0, "remaining": 1},
        {"group": 2, "total": 2, "flagged": 1, "remaining": 1},
    ]
    assert game.group_totals() == [(1, 1), (2, 2)]
    assert game.remaining_mines == 5 - 2


def test_cell_view_hides_unopened_information():
    game = Minesweeper.from_mine_counts([[0, 1], [0, 0]])
    game.reveal(1, 0)

    hidden = game.cell_view(0, 1)
    opened = game.cell_view(1, 0)

    assert hidden.hint is None and hidden.mine_count is None
    assert hidden.is_unknown
    assert opened.opened and opened.hint == 1 and opened.mine_count == 0


def test_format_board_plain_text():
    game = Minesweeper.from_mine_counts([[0, 1], [0, 0]])
    game.reveal(1, 0)
    game.set_marker(0, 1, 1)

    text = game.format_board(color=False)

    assert "*1" in text
    assert "  ." in text
    assert "M1" in game.format_board(reveal_all=True, color=False)


def test_largest_board_the_neighborhood_rule_allows_still_reveals():
    game = Minesweeper(4, 4, 7, max_mines_per_cell=1, seed=5)

    status, _ = game.reveal(1, 1)

    assert status != -1
    assert _positive_total(game) == 7
    with pytest.raises(ValueError):
        Minesweeper(4, 4, 8, max_mines_per_cell=1)


def test_remaining_mines_counts_every_marker():
    game = Minesweeper.from_mine_counts([[2, 0], [0, -1]])
    game.set_marker(0, 0, 2)
    game.set_marker(1, 1, -1)

    assert game.remaining_mines == 2 - 2 + 1
