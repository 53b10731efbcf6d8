from multisweeper import (
    GameStatus,
    Minesweeper,
    SolverMark,
    is_no_guess,
    request_hint,
    solve_auto_with_guesses,
    solve_logical_step,
    solve_logical_until_stuck,
)
from multisweeper.orchestrator import build_solver_input


def _three_clue_board():
    """Top row open with three 1-hints; the mine sits under the middle clue."""
    game = Minesweeper.from_mine_counts([[0, 0, 0], [0, 1, 0]])
    for col in range(3):
        game.reveal(0, col)
    return game


def test_solver_input_omits_totals_before_placement():
    game = Minesweeper(4, 4, 3, max_mines_per_cell=2, seed=0)

    assert build_solver_input(game).group_totals is None

    game.reveal(0, 0)
    assert build_solver_input(game).group_totals == game.group_totals()
    assert build_solver_input(game, use_group_totals=False).group_totals is None


def test_request_hint_does_not_touch_the_game():
    game = _three_clue_board()
    opened_before = [row[:] for row in game.opened]

    result = request_hint(game)

    assert result.opens == [(1, 0), (1, 2)]
    assert result.marks == [SolverMark(1, 1, 1)]
    assert game.opened == opened_before
    assert game.markers == [[0, 0, 0], [0, 0, 0]]


def test_logical_step_applies_forced_moves():
    game = _three_clue_board()

    step = solve_logical_step(game)

    assert step.progress
    assert step.opened == 2
    assert game.status is GameStatus.WON


def test_step_on_finished_game_does_nothing():
    game = Minesweeper.from_mine_counts([[0, 1]])
    game.reveal(0, 1)

    step = solve_logical_step(game)

    assert not step.progress
    assert step.result.stalled


def test_until_stuck_reports_contradictions():
    game = Minesweeper.from_mine_counts([[0, 1]], max_mines_per_cell=2)
    game.reveal(0, 0)
    game.set_marker(0, 1, 2)

    run = solve_logical_until_stuck(game)

    assert run.contradiction
    assert run.reason == "Hint contradiction at (0, 0)."
    assert run.steps == 1
    assert not run.stuck


def test_until_stuck_stops_when_nothing_is_forced():
    game = Minesweeper.from_mine_counts([[0, 0, 0], [0, 1, 0]])
    game.reveal(0, 0)

    run = solve_logical_until_stuck(game)

    assert run.stuck
    assert not run.contradiction
    assert run.opened == 3
    assert not game.game_over


def test_global_counts_finish_a_board_without_guessing():
    game = Minesweeper.from_mine_counts([[0, 0, 1, 0]])

    report = solve_auto_with_guesses(game, first_click=(0, 0))

    assert report.won
    assert report.no_guess
    assert report.marked == 1
    assert game.markers[0][2] == 1


def test_without_totals_the_same_board_needs_a_guess():
    game = Minesweeper.from_mine_counts([[0, 0, 1, 0]])

    report = solve_auto_with_guesses(game, first_click=(0, 0), use_group_totals=False)

    assert report.won
    assert report.guesses == 1
    assert report.guessed_cells == [(0, 3)]


def test_ambiguous_pair_is_resolved_by_one_guess():
    game = Minesweeper.from_mine_counts([[0, 0, 0], [0, 1, 0]])

    report = solve_auto_with_guesses(game, first_click=(0, 0))

    assert report.status is GameStatus.WON
    assert report.guesses == 1
    assert report.guessed_cells == [(0, 1)]
    assert not report.no_guess
    assert not report.contradiction


def test_is_no_guess():
    assert is_no_guess(Minesweeper.from_mine_counts([[0, 0, 1, 0]]), first_click=(0, 0))
    assert not is_no_guess(
        Minesweeper.from_mine_counts([[0, 0, 0], [0, 1, 0]]), first_click=(0, 0)
    )


def test_generated_boards_play_to_the_end():
    game = Minesweeper(9, 9, 14, max_mines_per_cell=2, seed=11)

    report = solve_auto_with_guesses(game)

    assert report.status is not GameStatus.PLAYING
    assert not report.contradiction
    assert report.guesses == len(report.guessed_cells)
