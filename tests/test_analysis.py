import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pytest  # noqa: E402

from multisweeper import (  # noqa: E402
    Minesweeper,
    format_board,
    request_hint,
    run_no_guess_level_analysis,
    run_solver_many_tests,
    run_solver_single_test,
)


def test_format_board_overlays_solver_result():
    game = Minesweeper.from_mine_counts([[0, 0, 0], [0, 1, 0]])
    for col in range(3):
        game.reveal(0, col)

    text = format_board(game, request_hint(game))

    lines = text.splitlines()
    assert lines[0].split() == ["0", "1", "2"]
    assert lines[-1].split() == ["1", "|", "o", "+1", "o"]
    assert format_board(game, show_coords=False).splitlines()[1].split() == [".", ".", "."]


def test_single_test_reports_play_through_metrics():
    stats = run_solver_single_test(6, 6, 6, 2, seed=1)

    assert set(stats) == {
        "status",
        "guesses",
        "no_guess",
        "logical_steps",
        "opened",
        "marked",
        "contradiction",
        "incomplete_steps",
    }
    assert stats["status"] in (-1, 1)
    assert not stats["contradiction"]


def test_many_tests_aggregate_rates():
    stats = run_solver_many_tests(6, 6, 6, 2, runs=4)

    assert 0.0 <= stats["no_guess_rate"] <= stats["win_rate"] <= 1.0
    assert stats["max_guesses"] >= stats["median_guesses"]
    assert stats["contradiction_count"] == 0

    with pytest.raises(ValueError):
        run_solver_many_tests(6, 6, 6, 2, runs=0)


def test_level_analysis_draws_two_figures():
    plt.close("all")

    results = run_no_guess_level_analysis(
        2, levels={"tiny": (5, 5, 3, 1), "small": (6, 6, 6, 2)}, show=False
    )

    assert list(results) == ["tiny", "small"]
    assert len(plt.get_fignums()) == 2
    plt.close("all")
