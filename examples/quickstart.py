"""
Quickstart example for the multisweeper solver.

This script demonstrates hints, a full play-through and no-guess statistics.
"""

from multisweeper import (
    Minesweeper,
    format_board,
    request_hint,
    run_solver_many_tests,
    solve_auto_with_guesses,
)


def main():
    print("=" * 60)
    print("Multisweeper Solver - Quickstart Example")
    print("=" * 60)

    # Example 1: Ask for a hint after the first click
    print("\n1. Hint after the first click (12x12, 40 mines, up to 3 per cell)...")
    print("-" * 60)

    game = Minesweeper(12, 12, 40, max_mines_per_cell=3, seed=7)
    game.reveal(6, 6)
    hint = request_hint(game)

    print(format_board(game, hint))
    print(f"Proven safe: {len(hint.opens)}, proven counts: {len(hint.marks)}")
    if hint.contradiction:
        print(f"Contradiction: {hint.reason}")

    # Example 2: Play the same board to the end
    print("\n2. Playing the board to the end...")
    print("-" * 60)

    report = solve_auto_with_guesses(game)
    print(f"Result: {report.status.value}")
    print(f"Guesses needed: {report.guesses}")
    print(f"Logical steps: {report.logical_steps}")
    print(game.format_board(reveal_all=True))

    # Example 3: No-guess statistics
    print("\n3. No-guess rate over 20 boards...")
    print("-" * 60)

    results = run_solver_many_tests(
        rows=9,
        cols=9,
        mines_total=14,
        max_mines_per_cell=2,
        runs=20,
    )

    print(f"Win rate: {results['win_rate']*100:.1f}%")
    print(f"No-guess rate: {results['no_guess_rate']*100:.1f}%")
    print(f"Average guesses per board: {results['avg_guesses']:.2f}")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
