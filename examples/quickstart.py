"""
Quickstart example for the no-guess Minesweeper solver.

This script demonstrates board certification, hints and benchmarking.
"""

import random

from noguess import (
    Board,
    Minesweeper,
    generate_no_guess_board,
    get_hint,
    is_solvable,
    run_solver_many_tests,
)


def main():
    print("=" * 60)
    print("No-guess Minesweeper - Quickstart Example")
    print("=" * 60)

    # Example 1: Certify a hand-made board
    print("\n1. The classic 1-2-1 pattern...")
    print("-" * 60)

    board = Board.from_rows(["* . *", ". . ."])
    print(board.format())
    print(f"Solvable from (1, 1): {is_solvable(board, 1, 1)}")

    hint = get_hint(board, [[-1, -1, -1], [1, 2, 1]], [[False] * 3, [False] * 3])
    if hint is not None:
        print(f"Hint: {hint.describe()} [{hint.strategy}]")

    # Example 2: Generate a no-guess board
    print("\n2. Generating a no-guess Intermediate board (16x16, 40 mines)...")
    print("-" * 60)

    result = generate_no_guess_board(16, 16, 40, 8, 8, rng=random.Random(7))
    print(f"Certified: {result.solvable} after {result.attempts} attempts")
    print(result.board.format())

    # Example 3: Play it using hints only
    print("\n3. Playing the board with hints...")
    print("-" * 60)

    game = Minesweeper.from_board(result.board)
    status, _ = game.reveal(8, 8)
    moves = 0
    while status == 0:
        hint = game.hint()
        if hint is None or hint.heuristic:
            break
        if hint.kind == "safe":
            status, _ = game.reveal(hint.x, hint.y)
        else:
            game.toggle_flag(hint.x, hint.y)
        moves += 1

    print(f"Moves: {moves}, finished: {'WON' if status == 1 else 'not finished'}")
    print(game.format_board(reveal_all=False))

    # Example 4: Solvable rate by difficulty level
    print("\n4. No-guess rates of random boards by difficulty level (20 boards each)...")
    print("-" * 60)

    difficulties = [
        ("Beginner", 9, 9, 10),
        ("Intermediate", 16, 16, 40),
        ("Expert", 30, 16, 99),
    ]

    for name, w, h, m in difficulties:
        stats = run_solver_many_tests(w, h, m, runs=20, seed=0)
        print(
            f"{name:15s} ({w}x{h}, {m:2d} mines): "
            f"{stats['solvable_rate']*100:5.1f}% solvable, "
            f"{stats['avg_elapsed_seconds']*1000:6.1f} ms per board"
        )

    print("\n" + "=" * 60)
    print("Done! See README.md for more detailed usage instructions.")
    print("=" * 60)


if __name__ == "__main__":
    main()
