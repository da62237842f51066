import random
from typing import Callable, List, Tuple

import pytest

from noguess import Board
from noguess.engine import place_random_mines, safe_zone
from noguess.state import HIDDEN

SEEDS = list(range(16))

# Mid-game position where only proof by contradiction (or tank) makes progress:
# a 1 at (5, 4) and a 6 at (7, 4), everything else hidden.
CONTRADICTION_MINES = [(6, 4), (7, 3), (8, 3), (8, 4), (7, 5), (8, 5)]
P_ONLY = [(4, 3), (4, 4), (4, 5), (5, 3), (5, 5)]
Q_ONLY = [(7, 3), (7, 5), (8, 3), (8, 4), (8, 5)]


def hidden_view(board: Board) -> Tuple[List[List[int]], List[List[bool]]]:
    visible = [[HIDDEN] * board.width for _ in range(board.height)]
    flags = [[False] * board.width for _ in range(board.height)]
    return visible, flags


@pytest.fixture
def one_two_one() -> Board:
    """3x2 board, mines at (0, 0) and (2, 0); row y=1 reads 1 2 1."""
    return Board.from_rows(["*.*", "..."])


@pytest.fixture
def contradiction_board() -> Board:
    return Board.from_mines(9, 6, CONTRADICTION_MINES)


@pytest.fixture
def contradiction_view(contradiction_board):
    visible, flags = hidden_view(contradiction_board)
    visible[4][5] = 1
    visible[4][7] = 6
    return visible, flags


@pytest.fixture
def random_board() -> Callable[..., Tuple[Board, int, int]]:
    """Factory: seeded random board with a mine-free 3x3 opening at its centre."""

    def make(seed: int, width: int = 9, height: int = 9, mines: int = 10):
        rng = random.Random(seed)
        sx, sy = width // 2, height // 2
        board = place_random_mines(
            width, height, mines, safe_zone(sx, sy, 1, width, height), rng
        )
        return board, sx, sy

    return make
