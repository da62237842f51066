import numpy as np
import pytest

from noguess import Board


def test_from_rows_counts(one_two_one):
    assert one_two_one.width == 3
    assert one_two_one.height == 2
    assert one_two_one.mines_count == 2
    assert one_two_one.safe_count == 4
    assert one_two_one.counts == ((0, 2, 0), (1, 2, 1))
    assert one_two_one.mine_positions() == frozenset({(0, 0), (2, 0)})


def test_mined_cells_have_zero_count():
    board = Board.from_rows(["**", "**"])
    assert board.counts == ((0, 0), (0, 0))
    assert board.safe_count == 0


def test_from_rows_ignores_whitespace_and_accepts_m():
    assert Board.from_rows(["M . m", ". . ."]) == Board.from_rows(["*.*", "..."])


def test_from_mines_and_mask_agree():
    mask = np.zeros((3, 4), dtype=bool)
    mask[1, 2] = True
    a = Board.from_mask(mask)
    b = Board.from_mines(4, 3, [(2, 1)])
    assert a == b
    assert b.is_mine(2, 1)
    assert b.adjacent(1, 0) == 1
    assert b.adjacent(0, 0) == 0


def test_in_bounds():
    board = Board.from_mines(4, 3, [])
    assert board.in_bounds(3, 2)
    assert not board.in_bounds(4, 0)
    assert not board.in_bounds(0, -1)


def test_inconsistent_counts_rejected():
    with pytest.raises(ValueError):
        Board(width=1, height=1, mines=((False,),), counts=((1,),))


def test_ragged_grid_rejected():
    with pytest.raises(ValueError):
        Board(width=2, height=1, mines=((False,),), counts=((0,),))


def test_bad_dimensions_and_positions():
    with pytest.raises(ValueError):
        Board.from_mines(0, 3, [])
    with pytest.raises(ValueError):
        Board.from_mines(3, 3, [(3, 0)])
    with pytest.raises(ValueError):
        Board.from_mask([])


def test_format(one_two_one):
    assert one_two_one.format() == "* 2 *\n1 2 1"
    visible = [[-1, -1, -1], [1, 2, 1]]
    assert one_two_one.format(visible) == ". . .\n1 2 1"
