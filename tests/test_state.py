import logging

import pytest

from noguess import Board
from noguess.state import (
    EXPLODED,
    HIDDEN,
    REVEALED_MINE,
    Deduction,
    InconsistentStateError,
    SimulationState,
)
from noguess.utils import cell_key

from conftest import hidden_view


@pytest.fixture
def corner_mine() -> Board:
    """3x3 board with a single mine at (0, 0)."""
    return Board.from_mines(3, 3, [(0, 0)])


def test_new_state_is_hidden(corner_mine):
    state = SimulationState(corner_mine)
    assert state.unknown_cells() == [(x, y) for y in range(3) for x in range(3)]
    assert state.flag_count == 0
    assert state.revealed_count == 0
    assert not state.is_solved()


def test_flood_reveal_cascades_through_zeros(corner_mine):
    state = SimulationState(corner_mine)
    revealed = state.flood_reveal(2, 2)

    assert len(revealed) == 8
    assert state.is_solved()
    assert state.visible[0][0] == HIDDEN
    assert state.visible[1][1] == 1
    assert state.visible[2][2] == 0


def test_flood_reveal_twice_is_noop(corner_mine):
    state = SimulationState(corner_mine)
    state.flood_reveal(2, 2)
    snapshot = [row[:] for row in state.visible]
    dirty = set(state.dirty)

    assert state.flood_reveal(2, 2) == []
    assert state.visible == snapshot
    assert state.dirty == dirty


def test_flood_reveal_stops_at_numbers(one_two_one):
    state = SimulationState(one_two_one)
    assert state.flood_reveal(1, 1) == [(1, 1)]
    assert state.revealed_count == 1


def test_flood_reveal_does_not_cross_flags(corner_mine):
    state = SimulationState(corner_mine)
    state.flag(0, 0)
    state.flood_reveal(2, 2)
    assert state.flags[0][0]
    assert state.visible[0][0] == HIDDEN


def test_reveal_mine_raises(corner_mine):
    state = SimulationState(corner_mine)
    with pytest.raises(InconsistentStateError):
        state.flood_reveal(0, 0)


def test_flag(corner_mine):
    state = SimulationState(corner_mine)

    assert state.flag(0, 0) is True
    assert state.flag(0, 0) is False
    assert state.flag_count == 1
    assert state.count_flags() == 1

    with pytest.raises(InconsistentStateError):
        state.flag(1, 1)


def test_mutations_mark_both_dirty_sets(corner_mine):
    state = SimulationState(corner_mine)
    state.flag(0, 0)

    expected = {cell_key(0, 0), cell_key(1, 0), cell_key(0, 1), cell_key(1, 1)}
    assert state.dirty == expected
    assert state.subset_dirty == expected


def test_open_reveals_clamped_block():
    # Mines everywhere except the 2x2 corner block around (0, 0).
    board = Board.from_rows(["..***", "..***", "*****"])
    state = SimulationState(board)
    revealed = state.open(0, 0, radius=1)

    assert sorted(revealed) == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert state.is_solved()


def test_open_skips_mines_inside_block(one_two_one):
    state = SimulationState(one_two_one)
    state.open(1, 1, radius=1)
    assert state.is_solved()
    assert state.visible[0] == [HIDDEN, 2, HIDDEN]


def test_constraint_and_frontier(one_two_one):
    state = SimulationState(one_two_one)
    for x in range(3):
        state.flood_reveal(x, 1)
    state.flag(0, 0)

    flagged, hidden = state.constraint(1, 1)
    assert flagged == 1
    assert sorted(hidden) == [(1, 0), (2, 0)]
    assert state.frontier() == [(1, 0), (2, 0)]


def test_frontier_regions_split_on_shared_constraints():
    # Two 1s far apart give two independent regions.
    board = Board.from_mines(7, 2, [(0, 0), (6, 0)])
    state = SimulationState(board)
    state.flood_reveal(0, 1)
    state.flood_reveal(6, 1)

    regions = state.frontier_regions(state.frontier())
    assert [sorted(r) for r in regions] == [
        [(0, 0), (1, 0), (1, 1)],
        [(5, 0), (5, 1), (6, 0)],
    ]


def test_apply_deduction(one_two_one):
    state = SimulationState(one_two_one)
    changed = state.apply(
        Deduction("counting", mines=((0, 0), (2, 0)), safes=((1, 0), (1, 1)))
    )
    assert changed == 4
    assert state.flag_count == 2
    assert state.visible[0][1] == 2
    assert state.apply(Deduction("counting", mines=((0, 0),))) == 0


def test_from_view_converts_shown_mines_to_flags(one_two_one):
    visible = [[EXPLODED, -1, REVEALED_MINE], [1, 2, 1]]
    flags = [[False] * 3, [False] * 3]

    state = SimulationState.from_view(one_two_one, visible, flags)

    assert state.flag_count == 2
    assert state.revealed_count == 3
    assert state.visible[0][0] == HIDDEN
    assert state.dirty


def test_from_view_ignores_flags_on_safe_cells(one_two_one, caplog):
    visible, flags = hidden_view(one_two_one)
    flags[0][0] = True
    flags[0][1] = True

    with caplog.at_level(logging.DEBUG, logger="noguess.state"):
        state = SimulationState.from_view(one_two_one, visible, flags)

    assert state.flags[0][0]
    assert not state.flags[0][1]
    assert state.flag_count == 1
    assert "Ignoring caller flag" in caplog.text


@pytest.mark.parametrize(
    "visible",
    [
        [[-1, -1, -1], [1, 3, 1]],  # wrong number
        [[5, -1, -1], [1, 2, 1]],  # number on a mine
        [[-1, 9, -1], [1, 2, 1]],  # shown mine on a safe cell
    ],
)
def test_from_view_rejects_inconsistent_values(one_two_one, visible):
    flags = [[False] * 3, [False] * 3]
    with pytest.raises(InconsistentStateError):
        SimulationState.from_view(one_two_one, visible, flags)


def test_from_view_rejects_wrong_shapes(one_two_one):
    with pytest.raises(ValueError):
        SimulationState.from_view(one_two_one, [[-1, -1, -1]], [[False] * 3] * 2)
    with pytest.raises(ValueError):
        SimulationState.from_view(one_two_one, [[-1, -1]] * 2, [[False] * 3] * 2)


def test_format(one_two_one):
    state = SimulationState(one_two_one)
    state.flood_reveal(1, 1)
    state.flag(2, 0)
    assert state.format() == ". . F\n. 2 ."
