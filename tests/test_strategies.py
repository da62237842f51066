import numpy as np
import pytest

from noguess import Board, MinesweeperSolver, SolverConfig
from noguess.gaussian import gaussian_deductions, reduce_rows
from noguess.state import InconsistentStateError, SimulationState

from conftest import CONTRADICTION_MINES, P_ONLY, Q_ONLY


def reveal_row(board: Board, y: int) -> SimulationState:
    state = SimulationState(board)
    for x in range(board.width):
        state.flood_reveal(x, y)
    return state


@pytest.fixture
def solver() -> MinesweeperSolver:
    return MinesweeperSolver()


@pytest.fixture
def contradiction_state(contradiction_board, contradiction_view) -> SimulationState:
    visible, flags = contradiction_view
    return SimulationState.from_view(contradiction_board, visible, flags)


# -----------------------------------------------------------------------------
# Counting
# -----------------------------------------------------------------------------


def test_counting_flags_saturated_constraint(solver):
    board = Board.from_mines(2, 1, [(0, 0)])
    state = SimulationState(board)
    state.flood_reveal(1, 0)

    deductions = solver.apply_counting(state)

    assert len(deductions) == 1
    assert deductions[0].strategy == "counting"
    assert deductions[0].mines == ((0, 0),)
    assert deductions[0].constraints == ((1, 0),)
    assert state.dirty == set()


def test_counting_reveals_satisfied_constraint(solver):
    board = Board.from_mines(3, 1, [(0, 0)])
    state = SimulationState(board)
    state.flood_reveal(1, 0)
    state.flag(0, 0)

    deductions = solver.apply_counting(state)

    assert [d.safes for d in deductions] == [((2, 0),)]
    assert deductions[0].details["constraints"] == ((1, 0),)


def test_counting_opens_hidden_cells_around_zeros(solver):
    board = Board.from_mines(3, 1, [(2, 0)])
    visible = [[0, -1, -1]]
    flags = [[False, False, False]]
    state = SimulationState.from_view(board, visible, flags)

    deductions = solver.apply_counting(state)

    assert [d.safes for d in deductions] == [((1, 0),)]
    assert deductions[0].constraints == ((0, 0),)
    assert deductions[0].details["value"] == 0


def test_counting_without_dirty_cells_does_nothing(solver, one_two_one):
    state = reveal_row(one_two_one, 1)
    state.dirty.clear()
    assert solver.apply_counting(state) == []


def test_counting_detects_overflagged_constraint(solver, one_two_one):
    state = reveal_row(one_two_one, 1)
    state.flag(0, 0)
    # Corrupt the state behind the solver's back.
    state.flags[0][1] = True
    state.flag_count += 1
    state.mark_dirty(0, 1)

    with pytest.raises(InconsistentStateError):
        solver.apply_counting(state)


# -----------------------------------------------------------------------------
# Subset
# -----------------------------------------------------------------------------


def test_subset_one_two_one(solver, one_two_one):
    state = reveal_row(one_two_one, 1)

    deductions = solver.apply_subset(state)

    assert len(deductions) == 1
    deduction = deductions[0]
    assert deduction.strategy == "subset"
    assert deduction.mines == ((2, 0),)
    assert deduction.safes == ()
    assert deduction.details == {"constraint_a": (0, 1), "constraint_b": (1, 1)}
    # A productive scan keeps its dirty set for the next pass.
    assert state.subset_dirty


def test_subset_proves_difference_safe(solver):
    # 1 1 under mines {(0,0) or (1,0)} forces (2,0) safe.
    board = Board.from_mines(5, 2, [(1, 0), (4, 0)])
    state = reveal_row(board, 1)

    deductions = solver.apply_subset(state)

    assert deductions[0].safes == ((2, 0),)
    assert deductions[0].details["constraint_a"] == (0, 1)


def test_subset_without_progress_drains_dirty(solver):
    board = Board.from_mines(2, 3, [(0, 2)])
    state = SimulationState(board)
    state.open(0, 0)

    assert solver.apply_subset(state) == []
    assert state.subset_dirty == set()


# -----------------------------------------------------------------------------
# Contradiction
# -----------------------------------------------------------------------------


def test_contradiction_proves_cell_safe(solver, contradiction_state):
    assert solver.apply_counting(contradiction_state) == []
    assert solver.apply_subset(contradiction_state) == []

    deductions = solver.apply_contradiction(contradiction_state)

    assert len(deductions) == 1
    deduction = deductions[0]
    assert deduction.strategy == "contradiction"
    assert deduction.safes == ((4, 3),)
    assert deduction.details == {"hypothesis_cell": (4, 3), "assumed": "mine"}
    assert deduction.constraints == ((5, 4),)


def test_check_contradiction_both_hypotheses(solver, contradiction_state):
    assert solver.check_contradiction(contradiction_state, (4, 3), assume_mine=True)
    assert not solver.check_contradiction(contradiction_state, (4, 3), assume_mine=False)


def test_contradiction_proves_cell_mine(solver):
    # A lone 1 next to a single hidden cell: assuming it safe breaks the 1.
    board = Board.from_mines(2, 1, [(0, 0)])
    state = SimulationState(board)
    state.flood_reveal(1, 0)

    deductions = solver.apply_contradiction(state)

    assert deductions[0].mines == ((0, 0),)
    assert deductions[0].details["assumed"] == "safe"


def test_contradiction_does_not_touch_state(solver, contradiction_state):
    visible = [row[:] for row in contradiction_state.visible]
    solver.check_contradiction(contradiction_state, (4, 3), assume_mine=True)
    assert contradiction_state.visible == visible
    assert contradiction_state.flag_count == 0


def test_contradiction_can_be_disabled(contradiction_state):
    solver = MinesweeperSolver(SolverConfig(max_contradiction_frontier=0))
    assert solver.apply_contradiction(contradiction_state) == []


# -----------------------------------------------------------------------------
# Tank
# -----------------------------------------------------------------------------


def test_tank_counts_configurations(solver):
    board = Board.from_mines(5, 2, [(1, 0), (4, 0)])
    state = reveal_row(board, 1)

    deductions = solver.apply_tank(state)

    assert len(deductions) == 1
    deduction = deductions[0]
    assert deduction.strategy == "tank"
    assert deduction.safes == ((2, 0),)
    assert deduction.mines == ()
    assert deduction.details["configurations"] == 2


def test_tank_uses_remaining_mine_count(solver, contradiction_state):
    deductions = solver.apply_tank(contradiction_state)

    deduction = deductions[0]
    assert list(deduction.safes) == sorted(P_ONLY)
    assert list(deduction.mines) == sorted(Q_ONLY)
    assert deduction.details["configurations"] == 3
    assert deduction.details["region_size"] == 13


def test_tank_region_at_size_limit_is_enumerated(solver):
    mines = [(x, 0) for x in (1, 4, 7, 10, 13)]
    board = Board.from_mines(15, 2, mines)
    state = reveal_row(board, 1)

    deductions = solver.apply_tank(state)

    assert deductions[0].details["region_size"] == 15
    assert deductions[0].details["configurations"] == 1
    assert set(deductions[0].mines) == set(mines)
    assert len(deductions[0].safes) == 10


def test_tank_region_over_size_limit_is_skipped(solver):
    board = Board.from_mines(16, 2, [(x, 0) for x in (1, 4, 7, 10, 13, 15)])
    state = reveal_row(board, 1)

    assert solver.apply_tank(state) == []


def test_tank_respects_configuration_cap():
    board = Board.from_mines(5, 2, [(1, 0), (4, 0)])
    state = reveal_row(board, 1)
    solver = MinesweeperSolver(SolverConfig(max_configurations=16))

    assert solver.apply_tank(state) == []


def test_tank_then_counting_finishes_board(contradiction_state):
    solver = MinesweeperSolver(SolverConfig(max_contradiction_frontier=0))

    first = solver.step(contradiction_state)
    assert first is not None and first[0] == "tank"

    while solver.step(contradiction_state) is not None:
        pass

    assert contradiction_state.is_solved()
    assert contradiction_state.flag_count == len(CONTRADICTION_MINES)


# -----------------------------------------------------------------------------
# Global count
# -----------------------------------------------------------------------------


def test_global_flags_all_unknown_cells(solver):
    board = Board.from_rows(["***", "*.*", "***"])
    state = SimulationState(board)
    state.flood_reveal(1, 1)

    deductions = solver.apply_global_count(state)

    assert len(deductions[0].mines) == 8
    assert deductions[0].details["remaining_mines"] == 8


def test_global_reveals_when_no_mines_remain(solver):
    board = Board.from_mines(2, 3, [(0, 2)])
    state = SimulationState(board)
    state.open(0, 0)
    state.flag(0, 2)

    deductions = solver.apply_global_count(state)

    assert deductions[0].safes == ((1, 2),)
    assert deductions[0].details["remaining_mines"] == 0


def test_global_no_progress(solver):
    board = Board.from_mines(2, 3, [(0, 2)])
    state = SimulationState(board)
    state.open(0, 0)
    assert solver.apply_global_count(state) == []


def test_global_detects_impossible_count(solver):
    board = Board.from_mines(2, 3, [(0, 2)])
    state = SimulationState(board)
    state.open(0, 0)
    state.flag_count = 2

    with pytest.raises(InconsistentStateError):
        solver.apply_global_count(state)


# -----------------------------------------------------------------------------
# Gaussian elimination
# -----------------------------------------------------------------------------


def test_reduce_rows():
    matrix = np.array([[1.0, 1.0, 1.0], [1.0, -1.0, 0.0]])
    reduce_rows(matrix)
    assert np.allclose(matrix, [[1.0, 0.0, 0.5], [0.0, 1.0, 0.5]])


def test_gaussian_one_two_one(one_two_one):
    state = reveal_row(one_two_one, 1)

    deductions = gaussian_deductions(state, max_component=50)

    assert len(deductions) == 1
    assert deductions[0].strategy == "gaussian"
    assert deductions[0].mines == ((0, 0), (2, 0))
    assert deductions[0].safes == ((1, 0),)


def test_gaussian_uses_equation_differences(contradiction_state):
    deductions = gaussian_deductions(contradiction_state, max_component=50)

    assert list(deductions[0].mines) == sorted(Q_ONLY)
    assert list(deductions[0].safes) == sorted(P_ONLY)


def test_gaussian_windows_stay_sound(contradiction_board, contradiction_state):
    deductions = gaussian_deductions(contradiction_state, max_component=4)
    for deduction in deductions:
        assert all(contradiction_board.is_mine(x, y) for x, y in deduction.mines)
        assert not any(contradiction_board.is_mine(x, y) for x, y in deduction.safes)


def test_gaussian_only_runs_when_enabled(contradiction_state):
    assert [name for name, _ in MinesweeperSolver().pipeline()] == [
        "counting",
        "subset",
        "contradiction",
        "tank",
        "global",
    ]

    solver = MinesweeperSolver(SolverConfig(use_gaussian=True))
    assert [name for name, _ in solver.pipeline()][2] == "gaussian"
    assert solver.step(contradiction_state)[0] == "gaussian"
