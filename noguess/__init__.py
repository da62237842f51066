"""
No-guess Minesweeper

A deductive Minesweeper solver that never guesses, used to certify that
generated boards can be cleared by pure logic and to explain hints:
- Counting: trivial single-constraint deductions
- Subset: pairwise constraint inclusion
- Contradiction: per-cell hypothesis with local propagation
- Tank: exhaustive enumeration over connected frontier regions
- Global count: remaining-mine bookkeeping
- Gaussian elimination (optional)
"""

from .board import Board
from .config import SolverConfig
from .state import Deduction, InconsistentStateError, SimulationState
from .solver import MinesweeperSolver, SolveReport, get_hint, is_solvable
from .hints import Hint
from .engine import (
    GenerationResult,
    Minesweeper,
    generate_no_guess_board,
    place_random_mines,
    play_cli,
)
from .analysis import (
    format_simulation_state,
    run_solver_single_test,
    run_solver_many_tests,
    run_solver_expert_level_analysis,
    summarize_strategy_mix,
)

__version__ = "1.0.0"

__all__ = [
    # Core classes
    "Board",
    "SolverConfig",
    "SimulationState",
    "Deduction",
    "InconsistentStateError",
    "MinesweeperSolver",
    "SolveReport",
    "Hint",
    "Minesweeper",
    "GenerationResult",
    # Solver entry points
    "is_solvable",
    "get_hint",
    # Generation
    "generate_no_guess_board",
    "place_random_mines",
    # CLI
    "play_cli",
    # Analysis functions
    "format_simulation_state",
    "run_solver_single_test",
    "run_solver_many_tests",
    "run_solver_expert_level_analysis",
    "summarize_strategy_mix",
]
