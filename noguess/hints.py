"""Hint classifier: proven moves for a live game, tagged with the reasoning used."""

import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence, Tuple

from .board import Board
from .state import HIDDEN, Cell, Deduction, InconsistentStateError, SimulationState
from .solver import strategy_rank as _rank
from .utils import get_neighborhoods

if TYPE_CHECKING:
    from .solver import MinesweeperSolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Hint:
    """
    A suggested move.

    Attributes:
        x, y: Target cell.
        kind: "safe" or "mine".
        strategy: Strategy tag: counting, subset, gaussian, contradiction,
            tank, global or heuristic.
        constraint_cells: Revealed numbers the deduction relies on.
        explanation: Strategy-specific data for rendering an explanation.
        heuristic: True when the hint is a guess rather than a proof.
    """

    x: int
    y: int
    kind: str
    strategy: str
    constraint_cells: Tuple[Cell, ...] = ()
    explanation: Dict[str, Any] = field(default_factory=dict)
    heuristic: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def describe(self) -> str:
        """One English sentence explaining the hint."""
        target = f"({self.x}, {self.y})"
        action = "safe to reveal" if self.kind == "safe" else "a mine"
        info = self.explanation

        if self.strategy == "counting":
            cells = ", ".join(str(c) for c in info.get("constraints", self.constraint_cells))
            return f"{target} is {action}: the number at {cells} is already fully determined."
        if self.strategy == "subset":
            return (
                f"{target} is {action}: the unknown neighbors of {info.get('constraint_a')} "
                f"are all shared with {info.get('constraint_b')}, and the difference "
                f"decides the rest."
            )
        if self.strategy == "gaussian":
            return f"{target} is {action}: solving the frontier equations forces it."
        if self.strategy == "contradiction":
            return (
                f"{target} is {action}: assuming {info.get('hypothesis_cell')} is "
                f"{info.get('assumed')} leads to a contradiction."
            )
        if self.strategy == "tank":
            return (
                f"{target} is {action} in all {info.get('configurations')} possible "
                f"mine placements of its region."
            )
        if self.strategy == "global":
            return (
                f"{target} is {action}: {info.get('remaining_mines')} mines remain "
                f"for the unknown cells."
            )
        return f"No certain move; {target} is the most promising guess."


def _proof_hint(cell: Cell, kind: str, deduction: Deduction) -> Hint:
    return Hint(
        x=cell[0],
        y=cell[1],
        kind=kind,
        strategy=deduction.strategy,
        constraint_cells=deduction.constraints,
        explanation=dict(deduction.details),
    )


def heuristic_hint(
    board: Board,
    visible: Sequence[Sequence[int]],
    flags: Sequence[Sequence[bool]],
) -> Optional[Hint]:
    """
    Last-resort pick among the hidden, unflagged cells that are not mines.

    The move is safe but not provable from the view, so it is tagged
    heuristic. Cells next to something already shown come first, scored by
    their shown neighbors plus 10 if the cell itself is a zero (it opens an
    area). Otherwise any safe hidden cell is picked, zeros first. Ties go to
    the first cell in row-major order.

    Returns:
        The hint, or None if every safe cell is already shown or flagged.
    """
    neighborhoods = get_neighborhoods(board.width, board.height)
    frontier: Optional[Tuple[Cell, int]] = None
    island: Optional[Tuple[Cell, int]] = None

    for y in range(board.height):
        for x in range(board.width):
            if visible[y][x] != HIDDEN or flags[y][x] or board.is_mine(x, y):
                continue

            bonus = 10 if board.adjacent(x, y) == 0 else 0
            shown = sum(1 for nx, ny in neighborhoods[(x, y)] if visible[ny][nx] != HIDDEN)
            if shown:
                if frontier is None or shown + bonus > frontier[1]:
                    frontier = ((x, y), shown + bonus)
            elif island is None or bonus > island[1]:
                island = ((x, y), bonus)

    pick = frontier if frontier is not None else island
    if pick is None:
        return None
    best, best_score = pick

    return Hint(
        x=best[0],
        y=best[1],
        kind="safe",
        strategy="heuristic",
        explanation={"score": best_score},
        heuristic=True,
    )


def find_hint(
    solver: "MinesweeperSolver",
    board: Board,
    visible: Sequence[Sequence[int]],
    flags: Sequence[Sequence[bool]],
) -> Optional[Hint]:
    """
    Find a provably safe (preferred) or mined cell for the caller's view.

    The solver pipeline runs on a scratch state built from the view. Batches
    that only prove mines are applied and the search restarts; the first
    batch proving a caller-hidden cell safe ends it. The reported strategy
    is the most advanced one used along the way.

    Returns:
        The hint, or None if the view is inconsistent with the board or no
        hidden cell is left.

    Raises:
        ValueError: If the grids do not match the board dimensions.
    """
    try:
        state = SimulationState.from_view(board, visible, flags)
    except InconsistentStateError as exc:
        logger.warning("Inconsistent game view, no hint: %s", exc)
        return None

    def open_in_view(cell: Cell) -> bool:
        x, y = cell
        return visible[y][x] == HIDDEN and not flags[y][x]

    max_iterations = solver.config.iteration_factor * board.width * board.height
    decisive: Optional[Deduction] = None
    mine_hint: Optional[Hint] = None

    try:
        for _ in range(max_iterations):
            progress = False

            for name, strategy in solver.pipeline():
                deductions = strategy(state)
                if not deductions:
                    continue

                if decisive is None or _rank(name) > _rank(decisive.strategy):
                    decisive = deductions[0]

                for deduction in deductions:
                    safe = next((c for c in deduction.safes if open_in_view(c)), None)
                    if safe is not None:
                        chosen = decisive if _rank(decisive.strategy) > _rank(name) else deduction
                        return _proof_hint(safe, "safe", chosen)

                    if mine_hint is None:
                        mine = next((c for c in deduction.mines if open_in_view(c)), None)
                        if mine is not None:
                            chosen = decisive if _rank(decisive.strategy) > _rank(name) else deduction
                            mine_hint = _proof_hint(mine, "mine", chosen)

                for deduction in deductions:
                    state.apply(deduction)
                progress = True
                break

            if not progress:
                break
    except InconsistentStateError as exc:
        logger.warning("Inconsistent game view, no hint: %s", exc)
        return None

    if mine_hint is not None:
        return mine_hint
    return heuristic_hint(board, visible, flags)
