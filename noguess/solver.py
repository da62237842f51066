"""No-guess Minesweeper solver: deductive strategy pipeline and solvability driver."""

import logging
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    FrozenSet,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)

import numpy as np

from .board import Board
from .config import SolverConfig
from .gaussian import gaussian_deductions
from .state import HIDDEN, Cell, Deduction, InconsistentStateError, SimulationState
from .utils import decode_key

if TYPE_CHECKING:
    from .hints import Hint

logger = logging.getLogger(__name__)

# Pipeline order; also the escalation rank used when tagging hints.
STRATEGY_ORDER: Tuple[str, ...] = (
    "counting",
    "subset",
    "gaussian",
    "contradiction",
    "tank",
    "global",
)

Strategy = Callable[[SimulationState], List[Deduction]]
IterationHook = Callable[[str, SimulationState], None]


def strategy_rank(name: str) -> int:
    """Position of a strategy tag in STRATEGY_ORDER."""
    return STRATEGY_ORDER.index(name)


@dataclass
class SolveReport:
    """
    Outcome of one solvability run.

    Attributes:
        solvable: True iff every non-mine cell was revealed by logic alone.
        iterations: Number of pipeline iterations that made progress.
        state: Final simulation state.
        applications: strategy -> number of iterations it won.
        resolved: strategy -> number of cells it flagged or revealed.
        hit_iteration_cap: The run was stopped by the iteration cap.
        inconsistent: The run was aborted by a broken invariant.
    """

    solvable: bool
    iterations: int
    state: SimulationState
    applications: Dict[str, int] = field(default_factory=dict)
    resolved: Dict[str, int] = field(default_factory=dict)
    hit_iteration_cap: bool = False
    inconsistent: bool = False

    @property
    def revealed_cells_count(self) -> int:
        return self.state.revealed_count

    @property
    def flag_count(self) -> int:
        return self.state.flag_count


class MinesweeperSolver:
    """
    Deductive Minesweeper solver that never guesses.

    Strategies are tried in ascending cost and the first one that makes
    progress wins the iteration:
    1. Counting: trivial single-constraint deductions on dirty cells
    2. Subset: pairwise constraint inclusion
    3. Gaussian elimination (optional, off by default)
    4. Contradiction: per-cell hypothesis with local propagation
    5. Tank: exhaustive enumeration over small frontier regions
    6. Global count: remaining-mine bookkeeping
    """

    def __init__(
        self,
        config: Optional[SolverConfig] = None,
        on_iteration: Optional[IterationHook] = None,
    ) -> None:
        """
        Args:
            config: Performance tunables; defaults to SolverConfig().
            on_iteration: Optional callback invoked as
                on_iteration(strategy_name, state) after every progress step
                of solve(). Useful for checking invariants in tests.
        """
        self.config: SolverConfig = config if config is not None else SolverConfig()
        self.on_iteration = on_iteration

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def solve(self, board: Board, start_x: int, start_y: int) -> SolveReport:
        """
        Run the strategy pipeline to a fixpoint from the opening at (start_x, start_y).

        Raises:
            ValueError: If the opening is out of bounds or on a mine.
        """
        if not board.in_bounds(start_x, start_y):
            raise ValueError(f"Opening ({start_x}, {start_y}) is outside the board.")
        if board.is_mine(start_x, start_y):
            raise ValueError(f"Opening ({start_x}, {start_y}) is on a mine.")

        state = SimulationState(board)
        applications = {name: 0 for name in STRATEGY_ORDER}
        resolved = {name: 0 for name in STRATEGY_ORDER}
        iterations = 0
        max_iterations = self.config.iteration_factor * board.width * board.height
        hit_iteration_cap = False
        inconsistent = False

        try:
            state.open(start_x, start_y, self.config.opening_radius)

            while not state.is_solved():
                if iterations >= max_iterations:
                    hit_iteration_cap = True
                    break

                outcome = self.step(state)
                if outcome is None:
                    break

                name, changed = outcome
                iterations += 1
                applications[name] += 1
                resolved[name] += changed

                if self.on_iteration is not None:
                    self.on_iteration(name, state)
        except InconsistentStateError as exc:
            logger.warning("Aborting solve from (%d, %d): %s", start_x, start_y, exc)
            inconsistent = True

        solvable = not inconsistent and state.is_solved()
        logger.debug(
            "Solve %dx%d/%d from (%d, %d): solvable=%s iterations=%d",
            board.width,
            board.height,
            board.mines_count,
            start_x,
            start_y,
            solvable,
            iterations,
        )

        return SolveReport(
            solvable=solvable,
            iterations=iterations,
            state=state,
            applications=applications,
            resolved=resolved,
            hit_iteration_cap=hit_iteration_cap,
            inconsistent=inconsistent,
        )

    def is_solvable(self, board: Board, start_x: int, start_y: int) -> bool:
        """True iff pure logic reveals every non-mine cell from the given opening."""
        return self.solve(board, start_x, start_y).solvable

    def get_hint(
        self,
        board: Board,
        visible: Sequence[Sequence[int]],
        flags: Sequence[Sequence[bool]],
    ) -> Optional["Hint"]:
        """Return a proven move (or a marked heuristic pick) for a live game view."""
        from .hints import find_hint

        return find_hint(self, board, visible, flags)

    def pipeline(self) -> List[Tuple[str, Strategy]]:
        """Strategies in the order they are tried each iteration."""
        stages: List[Tuple[str, Strategy]] = [
            ("counting", self.apply_counting),
            ("subset", self.apply_subset),
        ]
        if self.config.use_gaussian:
            stages.append(("gaussian", self.apply_gaussian))
        stages.extend(
            [
                ("contradiction", self.apply_contradiction),
                ("tank", self.apply_tank),
                ("global", self.apply_global_count),
            ]
        )
        return stages

    def step(self, state: SimulationState) -> Optional[Tuple[str, int]]:
        """
        Run one pipeline iteration and apply the first productive strategy.

        Returns:
            (strategy name, number of cells flagged or revealed), or None when
            no strategy makes progress.
        """
        for name, strategy in self.pipeline():
            deductions = strategy(state)
            if not deductions:
                continue

            changed = 0
            for deduction in deductions:
                changed += state.apply(deduction)
            return name, changed

        return None

    # -------------------------------------------------------------------------
    # Strategy 1: counting
    # -------------------------------------------------------------------------

    def apply_counting(self, state: SimulationState) -> List[Deduction]:
        """
        Trivial deductions for every dirty revealed number.

        The dirty set is consumed entirely. A constraint with exactly as many
        unresolved neighbors as missing mines flags them all; a constraint
        whose mines are all flagged reveals the rest.

        Raises:
            InconsistentStateError: If a constraint is over-flagged or cannot
                be satisfied any more.
        """
        if not state.dirty:
            return []

        keys = sorted(state.dirty)
        state.dirty.clear()

        deductions: List[Deduction] = []
        for key in keys:
            x, y = decode_key(key)
            v = state.visible[y][x]
            if v < 0:
                continue

            flagged, hidden = state.constraint(x, y)
            if flagged > v or flagged + len(hidden) < v:
                raise InconsistentStateError(
                    f"Constraint ({x}, {y}) = {v} has {flagged} flags and "
                    f"{len(hidden)} hidden neighbors."
                )
            if not hidden:
                continue

            details = {"constraints": ((x, y),), "value": v, "flagged": flagged}
            if flagged + len(hidden) == v:
                deductions.append(
                    Deduction("counting", mines=tuple(hidden), constraints=((x, y),), details=details)
                )
            elif flagged == v:
                deductions.append(
                    Deduction("counting", safes=tuple(hidden), constraints=((x, y),), details=details)
                )

        return deductions

    # -------------------------------------------------------------------------
    # Strategy 2: subset
    # -------------------------------------------------------------------------

    def apply_subset(self, state: SimulationState) -> List[Deduction]:
        """
        Pairwise inclusion between constraints near dirty cells.

        For a constraint A whose unresolved neighbors H_A are a strict subset
        of those of a constraint B (within Chebyshev distance 2), the
        difference D = H_B - H_A holds exactly r_B - r_A mines. Stops at the
        first productive pair. The subset dirty set is only drained once a
        full scan finds nothing.
        """
        if not state.subset_dirty:
            return []

        candidates: Set[Cell] = set()
        for key in state.subset_dirty:
            x, y = decode_key(key)
            if state.visible[y][x] > 0:
                candidates.add((x, y))
            for nx, ny in state.neighbors(x, y):
                if state.visible[ny][nx] > 0:
                    candidates.add((nx, ny))

        cache: Dict[Cell, Optional[Tuple[FrozenSet[Cell], int]]] = {}

        def constraint_data(cell: Cell) -> Optional[Tuple[FrozenSet[Cell], int]]:
            if cell not in cache:
                flagged, hidden = state.constraint(*cell)
                cx, cy = cell
                cache[cell] = (
                    (frozenset(hidden), state.visible[cy][cx] - flagged) if hidden else None
                )
            return cache[cell]

        for a in sorted(candidates):
            data_a = constraint_data(a)
            if data_a is None:
                continue
            hidden_a, residual_a = data_a
            ax, ay = a

            for by in range(max(0, ay - 2), min(state.height, ay + 3)):
                for bx in range(max(0, ax - 2), min(state.width, ax + 3)):
                    b = (bx, by)
                    if b == a or state.visible[by][bx] <= 0:
                        continue
                    data_b = constraint_data(b)
                    if data_b is None:
                        continue
                    hidden_b, residual_b = data_b

                    if len(hidden_a) >= len(hidden_b) or not hidden_a <= hidden_b:
                        continue

                    diff = tuple(sorted(hidden_b - hidden_a))
                    residual_delta = residual_b - residual_a
                    details = {"constraint_a": a, "constraint_b": b}

                    if residual_delta == 0:
                        return [Deduction("subset", safes=diff, constraints=(a, b), details=details)]
                    if residual_delta == len(diff):
                        return [Deduction("subset", mines=diff, constraints=(a, b), details=details)]

        state.subset_dirty.clear()
        return []

    # -------------------------------------------------------------------------
    # Optional strategy: Gaussian elimination
    # -------------------------------------------------------------------------

    def apply_gaussian(self, state: SimulationState) -> List[Deduction]:
        return gaussian_deductions(state, self.config.max_gaussian_component)

    # -------------------------------------------------------------------------
    # Strategy 3: proof by contradiction
    # -------------------------------------------------------------------------

    def apply_contradiction(self, state: SimulationState) -> List[Deduction]:
        """
        Try both hypotheses on the first frontier cells (row-major order).

        Assuming "mine" first: a contradiction proves the cell safe. Otherwise
        assuming "safe": a contradiction proves it a mine.
        """
        limit = self.config.max_contradiction_frontier
        if limit == 0:
            return []

        for cell in state.frontier()[:limit]:
            constraints = tuple(
                n for n in state.neighbors(*cell) if state.visible[n[1]][n[0]] > 0
            )
            if self.check_contradiction(state, cell, assume_mine=True):
                return [
                    Deduction(
                        "contradiction",
                        safes=(cell,),
                        constraints=constraints,
                        details={"hypothesis_cell": cell, "assumed": "mine"},
                    )
                ]
            if self.check_contradiction(state, cell, assume_mine=False):
                return [
                    Deduction(
                        "contradiction",
                        mines=(cell,),
                        constraints=constraints,
                        details={"hypothesis_cell": cell, "assumed": "safe"},
                    )
                ]

        return []

    def check_contradiction(
        self, state: SimulationState, cell: Cell, assume_mine: bool
    ) -> bool:
        """
        Propagate a hypothesis about one cell and report whether it fails.

        The hypothesis lives in two sparse overlays (simulated flags and
        assumed-safe cells); the real state is never touched. Each round
        re-checks the constraints next to cells changed in the previous one.

        Returns:
            True if some revealed constraint becomes unsatisfiable.
        """
        sim_flags: Set[Cell] = set()
        assumed_safe: Set[Cell] = set()
        if assume_mine:
            sim_flags.add(cell)
        else:
            assumed_safe.add(cell)

        visible = state.visible
        to_check: Set[Cell] = {
            n for n in state.neighbors(*cell) if visible[n[1]][n[0]] != HIDDEN
        }

        for _ in range(self.config.max_propagation_rounds):
            if not to_check:
                break

            next_check: Set[Cell] = set()
            for cx, cy in sorted(to_check):
                v = visible[cy][cx]

                flagged = 0
                hidden: List[Cell] = []
                for n in state.neighbors(cx, cy):
                    nx, ny = n
                    if state.flags[ny][nx] or n in sim_flags:
                        flagged += 1
                    elif visible[ny][nx] == HIDDEN and n not in assumed_safe:
                        hidden.append(n)

                if flagged > v or flagged + len(hidden) < v:
                    return True
                if not hidden:
                    continue

                if flagged == v:
                    assumed_safe.update(hidden)
                elif flagged + len(hidden) == v:
                    sim_flags.update(hidden)
                else:
                    continue

                for h in hidden:
                    for n in state.neighbors(*h):
                        if visible[n[1]][n[0]] != HIDDEN:
                            next_check.add(n)

            to_check = next_check

        return False

    # -------------------------------------------------------------------------
    # Strategy 4: tank enumeration
    # -------------------------------------------------------------------------

    def apply_tank(self, state: SimulationState) -> List[Deduction]:
        """
        Enumerate every mine placement over small connected frontier regions.

        Regions are processed smallest first; the first region with a cell
        fixed in every valid placement produces the deduction.
        """
        frontier = state.frontier()
        if not frontier:
            return []

        remaining = state.board.mines_count - state.flag_count
        regions = sorted(state.frontier_regions(frontier), key=len)

        for region in regions:
            size = len(region)
            if size > self.config.max_region_size or (1 << size) > self.config.max_configurations:
                logger.debug("Skipping tank region of %d cells", size)
                continue

            deduction = self._enumerate_region(state, region, remaining)
            if deduction is not None:
                return [deduction]

        return []

    def _enumerate_region(
        self, state: SimulationState, region: List[Cell], remaining: int
    ) -> Optional[Deduction]:
        """
        Classify region cells over all 2^n bitmask placements.

        Every revealed number adjacent to the region contributes a constraint
        (residual mines, region-local indices, hidden neighbors outside the
        region). A mask is valid when each constraint leaves between 0 and
        |outside| mines for its outside neighbors.

        Raises:
            InconsistentStateError: If no placement satisfies the constraints.
        """
        size = len(region)
        index = {cell: i for i, cell in enumerate(region)}

        clues: Set[Cell] = set()
        for cell in region:
            for n in state.neighbors(*cell):
                if state.visible[n[1]][n[0]] > 0:
                    clues.add(n)

        masks = np.arange(1 << size, dtype=np.int64)
        bits = ((masks[:, None] >> np.arange(size)) & 1).astype(bool)
        valid = bits.sum(axis=1) <= remaining

        for cx, cy in sorted(clues):
            flagged, hidden = state.constraint(cx, cy)
            inside = [index[h] for h in hidden if h in index]
            outside = len(hidden) - len(inside)
            left = (state.visible[cy][cx] - flagged) - bits[:, inside].sum(axis=1)
            valid &= (left >= 0) & (left <= outside)

        configurations = int(valid.sum())
        if configurations == 0:
            raise InconsistentStateError(
                f"No valid mine placement for frontier region of {size} cells."
            )

        valid_bits = bits[valid]
        always_mine = valid_bits.all(axis=0)
        never_mine = ~valid_bits.any(axis=0)

        mines = tuple(sorted(region[i] for i in np.nonzero(always_mine)[0]))
        safes = tuple(sorted(region[i] for i in np.nonzero(never_mine)[0]))
        if not mines and not safes:
            return None

        return Deduction(
            "tank",
            mines=mines,
            safes=safes,
            constraints=tuple(sorted(clues)),
            details={"configurations": configurations, "region_size": size},
        )

    # -------------------------------------------------------------------------
    # Strategy 5: global mine count
    # -------------------------------------------------------------------------

    def apply_global_count(self, state: SimulationState) -> List[Deduction]:
        """Resolve every unknown cell when the remaining mine count forces it."""
        unknown = state.unknown_cells()
        if not unknown:
            return []

        remaining = state.board.mines_count - state.flag_count
        if remaining < 0 or remaining > len(unknown):
            raise InconsistentStateError(
                f"{remaining} mines remain for {len(unknown)} unknown cells."
            )

        details = {"remaining_mines": remaining, "unknown_cells": len(unknown)}
        if remaining == len(unknown):
            return [Deduction("global", mines=tuple(unknown), details=details)]
        if remaining == 0:
            return [Deduction("global", safes=tuple(unknown), details=details)]
        return []


# -----------------------------------------------------------------------------
# Module-level convenience API
# -----------------------------------------------------------------------------

_DEFAULT_SOLVER = MinesweeperSolver()


def is_solvable(board: Board, start_x: int, start_y: int) -> bool:
    """Certify that a board can be cleared without guessing from the given opening."""
    return _DEFAULT_SOLVER.is_solvable(board, start_x, start_y)


def get_hint(
    board: Board,
    visible: Sequence[Sequence[int]],
    flags: Sequence[Sequence[bool]],
) -> Optional["Hint"]:
    """Hint for a live game view using the default solver configuration."""
    return _DEFAULT_SOLVER.get_hint(board, visible, flags)
