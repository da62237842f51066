"""Mutable per-invocation simulation state: visible grid, flags and dirty cells."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Sequence, Set, Tuple

from .board import Board
from .utils import cell_key, get_neighborhoods

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]

# visible[y][x] encoding
HIDDEN = -1
EXPLODED = 9
REVEALED_MINE = 10


class InconsistentStateError(RuntimeError):
    """A simulation invariant was violated (corrupt board or caller state)."""


@dataclass(frozen=True)
class Deduction:
    """
    One batch of cells proven by a single strategy step.

    Attributes:
        strategy: Tag of the strategy that produced the deduction.
        mines: Cells proven to be mines.
        safes: Cells proven to be safe.
        constraints: Revealed number cells the deduction is based on.
        details: Strategy-specific data used for hint explanations.
    """

    strategy: str
    mines: Tuple[Cell, ...] = ()
    safes: Tuple[Cell, ...] = ()
    constraints: Tuple[Cell, ...] = ()
    details: Dict[str, Any] = field(default_factory=dict)


class SimulationState:
    """
    Working copy of a game as seen by the solver.

    visible[y][x] is HIDDEN (-1) or the revealed adjacent mine count.
    flags[y][x] is True for cells proven (or known) to be mines. The board is
    only consulted to read the value of a cell being revealed and to check
    that every reveal and flag agrees with the real mine layout.
    """

    def __init__(self, board: Board) -> None:
        self.board = board
        self.width: int = board.width
        self.height: int = board.height
        self._neighborhoods = get_neighborhoods(board.width, board.height)

        self.visible: List[List[int]] = [
            [HIDDEN for _ in range(board.width)] for _ in range(board.height)
        ]
        self.flags: List[List[bool]] = [
            [False for _ in range(board.width)] for _ in range(board.height)
        ]
        self.flag_count: int = 0
        self.revealed_count: int = 0

        # Packed cell keys whose neighborhood changed since their last inspection.
        self.dirty: Set[int] = set()
        # Same, but only drained once a subset scan finishes without progress.
        self.subset_dirty: Set[int] = set()

    @classmethod
    def from_view(
        cls,
        board: Board,
        visible: Sequence[Sequence[int]],
        flags: Sequence[Sequence[bool]],
    ) -> "SimulationState":
        """
        Build a state from a caller's live [y][x] visible and flag grids.

        Revealed mines (EXPLODED / REVEALED_MINE) become flags. Caller flags
        are only kept on real mines.

        Raises:
            ValueError: If the grids do not match the board dimensions.
            InconsistentStateError: If a revealed value disagrees with the board.
        """
        if len(visible) != board.height or len(flags) != board.height:
            raise ValueError("visible and flags must have one row per board row.")
        if any(len(row) != board.width for row in visible) or any(
            len(row) != board.width for row in flags
        ):
            raise ValueError("visible and flags rows must have board width.")

        state = cls(board)
        for y in range(board.height):
            for x in range(board.width):
                v = visible[y][x]
                if v == HIDDEN:
                    continue
                if v in (EXPLODED, REVEALED_MINE):
                    if not board.is_mine(x, y):
                        raise InconsistentStateError(
                            f"Cell ({x}, {y}) is shown as a mine but is safe."
                        )
                    state.flags[y][x] = True
                    state.flag_count += 1
                    continue
                if not 0 <= v <= 8 or board.is_mine(x, y) or v != board.adjacent(x, y):
                    raise InconsistentStateError(
                        f"Cell ({x}, {y}) shows {v}, which disagrees with the board."
                    )
                state.visible[y][x] = v
                state.revealed_count += 1

        for y in range(board.height):
            for x in range(board.width):
                if not flags[y][x] or state.visible[y][x] != HIDDEN or state.flags[y][x]:
                    continue
                if board.is_mine(x, y):
                    state.flags[y][x] = True
                    state.flag_count += 1
                else:
                    logger.debug("Ignoring caller flag on safe cell (%d, %d)", x, y)

        state.seed_dirty()
        return state

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def neighbors(self, x: int, y: int) -> Tuple[Cell, ...]:
        """Return precomputed neighbor coordinates for a cell."""
        return self._neighborhoods[(x, y)]

    def is_unknown(self, x: int, y: int) -> bool:
        """True for hidden cells that are not flagged."""
        return self.visible[y][x] == HIDDEN and not self.flags[y][x]

    def is_solved(self) -> bool:
        """True once every non-mine cell is revealed."""
        return self.revealed_count == self.board.safe_count

    def constraint(self, x: int, y: int) -> Tuple[int, List[Cell]]:
        """Return (flagged neighbor count, hidden unflagged neighbors) of (x, y)."""
        flagged = 0
        hidden: List[Cell] = []
        for nx, ny in self._neighborhoods[(x, y)]:
            if self.flags[ny][nx]:
                flagged += 1
            elif self.visible[ny][nx] == HIDDEN:
                hidden.append((nx, ny))
        return flagged, hidden

    def frontier(self) -> List[Cell]:
        """Hidden unflagged cells with at least one revealed number neighbor, row-major."""
        frontier: List[Cell] = []
        for y in range(self.height):
            for x in range(self.width):
                if not self.is_unknown(x, y):
                    continue
                for nx, ny in self._neighborhoods[(x, y)]:
                    if self.visible[ny][nx] > 0:
                        frontier.append((x, y))
                        break
        return frontier

    def frontier_regions(self, frontier: Sequence[Cell]) -> List[List[Cell]]:
        """
        Partition frontier cells into connected regions.

        Two frontier cells are connected when they share a revealed number
        neighbor. Regions are returned in discovery order, each in BFS order.
        """
        frontier_set: Set[Cell] = set(frontier)
        visited: Set[Cell] = set()
        regions: List[List[Cell]] = []

        for start in frontier:
            if start in visited:
                continue

            region: List[Cell] = []
            queue: Deque[Cell] = deque([start])
            visited.add(start)

            while queue:
                cell = queue.popleft()
                region.append(cell)

                for cx, cy in self._neighborhoods[cell]:
                    if self.visible[cy][cx] <= 0:
                        continue
                    for n in self._neighborhoods[(cx, cy)]:
                        if n in frontier_set and n not in visited:
                            visited.add(n)
                            queue.append(n)

            regions.append(region)

        return regions

    def unknown_cells(self) -> List[Cell]:
        """All hidden unflagged cells, row-major."""
        return [
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if self.is_unknown(x, y)
        ]

    def count_flags(self) -> int:
        """Count flags by scanning the grid (flag_count is maintained incrementally)."""
        return sum(row.count(True) for row in self.flags)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def mark_dirty(self, x: int, y: int) -> None:
        """Queue a cell and its neighbors for re-examination."""
        keys = [cell_key(x, y)]
        keys.extend(cell_key(nx, ny) for nx, ny in self._neighborhoods[(x, y)])
        self.dirty.update(keys)
        self.subset_dirty.update(keys)

    def seed_dirty(self) -> None:
        """Mark every revealed cell and its neighbors dirty."""
        for y in range(self.height):
            for x in range(self.width):
                if self.visible[y][x] != HIDDEN:
                    self.mark_dirty(x, y)

    def open(self, start_x: int, start_y: int, radius: int = 1) -> List[Cell]:
        """
        Reveal the opening block around the start cell.

        Every non-mine cell of the (2 * radius + 1)^2 block, clamped to the
        board, is flood-revealed. Returns the revealed cells.
        """
        revealed: List[Cell] = []
        for y in range(max(0, start_y - radius), min(self.height, start_y + radius + 1)):
            for x in range(max(0, start_x - radius), min(self.width, start_x + radius + 1)):
                if self.board.is_mine(x, y):
                    continue
                revealed.extend(self.flood_reveal(x, y))
        return revealed

    def flood_reveal(self, x: int, y: int) -> List[Cell]:
        """
        Reveal (x, y) and cascade through zero cells using an explicit stack.

        A cell that is already revealed or flagged is a no-op.

        Returns:
            The newly revealed cells.

        Raises:
            InconsistentStateError: If the target cell is a mine.
        """
        revealed: List[Cell] = []
        stack: List[Cell] = [(x, y)]

        while stack:
            cx, cy = stack.pop()
            if self.visible[cy][cx] != HIDDEN or self.flags[cy][cx]:
                continue
            if self.board.is_mine(cx, cy):
                raise InconsistentStateError(f"Attempted to reveal mined cell ({cx}, {cy}).")

            value = self.board.adjacent(cx, cy)
            self.visible[cy][cx] = value
            self.revealed_count += 1
            revealed.append((cx, cy))
            self.mark_dirty(cx, cy)

            if value == 0:
                for nx, ny in self._neighborhoods[(cx, cy)]:
                    if self.visible[ny][nx] == HIDDEN and not self.flags[ny][nx]:
                        stack.append((nx, ny))

        return revealed

    def flag(self, x: int, y: int) -> bool:
        """
        Flag a hidden cell as a mine.

        Returns:
            True if the flag is new, False if the cell was already flagged or revealed.

        Raises:
            InconsistentStateError: If the cell is not a mine.
        """
        if self.flags[y][x] or self.visible[y][x] != HIDDEN:
            return False
        if not self.board.is_mine(x, y):
            raise InconsistentStateError(f"Attempted to flag safe cell ({x}, {y}).")

        self.flags[y][x] = True
        self.flag_count += 1
        self.mark_dirty(x, y)
        return True

    def apply(self, deduction: Deduction) -> int:
        """Apply a deduction; return the number of cells that changed state."""
        changed = 0
        for mx, my in deduction.mines:
            if self.flag(mx, my):
                changed += 1
        for sx, sy in deduction.safes:
            changed += len(self.flood_reveal(sx, sy))
        return changed

    def format(self) -> str:
        """Render the state: '.' hidden, 'F' flagged, digits for revealed cells."""
        lines = []
        for y in range(self.height):
            cells = []
            for x in range(self.width):
                if self.flags[y][x]:
                    cells.append("F")
                elif self.visible[y][x] == HIDDEN:
                    cells.append(".")
                else:
                    cells.append(str(self.visible[y][x]))
            lines.append(" ".join(cells))
        return "\n".join(lines)
