"""Immutable board description consumed by the solver."""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Sequence, Tuple

import numpy as np

_MINE_CHARS = frozenset("*Mm")


def _adjacent_counts(mask: np.ndarray) -> np.ndarray:
    """Count mines in the 8-neighborhood of every cell; mined cells get 0."""
    height, width = mask.shape
    padded = np.pad(mask.astype(np.int8), 1)
    counts = np.zeros((height, width), dtype=np.int8)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            counts += padded[1 + dy:1 + dy + height, 1 + dx:1 + dx + width]
    counts[mask] = 0
    return counts


@dataclass(frozen=True)
class Board:
    """
    A rectangular Minesweeper board with known mine positions.

    Both grids are tuples of rows indexed [y][x]. ``counts`` holds the number
    of adjacent mines for every safe cell and 0 for mined cells.
    """

    width: int
    height: int
    mines: Tuple[Tuple[bool, ...], ...]
    counts: Tuple[Tuple[int, ...], ...]
    mines_count: int = field(init=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Board width and height must be positive.")
        if len(self.mines) != self.height or len(self.counts) != self.height:
            raise ValueError("Board grids must have exactly `height` rows.")
        for row in (*self.mines, *self.counts):
            if len(row) != self.width:
                raise ValueError("Board grid rows must have exactly `width` cells.")

        mask = np.array(self.mines, dtype=bool)
        expected = _adjacent_counts(mask)
        if not np.array_equal(expected, np.array(self.counts, dtype=np.int8)):
            raise ValueError("Adjacent mine counts are inconsistent with mine positions.")

        object.__setattr__(self, "mines_count", int(mask.sum()))

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def from_mask(cls, mask: Sequence[Sequence[bool]]) -> "Board":
        """Build a board from a [y][x] boolean mine mask (nested lists or ndarray)."""
        grid = np.asarray(mask, dtype=bool)
        if grid.ndim != 2 or grid.size == 0:
            raise ValueError("Mine mask must be a non-empty 2D grid.")
        counts = _adjacent_counts(grid)
        return cls(
            width=int(grid.shape[1]),
            height=int(grid.shape[0]),
            mines=tuple(tuple(bool(v) for v in row) for row in grid),
            counts=tuple(tuple(int(v) for v in row) for row in counts),
        )

    @classmethod
    def from_mines(
        cls, width: int, height: int, mines: Iterable[Tuple[int, int]]
    ) -> "Board":
        """Build a board of the given size with mines at the (x, y) positions."""
        if width <= 0 or height <= 0:
            raise ValueError("Board width and height must be positive.")
        grid = np.zeros((height, width), dtype=bool)
        for x, y in mines:
            if not (0 <= x < width and 0 <= y < height):
                raise ValueError(f"Mine position ({x}, {y}) is outside the board.")
            grid[y, x] = True
        return cls.from_mask(grid)

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> "Board":
        """
        Build a board from text rows, one string per y.

        ``*`` (or ``M``) marks a mine; any other character is a safe cell.
        Whitespace inside a row is ignored, so rows may be written spaced out.
        """
        cleaned = ["".join(row.split()) for row in rows]
        return cls.from_mask([[ch in _MINE_CHARS for ch in row] for row in cleaned])

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_mine(self, x: int, y: int) -> bool:
        return self.mines[y][x]

    def adjacent(self, x: int, y: int) -> int:
        """Adjacent mine count of (x, y); 0 for mined cells."""
        return self.counts[y][x]

    @property
    def safe_count(self) -> int:
        return self.width * self.height - self.mines_count

    def mine_positions(self) -> FrozenSet[Tuple[int, int]]:
        return frozenset(
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if self.mines[y][x]
        )

    def format(self, visible: Optional[Sequence[Sequence[int]]] = None) -> str:
        """
        Render the board as text rows.

        Without ``visible`` every cell is shown (``*`` for mines). With a
        [y][x] visible grid, hidden cells (negative values) are shown as ``.``.
        """
        lines = []
        for y in range(self.height):
            cells = []
            for x in range(self.width):
                if visible is not None and visible[y][x] < 0:
                    cells.append(".")
                elif self.mines[y][x]:
                    cells.append("*")
                else:
                    cells.append(str(self.counts[y][x]))
            lines.append(" ".join(cells))
        return "\n".join(lines)
