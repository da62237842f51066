"""Minesweeper game engine with first-click safety and no-guess board generation."""

import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Set, Tuple

from .board import Board
from .hints import Hint
from .solver import MinesweeperSolver
from .state import EXPLODED, HIDDEN, REVEALED_MINE
from .utils import get_neighborhoods

logger = logging.getLogger(__name__)

# Radius of the mine-free square around the first click, per algorithm.
SAFE_RADIUS: Dict[str, int] = {
    "safe_first_action_rule": 0,
    "safe_neighborhood_rule": 1,
    "no_guess_rule": 2,
}

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class GenerationResult:
    """
    Outcome of no-guess board generation.

    Attributes:
        board: The last generated board (certified when solvable is True).
        attempts: Number of random boards tried.
        solvable: Whether the board passed the solvability check.
    """

    board: Board
    attempts: int
    solvable: bool


def safe_zone(
    x: int, y: int, radius: int, width: int, height: int
) -> Set[Tuple[int, int]]:
    """Cells of the (2 * radius + 1)^2 square around (x, y), clamped to the board."""
    return {
        (cx, cy)
        for cy in range(max(0, y - radius), min(height, y + radius + 1))
        for cx in range(max(0, x - radius), min(width, x + radius + 1))
    }


def place_random_mines(
    width: int,
    height: int,
    mines_count: int,
    safe_cells: Set[Tuple[int, int]],
    rng: Optional[random.Random] = None,
) -> Board:
    """
    Sample mines uniformly without replacement outside the safe cells.

    Raises:
        ValueError: If there are fewer eligible cells than mines.
    """
    rng = rng if rng is not None else random.Random()

    eligible: List[Tuple[int, int]] = [
        (x, y)
        for y in range(height)
        for x in range(width)
        if (x, y) not in safe_cells
    ]
    if mines_count > len(eligible):
        raise ValueError(
            f"Cannot place {mines_count} mines outside a safe zone of {len(safe_cells)} cells."
        )

    return Board.from_mines(width, height, rng.sample(eligible, mines_count))


def generate_no_guess_board(
    width: int,
    height: int,
    mines_count: int,
    safe_x: int,
    safe_y: int,
    *,
    rng: Optional[random.Random] = None,
    solver: Optional[MinesweeperSolver] = None,
    max_attempts: int = 10_000,
    safe_radius: int = 2,
    on_progress: Optional[ProgressCallback] = None,
) -> GenerationResult:
    """
    Generate random boards until one is solvable without guessing from (safe_x, safe_y).

    Args:
        width: Board width.
        height: Board height.
        mines_count: Number of mines.
        safe_x: X-coordinate of the first click.
        safe_y: Y-coordinate of the first click.
        rng: Random source; a fresh random.Random() when omitted.
        solver: Solver used for certification; the default solver when omitted.
        max_attempts: Maximum number of boards to try.
        safe_radius: Radius of the mine-free square around the first click.
        on_progress: Called as on_progress(attempts, max_attempts) every 10
            attempts, between solver runs.

    Returns:
        A GenerationResult. When every attempt fails, the last board is
        returned with solvable=False.

    Raises:
        ValueError: If the first click is outside the board, max_attempts is
            not positive or the mines do not fit outside the safe zone.
    """
    if not (0 <= safe_x < width and 0 <= safe_y < height):
        raise ValueError(f"First click ({safe_x}, {safe_y}) is outside the board.")
    if max_attempts < 1:
        raise ValueError("max_attempts must be positive.")

    rng = rng if rng is not None else random.Random()
    solver = solver if solver is not None else MinesweeperSolver()
    zone = safe_zone(safe_x, safe_y, safe_radius, width, height)

    board = place_random_mines(width, height, mines_count, zone, rng)
    for attempt in range(1, max_attempts + 1):
        if attempt > 1:
            board = place_random_mines(width, height, mines_count, zone, rng)

        if solver.is_solvable(board, safe_x, safe_y):
            logger.debug(
                "No-guess %dx%d/%d board found after %d attempts",
                width,
                height,
                mines_count,
                attempt,
            )
            return GenerationResult(board=board, attempts=attempt, solvable=True)

        if on_progress is not None and attempt % 10 == 0:
            on_progress(attempt, max_attempts)

    logger.warning(
        "No solvable %dx%d/%d board within %d attempts; returning an uncertified board",
        width,
        height,
        mines_count,
        max_attempts,
    )
    return GenerationResult(board=board, attempts=max_attempts, solvable=False)


class Minesweeper:
    """
    A live game: hidden board, player view and first-click mine placement.

    Mines are laid out on the first reveal so that the clicked cell (and,
    depending on the generation rule, its surroundings) is mine-free. With
    "no_guess_rule" the layout is also certified by the solver.
    """

    def __init__(
        self,
        width: int,
        height: int,
        mines_count: int,
        mines_generation_algorithm: str,
        *,
        rng: Optional[random.Random] = None,
        solver: Optional[MinesweeperSolver] = None,
        max_generation_attempts: int = 10_000,
        board: Optional[Board] = None,
    ) -> None:
        """
        Args:
            width: Number of columns.
            height: Number of rows.
            mines_count: Number of mines on the board.
            mines_generation_algorithm: A key of SAFE_RADIUS.
            rng: Random source for mine placement.
            solver: Solver used for no-guess certification and hints.
            max_generation_attempts: Maximum boards tried by "no_guess_rule".
            board: A fixed board to play on; mines are then not generated.

        Raises:
            ValueError: If dimensions are invalid, the algorithm is unrecognized
                or the mines do not fit outside the first-click safe zone.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if mines_count < 0:
            raise ValueError("mines_count must be non-negative.")
        if mines_generation_algorithm not in SAFE_RADIUS:
            raise ValueError(
                "mines_generation_algorithm must be one of: " + ", ".join(SAFE_RADIUS) + "."
            )

        if board is not None:
            if (board.width, board.height, board.mines_count) != (width, height, mines_count):
                raise ValueError("Board does not match the given dimensions and mine count.")
        else:
            side = 2 * SAFE_RADIUS[mines_generation_algorithm] + 1
            max_mines = width * height - min(width, side) * min(height, side)
            if mines_count > max_mines:
                raise ValueError(
                    f"Cannot place enough safe cells to satisfy {mines_generation_algorithm}."
                )

        self.width: int = width
        self.height: int = height
        self.mines_count: int = mines_count
        self.mines_generation_algorithm: str = mines_generation_algorithm

        self.rng: random.Random = rng if rng is not None else random.Random()
        self.solver: MinesweeperSolver = solver if solver is not None else MinesweeperSolver()
        self.max_generation_attempts: int = max_generation_attempts

        self.board: Optional[Board] = board
        self.first_move: bool = board is None
        self.generation_attempts: int = 0
        self.no_guess_certified: bool = False

        self._neighborhoods = get_neighborhoods(width, height)
        self._reset_view()

    @classmethod
    def from_board(
        cls,
        board: Board,
        mines_generation_algorithm: str = "safe_first_action_rule",
        solver: Optional[MinesweeperSolver] = None,
    ) -> "Minesweeper":
        """Create a game on a fixed board (deterministic play and tests)."""
        return cls(
            board.width,
            board.height,
            board.mines_count,
            mines_generation_algorithm,
            solver=solver,
            board=board,
        )

    def _reset_view(self) -> None:
        # visible[y][x]: -1 hidden, 0..8 revealed, 9 exploded mine, 10 revealed mine
        self.visible: List[List[int]] = [
            [HIDDEN for _ in range(self.width)] for _ in range(self.height)
        ]
        self.flags: List[List[bool]] = [
            [False for _ in range(self.width)] for _ in range(self.height)
        ]
        self.unrevealed_count: int = self.width * self.height - self.mines_count
        self.game_over: bool = False
        self.won: bool = False

    def reset(self) -> None:
        """Hide every cell and clear flags; the mine layout is kept for a replay."""
        self._reset_view()

    def neighbors(self, x: int, y: int) -> Tuple[Tuple[int, int], ...]:
        return self._neighborhoods[(x, y)]

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Cell ({x}, {y}) is outside the {self.width}x{self.height} board.")

    def place_mines(self, first_x: int, first_y: int) -> None:
        """
        Lay out the mines around the first click according to the generation rule.

        "no_guess_rule" keeps drawing boards until the solver can clear one
        from (first_x, first_y) without guessing.

        Raises:
            ValueError: If the board already has mines.
        """
        if self.board is not None:
            raise ValueError("Mines have already been placed.")

        radius = SAFE_RADIUS[self.mines_generation_algorithm]

        if self.mines_generation_algorithm == "no_guess_rule":
            result = generate_no_guess_board(
                self.width,
                self.height,
                self.mines_count,
                first_x,
                first_y,
                rng=self.rng,
                solver=self.solver,
                max_attempts=self.max_generation_attempts,
                safe_radius=radius,
            )
            self.board = result.board
            self.generation_attempts = result.attempts
            self.no_guess_certified = result.solvable
            return

        zone = safe_zone(first_x, first_y, radius, self.width, self.height)
        self.board = place_random_mines(
            self.width, self.height, self.mines_count, zone, self.rng
        )
        self.generation_attempts = 1

    def flood_fill(self, x: int, y: int) -> List[Tuple[int, int, int]]:
        """
        Open (x, y) and, breadth first, every cell reachable through zeros.

        Flags stop the cascade. Returns the opened cells as (x, y, value).

        Raises:
            ValueError: If the mines have not been placed yet.
        """
        if self.board is None:
            raise ValueError("Mines have not been placed yet.")

        queue: Deque[Tuple[int, int]] = deque([(x, y)])
        queued: Set[Tuple[int, int]] = {(x, y)}
        opened: List[Tuple[int, int, int]] = []

        while queue:
            cx, cy = queue.popleft()
            if self.visible[cy][cx] != HIDDEN or self.flags[cy][cx]:
                continue

            value = self.board.adjacent(cx, cy)
            self.visible[cy][cx] = value
            self.unrevealed_count -= 1
            opened.append((cx, cy, value))

            if value != 0:
                continue
            for n in self.neighbors(cx, cy):
                if n not in queued and self.visible[n[1]][n[0]] == HIDDEN:
                    queued.add(n)
                    queue.append(n)

        return opened

    def reveal(self, x: int, y: int) -> Tuple[int, Dict[str, object]]:
        """
        Click a cell.

        The first click of a fresh game places the mines. Clicking a flagged
        or already open cell, or any cell after the game ended, does nothing.

        Returns:
            (status, payload). Status -1 is a loss with payload
            {"revealed_cells_count", "all_mines"}; 0 means the game goes on
            and 1 is a win, both with payload {"revealed_cells": [(x, y, value), ...]}.
            No-op clicks return (0, {}).

        Raises:
            ValueError: If (x, y) is outside the board.
        """
        self._check_bounds(x, y)

        if self.game_over or self.visible[y][x] != HIDDEN or self.flags[y][x]:
            return 0, {}

        if self.first_move:
            self.place_mines(x, y)
            self.first_move = False
        if self.board is None:
            raise ValueError("Mines have not been placed yet.")

        if self.board.is_mine(x, y):
            self.game_over = True
            all_mines = self.board.mine_positions()
            for mx, my in all_mines:
                self.visible[my][mx] = REVEALED_MINE
            self.visible[y][x] = EXPLODED
            return -1, {
                "revealed_cells_count": self.board.safe_count - self.unrevealed_count,
                "all_mines": all_mines,
            }

        opened = self.flood_fill(x, y)
        if self.unrevealed_count > 0:
            return 0, {"revealed_cells": opened}

        self.game_over = True
        self.won = True
        return 1, {"revealed_cells": opened}

    def toggle_flag(self, x: int, y: int) -> bool:
        """
        Flip the flag on a hidden cell and return its new flag state.

        Open cells and finished games are left alone.

        Raises:
            ValueError: If (x, y) is outside the board.
        """
        self._check_bounds(x, y)
        if not self.game_over and self.visible[y][x] == HIDDEN:
            self.flags[y][x] = not self.flags[y][x]
        return self.flags[y][x]

    def hint(self) -> Optional[Hint]:
        """Ask the solver for the next move; None before the first click or when nothing is left."""
        if self.board is None:
            return None
        return self.solver.get_hint(self.board, self.visible, self.flags)

    # -------------------------------------------------------------------------
    # Terminal rendering
    # -------------------------------------------------------------------------

    _RESET = "\033[0m"
    _PALETTE = {
        "axis": "\033[96m",
        "mine": "\033[91m",
        "flag": "\033[93m",
    }

    def _paint(self, role: str, text: str) -> str:
        return f"{self._PALETTE[role]}{text}{self._RESET}"

    def _cell_text(self, x: int, y: int, reveal_all: bool) -> str:
        v = self.visible[y][x]
        if v == EXPLODED:
            return self._paint("mine", "X")
        if v == REVEALED_MINE:
            return self._paint("mine", "M")
        if v != HIDDEN:
            return str(v)
        if reveal_all and self.board is not None:
            if self.board.is_mine(x, y):
                return self._paint("mine", "M")
            return str(self.board.adjacent(x, y))
        if self.flags[y][x]:
            return self._paint("flag", "F")
        return "."

    def format_board(self, reveal_all: bool = False) -> str:
        """
        Player view as coloured text with x labels on top and y labels on the left.

        reveal_all also shows the mines and numbers still hidden.
        """
        xs = " ".join(f"{x:2d}" for x in range(self.width))
        lines = [
            self._paint("axis", "   " + xs),
            self._paint("axis", "   " + "-" * (3 * self.width - 1)),
        ]
        for y in range(self.height):
            cells = " ".join(" " + self._cell_text(x, y, reveal_all) for x in range(self.width))
            lines.append(self._paint("axis", f"{y:2d} |") + cells)
        return "\n".join(lines)

    def print_board(self) -> None:
        print(self.format_board())


def play_cli(game: Minesweeper) -> None:
    """
    Interactive terminal loop.

    Commands: "x y" reveals, "f x y" toggles a flag, "h" asks for a hint,
    "q" quits. Coordinates are 0-based.
    """
    print("No-guess Minesweeper  (x y = reveal, f x y = flag, h = hint, q = quit)\n")
    game.print_board()

    while True:
        command = input("\n> ").strip().lower()
        if command in {"q", "quit", "exit"}:
            print("Bye.")
            return

        if command in {"h", "hint"}:
            hint = game.hint()
            print("No hint available yet. Reveal a cell first." if hint is None else hint.describe())
            continue

        tokens = command.replace(",", " ").split()
        flag = bool(tokens) and tokens[0] == "f"
        if flag:
            tokens = tokens[1:]
        if len(tokens) != 2:
            print("Invalid input. Examples: 3 5, f 3 5, h")
            continue

        try:
            x, y = int(tokens[0]), int(tokens[1])
        except ValueError:
            print("Invalid input. Coordinates are integers.")
            continue

        try:
            if flag:
                game.toggle_flag(x, y)
                status = 0
            else:
                status, _ = game.reveal(x, y)
        except ValueError as exc:
            print(f"Invalid move: {exc}")
            continue

        game.print_board()
        if status == 0:
            continue

        print("\nBoom! You hit a mine." if status == -1 else "\nBoard cleared. You won!")
        print(game.format_board(reveal_all=True))
        return
