"""Analysis and benchmarking tools for the no-guess solver."""

import random
import time
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .config import SolverConfig
from .engine import place_random_mines, safe_zone
from .solver import STRATEGY_ORDER, MinesweeperSolver
from .state import SimulationState


def format_simulation_state(
    state: SimulationState, *, show_coords: bool = True
) -> str:
    """
    Format a simulation state as a human-readable string.

    Args:
        state: Simulation state to display.
        show_coords: If True, add column units and row labels around
            ``state.format()``.
    """
    grid = state.format()
    if not show_coords:
        return grid

    lines: List[str] = ["     " + " ".join(str(x % 10) for x in range(state.width))]
    lines.append("     " + "-" * (2 * state.width - 1))
    lines.extend(f"{y:2d} | {row}" for y, row in enumerate(grid.splitlines()))
    return "\n".join(lines)


def run_solver_single_test(
    width: int,
    height: int,
    mines_count: int,
    *,
    seed: Optional[int] = None,
    config: Optional[SolverConfig] = None,
    show_boards: bool = False,
) -> Dict[str, object]:
    """
    Generate one random board with a mine-free 3x3 opening at its centre and solve it.

    Args:
        width: Board width.
        height: Board height.
        mines_count: Total number of mines on the board.
        seed: Seed for the board's random generator.
        config: Solver tunables.
        show_boards: If True, print the underlying board and the final
            simulation state.

    Returns:
        Flat metrics: solvable, iterations, revealed_cells_count, flag_count,
        hit_iteration_cap, elapsed_seconds and, per strategy,
        <strategy>_applications / <strategy>_resolved.
    """
    rng = random.Random(seed)
    start_x, start_y = width // 2, height // 2
    board = place_random_mines(
        width, height, mines_count, safe_zone(start_x, start_y, 1, width, height), rng
    )

    solver = MinesweeperSolver(config)
    started = time.perf_counter()
    report = solver.solve(board, start_x, start_y)
    elapsed = time.perf_counter() - started

    if show_boards:
        print("Underlying board (mines shown as '*'):")
        print(board.format())
        print()
        print("Final simulation state (hidden shown as '.'):")
        print(format_simulation_state(report.state, show_coords=True))
        print()
        print(f"Solvable: {report.solvable} after {report.iterations} iterations.")

    out: Dict[str, object] = {
        "solvable": report.solvable,
        "iterations": report.iterations,
        "revealed_cells_count": report.revealed_cells_count,
        "flag_count": report.flag_count,
        "hit_iteration_cap": report.hit_iteration_cap,
        "elapsed_seconds": elapsed,
    }
    for name in STRATEGY_ORDER:
        out[f"{name}_applications"] = report.applications[name]
        out[f"{name}_resolved"] = report.resolved[name]
    return out


def run_solver_many_tests(
    width: int,
    height: int,
    mines_count: int,
    runs: int,
    *,
    seed: Optional[int] = None,
    config: Optional[SolverConfig] = None,
) -> Dict[str, float]:
    """
    Solve many independent random boards and return averaged metrics.

    Args:
        width: Board width.
        height: Board height.
        mines_count: Total number of mines on the board.
        runs: Number of boards.
        seed: Base seed; run i uses seed + i. Unseeded when None.
        config: Solver tunables.

    Returns:
        Averages of every numeric metric of run_solver_single_test()
        (prefixed with "avg_"), plus solvable_rate.
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    sums: Dict[str, float] = defaultdict(float)
    solvable = 0

    for i in range(runs):
        result = run_solver_single_test(
            width,
            height,
            mines_count,
            seed=None if seed is None else seed + i,
            config=config,
        )
        if result["solvable"]:
            solvable += 1

        for k, v in result.items():
            if isinstance(v, (int, float)) and not isinstance(v, bool):
                sums[f"avg_{k}"] += float(v)

    out: Dict[str, float] = {k: total / runs for k, total in sums.items()}
    out["solvable_rate"] = solvable / runs
    return out


# Standard difficulty levels: name -> (width, height, mines)
LEVELS: Dict[str, Tuple[int, int, int]] = {
    "beginner": (9, 9, 10),
    "intermediate": (16, 16, 40),
    "expert": (30, 16, 99),
}


def _level_bars(
    results: Dict[str, Dict[str, float]],
    series: Dict[str, List[float]],
    ylabel: str,
    title: str,
) -> None:
    """One bar group per level, one bar per series."""
    names = list(results)
    x = np.arange(len(names))
    bar_w = 0.8 / len(series)

    fig, ax = plt.subplots()
    for i, (label, values) in enumerate(series.items()):
        ax.bar(x + (i - (len(series) - 1) / 2) * bar_w, values, width=bar_w, label=label)
    ax.set_xticks(x)
    ax.set_xticklabels(names)
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    if len(series) > 1:
        ax.legend()
    fig.tight_layout()
    plt.show()


def run_solver_expert_level_analysis(
    runs: int,
    *,
    seed: Optional[int] = None,
    config: Optional[SolverConfig] = None,
    show_plots: bool = True,
) -> Dict[str, Dict[str, float]]:
    """
    Benchmark the solver on the three standard levels (see LEVELS).

    With show_plots, draws three bar charts: cells resolved per strategy,
    solvable rate and average solve time.

    Returns:
        Level name -> the metrics of run_solver_many_tests().
    """
    results: Dict[str, Dict[str, float]] = {
        level: run_solver_many_tests(w, h, m, runs, seed=seed, config=config)
        for level, (w, h, m) in LEVELS.items()
    }
    if not show_plots:
        return results

    use_gaussian = config is not None and config.use_gaussian
    strategies = [s for s in STRATEGY_ORDER if s != "gaussian" or use_gaussian]

    _level_bars(
        results,
        {s: [r[f"avg_{s}_resolved"] for r in results.values()] for s in strategies},
        "Average resolved cells",
        "Cells resolved per board, by strategy",
    )
    _level_bars(
        results,
        {"solvable": [r["solvable_rate"] for r in results.values()]},
        "Solvable rate",
        "Boards cleared without guessing",
    )
    _level_bars(
        results,
        {"time": [r["avg_elapsed_seconds"] * 1000.0 for r in results.values()]},
        "Average solve time (ms)",
        "Solve time by level",
    )
    return results


def summarize_strategy_mix(
    results: Dict[str, Dict[str, float]],
    *,
    level: str = "expert",
) -> Dict[str, float]:
    """
    Fraction of resolved cells contributed by each strategy at one level.

    Args:
        results: Dict[level_name -> metrics_dict] as returned by
            run_solver_expert_level_analysis().
        level: Which level to summarize.

    Returns:
        Dict with <strategy>_frac for every strategy plus total_resolved.
    """
    if level not in results:
        raise KeyError(f"Level {level!r} not found in results.")
    m = results[level]

    resolved: Dict[str, float] = {}
    for name in STRATEGY_ORDER:
        key = f"avg_{name}_resolved"
        if key not in m:
            raise KeyError(f"Missing key {key!r} in metrics for level {level!r}.")
        resolved[name] = float(m[key])

    total = sum(resolved.values())
    if total == 0.0:
        raise ZeroDivisionError("No cells were resolved; cannot compute fractions.")

    out = {f"{name}_frac": value / total for name, value in resolved.items()}
    out["total_resolved"] = total
    return out
