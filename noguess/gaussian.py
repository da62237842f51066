"""Gaussian elimination over the frontier constraint system (optional strategy)."""

import logging
from typing import Dict, List, Sequence, Set, Tuple

import numpy as np

from .state import Cell, Deduction, InconsistentStateError, SimulationState

logger = logging.getLogger(__name__)

_PIVOT_EPS = 1e-9
_MATCH_EPS = 1e-6


def reduce_rows(matrix: np.ndarray) -> np.ndarray:
    """
    Bring an augmented matrix [A | b] to reduced row echelon form in place.

    Uses partial pivoting; entries smaller than the pivot tolerance are
    flushed to zero afterwards.
    """
    rows, cols = matrix.shape
    pivot_row = 0

    for col in range(cols - 1):
        if pivot_row >= rows:
            break

        r = pivot_row + int(np.argmax(np.abs(matrix[pivot_row:, col])))
        if abs(matrix[r, col]) < _PIVOT_EPS:
            continue
        if r != pivot_row:
            matrix[[pivot_row, r]] = matrix[[r, pivot_row]]

        matrix[pivot_row] /= matrix[pivot_row, col]
        others = np.abs(matrix[:, col]) > _PIVOT_EPS
        others[pivot_row] = False
        if others.any():
            matrix[others] -= np.outer(matrix[others, col], matrix[pivot_row])
        pivot_row += 1

    matrix[np.abs(matrix) < _PIVOT_EPS] = 0.0
    return matrix


def _solve_window(
    state: SimulationState, variables: Sequence[Cell]
) -> Tuple[Set[Cell], Set[Cell], Set[Cell]]:
    """Return (mines, safes, clues used) for one set of frontier variables."""
    index: Dict[Cell, int] = {cell: i for i, cell in enumerate(variables)}
    seen_clues: Set[Cell] = set()
    equations: List[Tuple[List[int], int]] = []
    clues: Set[Cell] = set()

    for cell in variables:
        for clue in state.neighbors(*cell):
            cx, cy = clue
            if clue in seen_clues or state.visible[cy][cx] <= 0:
                continue
            seen_clues.add(clue)

            flagged, hidden = state.constraint(cx, cy)
            # A clue touching hidden cells outside the window cannot be used exactly.
            if any(h not in index for h in hidden):
                continue
            equations.append(([index[h] for h in hidden], state.visible[cy][cx] - flagged))
            clues.add(clue)

    if not equations:
        return set(), set(), set()

    n = len(variables)
    matrix = np.zeros((len(equations), n + 1), dtype=np.float64)
    for i, (columns, target) in enumerate(equations):
        matrix[i, columns] = 1.0
        matrix[i, n] = target

    reduce_rows(matrix)

    mines: Set[Cell] = set()
    safes: Set[Cell] = set()
    for row in matrix:
        coeffs = row[:n]
        target = row[n]
        nonzero = np.nonzero(coeffs)[0]
        if nonzero.size == 0:
            continue

        low = coeffs[coeffs < 0].sum()
        high = coeffs[coeffs > 0].sum()

        if abs(target - low) < _MATCH_EPS:
            mine_sign = -1.0
        elif abs(target - high) < _MATCH_EPS:
            mine_sign = 1.0
        else:
            continue

        for j in nonzero:
            if np.sign(coeffs[j]) == mine_sign:
                mines.add(variables[j])
            else:
                safes.add(variables[j])

    return mines, safes, clues


def gaussian_deductions(state: SimulationState, max_component: int) -> List[Deduction]:
    """
    Solve the frontier as a linear system and return the forced cells.

    Components larger than max_component are processed in overlapping
    row-major windows of max_component variables.
    """
    frontier = state.frontier()
    if not frontier:
        return []

    mines: Set[Cell] = set()
    safes: Set[Cell] = set()
    clues: Set[Cell] = set()

    for component in state.frontier_regions(frontier):
        if len(component) > max_component:
            ordered = sorted(component, key=lambda c: (c[1], c[0]))
            step = max(1, max_component // 2)
            windows = [
                ordered[i:i + max_component] for i in range(0, len(ordered), step)
            ]
        else:
            windows = [component]

        for window in windows:
            w_mines, w_safes, w_clues = _solve_window(state, window)
            if w_mines or w_safes:
                mines |= w_mines
                safes |= w_safes
                clues |= w_clues

    if mines & safes:
        raise InconsistentStateError(
            "Gaussian elimination proved cells both safe and mined."
        )
    if not mines and not safes:
        return []

    logger.debug("Gaussian elimination forced %d mines, %d safes", len(mines), len(safes))
    return [
        Deduction(
            strategy="gaussian",
            mines=tuple(sorted(mines)),
            safes=tuple(sorted(safes)),
            constraints=tuple(sorted(clues)),
            details={"forced_cells": len(mines) + len(safes)},
        )
    ]
