"""Utility functions shared by the solver, the simulation state and the engine."""

import logging
import threading
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Neighborhoods = Dict[Tuple[int, int], Tuple[Tuple[int, int], ...]]

# Single-slot cache: ((width, height), {(x,y): ((nx,ny), ...), ...})
_NEIGHBORHOODS_CACHE: Optional[Tuple[Tuple[int, int], Neighborhoods]] = None
_NEIGHBORHOODS_LOCK = threading.Lock()
_NEIGHBORHOODS_BUILDS: int = 0


def _build_neighborhoods(width: int, height: int) -> Neighborhoods:
    neighborhoods: Neighborhoods = {}
    for y in range(height):
        for x in range(width):
            nbrs: List[Tuple[int, int]] = []
            for dy in (-1, 0, 1):
                for dx in (-1, 0, 1):
                    if dx == 0 and dy == 0:
                        continue
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < width and 0 <= ny < height:
                        nbrs.append((nx, ny))
            neighborhoods[(x, y)] = tuple(nbrs)
    return neighborhoods


def get_neighborhoods(width: int, height: int) -> Neighborhoods:
    """
    Return the cached 8-connected neighbor coordinates for every cell in a grid.

    The cache holds a single grid size and is rebuilt whenever a caller asks
    for different dimensions. Callers keep the mapping they received for the
    duration of their work, so a rebuild triggered by another thread never
    changes a mapping that is already in use.

    Args:
        width: Grid width (number of columns). Must be positive.
        height: Grid height (number of rows). Must be positive.

    Returns:
        Mapping from each cell (x, y) to a tuple of valid neighboring
        coordinates (nx, ny) under 8-connectivity.

    Raises:
        ValueError: If width or height is non-positive.
    """
    global _NEIGHBORHOODS_CACHE, _NEIGHBORHOODS_BUILDS

    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive.")

    key = (width, height)
    cached = _NEIGHBORHOODS_CACHE
    if cached is not None and cached[0] == key:
        return cached[1]

    with _NEIGHBORHOODS_LOCK:
        cached = _NEIGHBORHOODS_CACHE
        if cached is not None and cached[0] == key:
            return cached[1]

        neighborhoods = _build_neighborhoods(width, height)
        _NEIGHBORHOODS_CACHE = (key, neighborhoods)
        _NEIGHBORHOODS_BUILDS += 1
        logger.debug("Built neighbor cache for %dx%d grid", width, height)
        return neighborhoods


def neighborhood_cache_builds() -> int:
    """Number of times the neighbor cache has been (re)built in this process."""
    return _NEIGHBORHOODS_BUILDS


def clear_neighborhood_cache() -> None:
    """Drop the cached neighborhoods so the next lookup rebuilds them."""
    global _NEIGHBORHOODS_CACHE
    with _NEIGHBORHOODS_LOCK:
        _NEIGHBORHOODS_CACHE = None


def cell_key(x: int, y: int) -> int:
    """Pack a coordinate pair into a single integer set key."""
    return (x << 16) | y


def decode_key(key: int) -> Tuple[int, int]:
    """Inverse of cell_key()."""
    return key >> 16, key & 0xFFFF
