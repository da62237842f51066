"""Performance tunables for the deductive solver."""

from dataclasses import dataclass, fields, replace
from typing import Any


@dataclass(frozen=True)
class SolverConfig:
    """
    Tunable limits of the solver pipeline.

    Attributes:
        iteration_factor: The driver stops after iteration_factor * W * H
            progress iterations.
        opening_radius: Half-size of the opening block revealed around the
            start cell (1 = the 3x3 block).
        max_contradiction_frontier: Number of frontier cells tested by proof by
            contradiction per pass; 0 disables the strategy.
        max_propagation_rounds: Propagation rounds per hypothesis.
        max_region_size: Frontier regions larger than this are not enumerated.
        max_configurations: Regions whose 2^size enumeration exceeds this are
            skipped.
        use_gaussian: Run Gaussian elimination between subset logic and proof
            by contradiction.
        max_gaussian_component: Window size for Gaussian elimination on large
            frontier components.
    """

    iteration_factor: int = 2
    opening_radius: int = 1
    max_contradiction_frontier: int = 50
    max_propagation_rounds: int = 20
    max_region_size: int = 15
    max_configurations: int = 50_000
    use_gaussian: bool = False
    max_gaussian_component: int = 50

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "use_gaussian":
                if not isinstance(value, bool):
                    raise ValueError("use_gaussian must be a bool.")
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{f.name} must be an integer.")
            if value < 0:
                raise ValueError(f"{f.name} must be non-negative.")

        if self.iteration_factor < 1:
            raise ValueError("iteration_factor must be at least 1.")
        if self.max_gaussian_component < 2:
            raise ValueError("max_gaussian_component must be at least 2.")

    def replace(self, **changes: Any) -> "SolverConfig":
        """Return a copy with the given fields changed (validated again)."""
        return replace(self, **changes)
