import pytest

from noguess import SolverConfig


def test_defaults():
    config = SolverConfig()
    assert config.iteration_factor == 2
    assert config.opening_radius == 1
    assert config.max_contradiction_frontier == 50
    assert config.max_propagation_rounds == 20
    assert config.max_region_size == 15
    assert config.max_configurations == 50_000
    assert config.use_gaussian is False
    assert config.max_gaussian_component == 50


@pytest.mark.parametrize(
    "changes",
    [
        {"max_region_size": -1},
        {"iteration_factor": 0},
        {"max_propagation_rounds": 1.5},
        {"max_configurations": True},
        {"use_gaussian": 1},
        {"max_gaussian_component": 1},
    ],
)
def test_invalid_values(changes):
    with pytest.raises(ValueError):
        SolverConfig(**changes)


def test_replace_returns_validated_copy():
    config = SolverConfig()
    changed = config.replace(use_gaussian=True, max_region_size=10)

    assert changed.use_gaussian is True
    assert changed.max_region_size == 10
    assert config.use_gaussian is False

    with pytest.raises(ValueError):
        config.replace(opening_radius=-2)


def test_zero_disables_contradiction():
    assert SolverConfig(max_contradiction_frontier=0).max_contradiction_frontier == 0
