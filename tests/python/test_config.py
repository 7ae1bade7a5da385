from __future__ import annotations

from pathlib import Path

import pytest
from pytest import approx

from shoal.sim.core.config import (
    AVOIDANCE_FACTOR,
    AVOIDANCE_RADIUS,
    PARAMETER_RANGES,
    SimulationConfig,
    apply_parameters,
    clamp_parameter,
    load_config,
    parameter_values,
)


def test_defaults_match_reference_values():
    config = SimulationConfig()
    assert config.physics.align_radius == 50.0
    assert config.physics.cohesion_radius == 75.0
    assert config.physics.separation_radius == 25.0
    assert config.physics.separation_factor == 0.8
    assert config.physics.max_force == 0.1
    assert config.motion.velocity_multiplier == 60.0
    assert config.population.fish_count == 200
    assert AVOIDANCE_RADIUS == 50.0
    assert AVOIDANCE_FACTOR == 10.0


def test_avoidance_constants_are_not_tunable():
    assert "avoidance_radius" not in PARAMETER_RANGES
    with pytest.raises(KeyError):
        clamp_parameter("avoidance_factor", 1.0)


def test_load_config_reads_nested_sections():
    config = load_config(
        {
            "seed": 9,
            "viewport": [800, 600],
            "physics": {"max_force": 0.5, "align_radius": 10.0},
            "motion": {"velocity_multiplier": 30.0},
            "population": {"fish_count": 300},
        }
    )
    assert config.seed == 9
    assert config.viewport == (800.0, 600.0)
    assert config.physics.max_force == 0.5
    assert config.physics.align_radius == 10.0
    assert config.physics.cohesion_radius == 75.0
    assert config.motion.velocity_multiplier == 30.0
    assert config.motion.acceleration_multiplier == 60.0
    assert config.population.fish_count == 300


def test_load_config_rejects_unknown_keys():
    with pytest.raises(TypeError):
        load_config({"physics": {"gravity": 9.8}})


def test_default_viewport_is_full_hd():
    assert SimulationConfig().viewport == (1920.0, 1080.0)
    assert load_config({"viewport": None}).viewport is None


@pytest.mark.parametrize("viewport", [[1, 2, 3], [800], 800, "800x600", {"width": 800}])
def test_load_config_rejects_malformed_viewport(viewport):
    with pytest.raises(TypeError):
        load_config({"viewport": viewport})


def test_from_yaml(tmp_path: Path):
    path = tmp_path / "shoal.yaml"
    path.write_text("time_step: 0.02\nphysics:\n  velocity_mag: 2.0\n")

    config = SimulationConfig.from_yaml(path)

    assert config.time_step == approx(0.02)
    assert config.physics.velocity_mag == 2.0


def test_bundled_default_config_loads():
    path = Path(__file__).resolve().parents[2] / "configs" / "default.yaml"
    config = SimulationConfig.from_yaml(path)
    assert config.viewport == (1920.0, 1080.0)
    assert parameter_values(config) == parameter_values(SimulationConfig())


def test_clamp_parameter_enforces_documented_ranges():
    assert clamp_parameter("separation_radius", 250.0) == 100.0
    assert clamp_parameter("align_factor", -1.0) == 0.0
    assert clamp_parameter("max_force", 3.0) == 1.0
    assert clamp_parameter("velocity_mag", 4.0) == 4.0
    assert clamp_parameter("fish_count", 50) == 200
    assert clamp_parameter("fish_count", 5000) == 1000
    with pytest.raises(KeyError):
        clamp_parameter("unknown", 1.0)


def test_apply_parameters_returns_updated_copy():
    config = SimulationConfig()
    updated = apply_parameters(config, {"cohesion_factor": 12.0, "acceleration_multiplier": 5.0, "fish_count": 400})

    assert updated.physics.cohesion_factor == 10.0
    assert updated.motion.acceleration_multiplier == 5.0
    assert updated.population.fish_count == 400
    assert config.physics.cohesion_factor == 0.1
    assert config.population.fish_count == 200
