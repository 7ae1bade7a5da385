from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Tuple

import yaml

from ..utils.math2d import _clamp_value

# Obstacle avoidance is deliberately not part of the tunable set.
AVOIDANCE_RADIUS = 50.0
AVOIDANCE_FACTOR = 10.0

PARAMETER_RANGES: Dict[str, Tuple[float, float]] = {
    "align_radius": (0.0, 100.0),
    "cohesion_radius": (0.0, 100.0),
    "separation_radius": (0.0, 100.0),
    "align_factor": (0.0, 10.0),
    "cohesion_factor": (0.0, 10.0),
    "separation_factor": (0.0, 10.0),
    "velocity_mag": (0.0, 10.0),
    "max_force": (0.0, 1.0),
    "velocity_multiplier": (0.0, 100.0),
    "acceleration_multiplier": (0.0, 100.0),
    "fish_count": (200, 1000),
}


@dataclass
class PhysicsConfig:
    align_radius: float = 50.0
    cohesion_radius: float = 75.0
    separation_radius: float = 25.0
    align_factor: float = 0.1
    cohesion_factor: float = 0.1
    separation_factor: float = 0.8
    velocity_mag: float = 1.0
    max_force: float = 0.1


@dataclass
class MotionConfig:
    velocity_multiplier: float = 60.0
    acceleration_multiplier: float = 60.0


@dataclass
class PopulationConfig:
    fish_count: int = 200
    initial_speed_range: float = 4.0


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    seed: int = 42
    viewport: tuple[float, float] | None = (1920.0, 1080.0)
    config_version: str = "v1"
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    motion: MotionConfig = field(default_factory=MotionConfig)
    population: PopulationConfig = field(default_factory=PopulationConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2


def load_config(raw: dict) -> SimulationConfig:
    physics = PhysicsConfig(**raw.get("physics", {}))
    motion = MotionConfig(**raw.get("motion", {}))
    population = PopulationConfig(**raw.get("population", {}))
    sim_values = {k: v for k, v in raw.items() if k not in {"physics", "motion", "population"}}
    if "viewport" in sim_values:
        sim_values["viewport"] = _viewport(sim_values["viewport"])
    return SimulationConfig(physics=physics, motion=motion, population=population, **sim_values)


def _viewport(value: object) -> tuple[float, float] | None:
    if value is None:
        return None
    if not isinstance(value, (tuple, list)) or len(value) != 2:
        raise TypeError(f"viewport must be a [width, height] pair, got {value!r}")
    return (float(value[0]), float(value[1]))


def clamp_parameter(name: str, value: float) -> float:
    if name not in PARAMETER_RANGES:
        raise KeyError(f"Unknown parameter: {name}")
    low, high = PARAMETER_RANGES[name]
    if name == "fish_count":
        return int(_clamp_value(int(value), int(low), int(high)))
    return _clamp_value(float(value), low, high)


def apply_parameters(config: SimulationConfig, values: Dict[str, float]) -> SimulationConfig:
    """Return a copy of ``config`` with the named tunables replaced and clamped to their ranges."""
    physics_names = {f.name for f in fields(PhysicsConfig)}
    motion_names = {f.name for f in fields(MotionConfig)}
    physics_updates: Dict[str, float] = {}
    motion_updates: Dict[str, float] = {}
    population_updates: Dict[str, int] = {}
    for name, value in values.items():
        clamped = clamp_parameter(name, value)
        if name in physics_names:
            physics_updates[name] = clamped
        elif name in motion_names:
            motion_updates[name] = clamped
        else:
            population_updates[name] = int(clamped)
    return replace(
        config,
        physics=replace(config.physics, **physics_updates),
        motion=replace(config.motion, **motion_updates),
        population=replace(config.population, **population_updates),
    )


def parameter_values(config: SimulationConfig) -> Dict[str, float]:
    values: Dict[str, float] = {}
    for section in (config.physics, config.motion):
        for f in fields(section):
            values[f.name] = getattr(section, f.name)
    values["fish_count"] = config.population.fish_count
    return values
