from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, List, Optional

from pygame.math import Vector2

from .agent import Fish, Obstacle
from .bounds import Bounds
from .config import SimulationConfig, apply_parameters, parameter_values
from .rng import DeterministicRng
from ..systems import avoidance, forces, integration, population, steering
from ..systems.metrics import FrameClock, create_metrics
from ..types.metrics import FrameMetrics
from ..types.snapshot import Snapshot, SnapshotBounds, SnapshotMetadata

logger = logging.getLogger(__name__)


class World:
    def __init__(self, config: SimulationConfig):
        self._config = config
        self._rng = DeterministicRng(config.seed)
        self._bounds = self._initial_bounds()
        self._fish: List[Fish] = []
        self._obstacles: List[Obstacle] = []
        self._next_id = 0
        self._next_obstacle_id = 0
        self._clock = FrameClock()
        self._metrics: FrameMetrics | None = None
        population.sync_population(self)

    @property
    def fish(self) -> List[Fish]:
        return self._fish

    @property
    def obstacles(self) -> List[Obstacle]:
        return self._obstacles

    @property
    def bounds(self) -> Bounds:
        return self._bounds

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def metrics(self) -> FrameMetrics | None:
        return self._metrics

    def _initial_bounds(self) -> Bounds:
        viewport = self._config.viewport
        if viewport is None:
            return Bounds()
        return Bounds.from_viewport(viewport[0], viewport[1])

    def reset(self) -> None:
        self._fish.clear()
        self._obstacles.clear()
        self._rng.reset()
        self._next_id = 0
        self._next_obstacle_id = 0
        self._clock.reset()
        self._metrics = None
        population.sync_population(self)

    # Collaborator entry points. None of these may run while ``step`` is executing.

    def set_fish_count(self, count: int) -> None:
        self._config.population.fish_count = int(count)

    def update_parameters(self, **values: float) -> Dict[str, float]:
        updated = apply_parameters(self._config, values)
        self._config.physics = updated.physics
        self._config.motion = updated.motion
        self._config.population = updated.population
        return parameter_values(self._config)

    def parameters(self) -> Dict[str, float]:
        return parameter_values(self._config)

    def resize(self, width: float, height: float) -> Bounds:
        self._bounds = Bounds.from_viewport(width, height)
        logger.debug("Bounds set to %s..%s", tuple(self._bounds.a), tuple(self._bounds.b))
        return self._bounds

    def add_obstacle(self, position: Vector2) -> Obstacle:
        obstacle = Obstacle(id=self._next_obstacle_id, position=Vector2(position))
        self._next_obstacle_id += 1
        self._obstacles.append(obstacle)
        logger.debug("Obstacle %d placed at (%.1f, %.1f)", obstacle.id, obstacle.position.x, obstacle.position.y)
        return obstacle

    def click(self, screen_x: float, screen_y: float) -> Optional[Obstacle]:
        position = self._bounds.screen_to_world(screen_x, screen_y)
        if not self._bounds.contains(position):
            logger.info("Pointer out of bounds at (%.1f, %.1f)", position.x, position.y)
            return None
        return self.add_obstacle(position)

    def clear_obstacles(self) -> None:
        self._obstacles.clear()

    def step(self, tick: int, dt: float | None = None, frame_seconds: float | None = None) -> FrameMetrics:
        start = perf_counter()
        config = self._config
        dt = config.time_step if dt is None else dt
        population_change = population.sync_population(self)

        # Parameters and bounds are fixed for the whole frame.
        physics = config.physics
        motion = config.motion
        bounds = self._bounds
        fish = self._fish

        neighbor_checks = forces.accumulate_neighbor_forces(fish, physics)
        obstacle_checks = avoidance.accumulate_obstacle_avoidance(fish, self._obstacles)
        steered = steering.normalize_forces(fish, physics)
        integration.integrate(fish, motion, physics, bounds, dt)

        duration = perf_counter() - start
        self._clock.record(duration if frame_seconds is None else frame_seconds)
        self._metrics = create_metrics(
            tick,
            len(fish),
            len(self._obstacles),
            population_change,
            (neighbor_checks, obstacle_checks),
            steered,
            duration * 1000.0,
            self._clock,
        )
        return self._metrics

    def snapshot(self, tick: int) -> Snapshot:
        metrics = self._metrics if self._metrics is not None else self._idle_metrics(tick)
        bounds = self._bounds
        metadata = SnapshotMetadata(
            sim_dt=self._config.time_step,
            tick_rate=0.0 if self._config.time_step <= 0 else 1.0 / self._config.time_step,
            seed=self._config.seed,
            config_version=self._config.config_version,
        )
        return Snapshot(
            tick=tick,
            metrics=metrics,
            fish=[self._fish_snapshot(agent) for agent in self._fish],
            obstacles=[
                {"id": obstacle.id, "x": obstacle.position.x, "y": obstacle.position.y}
                for obstacle in self._obstacles
            ],
            bounds=SnapshotBounds(min_x=bounds.a.x, min_y=bounds.a.y, max_x=bounds.b.x, max_y=bounds.b.y),
            metadata=metadata,
        )

    def _idle_metrics(self, tick: int) -> FrameMetrics:
        return create_metrics(tick, len(self._fish), len(self._obstacles), (0, 0), (0, 0), 0, 0.0, self._clock)

    @staticmethod
    def _fish_snapshot(agent: Fish) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "heading": agent.heading,
        }
