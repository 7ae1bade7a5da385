from __future__ import annotations

from typing import Sequence

from ..core.agent import Fish
from ..core.bounds import Bounds
from ..core.config import MotionConfig, PhysicsConfig
from ..utils.math2d import _heading_from_velocity, _with_length, _wrap_coordinate


def integrate(
    fish: Sequence[Fish],
    motion: MotionConfig,
    physics: PhysicsConfig,
    bounds: Bounds,
    dt: float,
) -> None:
    acceleration_scale = dt * motion.acceleration_multiplier
    velocity_scale = dt * motion.velocity_multiplier
    low_x, low_y = bounds.a.x, bounds.a.y
    high_x, high_y = bounds.b.x, bounds.b.y
    for agent in fish:
        velocity = agent.velocity + agent.acceleration * acceleration_scale
        # Speed is forced to the cap every frame, not merely limited.
        velocity = _with_length(velocity, physics.velocity_mag)
        agent.velocity = velocity

        position = agent.position
        x = position.x + velocity.x * velocity_scale
        y = position.y + velocity.y * velocity_scale

        agent.heading = _heading_from_velocity(velocity, agent.heading)

        position.update(_wrap_coordinate(x, low_x, high_x), _wrap_coordinate(y, low_y, high_y))
        agent.acceleration.update(0.0, 0.0)
