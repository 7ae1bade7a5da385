from __future__ import annotations

from typing import Sequence

from pygame.math import Vector2

from ..core.agent import Fish
from ..core.config import AVOIDANCE_FACTOR, PhysicsConfig
from ..utils.math2d import _safe_normalize_xy, _with_length


def _steer(average_x: float, average_y: float, velocity: Vector2, weight: float) -> Vector2:
    return _safe_normalize_xy(average_x - velocity.x, average_y - velocity.y) * weight


def steering_force(fish: Fish, physics: PhysicsConfig) -> Vector2:
    velocity = fish.velocity
    force = Vector2()

    if fish.sep_count > 0:
        inv = 1.0 / fish.sep_count
        force += _steer(fish.sep_sum.x * inv, fish.sep_sum.y * inv, velocity, physics.separation_factor)

    if fish.align_count > 0:
        inv = 1.0 / fish.align_count
        force += _steer(fish.align_sum.x * inv, fish.align_sum.y * inv, velocity, physics.align_factor)

    if fish.cohesion_count > 0:
        inv = 1.0 / fish.cohesion_count
        # Seek the neighbours' centre of mass from the current position.
        desired_x = fish.cohesion_sum.x * inv - fish.position.x
        desired_y = fish.cohesion_sum.y * inv - fish.position.y
        force += _steer(desired_x, desired_y, velocity, physics.cohesion_factor)

    if fish.avoid_count > 0:
        inv = 1.0 / fish.avoid_count
        force += _steer(fish.avoid_sum.x * inv, fish.avoid_sum.y * inv, velocity, AVOIDANCE_FACTOR)

    if force.length_squared() > 0.0:
        # Always rescaled to the cap, not clamped.
        force = _with_length(force, physics.max_force)
    return force


def normalize_forces(fish: Sequence[Fish], physics: PhysicsConfig) -> int:
    """Turn accumulators into acceleration and clear them. Returns how many fish got a non-zero force."""
    steered = 0
    for agent in fish:
        force = steering_force(agent, physics)
        agent.acceleration = force
        if force.x != 0.0 or force.y != 0.0:
            steered += 1
        agent.reset_accumulators()
    return steered
