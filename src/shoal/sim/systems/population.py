from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..core.agent import Fish
from ..utils.math2d import _heading_from_velocity

if TYPE_CHECKING:
    from ..core.world import World

logger = logging.getLogger(__name__)


def spawn_fish(world: World) -> Fish:
    config = world._config.population
    position = world._rng.next_point_in(world._bounds)
    velocity = world._rng.next_velocity(config.initial_speed_range)
    fish = Fish(
        id=world._next_id,
        position=position,
        velocity=velocity,
        heading=_heading_from_velocity(velocity),
    )
    world._next_id += 1
    world._fish.append(fish)
    return fish


def sync_population(world: World) -> tuple[int, int]:
    """Grow or shrink the fish list to the desired count. Returns ``(spawned, removed)``.

    Must only run between frames. Excess fish are dropped by index cutoff.
    """
    desired = max(0, int(world._config.population.fish_count))
    current = len(world._fish)
    if current < desired:
        for _ in range(desired - current):
            spawn_fish(world)
        logger.debug("Spawned %d fish (population %d -> %d)", desired - current, current, desired)
        return desired - current, 0
    if current > desired:
        del world._fish[desired:]
        logger.debug("Removed %d fish (population %d -> %d)", current - desired, current, desired)
        return 0, current - desired
    return 0, 0
