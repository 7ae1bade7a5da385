from __future__ import annotations

import math
from typing import Sequence

from ..core.agent import Fish, Obstacle
from ..core.config import AVOIDANCE_RADIUS


def accumulate_obstacle_avoidance(fish: Sequence[Fish], obstacles: Sequence[Obstacle]) -> int:
    checks = 0
    if not obstacles:
        return checks
    for agent in fish:
        pos = agent.position
        for obstacle in obstacles:
            checks += 1
            dx = pos.x - obstacle.position.x
            dy = pos.y - obstacle.position.y
            distance = math.sqrt(dx * dx + dy * dy)
            if distance == 0.0:
                continue
            if distance < AVOIDANCE_RADIUS:
                agent.avoid_sum.x += dx / distance
                agent.avoid_sum.y += dy / distance
                agent.avoid_count += 1
    return checks
