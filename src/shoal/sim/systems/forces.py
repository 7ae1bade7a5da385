from __future__ import annotations

import math
from typing import Dict, List, Sequence

from pygame.math import Vector2

from ..core.agent import Fish
from ..core.config import PhysicsConfig


def accumulate_pair(a: Fish, b: Fish, physics: PhysicsConfig) -> bool:
    """Add the mutual separation/alignment/cohesion contributions of one pair.

    Returns ``False`` when the pair was skipped because both fish sit on the same point.
    """
    pos_a = a.position
    pos_b = b.position
    dx = pos_a.x - pos_b.x
    dy = pos_a.y - pos_b.y
    distance = math.sqrt(dx * dx + dy * dy)
    if distance == 0.0:
        return False

    if distance < physics.separation_radius:
        sx = dx / distance
        sy = dy / distance
        a.sep_sum.x += sx
        a.sep_sum.y += sy
        a.sep_count += 1
        b.sep_sum.x -= sx
        b.sep_sum.y -= sy
        b.sep_count += 1

    if distance < physics.align_radius:
        a.align_sum += b.velocity
        a.align_count += 1
        b.align_sum += a.velocity
        b.align_count += 1

    if distance < physics.cohesion_radius:
        a.cohesion_sum += pos_b
        a.cohesion_count += 1
        b.cohesion_sum += pos_a
        b.cohesion_count += 1
    return True


def accumulate_neighbor_forces(fish: Sequence[Fish], physics: PhysicsConfig) -> int:
    """Brute-force all-pairs scan. Returns the number of pairs examined."""
    count = len(fish)
    checks = 0
    for i in range(count):
        first = fish[i]
        for j in range(i + 1, count):
            accumulate_pair(first, fish[j], physics)
            checks += 1
    return checks


class _LocalAccumulator:
    """Stands in for a fish inside one partition: shared kinematics, private accumulators."""

    __slots__ = (
        "position",
        "velocity",
        "sep_sum",
        "sep_count",
        "align_sum",
        "align_count",
        "cohesion_sum",
        "cohesion_count",
    )

    def __init__(self, fish: Fish) -> None:
        self.position = fish.position
        self.velocity = fish.velocity
        self.sep_sum = Vector2()
        self.sep_count = 0
        self.align_sum = Vector2()
        self.align_count = 0
        self.cohesion_sum = Vector2()
        self.cohesion_count = 0

    def merge_into(self, fish: Fish) -> None:
        fish.sep_sum += self.sep_sum
        fish.sep_count += self.sep_count
        fish.align_sum += self.align_sum
        fish.align_count += self.align_count
        fish.cohesion_sum += self.cohesion_sum
        fish.cohesion_count += self.cohesion_count


def _scan_partition(
    fish: Sequence[Fish], rows: range, physics: PhysicsConfig
) -> tuple[Dict[int, _LocalAccumulator], int]:
    local: Dict[int, _LocalAccumulator] = {}

    def local_for(index: int) -> _LocalAccumulator:
        entry = local.get(index)
        if entry is None:
            entry = _LocalAccumulator(fish[index])
            local[index] = entry
        return entry

    count = len(fish)
    checks = 0
    for i in rows:
        for j in range(i + 1, count):
            accumulate_pair(local_for(i), local_for(j), physics)  # type: ignore[arg-type]
            checks += 1
    return local, checks


def accumulate_neighbor_forces_partitioned(
    fish: Sequence[Fish], physics: PhysicsConfig, partitions: int
) -> int:
    """Same totals as :func:`accumulate_neighbor_forces`, computed per partition then merged.

    Each partition owns a contiguous block of pair rows and writes only into its
    own accumulator table; fish are touched only during the merge.
    """
    count = len(fish)
    if count == 0:
        return 0
    partitions = max(1, min(int(partitions), count))
    step = math.ceil(count / partitions)
    results: List[tuple[Dict[int, _LocalAccumulator], int]] = []
    for start in range(0, count, step):
        results.append(_scan_partition(fish, range(start, min(count, start + step)), physics))

    checks = 0
    for local, partition_checks in results:
        checks += partition_checks
        for index, entry in local.items():
            entry.merge_into(fish[index])
    return checks
