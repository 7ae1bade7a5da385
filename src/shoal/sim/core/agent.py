from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2


@dataclass(slots=True)
class Fish:
    id: int
    position: Vector2
    velocity: Vector2
    acceleration: Vector2 = field(default_factory=Vector2)
    heading: float = 0.0
    # Per-frame scratch, written by the scan stages and cleared by steering.
    sep_sum: Vector2 = field(default_factory=Vector2)
    sep_count: int = 0
    align_sum: Vector2 = field(default_factory=Vector2)
    align_count: int = 0
    cohesion_sum: Vector2 = field(default_factory=Vector2)
    cohesion_count: int = 0
    avoid_sum: Vector2 = field(default_factory=Vector2)
    avoid_count: int = 0

    def reset_accumulators(self) -> None:
        self.sep_sum.update(0.0, 0.0)
        self.sep_count = 0
        self.align_sum.update(0.0, 0.0)
        self.align_count = 0
        self.cohesion_sum.update(0.0, 0.0)
        self.cohesion_count = 0
        self.avoid_sum.update(0.0, 0.0)
        self.avoid_count = 0

    def accumulators_clear(self) -> bool:
        return (
            self.sep_count == 0
            and self.align_count == 0
            and self.cohesion_count == 0
            and self.avoid_count == 0
            and self.sep_sum.length_squared() == 0.0
            and self.align_sum.length_squared() == 0.0
            and self.cohesion_sum.length_squared() == 0.0
            and self.avoid_sum.length_squared() == 0.0
        )


@dataclass(frozen=True, slots=True)
class Obstacle:
    id: int
    position: Vector2
