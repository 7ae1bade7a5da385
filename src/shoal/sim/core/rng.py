from __future__ import annotations

import random

from pygame.math import Vector2

from .bounds import Bounds


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        return low + self._random.random() * (high - low)

    def next_point_in(self, bounds: Bounds) -> Vector2:
        return Vector2(
            self.next_range(bounds.a.x, bounds.b.x),
            self.next_range(bounds.a.y, bounds.b.y),
        )

    def next_velocity(self, spread: float) -> Vector2:
        return Vector2(self.next_range(-spread, spread), self.next_range(-spread, spread))
