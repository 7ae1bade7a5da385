from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2


def _default_min() -> Vector2:
    return Vector2(-500.0, -500.0)


def _default_max() -> Vector2:
    return Vector2(500.0, 500.0)


@dataclass(slots=True)
class Bounds:
    """Axis-aligned world rectangle; ``a`` is the min corner, ``b`` the max corner."""

    a: Vector2 = field(default_factory=_default_min)
    b: Vector2 = field(default_factory=_default_max)

    @classmethod
    def from_viewport(cls, width: float, height: float) -> "Bounds":
        half_w = width / 2.0
        half_h = height / 2.0
        return cls(a=Vector2(-half_w, -half_h), b=Vector2(half_w, half_h))

    @property
    def width(self) -> float:
        return self.b.x - self.a.x

    @property
    def height(self) -> float:
        return self.b.y - self.a.y

    def contains(self, point: Vector2) -> bool:
        return self.a.x < point.x < self.b.x and self.a.y < point.y < self.b.y

    def screen_to_world(self, screen_x: float, screen_y: float) -> Vector2:
        # Screen origin is the top-left corner with y growing downwards.
        return Vector2(screen_x + self.a.x, -(screen_y + self.a.y))
