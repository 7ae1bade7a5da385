from __future__ import annotations

import math

from pygame.math import Vector2


def _safe_normalize(vector: Vector2) -> Vector2:
    return _safe_normalize_xy(vector.x, vector.y)


def _safe_normalize_xy(x: float, y: float) -> Vector2:
    # Zero in, zero out: never let NaN reach velocity or acceleration.
    magnitude_sq = x * x + y * y
    if magnitude_sq == 0.0:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _with_length(vector: Vector2, length: float) -> Vector2:
    direction = _safe_normalize(vector)
    return direction * length


def _heading_from_velocity(vector: Vector2, fallback: float = 0.0) -> float:
    if vector.length_squared() == 0.0:
        return fallback
    return math.atan2(vector.y, vector.x)


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def _wrap_coordinate(value: float, low: float, high: float) -> float:
    if value < low:
        return high
    if value > high:
        return low
    return value
