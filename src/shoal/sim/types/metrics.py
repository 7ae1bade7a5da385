from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class FrameMetrics:
    tick: int
    fish: int
    obstacles: int
    entity_count: int
    spawned: int
    removed: int
    neighbor_checks: int
    obstacle_checks: int
    steered: int
    frame_duration_ms: float = 0.0
    fps: float = 0.0
    fps_worst: float = 0.0
    frame_time_ms: float = 0.0
    frame_time_worst_ms: float = 0.0
