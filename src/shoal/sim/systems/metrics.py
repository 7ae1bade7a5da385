from __future__ import annotations

from collections import deque
from typing import Deque, Tuple

from ..types.metrics import FrameMetrics


class FrameClock:
    """Sliding-window frame timing for the performance readout."""

    def __init__(self, window: int = 120) -> None:
        self._durations: Deque[float] = deque(maxlen=max(1, window))

    def record(self, seconds: float) -> None:
        self._durations.append(max(0.0, seconds))

    def reset(self) -> None:
        self._durations.clear()

    def readout(self) -> Tuple[float, float, float, float]:
        """Return ``(fps, fps_worst, frame_time_ms, frame_time_worst_ms)``."""
        if not self._durations:
            return 0.0, 0.0, 0.0, 0.0
        average = sum(self._durations) / len(self._durations)
        worst = max(self._durations)
        fps = 0.0 if average <= 0.0 else 1.0 / average
        fps_worst = 0.0 if worst <= 0.0 else 1.0 / worst
        return fps, fps_worst, average * 1000.0, worst * 1000.0


def create_metrics(
    tick: int,
    fish: int,
    obstacles: int,
    population_change: Tuple[int, int],
    checks: Tuple[int, int],
    steered: int,
    duration_ms: float,
    clock: FrameClock,
) -> FrameMetrics:
    spawned, removed = population_change
    neighbor_checks, obstacle_checks = checks
    fps, fps_worst, frame_time_ms, frame_time_worst_ms = clock.readout()
    return FrameMetrics(
        tick=tick,
        fish=fish,
        obstacles=obstacles,
        entity_count=fish + obstacles,
        spawned=spawned,
        removed=removed,
        neighbor_checks=neighbor_checks,
        obstacle_checks=obstacle_checks,
        steered=steered,
        frame_duration_ms=duration_ms,
        fps=fps,
        fps_worst=fps_worst,
        frame_time_ms=frame_time_ms,
        frame_time_worst_ms=frame_time_worst_ms,
    )
