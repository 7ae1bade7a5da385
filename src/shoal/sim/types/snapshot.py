from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import FrameMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: FrameMetrics
    fish: List[Dict[str, Any]]
    obstacles: List[Dict[str, Any]]
    bounds: "SnapshotBounds"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotBounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float


@dataclass(slots=True)
class SnapshotMetadata:
    sim_dt: float
    tick_rate: float
    seed: int
    config_version: str
