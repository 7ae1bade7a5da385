from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import FrameMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "fish",
    "obstacles",
    "neighbor_checks",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "fish",
    "obstacles",
    "entity_count",
    "spawned",
    "removed",
    "neighbor_checks",
    "obstacle_checks",
    "steered",
    "tick_ms",
    "fps",
    "fps_worst",
    "steered_ratio",
    "avg_speed",
    "polarization",
    "centroid_x",
    "centroid_y",
]


def _format_basic_row(metrics: FrameMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.fish,
        metrics.obstacles,
        metrics.neighbor_checks,
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: FrameMetrics, tick_ms: float, deterministic: bool) -> list[object]:
    population = metrics.fish
    if population <= 0:
        steered_ratio = 0.0
        avg_speed = 0.0
        polarization = 0.0
        centroid_x = 0.0
        centroid_y = 0.0
    else:
        steered_ratio = metrics.steered / population
        speed_sum = 0.0
        heading_x = 0.0
        heading_y = 0.0
        pos_x = 0.0
        pos_y = 0.0
        for fish in world.fish:
            velocity = fish.velocity
            speed = math.hypot(velocity.x, velocity.y)
            speed_sum += speed
            if speed > 0.0:
                heading_x += velocity.x / speed
                heading_y += velocity.y / speed
            pos_x += fish.position.x
            pos_y += fish.position.y
        avg_speed = speed_sum / population
        # 1.0 when every fish swims the same way, near 0.0 when headings are random.
        polarization = math.hypot(heading_x, heading_y) / population
        centroid_x = pos_x / population
        centroid_y = pos_y / population

    fps = 0.0 if deterministic else metrics.fps
    fps_worst = 0.0 if deterministic else metrics.fps_worst
    return [
        metrics.tick,
        population,
        metrics.obstacles,
        metrics.entity_count,
        metrics.spawned,
        metrics.removed,
        metrics.neighbor_checks,
        metrics.obstacle_checks,
        metrics.steered,
        f"{tick_ms:.3f}",
        f"{fps:.2f}",
        f"{fps_worst:.2f}",
        f"{steered_ratio:.4f}",
        f"{avg_speed:.4f}",
        f"{polarization:.4f}",
        f"{centroid_x:.4f}",
        f"{centroid_y:.4f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    total = sum(values)
    count = len(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(total / count),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 600,
    config: Optional[SimulationConfig] = None,
) -> World:
    config = SimulationConfig() if config is None else config
    if seed is not None:
        config.seed = seed

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    world = World(config)
    logger.info("Running %d frames with %d fish (seed %d)", steps, len(world.fish), config.seed)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    neighbor_checks_series: list[int] = []
    max_tick_ms = (-1.0, -1)

    try:
        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.frame_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                neighbor_checks_series.append(metrics.neighbor_checks)
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms, deterministic_log))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "fish": len(world.fish),
            "obstacles": len(world.obstacles),
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "neighbor_checks": _summary_stats([float(v) for v in neighbor_checks_series]),
            "over_threshold": {
                "tick_ms_gt_16": sum(1 for value in tick_ms_series if value > 1000.0 / 60.0),
                "tick_ms_gt_33": sum(1 for value in tick_ms_series if value > 1000.0 / 30.0),
            },
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
        logger.info("Wrote summary to %s", summary_path)
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless shoal simulation")
    parser.add_argument("--steps", type=int, default=600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation settings")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=600,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (timings are forced to zero so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", help="Python logging level (DEBUG, INFO, ...)")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = SimulationConfig.from_yaml(args.config) if args.config else None
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config=config,
    )


if __name__ == "__main__":
    main()
