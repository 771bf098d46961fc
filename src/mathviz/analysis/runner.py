from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

import numpy as np

from mathviz.core import constants
from mathviz.orchestrator.pipeline import solve_system, trajectory_fingerprint


def _points(flat: np.ndarray, dimension: int) -> np.ndarray:
    data = np.asarray(flat, dtype=np.float64)
    if data.size % dimension:
        raise ValueError(f"flat length {data.size} is not a multiple of {dimension}")
    return data.reshape(-1, dimension)


def _finite_or_none(value: float) -> float | None:
    return float(value) if np.isfinite(value) else None


def trajectory_stats(
    flat: np.ndarray,
    dimension: int,
    labels: Sequence[str] | None = None,
    dt: float | None = None,
) -> Dict[str, Any]:
    """Per-axis extent and mean plus speed; axis values ignore non-finite entries."""
    pts = _points(flat, dimension)
    labels = list(labels) if labels else [f"axis{i}" for i in range(dimension)]
    finite = np.isfinite(pts)

    axes: Dict[str, Dict[str, float | None]] = {}
    for i, label in enumerate(labels):
        col = pts[finite[:, i], i]
        if col.size:
            axes[label] = {"min": float(col.min()), "max": float(col.max()), "mean": float(col.mean())}
        else:
            axes[label] = {"min": None, "max": None, "mean": None}

    mean_step = None
    if pts.shape[0] > 1:
        with np.errstate(over="ignore", invalid="ignore"):
            steps = np.linalg.norm(np.diff(pts, axis=0), axis=1)
        steps = steps[np.isfinite(steps)]
        if steps.size:
            mean_step = float(steps.mean())

    mean_speed = None
    if mean_step is not None and dt:
        mean_speed = _finite_or_none(mean_step / abs(dt))

    return {
        "points": int(pts.shape[0]),
        "non_finite": int(np.count_nonzero(~finite)),
        "axes": axes,
        "mean_step": mean_step,
        "mean_speed": mean_speed,
    }


def divergence_profile(a: np.ndarray, b: np.ndarray, dimension: int) -> np.ndarray:
    """Euclidean distance between corresponding points of two equal-length runs."""
    pa = _points(a, dimension)
    pb = _points(b, dimension)
    if pa.shape != pb.shape:
        raise ValueError(f"trajectory shapes differ: {pa.shape} vs {pb.shape}")
    with np.errstate(over="ignore", invalid="ignore"):
        return np.linalg.norm(pa - pb, axis=1)


def first_exceeding(distances: np.ndarray, threshold: float) -> int | None:
    idx = np.flatnonzero(np.asarray(distances) > threshold)
    return int(idx[0]) if idx.size else None


def late_amplitude(flat: np.ndarray, dimension: int, axis: int, window: int) -> float:
    """Largest absolute value of one coordinate over the trailing ``window`` points."""
    pts = _points(flat, dimension)
    if window <= 0:
        raise ValueError("window must be > 0")
    return float(np.max(np.abs(pts[-window:, axis])))


def analyze_run(
    system_id: str,
    params: Mapping[str, float],
    initial: Sequence[float],
    dt: float,
    steps: int,
    labels: Sequence[str],
    perturb: float | None = None,
    threshold: float = constants.DEFAULT_DIVERGENCE_THRESHOLD,
) -> Dict[str, Any]:
    dimension = len(labels)
    flat = solve_system(system_id, params, initial, dt, steps)
    # trailing tenth of the run
    late = max(1, (steps + 1) // 10)
    result: Dict[str, Any] = {
        "system": system_id,
        "params": dict(params),
        "initial": list(initial),
        "dt": dt,
        "steps": steps,
        "trajectory_sha256": trajectory_fingerprint(flat),
        "stats": trajectory_stats(flat, dimension, labels=labels, dt=dt),
    }
    result["late_window"] = {
        "points": late,
        "amplitude": {
            label: _finite_or_none(late_amplitude(flat, dimension, i, late))
            for i, label in enumerate(labels)
        },
    }

    if perturb is not None:
        shifted: List[float] = list(initial)
        shifted[0] = shifted[0] + perturb
        other = solve_system(system_id, params, shifted, dt, steps)
        dist = divergence_profile(flat, other, dimension)
        early = max(1, dist.size // 100)
        result["divergence"] = {
            "perturbation": perturb,
            "threshold": threshold,
            "initial_distance": float(dist[0]),
            "early_max_distance": _finite_or_none(dist[:early].max()),
            "late_max_distance": _finite_or_none(dist[-late:].max()),
            "final_distance": _finite_or_none(dist[-1]),
            "first_index_over_threshold": first_exceeding(dist, threshold),
        }
    return result
