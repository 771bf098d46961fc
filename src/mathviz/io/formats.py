from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Sequence

import numpy as np

TRAJECTORY_FORMATS = ("json", "csv", "npy")


def read_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def write_trajectory(
    path: Path,
    flat: np.ndarray,
    fmt: str,
    labels: Sequence[str],
    meta: Dict[str, Any] | None = None,
) -> None:
    """
    Persist a flat trajectory.

    json keeps the flat buffer plus metadata, csv writes one row per point, npy the raw array.
    Non-finite values are written as NaN/Infinity in json and csv.
    """
    if fmt not in TRAJECTORY_FORMATS:
        raise ValueError(f"Unknown format '{fmt}'. Available: {list(TRAJECTORY_FORMATS)}")
    path.parent.mkdir(parents=True, exist_ok=True)
    dimension = len(labels)

    if fmt == "npy":
        with path.open("wb") as f:
            np.save(f, np.asarray(flat, dtype=np.float64))
        return

    if fmt == "json":
        payload = dict(meta or {})
        payload["dimension"] = dimension
        payload["labels"] = list(labels)
        payload["data"] = np.asarray(flat, dtype=np.float64).tolist()
        write_json(path, payload)
        return

    points = np.asarray(flat, dtype=np.float64).reshape(-1, dimension)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["index", *labels])
        for i, row in enumerate(points):
            writer.writerow([i, *(repr(float(v)) for v in row)])
