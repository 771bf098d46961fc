from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Sequence

import numpy as np
import typer


def _timestamp_utc() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _abs_path(path: Path | None) -> str:
    if path is None:
        return "n/a"
    try:
        return str(path.resolve())
    except OSError:
        return str(path)


def _truncate_hex(value: str, max_len: int = 12) -> str:
    if len(value) <= max_len:
        return value
    return f"{value[:max_len]}..."


def print_run_header(
    command: str,
    *,
    system: str,
    params: Dict[str, float],
    initial: Sequence[float],
    dt: float,
    steps: int,
    source: str | None = None,
) -> None:
    typer.echo(f"[run] command={command} ts_utc={_timestamp_utc()}")
    typer.echo(f"[system] id={system} source={source or 'preset'}")
    params_text = " ".join(f"{k}={v}" for k, v in params.items()) or "n/a"
    typer.echo(f"[params] {params_text}")
    initial_text = ",".join(repr(float(v)) for v in initial)
    typer.echo(f"[rk4] initial=({initial_text}) dt={dt} steps={steps}")


def print_io_write(path: Path) -> None:
    typer.echo(f"[io] Writing output: {_abs_path(path)}")


def print_points(points: np.ndarray, n: int) -> None:
    for i, (x, y, z) in enumerate(points[:n]):
        typer.echo(f"{i} {float(x)!r} {float(y)!r} {float(z)!r}")


def print_trajectory_summary(points: int, dimension: int, sha256_hex: str, non_finite: int) -> None:
    typer.echo(
        f"[trajectory] points={points} dimension={dimension} non_finite={non_finite} "
        f"sha256={_truncate_hex(sha256_hex)}"
    )


def print_done(summary: str) -> None:
    typer.echo(f"[done] {summary}")
