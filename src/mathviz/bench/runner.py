from __future__ import annotations

import csv
import itertools
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from mathviz.core.presets import get_preset
from mathviz.core.systems.base import list_systems
from mathviz.io.profiles import load_profile_meta
from mathviz.orchestrator.pipeline import solve_system, trajectory_fingerprint
from mathviz.utils.logging import get_logger

logger = get_logger(__name__)


# -------------------------
# Config structures
# -------------------------


@dataclass(frozen=True)
class BenchConfig:
    repeats: int
    profile: Optional[str]


@dataclass(frozen=True)
class MatrixConfig:
    system: Sequence[str]
    dt: Sequence[Optional[float]]
    steps: Sequence[int]


@dataclass(frozen=True)
class OutputConfig:
    include_timestamp_utc: bool
    include_fingerprint: bool


@dataclass(frozen=True)
class ValidateConfig:
    assert_deterministic_within_run: bool


@dataclass(frozen=True)
class FullConfig:
    bench: BenchConfig
    matrix: MatrixConfig
    output: OutputConfig
    validate: ValidateConfig


# -------------------------
# Config parsing/validation
# -------------------------


class ConfigError(Exception):
    """Raised when the benchmark config is invalid."""


def _require(mapping: Dict[str, Any], key: str, expected_type: Tuple[type, ...]):
    if key not in mapping:
        raise ConfigError(f"Missing required key '{key}'")
    val = mapping[key]
    if not isinstance(val, expected_type):
        raise ConfigError(f"Key '{key}' must be of type {expected_type}, got {type(val)}")
    return val


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def parse_config(path: Path) -> FullConfig:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ConfigError(f"Failed to read YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Top-level YAML must be a mapping.")

    bench = _require(data, "bench", (dict,))
    matrix = _require(data, "matrix", (dict,))
    output = data.get("output") or {}
    validate = data.get("validate") or {}
    if not isinstance(output, dict) or not isinstance(validate, dict):
        raise ConfigError("'output' and 'validate' must be mappings if provided.")

    profile = bench.get("profile")
    bench_cfg = BenchConfig(
        repeats=int(_require(bench, "repeats", (int,))),
        profile=str(profile) if profile else None,
    )
    if bench_cfg.repeats < 1:
        raise ConfigError("bench.repeats must be >= 1")

    if "system" not in matrix and bench_cfg.profile is None:
        raise ConfigError("matrix.system is required unless bench.profile is set")
    systems = [str(x) for x in _as_list(matrix.get("system", []))]
    for name in systems:
        if name not in list_systems():
            raise ConfigError(f"Unknown system '{name}'. Available: {list_systems()}")

    steps = [int(x) for x in _as_list(_require(matrix, "steps", (list, tuple, int)))]
    if any(s < 0 for s in steps):
        raise ConfigError("matrix.steps values must be >= 0")
    dts: List[Optional[float]] = [float(x) for x in _as_list(matrix["dt"])] if "dt" in matrix else [None]

    matrix_cfg = MatrixConfig(system=systems, dt=dts, steps=steps)

    output_cfg = OutputConfig(
        include_timestamp_utc=bool(output.get("include_timestamp_utc", True)),
        include_fingerprint=bool(output.get("include_fingerprint", True)),
    )
    validate_cfg = ValidateConfig(
        assert_deterministic_within_run=bool(validate.get("assert_deterministic_within_run", True)),
    )
    return FullConfig(bench=bench_cfg, matrix=matrix_cfg, output=output_cfg, validate=validate_cfg)


# -------------------------
# Benchmark internals
# -------------------------


def _measure_time(func):
    start = time.perf_counter()
    result = func()
    end = time.perf_counter()
    return result, end - start


def _resolve_sources(config: FullConfig) -> Dict[str, Dict[str, Any]]:
    """Map system id -> params/initial/dt taken from the profile or the preset."""
    sources: Dict[str, Dict[str, Any]] = {}
    if config.bench.profile:
        try:
            meta = load_profile_meta(config.bench.profile)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        if config.matrix.system and list(config.matrix.system) != [meta["system"]]:
            raise ConfigError(
                f"matrix.system must be omitted or equal to the profile system '{meta['system']}'"
            )
        sources[meta["system"]] = {
            "params": dict(meta["params"]),
            "initial": list(meta["initial"]),
            "dt": float(meta["dt"]),
        }
        return sources

    for name in config.matrix.system:
        preset = get_preset(name)
        sources[name] = {"params": dict(preset.params), "initial": list(preset.initial), "dt": preset.dt}
    return sources


def _variant_product(config: FullConfig, sources: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    combos = []
    for system, dt, steps in itertools.product(sources.keys(), config.matrix.dt, config.matrix.steps):
        combos.append(
            {
                "system": system,
                "dt": float(dt if dt is not None else sources[system]["dt"]),
                "steps": int(steps),
            }
        )
    return combos


def _run_single_variant(
    config: FullConfig,
    source: Dict[str, Any],
    variant: Dict[str, Any],
    repeat_index: int,
) -> Dict[str, Any]:
    def run():
        return solve_system(variant["system"], source["params"], source["initial"], variant["dt"], variant["steps"])

    flat, t_solve = _measure_time(run)
    fingerprint = trajectory_fingerprint(flat)

    if config.validate.assert_deterministic_within_run:
        if trajectory_fingerprint(run()) != fingerprint:
            raise RuntimeError("Determinism check failed: trajectory mismatch within run.")

    record: Dict[str, Any] = {
        "system": variant["system"],
        "dt": variant["dt"],
        "steps": variant["steps"],
        "repeats": config.bench.repeats,
        "repeat_index": repeat_index,
        "points": variant["steps"] + 1,
        "t_solve_s": t_solve,
        "throughput_steps_per_s": variant["steps"] / t_solve if t_solve else None,
        "trajectory_sha256": fingerprint if config.output.include_fingerprint else None,
        "profile": config.bench.profile,
    }
    if config.output.include_timestamp_utc:
        record["timestamp_utc"] = datetime.now(timezone.utc).isoformat()
    logger.info(
        "bench system=%s dt=%s steps=%d repeat=%d t=%.6fs",
        variant["system"],
        variant["dt"],
        variant["steps"],
        repeat_index,
        t_solve,
    )
    return record


def run_benchmark(config: FullConfig) -> List[Dict[str, Any]]:
    sources = _resolve_sources(config)
    records = []
    for variant in _variant_product(config, sources):
        for repeat_index in range(config.bench.repeats):
            records.append(_run_single_variant(config, sources[variant["system"]], variant, repeat_index))

    # Sort deterministically
    def sort_key(rec: Dict[str, Any]):
        return (rec["system"], rec["dt"], rec["steps"], rec["repeat_index"])

    return sorted(records, key=sort_key)


# -------------------------
# Output helpers
# -------------------------


CSV_FIELDS = [
    "timestamp_utc",
    "profile",
    "system",
    "dt",
    "steps",
    "repeats",
    "repeat_index",
    "points",
    "t_solve_s",
    "throughput_steps_per_s",
    "trajectory_sha256",
]


def write_csv(path: Path, records: List[Dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for rec in records:
            writer.writerow(rec)


def write_json_output(path: Path, records: List[Dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(records, f, indent=2)
