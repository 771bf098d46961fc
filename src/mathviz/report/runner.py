from __future__ import annotations

import csv
import json
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import matplotlib.pyplot as plt


def _parse_float(val: str | None) -> Optional[float]:
    if val is None or val == "":
        return None
    try:
        return float(val)
    except ValueError:
        return None


def _parse_int(val: str | None) -> Optional[int]:
    if val is None or val == "":
        return None
    try:
        return int(val)
    except ValueError:
        return None


def _read_csv(path: Path) -> List[Dict[str, Any]]:
    with path.open(newline="", encoding="utf-8") as f:
        return [dict(row) for row in csv.DictReader(f)]


@dataclass
class BenchAgg:
    key: Tuple
    count: int
    mean_t_solve: float
    std_t_solve: float
    mean_throughput: float
    std_throughput: float
    sample_hash: str | None
    consistent_hash: bool


def _mean_std(values: List[float]) -> Tuple[float, float]:
    if not values:
        return 0.0, 0.0
    m = sum(values) / len(values)
    var = sum((v - m) ** 2 for v in values) / len(values)
    return m, var**0.5


def _group_bench(rows: List[Dict[str, Any]]) -> List[BenchAgg]:
    groups: Dict[Tuple, List[Dict[str, Any]]] = defaultdict(list)
    for r in rows:
        key = (r.get("system") or "", _parse_float(r.get("dt")), _parse_int(r.get("steps")))
        groups[key].append(r)

    aggs: List[BenchAgg] = []
    for key, lst in groups.items():
        t_vals = [v for v in (_parse_float(x.get("t_solve_s")) for x in lst) if v is not None]
        tp_vals = [v for v in (_parse_float(x.get("throughput_steps_per_s")) for x in lst) if v is not None]
        mean_t, std_t = _mean_std(t_vals)
        mean_tp, std_tp = _mean_std(tp_vals)
        hashes = {x.get("trajectory_sha256") for x in lst if x.get("trajectory_sha256")}
        aggs.append(
            BenchAgg(
                key=key,
                count=len(lst),
                mean_t_solve=mean_t,
                std_t_solve=std_t,
                mean_throughput=mean_tp,
                std_throughput=std_tp,
                sample_hash=lst[0].get("trajectory_sha256") or None,
                consistent_hash=len(hashes) <= 1,
            )
        )
    return sorted(aggs, key=lambda a: (a.key[0], a.key[1] or 0.0, a.key[2] or 0))


def _plot_throughput(aggs: List[BenchAgg], out_dir: Path) -> List[str]:
    # one figure per (system, dt): throughput against step count
    grouped: Dict[Tuple[str, float | None], List[Tuple[int, float]]] = defaultdict(list)
    for a in aggs:
        system, dt, steps = a.key
        if steps is not None:
            grouped[(system, dt)].append((steps, a.mean_throughput))

    refs: List[str] = []
    for (system, dt), lst in sorted(grouped.items(), key=lambda kv: (kv[0][0], kv[0][1] or 0.0)):
        lst_sorted = sorted(lst)
        plt.plot([s for s, _ in lst_sorted], [v for _, v in lst_sorted], marker="o")
        plt.xlabel("steps")
        plt.ylabel("throughput_steps_per_s")
        plt.title(f"{system} throughput (dt={dt})")
        out_file = out_dir / f"throughput_{system}_dt{str(dt).replace('.', 'p')}.png"
        out_file.parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(out_file, dpi=150, bbox_inches="tight")
        plt.close()
        refs.append(str(out_file))
    return refs


def _render_markdown(
    aggs: List[BenchAgg],
    bench_path: Path,
    timestamp: Optional[str],
    plots: List[str],
) -> str:
    lines = []
    lines.append("# mathviz – Solver Report")
    if timestamp:
        lines.append(f"_Generated: {timestamp} UTC_")
    lines.append("")
    lines.append("## Inputs")
    lines.append(f"- Benchmark CSV: `{bench_path}` ({len(aggs)} variants aggregated)")
    lines.append("")
    lines.append("## Benchmark Summary")
    if aggs:
        lines.append("| system | dt | steps | runs | mean t_solve_s | std t_solve_s | mean steps/s | std steps/s | deterministic | sha256 |")
        lines.append("|---|---|---|---|---|---|---|---|---|---|")
        for a in aggs:
            system, dt, steps = a.key
            sha = (a.sample_hash or "")[:12]
            lines.append(
                f"| {system} | {dt} | {steps} | {a.count} | {a.mean_t_solve:.6f} | {a.std_t_solve:.6f} | "
                f"{a.mean_throughput:.1f} | {a.std_throughput:.1f} | {'yes' if a.consistent_hash else 'NO'} | {sha} |"
            )
    else:
        lines.append("- No benchmark rows found.")
    lines.append("")

    if plots:
        lines.append("## Plots")
        for p in plots:
            lines.append(f"![]({p})")
        lines.append("")

    lines.append("## Appendix")
    lines.append("- Reproducibility: same system, parameters, dt and steps → identical trajectory hash.")
    return "\n".join(lines)


def generate_report(
    bench_csv: Path,
    out_md: Path,
    plots_dir: Path | None = None,
    include_timestamp: bool = True,
    json_summary: Path | None = None,
) -> Dict[str, Any]:
    aggs = _group_bench(_read_csv(bench_csv))
    timestamp = datetime.now(timezone.utc).isoformat() if include_timestamp else None

    plot_refs: List[str] = []
    if plots_dir:
        plot_refs = _plot_throughput(aggs, plots_dir)

    md = _render_markdown(aggs, bench_csv, timestamp, plot_refs)
    out_md.parent.mkdir(parents=True, exist_ok=True)
    out_md.write_text(md, encoding="utf-8")

    summary = {
        "bench_variants": len(aggs),
        "bench_csv": str(bench_csv),
        "timestamp": timestamp,
        "plots": plot_refs,
        "inconsistent": [list(a.key) for a in aggs if not a.consistent_hash],
    }
    if json_summary:
        json_summary.parent.mkdir(parents=True, exist_ok=True)
        json_summary.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    return summary
