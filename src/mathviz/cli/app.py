from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

import numpy as np
import typer

from mathviz.analysis.runner import analyze_run
from mathviz.bench.runner import (
    ConfigError,
    parse_config,
    run_benchmark,
    write_csv,
    write_json_output,
)
from mathviz.cli import ui
from mathviz.core import constants
from mathviz.core.presets import get_preset, list_presets
from mathviz.core.systems.base import check_initial, check_steps, get_system
from mathviz.io.formats import TRAJECTORY_FORMATS, write_json, write_trajectory
from mathviz.io.profiles import (
    build_profile_meta,
    delete_profile,
    list_profiles,
    load_profile_meta,
    profile_exists,
    save_profile_meta,
)
from mathviz.orchestrator.pipeline import (
    solve_lorenz,
    solve_system,
    to_points,
    trajectory_fingerprint,
)
from mathviz.report.runner import generate_report
from mathviz.utils.logging import get_logger, resolve_log_level, set_command_context, setup_logging

app = typer.Typer(help="mathviz: fixed-step RK4 trajectories for classic dynamical systems")
presets_app = typer.Typer(help="Built-in presets (list/show)")
profile_app = typer.Typer(help="Saved parameter profiles (save/list/show/delete)")

logger = get_logger(__name__)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at INFO level"),
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level"),
):
    setup_logging(resolve_log_level(verbose, debug))


def parse_params(values: Optional[List[str]]) -> Dict[str, float]:
    params: Dict[str, float] = {}
    for item in values or []:
        name, sep, raw = item.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"--param must be 'name=value', got '{item}'")
        try:
            params[name.strip()] = float(raw)
        except ValueError as exc:
            raise typer.BadParameter(f"--param value for '{name.strip()}' is not a number: '{raw}'") from exc
    return params


def parse_initial(text: str) -> List[float]:
    parts = text.replace(",", " ").split()
    if not parts:
        raise typer.BadParameter("initial must be given as 'a,b[,c]'")
    try:
        return [float(p) for p in parts]
    except ValueError as exc:
        raise typer.BadParameter("initial must be given as 'a,b[,c]'") from exc


def _resolve_run(
    system: str | None,
    profile: str | None,
    params: Dict[str, float],
    initial: List[float] | None,
    dt: float | None,
    steps: int | None,
) -> Dict[str, Any]:
    """Merge profile (or preset) values with command-line overrides."""
    if profile:
        meta = load_profile_meta(profile)
        if system and system != meta["system"]:
            raise ValueError(f"Profile '{profile}' is for system '{meta['system']}', not '{system}'")
        base = {
            "system": meta["system"],
            "params": dict(meta["params"]),
            "initial": list(meta["initial"]),
            "dt": float(meta["dt"]),
            "steps": int(meta["steps"]),
            "source": f"profile:{profile}",
        }
    else:
        system_id = system or constants.DEFAULT_SYSTEM
        get_system(system_id)
        preset = get_preset(system_id)
        base = {
            "system": system_id,
            "params": dict(preset.params),
            "initial": list(preset.initial),
            "dt": preset.dt,
            "steps": preset.steps,
            "source": "preset",
        }

    base["params"].update(params)
    if initial is not None:
        base["initial"] = initial
    if dt is not None:
        base["dt"] = dt
    if steps is not None:
        base["steps"] = steps
    return base


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


@app.command()
def solve(
    system: Optional[str] = typer.Option(None, "--system", "-s", help="System id (see 'presets list')"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Saved profile to start from"),
    param: Optional[List[str]] = typer.Option(None, "--param", "-P", help="Parameter override 'name=value'"),
    initial: Optional[str] = typer.Option(None, "--initial", "-i", help="Initial state as 'a,b[,c]'"),
    dt: Optional[float] = typer.Option(None, help="Step size (negative integrates backward)"),
    steps: Optional[int] = typer.Option(None, help="Number of RK4 steps"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the trajectory to a file"),
    fmt: Optional[str] = typer.Option(
        None, "--format", "-f", help="Output format for --out: json, csv or npy (default json)"
    ),
    head: Optional[int] = typer.Option(None, "--head", help="Print the first N points (padded to 3-D)"),
    hash_out: bool = typer.Option(False, "--hash", help="Write the trajectory SHA-256 (hex) to stdout"),
):
    """Integrate one trajectory and export, preview or fingerprint it."""
    set_command_context("solve")
    selected = sum(1 for flag in (out is not None, head is not None, hash_out) if flag)
    if selected == 0:
        hash_out = True  # default
    elif selected > 1:
        _fail("Choose exactly one output option.")
    if fmt is not None and out is None:
        _fail("--format only applies together with --out.")
    fmt = fmt or "json"
    if fmt not in TRAJECTORY_FORMATS:
        _fail(f"Unknown format '{fmt}'. Available: {list(TRAJECTORY_FORMATS)}")
    if head is not None and head < 0:
        _fail("--head must be >= 0")

    overrides = parse_params(param)
    initial_values = parse_initial(initial) if initial is not None else None
    try:
        run = _resolve_run(system, profile, overrides, initial_values, dt, steps)
        flat = solve_system(run["system"], run["params"], run["initial"], run["dt"], run["steps"])
    except ValueError as exc:
        _fail(str(exc))

    system_cls = get_system(run["system"])
    fingerprint = trajectory_fingerprint(flat)

    if hash_out:
        typer.echo(fingerprint)
        return

    if head is not None:
        ui.print_points(to_points(flat, system_cls.dimension), head)
        return

    ui.print_run_header(
        "solve",
        system=run["system"],
        params=run["params"],
        initial=run["initial"],
        dt=run["dt"],
        steps=run["steps"],
        source=run["source"],
    )
    meta = {
        "version": constants.VERSION,
        "system": run["system"],
        "params": run["params"],
        "initial": run["initial"],
        "dt": run["dt"],
        "steps": run["steps"],
        "trajectory_sha256": fingerprint,
    }
    ui.print_io_write(out)
    write_trajectory(out, flat, fmt, system_cls.state_labels, meta=meta)
    ui.print_trajectory_summary(
        run["steps"] + 1,
        system_cls.dimension,
        fingerprint,
        int(np.count_nonzero(~np.isfinite(flat))),
    )
    ui.print_done(f"Wrote {fmt} trajectory → {out}")


@app.command()
def analyze(
    system: Optional[str] = typer.Option(None, "--system", "-s", help="System id"),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Saved profile to start from"),
    param: Optional[List[str]] = typer.Option(None, "--param", "-P", help="Parameter override 'name=value'"),
    initial: Optional[str] = typer.Option(None, "--initial", "-i", help="Initial state as 'a,b[,c]'"),
    dt: Optional[float] = typer.Option(None, help="Step size"),
    steps: Optional[int] = typer.Option(None, help="Number of RK4 steps"),
    perturb: Optional[float] = typer.Option(
        None, help="Also run with the first initial coordinate shifted by this amount"
    ),
    threshold: float = typer.Option(
        constants.DEFAULT_DIVERGENCE_THRESHOLD, help="Distance reported as divergence onset"
    ),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Also write the JSON result to a file"),
):
    """Print trajectory diagnostics (extent, speed, divergence of a perturbed run) as JSON."""
    set_command_context("analyze")
    overrides = parse_params(param)
    initial_values = parse_initial(initial) if initial is not None else None
    try:
        run = _resolve_run(system, profile, overrides, initial_values, dt, steps)
        result = analyze_run(
            run["system"],
            run["params"],
            run["initial"],
            run["dt"],
            run["steps"],
            labels=get_system(run["system"]).state_labels,
            perturb=perturb,
            threshold=threshold,
        )
    except ValueError as exc:
        _fail(str(exc))

    if out:
        write_json(out, result)
    typer.echo(json.dumps(result, indent=2))


@presets_app.command("list")
def presets_list():
    """List built-in presets."""
    for name in list_presets():
        preset = get_preset(name)
        typer.echo(f"{preset.id}\t{preset.dimension}D\t{preset.name}")


@presets_app.command("show")
def presets_show(system: str = typer.Option(..., "--system", "-s", help="System id")):
    """Show one preset as JSON."""
    try:
        preset = get_preset(system)
    except ValueError as exc:
        _fail(str(exc))
    typer.echo(json.dumps(preset.as_dict(), indent=2, ensure_ascii=False))


@profile_app.command("save")
def profile_save(
    profile: str = typer.Option(..., "--profile", "-p", help="Profile name"),
    system: str = typer.Option(constants.DEFAULT_SYSTEM, "--system", "-s", help="System id"),
    param: Optional[List[str]] = typer.Option(None, "--param", "-P", help="Parameter override 'name=value'"),
    initial: Optional[str] = typer.Option(None, "--initial", "-i", help="Initial state as 'a,b[,c]'"),
    dt: Optional[float] = typer.Option(None, help="Step size"),
    steps: Optional[int] = typer.Option(None, help="Number of RK4 steps"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing profile"),
):
    """Save a parameter set (preset values plus overrides) under a name."""
    set_command_context("profile")
    if profile_exists(profile) and not force:
        _fail(f"Profile '{profile}' already exists. Use --force to overwrite.")

    overrides = parse_params(param)
    initial_values = parse_initial(initial) if initial is not None else None
    try:
        run = _resolve_run(system, None, overrides, initial_values, dt, steps)
        system_cls = get_system(run["system"])
        system_cls.from_params(run["params"])
        check_initial(run["initial"], system_cls.dimension)
        check_steps(run["steps"])
    except ValueError as exc:
        _fail(str(exc))

    meta = build_profile_meta(run["system"], run["params"], run["initial"], run["dt"], run["steps"])
    path = save_profile_meta(profile, meta)
    logger.info("Saved profile %s to %s", profile, path)
    typer.secho(f"Profile '{profile}' saved ({run['system']}).", fg=typer.colors.GREEN)


@profile_app.command("list")
def profile_list():
    """List saved profiles."""
    names = list_profiles()
    if not names:
        typer.echo("No profiles found.")
        return
    for name in names:
        typer.echo(name)


@profile_app.command("show")
def profile_show(profile: str = typer.Option(..., "--profile", "-p", help="Profile name")):
    """Show profile metadata."""
    try:
        meta = load_profile_meta(profile)
    except ValueError as exc:
        _fail(str(exc))
    typer.echo(json.dumps(meta, indent=2))


@profile_app.command("delete")
def profile_delete(profile: str = typer.Option(..., "--profile", "-p", help="Profile name")):
    """Delete a saved profile."""
    try:
        delete_profile(profile)
    except ValueError as exc:
        _fail(str(exc))
    typer.secho(f"Profile '{profile}' deleted.", fg=typer.colors.GREEN)


def _lorenz_reference_step(
    state: tuple[float, float, float], sigma: float, rho: float, beta: float, dt: float
) -> tuple[float, float, float]:
    def f(s):
        x, y, z = s
        return (sigma * (y - x), x * (rho - z) - y, x * y - beta * z)

    def shift(s, k, h):
        return tuple(si + ki * h for si, ki in zip(s, k))

    k1 = f(state)
    k2 = f(shift(state, k1, dt / 2.0))
    k3 = f(shift(state, k2, dt / 2.0))
    k4 = f(shift(state, k3, dt))
    return tuple(
        s + (a + 2.0 * b + 2.0 * c + d) * (dt / 6.0) for s, a, b, c, d in zip(state, k1, k2, k3, k4)
    )


@app.command()
def selftest():
    """
    Run the built-in golden check (no filesystem writes).
    """
    set_command_context("selftest")
    sigma, rho, beta = constants.LORENZ_SIGMA, constants.LORENZ_RHO, constants.LORENZ_BETA
    dt = constants.DEFAULT_DT

    flat = solve_lorenz(sigma, rho, beta, 1.0, 1.0, 1.0, dt, 1)
    expected = _lorenz_reference_step((1.0, 1.0, 1.0), sigma, rho, beta, dt)
    golden_ok = all(abs(float(a) - b) <= 1e-12 for a, b in zip(flat[3:6], expected))

    run_a = solve_lorenz(sigma, rho, beta, 1.0, 1.0, 1.0, dt, 1000)
    run_b = solve_lorenz(sigma, rho, beta, 1.0, 1.0, 1.0, dt, 1000)
    deterministic = trajectory_fingerprint(run_a) == trajectory_fingerprint(run_b)

    if golden_ok and deterministic:
        typer.secho("Selftest passed (Lorenz golden step, determinism).", fg=typer.colors.GREEN)
    else:
        typer.secho(
            f"Selftest FAILED (golden={golden_ok}, deterministic={deterministic}).",
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)


@app.command()
def benchmark(
    config: Path = typer.Option(..., "--config", "-c", exists=True, readable=True, help="YAML benchmark config"),
    out: Path = typer.Option(..., "--out", "-o", help="CSV output path"),
    out_json: Optional[Path] = typer.Option(None, "--out-json", help="Optional JSON output path"),
    json_summary: bool = typer.Option(False, "--json", help="Print summary JSON to stdout"),
):
    """
    Run benchmark variants from YAML config and export CSV/JSON.
    """
    set_command_context("benchmark")
    try:
        cfg = parse_config(config)
        records = run_benchmark(cfg)
    except ConfigError as exc:
        typer.secho(f"Config error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except Exception as exc:  # noqa: BLE001
        typer.secho(f"Benchmark failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        write_csv(out, records)
        if out_json:
            write_json_output(out_json, records)
    except OSError as exc:
        typer.secho(f"Failed to write outputs: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.secho(f"Benchmark complete. CSV → {out}", fg=typer.colors.GREEN)
    if out_json:
        typer.secho(f"JSON → {out_json}", fg=typer.colors.GREEN)

    if json_summary:
        summary = {
            "runs": len(records),
            "csv": str(out),
            "json": str(out_json) if out_json else None,
            "variants": len({(r["system"], r["dt"], r["steps"]) for r in records}),
        }
        typer.echo(json.dumps(summary))


@app.command()
def report(
    bench_csv: Path = typer.Option(..., "--bench-csv", exists=True, readable=True, help="Benchmark CSV"),
    out: Path = typer.Option(..., "--out", "-o", help="Markdown report path"),
    plots_dir: Optional[Path] = typer.Option(None, "--plots-dir", help="Directory for PNG plots"),
    timestamp: bool = typer.Option(True, "--timestamp/--no-timestamp", help="Include generation time"),
    json_summary: Optional[Path] = typer.Option(None, "--json-summary", help="Write a JSON summary"),
):
    """Render a Markdown report (and optional plots) from benchmark output."""
    set_command_context("report")
    summary = generate_report(
        bench_csv,
        out,
        plots_dir=plots_dir,
        include_timestamp=timestamp,
        json_summary=json_summary,
    )
    typer.secho(f"Report → {out} ({summary['bench_variants']} variants)", fg=typer.colors.GREEN)


app.add_typer(presets_app, name="presets")
app.add_typer(profile_app, name="profile")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
