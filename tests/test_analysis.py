import numpy as np
import pytest

from mathviz.analysis.runner import (
    analyze_run,
    divergence_profile,
    first_exceeding,
    late_amplitude,
    trajectory_stats,
)


def test_trajectory_stats_simple_line():
    flat = np.array([0.0, 0.0, 3.0, 4.0, 6.0, 8.0])
    stats = trajectory_stats(flat, 2, labels=["x", "y"], dt=0.5)
    assert stats["points"] == 3
    assert stats["non_finite"] == 0
    assert stats["axes"]["x"] == {"min": 0.0, "max": 6.0, "mean": 3.0}
    assert stats["mean_step"] == pytest.approx(5.0)
    assert stats["mean_speed"] == pytest.approx(10.0)


def test_trajectory_stats_counts_non_finite():
    flat = np.array([1.0, 2.0, np.nan, np.inf])
    stats = trajectory_stats(flat, 2)
    assert stats["non_finite"] == 2
    assert stats["axes"]["axis0"]["max"] == 1.0
    assert stats["mean_step"] is None


def test_divergence_profile_and_threshold():
    a = np.array([0.0, 0.0, 0.0, 0.0, 0.0, 0.0])
    b = np.array([0.0, 0.0, 0.0, 0.5, 3.0, 4.0])
    dist = divergence_profile(a, b, 2)
    assert dist.tolist() == pytest.approx([0.0, 0.5, 5.0])
    assert first_exceeding(dist, 1.0) == 2
    assert first_exceeding(dist, 10.0) is None


def test_divergence_profile_shape_mismatch():
    with pytest.raises(ValueError):
        divergence_profile(np.zeros(6), np.zeros(9), 3)


def test_late_amplitude():
    flat = np.array([5.0, -4.0, 1.0, 0.5, 0.2, -0.3])
    assert late_amplitude(flat, 2, axis=1, window=2) == pytest.approx(0.5)
    with pytest.raises(ValueError):
        late_amplitude(flat, 2, axis=1, window=0)


def test_analyze_run_reports_lorenz_divergence():
    result = analyze_run(
        "lorenz",
        {"sigma": 10.0, "rho": 28.0, "beta": 8.0 / 3.0},
        [1.0, 1.0, 1.0],
        0.01,
        4000,
        labels=("x", "y", "z"),
        perturb=1e-8,
        threshold=1.0,
    )
    div = result["divergence"]
    assert div["initial_distance"] == pytest.approx(1e-8)
    assert div["early_max_distance"] < 1e-6
    assert div["first_index_over_threshold"] is not None
    assert result["stats"]["points"] == 4001
    assert len(result["trajectory_sha256"]) == 64


def test_analyze_run_late_window_for_constant_trajectory():
    result = analyze_run(
        "van_der_pol",
        {"mu": 1.0},
        [0.0, 0.0],
        0.01,
        99,
        labels=("x", "y"),
        perturb=0.5,
    )
    assert result["late_window"] == {"points": 10, "amplitude": {"x": 0.0, "y": 0.0}}
    assert result["divergence"]["late_max_distance"] > 0.0
