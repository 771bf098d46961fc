import math

import numpy as np
import pytest

from mathviz.core.systems.base import InvalidParameterError
from mathviz.orchestrator.pipeline import (
    solve_damped_pendulum,
    solve_lorenz,
    solve_rossler,
    solve_system,
    solve_van_der_pol,
    to_points,
    trajectory_fingerprint,
)


def _lorenz_first_step(x, y, z, sigma, rho, beta, dt):
    def f(x, y, z):
        return sigma * (y - x), x * (rho - z) - y, x * y - beta * z

    k1 = f(x, y, z)
    k2 = f(x + k1[0] * dt / 2, y + k1[1] * dt / 2, z + k1[2] * dt / 2)
    k3 = f(x + k2[0] * dt / 2, y + k2[1] * dt / 2, z + k2[2] * dt / 2)
    k4 = f(x + k3[0] * dt, y + k3[1] * dt, z + k3[2] * dt)
    return tuple(
        s + (a + 2 * b + 2 * c + d) * dt / 6
        for s, a, b, c, d in zip((x, y, z), k1, k2, k3, k4)
    )


SOLVES = [
    (lambda steps: solve_lorenz(10.0, 28.0, 8.0 / 3.0, 1.0, 1.0, 1.0, 0.01, steps), 3, [1.0, 1.0, 1.0]),
    (lambda steps: solve_van_der_pol(1.0, 2.0, 0.0, 0.01, steps), 2, [2.0, 0.0]),
    (lambda steps: solve_damped_pendulum(0.5, 1.0, 1.0, 0.0, 0.01, steps), 2, [1.0, 0.0]),
    (lambda steps: solve_rossler(0.2, 0.2, 5.7, 1.0, 1.0, 1.0, 0.01, steps), 3, [1.0, 1.0, 1.0]),
]


@pytest.mark.parametrize("solve,dim,initial", SOLVES)
def test_length_and_initial_state(solve, dim, initial):
    for steps in (0, 1, 100):
        flat = solve(steps)
        assert flat.dtype == np.float64
        assert flat.shape == ((steps + 1) * dim,)
        assert flat[:dim].tolist() == initial


@pytest.mark.parametrize("solve,dim,initial", SOLVES)
def test_solve_is_deterministic(solve, dim, initial):
    a = solve(500)
    b = solve(500)
    assert a.tobytes() == b.tobytes()
    assert trajectory_fingerprint(a) == trajectory_fingerprint(b)


def test_lorenz_first_step_matches_reference():
    flat = solve_lorenz(10.0, 28.0, 8.0 / 3.0, 1.0, 1.0, 1.0, 0.01, 1)
    expected = _lorenz_first_step(1.0, 1.0, 1.0, 10.0, 28.0, 8.0 / 3.0, 0.01)
    for got, want in zip(flat[3:6], expected):
        assert abs(got - want) < 1e-12


def test_lorenz_sensitive_dependence():
    steps = 5000
    a = solve_lorenz(10.0, 28.0, 8.0 / 3.0, 1.0, 1.0, 1.0, 0.01, steps).reshape(-1, 3)
    b = solve_lorenz(10.0, 28.0, 8.0 / 3.0, 1.0 + 1e-8, 1.0, 1.0, 0.01, steps).reshape(-1, 3)
    dist = np.linalg.norm(a - b, axis=1)
    assert dist[:50].max() < 1e-6
    assert dist[-1000:].max() > 1.0


def test_damped_pendulum_converges_to_rest():
    pts = solve_damped_pendulum(0.5, 1.0, 0.1, 0.0, 0.01, 5000).reshape(-1, 2)
    early_omega = np.abs(pts[:500, 1]).max()
    late_omega = np.abs(pts[-500:, 1]).max()
    assert late_omega < 0.01 * early_omega
    norms = np.linalg.norm(pts, axis=1)
    assert norms[-1] < norms[0]


def test_two_dimensional_points_get_zero_third_coordinate():
    for flat in (
        solve_van_der_pol(1.5, 2.0, 0.0, 0.02, 200),
        solve_damped_pendulum(0.3, 1.5, math.pi - 0.5, 0.0, 0.02, 200),
    ):
        points = to_points(flat, 2)
        assert points.shape == (201, 3)
        assert np.all(points[:, 2] == 0.0)
        assert np.array_equal(points[:, :2].reshape(-1), flat)


def test_three_dimensional_points_keep_flat_order():
    flat = solve_rossler(0.2, 0.2, 5.7, 1.0, 1.0, 1.0, 0.02, 50)
    points = to_points(flat, 3)
    assert points.shape == (51, 3)
    assert np.array_equal(points.reshape(-1), flat)


def test_to_points_rejects_bad_input():
    with pytest.raises(ValueError):
        to_points(np.zeros(5), 2)
    with pytest.raises(ValueError):
        to_points(np.zeros(4), 4)


def test_solve_system_matches_named_entry_point():
    named = solve_rossler(0.2, 0.2, 5.7, 1.0, 1.0, 1.0, 0.02, 300)
    generic = solve_system("rossler", {"a": 0.2, "b": 0.2, "c": 5.7}, [1.0, 1.0, 1.0], 0.02, 300)
    assert np.array_equal(named, generic)


def test_zero_dt_is_constant():
    flat = solve_lorenz(10.0, 28.0, 8.0 / 3.0, 1.0, 2.0, 3.0, 0.0, 10).reshape(-1, 3)
    assert np.all(flat == np.array([1.0, 2.0, 3.0]))


def test_negative_dt_is_accepted():
    flat = solve_van_der_pol(1.0, 2.0, 0.0, -0.01, 10)
    assert flat.shape == (22,)
    assert np.all(np.isfinite(flat))


def test_non_finite_initial_state_propagates():
    flat = solve_lorenz(10.0, 28.0, 8.0 / 3.0, float("nan"), 1.0, 1.0, 0.01, 20)
    assert flat.shape == (63,)
    assert np.isnan(flat[-3:]).all()


@pytest.mark.parametrize("steps", [-1, 2.5, "10", True])
def test_invalid_steps_rejected(steps):
    with pytest.raises(InvalidParameterError):
        solve_van_der_pol(1.0, 2.0, 0.0, 0.01, steps)


def test_wrong_initial_dimension_rejected():
    with pytest.raises(InvalidParameterError):
        solve_system("lorenz", {"sigma": 10.0, "rho": 28.0, "beta": 8.0 / 3.0}, [1.0, 1.0], 0.01, 10)
    with pytest.raises(InvalidParameterError):
        solve_system("van_der_pol", {"mu": 1.0}, [1.0, 1.0, 0.0], 0.01, 10)


def test_unknown_system_rejected():
    with pytest.raises(ValueError, match="Unknown system"):
        solve_system("chua", {}, [0.0, 0.0, 0.0], 0.01, 10)
