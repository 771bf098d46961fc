import math

import numpy as np

from mathviz.core.ode.rk4 import integrate, rk4_step


def test_exponential_decay():
    # dy/dt = -y, y(0) = 1  ->  y(1) = e^-1
    traj = integrate(lambda t, y: -y, [1.0], 0.01, 100)
    assert traj.shape == (101, 1)
    assert abs(traj[100, 0] - math.exp(-1.0)) < 1e-6


def test_simple_harmonic_oscillator_full_period():
    # x' = v, v' = -x from (1, 0) returns close to (1, 0) after ~2*pi
    def f(t, y):
        return np.array([y[1], -y[0]])

    traj = integrate(f, [1.0, 0.0], 0.01, 628)
    assert abs(traj[-1, 0] - 1.0) < 0.01
    assert abs(traj[-1, 1]) < 0.01


def test_time_argument_is_threaded():
    # dy/dt = t is integrated exactly by RK4: y(t) = t^2 / 2
    traj = integrate(lambda t, y: np.array([t]), [0.0], 0.1, 20)
    times = np.arange(21) * 0.1
    assert np.allclose(traj[:, 0], times**2 / 2.0, rtol=0, atol=1e-12)


def test_step_does_not_mutate_input():
    y = np.array([1.0, 2.0, 3.0])
    before = y.copy()
    nxt = rk4_step(lambda t, s: s * 0.5, 0.0, y, 0.1)
    assert np.array_equal(y, before)
    assert nxt is not y
    assert not np.array_equal(nxt, y)


def test_zero_dt_gives_constant_trajectory():
    traj = integrate(lambda t, y: -y, [3.0, -2.0], 0.0, 10)
    assert np.all(traj == np.array([3.0, -2.0]))


def test_negative_dt_integrates_backward():
    # y' = -y backward from y(0) = 1 gives y(-1) = e
    traj = integrate(lambda t, y: -y, [1.0], -0.01, 100)
    assert abs(traj[-1, 0] - math.e) < 1e-6


def test_zero_steps_returns_initial_only():
    traj = integrate(lambda t, y: y, [1.5, 2.5], 0.01, 0)
    assert traj.shape == (1, 2)
    assert traj[0].tolist() == [1.5, 2.5]


def test_non_finite_values_propagate_without_error():
    traj = integrate(lambda t, y: y * y, [1e200], 1.0, 5)
    assert traj.shape == (6, 1)
    assert not np.isfinite(traj[-1, 0])
