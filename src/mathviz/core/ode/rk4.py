from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

DerivativeFn = Callable[[float, np.ndarray], np.ndarray]


def rk4_step(f: DerivativeFn, t: float, y: np.ndarray, dt: float) -> np.ndarray:
    """
    Advance ``y`` by one classical Runge-Kutta step of size ``dt``.

    Works for any state width. ``y`` is left untouched; a new array is returned.
    """
    half = dt / 2.0
    k1 = f(t, y)
    k2 = f(t + half, y + k1 * half)
    k3 = f(t + half, y + k2 * half)
    k4 = f(t + dt, y + k3 * dt)
    return y + (k1 + 2.0 * k2 + 2.0 * k3 + k4) * (dt / 6.0)


def integrate(
    f: DerivativeFn,
    initial: Sequence[float],
    dt: float,
    steps: int,
) -> np.ndarray:
    """
    Fixed-step RK4 integration.

    Returns an array of shape (steps + 1, dim): row 0 is the initial state and row i the
    state after i steps, stepped from time (i - 1) * dt. Non-finite values are carried
    through unchanged.
    """
    y = np.array(initial, dtype=np.float64)
    out = np.empty((steps + 1, y.shape[0]), dtype=np.float64, order="C")
    out[0] = y
    # Overflow to inf/nan is a valid trajectory value here
    with np.errstate(over="ignore", invalid="ignore"):
        for i in range(1, steps + 1):
            y = rk4_step(f, (i - 1) * dt, y, dt)
            out[i] = y
    return out
