from __future__ import annotations

import hashlib
from typing import Any, Mapping, Sequence

import numpy as np

from mathviz.core.systems.base import DynamicalSystem, get_system
from mathviz.core.systems.damped_pendulum import DampedPendulumSystem
from mathviz.core.systems.lorenz import LorenzSystem
from mathviz.core.systems.rossler import RosslerSystem
from mathviz.core.systems.van_der_pol import VanDerPolSystem
from mathviz.utils.logging import get_logger

logger = get_logger(__name__)


def _run(system: DynamicalSystem, initial: Sequence[float], dt: float, steps: int) -> np.ndarray:
    logger.debug(
        "Solving system=%s params=%s initial=%s dt=%s steps=%s",
        system.name,
        system.params(),
        list(initial),
        dt,
        steps,
    )
    flat = system.solve(initial, dt, steps)
    non_finite = int(np.count_nonzero(~np.isfinite(flat)))
    if non_finite:
        logger.debug("Trajectory for %s contains %d non-finite values", system.name, non_finite)
    return flat


def solve_lorenz(
    sigma: float,
    rho: float,
    beta: float,
    x0: float,
    y0: float,
    z0: float,
    dt: float,
    steps: int,
) -> np.ndarray:
    """Flat [x0, y0, z0, x1, y1, z1, ...] trajectory of the Lorenz system."""
    return _run(LorenzSystem(sigma=sigma, rho=rho, beta=beta), (x0, y0, z0), dt, steps)


def solve_van_der_pol(mu: float, x0: float, y0: float, dt: float, steps: int) -> np.ndarray:
    """Flat [x0, y0, x1, y1, ...] trajectory of the Van der Pol oscillator."""
    return _run(VanDerPolSystem(mu=mu), (x0, y0), dt, steps)


def solve_damped_pendulum(
    gamma: float,
    omega0: float,
    theta0: float,
    omega_init: float,
    dt: float,
    steps: int,
) -> np.ndarray:
    """Flat [theta0, omega0, theta1, omega1, ...] trajectory of the damped pendulum."""
    return _run(DampedPendulumSystem(gamma=gamma, omega0=omega0), (theta0, omega_init), dt, steps)


def solve_rossler(
    a: float,
    b: float,
    c: float,
    x0: float,
    y0: float,
    z0: float,
    dt: float,
    steps: int,
) -> np.ndarray:
    """Flat [x0, y0, z0, x1, y1, z1, ...] trajectory of the Rössler system."""
    return _run(RosslerSystem(a=a, b=b, c=c), (x0, y0, z0), dt, steps)


def solve_system(
    system_id: str,
    params: Mapping[str, Any],
    initial: Sequence[float],
    dt: float,
    steps: int,
) -> np.ndarray:
    system = get_system(system_id).from_params(params)
    return _run(system, initial, dt, steps)


def to_points(flat: np.ndarray, dimension: int) -> np.ndarray:
    """
    Regroup a flat trajectory into (n, 3) points.

    Two-dimensional data gets a constant 0 third coordinate on every point.
    """
    if dimension not in (2, 3):
        raise ValueError(f"dimension must be 2 or 3, got {dimension}")
    data = np.asarray(flat, dtype=np.float64)
    if data.size % dimension:
        raise ValueError(f"flat length {data.size} is not a multiple of {dimension}")
    points = data.reshape(-1, dimension)
    if dimension == 2:
        points = np.column_stack([points, np.zeros(points.shape[0], dtype=np.float64)])
    return points


def trajectory_fingerprint(flat: np.ndarray) -> str:
    """SHA-256 over the float64 trajectory bytes (row-major)."""
    data = np.ascontiguousarray(flat, dtype=np.float64)
    return hashlib.sha256(data.tobytes(order="C")).hexdigest()
