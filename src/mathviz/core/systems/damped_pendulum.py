from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .base import DynamicalSystem, register_system


@dataclass(frozen=True)
class DampedPendulumSystem(DynamicalSystem):
    """
    Pendulum with linear friction, state (theta, omega).

    gamma is the damping coefficient, omega0 the natural frequency.
    """

    gamma: float
    omega0: float

    name = "damped_pendulum"
    dimension = 2
    state_labels = ("theta", "omega")

    def derivative(self, t: float, state: np.ndarray) -> np.ndarray:
        theta, omega = state
        return np.array(
            [omega, -self.gamma * omega - self.omega0 * self.omega0 * np.sin(theta)],
            dtype=np.float64,
        )


register_system(DampedPendulumSystem.name, DampedPendulumSystem)
