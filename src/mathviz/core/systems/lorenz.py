from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .base import DynamicalSystem, register_system


@dataclass(frozen=True)
class LorenzSystem(DynamicalSystem):
    """
    Lorenz convection model.

    dx/dt = sigma (y - x)
    dy/dt = x (rho - z) - y
    dz/dt = x y - beta z
    """

    sigma: float
    rho: float
    beta: float

    name = "lorenz"
    dimension = 3
    state_labels = ("x", "y", "z")

    def derivative(self, t: float, state: np.ndarray) -> np.ndarray:
        x, y, z = state
        return np.array(
            [
                self.sigma * (y - x),
                x * (self.rho - z) - y,
                x * y - self.beta * z,
            ],
            dtype=np.float64,
        )


register_system(LorenzSystem.name, LorenzSystem)
