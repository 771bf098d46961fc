from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .base import DynamicalSystem, register_system


@dataclass(frozen=True)
class RosslerSystem(DynamicalSystem):
    """Single-band chaotic attractor: x' = -y - z, y' = x + a y, z' = b + z (x - c)."""

    a: float
    b: float
    c: float

    name = "rossler"
    dimension = 3
    state_labels = ("x", "y", "z")

    def derivative(self, t: float, state: np.ndarray) -> np.ndarray:
        x, y, z = state
        return np.array([-y - z, x + self.a * y, self.b + z * (x - self.c)], dtype=np.float64)


register_system(RosslerSystem.name, RosslerSystem)
