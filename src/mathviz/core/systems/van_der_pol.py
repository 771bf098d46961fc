from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .base import DynamicalSystem, register_system


@dataclass(frozen=True)
class VanDerPolSystem(DynamicalSystem):
    """Self-sustaining oscillator with nonlinear damping: x'' - mu (1 - x^2) x' + x = 0."""

    mu: float

    name = "van_der_pol"
    dimension = 2
    state_labels = ("x", "y")

    def derivative(self, t: float, state: np.ndarray) -> np.ndarray:
        x, y = state
        return np.array([y, self.mu * (1.0 - x * x) * y - x], dtype=np.float64)


register_system(VanDerPolSystem.name, VanDerPolSystem)
