from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from mathviz.core import constants


@dataclass(frozen=True)
class Preset:
    """Named parameter set, initial condition and step configuration for one system."""

    id: str
    name: str
    short_description: str
    dimension: int
    params: Dict[str, float]
    initial: Tuple[float, ...]
    dt: float
    steps: int
    param_labels: Dict[str, str] = field(default_factory=dict)
    full_description: str = ""
    fun_fact: str = ""

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "short_description": self.short_description,
            "full_description": self.full_description,
            "fun_fact": self.fun_fact,
            "dimension": self.dimension,
            "params": dict(self.params),
            "param_labels": dict(self.param_labels),
            "initial": list(self.initial),
            "dt": self.dt,
            "steps": self.steps,
        }


PRESET_REGISTRY: Dict[str, Preset] = {}


def register_preset(preset: Preset) -> None:
    PRESET_REGISTRY[preset.id] = preset


def get_preset(system_id: str) -> Preset:
    if system_id not in PRESET_REGISTRY:
        raise ValueError(f"Unknown preset '{system_id}'. Available: {list_presets()}")
    return PRESET_REGISTRY[system_id]


def list_presets() -> List[str]:
    return sorted(PRESET_REGISTRY.keys())


register_preset(
    Preset(
        id="lorenz",
        name="Lorenz Attractor",
        short_description="The butterfly effect in action",
        full_description=(
            "The Lorenz attractor is a set of chaotic solutions to the Lorenz system, a simplified "
            "model of atmospheric convection. It demonstrates how tiny changes in initial conditions "
            "can lead to vastly different outcomes - the famous 'butterfly effect'. The system never "
            "settles into a steady state or repeats exactly, yet it follows a beautiful "
            "butterfly-shaped pattern."
        ),
        fun_fact=(
            "Discovered by meteorologist Edward Lorenz in 1963 while modeling weather patterns. He "
            "found that rounding a number from 0.506127 to 0.506 completely changed the weather "
            "prediction!"
        ),
        dimension=3,
        params={
            "sigma": constants.LORENZ_SIGMA,
            "rho": constants.LORENZ_RHO,
            "beta": constants.LORENZ_BETA,
        },
        param_labels={
            "sigma": "σ (Prandtl number)",
            "rho": "ρ (Rayleigh number)",
            "beta": "β (geometric factor)",
        },
        initial=(1.0, 1.0, 1.0),
        dt=constants.DEFAULT_DT,
        steps=constants.DEFAULT_STEPS,
    )
)
register_preset(
    Preset(
        id="van_der_pol",
        name="Van der Pol Oscillator",
        short_description="Self-sustaining electronic heartbeat",
        full_description=(
            "The Van der Pol oscillator is a non-conservative oscillator with nonlinear damping. "
            "Unlike a simple pendulum that eventually stops, this system maintains its oscillation "
            "indefinitely. It was originally developed to describe electrical circuits with vacuum "
            "tubes, but the same mathematics describes heartbeat rhythms and other biological "
            "oscillators."
        ),
        fun_fact=(
            "The Van der Pol equation has been used to model the human heartbeat. When μ is small, "
            "the oscillation is nearly sinusoidal (like a healthy heart). When μ is large, you get "
            "'relaxation oscillations' with sudden jumps - similar to abnormal heart rhythms!"
        ),
        dimension=2,
        params={"mu": constants.VAN_DER_POL_MU},
        param_labels={"mu": "μ (nonlinearity strength)"},
        initial=(2.0, 0.0),
        dt=0.02,
        steps=5000,
    )
)
register_preset(
    Preset(
        id="damped_pendulum",
        name="Damped Pendulum",
        short_description="Energy slowly fading to stillness",
        full_description=(
            "The damped pendulum models a pendulum swinging through a resistive medium like air or "
            "oil. Unlike an ideal pendulum that swings forever, this system gradually loses energy to "
            "friction and eventually comes to rest. The phase space shows a spiral converging to the "
            "origin - the pendulum's final resting position."
        ),
        fun_fact=(
            "The grandfather clock uses a clever mechanism to add tiny amounts of energy to "
            "compensate for damping, keeping the pendulum swinging with remarkably constant period. "
            "Without this, even the best pendulum would stop within hours!"
        ),
        dimension=2,
        params={"gamma": constants.PENDULUM_GAMMA, "omega0": constants.PENDULUM_OMEGA0},
        param_labels={"gamma": "γ (damping coefficient)", "omega0": "ω₀ (natural frequency)"},
        initial=(math.pi - 0.5, 0.0),
        dt=0.02,
        steps=5000,
    )
)
register_preset(
    Preset(
        id="rossler",
        name="Rössler System",
        short_description="Chaos in its simplest form",
        full_description=(
            "The Rössler system was designed by Otto Rössler in 1976 as the simplest possible chaotic "
            "system. Unlike the Lorenz attractor which has two symmetric 'wings', the Rössler "
            "attractor has a single band that folds and stretches in a beautiful spiral pattern. It's "
            "easier to analyze mathematically but still exhibits rich chaotic behavior."
        ),
        fun_fact=(
            "Otto Rössler, a biochemist, created this system specifically to be the 'simplest' "
            "chaotic attractor. He was inspired by a taffy-pulling machine - the stretching and "
            "folding action is what creates chaos!"
        ),
        dimension=3,
        params={"a": constants.ROSSLER_A, "b": constants.ROSSLER_B, "c": constants.ROSSLER_C},
        param_labels={"a": "a", "b": "b", "c": "c"},
        initial=(1.0, 1.0, 1.0),
        dt=0.02,
        steps=10000,
    )
)
