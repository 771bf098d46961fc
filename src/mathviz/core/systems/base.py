from __future__ import annotations

import numbers
from abc import ABC, abstractmethod
from dataclasses import fields
from typing import Any, ClassVar, Dict, List, Mapping, Sequence, Tuple, Type

import numpy as np

from mathviz.core.ode.rk4 import integrate


class InvalidParameterError(ValueError):
    """Raised when solve inputs are rejected before integration starts."""


class DynamicalSystem(ABC):
    """
    Base class for autonomous ODE vector fields.

    Subclasses are frozen dataclasses whose fields are the physical parameters.
    """

    name: ClassVar[str]
    dimension: ClassVar[int]
    state_labels: ClassVar[Tuple[str, ...]]

    @abstractmethod
    def derivative(self, t: float, state: np.ndarray) -> np.ndarray:
        """Return d(state)/dt at time t."""
        ...

    @classmethod
    def param_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "DynamicalSystem":
        expected = cls.param_names()
        unknown = sorted(set(params) - set(expected))
        if unknown:
            raise InvalidParameterError(
                f"Unknown parameter(s) {unknown} for '{cls.name}'. Expected: {expected}"
            )
        missing = [p for p in expected if p not in params]
        if missing:
            raise InvalidParameterError(f"Missing parameter(s) {missing} for '{cls.name}'")
        values: Dict[str, float] = {}
        for p in expected:
            try:
                values[p] = float(params[p])
            except (TypeError, ValueError) as exc:
                raise InvalidParameterError(
                    f"parameter '{p}' must be a number, got {params[p]!r}"
                ) from exc
        return cls(**values)

    def params(self) -> Dict[str, float]:
        return {p: getattr(self, p) for p in self.param_names()}

    def solve(self, initial: Sequence[float], dt: float, steps: int) -> np.ndarray:
        """Integrate from ``initial`` and return the flat row-major trajectory."""
        check_steps(steps)
        state = check_initial(initial, self.dimension)
        return integrate(self.derivative, state, float(dt), int(steps)).reshape(-1)


def check_steps(steps: Any) -> None:
    if isinstance(steps, bool) or not isinstance(steps, numbers.Integral):
        raise InvalidParameterError(f"steps must be an integer, got {type(steps).__name__}")
    if steps < 0:
        raise InvalidParameterError(f"steps must be >= 0, got {steps}")


def check_initial(initial: Sequence[float], dimension: int) -> np.ndarray:
    state = np.asarray(initial, dtype=np.float64)
    if state.ndim != 1 or state.shape[0] != dimension:
        raise InvalidParameterError(
            f"initial state must have {dimension} components, got {list(np.atleast_1d(state))}"
        )
    return state


SYSTEM_REGISTRY: Dict[str, Type[DynamicalSystem]] = {}


def register_system(name: str, cls: Type[DynamicalSystem]) -> Type[DynamicalSystem]:
    SYSTEM_REGISTRY[name] = cls
    return cls


def get_system(name: str) -> Type[DynamicalSystem]:
    if name not in SYSTEM_REGISTRY:
        raise ValueError(f"Unknown system '{name}'. Available: {list_systems()}")
    return SYSTEM_REGISTRY[name]


def list_systems() -> List[str]:
    return sorted(SYSTEM_REGISTRY.keys())
