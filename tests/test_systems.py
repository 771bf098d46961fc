import dataclasses

import numpy as np
import pytest

from mathviz.core.systems.base import InvalidParameterError, get_system, list_systems
from mathviz.core.systems.damped_pendulum import DampedPendulumSystem
from mathviz.core.systems.lorenz import LorenzSystem
from mathviz.core.systems.rossler import RosslerSystem
from mathviz.core.systems.van_der_pol import VanDerPolSystem


def test_lorenz_derivative():
    deriv = LorenzSystem(sigma=10.0, rho=28.0, beta=8.0 / 3.0).derivative(0.0, np.array([1.0, 1.0, 1.0]))
    assert deriv[0] == pytest.approx(0.0)
    assert deriv[1] == pytest.approx(26.0)
    assert deriv[2] == pytest.approx(1.0 - 8.0 / 3.0)


def test_van_der_pol_derivative():
    deriv = VanDerPolSystem(mu=1.0).derivative(0.0, np.array([0.0, 1.0]))
    assert deriv.tolist() == pytest.approx([1.0, 1.0])


def test_damped_pendulum_derivative():
    deriv = DampedPendulumSystem(gamma=0.5, omega0=1.0).derivative(0.0, np.array([0.0, 1.0]))
    assert deriv.tolist() == pytest.approx([1.0, -0.5])


def test_rossler_derivative():
    deriv = RosslerSystem(a=0.2, b=0.2, c=5.7).derivative(0.0, np.array([1.0, 1.0, 1.0]))
    assert deriv.tolist() == pytest.approx([-2.0, 1.2, -4.5])


def test_derivatives_ignore_time_for_autonomous_systems():
    state = np.array([0.3, -1.2, 4.0])
    lorenz = LorenzSystem(sigma=10.0, rho=28.0, beta=8.0 / 3.0)
    assert np.array_equal(lorenz.derivative(0.0, state), lorenz.derivative(123.4, state))


def test_registry_lists_all_systems():
    assert list_systems() == ["damped_pendulum", "lorenz", "rossler", "van_der_pol"]
    assert get_system("rossler") is RosslerSystem
    dims = {name: get_system(name).dimension for name in list_systems()}
    assert dims == {"damped_pendulum": 2, "lorenz": 3, "rossler": 3, "van_der_pol": 2}


def test_unknown_system():
    with pytest.raises(ValueError, match="Unknown system"):
        get_system("duffing")


def test_from_params_builds_system():
    system = get_system("damped_pendulum").from_params({"gamma": 0.3, "omega0": 1.5})
    assert system == DampedPendulumSystem(gamma=0.3, omega0=1.5)
    assert system.params() == {"gamma": 0.3, "omega0": 1.5}


def test_from_params_rejects_missing_and_unknown():
    with pytest.raises(InvalidParameterError, match="Missing"):
        LorenzSystem.from_params({"sigma": 10.0, "rho": 28.0})
    with pytest.raises(InvalidParameterError, match="Unknown parameter"):
        VanDerPolSystem.from_params({"mu": 1.0, "nu": 2.0})


def test_systems_are_immutable():
    system = VanDerPolSystem(mu=1.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        system.mu = 2.0


def test_from_params_rejects_non_numeric_values():
    with pytest.raises(InvalidParameterError, match="parameter 'sigma' must be a number, got None"):
        LorenzSystem.from_params({"sigma": None, "rho": 28.0, "beta": 8.0 / 3.0})
    with pytest.raises(InvalidParameterError, match="parameter 'mu' must be a number, got 'abc'"):
        VanDerPolSystem.from_params({"mu": "abc"})
