"""Project-wide constants for the trajectory engine."""

LORENZ_SIGMA = 10.0  # Prandtl number
LORENZ_RHO = 28.0    # Rayleigh number
LORENZ_BETA = 8.0 / 3.0

VAN_DER_POL_MU = 1.5

PENDULUM_GAMMA = 0.3
PENDULUM_OMEGA0 = 1.5

ROSSLER_A = 0.2
ROSSLER_B = 0.2
ROSSLER_C = 5.7

DEFAULT_SYSTEM = "lorenz"
DEFAULT_DT = 0.01
DEFAULT_STEPS = 10000

DEFAULT_DIVERGENCE_THRESHOLD = 1.0

VERSION = "1"
