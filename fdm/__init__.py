"""
Explicit conservative finite-difference schemes for scalar 1D conservation
laws ``u_t + f(u)_x = 0``.

The package exposes:

- Equations: Advection, InviscidBurger, ExpressionEquation
- GridState: uniform grid + state with Periodic, Dirichlet or Outflow halos
- Schemes: Upwind, BeamWarming, LaxWendroff, LaxFriedrichs
- Simulation / run_experiments: time stepping and batch sweeps
"""

from .errors import CFLViolation, ConfigurationError, FDMError, LengthMismatchError
from .equations import Advection, Equation, ExpressionEquation, InviscidBurger
from .boundary import Boundary, Dirichlet, Outflow, Periodic
from .ic import InitialCondition
from .grid import GridState
from .schemes import (
    BeamWarming,
    LaxFriedrichs,
    LaxWendroff,
    Scheme,
    Upwind,
    get_scheme,
)
from .simulation import Domain, Experiment, Simulation, SimulationResult, run_experiments

__all__ = [
    "FDMError",
    "ConfigurationError",
    "LengthMismatchError",
    "CFLViolation",
    "Equation",
    "Advection",
    "InviscidBurger",
    "ExpressionEquation",
    "Boundary",
    "Periodic",
    "Dirichlet",
    "Outflow",
    "InitialCondition",
    "GridState",
    "Scheme",
    "Upwind",
    "BeamWarming",
    "LaxWendroff",
    "LaxFriedrichs",
    "get_scheme",
    "Simulation",
    "SimulationResult",
    "Domain",
    "Experiment",
    "run_experiments",
]
