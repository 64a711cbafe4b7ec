"""
Diagnostics for comparing schemes: discrete norms, total variation, mass,
Courant numbers and reference solutions.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

import numpy as np
from scipy.optimize import newton

from .equations import Equation
from .grid import GridState


def compute_norms(u: np.ndarray, dx: float = 1.0) -> Dict[str, float]:
    """Discrete L1, L2 and Linf norms of a 1D array with cell width ``dx``."""
    u = np.asarray(u, dtype=float)
    if u.ndim != 1:
        raise ValueError("compute_norms expects a 1D array")
    uabs = np.abs(u)
    l1 = dx * np.sum(uabs)
    l2 = math.sqrt(dx * np.sum(u * u))
    linf = float(np.max(uabs)) if u.size else 0.0
    return {"L1": float(l1), "L2": float(l2), "Linf": linf}


def total_variation(u: np.ndarray, periodic: bool = True) -> float:
    """
    Total variation ``sum |u_{j+1} - u_j|``.

    With ``periodic`` the jump between the last and the first value counts
    too. Monotone schemes never increase it; Lax-Wendroff overshoots do.
    """
    u = np.asarray(u, dtype=float)
    tv = float(np.sum(np.abs(np.diff(u))))
    if periodic and u.size > 1:
        tv += float(abs(u[0] - u[-1]))
    return tv


def total_mass(u: np.ndarray, dx: float = 1.0) -> float:
    """Discrete integral ``dx * sum(u)``; conserved under periodic boundaries."""
    return float(dx * np.sum(np.asarray(u, dtype=float)))


def cfl_number(grid_state: GridState, equation: Equation) -> float:
    """Largest ``|df(u)| * dt/dx`` over the current state."""
    speeds = np.abs(np.asarray(equation.df(grid_state.state), dtype=float))
    return float(np.max(speeds)) * grid_state.dt_over_dx()


# ----------------------------------------------------------------------
# Reference solutions
# ----------------------------------------------------------------------
def advection_exact(
    x: np.ndarray,
    t: float,
    a: float,
    init: Callable[[np.ndarray], np.ndarray],
    period: Optional[float] = None,
    x0: float = 0.0,
) -> np.ndarray:
    """
    Exact solution ``u0(x - a t)`` of linear advection.

    With ``period`` set the shifted coordinate is wrapped back into
    ``[x0, x0 + period)``.
    """
    xi = np.asarray(x, dtype=float) - a * t
    if period is not None:
        xi = x0 + np.mod(xi - x0, period)
    return np.asarray(init(xi), dtype=float)


def burgers_exact(
    x: np.ndarray,
    t: float,
    init: Callable[[np.ndarray], np.ndarray],
    dinit: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    tol: float = 1e-12,
    maxiter: int = 100,
) -> np.ndarray:
    """
    Smooth solution of inviscid Burgers' equation by characteristics.

    Solves ``xi + t * u0(xi) = x`` for the foot ``xi`` of the characteristic
    through each ``x`` and returns ``u0(xi)``. Only valid before the first
    shock forms, i.e. for ``t < -1 / min(u0')``.

    Parameters
    ----------
    init:
        Initial profile ``u0``; must accept arrays.
    dinit:
        Optional derivative ``u0'`` enabling Newton iterations; without it
        the secant method is used.
    """
    x = np.asarray(x, dtype=float)
    if t == 0.0:
        return np.asarray(init(x), dtype=float)

    def residual(xi):
        return xi + t * init(xi) - x

    fprime = None
    if dinit is not None:
        def fprime(xi):
            return 1.0 + t * dinit(xi)

    # start from the foot of the initial characteristic slope
    xi0 = x - t * np.asarray(init(x), dtype=float)
    xi = newton(residual, xi0, fprime=fprime, tol=tol, maxiter=maxiter)
    return np.asarray(init(xi), dtype=float)


def error_norms(numerical: np.ndarray, exact: np.ndarray, dx: float) -> Dict[str, float]:
    """Norms of ``numerical - exact``."""
    diff = np.asarray(numerical, dtype=float) - np.asarray(exact, dtype=float)
    return compute_norms(diff, dx)


def write_metrics_json(
    out_dir: Path | str,
    scheme: str,
    nx: int,
    dt: float,
    cfl: float,
    norms_over_time: Dict[str, Iterable[float]],
    extras: Optional[Dict[str, float]] = None,
) -> Path:
    """
    Persist a compact metrics.json into the run output directory.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    payload = {
        "scheme": scheme,
        "nx": int(nx),
        "dt": float(dt),
        "cfl": float(cfl),
        "norms": {k: list(map(float, v)) for k, v in norms_over_time.items()},
    }
    if extras:
        payload["extras"] = {k: float(v) for k, v in extras.items()}

    metrics_path = out_dir / "metrics.json"
    with metrics_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    return metrics_path
