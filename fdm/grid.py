from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Tuple, Union

import numpy as np

from .boundary import Boundary, Periodic
from .equations import Equation
from .errors import ConfigurationError, LengthMismatchError
from .ic import InitialCondition


Array = np.ndarray
InitFunc = Union[Callable[[float], float], InitialCondition]

# Guard against lo + k*dx landing a rounding error below hi.
_RANGE_TOL = 1e-9


def _read_only(arr: Array) -> Array:
    view = arr.view()
    view.flags.writeable = False
    return view


@dataclass(eq=False)
class GridState:
    """
    Uniform 1D grid together with the current discrete state.

    Parameters
    ----------
    dx:
        Grid spacing (positive).
    dt:
        Time step (positive).
    x_range:
        Half-open interval ``(lo, hi)``. Grid points are ``lo + k*dx`` for
        every ``k`` with ``lo + k*dx < hi``; ``lo`` is always a grid point.
    init:
        Initial state. A plain callable is applied to each grid point in
        turn; an :class:`~fdm.ic.InitialCondition` is evaluated on the whole
        grid at once.
    boundary:
        Boundary-extension policy used to build halo views. Defaults to
        :class:`~fdm.boundary.Periodic`.

    Design
    ------
    The state is only ever replaced as a whole via :meth:`set_state`, so a
    scheme reading the old state never sees half-updated values, and earlier
    arrays handed out by :attr:`state` stay valid.
    """

    dx: float
    dt: float
    x_range: Tuple[float, float]
    init: InitFunc = field(repr=False)
    boundary: Boundary = field(default_factory=Periodic)

    _grid: Array = field(init=False, repr=False)
    _state: Array = field(init=False, repr=False)

    def __post_init__(self) -> None:
        lo, hi = (float(v) for v in self.x_range)
        dx = float(self.dx)
        dt = float(self.dt)

        if not (math.isfinite(dx) and dx > 0.0):
            raise ConfigurationError(f"dx must be positive, got {self.dx!r}.")
        if not (math.isfinite(dt) and dt > 0.0):
            raise ConfigurationError(f"dt must be positive, got {self.dt!r}.")
        if not (math.isfinite(lo) and math.isfinite(hi)) or hi <= lo:
            raise ConfigurationError(
                f"x_range must satisfy lo < hi, got ({self.x_range[0]!r}, {self.x_range[1]!r})."
            )
        if not isinstance(self.boundary, Boundary):
            raise ConfigurationError(f"Unsupported boundary {self.boundary!r}.")

        self.dx, self.dt, self.x_range = dx, dt, (lo, hi)

        # lo itself is always sampled, however narrow the range
        n = max(1, int(math.ceil((hi - lo) / dx - _RANGE_TOL)))
        grid = lo + dx * np.arange(n, dtype=float)
        self._grid = _read_only(grid)

        if isinstance(self.init, InitialCondition):
            state = self.init.evaluate(grid)
        else:
            state = np.fromiter((self.init(x) for x in grid), dtype=float, count=grid.size)
        self._state = _read_only(np.array(state, dtype=float))

        if self._state.shape != self._grid.shape:
            raise LengthMismatchError(
                f"Initial state has shape {self._state.shape}, expected {self._grid.shape}."
            )

    # ------------------------------------------------------------------
    # Basic properties
    # ------------------------------------------------------------------
    @property
    def grid(self) -> Array:
        """Read-only grid coordinates."""
        return self._grid

    @property
    def state(self) -> Array:
        """Read-only current state, aligned with :attr:`grid`."""
        return self._state

    def __len__(self) -> int:
        return self._state.shape[0]

    def dt_over_dx(self) -> float:
        return self.dt / self.dx

    # ------------------------------------------------------------------
    # State replacement
    # ------------------------------------------------------------------
    def set_state(self, new_state) -> None:
        """
        Replace the whole state vector.

        Raises
        ------
        LengthMismatchError
            If ``new_state`` does not have one value per grid point. The
            current state is left untouched.
        """
        arr = np.array(new_state, dtype=float)
        if arr.ndim != 1 or arr.shape[0] != len(self):
            raise LengthMismatchError(
                f"New state has shape {arr.shape}, expected ({len(self)},)."
            )
        self._state = _read_only(arr)

    # ------------------------------------------------------------------
    # Halo views
    # ------------------------------------------------------------------
    def extended_state(self, halo: int) -> Array:
        """State padded with ``halo`` ghost cells per side by the boundary policy."""
        return self.boundary.extend(self._state, halo)

    def extended_flux(self, equation: Equation, halo: int) -> Array:
        """``equation.f`` evaluated on :meth:`extended_state`."""
        f = np.asarray(equation.f(self.extended_state(halo)), dtype=float)
        if f.shape != (len(self) + 2 * halo,):
            raise LengthMismatchError(
                f"Flux of {equation!r} has shape {f.shape}, expected ({len(self) + 2 * halo},)."
            )
        return f

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def with_dt(self, dt: float) -> "GridState":
        """
        Copy of this container with another time step and the current state.
        """
        other = replace(self, dt=dt, init=InitialCondition.from_values(self._state))
        return other

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable description of the grid parameters."""
        return {
            "dx": self.dx,
            "dt": self.dt,
            "x_range": list(self.x_range),
            "nx": len(self),
            "boundary": self.boundary.to_dict(),
        }
