from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from .equations import Equation
from .errors import CFLViolation, ConfigurationError
from .grid import GridState


Array = np.ndarray
FluxPair = Tuple[Array, Array]


class Scheme:
    """
    Abstract explicit conservative scheme.

    A scheme only has to provide :meth:`flux`, the numerical fluxes
    ``(h_minus, h_plus)`` at the left and right interface of every cell.
    :meth:`run` then applies the conservative update

        u_j^{n+1} = u_j - dt/dx * (h_{j+1/2} - h_{j-1/2})

    Schemes are stateless; :meth:`run` never modifies its inputs and returns a
    freshly allocated state.
    """

    name: str = "scheme"

    # ------------------------------------------------------------------
    # Shared characteristic speed estimate
    # ------------------------------------------------------------------
    def speed(self, grid_state: GridState, equation: Equation, ext: int = 0) -> FluxPair:
        """
        Local Courant numbers at the left and right interface of each cell.

        The speed at an interface is the discrete Rankine-Hugoniot slope
        ``(f_{j+1} - f_j) / (u_{j+1} - u_j)``, or ``df(u_j)`` where the two
        states coincide exactly. It is scaled by ``dt/dx``.

        Parameters
        ----------
        grid_state:
            Current grid and state.
        equation:
            Conservation law providing ``f`` and ``df``.
        ext:
            Extra halo cells the calling flux formula needs on each side.

        Returns
        -------
        (v_minus, v_plus):
            Arrays of length ``N + 2*ext``; ``v_minus[j]`` belongs to the
            interface ``j-1/2`` and ``v_plus[j]`` to ``j+1/2`` (indices
            counted on the ``ext``-extended grid).

        Raises
        ------
        CFLViolation
            If any ``|v|`` exceeds one.
        """
        u = grid_state.extended_state(ext + 1)
        f = grid_state.extended_flux(equation, ext + 1)

        du = np.diff(u)
        dfl = np.diff(f)

        # analytic derivative where the difference quotient is 0/0
        slope = np.asarray(equation.df(u[:-1]), dtype=float) + np.zeros_like(du)
        np.divide(dfl, du, out=slope, where=du != 0.0)

        v = slope * grid_state.dt_over_dx()

        abs_v = np.abs(v)
        # NaN compares False, so check the complement of the bound
        bad = ~(abs_v <= 1.0)
        if np.any(bad):
            idx = int(np.argmax(np.where(bad, np.nan_to_num(abs_v, nan=np.inf), -np.inf)))
            raise CFLViolation(abs_v[idx], idx)

        return v[:-1], v[1:]

    # ------------------------------------------------------------------
    # Conservative update
    # ------------------------------------------------------------------
    def run(self, grid_state: GridState, equation: Equation) -> Array:
        """Advance ``grid_state.state`` by one time step and return the new state."""
        h_neg, h_pos = self.flux(grid_state, equation)
        u = grid_state.extended_state(0)
        return u - grid_state.dt_over_dx() * (h_pos - h_neg)

    def flux(self, grid_state: GridState, equation: Equation) -> FluxPair:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Upwind(Scheme):
    """
    First-order upwind scheme.

    The numerical flux at an interface is the physical flux of the cell the
    characteristic comes from:

        h_{j+1/2} = f_j      if v_{j+1/2} > 0
                    f_{j+1}  otherwise

    Monotone and strongly diffusive.
    """

    name = "upwind"

    def flux(self, grid_state: GridState, equation: Equation) -> FluxPair:
        f = grid_state.extended_flux(equation, 1)
        v_neg, v_pos = self.speed(grid_state, equation)

        f_prev, f_j, f_next = f[:-2], f[1:-1], f[2:]

        h_pos = np.where(v_pos > 0, f_j, f_next)
        h_neg = np.where(v_neg > 0, f_prev, f_j)
        return h_neg, h_pos


class BeamWarming(Scheme):
    """
    Beam-Warming: second-order, upwind-biased extrapolation.

    For ``v_{j+1/2} > 0``

        h_{j+1/2} = (3 f_j - f_{j-1}) / 2 - v_{j-1/2} (f_j - f_{j-1}) / 2

    and for ``v_{j+1/2} <= 0`` the mirror image, anchored on cell ``j+1``

        h_{j+1/2} = (3 f_{j+1} - f_{j+2}) / 2 - v_{j+3/2} (f_{j+2} - f_{j+1}) / 2

    The five-point stencil needs two ghost cells and interface speeds one
    cell beyond the physical grid.
    """

    name = "beam_warming"

    def flux(self, grid_state: GridState, equation: Equation) -> FluxPair:
        n = len(grid_state)
        f = grid_state.extended_flux(equation, 2)  # cells -2 .. n+1
        v_neg, v_pos = self.speed(grid_state, equation, ext=1)  # cells -1 .. n

        # Right-interface flux for cells -1 .. n-1; h_minus of cell j is the
        # right-interface flux of cell j-1.
        f_prev = f[0 : n + 1]
        f_j = f[1 : n + 2]
        f_next = f[2 : n + 3]
        f_next2 = f[3 : n + 4]

        vn_j = v_neg[0 : n + 1]
        vp_j = v_pos[0 : n + 1]
        vp_next = v_pos[1 : n + 2]

        h_right = np.where(
            vp_j > 0,
            0.5 * (3.0 * f_j - f_prev) - 0.5 * vn_j * (f_j - f_prev),
            0.5 * (3.0 * f_next - f_next2) - 0.5 * vp_next * (f_next2 - f_next),
        )
        return h_right[:-1], h_right[1:]


class LaxWendroff(Scheme):
    """
    Richtmyer two-step Lax-Wendroff.

        h_{j+1/2} = f( (u_{j+1} + u_j)/2 - dt/(2 dx) (f_{j+1} - f_j) )

    Centered and second order; oscillates near discontinuities.
    """

    name = "lax_wendroff"

    def flux(self, grid_state: GridState, equation: Equation) -> FluxPair:
        self.speed(grid_state, equation)
        half = 0.5 * grid_state.dt_over_dx()

        u = grid_state.extended_state(1)
        f = grid_state.extended_flux(equation, 1)
        u_prev, u_j, u_next = u[:-2], u[1:-1], u[2:]
        f_prev, f_j, f_next = f[:-2], f[1:-1], f[2:]

        h_pos = equation.f(0.5 * (u_next + u_j) - half * (f_next - f_j))
        h_neg = equation.f(0.5 * (u_j + u_prev) - half * (f_j - f_prev))
        return np.asarray(h_neg, dtype=float), np.asarray(h_pos, dtype=float)


class LaxFriedrichs(Scheme):
    """
    Lax-Friedrichs flux with a centered average and a jump penalty:

        h_{j+1/2} = (f_{j+1} + f_j)/2 - dt/(2 dx) (u_{j+1} - u_j)

    First order and diffusive.
    """

    name = "lax_friedrichs"

    def flux(self, grid_state: GridState, equation: Equation) -> FluxPair:
        self.speed(grid_state, equation)
        half = 0.5 * grid_state.dt_over_dx()

        u = grid_state.extended_state(1)
        f = grid_state.extended_flux(equation, 1)
        u_prev, u_j, u_next = u[:-2], u[1:-1], u[2:]
        f_prev, f_j, f_next = f[:-2], f[1:-1], f[2:]

        h_pos = 0.5 * (f_next + f_j) - half * (u_next - u_j)
        h_neg = 0.5 * (f_j + f_prev) - half * (u_j - u_prev)
        return h_neg, h_pos


SCHEMES: Dict[str, type] = {
    cls.name: cls for cls in (Upwind, BeamWarming, LaxWendroff, LaxFriedrichs)
}


def get_scheme(name: str) -> Scheme:
    """
    Instantiate a scheme by name.

    Matching ignores case, dashes and underscores, so ``"LaxWendroff"``,
    ``"lax-wendroff"`` and ``"lax_wendroff"`` are equivalent.
    """
    key = str(name).lower().replace("-", "").replace("_", "")
    for scheme_name, cls in SCHEMES.items():
        if scheme_name.replace("_", "") == key:
            return cls()
    raise ConfigurationError(f"Unknown scheme {name!r}. Choose from {sorted(SCHEMES)}.")
