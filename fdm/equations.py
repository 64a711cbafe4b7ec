from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

import numpy as np
import sympy as sp

from .errors import ConfigurationError


Array = np.ndarray
Scalar = Union[float, Array]


class Equation:
    """
    Abstract scalar conservation law ``u_t + f(u)_x = 0``.

    Subclasses provide the flux ``f`` and its derivative ``df``. Both accept
    a float or a NumPy array and are evaluated elementwise. Equations hold no
    mutable state and may be shared freely between simulations.
    """

    def f(self, u: Scalar) -> Scalar:
        raise NotImplementedError

    def df(self, u: Scalar) -> Scalar:
        raise NotImplementedError


@dataclass(frozen=True)
class Advection(Equation):
    """
    Linear advection ``u_t + a u_x = 0``.

    Parameters
    ----------
    a:
        Constant advection speed.
    """

    a: float = 1.0

    def f(self, u: Scalar) -> Scalar:
        return self.a * u

    def df(self, u: Scalar) -> Scalar:
        return np.full_like(u, self.a, dtype=float)


@dataclass(frozen=True)
class InviscidBurger(Equation):
    """Inviscid Burgers' equation with flux ``u**2 / 2``."""

    def f(self, u: Scalar) -> Scalar:
        return 0.5 * u * u

    def df(self, u: Scalar) -> Scalar:
        return u


@dataclass(frozen=True)
class ExpressionEquation(Equation):
    """
    Conservation law whose flux is given as a SymPy expression in ``u``.

    The derivative is obtained symbolically, so only the flux has to be
    written down.

    Parameters
    ----------
    flux:
        Expression string such as ``"u**2/2"`` or
        ``"u**2 / (u**2 + M*(1 - u)**2)"``.
    params:
        Optional mapping of parameter names used in ``flux`` to their values.

    Examples
    --------
    >>> burgers = ExpressionEquation("u**2/2")
    >>> buckley = ExpressionEquation("u**2/(u**2 + M*(1-u)**2)", params={"M": 0.5})
    """

    flux: str
    params: Dict[str, float] = field(default_factory=dict)

    _f: Callable = field(init=False, repr=False, compare=False)
    _df: Callable = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        u = sp.Symbol("u")
        param_symbols = {name: sp.Symbol(name) for name in self.params}

        allowed_funcs = {
            name: getattr(sp, name)
            for name in ["sin", "cos", "exp", "log", "tanh", "sqrt", "Abs"]
        }
        local_dict = {"u": u, **param_symbols, **allowed_funcs}

        try:
            expr = sp.sympify(self.flux, locals=local_dict)
        except (sp.SympifyError, SyntaxError, TypeError) as exc:
            raise ConfigurationError(f"Cannot parse flux expression {self.flux!r}.") from exc

        unknown = expr.free_symbols - {u} - set(param_symbols.values())
        if unknown:
            names = sorted(str(s) for s in unknown)
            raise ConfigurationError(
                f"Flux expression {self.flux!r} uses undefined symbols {names}."
            )

        values = {param_symbols[name]: float(value) for name, value in self.params.items()}
        expr = expr.subs(values)
        dexpr = sp.diff(expr, u)

        # frozen dataclass: bypass __setattr__ for the compiled callables
        object.__setattr__(self, "_f", sp.lambdify(u, expr, modules=["numpy"]))
        object.__setattr__(self, "_df", sp.lambdify(u, dexpr, modules=["numpy"]))

    def __reduce__(self):
        # lambdified callables do not pickle; rebuild them from the source
        return (self.__class__, (self.flux, dict(self.params)))

    def f(self, u: Scalar) -> Scalar:
        # lambdify returns a bare scalar for constant expressions
        return np.asarray(self._f(u), dtype=float) + np.zeros_like(u, dtype=float)

    def df(self, u: Scalar) -> Scalar:
        return np.asarray(self._df(u), dtype=float) + np.zeros_like(u, dtype=float)


EQUATIONS: Dict[str, type] = {
    "advection": Advection,
    "inviscid_burger": InviscidBurger,
    "burgers": InviscidBurger,
    "expression": ExpressionEquation,
}


def equation_from_dict(cfg: Dict[str, Any]) -> Equation:
    """
    Build an :class:`Equation` from a JSON-like dictionary.

    Recognised forms::

        {"type": "advection", "a": 1.0}
        {"type": "inviscid_burger"}
        {"type": "expression", "flux": "u**2/2", "params": {}}
    """
    eq_type = str(cfg.get("type", "")).lower().replace("-", "_")
    if eq_type not in EQUATIONS:
        raise ConfigurationError(
            f"Unknown equation type {eq_type!r}. Choose from {sorted(EQUATIONS)}."
        )

    if eq_type == "advection":
        return Advection(a=float(cfg.get("a", 1.0)))
    if eq_type == "expression":
        if "flux" not in cfg:
            raise ConfigurationError("Expression equation requires a 'flux' entry.")
        params: Optional[Dict[str, float]] = cfg.get("params")
        return ExpressionEquation(
            flux=str(cfg["flux"]),
            params={k: float(v) for k, v in (params or {}).items()},
        )
    return InviscidBurger()
