from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Optional, Sequence, Union

import numpy as np

from .errors import ConfigurationError

Values = Union[np.ndarray, Sequence[float]]
Profile = Callable[..., np.ndarray]


# ----------------------------------------------------------------------
# Named profiles
# ----------------------------------------------------------------------
def sine(x, k: float = 1.0, amplitude: float = 1.0):
    return amplitude * np.sin(k * np.pi * x)


def square(x, lo: float = 0.0, hi: float = 1.0, amplitude: float = 1.0):
    """Top hat: ``amplitude`` on the closed interval ``[lo, hi]``, zero elsewhere."""
    x = np.asarray(x, dtype=float)
    return amplitude * ((x >= lo) & (x <= hi)).astype(float)


def gaussian(x, center: float = 0.0, sigma: float = 0.2, amplitude: float = 1.0):
    return amplitude * np.exp(-((x - center) ** 2) / (2 * sigma**2))


def triangle(x, center: float = 0.0, width: float = 1.0, amplitude: float = 1.0):
    slope = 2 * amplitude / width
    return np.clip(amplitude - slope * np.abs(x - center), 0, amplitude)


PROFILES: Dict[str, Profile] = {
    "sine": sine,
    "square": square,
    "gaussian": gaussian,
    "triangle": triangle,
}


@dataclass
class InitialCondition:
    """
    Starting state ``u(x, 0)``, given in exactly one of three forms:

    - ``expr``: numpy source in ``x`` such as ``"np.where(x < 0, 1.0, 0.0)"``;
      only ``np`` and ``x`` are visible to it;
    - ``values``: one number per grid point;
    - ``func``: a vectorised callable of the grid coordinates.

    Instances are callable, so they can be handed to
    :class:`~fdm.grid.GridState` wherever a plain function is accepted.
    """

    expr: Optional[str] = None
    values: Optional[Values] = None
    func: Optional[Callable[[np.ndarray], np.ndarray]] = None

    def __post_init__(self) -> None:
        given = [name for name in ("expr", "values", "func") if getattr(self, name) is not None]
        if len(given) != 1:
            raise ValueError(
                f"InitialCondition needs exactly one of expr, values or func; got {given or 'none'}."
            )

    @classmethod
    def from_expression(cls, expr: str) -> "InitialCondition":
        return cls(expr=expr)

    @classmethod
    def from_values(cls, values: Values) -> "InitialCondition":
        return cls(values=np.array(values, dtype=float))

    @classmethod
    def from_callable(cls, func: Callable[[np.ndarray], np.ndarray]) -> "InitialCondition":
        return cls(func=func)

    @classmethod
    def from_profile(cls, name: str, **kwargs: float) -> "InitialCondition":
        """
        Use one of the named :data:`PROFILES` (``sine``, ``square``,
        ``gaussian``, ``triangle``), with keyword overrides for its shape.
        """
        key = name.lower()
        if key not in PROFILES:
            raise ConfigurationError(
                f"Unknown initial profile {name!r}. Choose from {sorted(PROFILES)}."
            )
        profile = PROFILES[key]
        if not kwargs:
            return cls(func=profile)
        return cls(func=partial(profile, **kwargs))

    def evaluate(self, x: np.ndarray) -> np.ndarray:
        """Initial state on the grid coordinates ``x``, as a new float array."""
        x = np.asarray(x, dtype=float)
        if self.values is not None:
            u0 = np.array(self.values, dtype=float)
            if u0.shape != x.shape:
                raise ValueError(
                    f"Initial values have shape {u0.shape}; the grid has shape {x.shape}."
                )
            return u0

        if self.expr is not None:
            raw = eval(self.expr, {"__builtins__": {}}, {"np": np, "x": x})
        else:
            raw = self.func(x)
        # constants broadcast over the grid
        return np.broadcast_to(np.asarray(raw, dtype=float), x.shape).copy()

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return self.evaluate(x)
