from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from .errors import ConfigurationError


class Boundary:
    """
    Base class for boundary-extension policies.

    A boundary policy pads a 1D array with ``halo`` ghost values on each side
    so that stencils can be evaluated uniformly up to the physical edges.
    Subclasses implement :meth:`_pad`.
    """

    def extend(self, values: np.ndarray, halo: int) -> np.ndarray:
        """
        Return ``values`` padded with ``halo`` ghost cells on both sides.

        Parameters
        ----------
        values:
            1D array of length N.
        halo:
            Number of ghost cells per side (non-negative).

        Returns
        -------
        numpy.ndarray
            New array of length ``N + 2 * halo``. The input is never modified.
        """
        values = np.asarray(values, dtype=float)
        if halo < 0:
            raise ValueError(f"halo must be non-negative, got {halo}.")
        if halo == 0:
            return values.copy()
        if values.size == 0:
            raise ValueError("Cannot extend an empty state.")

        extended = self._pad(values, int(halo))
        if extended.shape != (values.shape[0] + 2 * halo,):
            raise ValueError(
                f"{self!r} produced {extended.shape[0]} values, expected {values.shape[0] + 2 * halo}."
            )
        return extended

    def _pad(self, values: np.ndarray, halo: int) -> np.ndarray:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


class Periodic(Boundary):
    """
    Periodic boundary: the domain wraps around.

    Left ghost slot ``i`` (counted outward from the edge) takes
    ``values[N-1-i]``; right ghost slot ``i`` takes ``values[i]``.
    """

    def _pad(self, values: np.ndarray, halo: int) -> np.ndarray:
        n = values.shape[0]
        return np.take(values, np.arange(-halo, n + halo), mode="wrap")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "periodic"}

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Periodic)

    def __hash__(self) -> int:
        return hash(Periodic)

    def __repr__(self) -> str:
        return "Periodic()"


@dataclass(frozen=True)
class Dirichlet(Boundary):
    """
    Fixed values at both edges.

    Every left ghost cell holds ``left`` and every right ghost cell holds
    ``right``, regardless of the distance from the edge.
    """

    left: float = 0.0
    right: float = 0.0

    def _pad(self, values: np.ndarray, halo: int) -> np.ndarray:
        return np.concatenate(
            [np.full(halo, float(self.left)), values, np.full(halo, float(self.right))]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "dirichlet", "left": float(self.left), "right": float(self.right)}


class Outflow(Boundary):
    """
    Zero-gradient (transmissive) boundary.

    Ghost cells repeat the nearest physical value, which approximates
    ``u_x = 0`` at both edges and lets waves leave the domain.
    """

    def _pad(self, values: np.ndarray, halo: int) -> np.ndarray:
        return np.pad(values, halo, mode="edge")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "outflow"}

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Outflow)

    def __hash__(self) -> int:
        return hash(Outflow)

    def __repr__(self) -> str:
        return "Outflow()"


def boundary_from_dict(cfg: Optional[Dict[str, Any]]) -> Boundary:
    """
    Parse a boundary specification.

    ``None`` (or a missing section) selects :class:`Periodic`.
    """
    if cfg is None:
        return Periodic()

    bc_type = str(cfg.get("type", "periodic")).lower()

    if bc_type == "periodic":
        return Periodic()

    if bc_type == "dirichlet":
        if "left" not in cfg or "right" not in cfg:
            raise ConfigurationError("Dirichlet boundary requires 'left' and 'right' values.")
        return Dirichlet(left=float(cfg["left"]), right=float(cfg["right"]))

    if bc_type in ("outflow", "transmissive", "neumann"):
        return Outflow()

    raise ConfigurationError(f"Unknown boundary type {bc_type!r}.")
