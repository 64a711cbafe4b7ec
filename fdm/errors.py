from __future__ import annotations

from typing import Optional


class FDMError(Exception):
    """Base class for all errors raised by the ``fdm`` package."""


class ConfigurationError(FDMError, ValueError):
    """
    Invalid construction parameters: non-positive ``dx``/``dt``, an empty or
    inverted spatial range, or an unknown name in a configuration file.
    """


class LengthMismatchError(FDMError, ValueError):
    """A replacement state does not have the length of the grid."""


class CFLViolation(FDMError, ArithmeticError):
    """
    A local Courant number ``|v| = |df/du| * dt/dx`` exceeds one.

    The step that detected it is aborted and the state is untouched, so a
    caller may shrink ``dt`` and try again.

    Attributes
    ----------
    max_speed:
        Largest ``|v|`` found among the interface speeds.
    index:
        Position of that interface in the extended interface array.
    """

    def __init__(self, max_speed: float, index: Optional[int] = None) -> None:
        self.max_speed = float(max_speed)
        self.index = index
        msg = f"Check the CFL condition! max |v| = {self.max_speed:.6g} > 1"
        if index is not None:
            msg += f" at interface {index}"
        super().__init__(msg)

    def __reduce__(self):
        # Keep the structured fields when crossing process boundaries.
        return (self.__class__, (self.max_speed, self.index))
