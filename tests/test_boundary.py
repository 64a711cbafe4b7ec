import numpy as np
import pytest

from fdm import Dirichlet, Outflow, Periodic
from fdm.boundary import boundary_from_dict
from fdm.errors import ConfigurationError


VALUES = np.arange(1.0, 7.0)  # [1, 2, 3, 4, 5, 6]


@pytest.mark.parametrize("halo", [1, 2, 3])
def test_periodic_wraps_by_distance(halo):
    n = VALUES.size
    ext = Periodic().extend(VALUES, halo)

    assert ext.shape == (n + 2 * halo,)
    assert np.array_equal(ext[halo : halo + n], VALUES)
    for i in range(halo):
        # slot i counted outward from each edge
        assert ext[halo - 1 - i] == VALUES[n - 1 - i]
        assert ext[halo + n + i] == VALUES[i]


def test_periodic_halo_wider_than_state_keeps_wrapping():
    values = np.array([1.0, 2.0])
    ext = Periodic().extend(values, 3)
    assert np.array_equal(ext, [2.0, 1.0, 2.0, 1.0, 2.0, 1.0, 2.0, 1.0])


@pytest.mark.parametrize("halo", [1, 2])
def test_dirichlet_broadcasts_constants(halo):
    ext = Dirichlet(left=-1.0, right=9.0).extend(VALUES, halo)

    assert np.all(ext[:halo] == -1.0)
    assert np.all(ext[-halo:] == 9.0)
    assert np.array_equal(ext[halo:-halo], VALUES)


def test_outflow_repeats_edge_values():
    ext = Outflow().extend(VALUES, 2)
    assert np.array_equal(ext, [1.0, 1.0, 1, 2, 3, 4, 5, 6, 6.0, 6.0])


def test_zero_halo_returns_copy():
    ext = Periodic().extend(VALUES, 0)
    assert np.array_equal(ext, VALUES)
    ext[0] = 100.0
    assert VALUES[0] == 1.0


def test_negative_halo_rejected():
    with pytest.raises(ValueError):
        Periodic().extend(VALUES, -1)


def test_boundary_from_dict():
    assert isinstance(boundary_from_dict(None), Periodic)
    assert isinstance(boundary_from_dict({"type": "periodic"}), Periodic)
    assert boundary_from_dict({"type": "dirichlet", "left": 1, "right": 0}) == Dirichlet(1.0, 0.0)
    assert isinstance(boundary_from_dict({"type": "outflow"}), Outflow)

    with pytest.raises(ConfigurationError):
        boundary_from_dict({"type": "dirichlet", "left": 1.0})
    with pytest.raises(ConfigurationError):
        boundary_from_dict({"type": "robin"})


def test_to_dict_round_trip():
    for bc in (Periodic(), Dirichlet(2.0, -2.0), Outflow()):
        assert boundary_from_dict(bc.to_dict()) == bc


class _ShortPad(Periodic):
    def _pad(self, values, halo):
        return values.copy()


def test_extend_checks_padded_length():
    with pytest.raises(ValueError, match="expected 8"):
        _ShortPad().extend(VALUES, 1)
