import numpy as np
import pytest

from fdm import (
    Advection,
    ConfigurationError,
    Dirichlet,
    Equation,
    GridState,
    InitialCondition,
    InviscidBurger,
    LengthMismatchError,
    Periodic,
    Upwind,
)


def step(x):
    return 1.0 if 0.0 <= x < 1.0 else 0.0


def test_grid_is_half_open_and_uniform():
    gs = GridState(0.1, 0.05, (-1.0, 1.0), step)

    assert len(gs) == 20
    assert gs.grid[0] == -1.0
    assert np.all(gs.grid < 1.0)
    assert np.isclose(gs.grid[-1], 0.9)
    assert np.allclose(np.diff(gs.grid), 0.1)
    assert isinstance(gs.boundary, Periodic)


def test_grid_keeps_partial_last_cell():
    gs = GridState(0.3, 0.1, (0.0, 1.0), np.sin)
    assert np.allclose(gs.grid, [0.0, 0.3, 0.6, 0.9])


def test_state_is_init_applied_elementwise():
    gs = GridState(0.1, 0.05, (-1.0, 1.0), step)

    expected = np.array([step(x) for x in gs.grid])
    assert np.array_equal(gs.state, expected)
    assert gs.state.shape == gs.grid.shape


def test_state_from_initial_condition():
    ic = InitialCondition.from_expression("np.sin(np.pi * x)")
    gs = GridState(0.01, 0.005, (-1.0, 1.0), ic)

    assert np.allclose(gs.state, np.sin(np.pi * gs.grid))


@pytest.mark.parametrize(
    "dx, dt, x_range",
    [
        (0.0, 0.1, (0.0, 1.0)),
        (-0.1, 0.1, (0.0, 1.0)),
        (0.1, 0.0, (0.0, 1.0)),
        (0.1, -1.0, (0.0, 1.0)),
        (0.1, 0.1, (1.0, 1.0)),
        (0.1, 0.1, (1.0, 0.0)),
        (float("nan"), 0.1, (0.0, 1.0)),
    ],
)
def test_invalid_configuration_rejected(dx, dt, x_range):
    with pytest.raises(ConfigurationError):
        GridState(dx, dt, x_range, np.sin)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        GridState(0.1, 0.1, (2.0, -2.0), np.sin)


def test_set_state_replaces_whole_vector():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.sin)
    new = np.linspace(0.0, 1.0, len(gs))

    gs.set_state(new)
    assert np.array_equal(gs.state, new)

    # the container keeps its own copy
    new[0] = 42.0
    assert gs.state[0] == 0.0


def test_set_state_length_mismatch_leaves_state_unchanged():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.sin)
    before = gs.state.copy()

    with pytest.raises(LengthMismatchError):
        gs.set_state(np.zeros(len(gs) - 1))

    assert np.array_equal(gs.state, before)


def test_state_and_grid_are_read_only():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.sin)
    with pytest.raises(ValueError):
        gs.state[0] = 1.0
    with pytest.raises(ValueError):
        gs.grid[0] = 1.0


def test_previous_state_survives_replacement():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.cos)
    old = gs.state
    snapshot = old.copy()

    gs.set_state(np.zeros(len(gs)))
    assert np.array_equal(old, snapshot)


@pytest.mark.parametrize("halo", [1, 2, 3])
def test_extended_state_periodic_slots(halo):
    gs = GridState(0.1, 0.05, (-1.0, 1.0), lambda x: x**2 + x)
    u = gs.extended_state(halo)
    state = gs.state
    n = len(gs)

    assert u.shape == (n + 2 * halo,)
    for i in range(halo):
        assert u[halo - 1 - i] == state[n - 1 - i]
        assert u[halo + n + i] == state[i]


def test_extended_state_dirichlet_slots():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.sin, boundary=Dirichlet(3.0, -3.0))
    u = gs.extended_state(2)

    assert np.array_equal(u[:2], [3.0, 3.0])
    assert np.array_equal(u[-2:], [-3.0, -3.0])
    assert np.array_equal(u[2:-2], gs.state)


def test_extended_flux_applies_equation():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.sin)
    eq = InviscidBurger()

    assert np.allclose(gs.extended_flux(eq, 2), eq.f(gs.extended_state(2)))
    assert np.allclose(gs.extended_flux(Advection(3.0), 0), 3.0 * gs.state)


def test_dt_over_dx():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.sin)
    assert gs.dt_over_dx() == 0.5


def test_with_dt_copies_state():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.sin, boundary=Dirichlet(1.0, 2.0))
    gs.set_state(np.arange(len(gs), dtype=float))

    smaller = gs.with_dt(0.025)

    assert smaller.dt == 0.025
    assert gs.dt == 0.05
    assert smaller.boundary == gs.boundary
    assert np.array_equal(smaller.state, gs.state)
    assert np.array_equal(smaller.grid, gs.grid)


def test_to_dict():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.sin)
    d = gs.to_dict()

    assert d["nx"] == 10
    assert d["x_range"] == [0.0, 1.0]
    assert d["boundary"] == {"type": "periodic"}


def test_range_narrower_than_tolerance_keeps_lo():
    gs = GridState(1.0, 0.1, (0.0, 1e-10), lambda x: 1.0)

    assert len(gs) == 1
    assert gs.grid[0] == 0.0
    assert np.array_equal(gs.state, [1.0])
    # a single periodic cell is its own neighbour, so nothing moves
    assert np.array_equal(Upwind().run(gs, Advection(1.0)), [1.0])


class _SummedFlux(Equation):
    def f(self, u):
        return np.sum(u)

    def df(self, u):
        return np.ones_like(u)


def test_extended_flux_rejects_non_elementwise_flux():
    gs = GridState(0.1, 0.05, (0.0, 1.0), np.sin)
    with pytest.raises(LengthMismatchError):
        gs.extended_flux(_SummedFlux(), 1)


def test_initial_condition_with_wrong_length_rejected():
    with pytest.raises(ValueError):
        GridState(0.1, 0.05, (0.0, 1.0), InitialCondition.from_values([1.0, 2.0]))
