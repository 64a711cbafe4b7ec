import json
from pathlib import Path

import numpy as np
import pytest

from fdm import (
    Advection,
    ConfigurationError,
    Dirichlet,
    Domain,
    ExpressionEquation,
    InviscidBurger,
    LaxWendroff,
    Periodic,
    Upwind,
)
from fdm.json_loader import (
    build_simulation_from_dict,
    build_sweep_from_dict,
    load_from_json,
    load_sweep_from_json,
)


def _project_root() -> Path:
    # tests/ -> project root is one directory up thanks to conftest sys.path
    return Path(__file__).resolve().parent.parent


def _base_config():
    return {
        "domain": {"x0": -1.0, "x1": 1.0, "dx": 0.02},
        "time": {"dt": 0.01, "t1": 0.1},
        "equation": {"type": "advection", "a": 1.0},
        "initial_condition": {"type": "expression", "expr": "np.sin(np.pi * x)"},
    }


def test_build_simulation_defaults():
    sim, time_cfg = build_simulation_from_dict(_base_config())

    gs = sim.grid_state
    assert len(gs) == 100
    assert gs.dx == 0.02
    assert gs.dt == 0.01
    assert isinstance(gs.boundary, Periodic)
    assert isinstance(sim.scheme, Upwind)
    assert sim.equation == Advection(1.0)
    assert np.allclose(gs.state, np.sin(np.pi * gs.grid))
    assert time_cfg == {"dt": 0.01, "t1": 0.1, "save_every": 1}


def test_build_simulation_runs_to_final_time():
    sim, time_cfg = build_simulation_from_dict(_base_config())
    result = sim.advance(time_cfg["t1"], save_every=time_cfg["save_every"])

    assert sim.steps == 10
    assert result.t[-1] == pytest.approx(0.1)


def test_nx_and_cfl_settings():
    cfg = _base_config()
    cfg["domain"] = {"x0": 0.0, "x1": 2.0, "nx": 50}
    cfg["time"] = {"cfl": 0.5, "speed": 2.0, "t1": 0.2, "save_every": 4}
    cfg["scheme"] = {"type": "lax-wendroff"}

    sim, time_cfg = build_simulation_from_dict(cfg)

    assert len(sim.grid_state) == 50
    assert sim.grid_state.dx == pytest.approx(0.04)
    assert time_cfg["dt"] == pytest.approx(0.01)
    assert time_cfg["save_every"] == 4
    assert isinstance(sim.scheme, LaxWendroff)


def test_profile_and_values_initial_conditions():
    cfg = _base_config()
    cfg["initial_condition"] = {
        "type": "profile",
        "name": "square",
        "params": {"lo": -0.5, "hi": 0.5},
    }
    sim, _ = build_simulation_from_dict(cfg)
    grid = sim.grid_state.grid
    assert np.array_equal(sim.grid_state.state, ((grid >= -0.5) & (grid <= 0.5)).astype(float))

    cfg["domain"] = {"x0": 0.0, "x1": 1.0, "nx": 4}
    cfg["initial_condition"] = {"type": "values", "values": [1.0, 2.0, 3.0, 4.0]}
    sim, _ = build_simulation_from_dict(cfg)
    assert np.array_equal(sim.grid_state.state, [1.0, 2.0, 3.0, 4.0])


@pytest.mark.parametrize(
    "section, value",
    [
        ("domain", {"x0": 0.0, "x1": 1.0}),
        ("domain", {"x1": 1.0, "dx": 0.1}),
        ("time", {"t1": 1.0}),
        ("time", {"cfl": 0.5, "speed": 0.0}),
        ("equation", {"type": "maxwell"}),
        ("initial_condition", {"type": "random"}),
        ("initial_condition", {"type": "profile", "name": "sawtooth"}),
        ("boundary", {"type": "reflective"}),
        ("scheme", "MacCormack"),
    ],
)
def test_invalid_sections(section, value):
    cfg = _base_config()
    cfg[section] = value
    with pytest.raises(ConfigurationError):
        build_simulation_from_dict(cfg)


def test_missing_required_section():
    cfg = _base_config()
    del cfg["equation"]
    with pytest.raises(ConfigurationError, match="equation"):
        build_simulation_from_dict(cfg)


def test_invalid_grid_from_config():
    cfg = _base_config()
    cfg["domain"] = {"x0": 1.0, "x1": -1.0, "dx": 0.1}
    with pytest.raises(ConfigurationError):
        build_simulation_from_dict(cfg)


def test_load_dirichlet_example_and_run():
    cfg_path = _project_root() / "examples" / "dirichlet_riemann.json"
    sim, time_cfg = load_from_json(cfg_path)

    assert isinstance(sim.equation, ExpressionEquation)
    assert sim.grid_state.boundary == Dirichlet(1.0, 0.0)
    assert len(sim.grid_state) == 200

    result = sim.advance(time_cfg["t1"], save_every=time_cfg["save_every"])
    # the shock travels right at speed 1/2 and the inflow stays at 1
    assert result.final[0] == pytest.approx(1.0)
    assert result.final[-1] == pytest.approx(0.0)
    assert result.final[np.searchsorted(result.x, 0.1)] > 0.9


@pytest.mark.parametrize("name", ["advection_square.json", "burgers_sine.json"])
def test_load_periodic_examples(name):
    sim, time_cfg = load_from_json(_project_root() / "examples" / name)
    assert isinstance(sim.grid_state.boundary, Periodic)
    assert time_cfg["t1"] > 0.0

    # a handful of steps stays within the CFL limit
    for _ in range(5):
        sim.step()
    assert np.all(np.isfinite(sim.grid_state.state))


def test_build_sweep_from_dict():
    cfg = {
        "domain": {"x0": -1.0, "x1": 1.0, "dx": 0.05},
        "time": {"dt": 0.025, "t1": 0.5, "save_every": 2},
        "boundary": {"type": "outflow"},
        "sweep": {
            "equations": {"adv": {"type": "advection", "a": -1.0}},
            "initial_conditions": {"gauss": {"type": "profile", "name": "gaussian"}},
            "schemes": {"UW": "upwind", "LW": {"type": "LaxWendroff"}},
        },
    }
    sweep = build_sweep_from_dict(cfg)

    assert sweep["equations"] == {"adv": Advection(-1.0)}
    assert set(sweep["schemes"]) == {"UW", "LW"}
    assert isinstance(sweep["schemes"]["LW"], LaxWendroff)
    domain = sweep["domain"]
    assert isinstance(domain, Domain)
    assert domain.time == 0.5
    assert domain.save_every == 2
    assert domain.boundary.to_dict() == {"type": "outflow"}


def test_sweep_requires_entries():
    cfg = {
        "domain": {"x0": -1.0, "x1": 1.0, "dx": 0.05},
        "time": {"dt": 0.025},
        "sweep": {"equations": {}, "initial_conditions": {}, "schemes": []},
    }
    with pytest.raises(ConfigurationError):
        build_sweep_from_dict(cfg)


def test_load_sweep_example():
    sweep = load_sweep_from_json(_project_root() / "examples" / "sweep.json")

    assert set(sweep["equations"]) == {"Advection", "InviscidBurger"}
    assert isinstance(sweep["equations"]["InviscidBurger"], InviscidBurger)
    assert list(sweep["schemes"]) == ["Upwind", "BeamWarming", "LaxWendroff", "LaxFriedrichs"]
    assert sweep["domain"].dt == pytest.approx(0.006)


def test_load_from_json_file(tmp_path):
    cfg_path = tmp_path / "run.json"
    with cfg_path.open("w", encoding="utf8") as f:
        json.dump(_base_config(), f)

    sim, _ = load_from_json(str(cfg_path))
    assert len(sim.grid_state) == 100
