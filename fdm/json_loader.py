from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Tuple

from .boundary import boundary_from_dict
from .equations import Equation, equation_from_dict
from .errors import ConfigurationError
from .grid import GridState
from .ic import InitialCondition
from .schemes import Scheme, get_scheme
from .simulation import Domain, Simulation


JsonDict = Dict[str, Any]


def _require(cfg: JsonDict, key: str, section: str) -> Any:
    if key not in cfg:
        raise ConfigurationError(f"Section {section!r} requires {key!r}.")
    return cfg[key]


def _parse_domain(cfg: JsonDict) -> Tuple[float, Tuple[float, float]]:
    """Parse the ``domain`` section into ``(dx, (x0, x1))``."""
    x0 = float(_require(cfg, "x0", "domain"))
    x1 = float(_require(cfg, "x1", "domain"))
    if "dx" in cfg:
        dx = float(cfg["dx"])
    elif "nx" in cfg:
        nx = int(cfg["nx"])
        if nx < 1:
            raise ConfigurationError(f"nx must be positive, got {nx}.")
        dx = (x1 - x0) / nx
    else:
        raise ConfigurationError("Section 'domain' requires 'dx' or 'nx'.")
    return dx, (x0, x1)


def _parse_time(cfg: JsonDict, dx: float) -> Tuple[float, float, int]:
    """
    Parse the ``time`` section into ``(dt, t1, save_every)``.

    ``dt`` may be given directly, or via a Courant number ``cfl`` and a
    reference wave speed ``speed`` (default 1): ``dt = cfl * dx / speed``.
    """
    if "dt" in cfg:
        dt = float(cfg["dt"])
    elif "cfl" in cfg:
        speed = abs(float(cfg.get("speed", 1.0)))
        if speed == 0.0:
            raise ConfigurationError("Reference speed for 'cfl' must be non-zero.")
        dt = float(cfg["cfl"]) * dx / speed
    else:
        raise ConfigurationError("Section 'time' requires 'dt' or 'cfl'.")

    t1 = float(cfg.get("t1", 1.0))
    save_every = int(cfg.get("save_every", 1))
    return dt, t1, save_every


def _parse_initial_condition(cfg: JsonDict) -> InitialCondition:
    """Parse the ``initial_condition`` section."""
    ic_type = cfg.get("type", "expression")
    if ic_type == "expression":
        return InitialCondition.from_expression(_require(cfg, "expr", "initial_condition"))
    if ic_type == "values":
        return InitialCondition.from_values(_require(cfg, "values", "initial_condition"))
    if ic_type == "profile":
        name = _require(cfg, "name", "initial_condition")
        params = {k: float(v) for k, v in cfg.get("params", {}).items()}
        return InitialCondition.from_profile(name, **params)
    raise ConfigurationError(f"Unknown initial condition type {ic_type!r}.")


def _parse_scheme(cfg: Any) -> Scheme:
    if isinstance(cfg, dict):
        cfg = _require(cfg, "type", "scheme")
    return get_scheme(str(cfg))


def build_simulation_from_dict(config: JsonDict) -> Tuple[Simulation, JsonDict]:
    """
    Build a :class:`~fdm.simulation.Simulation` from an in-memory JSON-like
    dictionary.

    This is the core entry point; ``load_from_json`` is a small wrapper
    around it.

    Returns
    -------
    (simulation, time_cfg):
        The ready-to-run simulation and the parsed time settings
        (``dt``, ``t1``, ``save_every``).
    """
    dx, x_range = _parse_domain(_require(config, "domain", "root"))
    dt, t1, save_every = _parse_time(config.get("time", {}), dx)
    equation: Equation = equation_from_dict(_require(config, "equation", "root"))
    ic = _parse_initial_condition(_require(config, "initial_condition", "root"))
    boundary = boundary_from_dict(config.get("boundary"))
    scheme = _parse_scheme(config.get("scheme", "upwind"))

    grid_state = GridState(dx, dt, x_range, ic, boundary=boundary)
    simulation = Simulation(grid_state, equation, scheme)
    return simulation, {"dt": dt, "t1": t1, "save_every": save_every}


def build_sweep_from_dict(config: JsonDict) -> Dict[str, Any]:
    """
    Build the arguments of :func:`~fdm.simulation.run_experiments` from a
    configuration with a ``sweep`` section::

        "sweep": {
            "equations": {"Advection": {"type": "advection", "a": 1.0}, ...},
            "initial_conditions": {"Sine": {"type": "profile", "name": "sine"}, ...},
            "schemes": ["Upwind", "BeamWarming", "LaxWendroff", "LaxFriedrichs"]
        }

    ``schemes`` may also be a mapping of display name to scheme name.
    """
    sweep = _require(config, "sweep", "root")
    dx, x_range = _parse_domain(_require(config, "domain", "root"))
    dt, t1, save_every = _parse_time(config.get("time", {}), dx)
    boundary = boundary_from_dict(config.get("boundary"))

    equations = {
        name: equation_from_dict(eq_cfg)
        for name, eq_cfg in _require(sweep, "equations", "sweep").items()
    }
    inits = {
        name: _parse_initial_condition(ic_cfg)
        for name, ic_cfg in _require(sweep, "initial_conditions", "sweep").items()
    }
    schemes_cfg = _require(sweep, "schemes", "sweep")
    if isinstance(schemes_cfg, dict):
        schemes = {name: _parse_scheme(s) for name, s in schemes_cfg.items()}
    else:
        schemes = {str(s): _parse_scheme(s) for s in schemes_cfg}

    if not equations or not inits or not schemes:
        raise ConfigurationError("Sweep needs at least one equation, initial condition and scheme.")

    domain = Domain(
        dx=dx, dt=dt, x_range=x_range, time=t1, boundary=boundary, save_every=save_every
    )
    return {"equations": equations, "inits": inits, "schemes": schemes, "domain": domain}


def _read_json(path: str | Path) -> JsonDict:
    p = Path(path)
    with p.open("r", encoding="utf8") as f:
        return json.load(f)


def load_from_json(path: str | Path) -> Tuple[Simulation, JsonDict]:
    """
    Load a simulation from a JSON file.

    Parameters
    ----------
    path:
        Path to the JSON configuration file.
    """
    return build_simulation_from_dict(_read_json(path))


def load_sweep_from_json(path: str | Path) -> Dict[str, Any]:
    """Load sweep arguments from a JSON file."""
    return build_sweep_from_dict(_read_json(path))
