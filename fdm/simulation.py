from __future__ import annotations

import itertools
import json
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
from tqdm.auto import tqdm

from .boundary import Boundary, Periodic
from .diagnostics import compute_norms, total_mass, total_variation
from .equations import Equation
from .grid import GridState, InitFunc
from .schemes import Scheme


Array = np.ndarray


@dataclass
class SimulationResult:
    """
    Snapshots collected by :meth:`Simulation.advance`.

    Attributes
    ----------
    x:
        Grid coordinates, shape ``(nx,)``.
    t:
        Times of the stored snapshots, shape ``(nt,)``.
    u:
        Stored states, shape ``(nx, nt)``; column ``k`` is ``u(x, t[k])``.
    """

    x: Array
    t: Array
    u: Array

    @property
    def final(self) -> Array:
        return self.u[:, -1]

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez(path, x=self.x, t=self.t, u=self.u)
        return path


@dataclass
class Simulation:
    """
    Explicit time-stepping driver.

    Bundles a :class:`~fdm.grid.GridState`, an equation and a scheme, and
    repeatedly replaces the state with ``scheme.run(grid_state, equation)``.

    A :class:`~fdm.errors.CFLViolation` raised by the scheme propagates to
    the caller. Steps completed before it remain applied, and ``time``
    reflects them.
    """

    grid_state: GridState
    equation: Equation
    scheme: Scheme
    time: float = 0.0
    steps: int = 0

    def step(self) -> Array:
        """Advance one time step and return the new state."""
        new_state = self.scheme.run(self.grid_state, self.equation)
        self.grid_state.set_state(new_state)
        self.steps += 1
        self.time = self.steps * self.grid_state.dt
        return self.grid_state.state

    def advance(
        self,
        duration: float,
        save_every: int = 1,
        progress: bool = False,
    ) -> SimulationResult:
        """
        Integrate for ``duration`` (rounded to a whole number of steps).

        Parameters
        ----------
        duration:
            Simulated time to cover.
        save_every:
            Store every ``save_every``-th state. The initial and the final
            state are always stored.
        progress:
            Show a tqdm progress bar.
        """
        if save_every < 1:
            raise ValueError(f"save_every must be at least 1, got {save_every}.")
        dt = self.grid_state.dt
        nsteps = int(round(duration / dt))

        times: List[float] = [self.time]
        states: List[Array] = [self.grid_state.state]

        iterator = range(1, nsteps + 1)
        if progress:
            iterator = tqdm(iterator, desc=f"{type(self.scheme).__name__}", leave=False)
        for k in iterator:
            state = self.step()
            if k % save_every == 0 or k == nsteps:
                times.append(self.time)
                states.append(state)

        return SimulationResult(
            x=np.array(self.grid_state.grid),
            t=np.asarray(times, dtype=float),
            u=np.stack(states, axis=1),
        )


# ----------------------------------------------------------------------
# Batch experiments
# ----------------------------------------------------------------------
@dataclass
class Domain:
    """
    Discretisation shared by all experiments of a sweep.

    ``time`` is the simulated duration of each run.
    """

    dx: float = 1e-2
    dt: float = 6e-3
    x_range: Tuple[float, float] = (-3.0, 3.0)
    time: float = 3.0
    boundary: Boundary = field(default_factory=Periodic)
    save_every: int = 1

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["x_range"] = list(self.x_range)
        data["boundary"] = self.boundary.to_dict()
        return data


@dataclass
class Experiment:
    """One (equation, initial condition, scheme) combination."""

    name: str
    equation: Equation
    init: InitFunc
    scheme: Scheme

    def run(
        self,
        domain: Domain,
        output_dir: Optional[str | Path] = None,
        animate: bool = False,
    ) -> Dict[str, Any]:
        """
        Simulate on ``domain`` and return a summary.

        With ``output_dir`` set, the snapshots are written to
        ``<output_dir>/<name>.npz`` and, if ``animate`` is true, an animated
        GIF to ``<output_dir>/<name>.gif``.
        """
        grid_state = GridState(
            domain.dx, domain.dt, domain.x_range, self.init, boundary=domain.boundary
        )
        sim = Simulation(grid_state, self.equation, self.scheme)
        result = sim.advance(domain.time, save_every=domain.save_every)

        u0, u1 = result.u[:, 0], result.final
        summary: Dict[str, Any] = {
            "name": self.name,
            "steps": sim.steps,
            "t_final": float(result.t[-1]),
            "mass_initial": total_mass(u0, domain.dx),
            "mass_final": total_mass(u1, domain.dx),
            "tv_initial": total_variation(u0),
            "tv_final": total_variation(u1),
            "norms_final": compute_norms(u1, domain.dx),
        }

        if output_dir is not None:
            out = Path(output_dir)
            summary["data"] = str(result.save(out / f"{self.name}.npz"))
            if animate:
                from .plotting import animate_1d

                gif = out / f"{self.name}.gif"
                animate_1d(result.u.T, result.x, times=result.t, title=self.name, filename=gif)
                summary["animation"] = str(gif)

        return summary


def build_experiments(
    equations: Mapping[str, Equation],
    inits: Mapping[str, InitFunc],
    schemes: Mapping[str, Scheme],
) -> List[Experiment]:
    """Cartesian product of named equations, initial conditions and schemes."""
    return [
        Experiment(
            name=f"{eq_name}-{init_name}-{scheme_name}",
            equation=eq,
            init=init,
            scheme=scheme,
        )
        for (eq_name, eq), (init_name, init), (scheme_name, scheme) in itertools.product(
            equations.items(), inits.items(), schemes.items()
        )
    ]


def _run_one(args: Tuple[Experiment, Domain, Optional[str], bool]) -> Dict[str, Any]:
    experiment, domain, output_dir, animate = args
    return experiment.run(domain, output_dir=output_dir, animate=animate)


def run_experiments(
    equations: Mapping[str, Equation],
    inits: Mapping[str, InitFunc],
    schemes: Mapping[str, Scheme],
    domain: Domain,
    output_dir: Optional[str | Path] = None,
    workers: int = 1,
    animate: bool = False,
    progress: bool = False,
) -> Dict[str, Dict[str, Any]]:
    """
    Run every combination of ``equations`` x ``inits`` x ``schemes``.

    Experiments share nothing mutable, so with ``workers > 1`` they are
    distributed over a process pool. Initial conditions must then be
    picklable (module-level functions, ``functools.partial`` or
    :class:`~fdm.ic.InitialCondition` built from expressions, values or
    profiles).

    A summary of all runs is written to ``<output_dir>/summary.json`` when an
    output directory is given.

    Returns
    -------
    dict
        Experiment name -> summary dictionary (see :meth:`Experiment.run`).
    """
    experiments = build_experiments(equations, inits, schemes)
    out = None if output_dir is None else str(output_dir)
    if out is not None:
        Path(out).mkdir(parents=True, exist_ok=True)

    jobs = [(exp, domain, out, animate) for exp in experiments]
    if workers > 1:
        with ProcessPoolExecutor(max_workers=workers) as pool:
            results = list(
                tqdm(pool.map(_run_one, jobs), total=len(jobs), desc="Experiments", disable=not progress)
            )
    else:
        results = [_run_one(job) for job in tqdm(jobs, desc="Experiments", disable=not progress)]

    summaries = {summary["name"]: summary for summary in results}

    if out is not None:
        payload = {"domain": domain.to_dict(), "experiments": summaries}
        with (Path(out) / "summary.json").open("w", encoding="utf8") as f:
            json.dump(payload, f, indent=2)

    return summaries
