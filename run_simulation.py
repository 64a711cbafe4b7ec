from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from fdm.boundary import Periodic
from fdm.diagnostics import (
    advection_exact,
    cfl_number,
    compute_norms,
    error_norms,
    total_mass,
    total_variation,
    write_metrics_json,
)
from fdm.equations import Advection
from fdm.errors import CFLViolation, FDMError
from fdm.ic import InitialCondition
from fdm.json_loader import build_simulation_from_dict, build_sweep_from_dict
from fdm.plotting import animate_1d, plot_1d_combined, plot_scheme_comparison, plot_xt_heatmap
from fdm.simulation import Simulation, run_experiments


def _load_config(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf8") as f:
        return json.load(f)


def _exact_reference(simulation: Simulation, t: float) -> Optional[np.ndarray]:
    """Exact periodic advection of the initial profile, or None if not available."""
    gs = simulation.grid_state
    if not (isinstance(simulation.equation, Advection) and isinstance(gs.boundary, Periodic)):
        return None
    # tabulated values cannot be shifted off the grid
    if isinstance(gs.init, InitialCondition) and gs.init.values is not None:
        return None
    lo = float(gs.x_range[0])
    return advection_exact(
        gs.grid, t, simulation.equation.a, gs.init, period=len(gs) * gs.dx, x0=lo
    )


def _run_sweep(config: Dict[str, Any], args: argparse.Namespace, output_dir: Path) -> None:
    sweep = build_sweep_from_dict(config)
    n = len(sweep["equations"]) * len(sweep["inits"]) * len(sweep["schemes"])
    if not args.no_output:
        print(f"Running {n} experiments with {args.workers} worker(s).")
        print(f"Saving to: {output_dir}")

    summaries = run_experiments(
        **sweep,
        output_dir=output_dir,
        workers=args.workers,
        animate=not args.no_plots,
        progress=not args.no_output,
    )

    if not args.no_output:
        for name, summary in sorted(summaries.items()):
            drift = summary["mass_final"] - summary["mass_initial"]
            print(
                f"  {name}: steps={summary['steps']} "
                f"mass drift={drift:.3e} TV {summary['tv_initial']:.3f} -> {summary['tv_final']:.3f}"
            )


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Run a JSON-defined conservation-law simulation with explicit schemes."
    )
    parser.add_argument("config", type=str, help="Path to JSON configuration file.")
    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default="outputs",
        help="Directory for data files and figures (default: outputs).",
    )
    parser.add_argument(
        "--no-output",
        action="store_true",
        help="Suppress detailed output; only exit code indicates success.",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip figures and animations.",
    )
    parser.add_argument(
        "--sweep",
        action="store_true",
        help="Run every equation x initial condition x scheme of the 'sweep' section.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes for sweeps (default: 1).",
    )

    args = parser.parse_args(argv)

    config_path = Path(args.config)
    config = _load_config(config_path)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        if args.sweep or "sweep" in config:
            _run_sweep(config, args, output_dir)
            return

        simulation, time_cfg = build_simulation_from_dict(config)
        cfl = cfl_number(simulation.grid_state, simulation.equation)
        result = simulation.advance(
            time_cfg["t1"],
            save_every=time_cfg["save_every"],
            progress=not args.no_output,
        )
    except CFLViolation as exc:
        raise SystemExit(f"Unstable time step: {exc}. Reduce dt.") from exc
    except FDMError as exc:
        raise SystemExit(f"Invalid configuration {config_path}: {exc}") from exc

    name = config.get("name") or config_path.stem
    scheme_name = type(simulation.scheme).__name__
    dx = simulation.grid_state.dx
    result.save(output_dir / f"{name}.npz")

    u0, u1 = result.u[:, 0], result.final
    extras = {
        "mass_initial": total_mass(u0, dx),
        "mass_final": total_mass(u1, dx),
        "tv_initial": total_variation(u0),
        "tv_final": total_variation(u1),
    }
    exact = _exact_reference(simulation, float(result.t[-1]))
    errors = None
    if exact is not None:
        errors = error_norms(u1, exact, dx)
        extras.update({f"error_{k}": v for k, v in errors.items()})

    snapshot_norms = [compute_norms(result.u[:, k], dx) for k in range(result.u.shape[1])]
    write_metrics_json(
        output_dir / name,
        scheme=scheme_name,
        nx=u1.size,
        dt=simulation.grid_state.dt,
        cfl=cfl,
        norms_over_time={key: [n[key] for n in snapshot_norms] for key in ("L1", "L2", "Linf")},
        extras=extras,
    )

    if not args.no_plots:
        plot_1d_combined(
            result.x,
            result.u,
            result.t,
            title=name,
            savepath=output_dir / f"{name}_combined.png",
            max_curves=8,
        )
        plot_xt_heatmap(
            result.x,
            result.t,
            result.u,
            title="u(x,t) heatmap",
            savepath=output_dir / f"{name}_xt_heatmap.png",
        )
        if exact is not None:
            plot_scheme_comparison(
                result.x,
                {scheme_name: u1},
                reference=exact,
                title=f"{name} at t={result.t[-1]:.3g}",
                savepath=output_dir / f"{name}_exact.png",
            )
        animate_1d(
            result.u.T,
            result.x,
            times=result.t,
            title=name,
            filename=output_dir / f"{name}.gif",
        )

    if not args.no_output:
        print(f"Simulated {scheme_name} from t=0 to t={result.t[-1]:.6g}")
        print(f"Grid size: {u1.size}, steps: {simulation.steps}, initial CFL number: {cfl:.3f}")
        print(f"Mass: {extras['mass_initial']:.6e} -> {extras['mass_final']:.6e}")
        print(f"Total variation: {extras['tv_initial']:.6e} -> {extras['tv_final']:.6e}")
        print(f"L2 norm of solution at final time: {snapshot_norms[-1]['L2']:.6e}")
        print(f"Max |u| at final time: {float(np.max(np.abs(u1))):.6e}")
        if errors is not None:
            print(f"Error vs exact solution: L1={errors['L1']:.3e} Linf={errors['Linf']:.3e}")


if __name__ == "__main__":
    main()
