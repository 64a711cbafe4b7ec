"""
Figures for 1D scheme runs: single states, snapshot overlays, scheme
comparisons, x-t heatmaps and GIF animations.

Rendering is never needed to simulate. The Agg backend is forced on import,
so figures can be written on machines without a display.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple, Union

import matplotlib

matplotlib.use("Agg", force=True)
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
from matplotlib import animation  # noqa: E402

PathLike = Union[str, Path, None]


def _save(fig, savepath: PathLike) -> None:
    """Write ``fig`` as a 150 dpi PNG when a path is given, then close it."""
    if savepath is not None:
        savepath = str(savepath)
        os.makedirs(os.path.dirname(savepath) or ".", exist_ok=True)
        fig.savefig(savepath, dpi=150, bbox_inches="tight")
    plt.close(fig)


def _decorate(ax, title: Optional[str], ylabel: str = "u") -> None:
    ax.set_xlabel("x")
    ax.set_ylabel(ylabel)
    if title:
        ax.set_title(title)
    ax.grid(True, alpha=0.3)


def _snapshots(solutions: np.ndarray, nt: int) -> np.ndarray:
    sol = np.asarray(solutions)
    if sol.ndim != 2:
        raise ValueError(f"Snapshots must be 2D (nx, nt), got shape {sol.shape}.")
    if sol.shape[1] != nt:
        raise ValueError(f"{sol.shape[1]} snapshot columns but {nt} times.")
    return sol


def plot_1d(x: np.ndarray, u: np.ndarray, title: Optional[str] = None, savepath: PathLike = None) -> None:
    """Line plot of one state ``u`` over the grid ``x``."""
    fig, ax = plt.subplots()
    ax.plot(np.asarray(x), np.asarray(u))
    _decorate(ax, title)
    _save(fig, savepath)


def plot_1d_combined(
    x: np.ndarray,
    solutions: np.ndarray,
    times: Sequence[float],
    title: Optional[str] = None,
    savepath: PathLike = None,
    max_curves: Optional[int] = None,
) -> None:
    """
    Overlay the stored snapshots of a run.

    Parameters
    ----------
    solutions:
        ``SimulationResult.u``, shape ``(nx, nt)``.
    times:
        ``SimulationResult.t``, one entry per column.
    max_curves:
        Draw at most this many snapshots, evenly picked and always including
        the first and the last.
    """
    times = list(times)
    sol = _snapshots(solutions, len(times))

    columns = np.arange(sol.shape[1])
    if max_curves is not None and columns.size > max_curves:
        columns = np.unique(np.linspace(0, columns.size - 1, max_curves).round().astype(int))

    fig, ax = plt.subplots()
    for k in columns:
        ax.plot(x, sol[:, k], label=f"t={times[k]:.3g}")
    _decorate(ax, title)
    ax.legend(fontsize="small")
    _save(fig, savepath)


def plot_scheme_comparison(
    x: np.ndarray,
    states: Mapping[str, np.ndarray],
    reference: Optional[np.ndarray] = None,
    title: Optional[str] = None,
    savepath: PathLike = None,
) -> None:
    """
    Overlay the final states of several schemes, optionally with a reference
    (exact) solution drawn as a dashed black line.
    """
    x = np.asarray(x)

    fig, ax = plt.subplots()
    if reference is not None:
        ax.plot(x, np.asarray(reference), "k--", lw=1.0, label="exact")
    for name, u in states.items():
        ax.plot(x, np.asarray(u), label=name)
    _decorate(ax, title)
    ax.legend(fontsize="small")
    _save(fig, savepath)


def plot_xt_heatmap(
    x: np.ndarray,
    times: Sequence[float],
    solutions: np.ndarray,
    title: Optional[str] = None,
    savepath: PathLike = None,
) -> None:
    """
    Space-time colour map of a run: x along the horizontal axis, t upwards.
    Characteristics show up as straight lines, shocks as their crossings.
    """
    x = np.asarray(x)
    t = np.asarray(times, dtype=float)
    sol = _snapshots(solutions, t.size)
    if sol.shape[0] != x.size:
        raise ValueError(f"{sol.shape[0]} snapshot rows but {x.size} grid points.")

    fig, ax = plt.subplots()
    mesh = ax.pcolormesh(x, t, sol.T, shading="auto", cmap="viridis")
    _decorate(ax, title, ylabel="t")
    fig.colorbar(mesh, ax=ax, label="u")
    _save(fig, savepath)


def _format_time_label(t: float) -> str:
    if abs(t) < 1e-9:
        return "t = 0"
    if abs(t) < 1.0:
        return f"t = {t:.4f}"
    return f"t = {t:.3f}"


def animate_1d(
    u_history: Sequence[np.ndarray] | np.ndarray,
    x: np.ndarray,
    *,
    times: Optional[Sequence[float]] = None,
    filename: PathLike = None,
    fps: int = 25,
    dpi: int = 80,
    stride: int = 1,
    title: Optional[str] = None,
    ylim: Optional[Tuple[float, float]] = (-1.5, 1.5),
) -> animation.FuncAnimation:
    """
    Animate a 1D field from a time history and optionally save it as a GIF.

    Parameters
    ----------
    u_history:
        Frames of shape (T, N), or a list of (N,) arrays.
    x:
        Spatial grid of shape (N,).
    times:
        Optional time stamp per frame; defaults to the frame index.
    filename:
        If given, the animation is written there with Pillow (GIF).
    stride:
        Keep every ``stride``-th frame.
    ylim:
        Fixed y-limits, or ``None`` to derive them from the data.
    """
    U = np.asarray(u_history, dtype=float)
    if U.ndim == 1:
        U = U[None, :]
    t_arr = np.arange(U.shape[0], dtype=float) if times is None else np.asarray(times, dtype=float)
    if t_arr.shape[0] != U.shape[0]:
        raise ValueError("times length must match number of frames.")
    if stride > 1:
        U, t_arr = U[::stride], t_arr[::stride]

    x = np.asarray(x)
    if x.shape[0] != U.shape[1]:
        raise ValueError(f"x has length {x.shape[0]} but frames have N={U.shape[1]}")

    if ylim is None:
        ymin, ymax = float(np.nanmin(U)), float(np.nanmax(U))
        if np.isclose(ymin, ymax):
            ymin, ymax = ymin - 1.0, ymax + 1.0
        margin = 0.05 * (ymax - ymin)
        ylim = (ymin - margin, ymax + margin)

    fig, ax = plt.subplots(figsize=(4.8, 3.6))
    (line,) = ax.plot(x, U[0])
    ax.set_xlim(float(np.min(x)), float(np.max(x)))
    ax.set_ylim(*ylim)
    ax.set_xlabel("x")
    ax.set_ylabel("u(x, t)")
    if title:
        ax.set_title(title)
    ax.grid(True, alpha=0.3)
    time_txt = ax.text(0.02, 0.95, _format_time_label(t_arr[0]), transform=ax.transAxes, va="top")

    def _update(i: int):
        line.set_ydata(U[i])
        time_txt.set_text(_format_time_label(t_arr[i]))
        return line, time_txt

    anim = animation.FuncAnimation(fig, _update, frames=U.shape[0], blit=True)

    if filename is not None:
        filename = str(filename)
        os.makedirs(os.path.dirname(filename) or ".", exist_ok=True)
        anim.save(filename, writer=animation.PillowWriter(fps=fps), dpi=dpi)

    plt.close(fig)
    return anim
