from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

import matplotlib
matplotlib.use("Agg", force=True)  # headless
import matplotlib.pyplot as plt

from .config import Units, PlanetParams
from .ephemeris import planet_position, star_position
from .integrate import jacobi_constant


@dataclass(frozen=True)
class FigureConfig:
    fmt: str = "pdf"          # "pdf", "png", "svg"
    dpi: int = 300            # used for raster formats only
    fontsize: float = 10.0
    use_tex: bool = False
    tight: bool = True
    pad_inches: float = 0.02
    figsize: Tuple[float, float] = (3.4, 2.6)


def set_paper_style(cfg: FigureConfig) -> None:
    small = max(6.0, cfg.fontsize - 2.0)
    plt.rcParams.update({
        "figure.figsize": cfg.figsize,
        "figure.dpi": 120,
        "savefig.dpi": cfg.dpi,
        "font.size": cfg.fontsize,
        "axes.labelsize": cfg.fontsize,
        "axes.titlesize": cfg.fontsize,
        "legend.fontsize": small,
        "xtick.labelsize": small,
        "ytick.labelsize": small,
        "xtick.direction": "in",
        "ytick.direction": "in",
        "legend.frameon": False,
        "lines.linewidth": 1.0,
        "pdf.fonttype": 42,
    })
    if cfg.use_tex:
        plt.rcParams.update({"text.usetex": True, "font.family": "serif"})


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def savefig(fig: plt.Figure, path: str, cfg: FigureConfig) -> None:
    kwargs = {}
    if cfg.tight:
        kwargs["bbox_inches"] = "tight"
        kwargs["pad_inches"] = cfg.pad_inches
    if path.lower().endswith((".png", ".jpg", ".jpeg", ".tif", ".tiff")):
        kwargs["dpi"] = cfg.dpi
    fig.savefig(path, **kwargs)


def plot_xy_trajectory(T: NDArray[np.float64], Y: NDArray[np.float64], params: PlanetParams,
                       out_path: str, cfg: FigureConfig, title: str = "") -> None:
    """Particle track in the reference plane with the planet and star paths."""
    rp = planet_position(params, T)
    rs = star_position(params, T)
    fig = plt.figure()
    ax = fig.add_subplot(111)
    ax.plot(Y[:, 0], Y[:, 1], label="particle")
    ax.plot(rp[:, 0], rp[:, 1], lw=0.6, label="planet")
    ax.plot(rs[:, 0], rs[:, 1], lw=0.6, label="star")
    ax.plot([Y[0, 0]], [Y[0, 1]], marker="o")
    ax.plot([Y[-1, 0]], [Y[-1, 1]], marker="x")
    ax.set_aspect("equal", adjustable="datalim")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    if title:
        ax.set_title(title)
    ax.legend(loc="best")
    savefig(fig, out_path, cfg)
    plt.close(fig)


def plot_distances(T: NDArray[np.float64], Y: NDArray[np.float64], params: PlanetParams,
                   out_path: str, cfg: FigureConfig, r_engulf: float = 0.0) -> None:
    dp = np.linalg.norm(Y[:, :3] - planet_position(params, T), axis=1)
    ds = np.linalg.norm(Y[:, :3] - star_position(params, T), axis=1)
    fig = plt.figure()
    ax = fig.add_subplot(111)
    ax.semilogy(T, ds, label=r"$d_\star$")
    ax.semilogy(T, dp, label=r"$d_p$")
    if r_engulf > 0.0:
        ax.axhline(r_engulf, ls="--", lw=0.6, color="k")
    ax.set_xlabel("t")
    ax.set_ylabel("distance")
    ax.legend(loc="best")
    savefig(fig, out_path, cfg)
    plt.close(fig)


def plot_jacobi_drift(T: NDArray[np.float64], Y: NDArray[np.float64], units: Units, params: PlanetParams,
                      out_path: str, cfg: FigureConfig) -> None:
    CJ = np.array([jacobi_constant(t, y, units, params) for t, y in zip(T, Y)], dtype=float)
    rel = np.abs((CJ - CJ[0]) / CJ[0]) if CJ[0] != 0.0 else np.abs(CJ - CJ[0])
    fig = plt.figure()
    ax = fig.add_subplot(111)
    ax.semilogy(T[1:], np.maximum(rel[1:], 1e-18))
    ax.set_xlabel("t")
    ax.set_ylabel(r"$|\Delta C_J / C_J|$")
    savefig(fig, out_path, cfg)
    plt.close(fig)
