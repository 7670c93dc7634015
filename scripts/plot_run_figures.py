#!/usr/bin/env python
from __future__ import annotations

import os
import argparse
from typing import Optional

import numpy as np
import pandas as pd

from planet_force.config import PlanetParams, SimParams, ICParams, Units
from planet_force.ic import make_initial_state
from planet_force.integrate import integrate_particle
from planet_force.plotting import (FigureConfig, set_paper_style, ensure_dir,
                                   plot_xy_trajectory, plot_distances, plot_jacobi_drift)


def _float(x) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return float("nan")


def _build_params_from_row(row: pd.Series) -> tuple[PlanetParams, SimParams, ICParams]:
    params = PlanetParams(**{k: _float(row[f"planet_{k}"])
                             for k in ("inc", "ap", "as_", "n", "m0p", "mplanet", "mstar")})

    defaults = SimParams()
    sim = SimParams(
        method=str(row.get("sim_method", defaults.method)),
        rtol=_float(row.get("sim_rtol", defaults.rtol)),
        atol=_float(row.get("sim_atol", defaults.atol)),
        max_step=_float(row.get("sim_max_step", defaults.max_step)),
        t_max=_float(row.get("sim_t_max", defaults.t_max)),
        dt_chunk=_float(row.get("sim_dt_chunk", defaults.dt_chunk)),
        r_engulf=_float(row.get("sim_r_engulf", defaults.r_engulf)),
        orbit_engulf=str(row.get("sim_orbit_engulf", defaults.orbit_engulf)) == "True",
        orbit_check_factor=_float(row.get("sim_orbit_check_factor", defaults.orbit_check_factor)),
        R_end=_float(row.get("sim_R_end", defaults.R_end)),
    )

    ic = ICParams(**{k: _float(row[f"ic_{k}"]) for k in ("a", "e", "inc", "Omega", "omega", "M")})
    return params, sim, ic


def _load_or_rerun(runs_csv: str, seed: int, raw_dir: Optional[str], rerun_if_missing: bool):
    df = pd.read_csv(runs_csv)
    match = df[df["seed"] == seed]
    if len(match) != 1:
        raise ValueError(f"seed {seed} not found uniquely in {runs_csv} (found {len(match)})")
    row = match.iloc[0]

    params, sim, ic = _build_params_from_row(row)

    if raw_dir is None:
        raw_dir = os.path.join(os.path.dirname(runs_csv), "raw")
    raw_path = os.path.join(raw_dir, f"run_seed{seed}.npz")

    if os.path.exists(raw_path):
        dat = np.load(raw_path)
        return row, dat["T"].astype(float), dat["Y"].astype(float), params, sim

    if not rerun_if_missing:
        raise FileNotFoundError(f"Raw trajectory not found: {raw_path}. Enable --rerun_if_missing or store raw runs.")
    units = Units()
    y0 = make_initial_state(units, params, ic)
    res = integrate_particle(units, params, sim, y0)
    return row, res["T"], res["Y"], params, sim


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--runs_csv", required=True)
    ap.add_argument("--seed", type=int, required=True)
    ap.add_argument("--raw_dir", default=None)
    ap.add_argument("--rerun_if_missing", action="store_true")
    ap.add_argument("--out_dir", default="figs_run")
    ap.add_argument("--fmt", default="pdf")
    args = ap.parse_args()

    cfg = FigureConfig(fmt=args.fmt)
    set_paper_style(cfg)
    ensure_dir(args.out_dir)

    row, T, Y, params, sim = _load_or_rerun(args.runs_csv, args.seed, args.raw_dir, args.rerun_if_missing)
    title = f"seed {args.seed}: {row['label']}"

    def out(name: str) -> str:
        return os.path.join(args.out_dir, f"seed{args.seed}_{name}.{cfg.fmt}")

    plot_xy_trajectory(T, Y, params, out("xy"), cfg, title=title)
    plot_distances(T, Y, params, out("distances"), cfg, r_engulf=sim.r_engulf)
    plot_jacobi_drift(T, Y, Units(), params, out("jacobi"), cfg)
    print("Saved figures to:", args.out_dir)


if __name__ == "__main__":
    main()
