from __future__ import annotations

import os
import numpy as np
from dataclasses import asdict

from .config import Units, PlanetParams, SimParams, ICParams, OutputParams
from .ic import make_initial_state
from .integrate import integrate_particle
from .outcomes import classify_final_orbit, outcome_label


def _final_info(units: Units, params: PlanetParams, res: dict) -> dict | None:
    y_end = res["Y"][-1]
    if not np.all(np.isfinite(y_end)):
        return None
    return classify_final_orbit(units, params, res["t_end"], y_end)


def run_one(seed: int,
            params: PlanetParams,
            sim: SimParams,
            ic: ICParams,
            output: OutputParams) -> dict:
    """Run a single test-particle experiment and return a flat dict for tabular storage."""
    units = Units()
    y0 = make_initial_state(units, params, ic)
    res = integrate_particle(units, params, sim, y0)

    final_info = _final_info(units, params, res)
    label = outcome_label(res, final_info)
    final_info = final_info or {}

    row = {
        "seed": int(seed),
        "label": label,
        "stop_reason": res["stop_reason"],
        "t_end": float(res["t_end"]),
        "engulfed": bool(res["engulfed"]),
        "ejected": bool(res["ejected"]),
        "timeout": bool(res["timeout"]),
        "CJ0": float(res["CJ0"]),
        "CJ_end": float(res["CJ_end"]),
        "dCJ": float(res["CJ_end"] - res["CJ0"]),
        "runtime_sec": float(res["runtime_sec"]),
        "solver_status": int(res["solver_status"]),
        # final heliocentric orbit
        "a_final": final_info.get("a"),
        "e_final": final_info.get("e"),
        "q_final": final_info.get("q"),
        "inc_final": final_info.get("inc"),
        "d_final": final_info.get("d"),
    }

    # parameters (flatten)
    for k, v in asdict(params).items():
        row[f"planet_{k}"] = v
    for k, v in asdict(sim).items():
        row[f"sim_{k}"] = v
    for k, v in asdict(ic).items():
        row[f"ic_{k}"] = v

    # raw storage (debugging)
    if output.store_raw and output.store_raw_every and (seed % output.store_raw_every == 0):
        raw_dir = os.path.join(output.out_dir, "raw")
        os.makedirs(raw_dir, exist_ok=True)
        fname = os.path.join(raw_dir, f"run_seed{seed}.npz")
        if output.compress_npz:
            np.savez_compressed(fname, T=res["T"], Y=res["Y"])
        else:
            np.savez(fname, T=res["T"], Y=res["Y"])

    return row


def run_outcome_only(seed: int,
                     params: PlanetParams,
                     sim: SimParams,
                     ic: ICParams,
                     max_runtime_sec=None) -> dict:
    units = Units()
    y0 = make_initial_state(units, params, ic)
    res = integrate_particle(units, params, sim, y0, max_runtime_sec=max_runtime_sec)

    label = outcome_label(res, _final_info(units, params, res))
    return {
        "seed": int(seed),
        "label": label,
        "t_end": float(res["t_end"]),
        "engulfed": bool(res["engulfed"]),
        "ejected": bool(res["ejected"]),
        "timeout": bool(res["timeout"]),
    }
