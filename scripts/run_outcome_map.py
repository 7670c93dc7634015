#!/usr/bin/env python
"""Outcome map over initial (a, e) of the test particle at fixed angles."""
from __future__ import annotations

import os
import json
import argparse
from concurrent.futures import ProcessPoolExecutor, as_completed
import numpy as np
from tqdm import tqdm

from planet_force.config import PlanetParams, SimParams, ICParams
from planet_force.dataset import run_outcome_only

LABEL_TO_INT = {
    "bound": 0,
    "unbound": 1,
    "engulfed": 2,
    "ejected": 3,
    "timeout": 4,
    "unknown": 5,
    "failed": 5,
}


def _set_thread_env():
    os.environ.setdefault("OMP_NUM_THREADS", "1")
    os.environ.setdefault("OPENBLAS_NUM_THREADS", "1")
    os.environ.setdefault("MKL_NUM_THREADS", "1")


def load_config(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _chunked(seq, n):
    for k in range(0, len(seq), n):
        yield seq[k:k+n]


def _worker_one(task):
    i, j, seed, params, sim, ic, max_runtime_sec = task
    out = run_outcome_only(seed=seed, params=params, sim=sim, ic=ic, max_runtime_sec=max_runtime_sec)
    lab_str = out.get("label", "unknown")
    lab_int = LABEL_TO_INT.get(lab_str, LABEL_TO_INT["unknown"])
    return (i, j, lab_int, float(out.get("t_end", np.nan)), lab_str, "")


def _worker_chunk(chunk):
    """Run a chunk in one process; numerical exceptions become failed cells."""
    out = []
    for task in chunk:
        if len(task) != 7:
            raise ValueError(f"Bad task tuple length in chunk: expected 7, got {len(task)}")
        try:
            out.append(_worker_one(task))
        except Exception as e:
            i, j = int(task[0]), int(task[1])
            err = f"{type(e).__name__}: {e}"
            if len(err) > 300:
                err = err[:300] + "..."
            out.append((i, j, LABEL_TO_INT["failed"], float("nan"), "failed", err))
    return out


def main():
    _set_thread_env()
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", required=True)
    args = ap.parse_args()

    cfg = load_config(args.config)
    out_dir = cfg.get("out_dir", "out_map")
    os.makedirs(out_dir, exist_ok=True)

    params = PlanetParams.from_mapping(cfg["planet"])
    sim = SimParams(**cfg.get("sim", {}))

    na = int(cfg["na"])
    ne = int(cfg["ne"])
    a0, a1 = cfg["a_range"]
    e0, e1 = cfg["e_range"]
    a_vals = np.linspace(float(a0), float(a1), na)
    e_vals = np.linspace(float(e0), float(e1), ne)
    inc = float(cfg.get("inc", 0.0))
    omega = float(cfg.get("omega", 0.0))
    M = float(cfg.get("M", np.pi))

    seed0 = int(cfg.get("seed0", 20000))
    max_runtime_sec = float(cfg.get("max_runtime_sec", 0.0) or 0.0)

    tasks = []
    seed = seed0
    for i, a in enumerate(a_vals):
        for j, e in enumerate(e_vals):
            ic = ICParams(a=float(a), e=float(e), inc=inc, Omega=0.0, omega=omega, M=M)
            tasks.append((i, j, seed, params, sim, ic, max_runtime_sec))
            seed += 1

    workers = int(cfg.get("workers", 0)) or (os.cpu_count() or 4)
    chunksize = int(cfg.get("chunksize", 8))

    grid = np.full((na, ne), LABEL_TO_INT["unknown"], dtype=np.int64)
    tend = np.full((na, ne), np.nan, dtype=float)

    err_path = os.path.join(out_dir, "errors.jsonl")
    n_failed = 0

    with ProcessPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(_worker_chunk, ch) for ch in _chunked(tasks, chunksize)]

        with open(err_path, "w", encoding="utf-8") as ef, tqdm(total=len(tasks)) as pbar:
            for fut in as_completed(futures):
                results = fut.result()
                for (i, j, lab_int, t_end, lab_str, err_str) in results:
                    grid[i, j] = int(lab_int)
                    tend[i, j] = float(t_end)
                    if err_str:
                        n_failed += 1
                        ef.write(json.dumps({
                            "i": int(i), "j": int(j),
                            "a": float(a_vals[int(i)]),
                            "e": float(e_vals[int(j)]),
                            "seed": int(seed0 + int(i)*ne + int(j)),
                            "label": str(lab_str),
                            "error": str(err_str),
                        }) + "\n")
                pbar.update(len(results))

    np.save(os.path.join(out_dir, "outcome_grid.npy"), grid)
    np.save(os.path.join(out_dir, "outcome_tend.npy"), tend)
    np.save(os.path.join(out_dir, "a_vals.npy"), a_vals)
    np.save(os.path.join(out_dir, "e_vals.npy"), e_vals)

    with open(os.path.join(out_dir, "config_used.json"), "w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)

    u, c = np.unique(grid, return_counts=True)
    print("Saved outcome map to:", out_dir)
    print("Label counts:", {int(uu): int(cc) for uu, cc in zip(u, c)})
    print("Failed cells logged:", n_failed, "->", err_path)


if __name__ == "__main__":
    main()
