#!/usr/bin/env python
from __future__ import annotations

import os
import csv
import json
import argparse
from concurrent.futures import ProcessPoolExecutor
from typing import Dict, Any
import numpy as np
from tqdm import tqdm

from planet_force.config import load_ensemble_config
from planet_force.ic import sample_ic
from planet_force.dataset import run_one


def _set_thread_env():
    # Avoid oversubscription when also using multiple processes.
    os.environ.setdefault("OMP_NUM_THREADS", "1")
    os.environ.setdefault("OPENBLAS_NUM_THREADS", "1")
    os.environ.setdefault("MKL_NUM_THREADS", "1")


def build_tasks(cfg) -> list[tuple[int, Dict[str, Any]]]:
    tasks = []
    seed = int(cfg.seed0)
    for a in cfg.a_list:
        for e in cfg.e_list:
            rng = np.random.default_rng(seed + 99991)
            for _ in range(cfg.n_per_setting):
                ic = sample_ic(rng, a=float(a), e=float(e), inc_max=float(cfg.inc_max),
                               random_angles=bool(cfg.random_angles))
                payload = {
                    "seed": seed,
                    "planet": cfg.planet,
                    "sim": cfg.sim,
                    "ic": ic,
                    "output": cfg.output,
                }
                tasks.append((seed, payload))
                seed += 1
    return tasks


def _worker(task: tuple[int, Dict[str, Any]]) -> Dict[str, Any]:
    seed, p = task
    return run_one(seed=seed, params=p["planet"], sim=p["sim"], ic=p["ic"], output=p["output"])


def main():
    _set_thread_env()

    ap = argparse.ArgumentParser()
    ap.add_argument("--config", required=True, help="Path to ensemble JSON config")
    args = ap.parse_args()

    cfg = load_ensemble_config(args.config)
    out_dir = cfg.output.out_dir
    os.makedirs(out_dir, exist_ok=True)

    # save config snapshot
    with open(args.config, "r", encoding="utf-8") as f:
        cfg_raw = json.load(f)
    with open(os.path.join(out_dir, "config_used.json"), "w", encoding="utf-8") as f:
        json.dump(cfg_raw, f, indent=2)

    tasks = build_tasks(cfg)

    workers = cfg.parallel.workers or (os.cpu_count() or 4)
    chunksize = max(1, int(cfg.parallel.chunksize))

    out_csv = os.path.join(out_dir, "runs.csv")
    tmp_csv = out_csv + ".tmp"

    with ProcessPoolExecutor(max_workers=workers) as ex:
        it = ex.map(_worker, tasks, chunksize=chunksize)

        with open(tmp_csv, "w", newline="", encoding="utf-8") as f:
            writer = None
            for row in tqdm(it, total=len(tasks)):
                if writer is None:
                    writer = csv.DictWriter(f, fieldnames=list(row.keys()))
                    writer.writeheader()
                writer.writerow(row)

    os.replace(tmp_csv, out_csv)
    print("Saved:", out_csv)


if __name__ == "__main__":
    main()
