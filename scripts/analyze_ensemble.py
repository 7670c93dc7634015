#!/usr/bin/env python
from __future__ import annotations

import argparse
import pandas as pd

from planet_force.survival import fit_removal_rate, outcome_fractions


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--runs_csv", required=True)
    ap.add_argument("--tmin", type=float, default=0.0)
    args = ap.parse_args()

    df = pd.read_csv(args.runs_csv)
    print("n runs:", len(df))
    print(df["label"].value_counts())
    print("fractions:", outcome_fractions(df["label"].to_numpy()))

    # particles not removed by t_end are right-censored, not dropped
    removed = df["label"].isin(["engulfed", "ejected"]).to_numpy()
    times = df["t_end"].to_numpy(dtype=float)
    fit = fit_removal_rate(times, censored=~removed, t_min=args.tmin)
    print("removal-rate fit:", fit)

    cols = ["t_end", "dCJ", "q_final", "e_final", "runtime_sec"]
    print("\nSummary by outcome:")
    for lab, g in df.groupby("label"):
        print("==", lab, "n=", len(g))
        print(g[cols].mean(numeric_only=True))

    print("\nEngulfed fraction by initial (a, e):")
    df["is_engulfed"] = df["label"] == "engulfed"
    print(df.pivot_table(index="ic_a", columns="ic_e", values="is_engulfed", aggfunc="mean"))


if __name__ == "__main__":
    main()
