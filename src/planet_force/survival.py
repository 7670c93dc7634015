from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray


def kaplan_meier(times: ArrayLike, censored: ArrayLike | None = None) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Return (t, S(t)) at each removal time.

    ``censored`` marks particles still present when their run ended (survivors
    at ``t_max``, timeouts); they stay in the risk set up to their end time
    but never count as removals. Without it every time is a removal and the
    result is the plain empirical survival function.
    """
    t = np.asarray(times, dtype=float)
    c = np.zeros(t.shape, dtype=bool) if censored is None else np.asarray(censored, dtype=bool)
    keep = np.isfinite(t)
    t, c = t[keep], c[keep]

    event_t = np.unique(t[~c])
    S = np.empty(event_t.shape, dtype=float)
    s = 1.0
    for k, u in enumerate(event_t):
        at_risk = np.count_nonzero(t >= u)
        removed = np.count_nonzero((t == u) & ~c)
        s *= 1.0 - removed / at_risk
        S[k] = s
    return event_t, S


def fit_removal_rate(times: ArrayLike, censored: ArrayLike | None = None, t_min: float = 0.0) -> dict:
    """Fit S(t) ~ exp(-kappa t) for engulfment/ejection removal times.

    Survivors belong in ``times`` with ``censored=True``; dropping them biases
    kappa high.
    """
    t, S = kaplan_meier(times, censored)
    n_events = int(np.count_nonzero(t >= t_min))
    if n_events < 30:
        return {"kappa": np.nan, "note": "too_few", "t_min": float(t_min), "n": n_events}
    mask = (S > 0.0) & (S < 1.0) & (t >= t_min)
    if np.sum(mask) < 10:
        return {"kappa": np.nan, "note": "bad_tail", "t_min": float(t_min), "n": n_events}
    x = t[mask]
    y = np.log(S[mask])
    A = np.vstack([x, np.ones_like(x)]).T
    slope, intercept = np.linalg.lstsq(A, y, rcond=None)[0]
    return {"kappa": float(-slope), "intercept": float(intercept), "t_min": float(t_min), "n": n_events}


def outcome_fractions(labels: NDArray[np.str_] | list[str]) -> dict:
    labels = np.asarray(labels, dtype=str)
    if labels.size == 0:
        return {}
    u, c = np.unique(labels, return_counts=True)
    return {str(k): float(v) / labels.size for k, v in zip(u, c)}
