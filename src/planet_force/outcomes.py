from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from .config import Units, PlanetParams
from .ephemeris import star_position, star_velocity


FAILED_REASONS = ("exception", "solver_empty", "nonfinite", "stalled", "solver_failed")


def orbit_from_state(G: float, M: float, r: NDArray[np.float64], v: NDArray[np.float64]) -> dict:
    """Osculating two-body orbit of a massless particle about mass M.

    r, v are relative to the central body. Works for bound and unbound
    orbits; q uses the angular momentum so it stays finite near e=1.
    """
    mu = G*M
    r = np.asarray(r, dtype=float)
    v = np.asarray(v, dtype=float)
    d = float(np.linalg.norm(r))
    E = 0.5*float(np.dot(v, v)) - mu/d

    h = np.cross(r, v)
    h2 = float(np.dot(h, h))
    evec = np.cross(v, h)/mu - r/d
    e = float(np.linalg.norm(evec))

    a = -mu/(2.0*E) if E != 0.0 else np.inf
    q = h2/(mu*(1.0 + e))
    inc = float(np.arccos(np.clip(h[2]/np.sqrt(h2), -1.0, 1.0))) if h2 > 0.0 else 0.0
    return {"a": float(a), "e": e, "q": float(q), "inc": inc, "d": d, "E": float(E)}


def heliocentric_state(params: PlanetParams, t: float, y: NDArray[np.float64]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    r = y[:3] - star_position(params, t)
    v = y[3:6] - star_velocity(params, t)
    return r, v


def classify_final_orbit(units: Units, params: PlanetParams, t: float, y_final: NDArray[np.float64]) -> dict:
    """Heliocentric orbit of the particle at its final state."""
    r, v = heliocentric_state(params, t, y_final)
    return orbit_from_state(units.G, params.mstar, r, v)


def outcome_label(res: dict, final_info: dict | None = None) -> str:
    if res.get("engulfed"):
        return "engulfed"
    if res.get("ejected"):
        return "ejected"
    reason = res.get("stop_reason", "")
    if reason in FAILED_REASONS:
        return "failed"
    if reason == "walltime":
        return "timeout"
    if final_info is None:
        return "unknown"
    return "bound" if final_info["E"] < 0.0 else "unbound"
