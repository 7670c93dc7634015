"""Analytic positions of the planet and the star.

The planet moves on a circle of radius ``ap`` in the z=0 plane at angle
``n*t + m0p``; the star sits at the mass-ratio reflection of the planet so the
barycenter stays at the origin. ``inc`` and ``as_`` are not applied.

All functions accept a scalar ``t`` (returning shape ``(3,)``) or an array of
times (returning shape ``(T,3)``).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray
from .config import PlanetParams


def mean_anomaly(params: PlanetParams, t: ArrayLike) -> NDArray[np.float64]:
    return params.n * np.asarray(t, dtype=np.float64) + params.m0p


def planet_position(params: PlanetParams, t: ArrayLike) -> NDArray[np.float64]:
    phi = mean_anomaly(params, t)
    return np.stack([params.ap*np.cos(phi),
                     params.ap*np.sin(phi),
                     np.zeros_like(phi)], axis=-1)


def star_position(params: PlanetParams, t: ArrayLike) -> NDArray[np.float64]:
    # center-of-mass reflection: mplanet*r_p + mstar*r_s = 0
    return params.mass_ratio * planet_position(params, t)


def planet_velocity(params: PlanetParams, t: ArrayLike) -> NDArray[np.float64]:
    phi = mean_anomaly(params, t)
    v = params.ap * params.n
    return np.stack([-v*np.sin(phi),
                     v*np.cos(phi),
                     np.zeros_like(phi)], axis=-1)


def star_velocity(params: PlanetParams, t: ArrayLike) -> NDArray[np.float64]:
    return params.mass_ratio * planet_velocity(params, t)
