from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence
import numpy as np
from numpy.typing import ArrayLike, NDArray
from .config import Units, PlanetParams
from .ephemeris import planet_position, star_position


@dataclass
class Particle:
    """Massless test particle with an acceleration accumulator."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    ax: float = 0.0
    ay: float = 0.0
    az: float = 0.0

    def reset_accel(self) -> None:
        self.ax = 0.0
        self.ay = 0.0
        self.az = 0.0

    @property
    def accel(self) -> NDArray[np.float64]:
        return np.array([self.ax, self.ay, self.az], dtype=np.float64)


def planet_force(t: float, G: float, params: PlanetParams, particles: Sequence[Particle]) -> None:
    """Add the planet's and the star's pull to ``particles[0]``.

    Positions come from the circular planet orbit and its center-of-mass
    reflection. The acceleration is accumulated (``+=``) so several effects can
    contribute within one evaluation pass. A particle sitting exactly on either
    body gets non-finite components and NumPy raises a RuntimeWarning.
    """
    p = particles[0]

    # float64 scalars so a zero separation yields inf/nan instead of ZeroDivisionError
    Gm_p = np.float64(G * params.mplanet)
    Gm_s = np.float64(G * params.mstar)
    nt = np.float64(params.n * t + params.m0p)

    # planet on a circle in the reference plane
    planet_x = params.ap*np.cos(nt)
    planet_y = params.ap*np.sin(nt)
    planet_z = np.float64(0.0)

    # star from the center-of-mass constraint
    mass_ratio = params.mass_ratio
    star_x = mass_ratio*planet_x
    star_y = mass_ratio*planet_y
    star_z = np.float64(0.0)

    x, y, z = p.x, p.y, p.z

    dxp = x - planet_x; dyp = y - planet_y; dzp = z - planet_z
    d3p = np.sqrt(dxp*dxp + dyp*dyp + dzp*dzp)**3

    dxs = x - star_x; dys = y - star_y; dzs = z - star_z
    d3s = np.sqrt(dxs*dxs + dys*dys + dzs*dzs)**3

    kp = -Gm_p/d3p
    ks = -Gm_s/d3s

    p.ax = float(p.ax + (kp*dxp + ks*dxs))
    p.ay = float(p.ay + (kp*dyp + ks*dys))
    p.az = float(p.az + (kp*dzp + ks*dzs))


def accel_point_mass(r: ArrayLike, r_body: ArrayLike, Gm: float) -> NDArray[np.float64]:
    """Inverse-square acceleration toward ``r_body``; broadcasts over leading axes."""
    d = np.asarray(r, dtype=np.float64) - np.asarray(r_body, dtype=np.float64)
    dist = np.linalg.norm(d, axis=-1, keepdims=True)
    return (-Gm / dist**3) * d


def planet_star_accel(t: ArrayLike, r: ArrayLike, units: Units, params: PlanetParams) -> NDArray[np.float64]:
    """Summed planet + star acceleration at position(s) ``r`` without mutation.

    ``t`` and ``r`` broadcast together: a scalar time with ``r`` of shape
    ``(N,3)`` evaluates N particles at once; matching ``(T,)`` / ``(T,3)``
    evaluates a trajectory.
    """
    G = units.G
    a_p = accel_point_mass(r, planet_position(params, t), G*params.mplanet)
    a_s = accel_point_mass(r, star_position(params, t), G*params.mstar)
    return a_p + a_s
