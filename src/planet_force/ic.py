from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from .config import Units, PlanetParams, ICParams
from .ephemeris import star_position, star_velocity


def solve_kepler(M: float, e: float, tol: float = 1e-14, max_iter: int = 50) -> float:
    """Eccentric anomaly E from M = E - e sin E (elliptic, e < 1)."""
    if not 0.0 <= e < 1.0:
        raise ValueError(f"elliptic orbit required, got e={e}")
    M = float(np.mod(M, 2*np.pi))
    E = M if e < 0.8 else np.pi
    for _ in range(max_iter):
        f = E - e*np.sin(E) - M
        dE = f / (1.0 - e*np.cos(E))
        E -= dE
        if abs(dE) < tol:
            break
    return float(E)


def rot3(Omega: float, inc: float, omega: float) -> NDArray[np.float64]:
    """Perifocal -> reference frame rotation R_z(Omega) R_x(inc) R_z(omega)."""
    cO, sO = np.cos(Omega), np.sin(Omega)
    ci, si = np.cos(inc), np.sin(inc)
    cw, sw = np.cos(omega), np.sin(omega)
    return np.array([
        [cO*cw - sO*sw*ci, -cO*sw - sO*cw*ci,  sO*si],
        [sO*cw + cO*sw*ci, -sO*sw + cO*cw*ci, -cO*si],
        [sw*si,             cw*si,             ci],
    ], dtype=np.float64)


def elements_to_state(mu: float, a: float, e: float, inc: float,
                      Omega: float, omega: float, M: float) -> NDArray[np.float64]:
    """Keplerian elements -> [x,y,z,vx,vy,vz] relative to the central mass mu=G*M."""
    if a <= 0.0:
        raise ValueError(f"semi-major axis must be positive, got a={a}")
    E = solve_kepler(M, e)
    cE, sE = np.cos(E), np.sin(E)
    b = a*np.sqrt(1.0 - e*e)
    r_pf = np.array([a*(cE - e), b*sE, 0.0], dtype=np.float64)

    r = a*(1.0 - e*cE)
    Edot = np.sqrt(mu / a**3) / (1.0 - e*cE)
    v_pf = np.array([-a*sE*Edot, b*cE*Edot, 0.0], dtype=np.float64)

    R = rot3(Omega, inc, omega)
    return np.hstack([R @ r_pf, R @ v_pf]).astype(np.float64)


def make_initial_state(units: Units, params: PlanetParams, ic: ICParams) -> NDArray[np.float64]:
    """Barycentric test-particle state at t=0 from heliocentric elements.

    State ordering:
      y = [x,y,z, vx,vy,vz]
    """
    mu = units.G * params.mstar
    y_rel = elements_to_state(mu, ic.a, ic.e, ic.inc, ic.Omega, ic.omega, ic.M)
    y0 = y_rel.copy()
    y0[:3] += star_position(params, 0.0)
    y0[3:] += star_velocity(params, 0.0)
    return y0


def sample_ic(rng: np.random.Generator,
              a: float,
              e: float,
              inc_max: float,
              random_angles: bool = True) -> ICParams:
    # isotropic within the cone inc <= inc_max: cos(inc) uniform
    inc = float(np.arccos(rng.uniform(np.cos(inc_max), 1.0)))
    if random_angles:
        Omega, omega, M = (float(x) for x in rng.uniform(0.0, 2*np.pi, size=3))
    else:
        Omega = omega = M = 0.0
    return ICParams(a=float(a), e=float(e), inc=inc, Omega=Omega, omega=omega, M=M)
