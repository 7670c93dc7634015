from __future__ import annotations

import time
import numpy as np
from numpy.typing import NDArray
from scipy.integrate import solve_ivp

from .config import Units, PlanetParams, SimParams
from .ephemeris import planet_position, star_position
from .force import Particle, planet_force
from .outcomes import classify_final_orbit


def rhs_planet(t: float, y: NDArray[np.float64], units: Units, params: PlanetParams) -> NDArray[np.float64]:
    """Test-particle RHS, y = [x,y,z,vx,vy,vz]."""
    p = Particle(x=y[0], y=y[1], z=y[2])
    planet_force(t, units.G, params, [p])

    out = np.empty_like(y)
    out[0] = y[3]; out[1] = y[4]; out[2] = y[5]
    out[3] = p.ax; out[4] = p.ay; out[5] = p.az
    return out


def star_distance(t: float, y: NDArray[np.float64], params: PlanetParams) -> float:
    return float(np.linalg.norm(y[:3] - star_position(params, t)))


def jacobi_constant(t: float, y: NDArray[np.float64], units: Units, params: PlanetParams) -> float:
    """E - n Lz in the inertial frame; conserved since the potential rotates rigidly at rate n."""
    G = units.G
    r = y[:3]
    v = y[3:6]
    dp = np.linalg.norm(r - planet_position(params, t))
    ds = np.linalg.norm(r - star_position(params, t))
    E = 0.5*float(np.dot(v, v)) - G*params.mplanet/dp - G*params.mstar/ds
    Lz = r[0]*v[1] - r[1]*v[0]
    return float(E - params.n*Lz)


def integrate_particle(units: Units,
                       params: PlanetParams,
                       sim: SimParams,
                       y0: NDArray[np.float64],
                       max_runtime_sec=None,
                       rhs_fun=None) -> dict:
    """Chunked integration of one test particle with engulfment/ejection stops.

    Per chunk the loop checks, in order: solver health, non-finite state,
    stalling, pericenter engulfment and ejection. A direct hit on the star
    (star distance <= r_engulf) is caught by a terminal solve_ivp event.
    """

    t0 = 0.0
    y = np.asarray(y0, dtype=np.float64).copy()

    r_engulf = float(getattr(sim, "r_engulf", 0.0) or 0.0)
    use_stop_event = (r_engulf > 0.0)
    r_check = sim.orbit_check_factor * params.ap

    engulfed = False
    ejected = False
    timeout = False
    stop_reason = ""

    CJ0 = jacobi_constant(t0, y, units, params)

    # keep at least initial point
    t_list: list[float] = [0.0]
    y_chunks: list[NDArray[np.float64]] = [y[None, :]]

    start = time.time()
    if max_runtime_sec is None:
        max_wall = float(getattr(sim, "max_walltime_sec", 0.0) or 0.0)
    else:
        max_wall = float(max_runtime_sec)
    min_adv = float(getattr(sim, "min_t_advance", 0.0) or 0.0)

    max_step = sim.max_step
    if max_step is None or not np.isfinite(max_step) or max_step <= 0:
        max_step = np.inf
    else:
        max_step = float(max_step)

    solver_success = True
    solver_status = 0
    solver_message = "OK"

    while t0 < sim.t_max:
        t1 = min(t0 + sim.dt_chunk, sim.t_max)
        t_prev = float(t0)

        def fun(t, yy):
            if max_wall > 0.0 and (time.time() - start) > max_wall:
                raise TimeoutError(f"max_walltime_sec={max_wall} exceeded")
            if rhs_fun is None:
                return rhs_planet(t, yy, units, params)
            return rhs_fun(t, yy, units, params)

        events = None
        if use_stop_event:
            def ev_engulf(t, yy):
                return star_distance(t, yy, params) - r_engulf
            ev_engulf.terminal = True
            ev_engulf.direction = -1
            events = [ev_engulf]

        try:
            sol = solve_ivp(
                fun, (t0, t1), y,
                method=sim.method,
                rtol=sim.rtol, atol=sim.atol,
                max_step=max_step,
                events=events,
            )
        except TimeoutError:
            solver_success = False
            solver_status = -2
            solver_message = f"Aborted: walltime exceeded ({max_wall}s)"
            timeout = True
            stop_reason = "walltime"
            break
        except Exception as e:
            solver_success = False
            solver_status = -3
            solver_message = f"Exception in solve_ivp: {type(e).__name__}: {e}"
            stop_reason = "exception"
            break

        solver_success = bool(sol.success)
        solver_status = int(sol.status)
        solver_message = str(sol.message)

        if sol.t.size == 0:
            solver_success = False
            solver_status = -4
            solver_message = "solve_ivp returned empty time array"
            stop_reason = "solver_empty"
            break

        # append results (skip the duplicated first point)
        if sol.t.size > 1:
            t_list.extend(sol.t[1:].tolist())
            y_chunks.append(sol.y.T[1:])

        y = sol.y[:, -1].copy()
        t0 = float(sol.t[-1])

        if not np.all(np.isfinite(y)):
            solver_success = False
            solver_status = -5
            solver_message = "Non-finite state encountered (nan/inf)"
            stop_reason = "nonfinite"
            break

        # If SciPy reports failure (status=-1), stop immediately.
        if solver_status == -1 or (not solver_success):
            stop_reason = "solver_failed"
            break

        if use_stop_event and solver_status == 1:
            engulfed = True
            stop_reason = "r_engulf"
            break

        if min_adv > 0.0 and (t0 - t_prev) < min_adv:
            solver_success = False
            solver_status = -6
            solver_message = "Stalled: solver did not advance time"
            stop_reason = "stalled"
            break

        orb = classify_final_orbit(units, params, t0, y)

        # pericenter inside the star while the particle is in the planet's zone
        if use_stop_event and sim.orbit_engulf and orb["d"] <= r_check:
            if orb["q"] <= r_engulf and orb["d"] <= params.ap:
                engulfed = True
                stop_reason = "orbit_engulf"
                break

        if orb["d"] > sim.R_end and orb["E"] >= 0.0:
            ejected = True
            stop_reason = "ejected"
            break

        # memory guard
        npts = sum(arr.shape[0] for arr in y_chunks)
        if npts > sim.max_store_points:
            Y = np.vstack(y_chunks)
            T = np.array(t_list, dtype=float)
            idx = np.linspace(0, len(T)-1, sim.decimate_to).astype(int)
            t_list = T[idx].tolist()
            y_chunks = [Y[idx]]

    if t0 >= sim.t_max and not stop_reason:
        stop_reason = "t_max"

    T = np.array(t_list, dtype=float)
    Y = np.vstack(y_chunks)
    CJ_end = jacobi_constant(float(T[-1]), Y[-1], units, params)

    return {
        "T": T,
        "Y": Y,
        "t_end": float(T[-1]),
        "engulfed": engulfed,
        "ejected": ejected,
        "timeout": timeout,
        "stop_reason": stop_reason,
        "r_engulf": float(r_engulf),
        "CJ0": float(CJ0),
        "CJ_end": float(CJ_end),
        "runtime_sec": float(time.time() - start),
        "solver_success": bool(solver_success),
        "solver_status": int(solver_status),
        "solver_message": str(solver_message),
    }
