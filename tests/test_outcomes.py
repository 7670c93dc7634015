import numpy as np
import pytest

from planet_force.config import Units, PlanetParams
from planet_force.outcomes import orbit_from_state, classify_final_orbit, outcome_label


def test_hyperbolic_orbit():
    # v^2 > 2 mu / r
    orb = orbit_from_state(1.0, 1.0, np.array([1.0, 0.0, 0.0]), np.array([0.0, 2.0, 0.0]))
    assert orb["E"] > 0.0
    assert orb["a"] < 0.0
    assert orb["e"] == pytest.approx(3.0)
    assert orb["q"] == pytest.approx(1.0)


def test_radial_orbit_has_zero_pericenter():
    orb = orbit_from_state(1.0, 1.0, np.array([0.0, 2.0, 0.0]), np.array([0.0, -0.1, 0.0]))
    assert orb["q"] == pytest.approx(0.0, abs=1e-15)
    assert orb["inc"] == 0.0


def test_classify_is_heliocentric():
    params = PlanetParams(inc=0.0, ap=1.0, as_=0.0, n=1.0, m0p=0.0, mplanet=0.5, mstar=1.0)
    # star at (-0.5,0,0) with velocity (0,-0.5,0) at t=0
    y = np.array([1.5, 0.0, 0.0, 0.0, 0.5, 0.0])
    info = classify_final_orbit(Units(), params, 0.0, y)
    assert info["d"] == pytest.approx(2.0)
    assert info["E"] == pytest.approx(0.5 - 0.5)


@pytest.mark.parametrize("res,info,label", [
    ({"engulfed": True, "stop_reason": "r_engulf"}, None, "engulfed"),
    ({"ejected": True, "stop_reason": "ejected"}, {"E": 1.0}, "ejected"),
    ({"stop_reason": "nonfinite"}, None, "failed"),
    ({"stop_reason": "walltime"}, None, "timeout"),
    ({"stop_reason": "t_max"}, {"E": -0.1}, "bound"),
    ({"stop_reason": "t_max"}, {"E": 0.2}, "unbound"),
    ({"stop_reason": "t_max"}, None, "unknown"),
])
def test_outcome_label(res, info, label):
    assert outcome_label(res, info) == label
