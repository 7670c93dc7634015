import numpy as np
import pytest

from planet_force.config import Units, PlanetParams, ICParams
from planet_force.ic import solve_kepler, elements_to_state, make_initial_state, sample_ic
from planet_force.outcomes import orbit_from_state


def test_solve_kepler_satisfies_equation():
    for e in (0.0, 0.3, 0.9, 0.999):
        for M in (0.0, 0.5, 3.0, 6.0):
            E = solve_kepler(M, e)
            assert E - e*np.sin(E) == pytest.approx(M, abs=1e-12)


def test_solve_kepler_rejects_unbound():
    with pytest.raises(ValueError):
        solve_kepler(1.0, 1.2)


def test_circular_state():
    y = elements_to_state(1.0, 2.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    assert np.allclose(y, [2.0, 0.0, 0.0, 0.0, np.sqrt(0.5), 0.0], atol=1e-15)


def test_elements_are_recovered():
    mu = 1.0
    a, e, inc = 2.3, 0.7, 0.4
    y = elements_to_state(mu, a, e, inc, 1.1, 2.2, 0.9)
    orb = orbit_from_state(1.0, mu, y[:3], y[3:])
    assert orb["a"] == pytest.approx(a, rel=1e-12)
    assert orb["e"] == pytest.approx(e, rel=1e-12)
    assert orb["inc"] == pytest.approx(inc, rel=1e-12)
    assert orb["q"] == pytest.approx(a*(1 - e), rel=1e-12)


def test_initial_state_is_shifted_to_star():
    params = PlanetParams(inc=0.0, ap=1.0, as_=0.001, n=1.0, m0p=0.0, mplanet=1e-3, mstar=1.0)
    ic = ICParams(a=2.0)
    y0 = make_initial_state(Units(), params, ic)
    # star at (-0.001, 0, 0) moving with (0, -0.001, 0) at t=0
    assert np.allclose(y0, [2.0 - 1e-3, 0.0, 0.0, 0.0, np.sqrt(0.5) - 1e-3, 0.0], atol=1e-15)


def test_sample_ic_respects_cone():
    rng = np.random.default_rng(7)
    for _ in range(200):
        ic = sample_ic(rng, a=1.5, e=0.9, inc_max=0.25)
        assert 0.0 <= ic.inc <= 0.25 + 1e-15
        assert 0.0 <= ic.M < 2*np.pi
        assert ic.a == 1.5 and ic.e == 0.9
    fixed = sample_ic(rng, a=1.0, e=0.0, inc_max=0.0, random_angles=False)
    assert (fixed.inc, fixed.Omega, fixed.omega, fixed.M) == (0.0, 0.0, 0.0, 0.0)
