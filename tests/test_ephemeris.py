import numpy as np
import pytest

from planet_force.config import PlanetParams
from planet_force.ephemeris import (mean_anomaly, planet_position, star_position,
                                    planet_velocity, star_velocity)


def make_params(**kw):
    d = dict(inc=0.3, ap=2.5, as_=0.01, n=0.8, m0p=0.4, mplanet=3e-3, mstar=1.2)
    d.update(kw)
    return PlanetParams(**d)


def test_planet_on_circle_in_reference_plane():
    params = make_params()
    t = np.linspace(-50.0, 500.0, 1001)
    rp = planet_position(params, t)
    assert rp.shape == (1001, 3)
    assert np.allclose(rp[:, 0]**2 + rp[:, 1]**2, params.ap**2, rtol=1e-13)
    assert np.all(rp[:, 2] == 0.0)


def test_center_of_mass_at_origin():
    params = make_params()
    t = np.linspace(0.0, 100.0, 257)
    com = params.mplanet*planet_position(params, t) + params.mstar*star_position(params, t)
    assert np.allclose(com, 0.0, atol=1e-15)
    assert np.all(star_position(params, t)[:, 2] == 0.0)


def test_zero_phase_puts_planet_on_x_axis():
    params = make_params(n=2.0, m0p=-1.0)
    assert mean_anomaly(params, 0.5) == 0.0
    assert np.array_equal(planet_position(params, 0.5), [params.ap, 0.0, 0.0])


def test_inclination_is_not_applied():
    t = np.linspace(0.0, 10.0, 11)
    flat = planet_position(make_params(inc=0.0), t)
    tilted = planet_position(make_params(inc=1.2), t)
    assert np.array_equal(flat, tilted)


def test_velocities_match_finite_differences():
    params = make_params()
    t, h = 3.7, 1e-6
    vp = (planet_position(params, t + h) - planet_position(params, t - h)) / (2*h)
    vs = (star_position(params, t + h) - star_position(params, t - h)) / (2*h)
    assert np.allclose(planet_velocity(params, t), vp, atol=1e-8)
    assert np.allclose(star_velocity(params, t), vs, atol=1e-8)


def test_scalar_time_gives_single_vector():
    assert planet_position(make_params(), 1.0).shape == (3,)
    assert np.linalg.norm(planet_velocity(make_params(), 1.0)) == pytest.approx(2.5*0.8)
