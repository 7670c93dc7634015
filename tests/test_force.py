import numpy as np
import pytest

from planet_force.config import Units, PlanetParams
from planet_force.force import Particle, planet_force, accel_point_mass, planet_star_accel


def make_params(ap=1.0, n=1.0, m0p=0.0, mplanet=1e-3, mstar=1.0):
    return PlanetParams(inc=0.0, ap=ap, as_=mplanet*ap/mstar, n=n, m0p=m0p, mplanet=mplanet, mstar=mstar)


def test_reference_configuration():
    # planet at (1,0,0), star at (-0.001,0,0), particle at (2,0,0)
    p = Particle(x=2.0)
    planet_force(0.0, 1.0, make_params(), [p])
    expected = -1e-3/1.0**2 - 1.0/2.001**2
    assert p.ax == pytest.approx(expected, rel=1e-12)
    assert p.ay == pytest.approx(0.0, abs=1e-15)
    assert p.az == 0.0


def test_accumulates_into_existing_acceleration():
    fresh = Particle(x=0.3, y=-1.7, z=0.4)
    planet_force(2.5, 1.0, make_params(), [fresh])

    loaded = Particle(x=0.3, y=-1.7, z=0.4, ax=1.0, ay=-2.0, az=0.5)
    planet_force(2.5, 1.0, make_params(), [loaded])
    assert loaded.ax == pytest.approx(1.0 + fresh.ax, rel=1e-14)
    assert loaded.ay == pytest.approx(-2.0 + fresh.ay, rel=1e-14)
    assert loaded.az == pytest.approx(0.5 + fresh.az, rel=1e-14)


def test_only_first_particle_is_touched():
    ps = [Particle(x=2.0), Particle(x=3.0, ax=7.0)]
    planet_force(0.0, 1.0, make_params(), ps)
    assert ps[0].ax != 0.0
    assert ps[1].ax == 7.0
    assert ps[1].ay == 0.0


def test_repeat_call_is_bit_identical():
    params = make_params(m0p=0.3)
    p = Particle(x=1.3, y=0.2, z=-0.1)
    planet_force(17.0, 1.0, params, [p])
    first = p.accel.copy()
    p.reset_accel()
    planet_force(17.0, 1.0, params, [p])
    assert np.array_equal(first, p.accel)


def test_inverse_square_scaling():
    # massless planet: star sits at the origin
    params = make_params(mplanet=0.0)
    near = Particle(x=2.0)
    far = Particle(x=4.0)
    planet_force(0.0, 1.0, params, [near])
    planet_force(0.0, 1.0, params, [far])
    assert np.linalg.norm(near.accel) / np.linalg.norm(far.accel) == pytest.approx(4.0, rel=1e-14)

    body = np.array([0.5, -0.2, 0.1])
    d = np.array([0.3, 0.4, 1.2])
    a1 = accel_point_mass(body + d, body, 2.0)
    a2 = accel_point_mass(body + 2*d, body, 2.0)
    assert np.linalg.norm(a1) / np.linalg.norm(a2) == pytest.approx(4.0, rel=1e-12)


def test_attraction_points_toward_each_body():
    body = np.array([1.0, 0.0, 0.0])
    for r in ([2.0, 0.0, 0.0], [0.0, 3.0, -1.0], [1.0, 0.1, 0.2]):
        a = accel_point_mass(r, body, 1e-3)
        assert np.dot(a, np.asarray(r) - body) < 0.0

    # far away the pair acts like one attracting mass at the origin
    p = Particle(x=30.0, y=-40.0, z=5.0)
    planet_force(3.0, 1.0, make_params(), [p])
    assert np.dot(p.accel, [30.0, -40.0, 5.0]) < 0.0


def test_scales_with_G():
    p1 = Particle(x=1.5, y=0.5)
    p2 = Particle(x=1.5, y=0.5)
    planet_force(1.0, 1.0, make_params(), [p1])
    planet_force(1.0, 4.0, make_params(), [p2])
    assert np.allclose(p2.accel, 4.0*p1.accel, rtol=1e-14, atol=0.0)


def test_matches_vectorized_evaluation():
    params = make_params(n=0.7, m0p=1.1)
    rng = np.random.default_rng(3)
    r = rng.normal(size=(16, 3)) * 2.0
    a_vec = planet_star_accel(4.2, r, Units(), params)
    for ri, ai in zip(r, a_vec):
        p = Particle(x=ri[0], y=ri[1], z=ri[2])
        planet_force(4.2, 1.0, params, [p])
        assert np.allclose(p.accel, ai, rtol=1e-12, atol=1e-15)


def test_zero_separation_gives_non_finite_acceleration():
    # particle exactly on the planet at t=0
    p = Particle(x=1.0)
    with pytest.warns(RuntimeWarning):
        planet_force(0.0, 1.0, make_params(), [p])
    assert not np.all(np.isfinite(p.accel))
    assert np.isnan(p.ax)


def test_empty_particle_sequence():
    with pytest.raises(IndexError):
        planet_force(0.0, 1.0, make_params(), [])


def test_zero_star_mass_is_non_finite_in_both_paths():
    params = PlanetParams(inc=0.0, ap=1.0, as_=0.0, n=1.0, m0p=0.0, mplanet=1e-3, mstar=0.0)
    p = Particle(x=2.0, y=0.5)
    with pytest.warns(RuntimeWarning):
        planet_force(1.0, 1.0, params, [p])
    assert not np.all(np.isfinite(p.accel))

    with pytest.warns(RuntimeWarning):
        a = planet_star_accel(1.0, [2.0, 0.5, 0.0], Units(), params)
    assert not np.all(np.isfinite(a))
