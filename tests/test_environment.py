"""Tests for the gravity, atmosphere and celestial body models."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from propjax.constants import AU, GM_EARTH, GM_MOON, GM_SUN, J2_EARTH, R_EARTH, WGS84_a, WGS84_f
from propjax.environment import (
    CelestialBody,
    ExponentialAtmosphere,
    GravityModel,
    HarrisPriesterAtmosphere,
    PointMassGravity,
    SphericalHarmonicGravity,
    accel_point_mass,
    density_harris_priester,
    geodetic_altitude,
)
from propjax.instant import Instant

_INSTANT = Instant(2024, 3, 15, 12, 0, 0.0)


# ──────────────────────────────────────────────
# Gravity
# ──────────────────────────────────────────────


class TestPointMass:
    def test_central_body(self):
        r = jnp.array([R_EARTH, 0.0, 0.0])
        a = accel_point_mass(r, jnp.zeros(3), GM_EARTH)
        assert jnp.allclose(a, jnp.array([-GM_EARTH / R_EARTH**2, 0.0, 0.0]))

    def test_third_body_indirect_term(self):
        """An object at the origin feels no net third-body acceleration."""
        r_body = jnp.array([AU, 0.0, 0.0])
        a = accel_point_mass(jnp.array([1e-3, 0.0, 0.0]), r_body, GM_SUN)
        assert float(jnp.linalg.norm(a)) < 1e-12

    def test_field_protocol(self):
        field = PointMassGravity()
        a = field.acceleration(jnp.array([0.0, 7000e3, 0.0]), _INSTANT)
        assert float(a[1]) == pytest.approx(-GM_EARTH / 7000e3**2)
        assert field.gm == GM_EARTH

    def test_invalid_gm(self):
        with pytest.raises(ValueError):
            PointMassGravity(gm=0.0)

    def test_equality(self):
        assert PointMassGravity() == PointMassGravity(GM_EARTH)
        assert PointMassGravity() != PointMassGravity(GM_MOON)


class TestGravityModel:
    def test_earth_j2(self):
        model = GravityModel.earth_j2()
        assert model.n_max == 2
        assert model.m_max == 2
        assert not model.is_normalized
        assert model.get(2, 0) == (pytest.approx(-J2_EARTH), 0.0)
        assert model.get(0, 0) == (1.0, 0.0)

    def test_get_out_of_bounds(self):
        with pytest.raises(ValueError, match="exceeds"):
            GravityModel.earth_j2().get(3, 0)

    def test_zonal_degree_below_two(self):
        with pytest.raises(ValueError):
            GravityModel.from_zonal_terms({1: 1e-3})

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            GravityModel("Bad", GM_EARTH, R_EARTH, 4, 4, np.zeros((3, 3)))

    def test_bad_normalization(self):
        with pytest.raises(ValueError):
            GravityModel("Bad", GM_EARTH, R_EARTH, 2, 2, np.zeros((3, 3)), normalization="other")


class TestSphericalHarmonicGravity:
    def test_equatorial_j2(self):
        """At the equator J2 strengthens radial gravity by 1.5 J2."""
        field = SphericalHarmonicGravity(GravityModel.earth_j2(), 2, 0)
        a = field.acceleration(jnp.array([R_EARTH, 0.0, 0.0]), _INSTANT)
        expected = -GM_EARTH / R_EARTH**2 * (1.0 + 1.5 * J2_EARTH)
        assert float(a[0]) == pytest.approx(expected, rel=1e-9)
        assert abs(float(a[2])) < 1e-12

    def test_polar_j2(self):
        """At the pole J2 weakens radial gravity by 3 J2."""
        field = SphericalHarmonicGravity(GravityModel.earth_j2(), 2, 0)
        a = field.acceleration(jnp.array([0.0, 0.0, R_EARTH]), _INSTANT)
        expected = -GM_EARTH / R_EARTH**2 * (1.0 - 3.0 * J2_EARTH)
        assert float(a[2]) == pytest.approx(expected, rel=1e-9)

    def test_degree_zero_is_point_mass(self):
        field = SphericalHarmonicGravity(GravityModel.earth_j2(), 0, 0)
        r = jnp.array([5000e3, 3000e3, 2000e3])
        a_sh = field.acceleration(r, _INSTANT)
        a_pm = PointMassGravity().acceleration(r, _INSTANT)
        assert jnp.allclose(a_sh, a_pm, rtol=1e-10)

    def test_order_above_degree_raises(self):
        with pytest.raises(ValueError, match="cannot exceed"):
            SphericalHarmonicGravity(GravityModel.earth_j2(), 1, 2)

    def test_degree_above_model_raises(self):
        with pytest.raises(ValueError, match="exceeds"):
            SphericalHarmonicGravity(GravityModel.earth_j2(), 4, 0)

    def test_jit(self):
        field = SphericalHarmonicGravity(GravityModel.earth_j2(), 2, 0)
        r = jnp.array([6500e3, 1000e3, 2000e3])
        a_jit = jax.jit(lambda x: field.acceleration(x, _INSTANT))(r)
        assert jnp.allclose(a_jit, field.acceleration(r, _INSTANT))


# ──────────────────────────────────────────────
# Atmosphere
# ──────────────────────────────────────────────


class TestGeodeticAltitude:
    def test_equator(self):
        h = geodetic_altitude(jnp.array([WGS84_a + 400e3, 0.0, 0.0]))
        assert float(h) == pytest.approx(400e3, abs=1e-3)

    def test_pole(self):
        b = WGS84_a * (1.0 - WGS84_f)
        h = geodetic_altitude(jnp.array([0.0, 0.0, b + 100e3]))
        assert float(h) == pytest.approx(100e3, abs=1e-3)


class TestExponentialAtmosphere:
    def test_reference_density(self):
        atmosphere = ExponentialAtmosphere()
        rho = atmosphere.density(jnp.array([WGS84_a + 400e3, 0.0, 0.0]), _INSTANT)
        assert float(rho) == pytest.approx(3.725e-12, rel=1e-9)

    def test_decreases_with_altitude(self):
        atmosphere = ExponentialAtmosphere()
        low = atmosphere.density(jnp.array([WGS84_a + 300e3, 0.0, 0.0]), _INSTANT)
        high = atmosphere.density(jnp.array([WGS84_a + 500e3, 0.0, 0.0]), _INSTANT)
        assert float(low) > float(high) > 0.0

    def test_scale_height(self):
        atmosphere = ExponentialAtmosphere(reference_density=1.0, reference_altitude=0.0, scale_height=10e3)
        rho = atmosphere.density(jnp.array([WGS84_a + 10e3, 0.0, 0.0]), _INSTANT)
        assert float(rho) == pytest.approx(np.exp(-1.0), rel=1e-9)

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            ExponentialAtmosphere(reference_density=-1.0)
        with pytest.raises(ValueError):
            ExponentialAtmosphere(scale_height=0.0)


class TestHarrisPriester:
    def test_density_in_range(self):
        rho = HarrisPriesterAtmosphere().density(jnp.array([WGS84_a + 400e3, 0.0, 0.0]), _INSTANT)
        # Between the 400 km table bounds [kg/m^3]
        assert 2.2e-12 < float(rho) < 7.6e-12

    def test_zero_outside_range(self):
        r_sun = jnp.array([AU, 0.0, 0.0])
        assert float(density_harris_priester(jnp.array([WGS84_a + 50e3, 0.0, 0.0]), r_sun)) == 0.0
        assert float(density_harris_priester(jnp.array([WGS84_a + 1500e3, 0.0, 0.0]), r_sun)) == 0.0

    def test_diurnal_bulge(self):
        """Density is higher on the sunlit (lagged) side than opposite it."""
        r_sun = jnp.array([AU, 0.0, 0.0])
        lag = 0.523599
        r = WGS84_a + 400e3
        bulge = density_harris_priester(jnp.array([r * np.cos(lag), r * np.sin(lag), 0.0]), r_sun)
        anti = density_harris_priester(jnp.array([-r * np.cos(lag), -r * np.sin(lag), 0.0]), r_sun)
        assert float(bulge) > float(anti)


# ──────────────────────────────────────────────
# Celestial bodies
# ──────────────────────────────────────────────


class TestCelestialBody:
    def test_builtins(self):
        assert CelestialBody.earth().name == "Earth"
        assert CelestialBody.sun().gm == GM_SUN
        assert CelestialBody.moon().gm == GM_MOON

    def test_earth_at_origin(self):
        assert jnp.allclose(CelestialBody.earth().position(_INSTANT), jnp.zeros(3))

    def test_sun_distance(self):
        d = float(jnp.linalg.norm(CelestialBody.sun().position(_INSTANT)))
        assert d == pytest.approx(AU, rel=0.02)

    def test_moon_distance(self):
        d = float(jnp.linalg.norm(CelestialBody.moon().position(_INSTANT)))
        assert 356e6 < d < 407e6

    def test_custom_body(self):
        body = CelestialBody("Probe", 1.0, lambda instant: jnp.array([1.0, 2.0, 3.0]))
        assert jnp.allclose(body.position(_INSTANT), jnp.array([1.0, 2.0, 3.0]))

    def test_invalid_gm(self):
        with pytest.raises(ValueError):
            CelestialBody("Bad", 0.0, lambda instant: jnp.zeros(3))

    def test_equality(self):
        assert CelestialBody.sun() == CelestialBody.sun()
        assert CelestialBody.sun() != CelestialBody.moon()
