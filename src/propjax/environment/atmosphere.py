"""Atmospheric density models.

An atmosphere model is any object satisfying :class:`AtmosphereModel`:
it returns the mass density [kg/m^3] at a GCRF position and instant.
Two models are built in:

- :class:`ExponentialAtmosphere`, a single-layer exponential profile.
- :class:`HarrisPriesterAtmosphere`, the modified Harris-Priester model
  with a diurnal bulge driven by the Sun's position, valid between
  100 km and 1000 km.

Altitudes are geodetic (WGS84).  A rotation about the polar axis does
not change geodetic altitude, so both models work directly from the
inertial position.

References:
    1. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, 2012, Sec. 3.5.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.constants import WGS84_a, WGS84_f
from propjax.environment.celestial import CelestialBody
from propjax.instant import Instant

# First eccentricity squared of the WGS84 ellipsoid
_ECC2 = WGS84_f * (2.0 - WGS84_f)


@runtime_checkable
class AtmosphereModel(Protocol):
    """Mass density provider for atmospheric drag."""

    def density(self, position: ArrayLike, instant: Instant) -> Array:
        ...


def geodetic_altitude(position: ArrayLike) -> Array:
    """Height above the WGS84 ellipsoid [m].

    Uses Bowring's iterative method inside ``jax.lax.while_loop`` (at most
    10 iterations) so it can be traced.

    Args:
        position: Earth-centred position [m], shape ``(3,)``.

    Returns:
        jax.Array: Geodetic altitude [m].
    """
    dtype = get_dtype()
    r = jnp.asarray(position, dtype=dtype)
    x, y, z = r[0], r[1], r[2]

    eps = 1.0e-3 * WGS84_a * jnp.finfo(dtype).eps
    rho2 = x * x + y * y
    dz0 = _ECC2 * z

    def cond(carry):
        dz, dz_prev, i = carry
        return (jnp.abs(dz - dz_prev) > eps) & (i < 10)

    def body(carry):
        dz, _, i = carry
        zdz = z + dz
        sinphi = zdz / jnp.sqrt(rho2 + zdz * zdz)
        N = WGS84_a / jnp.sqrt(1.0 - _ECC2 * sinphi * sinphi)
        return (N * _ECC2 * sinphi, dz, i + 1)

    dz, _, _ = jax.lax.while_loop(cond, body, (dz0, dz0 + 1e10, jnp.int32(0)))

    zdz = z + dz
    sinphi = zdz / jnp.sqrt(rho2 + zdz * zdz)
    N = WGS84_a / jnp.sqrt(1.0 - _ECC2 * sinphi * sinphi)
    return jnp.sqrt(rho2 + zdz * zdz) - N


class ExponentialAtmosphere:
    """Exponential density profile ``rho0 * exp(-(h - h0) / H)``.

    Args:
        reference_density: Density at the reference altitude [kg/m^3].
        reference_altitude: Reference altitude [m].
        scale_height: Scale height [m].
        minimum_altitude: Below this altitude density is held at its
            value there [m].

    Raises:
        ValueError: If density or scale height are not positive.
    """

    def __init__(
        self,
        reference_density: float = 3.725e-12,
        reference_altitude: float = 400e3,
        scale_height: float = 58.515e3,
        minimum_altitude: float = 0.0,
    ) -> None:
        if reference_density <= 0.0:
            raise ValueError(f"Reference density must be positive, got {reference_density}.")
        if scale_height <= 0.0:
            raise ValueError(f"Scale height must be positive, got {scale_height}.")
        self.reference_density = float(reference_density)
        self.reference_altitude = float(reference_altitude)
        self.scale_height = float(scale_height)
        self.minimum_altitude = float(minimum_altitude)

    def density(self, position: ArrayLike, instant: Instant) -> Array:
        h = jnp.maximum(geodetic_altitude(position), self.minimum_altitude)
        return self.reference_density * jnp.exp(-(h - self.reference_altitude) / self.scale_height)

    def __repr__(self):
        return (f"ExponentialAtmosphere(rho0={self.reference_density:.3e}, "
                f"h0={self.reference_altitude:.1f}, H={self.scale_height:.1f})")


# Harris-Priester model constants
_HP_UPPER_LIMIT = 1000.0   # [km]
_HP_LOWER_LIMIT = 100.0    # [km]
_HP_RA_LAG = 0.523599      # Right ascension lag [rad]
_HP_N_PRM = 3.0            # Exponent (low inclination)

# Height table [km]
_HP_H = (
    100.0, 120.0, 130.0, 140.0, 150.0, 160.0, 170.0, 180.0, 190.0, 200.0,
    210.0, 220.0, 230.0, 240.0, 250.0, 260.0, 270.0, 280.0, 290.0, 300.0,
    320.0, 340.0, 360.0, 380.0, 400.0, 420.0, 440.0, 460.0, 480.0, 500.0,
    520.0, 540.0, 560.0, 580.0, 600.0, 620.0, 640.0, 660.0, 680.0, 700.0,
    720.0, 740.0, 760.0, 780.0, 800.0, 840.0, 880.0, 920.0, 960.0, 1000.0,
)

# Minimum density [g/km^3]
_HP_C_MIN = (
    4.974e+05, 2.490e+04, 8.377e+03, 3.899e+03, 2.122e+03, 1.263e+03,
    8.008e+02, 5.283e+02, 3.617e+02, 2.557e+02, 1.839e+02, 1.341e+02,
    9.949e+01, 7.488e+01, 5.709e+01, 4.403e+01, 3.430e+01, 2.697e+01,
    2.139e+01, 1.708e+01, 1.099e+01, 7.214e+00, 4.824e+00, 3.274e+00,
    2.249e+00, 1.558e+00, 1.091e+00, 7.701e-01, 5.474e-01, 3.916e-01,
    2.819e-01, 2.042e-01, 1.488e-01, 1.092e-01, 8.070e-02, 6.012e-02,
    4.519e-02, 3.430e-02, 2.632e-02, 2.043e-02, 1.607e-02, 1.281e-02,
    1.036e-02, 8.496e-03, 7.069e-03, 4.680e-03, 3.200e-03, 2.210e-03,
    1.560e-03, 1.150e-03,
)

# Maximum density [g/km^3]
_HP_C_MAX = (
    4.974e+05, 2.490e+04, 8.710e+03, 4.059e+03, 2.215e+03, 1.344e+03,
    8.758e+02, 6.010e+02, 4.297e+02, 3.162e+02, 2.396e+02, 1.853e+02,
    1.455e+02, 1.157e+02, 9.308e+01, 7.555e+01, 6.182e+01, 5.095e+01,
    4.226e+01, 3.526e+01, 2.511e+01, 1.819e+01, 1.337e+01, 9.955e+00,
    7.492e+00, 5.684e+00, 4.355e+00, 3.362e+00, 2.612e+00, 2.042e+00,
    1.605e+00, 1.267e+00, 1.005e+00, 7.997e-01, 6.390e-01, 5.123e-01,
    4.121e-01, 3.325e-01, 2.691e-01, 2.185e-01, 1.779e-01, 1.452e-01,
    1.190e-01, 9.776e-02, 8.059e-02, 5.741e-02, 4.210e-02, 3.130e-02,
    2.360e-02, 1.810e-02,
)


def density_harris_priester(r: ArrayLike, r_sun: ArrayLike) -> Array:
    """Atmospheric density using the modified Harris-Priester model.

    Returns zero outside the valid 100-1000 km altitude range.

    Args:
        r: Satellite position [m], shape ``(3,)``.
        r_sun: Sun position in the same frame [m], shape ``(3,)``. Only
            its right ascension and declination are used.

    Returns:
        Atmospheric density [kg/m^3] (scalar).
    """
    _float = get_dtype()
    r = jnp.asarray(r, dtype=_float)
    r_sun = jnp.asarray(r_sun, dtype=_float)
    table_h = jnp.asarray(_HP_H, dtype=_float)
    c_min = jnp.asarray(_HP_C_MIN, dtype=_float)
    c_max = jnp.asarray(_HP_C_MAX, dtype=_float)

    height = geodetic_altitude(r) / 1.0e3

    ra_sun = jnp.arctan2(r_sun[1], r_sun[0])
    dec_sun = jnp.arctan2(r_sun[2], jnp.sqrt(r_sun[0] ** 2 + r_sun[1] ** 2))

    # Apex of the diurnal bulge
    c_dec = jnp.cos(dec_sun)
    u = jnp.array([
        c_dec * jnp.cos(ra_sun + _HP_RA_LAG),
        c_dec * jnp.sin(ra_sun + _HP_RA_LAG),
        jnp.sin(dec_sun),
    ])
    c_psi2 = 0.5 + 0.5 * jnp.dot(r, u) / jnp.linalg.norm(r)

    ih = jnp.clip(jnp.searchsorted(table_h, height, side="right") - 1, 0, len(_HP_H) - 2)

    h_min = (table_h[ih] - table_h[ih + 1]) / jnp.log(c_min[ih + 1] / c_min[ih])
    h_max = (table_h[ih] - table_h[ih + 1]) / jnp.log(c_max[ih + 1] / c_max[ih])

    d_min = c_min[ih] * jnp.exp((table_h[ih] - height) / h_min)
    d_max = c_max[ih] * jnp.exp((table_h[ih] - height) / h_max)

    # g/km^3 -> kg/m^3
    density = (d_min + (d_max - d_min) * c_psi2 ** _HP_N_PRM) * 1.0e-12

    in_range = (height > _HP_LOWER_LIMIT) & (height < _HP_UPPER_LIMIT)
    return jnp.where(in_range, density, 0.0)


class HarrisPriesterAtmosphere:
    """Modified Harris-Priester density with a Sun-driven diurnal bulge.

    Args:
        sun: Body providing the Sun position. Default: the analytical Sun.
    """

    def __init__(self, sun: CelestialBody | None = None) -> None:
        self.sun = CelestialBody.sun() if sun is None else sun

    def density(self, position: ArrayLike, instant: Instant) -> Array:
        return density_harris_priester(position, self.sun.position(instant))

    def __repr__(self):
        return "HarrisPriesterAtmosphere()"
