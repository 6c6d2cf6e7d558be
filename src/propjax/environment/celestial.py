"""Celestial bodies and their low-precision analytical ephemerides.

A :class:`CelestialBody` couples a name, a gravitational parameter and an
ephemeris returning the body's position in GCRF at an instant.  The
built-in Sun and Moon use the analytical series of Montenbruck & Gill,
suitable for perturbation modelling where ~0.1 deg accuracy is enough.

The instant is used as an approximation of TT when computing Julian
centuries from J2000.

References:
    1. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, 2012, Sec. 3.3.
"""

from __future__ import annotations

from typing import Callable

import jax
import jax.numpy as jnp
from jax import Array

from propjax.config import get_dtype
from propjax.constants import DEG2RAD, GM_EARTH, GM_MOON, GM_SUN, JD_J2000, R_EARTH, SECONDS_PER_DAY
from propjax.instant import Instant
from propjax.rotations import Rx

# Obliquity of the J2000 ecliptic [rad]
_EPSILON = 23.43929111 * DEG2RAD

_AS2RAD = DEG2RAD / 3600.0


def _julian_centuries_from_j2000(instant: Instant) -> jax.Array:
    dtype = get_dtype()
    days_from_j2000 = (instant._jd - jnp.int32(JD_J2000)).astype(dtype)
    frac_day = instant._compensated_seconds() / SECONDS_PER_DAY
    return (days_from_j2000 + frac_day) / 36525.0


def _frac(x):
    return x - jnp.floor(x)


def sun_position(instant: Instant) -> Array:
    """Position of the Sun in GCRF [m].

    Args:
        instant: Instant at which to compute the position.

    Returns:
        jax.Array: Sun position, shape ``(3,)``.

    Examples:
        ```python
        from propjax import Instant
        from propjax.environment import sun_position
        r_sun = sun_position(Instant(2024, 2, 25))  # ~1 AU from Earth
        ```
    """
    pi2 = 2.0 * jnp.pi
    T = _julian_centuries_from_j2000(instant)

    M = pi2 * _frac(0.9931267 + 99.9973583 * T)
    L = pi2 * _frac(0.7859444 + M / pi2 + (6892.0 * jnp.sin(M) + 72.0 * jnp.sin(2.0 * M)) / 1296.0e3)
    r = 149.619e9 - 2.499e9 * jnp.cos(M) - 0.021e9 * jnp.cos(2.0 * M)

    r_ecliptic = jnp.array([r * jnp.cos(L), r * jnp.sin(L), jnp.zeros_like(r)])
    return Rx(-_EPSILON) @ r_ecliptic


def moon_position(instant: Instant) -> Array:
    """Position of the Moon in GCRF [m].

    Args:
        instant: Instant at which to compute the position.

    Returns:
        jax.Array: Moon position, shape ``(3,)``.
    """
    pi2 = 2.0 * jnp.pi
    T = _julian_centuries_from_j2000(instant)

    L_0 = _frac(0.606433 + 1336.851344 * T)
    l_m = pi2 * _frac(0.374897 + 1325.552410 * T)
    lp = pi2 * _frac(0.993133 + 99.997361 * T)
    D = pi2 * _frac(0.827361 + 1236.853086 * T)
    F = pi2 * _frac(0.259086 + 1342.227825 * T)

    # Longitude perturbations [arcsec]
    dL = (22640.0 * jnp.sin(l_m) - 4586.0 * jnp.sin(l_m - 2.0 * D)
          + 2370.0 * jnp.sin(2.0 * D) + 769.0 * jnp.sin(2.0 * l_m)
          - 668.0 * jnp.sin(lp) - 412.0 * jnp.sin(2.0 * F)
          - 212.0 * jnp.sin(2.0 * l_m - 2.0 * D) - 206.0 * jnp.sin(l_m + lp - 2.0 * D)
          + 192.0 * jnp.sin(l_m + 2.0 * D) - 165.0 * jnp.sin(lp - 2.0 * D)
          - 125.0 * jnp.sin(D) - 110.0 * jnp.sin(l_m + lp)
          + 148.0 * jnp.sin(l_m - lp) - 55.0 * jnp.sin(2.0 * F - 2.0 * D))

    L = pi2 * _frac(L_0 + dL / 1296.0e3)

    S = F + (dL + 412.0 * jnp.sin(2.0 * F) + 541.0 * jnp.sin(lp)) * _AS2RAD
    h = F - 2.0 * D
    N = (-526.0 * jnp.sin(h) + 44.0 * jnp.sin(l_m + h) - 31.0 * jnp.sin(-l_m + h)
         - 23.0 * jnp.sin(lp + h) + 11.0 * jnp.sin(-lp + h)
         - 25.0 * jnp.sin(-2.0 * l_m + F) + 21.0 * jnp.sin(-l_m + F))
    B = (18520.0 * jnp.sin(S) + N) * _AS2RAD

    r = (385000e3 - 20905e3 * jnp.cos(l_m) - 3699e3 * jnp.cos(2.0 * D - l_m)
         - 2956e3 * jnp.cos(2.0 * D) - 570e3 * jnp.cos(2.0 * l_m)
         + 246e3 * jnp.cos(2.0 * l_m - 2.0 * D) - 205e3 * jnp.cos(lp - 2.0 * D)
         - 171e3 * jnp.cos(l_m + 2.0 * D) - 152e3 * jnp.cos(l_m + lp - 2.0 * D))

    r_ecliptic = jnp.array([
        r * jnp.cos(L) * jnp.cos(B),
        r * jnp.sin(L) * jnp.cos(B),
        r * jnp.sin(B),
    ])
    return Rx(-_EPSILON) @ r_ecliptic


def _origin(instant: Instant) -> Array:
    return jnp.zeros(3, dtype=get_dtype())


class CelestialBody:
    """A gravitating body with an ephemeris.

    Args:
        name: Body name.
        gm: Gravitational parameter [m^3/s^2].
        ephemeris: Function returning the body position in GCRF [m].
        equatorial_radius: Mean equatorial radius [m], informational.
    """

    __slots__ = ("_name", "_gm", "_ephemeris", "_equatorial_radius")

    def __init__(
        self,
        name: str,
        gm: float,
        ephemeris: Callable[[Instant], Array],
        equatorial_radius: float = 0.0,
    ) -> None:
        if gm <= 0.0:
            raise ValueError(f"Gravitational parameter of [{name}] must be positive, got {gm}.")
        self._name = name
        self._gm = float(gm)
        self._ephemeris = ephemeris
        self._equatorial_radius = float(equatorial_radius)

    @classmethod
    def earth(cls) -> CelestialBody:
        return cls("Earth", GM_EARTH, _origin, R_EARTH)

    @classmethod
    def sun(cls) -> CelestialBody:
        return cls("Sun", GM_SUN, sun_position, 6.957e8)

    @classmethod
    def moon(cls) -> CelestialBody:
        return cls("Moon", GM_MOON, moon_position, 1.7374e6)

    @property
    def name(self) -> str:
        return self._name

    @property
    def gm(self) -> float:
        return self._gm

    @property
    def equatorial_radius(self) -> float:
        return self._equatorial_radius

    def position(self, instant: Instant) -> Array:
        """Return the body position in GCRF at ``instant`` [m]."""
        return self._ephemeris(instant)

    def __eq__(self, other):
        if not isinstance(other, CelestialBody):
            return NotImplemented
        return self._name == other._name and self._gm == other._gm

    def __hash__(self):
        return hash((self._name, self._gm))

    def __repr__(self):
        return f"CelestialBody(name={self._name!r}, gm={self._gm:.6e})"
