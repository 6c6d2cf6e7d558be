"""The instant module provides the ``Instant`` class for representing points in time.

An Instant stores an integer Julian Day number, the seconds elapsed within
that day, and a Kahan summation compensator.  Splitting the day number off
keeps the seconds field small, so sub-microsecond offsets survive repeated
additions during numerical integration.

The class is registered as a JAX pytree.  All arithmetic and comparison
methods use JAX operations, so an Instant can be passed through
``jax.jit`` boundaries: dynamics evaluated inside a compiled integration
step receive the current time as ``reference_instant + t``.

Outside of JIT, comparison results are 0-d boolean arrays and behave like
Python booleans in ``if`` statements, ``sorted`` and ``bisect``.
"""

from __future__ import annotations

import math
import re

import jax
import jax.numpy as jnp

from .config import get_dtype, get_instant_eq_tolerance
from .constants import JD_J2000, JD_MJD_OFFSET, SECONDS_PER_DAY
from .time import caldate_to_jd, jd_to_caldate

_INSTANT_PATTERNS = [
    re.compile(r'^(\d{4})-(\d{2})-(\d{2})$'),
    re.compile(r'^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})Z?$'),
    re.compile(r'^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})\.(\d+)Z?$'),
]


class Instant:
    """A single point in time with compensated arithmetic.

    The internal representation uses three private components:
        ``_jd`` (jnp.int32), ``_seconds`` (configured float dtype),
        ``_kahan_c`` (configured float dtype).

    Subtracting two instants returns the elapsed seconds; adding seconds to
    an instant returns a new instant.  Instants are immutable.

    Constructors:
        Instant(2018, 1, 1)
        Instant(2018, 1, 1, 12, 0, 0.0)
        Instant("2018-01-01T12:00:00Z")
        Instant(other_instant)
        Instant.j2000()
    """

    __slots__ = ('_jd', '_seconds', '_kahan_c')

    def __init__(self, *args: int | float | str | Instant) -> None:
        dtype = get_dtype()
        self._jd = jnp.int32(0)
        self._seconds = jnp.asarray(0.0, dtype=dtype)
        self._kahan_c = jnp.asarray(0.0, dtype=dtype)

        if len(args) == 1:
            if isinstance(args[0], str):
                self._init_string(args[0])
            elif isinstance(args[0], Instant):
                self._jd = args[0]._jd
                self._seconds = args[0]._seconds
                self._kahan_c = args[0]._kahan_c
            else:
                raise ValueError(f"Cannot construct Instant from {type(args[0])}")
        elif 3 <= len(args) <= 6:
            self._init_date(*args)
        else:
            raise ValueError(
                "Instant requires date components (3-6 args), a string, or an Instant"
            )

    @classmethod
    def _from_internal(cls, jd, seconds, kahan_c):
        obj = object.__new__(cls)
        obj._jd = jd
        obj._seconds = seconds
        obj._kahan_c = kahan_c
        return obj

    @classmethod
    def j2000(cls) -> Instant:
        """Return the J2000.0 instant (2000-01-01T12:00:00)."""
        dtype = get_dtype()
        return cls._from_internal(
            jnp.int32(JD_J2000), jnp.asarray(0.0, dtype=dtype), jnp.asarray(0.0, dtype=dtype)
        )

    def _init_date(self, year, month, day, hour=0, minute=0, second=0.0):
        jd_full = float(caldate_to_jd(year, month, day))

        jd_int = int(math.floor(jd_full))
        frac_day = jd_full - jd_int

        seconds = frac_day * SECONDS_PER_DAY + hour * 3600.0 + minute * 60.0 + second
        day_offset = int(math.floor(seconds / SECONDS_PER_DAY))

        self._jd = jnp.int32(jd_int + day_offset)
        self._seconds = jnp.asarray(seconds - day_offset * SECONDS_PER_DAY, dtype=get_dtype())

    def _init_string(self, string):
        for pattern in _INSTANT_PATTERNS:
            m = pattern.match(string)
            if m:
                groups = m.groups()
                hour, minute, second = 0, 0, 0.0
                if len(groups) >= 6:
                    hour = int(groups[3])
                    minute = int(groups[4])
                    second = float(groups[5])
                if len(groups) == 7:
                    second += float(f"0.{groups[6]}")
                self._init_date(int(groups[0]), int(groups[1]), int(groups[2]), hour, minute, second)
                return

        raise ValueError(f'Invalid Instant string: "{string}" is not ISO 8601 compliant')

    def _compensated_seconds(self):
        return self._seconds - self._kahan_c

    # Arithmetic operators

    def __add__(self, delta) -> Instant:
        """Return a new Instant advanced by ``delta`` seconds.

        Uses Kahan compensated summation and renormalizes the seconds field
        to ``[0, 86400)`` with a floor division so that the operation stays
        traceable under ``jax.jit``.

        Args:
            delta: Seconds to add. May be a traced array.

        Returns:
            Instant: New instant.
        """
        dtype = get_dtype()
        delta = jnp.asarray(delta, dtype=dtype)
        y = delta - self._kahan_c
        t = self._seconds + y
        new_kahan_c = (t - self._seconds) - y

        day_offset = jnp.floor(t / SECONDS_PER_DAY)
        new_seconds = t - day_offset * jnp.asarray(SECONDS_PER_DAY, dtype=dtype)
        new_jd = self._jd + day_offset.astype(jnp.int32)

        return Instant._from_internal(new_jd, new_seconds, new_kahan_c)

    def __sub__(self, other):
        """Subtract seconds, or compute the elapsed seconds between two instants.

        Args:
            other: An Instant (returns ``self - other`` in seconds) or a
                number of seconds (returns a new Instant).
        """
        if isinstance(other, Instant):
            dtype = get_dtype()
            return (
                (self._jd - other._jd).astype(dtype) * SECONDS_PER_DAY
                + (self._compensated_seconds() - other._compensated_seconds())
            )
        return self.__add__(-jnp.asarray(other, dtype=get_dtype()))

    # Comparison operators

    def __eq__(self, other):
        if not isinstance(other, Instant):
            return NotImplemented
        return jnp.abs(self - other) <= get_instant_eq_tolerance()

    def __ne__(self, other):
        if not isinstance(other, Instant):
            return NotImplemented
        return ~self.__eq__(other)

    def __lt__(self, other):
        if not isinstance(other, Instant):
            return NotImplemented
        return (self - other) < -get_instant_eq_tolerance()

    def __le__(self, other):
        if not isinstance(other, Instant):
            return NotImplemented
        return (self - other) <= get_instant_eq_tolerance()

    def __gt__(self, other):
        if not isinstance(other, Instant):
            return NotImplemented
        return (self - other) > get_instant_eq_tolerance()

    def __ge__(self, other):
        if not isinstance(other, Instant):
            return NotImplemented
        return (self - other) >= -get_instant_eq_tolerance()

    # Time properties

    def caldate(self) -> tuple[int, int, int, int, int, float]:
        """Return the calendar date components.

        Not traceable under ``jax.jit``.

        Returns:
            tuple: (year, month, day, hour, minute, second) where second
                includes the fractional part.
        """
        comp_seconds = float(self._compensated_seconds())
        year, month, day, _, _, _ = jd_to_caldate(int(self._jd) + comp_seconds / SECONDS_PER_DAY)

        # JD days start at noon
        civil_time = (comp_seconds + 43200.0) % SECONDS_PER_DAY
        hour = int(civil_time // 3600)
        civil_time -= hour * 3600
        minute = int(civil_time // 60)
        second = civil_time - minute * 60

        return int(year), int(month), int(day), hour, minute, second

    def jd(self) -> jax.Array:
        """Return the Julian Date as a single float (lossy for sub-second precision)."""
        dtype = get_dtype()
        return self._jd.astype(dtype) + self._compensated_seconds() / SECONDS_PER_DAY

    def mjd(self) -> jax.Array:
        """Return the Modified Julian Date as a single float."""
        return self.jd() - JD_MJD_OFFSET

    def gmst(self, use_degrees: bool = False) -> jax.Array:
        """Compute Greenwich Mean Sidereal Time using the IAU 1982 model.

        Uses the Vallado GMST82 polynomial and treats the instant as UT1.
        Julian centuries are computed from the split day/seconds
        representation to avoid the precision loss of a single-float JD.

        Args:
            use_degrees (bool): If True, return in degrees. Default: False
                (radians).

        Returns:
            jax.Array: Greenwich Mean Sidereal Time in rad (or deg).

        References:

            1. D. Vallado, *Fundamentals of Astrodynamics and Applications
               (4th Ed.)*, 2010.
        """
        dtype = get_dtype()
        days_from_j2000 = (self._jd - jnp.int32(JD_J2000)).astype(dtype)
        frac_day = self._compensated_seconds() / SECONDS_PER_DAY
        t_ut1 = (days_from_j2000 + frac_day) / 36525.0

        gmst_sec = (67310.54841
                    + (876600.0 * 3600.0 + 8640184.812866) * t_ut1
                    + 0.093104 * t_ut1 * t_ut1
                    - 6.2e-6 * t_ut1 * t_ut1 * t_ut1)

        # 1 second of time = 1/240 degree
        gmst_rad = jnp.mod(gmst_sec / 240.0 * jnp.pi / 180.0, 2.0 * jnp.pi)

        if use_degrees:
            return gmst_rad * 180.0 / jnp.pi
        return gmst_rad

    # String representations

    def __str__(self):
        year, month, day, hour, minute, second = self.caldate()
        return (f'{year:04d}-{month:02d}-{day:02d}T'
                f'{hour:02d}:{minute:02d}:{second:09.6f}Z')

    def __repr__(self):
        return f'Instant({self})'

    def __hash__(self):
        return hash((int(self._jd), round(float(self._compensated_seconds()), 6)))


jax.tree_util.register_pytree_node(
    Instant,
    lambda e: ((e._jd, e._seconds, e._kahan_c), None),
    lambda _, children: Instant._from_internal(*children),
)
