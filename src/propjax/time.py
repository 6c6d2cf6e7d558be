"""Gregorian calendar <-> Julian Date conversions.

:class:`~propjax.Instant` uses these to build instants from calendar fields
and to print them.  Day numbers use the integer algorithm of Fliegel and
Van Flandern, so the functions trace under ``jax.jit`` and ``jax.vmap``.

Time scales (UTC, TAI, TT) are not distinguished: instants live on a
single uniform scale.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike

from .config import get_dtype
from .constants import JD_MJD_OFFSET, SECONDS_PER_DAY


def _day_number(year: ArrayLike, month: ArrayLike, day: ArrayLike) -> jax.Array:
    """Julian Day Number (integer, noon-based) of a Gregorian date."""
    year = jnp.asarray(year, dtype=jnp.int32)
    month = jnp.asarray(month, dtype=jnp.int32)
    day = jnp.asarray(day, dtype=jnp.int32)

    a = (14 - month) // 12
    y = year + 4800 - a
    m = month + 12 * a - 3
    return day + (153 * m + 2) // 5 + 365 * y + y // 4 - y // 100 + y // 400 - 32045


def caldate_to_jd(
    year: ArrayLike,
    month: ArrayLike,
    day: ArrayLike,
    hour: ArrayLike = 0,
    minute: ArrayLike = 0,
    second: ArrayLike = 0.0,
) -> jax.Array:
    """Julian Date of a Gregorian calendar date.

    Args:
        year: Calendar year (after 4800 BC).
        month: Month, 1-12.
        day: Day of month.
        hour: Hour. Default: ``0``
        minute: Minute. Default: ``0``
        second: Seconds, may be fractional. Default: ``0.0``

    Returns:
        jax.Array: Julian Date in the configured float dtype.

    References:

        1. H. F. Fliegel and T. C. Van Flandern, "A Machine Algorithm for
           Processing Calendar Dates", *Communications of the ACM* 11(10), 1968.
    """
    dtype = get_dtype()
    midnight = _day_number(year, month, day).astype(dtype) - 0.5
    seconds_of_day = jnp.asarray(hour, dtype=dtype) * 3600.0 + jnp.asarray(minute, dtype=dtype) * 60.0 + second
    return midnight + seconds_of_day / SECONDS_PER_DAY


def caldate_to_mjd(
    year: ArrayLike,
    month: ArrayLike,
    day: ArrayLike,
    hour: ArrayLike = 0,
    minute: ArrayLike = 0,
    second: ArrayLike = 0.0,
) -> jax.Array:
    """Modified Julian Date of a Gregorian calendar date."""
    return caldate_to_jd(year, month, day, hour, minute, second) - JD_MJD_OFFSET


def jd_to_caldate(
    jd: ArrayLike,
) -> tuple[jax.Array, jax.Array, jax.Array, jax.Array, jax.Array, jax.Array]:
    """Gregorian calendar fields of a Julian Date.

    The time of day is resolved to the millisecond.

    Args:
        jd: Julian Date.

    Returns:
        tuple[jax.Array, ...]: ``(year, month, day, hour, minute, second)``;
            all int32 except ``second``, which has the configured float dtype.
    """
    shifted = jnp.asarray(jd) + 0.5
    day_number = jnp.floor(shifted).astype(jnp.int32)
    fraction = shifted - day_number

    l = day_number + 68569
    n = (4 * l) // 146097
    l = l - (146097 * n + 3) // 4
    i = (4000 * (l + 1)) // 1461001
    l = l - (1461 * i) // 4 + 31
    j = (80 * l) // 2447
    day = l - (2447 * j) // 80
    l = j // 11
    month = j + 2 - 12 * l
    year = 100 * (n - 49) + i + l

    milliseconds = jnp.round(fraction * SECONDS_PER_DAY * 1000.0).astype(jnp.int32)
    hour = milliseconds // 3_600_000
    minute = (milliseconds % 3_600_000) // 60_000
    second = get_dtype()(milliseconds % 60_000) / 1000.0

    return year, month, day, hour, minute, second
