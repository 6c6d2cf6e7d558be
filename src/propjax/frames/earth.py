"""Inertial to Earth-fixed transformations using Earth rotation only.

The Earth-fixed frame (ITRF here) is obtained from the inertial GCRF frame
by a single :math:`R_z(\\theta_{\\text{GMST}})` rotation.  Precession,
nutation and polar motion are not modelled; their arcsecond-level terms
are below what the built-in drag and gravity models resolve.

All functions accept traced :class:`~propjax.Instant` values and can be
used inside compiled dynamics.

References:
    1. D. Vallado, *Fundamentals of Astrodynamics and Applications*,
       4th ed., Microcosm Press, 2013, Sec. 3.7.
    2. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, Springer, 2012, Sec. 5.2.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.constants import OMEGA_EARTH
from propjax.frames.transform import Transform
from propjax.instant import Instant
from propjax.rotations import Rz


def earth_rotation(instant: Instant) -> Array:
    """Return the 3x3 rotation from GCRF components to ITRF components.

    Args:
        instant: Instant at which to evaluate the rotation.

    Returns:
        jax.Array: ``Rz(gmst)``.

    Example:
        >>> from propjax import Instant
        >>> from propjax.frames import earth_rotation
        >>> earth_rotation(Instant(2024, 1, 1)).shape
        (3, 3)
    """
    return Rz(instant.gmst())


def earth_angular_velocity() -> Array:
    """Return the Earth rotation vector ``[0, 0, OMEGA_EARTH]`` [rad/s]."""
    return jnp.array([0.0, 0.0, OMEGA_EARTH], dtype=get_dtype())


def transform_gcrf_to_itrf(instant: Instant) -> Transform:
    """Return the GCRF to ITRF :class:`Transform` at ``instant``."""
    return Transform.passive(earth_rotation(instant), earth_angular_velocity())


def state_gcrf_to_itrf(instant: Instant, x_gcrf: ArrayLike) -> Array:
    """Transform a 6-element state vector from GCRF to ITRF.

    .. math::

        \\mathbf{r}_{\\text{ITRF}} &= R \\, \\mathbf{r}_{\\text{GCRF}} \\\\
        \\mathbf{v}_{\\text{ITRF}} &= R \\, \\mathbf{v}_{\\text{GCRF}}
            - \\boldsymbol{\\omega} \\times \\mathbf{r}_{\\text{ITRF}}

    Args:
        instant: Instant at which to evaluate the transformation.
        x_gcrf: ``[x, y, z, vx, vy, vz]`` in m, m/s.

    Returns:
        jax.Array: ITRF state ``[x, y, z, vx, vy, vz]``.
    """
    x_gcrf = jnp.asarray(x_gcrf, dtype=get_dtype())
    transform = transform_gcrf_to_itrf(instant)
    return jnp.concatenate([
        transform.apply_to_position(x_gcrf[:3]),
        transform.apply_to_velocity(x_gcrf[:3], x_gcrf[3:6]),
    ])


def state_itrf_to_gcrf(instant: Instant, x_itrf: ArrayLike) -> Array:
    """Transform a 6-element state vector from ITRF to GCRF.

    Inverse of :func:`state_gcrf_to_itrf`.
    """
    x_itrf = jnp.asarray(x_itrf, dtype=get_dtype())
    transform = transform_gcrf_to_itrf(instant).inverse()
    return jnp.concatenate([
        transform.apply_to_position(x_itrf[:3]),
        transform.apply_to_velocity(x_itrf[:3], x_itrf[3:6]),
    ])
