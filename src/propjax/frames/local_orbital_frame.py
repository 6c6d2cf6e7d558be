"""Local orbital frames built from a position/velocity pair.

Each :class:`LocalOrbitalFrameType` defines three orthonormal axes from
the satellite position ``r`` and velocity ``v`` expressed in some working
frame.  :func:`rotation_local_to_frame` returns the 3x3 matrix whose
columns are those axes in working-frame components, so that
``R @ d_local`` expresses a local direction in the working frame.

Axis definitions (``h = r x v``):

- ``VNC``:  x = v̂, y = ĥ, z = x × y
- ``QSW``:  x = r̂, z = ĥ, y = z × x   (also known as ``RTN`` / ``RSW``)
- ``TNW``:  x = v̂, z = ĥ, y = z × x
- ``LVLH``: z = −r̂, y = −ĥ, x = y × z

References:
    1. D. Vallado, *Fundamentals of Astrodynamics and Applications*,
       4th ed., 2013, Sec. 3.3.
"""

from __future__ import annotations

import enum
from typing import NamedTuple

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype


class LocalOrbitalFrameType(enum.Enum):
    """Supported local orbital frame conventions."""

    VNC = "VNC"
    QSW = "QSW"
    RTN = "RTN"
    TNW = "TNW"
    LVLH = "LVLH"


def _unit(x: Array) -> Array:
    return x / jnp.linalg.norm(x)


def rotation_local_to_frame(
    frame_type: LocalOrbitalFrameType,
    position: ArrayLike,
    velocity: ArrayLike,
) -> Array:
    """Return the rotation from local orbital components to working-frame components.

    Args:
        frame_type: Local orbital frame convention.
        position: Satellite position in the working frame [m].
        velocity: Satellite velocity in the working frame [m/s].

    Returns:
        jax.Array: 3x3 matrix with the local axes as columns.

    Examples:
        ```python
        import jax.numpy as jnp
        from propjax.frames import LocalOrbitalFrameType, rotation_local_to_frame
        R = rotation_local_to_frame(
            LocalOrbitalFrameType.QSW,
            jnp.array([7000e3, 0.0, 0.0]),
            jnp.array([0.0, 7500.0, 0.0]),
        )
        ```
    """
    dtype = get_dtype()
    r = jnp.asarray(position, dtype=dtype)
    v = jnp.asarray(velocity, dtype=dtype)
    r_hat = _unit(r)
    v_hat = _unit(v)
    h_hat = _unit(jnp.cross(r, v))

    if frame_type == LocalOrbitalFrameType.VNC:
        x, y = v_hat, h_hat
        z = jnp.cross(x, y)
    elif frame_type in (LocalOrbitalFrameType.QSW, LocalOrbitalFrameType.RTN):
        x, z = r_hat, h_hat
        y = jnp.cross(z, x)
    elif frame_type == LocalOrbitalFrameType.TNW:
        x, z = v_hat, h_hat
        y = jnp.cross(z, x)
    elif frame_type == LocalOrbitalFrameType.LVLH:
        z, y = -r_hat, -h_hat
        x = jnp.cross(y, z)
    else:
        raise ValueError(f"Unsupported local orbital frame type: {frame_type}")

    return jnp.column_stack([x, y, z])


class LocalOrbitalFrameDirection(NamedTuple):
    """A unit direction expressed in a local orbital frame.

    Attributes:
        value: Direction components in the local frame. Normalized by
            :meth:`create`.
        frame_type: Local orbital frame convention.
    """

    value: Array
    frame_type: LocalOrbitalFrameType

    @classmethod
    def create(cls, value: ArrayLike, frame_type: LocalOrbitalFrameType) -> LocalOrbitalFrameDirection:
        """Build a direction, normalizing ``value``.

        Raises:
            ValueError: If ``value`` is not a non-zero 3-vector.
        """
        value = jnp.asarray(value, dtype=get_dtype())
        if value.shape != (3,):
            raise ValueError(f"Direction must have shape (3,), got {value.shape}.")
        norm = float(jnp.linalg.norm(value))
        if norm == 0.0:
            raise ValueError("Direction must be non-zero.")
        return cls(value / norm, frame_type)

    def in_frame(self, position: ArrayLike, velocity: ArrayLike) -> Array:
        """Express this direction in the working frame of ``position``/``velocity``."""
        return rotation_local_to_frame(self.frame_type, position, velocity) @ self.value
