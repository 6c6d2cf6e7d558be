"""Elementary rotation matrices and scalar-first quaternion helpers.

The elementary rotations ``Rx``, ``Ry``, ``Rz`` are passive (frame)
rotations following Montenbruck & Gill: ``Rz(theta) @ r`` expresses the
vector ``r`` in a frame rotated by ``theta`` about z.

Quaternions are plain ``(4,)`` arrays in scalar-first order ``[w, x, y, z]``
so that they can live inside a flat state vector.  A quaternion ``q``
describes the same orientation as the matrix ``quaternion_to_rotation_matrix(q)``,
which maps reference-frame components into body-frame components.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike


def _to_radians(angle: ArrayLike, use_degrees: bool) -> jax.Array:
    angle = jnp.asarray(angle)
    return jnp.deg2rad(angle) if use_degrees else angle


def Rx(angle: ArrayLike, use_degrees: bool = False) -> jax.Array:
    """Rotation matrix, for a rotation about the x-axis.

    Args:
        angle: Counter-clockwise angle of rotation as viewed looking back
            along the positive direction of the rotation axis.
        use_degrees (bool): Interpret ``angle`` in degrees. Default: ``False``

    Returns:
        jax.Array: Rotation matrix.

    References:

        1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and Applications*, 2012, p.27.
    """
    angle = _to_radians(angle, use_degrees)
    c = jnp.cos(angle)
    s = jnp.sin(angle)

    return jnp.array([[1.0, 0.0, 0.0],
                      [0.0,  +c,  +s],
                      [0.0,  -s,  +c]])


def Ry(angle: ArrayLike, use_degrees: bool = False) -> jax.Array:
    """Rotation matrix, for a rotation about the y-axis.

    Args:
        angle: Counter-clockwise angle of rotation.
        use_degrees (bool): Interpret ``angle`` in degrees. Default: ``False``

    Returns:
        jax.Array: Rotation matrix.
    """
    angle = _to_radians(angle, use_degrees)
    c = jnp.cos(angle)
    s = jnp.sin(angle)

    return jnp.array([[ +c, 0.0,  -s],
                      [0.0, 1.0, 0.0],
                      [ +s, 0.0,  +c]])


def Rz(angle: ArrayLike, use_degrees: bool = False) -> jax.Array:
    """Rotation matrix, for a rotation about the z-axis.

    Args:
        angle: Counter-clockwise angle of rotation.
        use_degrees (bool): Interpret ``angle`` in degrees. Default: ``False``

    Returns:
        jax.Array: Rotation matrix.
    """
    angle = _to_radians(angle, use_degrees)
    c = jnp.cos(angle)
    s = jnp.sin(angle)

    return jnp.array([[ +c,  +s, 0.0],
                      [ -s,  +c, 0.0],
                      [0.0, 0.0, 1.0]])


def quaternion_multiply(q1: ArrayLike, q2: ArrayLike) -> jax.Array:
    """Hamilton product of two scalar-first quaternions, normalized.

    Args:
        q1: First quaternion, shape ``(4,)``.
        q2: Second quaternion, shape ``(4,)``.

    Returns:
        jax.Array: Unit product quaternion, shape ``(4,)``.
    """
    q1 = jnp.asarray(q1)
    q2 = jnp.asarray(q2)
    s1, v1 = q1[0], q1[1:]
    s2, v2 = q2[0], q2[1:]

    s = s1 * s2 - jnp.dot(v1, v2)
    v = s1 * v2 + s2 * v1 + jnp.cross(v1, v2)

    result = jnp.concatenate([jnp.array([s]), v])
    return result / jnp.linalg.norm(result)


def quaternion_conjugate(q: ArrayLike) -> jax.Array:
    """Return the conjugate ``[w, -x, -y, -z]`` of a quaternion."""
    q = jnp.asarray(q)
    return q * jnp.array([1.0, -1.0, -1.0, -1.0], dtype=q.dtype)


def quaternion_to_rotation_matrix(q: ArrayLike) -> jax.Array:
    """Convert a unit quaternion to a 3x3 rotation matrix.

    Uses the bilinear product form (Diebel eq. 125).

    Args:
        q: Quaternion, shape ``(4,)``, scalar-first.

    Returns:
        jax.Array: Rotation matrix, shape ``(3, 3)``.
    """
    q = jnp.asarray(q)
    qs, q1, q2, q3 = q[0], q[1], q[2], q[3]

    return jnp.array([
        [qs*qs + q1*q1 - q2*q2 - q3*q3,  2.0*q1*q2 + 2.0*qs*q3,          2.0*q1*q3 - 2.0*qs*q2],
        [2.0*q1*q2 - 2.0*qs*q3,           qs*qs - q1*q1 + q2*q2 - q3*q3,  2.0*q2*q3 + 2.0*qs*q1],
        [2.0*q1*q3 + 2.0*qs*q2,           2.0*q2*q3 - 2.0*qs*q1,          qs*qs - q1*q1 - q2*q2 + q3*q3],
    ])


def rotation_matrix_to_quaternion(R: ArrayLike) -> jax.Array:
    """Convert a 3x3 rotation matrix to a unit quaternion.

    Shepperd's method: the largest of the four candidate traces selects
    the branch, through ``jax.lax.switch`` so the conversion stays
    traceable.

    Args:
        R: Rotation matrix, shape ``(3, 3)``.

    Returns:
        jax.Array: Quaternion, shape ``(4,)``, scalar-first.
    """
    R = jnp.asarray(R)
    qvec = jnp.array([
        1.0 + R[0, 0] + R[1, 1] + R[2, 2],
        1.0 + R[0, 0] - R[1, 1] - R[2, 2],
        1.0 - R[0, 0] + R[1, 1] - R[2, 2],
        1.0 - R[0, 0] - R[1, 1] + R[2, 2],
    ])
    ind_max = jnp.argmax(qvec)
    sq = jnp.sqrt(qvec[ind_max])

    def _case0(_):
        return 0.5 * jnp.array([sq, (R[1, 2] - R[2, 1]) / sq,
                                (R[2, 0] - R[0, 2]) / sq, (R[0, 1] - R[1, 0]) / sq])

    def _case1(_):
        return 0.5 * jnp.array([(R[1, 2] - R[2, 1]) / sq, sq,
                                (R[0, 1] + R[1, 0]) / sq, (R[2, 0] + R[0, 2]) / sq])

    def _case2(_):
        return 0.5 * jnp.array([(R[2, 0] - R[0, 2]) / sq, (R[0, 1] + R[1, 0]) / sq,
                                sq, (R[1, 2] + R[2, 1]) / sq])

    def _case3(_):
        return 0.5 * jnp.array([(R[0, 1] - R[1, 0]) / sq, (R[2, 0] + R[0, 2]) / sq,
                                (R[1, 2] + R[2, 1]) / sq, sq])

    return jax.lax.switch(ind_max, [_case0, _case1, _case2, _case3], None)
