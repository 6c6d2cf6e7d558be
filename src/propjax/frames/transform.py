"""Rigid, time-dependent transforms between reference frames.

A :class:`Transform` maps position and velocity coordinates expressed in a
*source* frame into a *destination* frame:

.. math::

    \\mathbf{r}' &= R \\, (\\mathbf{r} - \\mathbf{t}) \\\\
    \\mathbf{v}' &= R \\, (\\mathbf{v} - \\dot{\\mathbf{t}})
        - \\boldsymbol{\\omega} \\times \\mathbf{r}'

where ``t`` / ``t_dot`` are the destination origin position and velocity
in source coordinates, ``R`` rotates source components into destination
components, and ``omega`` is the angular velocity of the destination frame
relative to the source frame, in destination components.

``Transform`` is a :class:`~typing.NamedTuple`, so JAX treats it as a
pytree and it can be built inside compiled functions.
"""

from __future__ import annotations

from typing import NamedTuple

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype


class Transform(NamedTuple):
    """Rigid transform between two frames.

    Attributes:
        translation: Destination origin in source coordinates [m].
        velocity: Destination origin velocity in source coordinates [m/s].
        orientation: 3x3 rotation from source to destination components.
        angular_velocity: Destination angular velocity relative to the
            source, in destination components [rad/s].
    """

    translation: Array
    velocity: Array
    orientation: Array
    angular_velocity: Array

    @classmethod
    def identity(cls) -> Transform:
        """Return the transform that leaves coordinates unchanged."""
        dtype = get_dtype()
        zero = jnp.zeros(3, dtype=dtype)
        return cls(zero, zero, jnp.eye(3, dtype=dtype), zero)

    @classmethod
    def passive(cls, orientation: ArrayLike, angular_velocity: ArrayLike | None = None) -> Transform:
        """Return a pure rotation (no origin offset).

        Args:
            orientation: 3x3 rotation from source to destination components.
            angular_velocity: Destination angular velocity in destination
                components. Defaults to zero.
        """
        dtype = get_dtype()
        zero = jnp.zeros(3, dtype=dtype)
        omega = zero if angular_velocity is None else jnp.asarray(angular_velocity, dtype=dtype)
        return cls(zero, zero, jnp.asarray(orientation, dtype=dtype), omega)

    def apply_to_position(self, position: ArrayLike) -> Array:
        return self.orientation @ (jnp.asarray(position) - self.translation)

    def apply_to_velocity(self, position: ArrayLike, velocity: ArrayLike) -> Array:
        """Transform a velocity; needs the matching source-frame position."""
        position_out = self.apply_to_position(position)
        return (self.orientation @ (jnp.asarray(velocity) - self.velocity)
                - jnp.cross(self.angular_velocity, position_out))

    def apply_to_vector(self, vector: ArrayLike) -> Array:
        """Rotate a free vector (direction, force) without origin offset."""
        return self.orientation @ jnp.asarray(vector)

    def inverse(self) -> Transform:
        """Return the transform from destination back to source."""
        R = self.orientation
        return Transform(
            translation=-R @ self.translation,
            velocity=jnp.cross(self.angular_velocity, R @ self.translation) - R @ self.velocity,
            orientation=R.T,
            angular_velocity=-R.T @ self.angular_velocity,
        )

    def then(self, other: Transform) -> Transform:
        """Compose ``self`` (A -> B) followed by ``other`` (B -> C) into A -> C.

        Args:
            other: Transform applied after this one.

        Returns:
            Transform: Composite transform.
        """
        R1, R2 = self.orientation, other.orientation
        return Transform(
            translation=self.translation + R1.T @ other.translation,
            velocity=self.velocity + R1.T @ (
                other.velocity + jnp.cross(self.angular_velocity, other.translation)
            ),
            orientation=R2 @ R1,
            angular_velocity=R2 @ self.angular_velocity + other.angular_velocity,
        )
