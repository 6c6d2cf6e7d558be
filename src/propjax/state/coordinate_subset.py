"""Coordinate subsets: named groups of components inside a flat state vector.

A :class:`CoordinateSubset` names one physical quantity (position,
velocity, mass, ...), fixes how many scalar components it occupies, and
defines how two values of that quantity combine and how the quantity is
re-expressed in another reference frame.

Subsets are immutable value objects: two subsets with the same name and
size are equal and hash alike, so independently constructed instances of
``CartesianPosition()`` are interchangeable.

Combination and frame-change methods receive the *full* coordinate
vector together with the :class:`~propjax.state.CoordinateBroker`
describing its layout.  This lets a subset depend on other subsets, e.g.
:class:`CartesianVelocity` needs the matching position to account for
frame rotation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import jax.numpy as jnp
from jax import Array

from propjax.rotations import (
    quaternion_conjugate,
    quaternion_multiply,
    quaternion_to_rotation_matrix,
    rotation_matrix_to_quaternion,
)

if TYPE_CHECKING:
    from propjax.frames import Frame, Transform
    from propjax.instant import Instant
    from propjax.state.coordinate_broker import CoordinateBroker


class CoordinateSubset:
    """A named, fixed-size group of coordinates with elementwise algebra.

    Args:
        name: Unique name of the quantity.
        size: Number of scalar components (at least 1).

    Raises:
        ValueError: If ``name`` is empty or ``size`` is less than 1.
    """

    __slots__ = ("_name", "_size")

    def __init__(self, name: str, size: int) -> None:
        if not name:
            raise ValueError("Coordinate subset name must be a non-empty string.")
        if int(size) < 1:
            raise ValueError(f"Coordinate subset [{name}] size must be >= 1, got {size}.")
        self._name = name
        self._size = int(size)

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return self._size

    def get_name(self) -> str:
        return self._name

    def get_size(self) -> int:
        return self._size

    def add(
        self,
        instant: Instant,
        coordinates: Array,
        other_coordinates: Array,
        frame: Frame,
        broker: CoordinateBroker,
    ) -> Array:
        """Combine this subset's components of two full vectors sharing ``broker``."""
        return (broker.extract_coordinate(coordinates, self)
                + broker.extract_coordinate(other_coordinates, self))

    def subtract(
        self,
        instant: Instant,
        coordinates: Array,
        other_coordinates: Array,
        frame: Frame,
        broker: CoordinateBroker,
    ) -> Array:
        """Difference of this subset's components of two full vectors sharing ``broker``."""
        return (broker.extract_coordinate(coordinates, self)
                - broker.extract_coordinate(other_coordinates, self))

    def in_frame(
        self,
        instant: Instant,
        coordinates: Array,
        transform: Transform,
        broker: CoordinateBroker,
    ) -> Array:
        """Return this subset's components after a change of frame.

        Frame-independent quantities (the default) pass through unchanged.

        Args:
            instant: Instant of the coordinates.
            coordinates: Full coordinate vector laid out by ``broker``.
            transform: Source-to-destination frame transform at ``instant``.
            broker: Layout of ``coordinates``.
        """
        return broker.extract_coordinate(coordinates, self)

    @classmethod
    def mass(cls) -> CoordinateSubset:
        """Spacecraft total mass [kg]."""
        return cls("MASS", 1)

    @classmethod
    def surface_area(cls) -> CoordinateSubset:
        """Drag reference surface area [m^2]."""
        return cls("SURFACE_AREA", 1)

    @classmethod
    def drag_coefficient(cls) -> CoordinateSubset:
        """Dimensionless drag coefficient."""
        return cls("DRAG_COEFFICIENT", 1)

    def __eq__(self, other):
        if not isinstance(other, CoordinateSubset):
            return NotImplemented
        return self._name == other._name and self._size == other._size

    def __ne__(self, other):
        if not isinstance(other, CoordinateSubset):
            return NotImplemented
        return not self.__eq__(other)

    def __hash__(self):
        return hash((self._name, self._size))

    def __repr__(self):
        return f"{type(self).__name__}(name={self._name!r}, size={self._size})"


class CartesianPosition(CoordinateSubset):
    """Cartesian position ``[x, y, z]`` [m]."""

    __slots__ = ()

    def __init__(self, name: str = "CARTESIAN_POSITION") -> None:
        super().__init__(name, 3)

    @classmethod
    def default(cls) -> CartesianPosition:
        return cls()

    def in_frame(self, instant, coordinates, transform, broker) -> Array:
        return transform.apply_to_position(broker.extract_coordinate(coordinates, self))


class CartesianVelocity(CoordinateSubset):
    """Cartesian velocity ``[vx, vy, vz]`` [m/s].

    A frame change needs the matching position, so a velocity subset
    carries a reference to its :class:`CartesianPosition`.

    Args:
        position: Position subset this velocity is the derivative of.
        name: Subset name.
    """

    __slots__ = ("_position",)

    def __init__(self, position: CartesianPosition | None = None, name: str = "CARTESIAN_VELOCITY") -> None:
        super().__init__(name, 3)
        self._position = CartesianPosition() if position is None else position

    @classmethod
    def default(cls) -> CartesianVelocity:
        return cls()

    def get_position(self) -> CartesianPosition:
        return self._position

    def in_frame(self, instant, coordinates, transform, broker) -> Array:
        position = broker.extract_coordinate(coordinates, self._position)
        velocity = broker.extract_coordinate(coordinates, self)
        return transform.apply_to_velocity(position, velocity)


class AttitudeQuaternion(CoordinateSubset):
    """Attitude quaternion ``[w, x, y, z]`` (frame to body).

    Combination is quaternion composition rather than elementwise sum:
    ``a + b`` is ``a ⊗ b`` and ``a - b`` is ``a ⊗ b*``, both normalized.
    """

    __slots__ = ()

    def __init__(self, name: str = "ATTITUDE_QUATERNION") -> None:
        super().__init__(name, 4)

    @classmethod
    def default(cls) -> AttitudeQuaternion:
        return cls()

    def add(self, instant, coordinates, other_coordinates, frame, broker) -> Array:
        return quaternion_multiply(
            broker.extract_coordinate(coordinates, self),
            broker.extract_coordinate(other_coordinates, self),
        )

    def subtract(self, instant, coordinates, other_coordinates, frame, broker) -> Array:
        return quaternion_multiply(
            broker.extract_coordinate(coordinates, self),
            quaternion_conjugate(broker.extract_coordinate(other_coordinates, self)),
        )

    def in_frame(self, instant, coordinates, transform, broker) -> Array:
        q = broker.extract_coordinate(coordinates, self)
        # body <- source <- destination
        R = quaternion_to_rotation_matrix(q) @ transform.orientation.T
        q_new = rotation_matrix_to_quaternion(R)
        return jnp.where(jnp.dot(q_new, q) < 0.0, -q_new, q_new)


class AngularVelocity(CoordinateSubset):
    """Body angular velocity ``[wx, wy, wz]`` in body components [rad/s].

    Body-frame rates do not change with the reference frame.
    """

    __slots__ = ()

    def __init__(self, name: str = "ANGULAR_VELOCITY") -> None:
        super().__init__(name, 3)

    @classmethod
    def default(cls) -> AngularVelocity:
        return cls()
