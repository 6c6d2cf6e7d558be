"""Immutable trajectory states.

A :class:`State` bundles an :class:`~propjax.Instant`, a reference
:class:`~propjax.frames.Frame`, a flat coordinate vector and the
:class:`~propjax.state.CoordinateBroker` that describes the vector layout.
Every operation returns a new State; nothing is modified in place.

:class:`StateBuilder` produces States of one fixed layout, and converts
existing States to that layout by dropping (``reduce``) or filling in
(``expand``) subsets.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.errors import (
    FrameMismatchError,
    IncompatibleLayoutError,
    UndefinedOperandError,
)
from propjax.frames import Frame
from propjax.instant import Instant
from propjax.state.coordinate_broker import CoordinateBroker
from propjax.state.coordinate_subset import (
    CartesianPosition,
    CartesianVelocity,
    CoordinateSubset,
)


class Position(NamedTuple):
    """Cartesian position [m] tagged with the frame it is expressed in."""

    coordinates: Array
    frame: Frame

    @classmethod
    def meters(cls, coordinates: ArrayLike, frame: Frame) -> Position:
        return cls(jnp.asarray(coordinates, dtype=get_dtype()), frame)


class Velocity(NamedTuple):
    """Cartesian velocity [m/s] tagged with the frame it is expressed in."""

    coordinates: Array
    frame: Frame

    @classmethod
    def meters_per_second(cls, coordinates: ArrayLike, frame: Frame) -> Velocity:
        return cls(jnp.asarray(coordinates, dtype=get_dtype()), frame)


def _as_broker(broker: CoordinateBroker | Sequence[CoordinateSubset]) -> CoordinateBroker:
    if isinstance(broker, CoordinateBroker):
        return broker
    return CoordinateBroker(broker)


class State:
    """A point of a trajectory: instant, frame, coordinates and layout.

    Args:
        instant: Instant of the state.
        coordinates: Flat coordinate vector, length equal to the broker size.
        frame: Reference frame of the coordinates.
        broker: Layout of ``coordinates``, or the list of subsets to build
            one from.

    Raises:
        UndefinedOperandError: If any argument is ``None``.
        IncompatibleLayoutError: If ``coordinates`` is not a 1-D vector of
            the broker's size.

    Examples:
        ```python
        from propjax import Instant, State
        from propjax.frames import Frame
        from propjax.state import CartesianPosition, CartesianVelocity
        state = State(
            Instant(2024, 1, 1),
            [7000e3, 0.0, 0.0, 0.0, 7546.0, 0.0],
            Frame.GCRF(),
            [CartesianPosition(), CartesianVelocity()],
        )
        state.extract_coordinate(CartesianVelocity())  # [0.0, 7546.0, 0.0]
        ```
    """

    __slots__ = ("_instant", "_coordinates", "_frame", "_broker")

    def __init__(
        self,
        instant: Instant,
        coordinates: ArrayLike,
        frame: Frame,
        broker: CoordinateBroker | Sequence[CoordinateSubset],
    ) -> None:
        if instant is None:
            raise UndefinedOperandError("State instant is undefined.")
        if frame is None:
            raise UndefinedOperandError("State frame is undefined.")
        if broker is None:
            raise UndefinedOperandError("State coordinate broker is undefined.")
        if coordinates is None:
            raise UndefinedOperandError("State coordinates are undefined.")

        broker = _as_broker(broker)
        coordinates = jnp.asarray(coordinates, dtype=get_dtype())
        if coordinates.ndim != 1 or coordinates.shape[0] != broker.total_size:
            raise IncompatibleLayoutError(
                f"Coordinates of shape {coordinates.shape} do not match broker size {broker.total_size}."
            )
        broker.freeze()

        self._instant = instant
        self._coordinates = coordinates
        self._frame = frame
        self._broker = broker

    @classmethod
    def _from_internal(cls, instant, coordinates, frame, broker) -> State:
        obj = object.__new__(cls)
        obj._instant = instant
        obj._coordinates = coordinates
        obj._frame = frame
        obj._broker = broker
        return obj

    @classmethod
    def undefined(cls) -> State:
        """Return a State with no instant, frame, coordinates or broker."""
        return cls._from_internal(None, None, None, None)

    @classmethod
    def from_position_velocity(cls, instant: Instant, position: Position, velocity: Velocity) -> State:
        """Build a (position, velocity) State.

        Args:
            instant: Instant of the state.
            position: Position and its frame.
            velocity: Velocity and its frame.

        Raises:
            FrameMismatchError: If position and velocity are in different frames.
        """
        if position.frame != velocity.frame:
            raise FrameMismatchError(
                f"Position is expressed in [{position.frame}] but velocity in [{velocity.frame}]."
            )
        coordinates = jnp.concatenate([
            jnp.asarray(position.coordinates, dtype=get_dtype()),
            jnp.asarray(velocity.coordinates, dtype=get_dtype()),
        ])
        return cls(instant, coordinates, position.frame, [CartesianPosition(), CartesianVelocity()])

    def is_defined(self) -> bool:
        return (self._instant is not None and self._frame is not None
                and self._coordinates is not None and self._broker is not None)

    def _check_defined(self) -> None:
        if not self.is_defined():
            raise UndefinedOperandError("State is undefined.")

    # Accessors

    @property
    def instant(self) -> Instant:
        return self._instant

    @property
    def frame(self) -> Frame:
        return self._frame

    @property
    def coordinates(self) -> Array:
        return self._coordinates

    @property
    def broker(self) -> CoordinateBroker:
        return self._broker

    def get_instant(self) -> Instant:
        self._check_defined()
        return self._instant

    def get_frame(self) -> Frame:
        self._check_defined()
        return self._frame

    def get_coordinates(self) -> Array:
        self._check_defined()
        return self._coordinates

    def get_coordinate_broker(self) -> CoordinateBroker:
        self._check_defined()
        return self._broker

    def get_coordinate_subsets(self) -> tuple[CoordinateSubset, ...]:
        self._check_defined()
        return self._broker.get_subsets()

    def get_size(self) -> int:
        self._check_defined()
        return self._broker.total_size

    def has_subset(self, subset: CoordinateSubset) -> bool:
        self._check_defined()
        return self._broker.has_subset(subset)

    def extract_coordinate(self, subset: CoordinateSubset) -> Array:
        """Return the components of ``subset``.

        Raises:
            UnknownSubsetError: If the state has no such subset.
        """
        self._check_defined()
        return self._broker.extract_coordinate(self._coordinates, subset)

    def extract_coordinates(self, subsets: Sequence[CoordinateSubset]) -> Array:
        """Return the concatenated components of ``subsets``, in order."""
        self._check_defined()
        return self._broker.extract_coordinates(self._coordinates, subsets)

    def get_position(self) -> Position:
        return Position(self.extract_coordinate(CartesianPosition()), self._frame)

    def get_velocity(self) -> Velocity:
        return Velocity(self.extract_coordinate(CartesianVelocity()), self._frame)

    # Frame conversion

    def in_frame(self, frame: Frame) -> State:
        """Return this state expressed in ``frame``.

        Orientation-dependent subsets are re-expressed through the frame
        transform at this state's instant; scalar subsets pass through.

        Args:
            frame: Destination frame.

        Raises:
            UndefinedOperandError: If the state or the frame is undefined.
        """
        self._check_defined()
        if frame is None:
            raise UndefinedOperandError("Destination frame is undefined.")
        if frame == self._frame:
            return self

        transform = self._frame.get_transform_to(frame, self._instant)
        coordinates = jnp.concatenate([
            subset.in_frame(self._instant, self._coordinates, transform, self._broker)
            for subset in self._broker
        ])
        return State._from_internal(self._instant, coordinates, frame, self._broker)

    # Arithmetic

    def _combine(self, other: State, operation: str) -> State:
        if not isinstance(other, State):
            return NotImplemented
        self._check_defined()
        other._check_defined()

        if self._instant != other._instant:
            raise IncompatibleLayoutError(
                f"Cannot {operation} states at different instants [{self._instant}] and [{other._instant}]."
            )
        if self._frame != other._frame:
            raise FrameMismatchError(
                f"Cannot {operation} states in different frames [{self._frame}] and [{other._frame}]."
            )
        if set(self._broker.get_subsets()) != set(other._broker.get_subsets()):
            raise IncompatibleLayoutError(f"Cannot {operation} states with different coordinate subsets.")

        subsets = self._broker.get_subsets()
        other_coordinates = other.extract_coordinates(subsets)
        combined = jnp.concatenate([
            getattr(subset, operation)(
                self._instant, self._coordinates, other_coordinates, self._frame, self._broker
            )
            for subset in subsets
        ])
        return State._from_internal(self._instant, combined, self._frame, self._broker)

    def __add__(self, other: State) -> State:
        return self._combine(other, "add")

    def __sub__(self, other: State) -> State:
        return self._combine(other, "subtract")

    # Comparison

    def __eq__(self, other):
        if not isinstance(other, State):
            return NotImplemented
        if not (self.is_defined() and other.is_defined()):
            return False
        return bool(
            self._instant == other._instant
            and self._frame == other._frame
            and self._broker == other._broker
            and np.array_equal(np.asarray(self._coordinates), np.asarray(other._coordinates))
        )

    def __ne__(self, other):
        if not isinstance(other, State):
            return NotImplemented
        return not self.__eq__(other)

    __hash__ = None

    # Diagnostics

    def describe(self) -> str:
        """Return a multi-line, human-readable description."""
        if not self.is_defined():
            return "State: undefined"
        lines = [
            "State",
            f"  Instant: {self._instant}",
            f"  Frame:   {self._frame}",
        ]
        coordinates = np.asarray(self._coordinates)
        for subset in self._broker:
            offset = self._broker.offset_of(subset)
            values = ", ".join(f"{v:.6f}" for v in coordinates[offset:offset + subset.size])
            lines.append(f"  {subset.name}: [{values}]")
        return "\n".join(lines)

    def __str__(self):
        return self.describe()

    def __repr__(self):
        if not self.is_defined():
            return "State(undefined)"
        return (f"State(instant={self._instant}, frame={self._frame}, "
                f"coordinates={np.asarray(self._coordinates).tolist()}, broker={self._broker!r})")


class StateBuilder:
    """Factory for States sharing one frame and one coordinate layout.

    Args:
        frame: Frame of the built states.
        broker: Layout, or subsets to build one from.

    Raises:
        UndefinedOperandError: If ``frame`` or ``broker`` is ``None``.
    """

    __slots__ = ("_frame", "_broker")

    def __init__(self, frame: Frame, broker: CoordinateBroker | Sequence[CoordinateSubset]) -> None:
        if frame is None:
            raise UndefinedOperandError("StateBuilder frame is undefined.")
        if broker is None:
            raise UndefinedOperandError("StateBuilder coordinate broker is undefined.")
        self._frame = frame
        self._broker = _as_broker(broker)

    @classmethod
    def from_state(cls, state: State) -> StateBuilder:
        """Return a builder reproducing ``state``'s frame and layout."""
        state._check_defined()
        return cls(state.frame, state.broker)

    def get_frame(self) -> Frame:
        return self._frame

    def get_coordinate_broker(self) -> CoordinateBroker:
        return self._broker

    def get_coordinate_subsets(self) -> tuple[CoordinateSubset, ...]:
        return self._broker.get_subsets()

    def build(self, instant: Instant, coordinates: ArrayLike) -> State:
        return State(instant, coordinates, self._frame, self._broker)

    def reduce(self, state: State) -> State:
        """Keep only this builder's subsets of ``state``.

        Raises:
            UnknownSubsetError: If ``state`` lacks one of the subsets.
            FrameMismatchError: If ``state`` is in another frame.
        """
        state._check_defined()
        if state.frame != self._frame:
            raise FrameMismatchError(f"Cannot reduce a state in [{state.frame}] with a builder in [{self._frame}].")
        return self.build(state.instant, state.extract_coordinates(self._broker.get_subsets()))

    def expand(self, state: State, default_state: State) -> State:
        """Lay ``state`` out with this builder's subsets.

        Subsets missing from ``state`` are taken from ``default_state``.

        Raises:
            FrameMismatchError: If either state is in another frame.
            IncompatibleLayoutError: If the two states are at different instants.
            UnknownSubsetError: If a subset is in neither state.
        """
        state._check_defined()
        default_state._check_defined()
        if state.frame != self._frame or default_state.frame != self._frame:
            raise FrameMismatchError(f"Cannot expand states into a builder in [{self._frame}].")
        if state.instant != default_state.instant:
            raise IncompatibleLayoutError("State and default state must share the same instant.")
        parts = [
            state.extract_coordinate(subset) if state.has_subset(subset)
            else default_state.extract_coordinate(subset)
            for subset in self._broker
        ]
        return self.build(state.instant, jnp.concatenate(parts))

    def __eq__(self, other):
        if not isinstance(other, StateBuilder):
            return NotImplemented
        return self._frame == other._frame and self._broker == other._broker

    __hash__ = None

    def __repr__(self):
        return f"StateBuilder(frame={self._frame}, broker={self._broker!r})"
