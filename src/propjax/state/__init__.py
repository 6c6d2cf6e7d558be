"""State representation: coordinate subsets, brokers and immutable states.

- :class:`CoordinateSubset` and the built-in subsets (position, velocity,
  attitude quaternion, angular velocity, mass, surface area, drag coefficient)
- :class:`CoordinateBroker`, the flat-vector layout of an ordered subset list
- :class:`State` and :class:`StateBuilder`
"""

from propjax.state.coordinate_broker import CoordinateBroker
from propjax.state.coordinate_subset import (
    AngularVelocity,
    AttitudeQuaternion,
    CartesianPosition,
    CartesianVelocity,
    CoordinateSubset,
)
from propjax.state.state import Position, State, StateBuilder, Velocity

__all__ = [
    "CoordinateSubset",
    "CartesianPosition",
    "CartesianVelocity",
    "AttitudeQuaternion",
    "AngularVelocity",
    "CoordinateBroker",
    "State",
    "StateBuilder",
    "Position",
    "Velocity",
]
