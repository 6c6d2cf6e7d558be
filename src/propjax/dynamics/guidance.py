"""Guidance laws commanding the thrust direction of a :class:`~propjax.dynamics.Thruster`."""

from __future__ import annotations

from typing import Protocol

from jax import Array
from jax.typing import ArrayLike

from propjax.frames import Frame, LocalOrbitalFrameDirection, LocalOrbitalFrameType
from propjax.instant import Instant


class GuidanceLaw(Protocol):
    """Protocol for thrust guidance."""

    def calculate_thrust_acceleration_at(
        self,
        instant: Instant,
        position: ArrayLike,
        velocity: ArrayLike,
        thrust_acceleration: ArrayLike,
        frame: Frame,
    ) -> Array:
        """Return the commanded acceleration vector [m/s^2] in ``frame``."""
        ...


class ConstantThrust:
    """Thrust along a fixed direction of a local orbital frame.

    Args:
        direction: Thrust direction in a local orbital frame.

    Examples:
        ```python
        from propjax.dynamics import ConstantThrust
        from propjax.frames import LocalOrbitalFrameDirection, LocalOrbitalFrameType
        law = ConstantThrust(
            LocalOrbitalFrameDirection.create([0.0, 1.0, 0.0], LocalOrbitalFrameType.QSW)
        )
        ```
    """

    def __init__(self, direction: LocalOrbitalFrameDirection) -> None:
        self._direction = direction

    @classmethod
    def intrack(cls, velocity_direction: bool = True) -> ConstantThrust:
        """Thrust along (or against) the velocity vector."""
        sign = 1.0 if velocity_direction else -1.0
        return cls(LocalOrbitalFrameDirection.create([sign, 0.0, 0.0], LocalOrbitalFrameType.VNC))

    @property
    def direction(self) -> LocalOrbitalFrameDirection:
        return self._direction

    def calculate_thrust_acceleration_at(self, instant, position, velocity, thrust_acceleration, frame) -> Array:
        return thrust_acceleration * self._direction.in_frame(position, velocity)

    def __repr__(self):
        return f"ConstantThrust({self._direction.frame_type.name}, {list(map(float, self._direction.value))})"
