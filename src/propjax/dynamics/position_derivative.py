"""Kinematic identity: the derivative of position is velocity."""

from __future__ import annotations

from jax import Array

from propjax.dynamics.dynamics import Dynamics
from propjax.state import CartesianPosition, CartesianVelocity


class PositionDerivative(Dynamics):
    """Writes ``d(position)/dt = velocity``.

    Args:
        position: Position subset to write.
        velocity: Velocity subset to read.
        name: Model name.
    """

    def __init__(
        self,
        position: CartesianPosition | None = None,
        velocity: CartesianVelocity | None = None,
        name: str = "Position Derivative",
    ) -> None:
        super().__init__(name)
        self._position = CartesianPosition() if position is None else position
        self._velocity = CartesianVelocity(self._position) if velocity is None else velocity

    @property
    def read_subsets(self):
        return (self._velocity,)

    @property
    def write_subsets(self):
        return (self._position,)

    def compute_contribution(self, instant, coordinates, frame) -> Array:
        return coordinates
