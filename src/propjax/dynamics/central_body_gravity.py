"""Gravitational acceleration of the central body."""

from __future__ import annotations

from jax import Array

from propjax.dynamics.dynamics import Dynamics, require_gcrf
from propjax.environment import GravityField, PointMassGravity
from propjax.state import CartesianPosition, CartesianVelocity


class CentralBodyGravity(Dynamics):
    """Adds the central body's gravitational acceleration to the velocity derivative.

    The field is an external collaborator: :class:`~propjax.environment.PointMassGravity`
    for two-body motion, :class:`~propjax.environment.SphericalHarmonicGravity` for
    a truncated harmonic expansion, or any object implementing
    :class:`~propjax.environment.GravityField`.

    Coordinates must be GCRF; the field rotates them to the body-fixed
    frame itself.

    Args:
        gravity_field: Field provider. Default: Earth point mass.
        name: Model name.

    Examples:
        ```python
        from propjax.dynamics import CentralBodyGravity
        from propjax.environment import GravityModel, SphericalHarmonicGravity
        two_body = CentralBodyGravity()
        j2 = CentralBodyGravity(SphericalHarmonicGravity(GravityModel.earth_j2(), 2, 0))
        ```
    """

    def __init__(self, gravity_field: GravityField | None = None, name: str = "Central Body Gravity") -> None:
        super().__init__(name)
        self._gravity_field = PointMassGravity() if gravity_field is None else gravity_field
        self._position = CartesianPosition()
        self._velocity = CartesianVelocity()

    @property
    def gravity_field(self) -> GravityField:
        return self._gravity_field

    @property
    def read_subsets(self):
        return (self._position,)

    @property
    def write_subsets(self):
        return (self._velocity,)

    def compute_contribution(self, instant, coordinates, frame) -> Array:
        require_gcrf(frame, self)
        return self._gravity_field.acceleration(coordinates, instant)

    def describe(self) -> str:
        return f"{super().describe()}\n  Field:  {self._gravity_field!r}"
