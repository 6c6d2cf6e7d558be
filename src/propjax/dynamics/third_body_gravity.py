"""Differential gravitational acceleration from a perturbing body."""

from __future__ import annotations

from jax import Array

from propjax.dynamics.dynamics import Dynamics, require_gcrf
from propjax.environment import CelestialBody, accel_point_mass
from propjax.state import CartesianPosition, CartesianVelocity


class ThirdBodyGravity(Dynamics):
    """Adds the third-body perturbation of ``celestial_body``.

    The acceleration is the difference between the body's pull on the
    satellite and its pull on the central body, so the common acceleration
    Body ephemerides are GCRF, so coordinates must be GCRF too.

    of the whole system is not counted twice:

    .. math::

        \\mathbf{a} = GM \\left(\\frac{\\mathbf{s} - \\mathbf{r}}{|\\mathbf{s} - \\mathbf{r}|^3}
            - \\frac{\\mathbf{s}}{|\\mathbf{s}|^3}\\right)

    Args:
        celestial_body: Perturbing body.
        name: Model name. Default: ``"Third Body Gravity [<body>]"``.

    Raises:
        ValueError: If the body is the Earth (the central body).
    """

    def __init__(self, celestial_body: CelestialBody, name: str | None = None) -> None:
        if celestial_body is None:
            raise ValueError("Celestial body is undefined.")
        if celestial_body.name == "Earth":
            raise ValueError("Cannot use the central body [Earth] as a third body.")
        super().__init__(name or f"Third Body Gravity [{celestial_body.name}]")
        self._celestial_body = celestial_body
        self._position = CartesianPosition()
        self._velocity = CartesianVelocity()

    @property
    def celestial_body(self) -> CelestialBody:
        return self._celestial_body

    @property
    def read_subsets(self):
        return (self._position,)

    @property
    def write_subsets(self):
        return (self._velocity,)

    def compute_contribution(self, instant, coordinates, frame) -> Array:
        require_gcrf(frame, self)
        r_body = self._celestial_body.position(instant)
        return accel_point_mass(coordinates, r_body, self._celestial_body.gm)
