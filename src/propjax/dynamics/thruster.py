"""Continuous thrust with propellant consumption."""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array

from propjax.dynamics.dynamics import Dynamics
from propjax.dynamics.guidance import GuidanceLaw
from propjax.dynamics.satellite import SatelliteSystem
from propjax.state import CartesianPosition, CartesianVelocity, CoordinateSubset


class Thruster(Dynamics):
    """Adds thrust acceleration and mass depletion.

    While the total mass exceeds the satellite's dry mass the velocity
    derivative receives ``thrust / mass`` along the guidance direction and
    the mass derivative is ``-thrust / (Isp * g0)``.  Once the propellant is
    exhausted both contributions are zero.

    Args:
        satellite_system: Spacecraft carrying a propulsion system.
        guidance_law: Thrust direction provider.
        name: Model name.

    Raises:
        ValueError: If the satellite has no propulsion system.
    """

    def __init__(
        self,
        satellite_system: SatelliteSystem,
        guidance_law: GuidanceLaw,
        name: str = "Thruster",
    ) -> None:
        if satellite_system is None or not satellite_system.has_propulsion():
            raise ValueError("Thruster requires a satellite system with a propulsion system.")
        if guidance_law is None:
            raise ValueError("Guidance law is undefined.")
        super().__init__(name)
        self._satellite_system = satellite_system
        self._guidance_law = guidance_law
        self._position = CartesianPosition()
        self._velocity = CartesianVelocity()
        self._mass = CoordinateSubset.mass()

    @property
    def satellite_system(self) -> SatelliteSystem:
        return self._satellite_system

    @property
    def guidance_law(self) -> GuidanceLaw:
        return self._guidance_law

    @property
    def read_subsets(self):
        return (self._position, self._velocity, self._mass)

    @property
    def write_subsets(self):
        return (self._velocity, self._mass)

    def compute_contribution(self, instant, coordinates, frame) -> Array:
        r = coordinates[0:3]
        v = coordinates[3:6]
        mass = coordinates[6]
        propulsion = self._satellite_system.propulsion

        acceleration = self._guidance_law.calculate_thrust_acceleration_at(
            instant, r, v, propulsion.acceleration(mass), frame
        )
        mass_rate = jnp.full((1,), -propulsion.mass_flow_rate, dtype=coordinates.dtype)
        thrusting = jnp.concatenate([acceleration, mass_rate])

        has_propellant = mass > self._satellite_system.dry_mass
        return jnp.where(has_propellant, thrusting, jnp.zeros_like(thrusting))

    def describe(self) -> str:
        return f"{super().describe()}\n  Guidance: {self._guidance_law!r}"
