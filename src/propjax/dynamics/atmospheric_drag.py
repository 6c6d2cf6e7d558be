"""Atmospheric drag acceleration.

The atmosphere co-rotates with the Earth, so the relative velocity is

.. math::

    \\mathbf{v}_{rel} = \\mathbf{v} - \\boldsymbol{\\omega}_\\oplus \\times \\mathbf{r}

and the acceleration is

.. math::

    \\mathbf{a} = -\\frac{1}{2} C_D \\frac{A}{m} \\rho |\\mathbf{v}_{rel}| \\mathbf{v}_{rel}
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.constants import OMEGA_EARTH
from propjax.dynamics.dynamics import Dynamics, require_gcrf
from propjax.dynamics.satellite import SatelliteSystem
from propjax.environment import AtmosphereModel
from propjax.state import CartesianPosition, CartesianVelocity, CoordinateSubset


def accel_drag(
    r: ArrayLike,
    v: ArrayLike,
    density: ArrayLike,
    mass: ArrayLike,
    area: ArrayLike,
    cd: ArrayLike,
) -> Array:
    """Drag acceleration of a satellite in an Earth-co-rotating atmosphere.

    Args:
        r: Inertial position [m].
        v: Inertial velocity [m/s].
        density: Atmospheric density [kg/m^3].
        mass: Satellite mass [kg].
        area: Wind-facing cross-sectional area [m^2].
        cd: Drag coefficient.

    Returns:
        jax.Array: Acceleration [m/s^2], shape ``(3,)``.
    """
    dtype = get_dtype()
    r = jnp.asarray(r, dtype=dtype)
    v = jnp.asarray(v, dtype=dtype)
    omega = jnp.array([0.0, 0.0, OMEGA_EARTH], dtype=dtype)

    v_rel = v - jnp.cross(omega, r)
    v_abs = jnp.linalg.norm(v_rel)

    return -0.5 * cd * (area / mass) * density * v_abs * v_rel


class AtmosphericDrag(Dynamics):
    """Adds atmospheric drag to the velocity derivative.

    Mass, surface area and drag coefficient are taken from the propagated
    state when its layout carries the ``MASS``, ``SURFACE_AREA`` and
    ``DRAG_COEFFICIENT`` subsets, otherwise from ``satellite_system``.
    Only position and velocity are required. The co-rotation term assumes
    GCRF coordinates.

    Args:
        atmosphere: Density provider.
        satellite_system: Fallback spacecraft properties.
        name: Model name.
    """

    def __init__(
        self,
        atmosphere: AtmosphereModel,
        satellite_system: SatelliteSystem | None = None,
        name: str = "Atmospheric Drag",
    ) -> None:
        if atmosphere is None:
            raise ValueError("Atmosphere model is undefined.")
        super().__init__(name)
        self._atmosphere = atmosphere
        self._satellite_system = SatelliteSystem() if satellite_system is None else satellite_system
        self._position = CartesianPosition()
        self._velocity = CartesianVelocity()
        self._parameter_subsets = (
            CoordinateSubset.mass(),
            CoordinateSubset.surface_area(),
            CoordinateSubset.drag_coefficient(),
        )

    @property
    def atmosphere(self) -> AtmosphereModel:
        return self._atmosphere

    @property
    def satellite_system(self) -> SatelliteSystem:
        return self._satellite_system

    @property
    def read_subsets(self):
        return (self._position, self._velocity)

    @property
    def write_subsets(self):
        return (self._velocity,)

    @property
    def optional_read_subsets(self):
        return self._parameter_subsets

    def contribution(self, instant, coordinates, frame, broker) -> Array:
        coordinates = jnp.asarray(coordinates)
        read = broker.extract_coordinates(coordinates, self.read_subsets)
        fallbacks = (
            self._satellite_system.mass,
            self._satellite_system.drag_area,
            self._satellite_system.cd,
        )
        parameters = [
            broker.extract_coordinate(coordinates, subset)
            if broker.has_subset(subset)
            else jnp.array([fallback], dtype=coordinates.dtype)
            for subset, fallback in zip(self._parameter_subsets, fallbacks)
        ]
        acceleration = self.compute_contribution(instant, jnp.concatenate([read, *parameters]), frame)

        offset = broker.offset_of(self._velocity)
        derivative = jnp.zeros(broker.total_size, dtype=coordinates.dtype)
        return derivative.at[offset:offset + 3].add(acceleration)

    def compute_contribution(self, instant, coordinates, frame) -> Array:
        """Drag acceleration from ``[r, v]`` or ``[r, v, mass, area, cd]``."""
        require_gcrf(frame, self)
        r = coordinates[0:3]
        v = coordinates[3:6]
        if coordinates.shape[0] >= 9:
            mass, area, cd = coordinates[6], coordinates[7], coordinates[8]
        else:
            mass = self._satellite_system.mass
            area = self._satellite_system.drag_area
            cd = self._satellite_system.cd
        density = self._atmosphere.density(r, instant)
        return accel_drag(r, v, density, mass, area, cd)

    def describe(self) -> str:
        return f"{super().describe()}\n  Atmosphere: {self._atmosphere!r}"
