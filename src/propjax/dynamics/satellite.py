"""Physical description of the propagated spacecraft.

Configuration is static: values are plain Python floats read at trace
time, so they become constants of the compiled derivative.
"""

from __future__ import annotations

from dataclasses import dataclass

from propjax.constants import G0


@dataclass(frozen=True)
class PropulsionSystem:
    """A single thruster with constant thrust and specific impulse.

    Args:
        thrust: Thrust magnitude [N].
        specific_impulse: Specific impulse [s].

    Raises:
        ValueError: If either value is not strictly positive.
    """

    thrust: float
    specific_impulse: float

    def __post_init__(self) -> None:
        if not self.thrust > 0.0:
            raise ValueError(f"thrust must be positive, got {self.thrust}")
        if not self.specific_impulse > 0.0:
            raise ValueError(f"specific_impulse must be positive, got {self.specific_impulse}")

    @property
    def mass_flow_rate(self) -> float:
        """Propellant consumption [kg/s]."""
        return self.thrust / (self.specific_impulse * G0)

    def acceleration(self, mass):
        """Thrust acceleration magnitude [m/s^2] for a total ``mass`` [kg]."""
        return self.thrust / mass


@dataclass(frozen=True)
class SatelliteSystem:
    """Spacecraft properties used by drag and thrust models.

    Defaults represent a generic small satellite.

    Args:
        mass: Dry mass [kg]. Used as the drag mass when the propagated
            state carries no mass coordinate.
        drag_area: Wind-facing cross-sectional area [m^2].
        cd: Coefficient of drag [dimensionless].
        propulsion: Optional propulsion system.

    Raises:
        ValueError: If mass or area is not strictly positive, or ``cd`` is negative.
    """

    mass: float = 1000.0
    drag_area: float = 10.0
    cd: float = 2.2
    propulsion: PropulsionSystem | None = None

    def __post_init__(self) -> None:
        if not self.mass > 0.0:
            raise ValueError(f"mass must be positive, got {self.mass}")
        if not self.drag_area > 0.0:
            raise ValueError(f"drag_area must be positive, got {self.drag_area}")
        if self.cd < 0.0:
            raise ValueError(f"cd must be non-negative, got {self.cd}")

    @property
    def dry_mass(self) -> float:
        return self.mass

    def has_propulsion(self) -> bool:
        return self.propulsion is not None
