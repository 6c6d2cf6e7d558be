"""Force and effect models contributing to the state derivative.

Every model is a :class:`Dynamics` declaring the coordinate subsets it
reads and writes:

- :class:`PositionDerivative`: position rate equals velocity
- :class:`CentralBodyGravity`: point-mass or spherical-harmonic gravity
- :class:`ThirdBodyGravity`: Sun/Moon (or any body) perturbation
- :class:`AtmosphericDrag`: drag in a co-rotating atmosphere
- :class:`Thruster`: continuous thrust with mass depletion

:func:`dynamics_from_config` builds the standard list from a
:class:`ForceModelConfig`.
"""

from propjax.dynamics.atmospheric_drag import AtmosphericDrag, accel_drag
from propjax.dynamics.central_body_gravity import CentralBodyGravity
from propjax.dynamics.config import ForceModelConfig
from propjax.dynamics.dynamics import Dynamics, total_derivative
from propjax.dynamics.factory import dynamics_from_config
from propjax.dynamics.guidance import ConstantThrust, GuidanceLaw
from propjax.dynamics.position_derivative import PositionDerivative
from propjax.dynamics.satellite import PropulsionSystem, SatelliteSystem
from propjax.dynamics.third_body_gravity import ThirdBodyGravity
from propjax.dynamics.thruster import Thruster

__all__ = [
    "Dynamics",
    "total_derivative",
    "PositionDerivative",
    "CentralBodyGravity",
    "ThirdBodyGravity",
    "AtmosphericDrag",
    "accel_drag",
    "Thruster",
    "GuidanceLaw",
    "ConstantThrust",
    "SatelliteSystem",
    "PropulsionSystem",
    "ForceModelConfig",
    "dynamics_from_config",
]
