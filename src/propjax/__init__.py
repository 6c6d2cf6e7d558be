"""
propjax is a satellite trajectory propagation library implemented in JAX.
"""

from .constants import (
    DEG2RAD,
    RAD2DEG,
    JD_MJD_OFFSET,
    JD_J2000,
    SECONDS_PER_DAY,
    G0,
    AU,
    R_EARTH,
    WGS84_a,
    WGS84_f,
    GM_EARTH,
    J2_EARTH,
    OMEGA_EARTH,
    GM_SUN,
    GM_MOON
)

from .rotations import (
    Rx,
    Ry,
    Rz
)

from .config import set_dtype, get_dtype, get_instant_eq_tolerance
from .instant import Instant

from .errors import (
    PropagationError,
    DuplicateSubsetError,
    UnknownSubsetError,
    IncompatibleLayoutError,
    ContradictoryStateError,
    FrameMismatchError,
    UndefinedOperandError,
    UnsortedInputError,
    NonConvergentError,
)

from .frames import (
    Frame,
    Transform,
    LocalOrbitalFrameType,
    LocalOrbitalFrameDirection,
)

from .state import (
    CoordinateSubset,
    CartesianPosition,
    CartesianVelocity,
    AttitudeQuaternion,
    AngularVelocity,
    CoordinateBroker,
    State,
    StateBuilder,
    Position,
    Velocity,
)

from .environment import (
    CelestialBody,
    GravityModel,
    PointMassGravity,
    SphericalHarmonicGravity,
    ExponentialAtmosphere,
    HarrisPriesterAtmosphere,
)

from .dynamics import (
    Dynamics,
    PositionDerivative,
    CentralBodyGravity,
    ThirdBodyGravity,
    AtmosphericDrag,
    Thruster,
    ConstantThrust,
    SatelliteSystem,
    PropulsionSystem,
    ForceModelConfig,
    dynamics_from_config,
)

from .integrators import (
    StepResult,
    AdaptiveConfig,
    rk4_step,
    rkf45_step,
    cash_karp54_step,
    dp54_step,
)

from .numerical_solver import NumericalSolver, StepperType, LogType
from .propagator import Propagator

from .orbit import (
    Propagated,
    Orbit,
    Pass,
    PassType,
)

__all__ = [
    # Constants
    "DEG2RAD",
    "RAD2DEG",
    "JD_MJD_OFFSET",
    "JD_J2000",
    "SECONDS_PER_DAY",
    "G0",
    "AU",
    "R_EARTH",
    "WGS84_a",
    "WGS84_f",
    "GM_EARTH",
    "J2_EARTH",
    "OMEGA_EARTH",
    "GM_SUN",
    "GM_MOON",
    # Rotations
    "Rx",
    "Ry",
    "Rz",
    # Config
    "set_dtype",
    "get_dtype",
    "get_instant_eq_tolerance",
    # Time
    "Instant",
    # Errors
    "PropagationError",
    "DuplicateSubsetError",
    "UnknownSubsetError",
    "IncompatibleLayoutError",
    "ContradictoryStateError",
    "FrameMismatchError",
    "UndefinedOperandError",
    "UnsortedInputError",
    "NonConvergentError",
    # Frames
    "Frame",
    "Transform",
    "LocalOrbitalFrameType",
    "LocalOrbitalFrameDirection",
    # State
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
    # Environment
    "CelestialBody",
    "GravityModel",
    "PointMassGravity",
    "SphericalHarmonicGravity",
    "ExponentialAtmosphere",
    "HarrisPriesterAtmosphere",
    # Dynamics
    "Dynamics",
    "PositionDerivative",
    "CentralBodyGravity",
    "ThirdBodyGravity",
    "AtmosphericDrag",
    "Thruster",
    "ConstantThrust",
    "SatelliteSystem",
    "PropulsionSystem",
    "ForceModelConfig",
    "dynamics_from_config",
    # Integrators
    "StepResult",
    "AdaptiveConfig",
    "rk4_step",
    "rkf45_step",
    "cash_karp54_step",
    "dp54_step",
    # Propagation
    "NumericalSolver",
    "StepperType",
    "LogType",
    "Propagator",
    # Orbit
    "Propagated",
    "Orbit",
    "Pass",
    "PassType",
]
