"""Environment collaborators consumed by the force models.

- gravity fields (:class:`GravityField` protocol, point-mass and
  spherical-harmonic providers)
- atmosphere models (:class:`AtmosphereModel` protocol, exponential and
  Harris-Priester densities)
- celestial bodies with analytical Sun and Moon ephemerides
"""

from propjax.environment.atmosphere import (
    AtmosphereModel,
    ExponentialAtmosphere,
    HarrisPriesterAtmosphere,
    density_harris_priester,
    geodetic_altitude,
)
from propjax.environment.celestial import CelestialBody, moon_position, sun_position
from propjax.environment.gravity import (
    GravityField,
    GravityModel,
    PointMassGravity,
    SphericalHarmonicGravity,
    accel_gravity_spherical_harmonics,
    accel_point_mass,
)

__all__ = [
    "GravityField",
    "PointMassGravity",
    "GravityModel",
    "SphericalHarmonicGravity",
    "accel_point_mass",
    "accel_gravity_spherical_harmonics",
    "AtmosphereModel",
    "ExponentialAtmosphere",
    "HarrisPriesterAtmosphere",
    "density_harris_priester",
    "geodetic_altitude",
    "CelestialBody",
    "sun_position",
    "moon_position",
]
