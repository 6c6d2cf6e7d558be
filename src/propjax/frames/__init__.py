"""Reference frames, rigid transforms and local orbital frames.

Provides the frame tree used by :meth:`propjax.State.in_frame`:

- :class:`Frame` with the built-in ``GCRF`` (inertial root) and ``ITRF``
  (Earth-fixed) frames
- :class:`Transform`, the rigid position/velocity transform between frames
- GCRF/ITRF helpers driven by Greenwich Mean Sidereal Time
- local orbital frame conventions (VNC, QSW/RTN, TNW, LVLH)
"""

from propjax.frames.earth import (
    earth_angular_velocity,
    earth_rotation,
    state_gcrf_to_itrf,
    state_itrf_to_gcrf,
    transform_gcrf_to_itrf,
)
from propjax.frames.frame import DynamicProvider, Frame, FrameProvider, StaticProvider
from propjax.frames.local_orbital_frame import (
    LocalOrbitalFrameDirection,
    LocalOrbitalFrameType,
    rotation_local_to_frame,
)
from propjax.frames.transform import Transform

__all__ = [
    "Frame",
    "FrameProvider",
    "StaticProvider",
    "DynamicProvider",
    "Transform",
    "earth_rotation",
    "earth_angular_velocity",
    "transform_gcrf_to_itrf",
    "state_gcrf_to_itrf",
    "state_itrf_to_gcrf",
    "LocalOrbitalFrameType",
    "LocalOrbitalFrameDirection",
    "rotation_local_to_frame",
]
