"""Trajectory models and orbital bookkeeping.

- :class:`Propagated`: propagator-backed trajectory with a state cache
- :class:`Orbit`: revolution numbering and pass segmentation
- :class:`Pass` / :class:`PassType`: one revolution between ascending nodes
"""

from propjax.orbit.orbit import Orbit, TrajectoryModel, offset_revolution_number
from propjax.orbit.orbit_pass import Pass, PassType
from propjax.orbit.propagated import Propagated

__all__ = [
    "TrajectoryModel",
    "Propagated",
    "Orbit",
    "Pass",
    "PassType",
    "offset_revolution_number",
]
