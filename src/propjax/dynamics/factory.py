"""Standard dynamics list factory.

Composes the individual force models into the list consumed by
:class:`~propjax.Propagator`.  Toggles in the configuration are plain
Python ``if`` branches, so disabled models never enter the traced
derivative.
"""

from __future__ import annotations

import logging

from propjax.dynamics.atmospheric_drag import AtmosphericDrag
from propjax.dynamics.central_body_gravity import CentralBodyGravity
from propjax.dynamics.config import ForceModelConfig
from propjax.dynamics.dynamics import Dynamics
from propjax.dynamics.position_derivative import PositionDerivative
from propjax.dynamics.third_body_gravity import ThirdBodyGravity
from propjax.environment import (
    CelestialBody,
    ExponentialAtmosphere,
    HarrisPriesterAtmosphere,
    PointMassGravity,
    SphericalHarmonicGravity,
)

logger = logging.getLogger(__name__)


def dynamics_from_config(config: ForceModelConfig | None = None) -> list[Dynamics]:
    """Build the dynamics list described by *config*.

    The list always starts with :class:`PositionDerivative` and
    :class:`CentralBodyGravity`, followed by the enabled perturbations.

    Args:
        config: Force model configuration. Defaults to point-mass two-body
            gravity (``ForceModelConfig.two_body()``).

    Returns:
        list[Dynamics]: Models ready for :class:`~propjax.Propagator`.

    Examples:
        ```python
        from propjax.dynamics import ForceModelConfig, dynamics_from_config
        dynamics = dynamics_from_config(ForceModelConfig.leo_default())
        [d.name for d in dynamics]
        ```
    """
    if config is None:
        config = ForceModelConfig.two_body()

    if config.gravity_type == "spherical_harmonics":
        gravity_field = SphericalHarmonicGravity(
            config.gravity_model, config.gravity_degree, config.gravity_order
        )
    else:
        gravity_field = PointMassGravity()

    dynamics: list[Dynamics] = [PositionDerivative(), CentralBodyGravity(gravity_field)]

    if config.third_body_sun:
        dynamics.append(ThirdBodyGravity(CelestialBody.sun()))
    if config.third_body_moon:
        dynamics.append(ThirdBodyGravity(CelestialBody.moon()))

    if config.drag:
        if config.density_model == "exponential":
            atmosphere = ExponentialAtmosphere()
        else:
            atmosphere = HarrisPriesterAtmosphere()
        dynamics.append(AtmosphericDrag(atmosphere, config.satellite))

    logger.debug("Built dynamics list: %s", [d.name for d in dynamics])
    return dynamics
