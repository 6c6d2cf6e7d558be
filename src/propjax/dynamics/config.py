"""Configuration dataclass selecting the standard force models.

Used by :func:`~propjax.dynamics.factory.dynamics_from_config`.
Configuration is static: every toggle is resolved when the dynamics list
is built, so the compiled derivative contains no runtime branching on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from propjax.dynamics.satellite import SatelliteSystem
from propjax.environment import GravityModel


@dataclass(frozen=True)
class ForceModelConfig:
    """Configuration for the standard orbit dynamics list.

    Args:
        gravity_type: ``"point_mass"`` or ``"spherical_harmonics"``.
        gravity_model: A :class:`~propjax.environment.GravityModel`.
            Required when *gravity_type* is ``"spherical_harmonics"``.
        gravity_degree: Maximum degree for spherical harmonic evaluation.
        gravity_order: Maximum order for spherical harmonic evaluation.
        drag: Enable atmospheric drag.
        density_model: ``"harris_priester"`` or ``"exponential"``. Only
            used when *drag* is ``True``.
        third_body_sun: Enable the Sun's gravitational perturbation.
        third_body_moon: Enable the Moon's gravitational perturbation.
        satellite: Spacecraft physical properties.

    Raises:
        ValueError: On an unknown model name, or spherical harmonics
            without a gravity model.

    Examples:
        ```python
        from propjax.dynamics import ForceModelConfig
        config = ForceModelConfig()  # point-mass only
        config.gravity_type
        ```
    """

    gravity_type: str = "point_mass"
    gravity_model: GravityModel | None = None
    gravity_degree: int = 2
    gravity_order: int = 0

    drag: bool = False
    density_model: str = "harris_priester"
    third_body_sun: bool = False
    third_body_moon: bool = False

    satellite: SatelliteSystem = field(default_factory=SatelliteSystem)

    def __post_init__(self) -> None:
        if self.gravity_type not in ("point_mass", "spherical_harmonics"):
            raise ValueError(
                f"gravity_type must be 'point_mass' or 'spherical_harmonics', "
                f"got '{self.gravity_type}'"
            )
        if self.gravity_type == "spherical_harmonics" and self.gravity_model is None:
            raise ValueError("gravity_model is required for spherical_harmonics gravity")
        if self.density_model not in ("harris_priester", "exponential"):
            raise ValueError(
                f"density_model must be 'harris_priester' or 'exponential', "
                f"got '{self.density_model}'"
            )

    @staticmethod
    def two_body() -> ForceModelConfig:
        """Preset: point-mass gravity only (Keplerian two-body)."""
        return ForceModelConfig()

    @staticmethod
    def leo_default(
        gravity_model: GravityModel | None = None,
        density_model: str = "harris_priester",
        satellite: SatelliteSystem | None = None,
    ) -> ForceModelConfig:
        """Preset: typical LEO force model.

        Zonal gravity, atmospheric drag and Sun/Moon third-body
        perturbations.  Without *gravity_model* the Earth J2 field is used.

        Args:
            gravity_model: Optional gravity model.
            density_model: ``"harris_priester"`` or ``"exponential"``.
            satellite: Spacecraft properties. Default: :class:`SatelliteSystem`.

        Returns:
            ForceModelConfig: LEO-appropriate configuration.
        """
        if gravity_model is None:
            gravity_model = GravityModel.earth_j2()
        return ForceModelConfig(
            gravity_type="spherical_harmonics",
            gravity_model=gravity_model,
            gravity_degree=gravity_model.n_max,
            gravity_order=min(gravity_model.m_max, gravity_model.n_max),
            drag=True,
            density_model=density_model,
            third_body_sun=True,
            third_body_moon=True,
            satellite=SatelliteSystem() if satellite is None else satellite,
        )
