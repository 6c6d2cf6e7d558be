"""Gravity field providers: point-mass and spherical harmonics.

A gravity field is any object satisfying the :class:`GravityField`
protocol: it exposes ``gm`` and returns the acceleration at a GCRF
position and instant.  Two providers are built in:

- :class:`PointMassGravity`, the two-body ``-gm r / |r|^3`` field.
- :class:`SphericalHarmonicGravity`, evaluating a :class:`GravityModel`
  of Stokes coefficients up to a configurable degree and order in the
  Earth-fixed frame.

Loading coefficient tables from files is left to the caller; a
:class:`GravityModel` is built from an in-memory coefficient matrix or
from a few zonal terms.

All inputs and outputs use SI base units (metres, metres/second squared).

References:
    1. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, 2012, p. 56-68.
"""

from __future__ import annotations

import math
from typing import Mapping, Protocol, runtime_checkable

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.constants import GM_EARTH, J2_EARTH, R_EARTH
from propjax.frames.earth import earth_rotation
from propjax.instant import Instant


@runtime_checkable
class GravityField(Protocol):
    """Acceleration provider for a central body's gravity field."""

    gm: float

    def acceleration(self, position: ArrayLike, instant: Instant) -> Array:
        ...


def accel_point_mass(
    r_object: ArrayLike,
    r_body: ArrayLike,
    gm: float,
) -> Array:
    """Acceleration due to point-mass gravity.

    Computes the gravitational acceleration on *r_object* due to a body
    at *r_body*.  When the body is at the origin the two-body expression
    ``-gm * r / |r|^3`` is used; otherwise the indirect (third-body) form
    ``-gm * (d/|d|^3 + r_body/|r_body|^3)`` with ``d = r_object - r_body``,
    which removes the acceleration the body also exerts on the origin.

    Args:
        r_object: Position of the object [m], shape ``(3,)``.
        r_body: Position of the attracting body [m], shape ``(3,)``.
        gm: Gravitational parameter of the attracting body [m^3/s^2].

    Returns:
        Acceleration vector [m/s^2], shape ``(3,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from propjax.constants import R_EARTH, GM_EARTH
        from propjax.environment import accel_point_mass
        a = accel_point_mass(jnp.array([R_EARTH, 0.0, 0.0]), jnp.zeros(3), GM_EARTH)
        ```
    """
    _float = get_dtype()
    r_obj = jnp.asarray(r_object, dtype=_float)[:3]
    r_cb = jnp.asarray(r_body, dtype=_float)

    d = r_obj - r_cb
    d_norm = jnp.linalg.norm(d)
    r_cb_norm = jnp.linalg.norm(r_cb)

    # Guard the division so the unused branch stays finite under jit
    safe_r_cb_norm = jnp.where(r_cb_norm > 0.0, r_cb_norm, 1.0)
    a_third = -gm * (d / d_norm**3 + r_cb / safe_r_cb_norm**3)
    a_central = -gm * d / d_norm**3

    return jnp.where(r_cb_norm > 0.0, a_third, a_central)


class PointMassGravity:
    """Spherical (point-mass) gravity field of the central body.

    Args:
        gm: Gravitational parameter [m^3/s^2]. Default: ``GM_EARTH``.
    """

    def __init__(self, gm: float = GM_EARTH) -> None:
        if gm <= 0.0:
            raise ValueError(f"Gravitational parameter must be positive, got {gm}.")
        self.gm = float(gm)

    def acceleration(self, position: ArrayLike, instant: Instant) -> Array:
        return accel_point_mass(position, jnp.zeros(3, dtype=get_dtype()), self.gm)

    def __eq__(self, other):
        if not isinstance(other, PointMassGravity):
            return NotImplemented
        return self.gm == other.gm

    def __hash__(self):
        return hash(("PointMassGravity", self.gm))

    def __repr__(self):
        return f"PointMassGravity(gm={self.gm:.6e})"


class GravityModel:
    """Spherical harmonic gravity field coefficients.

    Stores Stokes coefficients (C_nm, S_nm) following the Montenbruck &
    Gill layout:

    - ``data[n, m]`` stores the C coefficient for degree *n*, order *m*
    - ``data[m-1, n]`` stores the S coefficient for *m* > 0

    Args:
        model_name: Human-readable name of the gravity model.
        gm: Gravitational parameter [m^3/s^2].
        radius: Reference radius [m].
        n_max: Maximum degree of the model.
        m_max: Maximum order of the model.
        data: Coefficient matrix, shape ``(n_max+1, m_max+1)``.
        normalization: ``"fully_normalized"`` or ``"unnormalized"``.

    Raises:
        ValueError: If the matrix shape does not match the degree and order.
    """

    def __init__(
        self,
        model_name: str,
        gm: float,
        radius: float,
        n_max: int,
        m_max: int,
        data: np.ndarray,
        normalization: str = "fully_normalized",
    ):
        data = np.asarray(data, dtype=float)
        if data.shape[0] < n_max + 1 or data.shape[1] < m_max + 1:
            raise ValueError(
                f"Coefficient matrix of shape {data.shape} is too small for "
                f"degree {n_max} and order {m_max}."
            )
        if normalization not in ("fully_normalized", "unnormalized"):
            raise ValueError(f"Unknown normalization: {normalization!r}.")
        self.model_name = model_name
        self.gm = float(gm)
        self.radius = float(radius)
        self.n_max = int(n_max)
        self.m_max = int(m_max)
        self.data = data
        self.normalization = normalization

    @classmethod
    def from_zonal_terms(
        cls,
        zonal_terms: Mapping[int, float],
        gm: float = GM_EARTH,
        radius: float = R_EARTH,
        model_name: str = "Zonal",
    ) -> GravityModel:
        """Build an unnormalized model from zonal harmonics ``{n: J_n}``.

        Uses ``C_n0 = -J_n``; every other coefficient is zero except
        ``C_00 = 1``.

        Examples:
            ```python
            from propjax.constants import J2_EARTH
            from propjax.environment import GravityModel
            model = GravityModel.from_zonal_terms({2: J2_EARTH})
            ```
        """
        n_max = max(zonal_terms) if zonal_terms else 0
        data = np.zeros((n_max + 1, n_max + 1))
        data[0, 0] = 1.0
        for n, j_n in zonal_terms.items():
            if n < 2:
                raise ValueError(f"Zonal terms start at degree 2, got degree {n}.")
            data[n, 0] = -float(j_n)
        return cls(model_name, gm, radius, n_max, n_max, data, normalization="unnormalized")

    @classmethod
    def earth_j2(cls) -> GravityModel:
        """Earth ``J2``-only model."""
        return cls.from_zonal_terms({2: J2_EARTH}, model_name="EarthJ2")

    @property
    def is_normalized(self) -> bool:
        return self.normalization == "fully_normalized"

    def get(self, n: int, m: int) -> tuple[float, float]:
        """Retrieve the (C_nm, S_nm) coefficients for degree *n*, order *m*.

        Raises:
            ValueError: If (n, m) exceeds the model bounds.
        """
        if n > self.n_max or m > self.m_max:
            raise ValueError(
                f"Requested (n={n}, m={m}) exceeds model bounds "
                f"(n_max={self.n_max}, m_max={self.m_max})."
            )
        if m == 0:
            return float(self.data[n, m]), 0.0
        return float(self.data[n, m]), float(self.data[m - 1, n])

    def __repr__(self) -> str:
        return (
            f"GravityModel(name={self.model_name!r}, "
            f"n_max={self.n_max}, m_max={self.m_max}, "
            f"gm={self.gm:.6e}, radius={self.radius:.1f})"
        )


def _factorial_product(n: int, m: int) -> float:
    """Compute (n-m)!/(n+m)! without full factorials."""
    p = 1.0
    for i in range(n - m + 1, n + m + 1):
        p /= i
    return p


def _compute_spherical_harmonics(
    r_bf: Array,
    CS: np.ndarray,
    n_max: int,
    m_max: int,
    r_ref: float,
    gm: float,
    is_normalized: bool,
) -> Array:
    """Core V/W recursion for spherical harmonic gravity.

    Implements the algorithm from Montenbruck & Gill (2012), p. 56-68,
    with Python loops unrolled at trace time.  ``CS`` stays a host-side
    numpy array, so the coefficients become compile-time constants.

    Args:
        r_bf: Position in the body-fixed frame [m], shape ``(3,)``.
        CS: Coefficient matrix, shape ``(N+1, M+1)``.
        n_max: Maximum degree for evaluation.
        m_max: Maximum order for evaluation.
        r_ref: Reference radius [m].
        gm: Gravitational parameter [m^3/s^2].
        is_normalized: Whether coefficients are fully normalized.

    Returns:
        Acceleration in the body-fixed frame [m/s^2], shape ``(3,)``.
    """
    r_sqr = jnp.dot(r_bf, r_bf)
    rho = r_ref * r_ref / r_sqr

    x0 = r_ref * r_bf[0] / r_sqr
    y0 = r_ref * r_bf[1] / r_sqr
    z0 = r_ref * r_bf[2] / r_sqr

    size = n_max + 2
    V = jnp.zeros((size, size), dtype=r_bf.dtype)
    W = jnp.zeros((size, size), dtype=r_bf.dtype)

    # Zonal terms V(n,0); W(n,0) = 0
    V = V.at[0, 0].set(r_ref / jnp.sqrt(r_sqr))
    V = V.at[1, 0].set(z0 * V[0, 0])

    for n in range(2, n_max + 2):
        V = V.at[n, 0].set(
            ((2.0 * n - 1.0) * z0 * V[n - 1, 0] - (n - 1.0) * rho * V[n - 2, 0]) / n
        )

    # Tesseral and sectorial terms
    for m in range(1, m_max + 2):
        V = V.at[m, m].set((2.0 * m - 1.0) * (x0 * V[m - 1, m - 1] - y0 * W[m - 1, m - 1]))
        W = W.at[m, m].set((2.0 * m - 1.0) * (x0 * W[m - 1, m - 1] + y0 * V[m - 1, m - 1]))

        if m <= n_max:
            V = V.at[m + 1, m].set((2.0 * m + 1.0) * z0 * V[m, m])
            W = W.at[m + 1, m].set((2.0 * m + 1.0) * z0 * W[m, m])

        for n in range(m + 2, n_max + 2):
            V = V.at[n, m].set(
                ((2.0 * n - 1.0) * z0 * V[n - 1, m] - (n + m - 1.0) * rho * V[n - 2, m]) / (n - m)
            )
            W = W.at[n, m].set(
                ((2.0 * n - 1.0) * z0 * W[n - 1, m] - (n + m - 1.0) * rho * W[n - 2, m]) / (n - m)
            )

    ax = jnp.zeros((), dtype=r_bf.dtype)
    ay = ax
    az = ax

    for m in range(m_max + 1):
        for n in range(m, n_max + 1):
            if m == 0:
                N = math.sqrt(2.0 * n + 1.0) if is_normalized else 1.0
                C = N * float(CS[n, 0])

                ax = ax - C * V[n + 1, 1]
                ay = ay - C * W[n + 1, 1]
                az = az - (n + 1.0) * C * V[n + 1, 0]
            else:
                N = math.sqrt(2.0 * (2.0 * n + 1.0) * _factorial_product(n, m)) if is_normalized else 1.0
                C = N * float(CS[n, m])
                S = N * float(CS[m - 1, n])

                fac = 0.5 * (n - m + 1.0) * (n - m + 2.0)
                ax = ax + (0.5 * (-C * V[n + 1, m + 1] - S * W[n + 1, m + 1])
                           + fac * (C * V[n + 1, m - 1] + S * W[n + 1, m - 1]))
                ay = ay + (0.5 * (-C * W[n + 1, m + 1] + S * V[n + 1, m + 1])
                           + fac * (-C * W[n + 1, m - 1] + S * V[n + 1, m - 1]))
                az = az + (n - m + 1.0) * (-C * V[n + 1, m] - S * W[n + 1, m])

    scale = gm / (r_ref * r_ref)
    return scale * jnp.array([ax, ay, az])


def accel_gravity_spherical_harmonics(
    r_gcrf: ArrayLike,
    R_gcrf_to_itrf: ArrayLike,
    gravity_model: GravityModel,
    n_max: int,
    m_max: int,
) -> Array:
    """Acceleration from a spherical harmonic gravity field expansion.

    The position is rotated into the body-fixed frame, the acceleration is
    evaluated there and rotated back.

    Args:
        r_gcrf: Position in GCRF [m], shape ``(3,)``.
        R_gcrf_to_itrf: Rotation from GCRF to the body-fixed frame.
        gravity_model: Stokes coefficients.
        n_max: Maximum degree for evaluation.
        m_max: Maximum order for evaluation.

    Returns:
        Acceleration in GCRF [m/s^2], shape ``(3,)``.
    """
    _float = get_dtype()
    r = jnp.asarray(r_gcrf, dtype=_float)[:3]
    R = jnp.asarray(R_gcrf_to_itrf, dtype=_float)

    a_bf = _compute_spherical_harmonics(
        R @ r, gravity_model.data, n_max, m_max,
        gravity_model.radius, gravity_model.gm, gravity_model.is_normalized,
    )
    return R.T @ a_bf


class SphericalHarmonicGravity:
    """Spherical harmonic gravity field of the Earth.

    Args:
        model: Stokes coefficients.
        degree: Maximum evaluated degree (``<= model.n_max``).
        order: Maximum evaluated order (``<= degree`` and ``<= model.m_max``).

    Raises:
        ValueError: If degree or order exceed the model bounds.

    Examples:
        ```python
        from propjax.environment import GravityModel, SphericalHarmonicGravity
        field = SphericalHarmonicGravity(GravityModel.earth_j2(), degree=2, order=0)
        ```
    """

    def __init__(self, model: GravityModel, degree: int, order: int) -> None:
        if order > degree:
            raise ValueError(f"Maximum order (m={order}) cannot exceed maximum degree (n={degree}).")
        if degree > model.n_max or order > model.m_max:
            raise ValueError(
                f"Requested degree/order ({degree}, {order}) exceeds model bounds "
                f"({model.n_max}, {model.m_max})."
            )
        self.model = model
        self.degree = int(degree)
        self.order = int(order)
        self.gm = model.gm

    def acceleration(self, position: ArrayLike, instant: Instant) -> Array:
        return accel_gravity_spherical_harmonics(
            position, earth_rotation(instant), self.model, self.degree, self.order
        )

    def __repr__(self):
        return f"SphericalHarmonicGravity(model={self.model.model_name!r}, degree={self.degree}, order={self.order})"
