"""Step-size control shared by the embedded Runge-Kutta methods.

1. Compute a normalized error using mixed absolute/relative tolerances.
2. Accept the step if the normalized error is <= 1.0.
3. Predict the next step size from the error and the estimator order.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype


def compute_error_norm(
    error_vec: ArrayLike,
    state_new: ArrayLike,
    state_old: ArrayLike,
    abs_tol: float,
    rel_tol: float,
) -> Array:
    """Normalized infinity-norm of the local error.

    The per-component tolerance is:

    .. math::

        \\text{tol}_i = \\text{abs\\_tol} + \\text{rel\\_tol}
            \\cdot \\max(|y^{\\text{new}}_i|, |y^{\\text{old}}_i|)

    Args:
        error_vec: Difference between the high- and low-order solutions.
        state_new: High-order solution.
        state_old: State at the beginning of the step.
        abs_tol: Absolute error tolerance.
        rel_tol: Relative error tolerance.

    Returns:
        jax.Array: Scalar normalized error. The step is accepted if <= 1.0.
    """
    dtype = get_dtype()
    error_vec = jnp.asarray(error_vec, dtype=dtype)
    state_new = jnp.asarray(state_new, dtype=dtype)
    state_old = jnp.asarray(state_old, dtype=dtype)

    scale = abs_tol + rel_tol * jnp.maximum(jnp.abs(state_new), jnp.abs(state_old))
    return jnp.max(jnp.abs(error_vec) / scale)


def compute_next_step_size(
    error: ArrayLike,
    h: ArrayLike,
    order: float,
    safety_factor: float,
    min_scale_factor: float,
    max_scale_factor: float,
    min_step: float,
    max_step: float,
) -> Array:
    """Predict the next step size from the current error.

    .. math::

        h_{\\text{next}} = |h| \\cdot S \\cdot
            \\left(\\frac{1}{\\text{error}}\\right)^{1/(p+1)}

    clamped by the scale-factor and absolute step bounds.  The sign of
    ``h`` is preserved for backward integration.

    Args:
        error: Normalized error from :func:`compute_error_norm`.
        h: Current step size (negative for backward integration).
        order: Order of the error estimator.
        safety_factor: Multiplicative safety factor.
        min_scale_factor: Minimum allowed ratio ``|h_next| / |h|``.
        max_scale_factor: Maximum allowed ratio ``|h_next| / |h|``.
        min_step: Absolute minimum step size.
        max_step: Absolute maximum step size.

    Returns:
        jax.Array: Suggested next step with the same sign as ``h``.
    """
    dtype = get_dtype()
    error = jnp.asarray(error, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    exponent = 1.0 / (order + 1.0)
    raw_scale = jnp.where(error > 0.0, jnp.power(1.0 / error, exponent), max_scale_factor)
    scale = jnp.clip(safety_factor * raw_scale, min_scale_factor, max_scale_factor)

    abs_h_next = jnp.clip(jnp.abs(h) * scale, min_step, max_step)
    return jnp.sign(h) * abs_h_next
