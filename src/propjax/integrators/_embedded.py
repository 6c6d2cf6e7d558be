"""Generic embedded Runge-Kutta step driven by a Butcher tableau.

Each adaptive method only supplies its coefficients; the stage evaluation
and the step-rejection loop live here.  Rejected steps are retried with a
smaller step inside ``jax.lax.while_loop`` so the whole step stays
compilable.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.integrators._adaptive import compute_error_norm, compute_next_step_size
from propjax.integrators._types import AdaptiveConfig, StepResult


class ButcherTableau(NamedTuple):
    """Coefficients of an embedded explicit Runge-Kutta pair.

    Attributes:
        c: Nodes, one per stage.
        a: Lower-triangular coupling rows for stages ``1..s-1``.
        b_high: Weights of the propagated solution.
        b_low: Weights of the embedded solution used for the error.
        error_order: Order of the error estimator.
    """

    c: tuple[float, ...]
    a: tuple[tuple[float, ...], ...]
    b_high: tuple[float, ...]
    b_low: tuple[float, ...]
    error_order: float


def _weighted_sum(weights, stages):
    total = None
    for w, k in zip(weights, stages):
        if w == 0.0:
            continue
        total = w * k if total is None else total + w * k
    return total


def embedded_rk_step(
    tableau: ButcherTableau,
    dynamics: Callable[..., Array],
    t: ArrayLike,
    state: ArrayLike,
    dt: ArrayLike,
    config: AdaptiveConfig | None = None,
    args: tuple = (),
) -> StepResult:
    """Perform one adaptive step with the pair described by ``tableau``.

    Args:
        tableau: Method coefficients.
        dynamics: Right-hand side ``f(t, x, *args) -> dx/dt``.
        t: Current time.
        state: Current state vector.
        dt: Requested step. May be negative for backward integration.
        config: Step-size control. Default :class:`AdaptiveConfig`.
        args: Extra pytree arguments forwarded to ``dynamics``.

    Returns:
        StepResult: The step result. ``accepted`` is false when the error
            was still above tolerance after ``max_step_attempts`` tries.
    """
    if config is None:
        config = AdaptiveConfig()

    dtype = get_dtype()
    t = jnp.asarray(t, dtype=dtype)
    state = jnp.asarray(state, dtype=dtype)
    dt = jnp.asarray(dt, dtype=dtype)

    def _attempt_step(h):
        stages = [dynamics(t, state, *args)]
        for c_i, a_i in zip(tableau.c[1:], tableau.a):
            increment = _weighted_sum(a_i, stages)
            stages.append(dynamics(t + c_i * h, state + h * increment, *args))

        state_high = state + h * _weighted_sum(tableau.b_high, stages)
        state_low = state + h * _weighted_sum(tableau.b_low, stages)

        error = compute_error_norm(
            state_high - state_low, state_high, state, config.abs_tol, config.rel_tol
        )
        return state_high, error

    def _next_step(error, h):
        return compute_next_step_size(
            error,
            h,
            tableau.error_order,
            config.safety_factor,
            config.min_scale_factor,
            config.max_scale_factor,
            config.min_step,
            config.max_step,
        )

    # Carry: (h_try, h_used, attempts, accepted, state_out, error_out)
    def cond_fn(carry):
        _h, _h_used, attempts, accepted, _state_out, _error_out = carry
        return (~accepted) & (attempts < config.max_step_attempts)

    def body_fn(carry):
        h, _h_used, attempts, _accepted, _state_out, _error_out = carry
        state_new, error = _attempt_step(h)

        step_accepted = (error <= 1.0) | (jnp.abs(h) <= config.min_step)
        h_next = jnp.where(step_accepted, h, _next_step(error, h))

        return (h_next, h, attempts + 1, step_accepted, state_new, error)

    init_carry = (
        dt,
        dt,
        jnp.asarray(0, dtype=jnp.int32),
        jnp.asarray(False),
        state,
        jnp.asarray(jnp.inf, dtype=dtype),
    )

    _h, h_used, _attempts, accepted, state_out, error_out = jax.lax.while_loop(
        cond_fn, body_fn, init_carry
    )

    return StepResult(
        state=state_out,
        dt_used=h_used,
        error_estimate=error_out,
        dt_next=_next_step(error_out, h_used),
        accepted=accepted,
    )
