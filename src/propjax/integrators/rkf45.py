"""Runge-Kutta-Fehlberg 4(5) adaptive integrator (RKF45).

Six stages, propagating the 5th-order solution and using the 4th-order
one for the error estimate:

- Nodes (c): [0, 1/4, 3/8, 12/13, 1, 1/2]
- 5th-order weights: [16/135, 0, 6656/12825, 28561/56430, -9/50, 2/55]
- 4th-order weights: [25/216, 0, 1408/2565, 2197/4104, -1/5, 0]
"""

from __future__ import annotations

from collections.abc import Callable

from jax import Array
from jax.typing import ArrayLike

from propjax.integrators._embedded import ButcherTableau, embedded_rk_step
from propjax.integrators._types import AdaptiveConfig, StepResult

RKF45_TABLEAU = ButcherTableau(
    c=(0.0, 1.0 / 4.0, 3.0 / 8.0, 12.0 / 13.0, 1.0, 1.0 / 2.0),
    a=(
        (1.0 / 4.0,),
        (3.0 / 32.0, 9.0 / 32.0),
        (1932.0 / 2197.0, -7200.0 / 2197.0, 7296.0 / 2197.0),
        (439.0 / 216.0, -8.0, 3680.0 / 513.0, -845.0 / 4104.0),
        (-8.0 / 27.0, 2.0, -3544.0 / 2565.0, 1859.0 / 4104.0, -11.0 / 40.0),
    ),
    b_high=(16.0 / 135.0, 0.0, 6656.0 / 12825.0, 28561.0 / 56430.0, -9.0 / 50.0, 2.0 / 55.0),
    b_low=(25.0 / 216.0, 0.0, 1408.0 / 2565.0, 2197.0 / 4104.0, -1.0 / 5.0, 0.0),
    error_order=4.0,
)


def rkf45_step(
    dynamics: Callable[..., Array],
    t: ArrayLike,
    state: ArrayLike,
    dt: ArrayLike,
    config: AdaptiveConfig | None = None,
    args: tuple = (),
) -> StepResult:
    """Perform a single adaptive RKF45 step.

    Compatible with ``jax.jit`` and ``jax.vmap``.  Not compatible with
    reverse-mode ``jax.grad`` because of the internal ``lax.while_loop``.

    Args:
        dynamics: Right-hand side ``f(t, x, *args) -> dx/dt``.
        t: Current time.
        state: Current state vector.
        dt: Requested step. May be negative for backward integration.
        config: Step-size control. Default :class:`AdaptiveConfig`.
        args: Extra pytree arguments forwarded to ``dynamics``.

    Returns:
        StepResult: State at ``t + dt_used`` and step-control data.

    Examples:
        ```python
        import jax.numpy as jnp
        from propjax.integrators import rkf45_step
        def harmonic(t, x):
            return jnp.array([x[1], -x[0]])
        result = rkf45_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.1)
        result.state  # ~[cos(0.1), -sin(0.1)]
        ```
    """
    return embedded_rk_step(RKF45_TABLEAU, dynamics, t, state, dt, config, args)
