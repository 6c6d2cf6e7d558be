"""Classic 4th-order Runge-Kutta integrator (RK4).

A fixed-step method with no error control:

.. math::

    \\begin{array}{c|cccc}
    0   &     &     &     &   \\\\
    1/2 & 1/2 &     &     &   \\\\
    1/2 &  0  & 1/2 &     &   \\\\
    1   &  0  &  0  &  1  &   \\\\
    \\hline
        & 1/6 & 1/3 & 1/3 & 1/6
    \\end{array}
"""

from __future__ import annotations

from collections.abc import Callable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.integrators._types import StepResult


def rk4_step(
    dynamics: Callable[..., Array],
    t: ArrayLike,
    state: ArrayLike,
    dt: ArrayLike,
    args: tuple = (),
) -> StepResult:
    """Perform a single RK4 step from ``t`` to ``t + dt``.

    Args:
        dynamics: Right-hand side ``f(t, x, *args) -> dx/dt``.
        t: Current time.
        state: Current state vector.
        dt: Step to take. May be negative for backward integration.
        args: Extra pytree arguments forwarded to ``dynamics``.

    Returns:
        StepResult: ``dt_used == dt_next == dt``, zero error, always accepted.

    Examples:
        ```python
        import jax.numpy as jnp
        from propjax.integrators import rk4_step
        def harmonic(t, x):
            return jnp.array([x[1], -x[0]])
        result = rk4_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.01)
        result.state  # ~[cos(0.01), -sin(0.01)]
        ```
    """
    dtype = get_dtype()
    t = jnp.asarray(t, dtype=dtype)
    state = jnp.asarray(state, dtype=dtype)
    dt = jnp.asarray(dt, dtype=dtype)

    k1 = dynamics(t, state, *args)
    k2 = dynamics(t + 0.5 * dt, state + 0.5 * dt * k1, *args)
    k3 = dynamics(t + 0.5 * dt, state + 0.5 * dt * k2, *args)
    k4 = dynamics(t + dt, state + dt * k3, *args)

    state_new = state + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)

    return StepResult(
        state=state_new,
        dt_used=dt,
        error_estimate=jnp.asarray(0.0, dtype=dtype),
        dt_next=dt,
        accepted=jnp.asarray(True),
    )
