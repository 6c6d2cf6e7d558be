"""Dormand-Prince 5(4) adaptive integrator (DP54).

Seven stages, propagating the 5th-order solution.  The last stage is
evaluated at the new state (First-Same-As-Last) but is not cached between
steps, which keeps the step purely functional.

- Nodes (c): [0, 1/5, 3/10, 4/5, 8/9, 1, 1]
- 5th-order weights: [35/384, 0, 500/1113, 125/192, -2187/6784, 11/84, 0]
- 4th-order weights: [5179/57600, 0, 7571/16695, 393/640, -92097/339200,
  187/2100, 1/40]
"""

from __future__ import annotations

from collections.abc import Callable

from jax import Array
from jax.typing import ArrayLike

from propjax.integrators._embedded import ButcherTableau, embedded_rk_step
from propjax.integrators._types import AdaptiveConfig, StepResult

_B_HIGH = (35.0 / 384.0, 0.0, 500.0 / 1113.0, 125.0 / 192.0, -2187.0 / 6784.0, 11.0 / 84.0)

DP54_TABLEAU = ButcherTableau(
    c=(0.0, 1.0 / 5.0, 3.0 / 10.0, 4.0 / 5.0, 8.0 / 9.0, 1.0, 1.0),
    a=(
        (1.0 / 5.0,),
        (3.0 / 40.0, 9.0 / 40.0),
        (44.0 / 45.0, -56.0 / 15.0, 32.0 / 9.0),
        (19372.0 / 6561.0, -25360.0 / 2187.0, 64448.0 / 6561.0, -212.0 / 729.0),
        (9017.0 / 3168.0, -355.0 / 33.0, 46732.0 / 5247.0, 49.0 / 176.0, -5103.0 / 18656.0),
        _B_HIGH,
    ),
    b_high=_B_HIGH + (0.0,),
    b_low=(
        5179.0 / 57600.0,
        0.0,
        7571.0 / 16695.0,
        393.0 / 640.0,
        -92097.0 / 339200.0,
        187.0 / 2100.0,
        1.0 / 40.0,
    ),
    error_order=4.0,
)


def dp54_step(
    dynamics: Callable[..., Array],
    t: ArrayLike,
    state: ArrayLike,
    dt: ArrayLike,
    config: AdaptiveConfig | None = None,
    args: tuple = (),
) -> StepResult:
    """Perform a single adaptive Dormand-Prince 5(4) step.

    Args:
        dynamics: Right-hand side ``f(t, x, *args) -> dx/dt``.
        t: Current time.
        state: Current state vector.
        dt: Requested step. May be negative for backward integration.
        config: Step-size control. Default :class:`AdaptiveConfig`.
        args: Extra pytree arguments forwarded to ``dynamics``.

    Returns:
        StepResult: State at ``t + dt_used`` and step-control data.
    """
    return embedded_rk_step(DP54_TABLEAU, dynamics, t, state, dt, config, args)
