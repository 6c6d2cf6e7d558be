"""Cash-Karp 5(4) adaptive integrator.

Six stages, propagating the 5th-order solution:

- Nodes (c): [0, 1/5, 3/10, 3/5, 1, 7/8]
- 5th-order weights: [37/378, 0, 250/621, 125/594, 0, 512/1771]
- 4th-order weights: [2825/27648, 0, 18575/48384, 13525/55296, 277/14336, 1/4]
"""

from __future__ import annotations

from collections.abc import Callable

from jax import Array
from jax.typing import ArrayLike

from propjax.integrators._embedded import ButcherTableau, embedded_rk_step
from propjax.integrators._types import AdaptiveConfig, StepResult

CASH_KARP54_TABLEAU = ButcherTableau(
    c=(0.0, 1.0 / 5.0, 3.0 / 10.0, 3.0 / 5.0, 1.0, 7.0 / 8.0),
    a=(
        (1.0 / 5.0,),
        (3.0 / 40.0, 9.0 / 40.0),
        (3.0 / 10.0, -9.0 / 10.0, 6.0 / 5.0),
        (-11.0 / 54.0, 5.0 / 2.0, -70.0 / 27.0, 35.0 / 27.0),
        (
            1631.0 / 55296.0,
            175.0 / 512.0,
            575.0 / 13824.0,
            44275.0 / 110592.0,
            253.0 / 4096.0,
        ),
    ),
    b_high=(37.0 / 378.0, 0.0, 250.0 / 621.0, 125.0 / 594.0, 0.0, 512.0 / 1771.0),
    b_low=(
        2825.0 / 27648.0,
        0.0,
        18575.0 / 48384.0,
        13525.0 / 55296.0,
        277.0 / 14336.0,
        1.0 / 4.0,
    ),
    error_order=4.0,
)


def cash_karp54_step(
    dynamics: Callable[..., Array],
    t: ArrayLike,
    state: ArrayLike,
    dt: ArrayLike,
    config: AdaptiveConfig | None = None,
    args: tuple = (),
) -> StepResult:
    """Perform a single adaptive Cash-Karp 5(4) step.

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
    return embedded_rk_step(CASH_KARP54_TABLEAU, dynamics, t, state, dt, config, args)
