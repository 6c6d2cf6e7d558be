"""Runge-Kutta step functions used by :class:`~propjax.NumericalSolver`.

- :func:`rk4_step` -- classic 4th-order Runge-Kutta (fixed step)
- :func:`rkf45_step` -- Runge-Kutta-Fehlberg 4(5) (adaptive step)
- :func:`cash_karp54_step` -- Cash-Karp 5(4) (adaptive step)
- :func:`dp54_step` -- Dormand-Prince 5(4) (adaptive step)

All step functions share a common interface::

    result = step_fn(dynamics, t, state, dt, args=args)

where ``dynamics(t, x, *args) -> dx`` is the ODE right-hand side and the
result is a :class:`StepResult`.
"""

from propjax.integrators._embedded import ButcherTableau, embedded_rk_step
from propjax.integrators._types import AdaptiveConfig, StepResult
from propjax.integrators.cash_karp54 import cash_karp54_step
from propjax.integrators.dp54 import dp54_step
from propjax.integrators.rk4 import rk4_step
from propjax.integrators.rkf45 import rkf45_step

__all__ = [
    "AdaptiveConfig",
    "StepResult",
    "ButcherTableau",
    "embedded_rk_step",
    "rk4_step",
    "rkf45_step",
    "cash_karp54_step",
    "dp54_step",
]
