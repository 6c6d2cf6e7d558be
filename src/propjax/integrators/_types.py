"""Type definitions for the Runge-Kutta step functions.

- :class:`StepResult`: output of every step function.
- :class:`AdaptiveConfig`: step-size control settings for the embedded
  (adaptive) methods.

Both are :class:`~typing.NamedTuple` instances, which JAX treats as
pytrees, so they pass through ``jax.jit`` and ``jax.lax`` control flow.
"""

from __future__ import annotations

from typing import NamedTuple

from jax import Array


class StepResult(NamedTuple):
    """Result of a single integrator step.

    For the fixed-step method ``error_estimate`` is 0.0, ``dt_next``
    equals ``dt_used`` and ``accepted`` is always true.

    Attributes:
        state: State vector at time ``t + dt_used``.
        dt_used: Step actually taken. For adaptive methods this may be
            smaller in magnitude than the requested ``dt``.
        error_estimate: Normalized error estimate; ``<= 1.0`` meets the
            tolerance.
        dt_next: Suggested size of the next step.
        accepted: Whether the step met the tolerance (or reached the
            minimum step) within ``max_step_attempts`` tries.
    """

    state: Array
    dt_used: Array
    error_estimate: Array
    dt_next: Array
    accepted: Array


class AdaptiveConfig(NamedTuple):
    """Configuration for adaptive step-size control.

    Attributes:
        abs_tol: Absolute error tolerance per component.
        rel_tol: Relative error tolerance per component.
        safety_factor: Multiplicative safety factor applied to step-size
            predictions.
        min_scale_factor: Minimum allowed ratio ``dt_next / dt_used``.
        max_scale_factor: Maximum allowed ratio ``dt_next / dt_used``.
        min_step: Absolute minimum step size. A step at this size is
            accepted regardless of error.
        max_step: Absolute maximum step size.
        max_step_attempts: Number of tries before a step is reported as
            not accepted.
    """

    abs_tol: float = 1e-6
    rel_tol: float = 1e-3
    safety_factor: float = 0.9
    min_scale_factor: float = 0.2
    max_scale_factor: float = 10.0
    min_step: float = 1e-12
    max_step: float = 900.0
    max_step_attempts: int = 10
