"""Numerical ODE solver driving the Runge-Kutta step functions.

:class:`NumericalSolver` integrates ``dx/dt = system(t, x, *args)`` from
``t0`` to ``t1`` in either direction.  Each step is a compiled
(``jax.jit``) call of one of the :mod:`propjax.integrators` step
functions; the outer loop runs in Python so it can clamp the last step
onto ``t1`` exactly, stop on non-convergence and report progress.

One compiled step is cached per system function, so repeated
integrations of the same system reuse the compiled code.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Sequence

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.config import get_dtype
from propjax.errors import NonConvergentError, UnsortedInputError
from propjax.integrators import (
    AdaptiveConfig,
    cash_karp54_step,
    dp54_step,
    rk4_step,
    rkf45_step,
)

logger = logging.getLogger(__name__)


class StepperType(enum.Enum):
    """Runge-Kutta scheme used by :class:`NumericalSolver`."""

    RUNGE_KUTTA_4 = "RungeKutta4"
    RUNGE_KUTTA_FEHLBERG_45 = "RungeKuttaFehlberg45"
    RUNGE_KUTTA_CASH_KARP_54 = "RungeKuttaCashKarp54"
    RUNGE_KUTTA_DOPRI_5 = "RungeKuttaDopri5"

    @property
    def is_adaptive(self) -> bool:
        return self is not StepperType.RUNGE_KUTTA_4

    def __str__(self):
        return self.value


class LogType(enum.Enum):
    """Verbosity of the solver's debug logging."""

    NO_LOG = "NoLog"
    LOG_CONSTANT = "LogConstant"
    LOG_ADAPTIVE = "LogAdaptive"

    def __str__(self):
        return self.value


_ADAPTIVE_STEPS = {
    StepperType.RUNGE_KUTTA_FEHLBERG_45: rkf45_step,
    StepperType.RUNGE_KUTTA_CASH_KARP_54: cash_karp54_step,
    StepperType.RUNGE_KUTTA_DOPRI_5: dp54_step,
}


class NumericalSolver:
    """Fixed or adaptive Runge-Kutta integrator.

    Args:
        log_type: Logging verbosity.
        stepper_type: Runge-Kutta scheme.
        time_step: Nominal (fixed) or initial (adaptive) step size [s].
        relative_tolerance: Relative error tolerance of adaptive steppers.
        absolute_tolerance: Absolute error tolerance of adaptive steppers.
        maximum_steps: Maximum number of sub-steps per integration span.
        max_step_attempts: Tries per adaptive step before giving up.
        maximum_time_step: Upper bound on adaptive step growth [s].

    Raises:
        ValueError: If a step, tolerance or count is not strictly positive.

    Examples:
        ```python
        import jax.numpy as jnp
        from propjax import NumericalSolver
        solver = NumericalSolver.default()
        x1 = solver.integrate_time(jnp.array([1.0, 0.0]), 0.0, 1.0,
                                   lambda t, x: jnp.array([x[1], -x[0]]))
        ```
    """

    def __init__(
        self,
        log_type: LogType = LogType.NO_LOG,
        stepper_type: StepperType = StepperType.RUNGE_KUTTA_DOPRI_5,
        time_step: float = 5.0,
        relative_tolerance: float = 1e-12,
        absolute_tolerance: float = 1e-12,
        maximum_steps: int = 1_000_000,
        max_step_attempts: int = 50,
        maximum_time_step: float = 900.0,
    ) -> None:
        if not time_step > 0.0:
            raise ValueError(f"time_step must be positive, got {time_step}")
        if not relative_tolerance > 0.0 or not absolute_tolerance > 0.0:
            raise ValueError("Tolerances must be positive.")
        if maximum_steps < 1 or max_step_attempts < 1:
            raise ValueError("maximum_steps and max_step_attempts must be at least 1.")
        if not maximum_time_step >= time_step:
            raise ValueError("maximum_time_step must not be smaller than time_step.")

        self._log_type = LogType(log_type)
        self._stepper_type = StepperType(stepper_type)
        self._time_step = float(time_step)
        self._relative_tolerance = float(relative_tolerance)
        self._absolute_tolerance = float(absolute_tolerance)
        self._maximum_steps = int(maximum_steps)
        self._adaptive_config = AdaptiveConfig(
            abs_tol=self._absolute_tolerance,
            rel_tol=self._relative_tolerance,
            max_step=float(maximum_time_step),
            max_step_attempts=int(max_step_attempts),
        )
        self._compiled_steps: dict[Callable, Callable] = {}

    @classmethod
    def default(cls) -> NumericalSolver:
        """Dormand-Prince 5(4), 5 s initial step, 1e-12 tolerances."""
        return cls()

    @property
    def log_type(self) -> LogType:
        return self._log_type

    @property
    def stepper_type(self) -> StepperType:
        return self._stepper_type

    @property
    def time_step(self) -> float:
        return self._time_step

    @property
    def relative_tolerance(self) -> float:
        return self._relative_tolerance

    @property
    def absolute_tolerance(self) -> float:
        return self._absolute_tolerance

    @property
    def maximum_steps(self) -> int:
        return self._maximum_steps

    @property
    def adaptive_config(self) -> AdaptiveConfig:
        return self._adaptive_config

    def get_log_type(self) -> LogType:
        return self._log_type

    def get_stepper_type(self) -> StepperType:
        return self._stepper_type

    def get_time_step(self) -> float:
        return self._time_step

    def get_relative_tolerance(self) -> float:
        return self._relative_tolerance

    def get_absolute_tolerance(self) -> float:
        return self._absolute_tolerance

    def is_defined(self) -> bool:
        return True

    def copy(self) -> NumericalSolver:
        """Solver with the same settings and an empty compiled-step cache."""
        return NumericalSolver(
            log_type=self._log_type,
            stepper_type=self._stepper_type,
            time_step=self._time_step,
            relative_tolerance=self._relative_tolerance,
            absolute_tolerance=self._absolute_tolerance,
            maximum_steps=self._maximum_steps,
            max_step_attempts=self._adaptive_config.max_step_attempts,
            maximum_time_step=self._adaptive_config.max_step,
        )

    def release(self, system: Callable) -> None:
        """Drop the compiled step cached for ``system``, if any."""
        self._compiled_steps.pop(system, None)

    def _compiled_step(self, system: Callable) -> Callable:
        step = self._compiled_steps.get(system)
        if step is not None:
            return step

        if self._stepper_type is StepperType.RUNGE_KUTTA_4:

            def _step(t, x, dt, args):
                return rk4_step(system, t, x, dt, args=args)

        else:
            step_fn = _ADAPTIVE_STEPS[self._stepper_type]
            config = self._adaptive_config

            def _step(t, x, dt, args):
                return step_fn(system, t, x, dt, config, args)

        step = jax.jit(_step)
        self._compiled_steps[system] = step
        logger.debug("Compiling %s step for %r", self._stepper_type, system)
        return step

    def integrate_time(
        self,
        x0: ArrayLike,
        t0: float,
        t1: float,
        system: Callable[..., Array],
        args: tuple = (),
    ) -> Array:
        """Integrate ``system`` from ``t0`` to ``t1``.

        Backward integration (``t1 < t0``) uses negated steps.

        Args:
            x0: State vector at ``t0``.
            t0: Start time.
            t1: End time.
            system: Right-hand side ``system(t, x, *args) -> dx/dt``.
            args: Extra pytree arguments forwarded to ``system``.

        Returns:
            jax.Array: State vector at ``t1``.

        Raises:
            NonConvergentError: If an adaptive step cannot meet the
                tolerances, or the span needs more than ``maximum_steps``
                sub-steps.
        """
        dtype = get_dtype()
        x = jnp.asarray(x0, dtype=dtype)
        t0 = float(t0)
        t1 = float(t1)
        span = t1 - t0
        if span == 0.0:
            return x

        direction = 1.0 if span > 0.0 else -1.0
        step = self._compiled_step(system)
        adaptive = self._stepper_type.is_adaptive

        if self._log_type is not LogType.NO_LOG:
            logger.debug(
                "Integrating from t=%.6f to t=%.6f with %s (h=%.3f)",
                t0, t1, self._stepper_type, self._time_step,
            )

        t = t0
        h = self._time_step
        n_steps = 0
        while direction * (t1 - t) > 0.0:
            if n_steps >= self._maximum_steps:
                raise NonConvergentError(
                    f"Integration from t={t0} to t={t1} exceeded {self._maximum_steps} steps "
                    f"(reached t={t})."
                )
            remaining = t1 - t
            h_try = direction * min(h, abs(remaining))
            result = step(
                jnp.asarray(t, dtype=dtype), x, jnp.asarray(h_try, dtype=dtype), args
            )
            if adaptive and not bool(result.accepted):
                raise NonConvergentError(
                    f"Step at t={t} could not meet tolerances (error estimate "
                    f"{float(result.error_estimate):.3e}, step {float(result.dt_used):.3e} s)."
                )

            dt_used = float(result.dt_used)
            x = result.state
            t = t1 if dt_used == h_try and h_try == remaining else t + dt_used
            if adaptive:
                h = abs(float(result.dt_next))
            n_steps += 1

            if self._log_type is LogType.LOG_ADAPTIVE:
                logger.debug(
                    "Step %d: t=%.6f dt=%.6e dt_next=%.6e error=%.3e",
                    n_steps, t, dt_used, float(result.dt_next), float(result.error_estimate),
                )
            elif self._log_type is LogType.LOG_CONSTANT:
                logger.debug("Step %d: t=%.6f dt=%.6e", n_steps, t, dt_used)

        if self._log_type is not LogType.NO_LOG:
            logger.debug("Integration finished in %d steps", n_steps)
        return x

    def integrate(self, x0, t0, t1, system, args=()) -> Array:
        """Alias of :meth:`integrate_time`."""
        return self.integrate_time(x0, t0, t1, system, args)

    def integrate_times(
        self,
        x0: ArrayLike,
        t0: float,
        times: Sequence[float],
        system: Callable[..., Array],
        args: tuple = (),
    ) -> list[Array]:
        """Integrate through a monotonic sequence of times.

        Each leg starts from the previous endpoint.

        Args:
            x0: State vector at ``t0``.
            t0: Start time.
            times: Output times, monotonic in the direction away from ``t0``.
            system: Right-hand side ``system(t, x, *args) -> dx/dt``.
            args: Extra pytree arguments forwarded to ``system``.

        Returns:
            list[jax.Array]: One state vector per entry of ``times``.

        Raises:
            UnsortedInputError: If ``times`` is not monotonic away from ``t0``.
        """
        times = [float(t) for t in times]
        if not times:
            return []

        direction = 1.0 if times[-1] >= t0 else -1.0
        previous = float(t0)
        for t in times:
            if direction * (t - previous) < 0.0:
                raise UnsortedInputError("Integration times must be monotonic away from the start time.")
            previous = t

        states = []
        x = jnp.asarray(x0, dtype=get_dtype())
        t_prev = float(t0)
        for t in times:
            x = self.integrate_time(x, t_prev, t, system, args)
            states.append(x)
            t_prev = t
        return states

    def __eq__(self, other):
        if not isinstance(other, NumericalSolver):
            return NotImplemented
        return (
            self._log_type == other._log_type
            and self._stepper_type == other._stepper_type
            and self._time_step == other._time_step
            and self._relative_tolerance == other._relative_tolerance
            and self._absolute_tolerance == other._absolute_tolerance
            and self._maximum_steps == other._maximum_steps
            and self._adaptive_config == other._adaptive_config
        )

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def describe(self) -> str:
        return (
            "Numerical Solver\n"
            f"  Log type:           {self._log_type}\n"
            f"  Stepper type:       {self._stepper_type}\n"
            f"  Time step:          {self._time_step} [s]\n"
            f"  Relative tolerance: {self._relative_tolerance:.3e}\n"
            f"  Absolute tolerance: {self._absolute_tolerance:.3e}\n"
            f"  Maximum steps:      {self._maximum_steps}"
        )

    def __str__(self):
        return self.describe()

    def __repr__(self):
        return (
            f"NumericalSolver(log_type={self._log_type.name}, stepper_type={self._stepper_type.name}, "
            f"time_step={self._time_step}, relative_tolerance={self._relative_tolerance}, "
            f"absolute_tolerance={self._absolute_tolerance})"
        )
