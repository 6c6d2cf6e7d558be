"""Tests for the propjax.integrators module.

Tests cover:
- Polynomial exactness (RK4 is exact for degree <= 3 polynomials)
- Exponential decay with known solution
- Harmonic oscillator accuracy
- Two-body orbital mechanics
- Backward integration
- Extra arguments forwarded to the dynamics
- Adaptive step-size behavior and step rejection (RKF45, Cash-Karp, DP54)
- JIT and vmap compatibility
"""

import jax
import jax.numpy as jnp
import pytest

from propjax.constants import GM_EARTH, R_EARTH
from propjax.integrators import (
    AdaptiveConfig,
    StepResult,
    cash_karp54_step,
    dp54_step,
    rk4_step,
    rkf45_step,
)

# Tolerances
_ADAPTIVE_TOL = 1e-3

_ADAPTIVE_STEPS = [rkf45_step, cash_karp54_step, dp54_step]


# ──────────────────────────────────────────────
# Helper dynamics functions
# ──────────────────────────────────────────────

def _exponential_decay(t, x):
    """dx/dt = -x. Solution: x(t) = x0 * exp(-t)."""
    return -x


def _scaled_decay(t, x, rate):
    """dx/dt = -rate * x. Solution: x(t) = x0 * exp(-rate * t)."""
    return -rate * x


def _harmonic_oscillator(t, x):
    """d^2q/dt^2 = -q. State: [q, dq/dt]. Solution: [cos(t), -sin(t)]."""
    return jnp.array([x[1], -x[0]])


def _linear_dynamics(t, x):
    """dx/dt = 1. Solution: x(t) = x0 + t."""
    return jnp.ones_like(x)


def _quadratic_dynamics(t, x):
    """dx/dt = 2t. Solution: x(t) = x0 + t^2."""
    return 2.0 * t * jnp.ones_like(x)


def _cubic_dynamics(t, x):
    """dx/dt = 3t^2. Solution: x(t) = x0 + t^3."""
    return 3.0 * t**2 * jnp.ones_like(x)


def _two_body(t, state):
    """Two-body gravitational dynamics. State: [rx, ry, rz, vx, vy, vz]."""
    r = state[:3]
    v = state[3:]
    r_norm = jnp.linalg.norm(r)
    a = -GM_EARTH * r / r_norm**3
    return jnp.concatenate([v, a])


def _circular_orbit_state(sma):
    """Create a circular equatorial orbit state [x, y, z, vx, vy, vz]."""
    v_circ = jnp.sqrt(GM_EARTH / sma)
    return jnp.array([sma, 0.0, 0.0, 0.0, v_circ, 0.0])


# ──────────────────────────────────────────────
# StepResult and AdaptiveConfig tests
# ──────────────────────────────────────────────

class TestTypes:
    def test_step_result_fields(self):
        """StepResult has the expected fields."""
        result = StepResult(
            state=jnp.array([1.0]),
            dt_used=jnp.array(0.1),
            error_estimate=jnp.array(0.0),
            dt_next=jnp.array(0.1),
            accepted=jnp.array(True),
        )
        assert result.state.shape == (1,)
        assert float(result.dt_used) == pytest.approx(0.1)
        assert float(result.error_estimate) == pytest.approx(0.0)
        assert float(result.dt_next) == pytest.approx(0.1)
        assert bool(result.accepted)

    def test_adaptive_config_defaults(self):
        """AdaptiveConfig has reasonable defaults."""
        config = AdaptiveConfig()
        assert config.abs_tol == 1e-6
        assert config.rel_tol == 1e-3
        assert config.safety_factor == 0.9
        assert config.max_step_attempts == 10

    def test_adaptive_config_custom(self):
        """AdaptiveConfig accepts custom values."""
        config = AdaptiveConfig(abs_tol=1e-10, rel_tol=1e-8)
        assert config.abs_tol == 1e-10
        assert config.rel_tol == 1e-8


# ──────────────────────────────────────────────
# RK4 tests
# ──────────────────────────────────────────────

class TestRK4:
    def test_exponential_decay(self):
        """RK4 approximates exponential decay with small error."""
        x0 = jnp.array([1.0])
        dt = 0.1
        result = rk4_step(_exponential_decay, 0.0, x0, dt)
        expected = jnp.exp(-dt)
        assert jnp.allclose(result.state, jnp.array([expected]), atol=1e-6)

    def test_linear_exactness(self):
        """RK4 is exact for linear dynamics (dx/dt = 1)."""
        x0 = jnp.array([5.0])
        result = rk4_step(_linear_dynamics, 0.0, x0, 1.0)
        assert jnp.allclose(result.state, x0 + 1.0, atol=1e-12)

    def test_quadratic_exactness(self):
        """RK4 is exact for quadratic dynamics (dx/dt = 2t)."""
        t0 = 1.0
        dt = 0.5
        result = rk4_step(_quadratic_dynamics, t0, jnp.array([0.0]), dt)
        expected = jnp.array([(t0 + dt) ** 2 - t0**2])
        assert jnp.allclose(result.state, expected, atol=1e-12)

    def test_cubic_exactness(self):
        """RK4 is exact for cubic dynamics (dx/dt = 3t^2)."""
        result = rk4_step(_cubic_dynamics, 0.0, jnp.array([0.0]), 1.0)
        assert jnp.allclose(result.state, jnp.array([1.0]), atol=1e-12)

    def test_harmonic_oscillator_multi_step(self):
        """RK4 tracks the harmonic oscillator over many small steps."""
        state = jnp.array([1.0, 0.0])
        dt = 0.01
        n_steps = 1000
        for i in range(n_steps):
            state = rk4_step(_harmonic_oscillator, i * dt, state, dt).state

        t_final = dt * n_steps
        expected = jnp.array([jnp.cos(t_final), -jnp.sin(t_final)])
        assert jnp.allclose(state, expected, atol=1e-6)

    def test_step_result_fields(self):
        """RK4 returns fixed-step StepResult metadata."""
        result = rk4_step(_exponential_decay, 0.0, jnp.array([1.0]), 0.1)
        assert float(result.dt_used) == pytest.approx(0.1)
        assert float(result.error_estimate) == 0.0
        assert float(result.dt_next) == pytest.approx(0.1)
        assert bool(result.accepted)

    def test_backward_integration(self):
        """RK4 supports negative dt for backward integration."""
        x0 = jnp.array([1.0])
        result_fwd = rk4_step(_exponential_decay, 0.0, x0, 0.1)
        result_bwd = rk4_step(_exponential_decay, 0.1, result_fwd.state, -0.1)
        assert jnp.allclose(result_bwd.state, x0, atol=1e-5)

    def test_args_forwarded(self):
        """Extra arguments reach the dynamics function."""
        result = rk4_step(_scaled_decay, 0.0, jnp.array([1.0]), 0.01, args=(2.0,))
        assert jnp.allclose(result.state, jnp.array([jnp.exp(-0.02)]), atol=1e-9)

    def test_two_body_circular_orbit(self):
        """RK4 preserves circular orbit radius over one step."""
        sma = R_EARTH + 500e3
        result = rk4_step(_two_body, 0.0, _circular_orbit_state(sma), 10.0)
        r_final = jnp.linalg.norm(result.state[:3])
        assert jnp.abs(r_final - sma) / sma < 1e-5


# ──────────────────────────────────────────────
# Adaptive method tests
# ──────────────────────────────────────────────

@pytest.mark.parametrize("step_fn", _ADAPTIVE_STEPS)
class TestAdaptive:
    def test_exponential_decay(self, step_fn):
        """Adaptive methods approximate exponential decay accurately."""
        result = step_fn(_exponential_decay, 0.0, jnp.array([1.0]), 0.5)
        expected = jnp.exp(-float(result.dt_used))
        assert jnp.allclose(result.state, jnp.array([expected]), atol=1e-5)

    def test_harmonic_oscillator(self, step_fn):
        """Adaptive methods approximate the harmonic oscillator."""
        dt = 0.1
        result = step_fn(_harmonic_oscillator, 0.0, jnp.array([1.0, 0.0]), dt)
        dt_used = float(result.dt_used)
        expected = jnp.array([jnp.cos(dt_used), -jnp.sin(dt_used)])
        assert jnp.allclose(result.state, expected, atol=_ADAPTIVE_TOL)

    def test_error_estimate_finite(self, step_fn):
        """Adaptive methods produce a finite error estimate."""
        result = step_fn(_harmonic_oscillator, 0.0, jnp.array([1.0, 0.0]), 0.1)
        assert jnp.isfinite(result.error_estimate)

    def test_dt_next_positive(self, step_fn):
        """A forward step suggests a positive next step size."""
        result = step_fn(_harmonic_oscillator, 0.0, jnp.array([1.0, 0.0]), 0.1)
        assert float(result.dt_next) > 0.0

    def test_step_acceptance(self, step_fn):
        """Steps within tolerance are accepted."""
        config = AdaptiveConfig(abs_tol=1e-4, rel_tol=1e-2)
        result = step_fn(_harmonic_oscillator, 0.0, jnp.array([1.0, 0.0]), 0.01, config=config)
        assert float(result.error_estimate) <= 1.0
        assert bool(result.accepted)

    def test_tight_tolerance_shrinks_step(self, step_fn):
        """Tighter tolerances lead to a smaller accepted step."""
        x0 = jnp.array([1.0, 0.0])
        loose = step_fn(_harmonic_oscillator, 0.0, x0, 1.0, config=AdaptiveConfig(abs_tol=1e-2, rel_tol=1e-1))
        tight = step_fn(_harmonic_oscillator, 0.0, x0, 1.0, config=AdaptiveConfig(abs_tol=1e-8, rel_tol=1e-6))
        assert float(jnp.abs(tight.dt_used)) <= float(jnp.abs(loose.dt_used))

    def test_rejection_reported(self, step_fn):
        """A step that cannot meet the tolerance in the allowed attempts is not accepted."""
        config = AdaptiveConfig(abs_tol=1e-14, rel_tol=1e-14, max_step_attempts=1)
        result = step_fn(_harmonic_oscillator, 0.0, jnp.array([1.0, 0.0]), 10.0, config=config)
        assert not bool(result.accepted)
        assert float(result.error_estimate) > 1.0

    def test_backward_integration(self, step_fn):
        """Negative dt integrates backward."""
        x0 = jnp.array([1.0])
        result_fwd = step_fn(_exponential_decay, 0.0, x0, 0.5)
        dt = float(result_fwd.dt_used)
        result_bwd = step_fn(_exponential_decay, dt, result_fwd.state, -dt)
        assert float(result_bwd.dt_used) < 0.0
        assert jnp.allclose(result_bwd.state, x0, atol=1e-3)

    def test_args_forwarded(self, step_fn):
        """Extra arguments reach the dynamics function."""
        result = step_fn(_scaled_decay, 0.0, jnp.array([1.0]), 0.01, args=(3.0,))
        dt_used = float(result.dt_used)
        assert jnp.allclose(result.state, jnp.array([jnp.exp(-3.0 * dt_used)]), atol=1e-6)

    def test_two_body_circular_orbit(self, step_fn):
        """Adaptive methods preserve circular orbit radius."""
        sma = R_EARTH + 500e3
        result = step_fn(_two_body, 0.0, _circular_orbit_state(sma), 60.0)
        r_final = jnp.linalg.norm(result.state[:3])
        assert jnp.abs(r_final - sma) / sma < 1e-4


# ──────────────────────────────────────────────
# Cross-method consistency tests
# ──────────────────────────────────────────────

class TestCrossMethod:
    def test_all_methods_agree_small_step(self):
        """All methods agree for a small step on the harmonic oscillator."""
        x0 = jnp.array([1.0, 0.0])
        dt = 0.01
        reference = rk4_step(_harmonic_oscillator, 0.0, x0, dt).state
        for step_fn in _ADAPTIVE_STEPS:
            assert jnp.allclose(step_fn(_harmonic_oscillator, 0.0, x0, dt).state, reference, atol=1e-8)

    def test_all_methods_agree_exponential(self):
        """All methods agree for exponential decay."""
        x0 = jnp.array([2.0])
        dt = 0.1
        expected = jnp.array([2.0 * jnp.exp(-dt)])
        assert jnp.allclose(rk4_step(_exponential_decay, 0.0, x0, dt).state, expected, atol=1e-5)
        for step_fn in _ADAPTIVE_STEPS:
            assert jnp.allclose(step_fn(_exponential_decay, 0.0, x0, dt).state, expected, atol=1e-5)


# ──────────────────────────────────────────────
# JAX compatibility tests
# ──────────────────────────────────────────────

class TestJAXCompatibility:
    def test_jit_rk4(self):
        """rk4_step is JIT-compilable."""
        @jax.jit
        def step(t, x, dt):
            return rk4_step(_harmonic_oscillator, t, x, dt)

        result = step(0.0, jnp.array([1.0, 0.0]), 0.01)
        expected = jnp.array([jnp.cos(0.01), -jnp.sin(0.01)])
        assert jnp.allclose(result.state, expected, atol=1e-6)

    @pytest.mark.parametrize("step_fn", _ADAPTIVE_STEPS)
    def test_jit_adaptive(self, step_fn):
        """Adaptive steps are JIT-compilable."""
        @jax.jit
        def step(t, x, dt):
            return step_fn(_harmonic_oscillator, t, x, dt)

        result = step(0.0, jnp.array([1.0, 0.0]), 0.1)
        assert jnp.all(jnp.isfinite(result.state))

    def test_jit_args_pytree(self):
        """Arguments passed through a compiled step may be pytrees."""
        @jax.jit
        def step(x, params):
            return dp54_step(lambda t, s, p: -p["rate"] * s, 0.0, x, 0.01, args=(params,))

        result = step(jnp.array([1.0]), {"rate": jnp.asarray(2.0)})
        assert jnp.allclose(result.state, jnp.array([jnp.exp(-2.0 * float(result.dt_used))]), atol=1e-8)

    def test_vmap_rk4(self):
        """rk4_step works with vmap over a batch of initial conditions."""
        x0_batch = jnp.array([[1.0, 0.0], [0.0, 1.0], [0.5, 0.5]])

        def step(x0):
            return rk4_step(_harmonic_oscillator, 0.0, x0, 0.01).state

        assert jax.vmap(step)(x0_batch).shape == (3, 2)

    def test_vmap_dp54(self):
        """dp54_step works with vmap over a batch of initial conditions."""
        x0_batch = jnp.array([[1.0, 0.0], [0.0, 1.0]])

        def step(x0):
            return dp54_step(_harmonic_oscillator, 0.0, x0, 0.1).state

        assert jax.vmap(step)(x0_batch).shape == (2, 2)

    def test_grad_rk4(self):
        """rk4_step supports gradient computation."""
        def loss(x0):
            return jnp.sum(rk4_step(_harmonic_oscillator, 0.0, x0, 0.01).state ** 2)

        grad = jax.grad(loss)(jnp.array([1.0, 0.0]))
        assert grad.shape == (2,)
        assert jnp.all(jnp.isfinite(grad))

    def test_lax_scan_rk4(self):
        """rk4_step works inside lax.scan for multi-step propagation."""
        from propjax.config import get_dtype

        x0 = jnp.array([1.0, 0.0], dtype=get_dtype())
        dt = 0.01
        n_steps = 100

        def scan_step(state, _):
            result = rk4_step(_harmonic_oscillator, 0.0, state, dt)
            return result.state, result.state

        final, trajectory = jax.lax.scan(scan_step, x0, None, length=n_steps)
        assert trajectory.shape == (n_steps, 2)
        t_final = dt * n_steps
        expected = jnp.array([jnp.cos(t_final), -jnp.sin(t_final)])
        assert jnp.allclose(final, expected, atol=1e-3)
