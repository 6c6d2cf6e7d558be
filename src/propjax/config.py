"""Module-wide floating-point precision configuration.

Provides ``set_dtype`` and ``get_dtype`` to control the float dtype used
throughout propjax.  The default is ``jnp.float64``: propagating an orbit
over hours accumulates position and time errors that single precision
cannot hold, so JAX's 64-bit mode (``jax_enable_x64``) is switched on when
this module is imported.

Call ``set_dtype`` **before** any JIT compilation.  Under JIT,
``get_dtype()`` runs during tracing and its result is baked into the
compiled program, so compiled propagation steps must be rebuilt (e.g. by
constructing a new ``Propagator``) after the dtype changes.

Integer components (e.g. Instant ``_jd``) are always ``jnp.int32``
regardless of this setting.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_VALID_DTYPES = (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64)

jax.config.update("jax_enable_x64", True)

_dtype = jnp.float64


def set_dtype(dtype) -> None:
    """Set the module-wide float dtype for propjax.

    If *dtype* is ``jnp.float64``, JAX's 64-bit mode is (re-)enabled via
    ``jax.config.update("jax_enable_x64", True)``.

    Args:
        dtype: One of ``jnp.float16``, ``jnp.bfloat16``, ``jnp.float32``,
            or ``jnp.float64``.

    Raises:
        ValueError: If *dtype* is not a supported float type.
    """
    global _dtype
    if dtype not in _VALID_DTYPES:
        raise ValueError(
            f"Unsupported dtype {dtype}. Must be one of: "
            f"jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64"
        )
    if dtype == jnp.float64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Return the current module-wide float dtype.

    Returns:
        The active float dtype (default ``jnp.float64``).
    """
    return _dtype


def get_instant_eq_tolerance() -> float:
    """Return the dtype-adaptive tolerance for Instant equality comparisons.

    - ``float16``:  0.1 s
    - ``bfloat16``: 0.1 s
    - ``float32``:  1e-3 s
    - ``float64``:  1e-9 s

    Returns:
        float: Tolerance in seconds.
    """
    if _dtype == jnp.float64:
        return 1e-9
    if _dtype == jnp.float32:
        return 1e-3
    return 0.1
