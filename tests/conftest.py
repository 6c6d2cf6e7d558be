import jax.numpy as jnp
import pytest

from propjax.config import set_dtype


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Set float64 precision before every test.

    Tests that switch precision (e.g. test_config.py) restore it through
    their own fixtures; this guarantees every other test starts in float64.
    """
    set_dtype(jnp.float64)
