import jax.numpy as jnp
import pytest

from dynamicsjax.config import set_dtype


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Run every test in float64 unless a module overrides the dtype.

    test_config.py has its own autouse fixture that switches to float32.
    """
    set_dtype(jnp.float64)
