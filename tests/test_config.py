"""Tests for the dynamicsjax.config module."""

import jax
import jax.numpy as jnp
import pytest

from dynamicsjax.config import get_default_tolerances, get_dtype, set_dtype
from dynamicsjax.continuous import ContinuousDS, SolverConfig, trajectory

pytestmark = pytest.mark.order("first")


def _rotation(u, p, t):
    return jnp.stack([u[1], -u[0]])


@pytest.fixture(autouse=True)
def reset_dtype():
    """Reset dtype to float32 before and after each test."""
    set_dtype(jnp.float32)
    yield
    set_dtype(jnp.float32)


class TestGetSetDtype:
    def test_default_dtype(self):
        assert get_dtype() == jnp.float32

    def test_set_float64(self):
        set_dtype(jnp.float64)
        assert get_dtype() == jnp.float64

    def test_set_bfloat16(self):
        set_dtype(jnp.bfloat16)
        assert get_dtype() == jnp.bfloat16

    def test_roundtrip(self):
        for dtype in (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64):
            set_dtype(dtype)
            assert get_dtype() == dtype

    def test_invalid_dtype_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype(jnp.int32)

    def test_invalid_dtype_string_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype("float32")

    def test_float64_enables_x64(self):
        set_dtype(jnp.float64)
        assert jax.config.jax_enable_x64 is True


class TestDefaultTolerances:
    def test_float64_tolerances(self):
        set_dtype(jnp.float64)
        assert get_default_tolerances() == (1e-9, 1e-9)

    def test_float32_tolerances(self):
        set_dtype(jnp.float32)
        assert get_default_tolerances() == (1e-6, 1e-6)

    def test_half_precision_tolerances(self):
        set_dtype(jnp.float16)
        assert get_default_tolerances() == (1e-3, 1e-3)
        set_dtype(jnp.bfloat16)
        assert get_default_tolerances() == (1e-3, 1e-3)

    def test_solver_config_follows_dtype(self):
        set_dtype(jnp.float64)
        assert SolverConfig().tolerances() == (1e-9, 1e-9)
        set_dtype(jnp.float32)
        assert SolverConfig().tolerances() == (1e-6, 1e-6)

    def test_explicit_tolerances_win(self):
        set_dtype(jnp.float64)
        config = SolverConfig(abs_tol=1e-4, rel_tol=1e-5)
        assert config.tolerances() == (1e-4, 1e-5)


class TestDtypeSwitchingOutputs:
    """Verify that converted states follow the configured dtype."""

    def test_list_state_float32(self):
        ds = ContinuousDS([1.0, 0.0], _rotation)
        assert ds.state.dtype == jnp.float32
        assert ds.jacobian().dtype == jnp.float32

    def test_list_state_float64(self):
        set_dtype(jnp.float64)
        ds = ContinuousDS([1.0, 0.0], _rotation)
        assert ds.state.dtype == jnp.float64
        assert ds.jacobian().dtype == jnp.float64

    def test_array_state_keeps_dtype(self):
        set_dtype(jnp.float64)
        u0 = jnp.array([1.0, 0.0], dtype=jnp.float64)
        set_dtype(jnp.float32)
        ds = ContinuousDS(u0, _rotation)
        assert ds.state.dtype == jnp.float64

    def test_trajectory_float32(self):
        ds = ContinuousDS([1.0, 0.0], _rotation)
        traj = trajectory(ds, 1.0, dt=0.5, config=SolverConfig(solver="tsit5"))
        assert traj.states.dtype == jnp.float32
        assert traj.states.shape == (2, 3)
