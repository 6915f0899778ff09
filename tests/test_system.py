"""Tests for the dynamicsjax.continuous.system module.

Tests cover:
- Construction from raw components and from an ODEProblem
- State validation and conversion
- Jacobian buffer and routine validation
- set_state and jacobian evaluation
- Parameter sharing by reference
- Pretty printing
"""

import jax.numpy as jnp
import numpy as np
import pytest

from dynamicsjax.continuous import ContinuousDS, ODEProblem
from dynamicsjax.errors import (
    InvalidStateShapeError,
    ShapeMismatchError,
    TypeMismatchError,
)

# ──────────────────────────────────────────────
# Helper vector fields
# ──────────────────────────────────────────────


def _decay(u, p, t):
    return -u


def _lorenz(u, p, t):
    return jnp.stack(
        [
            p[0] * (u[1] - u[0]),
            u[0] * (p[1] - u[2]) - u[1],
            u[0] * u[1] - p[2] * u[2],
        ]
    )


def _lorenz_jacobian(u, p, t):
    return jnp.array(
        [
            [-p[0], p[0], 0.0],
            [p[1] - u[2], -1.0, -u[0]],
            [u[1], u[0], -p[2]],
        ]
    )


def _lorenz_ds(jacobian=_lorenz_jacobian, u0=(1.0, 0.0, 0.0)):
    return ContinuousDS(list(u0), _lorenz, jacobian, parameters=[10.0, 28.0, 8.0 / 3.0])


# ──────────────────────────────────────────────
# Construction
# ──────────────────────────────────────────────


class TestConstruction:
    @pytest.mark.parametrize("D", [1, 2, 3, 5, 8])
    def test_dimension_equals_state_length(self, D):
        ds = ContinuousDS(jnp.ones(D), _decay)
        assert ds.dimension == D

    def test_defaults(self):
        ds = ContinuousDS([1.0, 2.0], _decay)
        assert ds.tspan == (0.0, 100.0)
        assert ds.parameters is None
        assert ds.problem.callback is None
        assert ds.problem.mass_matrix is None

    def test_state_values(self):
        ds = _lorenz_ds()
        assert jnp.allclose(ds.state, jnp.array([1.0, 0.0, 0.0]))

    def test_numpy_state(self):
        ds = ContinuousDS(np.array([1.0, 2.0, 3.0]), _decay)
        assert ds.dimension == 3

    def test_integer_state_is_cast(self):
        ds = ContinuousDS(jnp.array([1, 2]), _decay)
        assert ds.dtype == jnp.float64

    def test_jacobian_evaluated_at_construction(self):
        ds = _lorenz_ds()
        assert jnp.allclose(ds.J, _lorenz_jacobian(ds.state, ds.parameters, 0.0))

    def test_autodiff_system_matches_analytic(self):
        analytic = _lorenz_ds(u0=(0.3, -1.2, 15.0))
        autodiff = _lorenz_ds(jacobian=None, u0=(0.3, -1.2, 15.0))
        assert jnp.allclose(analytic.jacobian(), autodiff.jacobian(), atol=1e-6)

    def test_tspan_scalar(self):
        ds = ContinuousDS([1.0], _decay, tspan=5.0)
        assert ds.tspan == (0.0, 5.0)

    def test_from_problem(self):
        p = [10.0, 28.0, 8.0 / 3.0]
        prob = ODEProblem(_lorenz, jnp.array([1.0, 0.0, 0.0]), (0.0, 10.0), p)
        ds = ContinuousDS.from_problem(prob, _lorenz_jacobian)
        assert ds.eom is _lorenz
        assert ds.parameters is p
        assert ds.tspan == (0.0, 10.0)
        assert jnp.allclose(ds.state, prob.u0)

    def test_from_problem_autodiff(self):
        prob = ODEProblem(_decay, jnp.array([1.0, 2.0]), (0.0, 1.0))
        ds = ContinuousDS.from_problem(prob)
        assert jnp.allclose(ds.jacobian(), -jnp.eye(2))


class TestStateValidation:
    def test_scalar_rejected(self):
        with pytest.raises(InvalidStateShapeError):
            ContinuousDS(1.0, _decay)

    def test_matrix_rejected(self):
        with pytest.raises(InvalidStateShapeError):
            ContinuousDS([[1.0, 2.0], [3.0, 4.0]], _decay)

    def test_empty_rejected(self):
        with pytest.raises(InvalidStateShapeError):
            ContinuousDS([], _decay)

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidStateShapeError):
            ContinuousDS(["a", "b"], _decay)

    def test_bool_rejected(self):
        with pytest.raises(InvalidStateShapeError):
            ContinuousDS(jnp.array([True, False]), _decay)


class TestJacobianValidation:
    def test_buffer_wrong_shape(self):
        with pytest.raises(ShapeMismatchError):
            ContinuousDS([1.0, 2.0], _decay, J=jnp.zeros((3, 3)))

    def test_buffer_wrong_dtype(self):
        with pytest.raises(TypeMismatchError):
            ContinuousDS([1.0, 2.0], _decay, J=jnp.zeros((2, 2), dtype=jnp.float32))

    def test_buffer_accepted(self):
        ds = ContinuousDS([1.0, 2.0], _decay, J=jnp.zeros((2, 2)))
        assert jnp.allclose(ds.J, -jnp.eye(2))

    def test_analytic_wrong_shape(self):
        def bad_jacobian(u, p, t):
            return jnp.zeros((2, 3))

        with pytest.raises(ShapeMismatchError):
            ContinuousDS([1.0, 2.0], _decay, bad_jacobian)

    def test_analytic_wrong_dtype(self):
        def float32_jacobian(u, p, t):
            return -jnp.eye(2, dtype=jnp.float32)

        with pytest.raises(TypeMismatchError):
            ContinuousDS([1.0, 2.0], _decay, float32_jacobian)


# ──────────────────────────────────────────────
# Operations
# ──────────────────────────────────────────────


class TestSetState:
    def test_replaces_state(self):
        ds = _lorenz_ds()
        ds.set_state([2.0, 3.0, 4.0])
        assert jnp.allclose(ds.state, jnp.array([2.0, 3.0, 4.0]))
        assert ds.problem.u0 is ds.state

    def test_keeps_dtype(self):
        ds = _lorenz_ds()
        ds.set_state(jnp.array([1, 2, 3]))
        assert ds.state.dtype == jnp.float64

    def test_wrong_length(self):
        ds = _lorenz_ds()
        with pytest.raises(ShapeMismatchError):
            ds.set_state([1.0, 2.0])

    def test_wrong_rank(self):
        ds = _lorenz_ds()
        with pytest.raises(InvalidStateShapeError):
            ds.set_state(jnp.ones((3, 1)))


class TestJacobianEvaluation:
    def test_at_current_state(self):
        ds = _lorenz_ds()
        ds.set_state([1.0, 2.0, 3.0])
        J = ds.jacobian()
        assert float(J[1, 0]) == pytest.approx(28.0 - 3.0)
        assert float(J[1, 2]) == pytest.approx(-1.0)
        assert ds.J is J

    def test_at_given_state(self):
        ds = _lorenz_ds()
        J = ds.jacobian([0.0, 0.0, 5.0])
        assert float(J[1, 0]) == pytest.approx(23.0)
        # The stored state is not touched
        assert jnp.allclose(ds.state, jnp.array([1.0, 0.0, 0.0]))

    def test_earlier_result_survives_later_evaluation(self):
        ds = _lorenz_ds()
        J_first = ds.jacobian()
        snapshot = np.asarray(J_first).copy()
        ds.set_state([5.0, 6.0, 7.0])
        ds.jacobian()
        assert np.array_equal(np.asarray(J_first), snapshot)


class TestParameterSharing:
    def test_same_object(self):
        p = [10.0, 28.0, 8.0 / 3.0]
        ds = ContinuousDS([1.0, 0.0, 0.0], _lorenz, _lorenz_jacobian, parameters=p)
        assert ds.parameters is p

    def test_mutation_visible(self):
        p = [10.0, 28.0, 8.0 / 3.0]
        ds = ContinuousDS([1.0, 0.0, 0.0], _lorenz, parameters=p)
        p[1] = 99.0
        assert float(ds.jacobian()[1, 0]) == pytest.approx(99.0)

    def test_numpy_mutation_visible(self):
        p = np.array([2.0])
        ds = ContinuousDS([1.0], lambda u, p, t: p[0] * u, parameters=p)
        p[0] = 7.0
        assert float(ds.jacobian()[0, 0]) == pytest.approx(7.0)


class TestPrinting:
    def test_summary(self):
        assert _lorenz_ds().summary() == "3-dimensional continuous dynamical system"

    def test_repr(self):
        text = repr(_lorenz_ds())
        assert text.startswith("3-dimensional continuous dynamical system:")
        assert "e.o.m.: _lorenz" in text
