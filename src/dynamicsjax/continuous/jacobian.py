"""Jacobian routines for continuous systems.

A Jacobian routine has the signature ``jacobian(u, p, t) -> J`` and returns
the ``(D, D)`` matrix of partial derivatives of the vector field with
respect to the state. Users may supply one analytically; otherwise one is
derived from the vector field with ``jax.jacfwd``.

The derived routine differentiates the vector field with the time argument
frozen at ``t = 0``. The time passed by the caller is accepted and ignored.
This is exact for autonomous systems only; for explicitly time-dependent
vector fields supply an analytic Jacobian.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import jax
from jax import Array

from dynamicsjax.errors import ShapeMismatchError, TypeMismatchError

_REFERENCE_TIME = 0.0


def validate_jacobian(J: Array, dimension: int, dtype) -> None:
    """Check that a Jacobian matrix fits a system of the given dimension.

    Args:
        J: Candidate Jacobian matrix.
        dimension: System dimension ``D``.
        dtype: Element type of the system state.

    Raises:
        ShapeMismatchError: If ``J`` is not of shape ``(D, D)``.
        TypeMismatchError: If ``J.dtype`` differs from *dtype*.
    """
    if J.shape != (dimension, dimension):
        raise ShapeMismatchError("Jacobian", (dimension, dimension), J.shape)
    if J.dtype != dtype:
        raise TypeMismatchError(dtype, J.dtype)


def derive_jacobian(
    eom: Callable[[Array, Any, Any], Array],
    u0: Array,
    parameters: Any = None,
    jacobian: Callable[[Array, Any, Any], Array] | None = None,
) -> Callable[[Array, Any, Any], Array]:
    """Return a Jacobian routine for the vector field *eom*.

    If *jacobian* is given it is returned unchanged. Otherwise a forward-mode
    autodiff routine is built once and evaluated at ``(u0, parameters)`` so
    that tracing problems surface here rather than in the middle of a solve.

    Args:
        eom: Vector field ``eom(u, p, t) -> du``. Must be differentiable by
            JAX when no analytic Jacobian is given.
        u0: Representative state, used for the eager evaluation.
        parameters: Representative parameter container.
        jacobian: Optional analytic Jacobian ``jacobian(u, p, t) -> J``.

    Returns:
        Callable ``(u, p, t) -> J``.

    Raises:
        ShapeMismatchError: If the derived Jacobian is not ``(D, D)``.
        TypeMismatchError: If the derived Jacobian dtype differs from ``u0``.

    Examples:
        ```python
        import jax.numpy as jnp
        from dynamicsjax.continuous.jacobian import derive_jacobian

        def eom(u, p, t):
            return jnp.array([u[1], -p * u[0]])

        jac = derive_jacobian(eom, jnp.array([1.0, 0.0]), 2.0)
        jac(jnp.array([0.5, 0.5]), 2.0, 0.0)  # [[0, 1], [-2, 0]]
        ```
    """
    if jacobian is not None:
        return jacobian

    # Built once; every call reuses the transformed function.
    jac_fn = jax.jacfwd(eom, argnums=0)

    def autodiff_jacobian(u: Array, p: Any, t: Any) -> Array:
        return jac_fn(u, p, _REFERENCE_TIME)

    J = autodiff_jacobian(u0, parameters, _REFERENCE_TIME)
    validate_jacobian(J, u0.shape[0], u0.dtype)
    return autodiff_jacobian
