"""Augmented problems for tangent-space and ensemble evolution.

:func:`variational_problem` evolves a system together with ``k`` deviation
vectors ``w_i`` obeying the linearized (tangent) dynamics

.. math::

    \\dot{w}_i = J(u)\\, w_i

where ``J(u)`` is the Jacobian of the vector field at the current state.
The augmented state is a ``(D, k+1)`` matrix ``S = [u | w_1 ... w_k]``.
Since the right-hand side is linear in every deviation column, scaling a
deviation vector's initial value scales its whole evolution.

:func:`parallel_problem` evolves ``k`` independent copies of a system, the
columns of a ``(D, k)`` matrix, under the same vector field.

Both problems share the system's parameter container by reference.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import jax
import jax.numpy as jnp
from jax import Array

from dynamicsjax.continuous._types import ODEProblem
from dynamicsjax.continuous.problem import resolve_tspan
from dynamicsjax.errors import ShapeMismatchError

if TYPE_CHECKING:
    from dynamicsjax.continuous.system import ContinuousDS


def _as_augmented_state(ds: ContinuousDS, S: Any, min_columns: int) -> Array:
    S = jnp.asarray(S, dtype=ds.dtype)
    if S.ndim != 2 or S.shape[0] != ds.dimension or S.shape[1] < min_columns:
        raise ShapeMismatchError(
            "Augmented state",
            (ds.dimension, f">={min_columns}"),
            S.shape,
        )
    return S


def _span(ds: ContinuousDS, t: Any) -> tuple[float, float]:
    return ds.tspan if t is None else resolve_tspan(t)


def variational_problem(ds: ContinuousDS, S: Any, t: Any = None) -> ODEProblem:
    """Build the variational equations of *ds* as a problem.

    Column 0 of the augmented field is the system's vector field evaluated
    at ``S[:, 0]``. The remaining columns are ``J(S[:, 0]) @ S[:, 1:]``
    where ``J`` is the system's Jacobian routine.

    Args:
        ds: The system.
        S: Initial augmented state of shape ``(D, k+1)``, ``k >= 0``:
            ``jnp.column_stack([u0, W])`` with ``W`` holding the initial
            deviation vectors as columns.
        t: Final time (initial time zero) or ``(t0, t1)`` span. Defaults
            to the system's span.

    Returns:
        ODEProblem: The augmented problem.

    Raises:
        ShapeMismatchError: If *S* is not a ``(D, k+1)`` matrix.

    Examples:
        ```python
        import jax.numpy as jnp
        from dynamicsjax.systems import lorenz
        from dynamicsjax.continuous import variational_problem
        ds = lorenz()
        S = jnp.column_stack([ds.state, jnp.eye(3)])
        prob = variational_problem(ds, S, 10.0)
        ```
    """
    S = _as_augmented_state(ds, S, 1)
    f = ds.eom
    jac = ds.jacobian_fn

    def variational_eom(u: Array, p: Any, t: Any) -> Array:
        us = u[:, 0]
        du = f(us, p, t)
        J = jac(us, p, t)
        return jnp.column_stack([du, J @ u[:, 1:]])

    return ODEProblem(f=variational_eom, u0=S, tspan=_span(ds, t), p=ds.parameters)


def parallel_problem(ds: ContinuousDS, S: Any, t: Any = None) -> ODEProblem:
    """Build a problem evolving the columns of *S* independently.

    Args:
        ds: The system.
        S: Initial states of shape ``(D, k)``, ``k >= 1``, one per column.
        t: Final time (initial time zero) or ``(t0, t1)`` span. Defaults
            to the system's span.

    Returns:
        ODEProblem: The augmented problem.

    Raises:
        ShapeMismatchError: If *S* is not a ``(D, k)`` matrix.
    """
    S = _as_augmented_state(ds, S, 1)
    f = ds.eom

    def parallel_eom(u: Array, p: Any, t: Any) -> Array:
        return jax.vmap(lambda uj: f(uj, p, t), in_axes=1, out_axes=1)(u)

    return ODEProblem(f=parallel_eom, u0=S, tspan=_span(ds, t), p=ds.parameters)
