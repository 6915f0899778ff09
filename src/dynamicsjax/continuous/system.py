"""Continuous dynamical systems.

:class:`ContinuousDS` bundles a state, a vector field, a parameter
container and a Jacobian routine. It validates them once at construction:
the state must be a flat numeric vector and the Jacobian, evaluated at the
initial condition, must be ``(D, D)`` with the state's dtype.

The parameter container is never copied. Mutating it in place (e.g.
``p[0] = 12.0`` on a list) is seen by the system and by every problem or
integrator derived from it afterwards.

Jacobians are returned as immutable JAX arrays. A matrix obtained from
:meth:`ContinuousDS.jacobian` stays valid after later evaluations; the
system only rebinds :attr:`ContinuousDS.J` to the newest result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array

from dynamicsjax.config import get_dtype
from dynamicsjax.continuous._types import ODEProblem
from dynamicsjax.continuous.jacobian import derive_jacobian, validate_jacobian
from dynamicsjax.continuous.problem import resolve_tspan
from dynamicsjax.errors import InvalidStateShapeError, ShapeMismatchError

logger = logging.getLogger(__name__)


def as_state(state: Any) -> Array:
    """Convert *state* to a flat float vector.

    Python sequences are converted with the module-wide dtype. Arrays keep
    their float dtype; integer arrays are cast to the module-wide dtype.

    Raises:
        InvalidStateShapeError: If *state* is a scalar, a higher-rank array,
            empty, or not numeric.
    """
    try:
        if isinstance(state, (jax.Array, np.ndarray)):
            u = jnp.asarray(state)
        else:
            u = jnp.asarray(state, dtype=get_dtype())
    except (TypeError, ValueError) as err:
        raise InvalidStateShapeError(f"State must be a numeric vector, got {state!r}") from err

    if u.ndim != 1 or u.shape[0] == 0:
        raise InvalidStateShapeError(
            f"Only non-empty vectors are supported as states, got shape {u.shape}"
        )
    if jnp.issubdtype(u.dtype, jnp.integer):
        u = u.astype(get_dtype())
    elif not jnp.issubdtype(u.dtype, jnp.inexact):
        raise InvalidStateShapeError(f"State must be numeric, got dtype {u.dtype}")
    return u


class ContinuousDS:
    """``D``-dimensional continuous dynamical system ``du/dt = eom(u, p, t)``.

    The equations of motion must have the form ``eom(u, p, t) -> du`` where
    ``u`` is the state, ``p`` the parameter container and ``t`` the time.
    Both ``p`` and ``t`` must be accepted even if unused.

    If no *jacobian* routine is given, one is derived with ``jax.jacfwd``
    (see :mod:`dynamicsjax.continuous.jacobian`). That routine holds the
    time fixed at zero while differentiating, so time-dependent systems
    should supply an analytic Jacobian.

    Args:
        state: Initial condition, a vector of length ``D``.
        eom: Vector field ``eom(u, p, t) -> du``.
        jacobian: Optional analytic Jacobian ``jacobian(u, p, t) -> J``.
        J: Optional initial Jacobian matrix. Must be ``(D, D)`` with the
            state's dtype.
        tspan: Default ``(t0, t1)`` integration interval.
        parameters: Parameter container, stored by reference.
        callback: Optional ``diffrax.Event`` carried by every derived
            problem.
        mass_matrix: Optional constant mass matrix.

    Raises:
        InvalidStateShapeError: If *state* is not a flat numeric vector.
        ShapeMismatchError: If *J* or the evaluated Jacobian is not
            ``(D, D)``.
        TypeMismatchError: If *J* or the evaluated Jacobian has a different
            dtype than the state.

    Examples:
        ```python
        import jax.numpy as jnp
        from dynamicsjax.continuous import ContinuousDS

        def eom(u, p, t):
            return jnp.array([u[1], -p[0] * u[0]])

        ds = ContinuousDS([1.0, 0.0], eom, parameters=[4.0])
        ds.dimension  # 2
        ds.jacobian()  # [[0, 1], [-4, 0]]
        ```
    """

    def __init__(
        self,
        state: Any,
        eom: Callable[[Array, Any, Any], Array],
        jacobian: Callable[[Array, Any, Any], Array] | None = None,
        J: Any = None,
        *,
        tspan: Any = (0.0, 100.0),
        parameters: Any = None,
        callback: Any = None,
        mass_matrix: Any = None,
    ) -> None:
        u0 = as_state(state)
        D = u0.shape[0]
        span = resolve_tspan(tspan)

        if J is not None:
            validate_jacobian(jnp.asarray(J), D, u0.dtype)

        jacobian_fn = derive_jacobian(eom, u0, parameters, jacobian)
        J = jacobian_fn(u0, parameters, span[0])
        validate_jacobian(J, D, u0.dtype)

        self._problem = ODEProblem(
            f=eom,
            u0=u0,
            tspan=span,
            p=parameters,
            callback=callback,
            mass_matrix=None if mass_matrix is None else jnp.asarray(mass_matrix),
        )
        self._jacobian_fn = jacobian_fn
        self._J = J

        logger.debug(
            "Created %d-dimensional continuous system with %s Jacobian",
            D,
            "analytic" if jacobian is not None else "autodiff",
        )

    @classmethod
    def from_problem(
        cls,
        problem: ODEProblem,
        jacobian: Callable[[Array, Any, Any], Array] | None = None,
        J: Any = None,
    ) -> ContinuousDS:
        """Create a system from an existing :class:`ODEProblem`.

        Use this to carry a callback or a mass matrix with the system.

        Args:
            problem: Problem whose ``f``, ``u0``, ``tspan``, ``p``,
                ``callback``, ``mass_matrix`` and
                ``step_events`` define the system.
            jacobian: Optional analytic Jacobian.
            J: Optional initial Jacobian matrix.

        Returns:
            ContinuousDS: The new system.
        """
        ds = cls(
            problem.u0,
            problem.f,
            jacobian,
            J,
            tspan=problem.tspan,
            parameters=problem.p,
            callback=problem.callback,
            mass_matrix=problem.mass_matrix,
        )
        if problem.step_events:
            ds._problem = ds._problem._replace(step_events=True)
        return ds

    # --- Accessors ---

    @property
    def problem(self) -> ODEProblem:
        """The system's own problem description."""
        return self._problem

    @property
    def dimension(self) -> int:
        return self._problem.u0.shape[0]

    @property
    def dtype(self):
        return self._problem.u0.dtype

    @property
    def state(self) -> Array:
        return self._problem.u0

    @property
    def parameters(self) -> Any:
        """The parameter container (the same object, not a copy)."""
        return self._problem.p

    @property
    def tspan(self) -> tuple[float, float]:
        return self._problem.tspan

    @property
    def eom(self) -> Callable[[Array, Any, Any], Array]:
        return self._problem.f

    @property
    def jacobian_fn(self) -> Callable[[Array, Any, Any], Array]:
        """The Jacobian routine ``(u, p, t) -> J``."""
        return self._jacobian_fn

    @property
    def J(self) -> Array:
        """The most recently evaluated Jacobian."""
        return self._J

    # --- State and Jacobian ---

    def check_state(self, state: Any) -> Array:
        """Convert *state* to a vector compatible with this system.

        Raises:
            InvalidStateShapeError: If *state* is not a flat numeric vector.
            ShapeMismatchError: If its length differs from the dimension.
        """
        u = as_state(state)
        if u.shape != (self.dimension,):
            raise ShapeMismatchError("State", (self.dimension,), u.shape)
        return u.astype(self.dtype)

    def set_state(self, state: Any) -> None:
        """Replace the system's state.

        The new state is seen by every later operation on this system.

        Raises:
            InvalidStateShapeError: If *state* is not a flat numeric vector.
            ShapeMismatchError: If its length differs from the dimension.
        """
        self._problem = self._problem._replace(u0=self.check_state(state))

    def jacobian(self, u: Any = None, t: Any = None) -> Array:
        """Evaluate the Jacobian.

        Defaults to the current state and the initial time of the system's
        span, with the current parameters.

        Args:
            u: State to evaluate at. Defaults to the current state.
            t: Time to evaluate at. Defaults to ``tspan[0]``.

        Returns:
            jax.Array: ``(D, D)`` Jacobian matrix.
        """
        u = self.state if u is None else self.check_state(u)
        t = self.tspan[0] if t is None else t
        self._J = self._jacobian_fn(u, self.parameters, t)
        return self._J

    # --- Pretty printing ---

    def summary(self) -> str:
        return f"{self.dimension}-dimensional continuous dynamical system"

    def __repr__(self) -> str:
        name = getattr(self.eom, "__name__", repr(self.eom))
        return f"{self.summary()}:\nstate: {self.state}\ne.o.m.: {name}\n"
