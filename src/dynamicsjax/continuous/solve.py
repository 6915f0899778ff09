"""Glue between problem descriptions and the diffrax solver.

:func:`get_sol` solves a whole :class:`ODEProblem`, either keeping only the
final sample or sampling exactly on a given time grid. :class:`Integrator`
is a reusable handle bound to one problem that can be advanced piecewise,
which is what iterative algorithms such as Lyapunov exponent estimation
need.

Solver failures are reported as :class:`~dynamicsjax.errors.SolverFailureError`
and never retried. A solve that stops early because an event fired counts as
successful.
"""

from __future__ import annotations

import logging
import math
import weakref
from typing import TYPE_CHECKING, Any

import diffrax
import jax.numpy as jnp
from jax import Array

from dynamicsjax.config import get_dtype
from dynamicsjax.continuous._types import ODEProblem, SolverConfig
from dynamicsjax.continuous.problem import derive_problem, use_stop_times
from dynamicsjax.continuous.tangent import parallel_problem, variational_problem
from dynamicsjax.errors import ShapeMismatchError, SolverFailureError

if TYPE_CHECKING:
    from dynamicsjax.continuous.system import ContinuousDS

logger = logging.getLogger(__name__)

_ACCEPTED_RESULTS = (diffrax.RESULTS.successful, diffrax.RESULTS.event_occurred)


_TERMS: dict[int, diffrax.ODETerm] = {}


def _ode_term(f) -> diffrax.ODETerm:
    # One term per live vector field, so repeated solves hit diffrax's JIT
    # cache. Keyed on identity: callable objects need not be hashable.
    key = id(f)
    term = _TERMS.get(key)
    if term is not None:
        return term
    try:
        ref = weakref.ref(f)
    except TypeError:
        return diffrax.ODETerm(lambda t, y, args: f(y, args, t))
    # The term holds a weak reference so the cache never keeps f alive.
    term = diffrax.ODETerm(lambda t, y, args: ref()(y, args, t))
    _TERMS[key] = term
    weakref.finalize(f, _TERMS.pop, key, None)
    return term


def _make_term(problem: ODEProblem) -> diffrax.ODETerm:
    if problem.mass_matrix is None:
        return _ode_term(problem.f)
    f = problem.f
    M = problem.mass_matrix
    return diffrax.ODETerm(lambda t, y, args: jnp.linalg.solve(M, f(y, args, t)))


def _make_controller(config: SolverConfig, step_ts: Array | None = None):
    abs_tol, rel_tol = config.tolerances()
    controller = diffrax.PIDController(rtol=rel_tol, atol=abs_tol)
    if step_ts is None:
        return controller
    if hasattr(diffrax, "ClipStepSizeController"):
        return diffrax.ClipStepSizeController(controller, step_ts=step_ts)
    # diffrax < 0.7 takes the stop times on the PID controller itself
    return diffrax.PIDController(rtol=rel_tol, atol=abs_tol, step_ts=step_ts)


def _diffeqsolve(
    problem: ODEProblem,
    config: SolverConfig,
    t0: float,
    t1: float,
    y0: Array,
    saveat: diffrax.SaveAt,
    step_ts: Array | None = None,
) -> diffrax.Solution:
    dtype = get_dtype()
    dt0 = None
    if config.dt0 is not None:
        dt0 = jnp.asarray(math.copysign(config.dt0, t1 - t0), dtype=dtype)

    logger.debug("Solving %s-shaped problem from t=%s to t=%s", y0.shape, t0, t1)

    solution = diffrax.diffeqsolve(
        _make_term(problem),
        config.make_solver(),
        t0=jnp.asarray(t0, dtype=dtype),
        t1=jnp.asarray(t1, dtype=dtype),
        dt0=dt0,
        y0=y0,
        args=problem.p,
        saveat=saveat,
        stepsize_controller=_make_controller(config, step_ts),
        event=problem.callback,
        max_steps=config.max_steps,
        throw=False,
    )
    if not any(bool(solution.result == r) for r in _ACCEPTED_RESULTS):
        raise SolverFailureError(solution.result, t0, t1)
    return solution


def get_sol(
    problem: ODEProblem,
    config: SolverConfig | None = None,
    saveat: Any = None,
) -> tuple[Array, Array]:
    """Solve *problem* and return the sampled states and times.

    Without *saveat* only the final state is kept. With *saveat* the
    solution is sampled exactly at those times; if the problem carries a
    step-triggered event, the sample times are also used as solver stop
    times so that adaptive stepping cannot step over them.

    Args:
        problem: Problem to solve.
        config: Solver configuration. Defaults to :class:`SolverConfig`.
        saveat: Optional increasing sample times within ``problem.tspan``.

    Returns:
        tuple: ``(ys, ts)`` with ``ys[i]`` the state at ``ts[i]``.

    Raises:
        SolverFailureError: If diffrax does not reach the final time.
    """
    if config is None:
        config = SolverConfig()
    t0, t1 = problem.tspan
    y0 = jnp.asarray(problem.u0)

    if saveat is None:
        if t0 == t1:
            return y0[None], jnp.asarray([t0], dtype=get_dtype())
        solution = _diffeqsolve(problem, config, t0, t1, y0, diffrax.SaveAt(t1=True))
    else:
        ts = jnp.asarray(saveat, dtype=get_dtype())
        step_ts = ts if use_stop_times(problem) else None
        solution = _diffeqsolve(problem, config, t0, t1, y0, diffrax.SaveAt(ts=ts), step_ts)

    return solution.ys, solution.ts


class Integrator:
    """Handle advancing one problem piece by piece.

    Holds the current time :attr:`t` and state :attr:`u`. Each call to
    :meth:`integrate` or :meth:`step` runs the solver from the current
    point to the requested time. The handle can be reset with
    :meth:`reinit` and reused for a new run.

    Args:
        problem: The problem to advance.
        config: Solver configuration. Defaults to :class:`SolverConfig`.

    Examples:
        ```python
        from dynamicsjax.systems import lorenz
        from dynamicsjax.continuous import integrator
        integ = integrator(lorenz(), 100.0)
        integ.step(0.5)
        integ.t  # 0.5
        ```
    """

    def __init__(self, problem: ODEProblem, config: SolverConfig | None = None) -> None:
        self.problem = problem
        self.config = SolverConfig() if config is None else config
        self.t = float(problem.tspan[0])
        self.u = jnp.asarray(problem.u0)
        self.terminated = False

    def integrate(self, t: float) -> Array:
        """Advance to time *t* and return the new state.

        If an event terminates the solve early, :attr:`t` is the event time
        and :attr:`terminated` is set.
        """
        t = float(t)
        if t == self.t:
            return self.u
        solution = _diffeqsolve(
            self.problem, self.config, self.t, t, self.u, diffrax.SaveAt(t1=True)
        )
        self.u = solution.ys[-1]
        self.t = float(solution.ts[-1])
        self.terminated = bool(solution.result == diffrax.RESULTS.event_occurred)
        return self.u

    def step(self, dt: float) -> Array:
        """Advance by *dt* and return the new state."""
        return self.integrate(self.t + dt)

    def set_u(self, u: Any) -> None:
        """Replace the current state without changing the time.

        Raises:
            ShapeMismatchError: If *u* has a different shape.
        """
        u = jnp.asarray(u, dtype=self.u.dtype)
        if u.shape != self.u.shape:
            raise ShapeMismatchError("Integrator state", self.u.shape, u.shape)
        self.u = u

    def reinit(self, u0: Any = None, t0: float | None = None) -> None:
        """Reset to *u0* at *t0*, defaulting to the problem's initial values."""
        self.u = jnp.asarray(self.problem.u0)
        if u0 is not None:
            self.set_u(u0)
        self.t = float(self.problem.tspan[0] if t0 is None else t0)
        self.terminated = False


def integrator(
    ds: ContinuousDS,
    t: Any = None,
    state: Any = None,
    config: SolverConfig | None = None,
) -> Integrator:
    """Return an :class:`Integrator` for the system itself.

    Args:
        ds: The system.
        t: Final time (initial time zero) or ``(t0, t1)`` span. Defaults
            to the system's span.
        state: Initial state. Defaults to the system's state.
        config: Solver configuration.
    """
    return Integrator(derive_problem(ds, t=t, state=state), config)


def variational_integrator(
    ds: ContinuousDS,
    S: Any,
    t: Any = None,
    config: SolverConfig | None = None,
) -> Integrator:
    """Return an :class:`Integrator` for the variational equations of *ds*.

    See :func:`~dynamicsjax.continuous.tangent.variational_problem` for the
    layout of *S*.
    """
    return Integrator(variational_problem(ds, S, t), config)


def parallel_integrator(
    ds: ContinuousDS,
    S: Any,
    t: Any = None,
    config: SolverConfig | None = None,
) -> Integrator:
    """Return an :class:`Integrator` evolving the columns of *S* in parallel.

    See :func:`~dynamicsjax.continuous.tangent.parallel_problem`.
    """
    return Integrator(parallel_problem(ds, S, t), config)
