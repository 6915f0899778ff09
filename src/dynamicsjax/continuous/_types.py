"""Type definitions for continuous dynamical systems.

Provides the core data types shared by the continuous-system modules:

- :class:`ODEProblem`: The problem description handed to the solver: vector
  field, initial condition, time span, parameters, and optional callback and
  mass matrix.
- :class:`SolverConfig`: Solver choice, tolerances and step budget for
  every solve performed through dynamicsjax.
- :class:`Trajectory`: Uniformly sampled solution of a system.

``ODEProblem`` and ``Trajectory`` are :class:`~typing.NamedTuple` instances.
The parameter container of an ``ODEProblem`` is stored by reference: two
problems derived from the same system hold the very same object.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, NamedTuple

import diffrax
from jax import Array

from dynamicsjax.config import get_default_tolerances

SOLVERS = {
    "tsit5": diffrax.Tsit5,
    "dopri5": diffrax.Dopri5,
    "dopri8": diffrax.Dopri8,
    "bosh3": diffrax.Bosh3,
    "heun": diffrax.Heun,
    "midpoint": diffrax.Midpoint,
    "ralston": diffrax.Ralston,
    "kvaerno3": diffrax.Kvaerno3,
    "kvaerno4": diffrax.Kvaerno4,
    "kvaerno5": diffrax.Kvaerno5,
}
"""Adaptive diffrax solvers selectable by name in :class:`SolverConfig`."""


class ODEProblem(NamedTuple):
    """Description of an initial value problem ``du/dt = f(u, p, t)``.

    Attributes:
        f: Vector field ``f(u, p, t) -> du``.
        u0: Initial condition. A vector of shape ``(D,)`` for a plain
            system, a matrix for augmented (variational or parallel) states.
        tspan: ``(t0, t1)`` integration interval.
        p: Parameter container, shared by reference.
        callback: Optional ``diffrax.Event``. An event without a root finder
            is step-triggered: its condition is checked at the end of every
            accepted step.
        mass_matrix: Optional ``(D, D)`` constant mass matrix ``M`` for
            ``M du/dt = f(u, p, t)``. ``None`` means the identity.
        step_events: Whether any event merged into *callback* was
            step-triggered. A merged event has a single root finder, so
            this is recorded separately.
    """

    f: Callable[[Array, Any, Any], Array]
    u0: Array
    tspan: tuple
    p: Any = None
    callback: Any = None
    mass_matrix: Array | None = None
    step_events: bool = False


@dataclass(frozen=True)
class SolverConfig:
    """Configuration of the diffrax solve behind every evolution call.

    Args:
        solver: Name of an adaptive solver from :data:`SOLVERS` or a
            ``diffrax.AbstractSolver`` instance.
        abs_tol: Absolute tolerance. ``None`` uses the dtype-adaptive
            default from :func:`~dynamicsjax.config.get_default_tolerances`.
        rel_tol: Relative tolerance. ``None`` uses the dtype-adaptive
            default.
        max_steps: Maximum number of solver steps per solve.
        dt0: Initial step size. ``None`` lets diffrax choose.

    Examples:
        ```python
        from dynamicsjax.continuous import SolverConfig
        config = SolverConfig(solver="tsit5", abs_tol=1e-8, rel_tol=1e-8)
        config.tolerances()
        ```
    """

    solver: Any = "dopri8"
    abs_tol: float | None = None
    rel_tol: float | None = None
    max_steps: int = 100_000
    dt0: float | None = None

    def __post_init__(self) -> None:
        if isinstance(self.solver, str):
            if self.solver not in SOLVERS:
                raise ValueError(
                    f"solver must be one of {sorted(SOLVERS)}, got '{self.solver}'"
                )
        elif not isinstance(self.solver, diffrax.AbstractSolver):
            raise ValueError(
                f"solver must be a name or a diffrax solver, got {type(self.solver)}"
            )
        if self.abs_tol is not None and self.abs_tol <= 0:
            raise ValueError(f"abs_tol must be positive, got {self.abs_tol}")
        if self.rel_tol is not None and self.rel_tol <= 0:
            raise ValueError(f"rel_tol must be positive, got {self.rel_tol}")
        if self.max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {self.max_steps}")

    def tolerances(self) -> tuple[float, float]:
        """Return ``(abs_tol, rel_tol)`` with defaults filled in."""
        default_abs, default_rel = get_default_tolerances()
        abs_tol = default_abs if self.abs_tol is None else self.abs_tol
        rel_tol = default_rel if self.rel_tol is None else self.rel_tol
        return abs_tol, rel_tol

    def make_solver(self) -> diffrax.AbstractSolver:
        """Return the diffrax solver instance for this configuration."""
        if isinstance(self.solver, str):
            return SOLVERS[self.solver]()
        return self.solver


class Trajectory(NamedTuple):
    """Solution of a system sampled on a uniform time grid.

    Attributes:
        t: Sample times of shape ``(N,)``, increasing.
        states: Sampled states of shape ``(D, N)``. Column ``j`` is the
            state at ``t[j]``.
    """

    t: Array
    states: Array
