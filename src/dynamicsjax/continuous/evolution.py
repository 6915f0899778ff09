"""Evolution of continuous systems.

- :func:`evolve` returns the state of a system after a given time.
- :func:`evolve_inplace` does the same and stores the result in the system.
- :func:`trajectory` samples the solution on a uniform time grid.
- :func:`check_tolerances` warns when solver tolerances are too loose for a
  quantity of interest.
"""

from __future__ import annotations

import math
import warnings
from typing import TYPE_CHECKING, Any

import numpy as np
from jax import Array

from dynamicsjax.continuous._types import SolverConfig, Trajectory
from dynamicsjax.continuous.problem import derive_problem, resolve_tspan
from dynamicsjax.continuous.solve import get_sol
from dynamicsjax.errors import InvalidTimeSpanError, ToleranceWarning

if TYPE_CHECKING:
    from dynamicsjax.continuous.system import ContinuousDS


def evolve(
    ds: ContinuousDS,
    t: Any = 1.0,
    state: Any = None,
    config: SolverConfig | None = None,
) -> Array:
    """Evolve *ds* and return the final state. The system is not modified.

    Args:
        ds: The system.
        t: Final time (initial time zero) or ``(t0, t1)`` span.
        state: Initial state. Defaults to the system's state.
        config: Solver configuration.

    Returns:
        jax.Array: State at the end of the span. A zero-length span returns
        the initial state unchanged.

    Raises:
        SolverFailureError: If the solver does not reach the final time.

    Examples:
        ```python
        from dynamicsjax.systems import lorenz
        from dynamicsjax.continuous import evolve
        ds = lorenz()
        u = evolve(ds, 1.0)
        ```
    """
    problem = derive_problem(ds, t=t, state=state)
    ys, _ = get_sol(problem, config)
    return ys[-1]


def evolve_inplace(
    ds: ContinuousDS,
    t: Any = 1.0,
    config: SolverConfig | None = None,
) -> Array:
    """Evolve *ds* from its current state and store the result as its state.

    Returns:
        jax.Array: The new state of the system.
    """
    ds.set_state(evolve(ds, t, config=config))
    return ds.state


def trajectory(
    ds: ContinuousDS,
    T: Any,
    dt: float = 0.05,
    config: SolverConfig | None = None,
) -> Trajectory:
    """Sample the solution of *ds* every *dt* over a time span.

    The grid is ``t0, t0 + dt, t0 + 2 dt, ...`` up to ``t1``, including
    ``t1`` when it falls on the grid.

    Args:
        ds: The system. Its current state is the initial condition.
        T: Total time (initial time zero) or ``(t0, t1)`` span.
        dt: Sampling interval.
        config: Solver configuration.

    Returns:
        Trajectory: ``t`` of shape ``(N,)`` and ``states`` of shape
        ``(D, N)``, one column per grid point in grid order.

        Every ``diffrax.Event`` carried by the system terminates the solve.
        If one fires before ``t1``, the columns for grid points after the
        event time are filled with ``inf``; test with ``jnp.isfinite``.

    Raises:
        InvalidTimeSpanError: If the total time or *dt* is not positive.
    """
    t0, t1 = resolve_tspan(T)
    if t1 - t0 <= 0:
        raise InvalidTimeSpanError(f"Total time must be positive, got span ({t0}, {t1})")
    if dt <= 0:
        raise InvalidTimeSpanError(f"Sampling interval dt must be positive, got {dt}")

    n = int(math.floor((t1 - t0) / dt + 1e-9)) + 1
    grid = np.minimum(t0 + dt * np.arange(n), t1)

    problem = derive_problem(ds, tspan=(t0, t1))
    ys, ts = get_sol(problem, config, saveat=grid)
    return Trajectory(t=ts, states=ys.T)


def check_tolerances(d0: float, config: SolverConfig | None = None) -> None:
    """Warn if the active tolerances are much larger than *d0*.

    Results measuring distances of order *d0* (e.g. the initial separation
    in divergence studies) carry no information when the solver error is
    allowed to exceed ``10 * d0``.

    Args:
        d0: Smallest quantity of interest.
        config: Solver configuration whose tolerances are checked.

    Warns:
        ToleranceWarning: For each tolerance exceeding ``10 * d0``.
    """
    abs_tol, rel_tol = (SolverConfig() if config is None else config).tolerances()
    if abs_tol > 10 * d0:
        warnings.warn(
            f"Absolute tolerance of integration ({abs_tol}) is much larger than "
            f"d0 ({d0}). It is highly suggested to decrease it.",
            ToleranceWarning,
            stacklevel=2,
        )
    if rel_tol > 10 * d0:
        warnings.warn(
            f"Relative tolerance of integration ({rel_tol}) is much larger than "
            f"d0 ({d0}). It is highly suggested to decrease it.",
            ToleranceWarning,
            stacklevel=2,
        )
