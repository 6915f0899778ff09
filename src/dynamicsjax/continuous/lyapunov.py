"""Lyapunov exponents of continuous systems.

- :func:`lyapunov_spectrum` evolves ``k`` deviation vectors with the
  variational equations and re-orthonormalizes them with a QR
  decomposition every ``dt``. The logarithms of the diagonal of ``R``
  accumulate the local stretching rates.
- :func:`lyapunov_max` evolves two nearby trajectories in parallel and
  rescales their separation back to ``d0`` every ``dt``.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import jax.numpy as jnp
from jax import Array

from dynamicsjax.continuous._types import SolverConfig
from dynamicsjax.continuous.evolution import check_tolerances, evolve
from dynamicsjax.continuous.solve import parallel_integrator, variational_integrator
from dynamicsjax.errors import InvalidTimeSpanError

if TYPE_CHECKING:
    from dynamicsjax.continuous.system import ContinuousDS

logger = logging.getLogger(__name__)


def _initial_state(ds: ContinuousDS, Ttr: float, config: SolverConfig | None) -> Array:
    if Ttr > 0:
        return evolve(ds, Ttr, config=config)
    return ds.state


def lyapunov_spectrum(
    ds: ContinuousDS,
    N: int,
    k: int | None = None,
    dt: float = 1.0,
    Ttr: float = 0.0,
    config: SolverConfig | None = None,
) -> Array:
    """Compute the ``k`` largest Lyapunov exponents of *ds*.

    Args:
        ds: The system. Its current state is the initial condition.
        N: Number of QR re-orthonormalizations.
        k: Number of exponents. Defaults to the system dimension.
        dt: Time between re-orthonormalizations.
        Ttr: Transient time evolved before the computation starts.
        config: Solver configuration.

    Returns:
        jax.Array: The ``k`` exponents, largest first for typical systems.

    Raises:
        ValueError: If *k* is not in ``1..D`` or *N* is not positive.
        InvalidTimeSpanError: If *dt* is not positive.

    Examples:
        ```python
        from dynamicsjax.systems import lorenz
        from dynamicsjax.continuous import lyapunov_spectrum
        lyapunov_spectrum(lorenz(), N=1000, dt=0.5)  # ~[0.9, 0, -14.6]
        ```
    """
    D = ds.dimension
    k = D if k is None else k
    if not 1 <= k <= D:
        raise ValueError(f"k must be between 1 and {D}, got {k}")
    if N < 1:
        raise ValueError(f"N must be positive, got {N}")
    if dt <= 0:
        raise InvalidTimeSpanError(f"dt must be positive, got {dt}")

    u0 = _initial_state(ds, Ttr, config)
    S = jnp.column_stack([u0, jnp.eye(D, k, dtype=ds.dtype)])
    integ = variational_integrator(ds, S, (0.0, N * dt), config)
    t0 = integ.t

    exponents = jnp.zeros(k, dtype=ds.dtype)
    for _ in range(N):
        integ.step(dt)
        Q, R = jnp.linalg.qr(integ.u[:, 1:])
        exponents = exponents + jnp.log(jnp.abs(jnp.diag(R)))
        integ.set_u(jnp.column_stack([integ.u[:, 0], Q]))

    logger.info("Computed %d Lyapunov exponents from %d QR steps", k, N)
    return exponents / (integ.t - t0)


def lyapunov_max(
    ds: ContinuousDS,
    T: float,
    d0: float = 1e-9,
    dt: float = 0.1,
    Ttr: float = 0.0,
    config: SolverConfig | None = None,
) -> float:
    """Estimate the maximal Lyapunov exponent from two nearby trajectories.

    The second trajectory starts at distance *d0* from the first along the
    diagonal direction. Every *dt* the separation ``d`` is measured,
    ``log(d / d0)`` is accumulated and the second trajectory is pulled back
    to distance *d0*.

    Args:
        ds: The system. Its current state is the initial condition.
        T: Total evolution time.
        d0: Initial and renormalized separation.
        dt: Time between renormalizations.
        Ttr: Transient time evolved before the computation starts.
        config: Solver configuration. Its tolerances are checked against
            *d0*.

    Returns:
        float: The exponent estimate.

    Raises:
        InvalidTimeSpanError: If *T* or *dt* is not positive.

    Warns:
        ToleranceWarning: If the tolerances are too loose for *d0*.
    """
    if T <= 0:
        raise InvalidTimeSpanError(f"Total time must be positive, got {T}")
    if dt <= 0:
        raise InvalidTimeSpanError(f"dt must be positive, got {dt}")
    check_tolerances(d0, config)

    D = ds.dimension
    u0 = _initial_state(ds, Ttr, config)
    direction = jnp.ones(D, dtype=ds.dtype) / math.sqrt(D)
    S = jnp.column_stack([u0, u0 + d0 * direction])
    integ = parallel_integrator(ds, S, (0.0, T), config)
    t0 = integ.t

    total = 0.0
    for _ in range(max(1, round(T / dt))):
        integ.step(dt)
        a = integ.u[:, 0]
        b = integ.u[:, 1]
        d = float(jnp.linalg.norm(b - a))
        total += math.log(d / d0)
        integ.set_u(jnp.column_stack([a, a + (b - a) * (d0 / d)]))

    logger.info("Maximal Lyapunov exponent estimated over t=%s", integ.t - t0)
    return total / (integ.t - t0)
