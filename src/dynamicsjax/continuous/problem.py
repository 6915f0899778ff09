"""Problem descriptions derived from continuous systems.

:func:`derive_problem` produces a new :class:`ODEProblem` from a system by
overriding parts of the system's own problem while keeping its vector field.
Callbacks present on both sides are merged so that both fire.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import diffrax
import jax

from dynamicsjax.continuous._types import ODEProblem
from dynamicsjax.errors import InvalidTimeSpanError

if TYPE_CHECKING:
    from dynamicsjax.continuous.system import ContinuousDS


def resolve_tspan(t: Any) -> tuple[float, float]:
    """Turn a final time or a ``(t0, t1)`` pair into a time span.

    A scalar ``T`` gives ``(0.0, T)``; a pair is used as-is.

    Raises:
        InvalidTimeSpanError: If *t* is neither a scalar nor a pair.
    """
    if isinstance(t, (tuple, list)) or getattr(t, "ndim", 0) == 1:
        if len(t) != 2:
            raise InvalidTimeSpanError(f"A time span must be a pair (t0, t1), got {t!r}")
        return float(t[0]), float(t[1])
    try:
        return 0.0, float(t)
    except (TypeError, ValueError) as err:
        raise InvalidTimeSpanError(f"Cannot interpret {t!r} as a time") from err


def merge_callbacks(a: diffrax.Event | None, b: diffrax.Event | None) -> diffrax.Event | None:
    """Combine two events into one that fires on either condition.

    The conditions of both events are collected into one PyTree of
    conditions. A root finder is kept if either event has one.

    Args:
        a: First event, or ``None``.
        b: Second event, or ``None``.

    Returns:
        The merged event, or whichever argument is not ``None``.
    """
    if a is None:
        return b
    if b is None:
        return a
    conditions = jax.tree_util.tree_leaves((a.cond_fn, b.cond_fn))
    root_finder = a.root_finder if a.root_finder is not None else b.root_finder
    return diffrax.Event(cond_fn=tuple(conditions), root_finder=root_finder)


def _is_step_triggered(event: diffrax.Event | None) -> bool:
    return event is not None and event.root_finder is None


def use_stop_times(problem: ODEProblem) -> bool:
    """Whether solving *problem* on a grid should also stop at that grid.

    True when the problem carries a step-triggered event, i.e. one whose
    condition is only checked at the end of accepted steps (no root
    finder). This includes step-triggered events merged with a root-found
    one, recorded in ``problem.step_events``. Without stop times, adaptive
    stepping could step over the sample times at which such an event
    should be observed.
    """
    if problem.callback is None:
        return False
    return problem.step_events or _is_step_triggered(problem.callback)


def derive_problem(
    ds: ContinuousDS,
    *,
    t: float | None = None,
    tspan: tuple | None = None,
    state: Any = None,
    parameters: Any = None,
    callback: diffrax.Event | None = None,
    mass_matrix: Any = None,
) -> ODEProblem:
    """Create a new problem from *ds*, optionally overriding parts of it.

    The vector field is always the system's. If *tspan* is given it is used
    directly and *t* is disregarded; if only *t* is given the span is
    ``(0, t)``; with neither, the system's span is kept. Arguments left as
    ``None`` keep the system's value.

    If both the system and *callback* carry an event, the two are merged
    with :func:`merge_callbacks` and both fire during integration.

    Args:
        ds: Source system.
        t: Final time, initial time assumed zero.
        tspan: Explicit ``(t0, t1)`` span.
        state: Initial condition. Must have the system's dimension.
        parameters: Parameter container. Stored by reference.
        callback: Additional ``diffrax.Event``.
        mass_matrix: Constant mass matrix.

    Returns:
        ODEProblem: The derived problem.

    Examples:
        ```python
        from dynamicsjax.systems import lorenz
        from dynamicsjax.continuous import derive_problem
        ds = lorenz()
        prob = derive_problem(ds, t=10.0)
        prob.tspan  # (0.0, 10.0)
        ```
    """
    if tspan is not None:
        span = resolve_tspan(tspan)
    elif t is not None:
        span = resolve_tspan(t)
    else:
        span = ds.tspan

    u0 = ds.state if state is None else ds.check_state(state)
    p = ds.parameters if parameters is None else parameters
    M = ds.problem.mass_matrix if mass_matrix is None else mass_matrix
    step_events = (
        ds.problem.step_events
        or _is_step_triggered(callback)
        or _is_step_triggered(ds.problem.callback)
    )

    return ODEProblem(
        f=ds.eom,
        u0=u0,
        tspan=span,
        p=p,
        callback=merge_callbacks(callback, ds.problem.callback),
        mass_matrix=M,
        step_events=step_events,
    )
