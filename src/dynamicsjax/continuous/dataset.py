"""Export of sampled trajectories to tables."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import polars as pl

from dynamicsjax.continuous._types import Trajectory
from dynamicsjax.errors import ShapeMismatchError


def trajectory_to_dataframe(
    traj: Trajectory,
    names: Sequence[str] | None = None,
) -> pl.DataFrame:
    """Convert a :class:`Trajectory` to a polars DataFrame.

    One row per sample. The first column ``t`` holds the sample times,
    followed by one Float64 column per state component.

    Args:
        traj: Trajectory returned by
            :func:`~dynamicsjax.continuous.evolution.trajectory`.
        names: Column names of the state components. Defaults to
            ``x1, x2, ..., xD``.

    Returns:
        pl.DataFrame: The trajectory table.

    Raises:
        ShapeMismatchError: If *names* does not have one entry per component.

    Examples:
        ```python
        from dynamicsjax.systems import lorenz
        from dynamicsjax.continuous import trajectory, trajectory_to_dataframe
        df = trajectory_to_dataframe(trajectory(lorenz(), 1.0), ["x", "y", "z"])
        ```
    """
    states = np.asarray(traj.states)
    D = states.shape[0]
    if names is None:
        names = [f"x{i + 1}" for i in range(D)]
    elif len(names) != D:
        raise ShapeMismatchError("Column names", (D,), (len(names),))

    columns = {"t": pl.Series(np.asarray(traj.t), dtype=pl.Float64)}
    for name, values in zip(names, states):
        columns[name] = pl.Series(values, dtype=pl.Float64)
    return pl.DataFrame(columns)
