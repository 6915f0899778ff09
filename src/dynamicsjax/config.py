"""Module-wide floating-point precision configuration.

Provides ``set_dtype`` and ``get_dtype`` to control the float dtype used
when dynamicsjax converts plain Python sequences (states, time grids) to
arrays.  The default is ``jnp.float32``, matching JAX's own default.
Switching to ``jnp.float64`` automatically enables JAX's 64-bit mode
(``jax_enable_x64``), which is what most dynamical-systems work needs.

Call ``set_dtype`` **before** any system is created or any solve is
compiled, just like JAX's own ``jax.config.update("jax_enable_x64", True)``.
Arrays that already carry a float dtype are never recast, so a system built
from a ``float64`` state stays ``float64`` regardless of this setting.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_VALID_DTYPES = (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64)

_dtype = jnp.float32


def set_dtype(dtype) -> None:
    """Set the module-wide float dtype for dynamicsjax.

    If *dtype* is ``jnp.float64``, JAX's 64-bit mode is automatically
    enabled via ``jax.config.update("jax_enable_x64", True)``.

    Args:
        dtype: One of ``jnp.float16``, ``jnp.bfloat16``, ``jnp.float32``,
            or ``jnp.float64``.

    Raises:
        ValueError: If *dtype* is not a supported float type.
    """
    global _dtype
    if dtype not in _VALID_DTYPES:
        raise ValueError(
            f"Unsupported dtype {dtype}. Must be one of: "
            f"jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64"
        )
    if dtype == jnp.float64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Return the current module-wide float dtype.

    Returns:
        The active float dtype (default ``jnp.float32``).
    """
    return _dtype


def get_default_tolerances() -> tuple[float, float]:
    """Return the dtype-adaptive default solver tolerances.

    The tolerances scale with the precision of the configured float dtype:

    - ``float64``:  ``(1e-9, 1e-9)``
    - ``float32``:  ``(1e-6, 1e-6)``
    - ``float16`` / ``bfloat16``: ``(1e-3, 1e-3)``

    Returns:
        tuple[float, float]: ``(abs_tol, rel_tol)``.
    """
    if _dtype == jnp.float64:
        return 1e-9, 1e-9
    if _dtype == jnp.float32:
        return 1e-6, 1e-6
    # float16 and bfloat16
    return 1e-3, 1e-3
