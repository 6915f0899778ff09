"""Predefined continuous systems.

Each factory returns a :class:`~dynamicsjax.continuous.ContinuousDS` with an
analytic Jacobian. Parameters are stored in a list, so they can be changed
in place after construction (``ds.parameters[1] = 99.0``).
"""

from __future__ import annotations

from collections.abc import Sequence

import jax.numpy as jnp

from dynamicsjax.continuous import ContinuousDS


def _lorenz_eom(u, p, t):
    sigma, rho, beta = p[0], p[1], p[2]
    return jnp.stack(
        [
            sigma * (u[1] - u[0]),
            u[0] * (rho - u[2]) - u[1],
            u[0] * u[1] - beta * u[2],
        ]
    )


def _lorenz_jacobian(u, p, t):
    sigma, rho, beta = p[0], p[1], p[2]
    return jnp.array(
        [
            [-sigma, sigma, 0.0],
            [rho - u[2], -1.0, -u[0]],
            [u[1], u[0], -beta],
        ],
        dtype=u.dtype,
    )


def lorenz(
    u0: Sequence[float] = (0.0, 10.0, 0.0),
    sigma: float = 10.0,
    rho: float = 28.0,
    beta: float = 8.0 / 3.0,
) -> ContinuousDS:
    """The Lorenz-63 system.

    .. math::

        \\dot{x} = \\sigma (y - x), \\quad
        \\dot{y} = x (\\rho - z) - y, \\quad
        \\dot{z} = x y - \\beta z

    The default parameters give the chaotic Lorenz attractor.

    Args:
        u0: Initial state ``(x, y, z)``.
        sigma: Prandtl number.
        rho: Rayleigh number.
        beta: Geometric factor.

    Returns:
        ContinuousDS: System with parameters ``[sigma, rho, beta]``.
    """
    return ContinuousDS(
        u0,
        _lorenz_eom,
        _lorenz_jacobian,
        parameters=[sigma, rho, beta],
    )


def _roessler_eom(u, p, t):
    a, b, c = p[0], p[1], p[2]
    return jnp.stack(
        [
            -u[1] - u[2],
            u[0] + a * u[1],
            b + u[2] * (u[0] - c),
        ]
    )


def _roessler_jacobian(u, p, t):
    a, b, c = p[0], p[1], p[2]
    return jnp.array(
        [
            [0.0, -1.0, -1.0],
            [1.0, a, 0.0],
            [u[2], 0.0, u[0] - c],
        ],
        dtype=u.dtype,
    )


def roessler(
    u0: Sequence[float] = (1.0, -2.0, 0.1),
    a: float = 0.2,
    b: float = 0.2,
    c: float = 5.7,
) -> ContinuousDS:
    """The Rössler system.

    .. math::

        \\dot{x} = -y - z, \\quad
        \\dot{y} = x + a y, \\quad
        \\dot{z} = b + z (x - c)

    Args:
        u0: Initial state ``(x, y, z)``.
        a: First parameter.
        b: Second parameter.
        c: Third parameter.

    Returns:
        ContinuousDS: System with parameters ``[a, b, c]``.
    """
    return ContinuousDS(
        u0,
        _roessler_eom,
        _roessler_jacobian,
        parameters=[a, b, c],
    )
