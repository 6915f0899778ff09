# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "dynamicsjax"]
#
# [tool.uv.sources]
# dynamicsjax = { path = ".." }
# ///
"""Estimate Lyapunov exponents of a predefined chaotic system.

Evolves the system past its transient, computes the full Lyapunov spectrum
with QR re-orthonormalization of the variational equations, estimates the
maximal exponent from two nearby trajectories, and optionally writes a
sampled trajectory to a Parquet file.

Requires dynamicsjax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/lyapunov.py [OPTIONS]

Examples:
    # Lorenz-63 with default parameters
    uv run examples/lyapunov.py --system lorenz --steps 2000

    # Roessler with a faster explicit solver
    uv run examples/lyapunov.py --system roessler --solver tsit5

    # Save the attractor for plotting
    uv run examples/lyapunov.py --output lorenz.parquet --duration 50
"""

import enum
import time
from pathlib import Path
from typing import Annotated

import jax.numpy as jnp
import typer

from dynamicsjax import set_dtype
from dynamicsjax.continuous import (
    SolverConfig,
    evolve_inplace,
    lyapunov_max,
    lyapunov_spectrum,
    trajectory,
    trajectory_to_dataframe,
)
from dynamicsjax.systems import lorenz, roessler

set_dtype(jnp.float64)  # Must be before any JIT compilation


class System(enum.StrEnum):
    lorenz = "lorenz"
    roessler = "roessler"


_FACTORIES = {System.lorenz: lorenz, System.roessler: roessler}


def main(
    system: Annotated[System, typer.Option(help="Predefined system")] = System.lorenz,
    solver: Annotated[str, typer.Option(help="diffrax solver name")] = "dopri8",
    steps: Annotated[int, typer.Option(help="Number of QR re-orthonormalizations")] = 1000,
    dt: Annotated[float, typer.Option(help="Time between re-orthonormalizations")] = 0.5,
    transient: Annotated[float, typer.Option(help="Transient time discarded first")] = 10.0,
    d0: Annotated[float, typer.Option(help="Separation for the maximal exponent")] = 1e-8,
    duration: Annotated[float, typer.Option(help="Duration of the saved trajectory")] = 20.0,
    output: Annotated[Path | None, typer.Option(help="Parquet file for the trajectory")] = None,
):
    config = SolverConfig(solver=solver)
    ds = _FACTORIES[system]()
    print(ds)

    print(f"\n── Stage 1: Evolving past the transient (t={transient}) ──")
    t0 = time.perf_counter()
    evolve_inplace(ds, transient, config=config)
    print(f"  State on the attractor: {ds.state}")
    print(f"  Took {time.perf_counter() - t0:.1f}s")

    print(f"\n── Stage 2: Lyapunov spectrum ({steps} steps of dt={dt}) ──")
    t0 = time.perf_counter()
    spectrum = lyapunov_spectrum(ds, steps, dt=dt, config=config)
    print(f"  Exponents: {[round(float(x), 4) for x in spectrum]}")
    print(f"  Sum: {float(jnp.sum(spectrum)):.4f}")
    print(f"  Took {time.perf_counter() - t0:.1f}s")

    print(f"\n── Stage 3: Maximal exponent from two trajectories (d0={d0}) ──")
    t0 = time.perf_counter()
    lam = lyapunov_max(ds, steps * dt, d0=d0, dt=dt, config=config)
    print(f"  Maximal exponent: {lam:.4f}")
    print(f"  Took {time.perf_counter() - t0:.1f}s")

    if output is not None:
        print(f"\n── Stage 4: Writing trajectory to {output} ──")
        df = trajectory_to_dataframe(trajectory(ds, duration, config=config), ["x", "y", "z"])
        df.write_parquet(output)
        print(f"  Wrote {df.height} samples")

    print("\nDone.")


if __name__ == "__main__":
    typer.run(main)
