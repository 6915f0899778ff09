"""Continuous dynamical systems and their tangent-space dynamics.

Provides the system type, problem derivation, the variational and parallel
augmented problems, and the drivers that evolve them with diffrax.

Available components:

- :class:`ContinuousDS` -- State, vector field, parameters and Jacobian
- :class:`ODEProblem` -- Problem description handed to the solver
- :class:`SolverConfig` -- Solver choice, tolerances and step budget
- :class:`Trajectory` -- Uniformly sampled solution
- :func:`derive_jacobian` -- Analytic or autodiff Jacobian routine
- :func:`derive_problem` -- New problem from a system with overrides
- :func:`variational_problem` -- State plus deviation vectors
- :func:`parallel_problem` -- Independent copies of the state
- :func:`get_sol` -- Solve a problem with diffrax
- :class:`Integrator` -- Reusable piecewise solve handle
- :func:`evolve` / :func:`evolve_inplace` -- Final state after a time
- :func:`trajectory` -- Sampled solution on a uniform grid
- :func:`lyapunov_spectrum` / :func:`lyapunov_max` -- Lyapunov exponents
"""

from dynamicsjax.continuous._types import SOLVERS, ODEProblem, SolverConfig, Trajectory
from dynamicsjax.continuous.dataset import trajectory_to_dataframe
from dynamicsjax.continuous.evolution import (
    check_tolerances,
    evolve,
    evolve_inplace,
    trajectory,
)
from dynamicsjax.continuous.jacobian import derive_jacobian, validate_jacobian
from dynamicsjax.continuous.lyapunov import lyapunov_max, lyapunov_spectrum
from dynamicsjax.continuous.problem import (
    derive_problem,
    merge_callbacks,
    resolve_tspan,
    use_stop_times,
)
from dynamicsjax.continuous.solve import (
    Integrator,
    get_sol,
    integrator,
    parallel_integrator,
    variational_integrator,
)
from dynamicsjax.continuous.system import ContinuousDS
from dynamicsjax.continuous.tangent import parallel_problem, variational_problem

__all__ = [
    "SOLVERS",
    "ODEProblem",
    "SolverConfig",
    "Trajectory",
    "ContinuousDS",
    "derive_jacobian",
    "validate_jacobian",
    "derive_problem",
    "merge_callbacks",
    "resolve_tspan",
    "use_stop_times",
    "variational_problem",
    "parallel_problem",
    "get_sol",
    "Integrator",
    "integrator",
    "variational_integrator",
    "parallel_integrator",
    "evolve",
    "evolve_inplace",
    "trajectory",
    "check_tolerances",
    "trajectory_to_dataframe",
    "lyapunov_spectrum",
    "lyapunov_max",
]
