"""
dynamicsjax is a small library for continuous dynamical systems and their tangent dynamics, implemented in JAX.
"""

from .config import set_dtype, get_dtype, get_default_tolerances

from .errors import (
    DynamicsError,
    InvalidStateShapeError,
    ShapeMismatchError,
    TypeMismatchError,
    InvalidTimeSpanError,
    SolverFailureError,
    ToleranceWarning,
)

from .continuous import (
    ContinuousDS,
    ODEProblem,
    SolverConfig,
    Trajectory,
    Integrator,
    derive_jacobian,
    derive_problem,
    variational_problem,
    parallel_problem,
    get_sol,
    integrator,
    variational_integrator,
    parallel_integrator,
    evolve,
    evolve_inplace,
    trajectory,
    check_tolerances,
    trajectory_to_dataframe,
    lyapunov_spectrum,
    lyapunov_max,
)

from .systems import lorenz, roessler

__all__ = [
    # Config
    "set_dtype",
    "get_dtype",
    "get_default_tolerances",
    # Errors
    "DynamicsError",
    "InvalidStateShapeError",
    "ShapeMismatchError",
    "TypeMismatchError",
    "InvalidTimeSpanError",
    "SolverFailureError",
    "ToleranceWarning",
    # Continuous systems
    "ContinuousDS",
    "ODEProblem",
    "SolverConfig",
    "Trajectory",
    "Integrator",
    "derive_jacobian",
    "derive_problem",
    "variational_problem",
    "parallel_problem",
    "get_sol",
    "integrator",
    "variational_integrator",
    "parallel_integrator",
    # Evolution
    "evolve",
    "evolve_inplace",
    "trajectory",
    "check_tolerances",
    "trajectory_to_dataframe",
    # Chaos indicators
    "lyapunov_spectrum",
    "lyapunov_max",
    # Predefined systems
    "lorenz",
    "roessler",
]
