"""Exception and warning types raised by dynamicsjax.

Every error derives from :class:`DynamicsError` and additionally from the
builtin exception closest in meaning, so callers can catch either.
Validation errors are raised at construction or at the offending call,
never deferred to the first solver step.
"""

from __future__ import annotations

__all__ = [
    "DynamicsError",
    "InvalidStateShapeError",
    "ShapeMismatchError",
    "TypeMismatchError",
    "InvalidTimeSpanError",
    "SolverFailureError",
    "ToleranceWarning",
]


class DynamicsError(Exception):
    """Base error for the dynamicsjax package."""


class InvalidStateShapeError(DynamicsError, ValueError):
    """Raised when a state is not a non-empty flat numeric vector."""


class ShapeMismatchError(DynamicsError, ValueError):
    """Raised when an array's shape disagrees with the system dimension."""

    def __init__(self, what: str, expected: tuple, got: tuple):
        self.expected = expected
        self.got = got
        super().__init__(f"{what} must have shape {expected}, got {got}")


class TypeMismatchError(DynamicsError, TypeError):
    """Raised when the state and the Jacobian have different number types."""

    def __init__(self, state_dtype, jacobian_dtype):
        self.state_dtype = state_dtype
        self.jacobian_dtype = jacobian_dtype
        super().__init__(
            "The state and the Jacobian must have the same number type: "
            f"state is {state_dtype}, Jacobian is {jacobian_dtype}"
        )


class InvalidTimeSpanError(DynamicsError, ValueError):
    """Raised when a requested evolution time is not a positive duration."""


class SolverFailureError(DynamicsError, RuntimeError):
    """Raised when diffrax reports that a solve did not succeed.

    The diffrax ``RESULTS`` item is kept on :attr:`result` untouched.
    """

    def __init__(self, result, t0, t1):
        self.result = result
        self.t0 = t0
        self.t1 = t1
        super().__init__(f"Integration from t={t0} to t={t1} failed: {result}")


class ToleranceWarning(UserWarning):
    """Solver tolerances are looser than the quantity being measured."""
