"""
Errors raised by the optimization package.

Every error aborts the current run at the point where it is detected;
nothing in the package retries or clamps.
"""
import numpy as np


class ConfigurationError(ValueError):
    """The problem was set up inconsistently: mismatched list sizes, a
    parameter or output that is not a column, a Jacobian whose shape does not
    match the output, or a change in the degrees of freedom mid-run."""


class NotPositiveDefiniteError(np.linalg.LinAlgError):
    """The (damped) Gauss-Newton matrix could not be Cholesky factorized."""


class NotInitializedError(RuntimeError):
    """An algorithm was stepped before ``initialize()`` was called."""
