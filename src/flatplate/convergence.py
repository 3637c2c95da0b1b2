"""Steady-state detection."""

import numpy as np

DEFAULT_TOLERANCE = 1e-8


def check_convergence(fields, previous_density, tolerance=DEFAULT_TOLERANCE):
    """Compare the density field with its value one iteration earlier.

    This says the flow has stopped changing, not that the discretization
    is accurate.

    Parameters
    ----------
    fields : PlateSolverFields
        Current grid state.
    previous_density : np.ndarray
        Density snapshot taken at the start of the iteration.
    tolerance : float
        Largest absolute density change still counted as converged.

    Returns
    -------
    converged : bool
    max_diff : float
        Maximum absolute density change over all nodes.
    """
    max_diff = float(np.max(np.abs(fields.rho - previous_density)))
    return max_diff < tolerance, max_diff
