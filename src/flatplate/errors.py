"""Exception hierarchy for the flat-plate solver."""


class FlatPlateError(Exception):
    """Base class for all solver errors."""


class ConfigurationError(FlatPlateError, ValueError):
    """Flow or run parameters are malformed or physically inconsistent."""


class NumericalInstabilityError(FlatPlateError, ArithmeticError):
    """The explicit scheme produced a degenerate state and the run must abort.

    Parameters
    ----------
    message : str
        Description of the failure.
    iteration : int, optional
        Iteration index at which the failure was detected.
    node : tuple of int, optional
        Grid index (i, j) of the offending node, when known.
    """

    def __init__(self, message, iteration=None, node=None):
        super().__init__(message)
        self.iteration = iteration
        self.node = node

    def __str__(self):
        msg = super().__str__()
        if self.node is not None:
            msg += f" at node {self.node}"
        if self.iteration is not None:
            msg += f" (iteration {self.iteration})"
        return msg
