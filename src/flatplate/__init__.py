"""Supersonic flat-plate Navier-Stokes solver.

This package marches the 2D compressible Navier-Stokes equations to steady
state with MacCormack's explicit predictor-corrector scheme.

Solver Hierarchy:
-----------------
SteadyStateSolver (abstract base - iteration loop and run status)
└── SupersonicPlateSolver (MacCormack scheme on a flat-plate grid)
"""

from .base_solver import RunStatus, SteadyStateSolver
from .boundary import BoundaryKind, apply_boundary_conditions
from .convergence import check_convergence
from .datastructures import (
    FlowParameters,
    PlateParameters,
    PlateSolverFields,
    Metrics,
    Fields,
    TimeSeries,
)
from .errors import ConfigurationError, FlatPlateError, NumericalInstabilityError
from .maccormack import MacCormackScheme
from .plate_solver import SupersonicPlateSolver
from .step_size import compute_spatial_steps, compute_time_step

__all__ = [
    # Solvers
    "SteadyStateSolver",
    "SupersonicPlateSolver",
    "RunStatus",
    # Configurations
    "FlowParameters",
    "PlateParameters",
    # Data structures
    "PlateSolverFields",
    "Metrics",
    "Fields",
    "TimeSeries",
    # Components
    "MacCormackScheme",
    "BoundaryKind",
    "apply_boundary_conditions",
    "check_convergence",
    "compute_spatial_steps",
    "compute_time_step",
    # Errors
    "FlatPlateError",
    "ConfigurationError",
    "NumericalInstabilityError",
]
