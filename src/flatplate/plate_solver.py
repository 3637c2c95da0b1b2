"""Supersonic viscous flow over a flat plate.

Marches the full 2D compressible Navier-Stokes equations to steady state
with MacCormack's explicit predictor-corrector scheme. Each iteration:

    dt -> predictor -> boundaries -> corrector -> boundaries -> convergence
"""

import logging

import numpy as np

from .base_solver import SteadyStateSolver
from .boundary import apply_boundary_conditions
from .convergence import check_convergence
from .datastructures import Fields, PlateParameters, PlateSolverFields
from .maccormack import MacCormackScheme
from .step_size import compute_spatial_steps, compute_time_step

log = logging.getLogger(__name__)


class SupersonicPlateSolver(SteadyStateSolver):
    """MacCormack solver for supersonic flow past a flat plate.

    Owns the grid field store and geometry; the scheme, boundary enforcer
    and convergence check operate on them per call.

    Parameters
    ----------
    params : PlateParameters
        Grid size, free-stream conditions and iteration controls.
    """

    Parameters = PlateParameters

    def __init__(self, **kwargs):
        """Initialize solver, geometry and flow field."""
        super().__init__(**kwargs)

        self.flow = self.params.flow_parameters()
        self.imax, self.jmax = self.params.imax, self.params.jmax
        self.shape_full = (self.imax, self.jmax)

        # Geometry is fixed for the whole run
        self.dx, self.dy = compute_spatial_steps(self.flow, self.imax, self.jmax)
        self.x, self.y = np.meshgrid(
            np.arange(self.imax) * self.dx,
            np.arange(self.jmax) * self.dy,
            indexing="ij",
        )

        self.arrays = PlateSolverFields.allocate(self.imax, self.jmax)
        self.scheme = MacCormackScheme(self.imax, self.jmax)

        log.info(
            f"Grid {self.imax}x{self.jmax}, M={self.flow.mach_inf}, "
            f"Re_L={self.flow.reynolds:.1f}, dx={self.dx:.4e}, dy={self.dy:.4e}"
        )

        self.initialize()

    def initialize(self):
        """Set the initial flow field.

        Free stream everywhere, no-slip isothermal wall along j=0 (i >= 1)
        and a zero-velocity leading-edge node.
        """
        f, a = self.flow, self.arrays

        a.T[:] = f.t_inf
        a.p[:] = f.p_inf
        a.rho[:] = f.p_inf / (f.t_inf * f.R)
        a.u[:] = f.mach_inf * f.a_inf
        a.v[:] = 0.0
        a.M[:] = f.mach_inf
        a.e[:] = f.cv * f.t_inf

        # Wall
        a.T[1:, 0] = f.t_wall
        a.u[1:, 0] = 0.0
        a.v[1:, 0] = 0.0
        a.M[1:, 0] = 0.0
        a.rho[1:, 0] = f.p_inf / (f.t_wall * f.R)
        a.e[1:, 0] = f.cv * f.t_wall

        # Leading edge
        a.u[0, 0] = 0.0
        a.v[0, 0] = 0.0
        a.M[0, 0] = 0.0

        a.snapshot_density()

    def step(self):
        """Perform one MacCormack iteration.

        Returns
        -------
        float
            Time step used for this iteration.
        """
        a = self.arrays

        dt = compute_time_step(a, self.dx, self.dy, self.flow, self.params.safety_factor)

        self.scheme.update_predictor(dt, self.dx, self.dy, a, self.flow)
        apply_boundary_conditions(a, self.flow)

        self.scheme.update_corrector(dt, self.dx, self.dy, a, self.flow)
        apply_boundary_conditions(a, self.flow)

        return dt

    def _snapshot(self):
        self.arrays.snapshot_density()

    def _check_convergence(self, tolerance):
        return check_convergence(self.arrays, self.arrays.rho_prev, tolerance)

    def _finalize_fields(self):
        """Copy the final primitive fields and geometry into Fields."""
        a = self.arrays
        self.fields = Fields(
            x=self.x.ravel().copy(),
            y=self.y.ravel().copy(),
            p=a.p.ravel().copy(),
            rho=a.rho.ravel().copy(),
            T=a.T.ravel().copy(),
            u=a.u.ravel().copy(),
            v=a.v.ravel().copy(),
            e=a.e.ravel().copy(),
            M=a.M.ravel().copy(),
            dx=self.dx,
            dy=self.dy,
            shape=self.shape_full,
        )

    def _archive_tables(self):
        return {"flow": self.flow.to_dataframe()}
