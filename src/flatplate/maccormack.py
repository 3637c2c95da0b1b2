"""MacCormack predictor-corrector scheme for the 2D compressible Navier-Stokes equations.

The equations are written in conservation form

    dU/dt + dE/dx + dF/dy = 0,   U = [rho, rho*u, rho*v, E_t]

with the viscous stresses and heat fluxes folded into E and F.

Difference directions:
- Predictor: dE/dx and dF/dy forward. Inside E the x-derivatives are
  backward and the y-derivatives central; inside F the y-derivatives are
  backward and the x-derivatives central.
- Corrector: every one-sided direction above is reversed.

Only interior nodes are advanced; boundary nodes are left to the
boundary enforcer.
"""

import logging

import numpy as np

from .errors import NumericalInstabilityError
from .physics import (
    conserved_to_primitive,
    mach_number,
    primitive_to_conserved,
    thermal_conductivity,
    viscosity,
)

log = logging.getLogger(__name__)

FORWARD = "forward"
BACKWARD = "backward"
CENTRAL = "central"

# Density/temperature below this are treated as a collapsed state
STATE_FLOOR = 1e-12


def difference(f, h, axis, direction):
    """First derivative of a 2D field along one axis.

    Parameters
    ----------
    f : np.ndarray
        Field of shape (imax, jmax).
    h : float
        Grid spacing along ``axis``.
    axis : int
        0 for x (streamwise), 1 for y (wall-normal).
    direction : str
        FORWARD, BACKWARD or CENTRAL. Edge nodes where the requested
        stencil does not fit fall back to the one-sided difference that does.
    """
    d = np.empty_like(f)
    fm = np.moveaxis(f, axis, 0)
    dm = np.moveaxis(d, axis, 0)

    if direction == FORWARD:
        dm[:-1] = (fm[1:] - fm[:-1]) / h
        dm[-1] = (fm[-1] - fm[-2]) / h
    elif direction == BACKWARD:
        dm[1:] = (fm[1:] - fm[:-1]) / h
        dm[0] = (fm[1] - fm[0]) / h
    elif direction == CENTRAL:
        dm[1:-1] = (fm[2:] - fm[:-2]) / (2.0 * h)
        dm[0] = (fm[1] - fm[0]) / h
        dm[-1] = (fm[-1] - fm[-2]) / h
    else:
        raise ValueError(f"Unknown difference direction: {direction}")

    return d


def _opposite(direction):
    return BACKWARD if direction == FORWARD else FORWARD


class MacCormackScheme:
    """Explicit predictor-corrector update of the interior grid nodes.

    Holds working buffers only: the conserved state before the predictor
    (needed by the corrector to form the time average) and the predicted
    conserved state.

    Parameters
    ----------
    imax, jmax : int
        Grid dimensions.
    """

    def __init__(self, imax, jmax):
        self.shape = (imax, jmax)
        self.U_old = np.zeros((4, imax, jmax))
        self.U_star = np.zeros((4, imax, jmax))
        self._predicted = False

    # ------------------------------------------------------------------
    # Fluxes
    # ------------------------------------------------------------------

    def fluxes(self, fields, dx, dy, params, inner):
        """Flux vectors E and F with viscous terms.

        Parameters
        ----------
        inner : str
            Direction for the derivatives taken along each flux's own
            axis (x-derivatives in E, y-derivatives in F). Cross
            derivatives are always central.

        Returns
        -------
        E, F : np.ndarray
            Arrays of shape (4, imax, jmax).
        """
        rho, u, v, p, T = fields.rho, fields.u, fields.v, fields.p, fields.T

        mu = viscosity(T, params)
        lam = -2.0 / 3.0 * mu
        k = thermal_conductivity(mu, params)
        Et = rho * (params.cv * T + 0.5 * (u**2 + v**2))

        # E: x-derivatives along `inner`, y-derivatives central
        du_dx = difference(u, dx, 0, inner)
        dv_dx = difference(v, dx, 0, inner)
        dT_dx = difference(T, dx, 0, inner)
        du_dy_c = difference(u, dy, 1, CENTRAL)
        dv_dy_c = difference(v, dy, 1, CENTRAL)

        tau_xx = lam * (du_dx + dv_dy_c) + 2.0 * mu * du_dx
        tau_xy = mu * (du_dy_c + dv_dx)
        qx = -k * dT_dx

        E = np.empty((4,) + rho.shape)
        E[0] = rho * u
        E[1] = rho * u**2 + p - tau_xx
        E[2] = rho * u * v - tau_xy
        E[3] = (Et + p) * u - u * tau_xx - v * tau_xy + qx

        # F: y-derivatives along `inner`, x-derivatives central
        du_dy = difference(u, dy, 1, inner)
        dv_dy = difference(v, dy, 1, inner)
        dT_dy = difference(T, dy, 1, inner)
        du_dx_c = difference(u, dx, 0, CENTRAL)
        dv_dx_c = difference(v, dx, 0, CENTRAL)

        tau_yy = lam * (du_dx_c + dv_dy) + 2.0 * mu * dv_dy
        tau_xy = mu * (du_dy + dv_dx_c)
        qy = -k * dT_dy

        F = np.empty((4,) + rho.shape)
        F[0] = rho * v
        F[1] = rho * u * v - tau_xy
        F[2] = rho * v**2 + p - tau_yy
        F[3] = (Et + p) * v - u * tau_xy - v * tau_yy + qy

        return E, F

    def time_derivative(self, fields, dx, dy, params, direction):
        """dU/dt on interior nodes, shape (4, imax-2, jmax-2).

        ``direction`` is the difference direction of the outer flux
        derivatives; the inner derivatives use the opposite direction.
        """
        E, F = self.fluxes(fields, dx, dy, params, inner=_opposite(direction))

        if direction == FORWARD:
            dE_dx = (E[:, 2:, 1:-1] - E[:, 1:-1, 1:-1]) / dx
            dF_dy = (F[:, 1:-1, 2:] - F[:, 1:-1, 1:-1]) / dy
        else:
            dE_dx = (E[:, 1:-1, 1:-1] - E[:, :-2, 1:-1]) / dx
            dF_dy = (F[:, 1:-1, 1:-1] - F[:, 1:-1, :-2]) / dy

        return -dE_dx - dF_dy

    # ------------------------------------------------------------------
    # Sub-steps
    # ------------------------------------------------------------------

    def update_predictor(self, dt, dx, dy, fields, params):
        """Predictor sub-step: forward-differenced explicit Euler step.

        Saves the current conserved state for the corrector, then writes
        the predicted primitive variables into the interior of ``fields``.
        """
        self.U_old[:] = primitive_to_conserved(
            fields.rho, fields.u, fields.v, fields.T, params
        )
        dU_dt = self.time_derivative(fields, dx, dy, params, FORWARD)

        self.U_star[:] = self.U_old
        self.U_star[:, 1:-1, 1:-1] += dt * dU_dt

        self._commit(self.U_star, fields, params)
        self._predicted = True

    def update_corrector(self, dt, dx, dy, fields, params):
        """Corrector sub-step: backward-differenced average with the predictor.

        ``fields`` must hold the predicted state (after boundary
        enforcement). The new state is
        ``0.5 * (U_old + U_star + dt * dU_star/dt)``.
        """
        if not self._predicted:
            raise RuntimeError("update_corrector called without a preceding predictor")

        self.U_star[:] = primitive_to_conserved(
            fields.rho, fields.u, fields.v, fields.T, params
        )
        dU_dt = self.time_derivative(fields, dx, dy, params, BACKWARD)

        U_new = self.U_star.copy()
        U_new[:, 1:-1, 1:-1] = 0.5 * (
            self.U_old[:, 1:-1, 1:-1] + self.U_star[:, 1:-1, 1:-1] + dt * dU_dt
        )

        self._commit(U_new, fields, params)
        self._predicted = False

    def _commit(self, U, fields, params):
        """Decode interior conserved variables and write all fields at once.

        Raises
        ------
        NumericalInstabilityError
            If any interior density or temperature is non-finite or below
            STATE_FLOOR. Fields are left unchanged in that case.
        """
        interior = U[:, 1:-1, 1:-1]
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            rho, u, v, p, T, e = conserved_to_primitive(
                interior[0], interior[1], interior[2], interior[3], params
            )
            bad = ~(np.isfinite(rho) & np.isfinite(T) & (rho > STATE_FLOOR) & (T > STATE_FLOOR))

        if np.any(bad):
            i, j = np.argwhere(bad)[0] + 1
            log.error(f"Collapsed state at node ({i}, {j}): rho={rho[i - 1, j - 1]}, T={T[i - 1, j - 1]}")
            raise NumericalInstabilityError(
                "Density or temperature collapsed", node=(int(i), int(j))
            )

        fields.rho[1:-1, 1:-1] = rho
        fields.u[1:-1, 1:-1] = u
        fields.v[1:-1, 1:-1] = v
        fields.p[1:-1, 1:-1] = p
        fields.T[1:-1, 1:-1] = T
        fields.e[1:-1, 1:-1] = e
        fields.M[1:-1, 1:-1] = mach_number(u, v, T, params)
