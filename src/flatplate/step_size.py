"""Grid spacing and adaptive time step for the explicit scheme."""

import math

import numpy as np
from numba import njit

from .boundary import boundary_kind
from .errors import NumericalInstabilityError
from .physics import viscosity


def compute_spatial_steps(params, imax, jmax):
    """Uniform grid spacing (dx, dy) from the plate length.

    The wall-normal extent is five laminar boundary-layer thicknesses,
    ``delta = 5 L / sqrt(Re_L)``, evaluated at the free stream.

    Parameters
    ----------
    params : FlowParameters
        Non-dimensional flow constants.
    imax, jmax : int
        Number of nodes in the streamwise and wall-normal directions.

    Returns
    -------
    dx, dy : float
    """
    dx = params.plate_length / imax

    rho = params.p_inf / (params.t_inf * params.R)
    u = params.mach_inf * params.a_inf
    Re = rho * u * params.plate_length / params.mu_inf
    delta = 5.0 * params.plate_length / math.sqrt(Re)

    dy = 5.0 * delta / jmax
    return dx, dy


@njit(cache=True, nogil=True, error_model="numpy")
def _cfl_time_steps(u, v, rho, T, mu, dx, dy, gamma, R, prandtl):
    """Local CFL time step at every node, including viscous diffusion."""
    imax, jmax = rho.shape
    inv_dx2 = 1.0 / (dx * dx)
    inv_dy2 = 1.0 / (dy * dy)
    geom = math.sqrt(inv_dx2 + inv_dy2)
    dt_cfl = np.empty((imax, jmax), dtype=np.float64)

    for i in range(imax):
        for j in range(jmax):
            nu = max(4.0 / 3.0 * mu[i, j], gamma * mu[i, j] / prandtl) / rho[i, j]
            a = np.sqrt(gamma * R * T[i, j])
            dt_cfl[i, j] = 1.0 / (
                abs(u[i, j]) / dx
                + abs(v[i, j]) / dy
                + a * geom
                + 2.0 * nu * (inv_dx2 + inv_dy2)
            )

    return dt_cfl


def compute_time_step(fields, dx, dy, params, safety_factor=0.6):
    """Stable time step for the current flow state.

    Parameters
    ----------
    fields : PlateSolverFields
        Current grid state.
    dx, dy : float
        Grid spacing.
    params : FlowParameters
        Non-dimensional flow constants.
    safety_factor : float
        Courant number applied to the smallest local bound.

    Returns
    -------
    float
        Time step ``safety_factor * min(dt_cfl)``.

    Raises
    ------
    NumericalInstabilityError
        If the resulting time step is non-finite or non-positive.
    """
    mu = viscosity(fields.T, params)
    with np.errstate(divide="ignore", invalid="ignore"):
        dt_cfl = _cfl_time_steps(
            fields.u, fields.v, fields.rho, fields.T, mu,
            dx, dy, params.gamma, params.R, params.prandtl,
        )

    if not np.all(np.isfinite(dt_cfl)):
        i, j = (int(n) for n in np.argwhere(~np.isfinite(dt_cfl))[0])
        kind = boundary_kind(i, j, *dt_cfl.shape)
        region = kind.name if kind is not None else "INTERIOR"
        raise NumericalInstabilityError(
            f"Non-finite time step bound on {region} node", node=(i, j)
        )

    dt = safety_factor * float(np.min(dt_cfl))
    if not np.isfinite(dt) or dt <= 0.0:
        raise NumericalInstabilityError(f"Degenerate time step {dt!r}")
    return dt
