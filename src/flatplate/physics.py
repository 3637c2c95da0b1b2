"""Gas properties and variable conversions for the compressible solver.

All functions operate on non-dimensional quantities and accept either
scalars or numpy arrays.
"""

import numpy as np


def sutherland(T, T_ref, S):
    """Sutherland's ratio of a transport property at T to its value at T_ref.

    Parameters
    ----------
    T : float or np.ndarray
        Temperature.
    T_ref : float
        Reference temperature (same units as T).
    S : float
        Sutherland constant (same units as T).
    """
    return (T / T_ref) ** 1.5 * (T_ref + S) / (T + S)


def viscosity(T, params):
    """Dynamic viscosity from Sutherland's law."""
    return params.mu_ref * sutherland(T, params.t_ref, params.sutherland_s)


def thermal_conductivity(mu, params):
    """Thermal conductivity assuming a constant Prandtl number: k = mu*cp/Pr."""
    return mu * params.cp / params.prandtl


def speed_of_sound(T, params):
    return np.sqrt(params.gamma * params.R * T)


def mach_number(u, v, T, params):
    return np.sqrt(u**2 + v**2) / speed_of_sound(T, params)


def primitive_to_conserved(rho, u, v, T, params):
    """Convert primitive variables to U = [rho, rho*u, rho*v, E_t].

    Returns
    -------
    U1, U2, U3, U5 : np.ndarray
        Mass, x-momentum, y-momentum and total energy densities.
    """
    e = params.cv * T
    return rho, rho * u, rho * v, rho * (e + 0.5 * (u**2 + v**2))


def conserved_to_primitive(U1, U2, U3, U5, params):
    """Decode conserved variables into (rho, u, v, p, T, e).

    No guarding is done here; callers check for degenerate density and
    temperature before committing the result.
    """
    rho = U1
    u = U2 / U1
    v = U3 / U1
    e = U5 / U1 - 0.5 * (u**2 + v**2)
    T = e / params.cv
    p = rho * params.R * T
    return rho, u, v, p, T, e
