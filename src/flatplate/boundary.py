"""Boundary conditions for the supersonic flat-plate domain.

The domain edges are split into five regions, applied in a fixed order
after every sub-step. Later regions overwrite nodes shared with earlier
ones (e.g. the far-field row overwrites the top of the inflow column and
the outflow column overwrites the end of the wall row).

    j=jmax-1  +---------- FAR_FIELD ----------+
              |                               |
           INFLOW                          OUTFLOW
              |                               |
    j=0       LE ------------ WALL -----------+
             i=0                          i=imax-1
"""

from enum import Enum

import numpy as np

from .physics import mach_number


class BoundaryKind(Enum):
    """Boundary regions, in application order."""

    LEADING_EDGE = 1
    INFLOW = 2
    FAR_FIELD = 3
    WALL = 4
    OUTFLOW = 5


def _set_state(fields, index, params, u, p, T):
    """Write a Dirichlet state at index (a tuple of slices/ints)."""
    fields.u[index] = u
    fields.v[index] = 0.0
    fields.p[index] = p
    fields.T[index] = T
    fields.rho[index] = p / (params.R * T)
    fields.e[index] = params.cv * T
    fields.M[index] = mach_number(u, 0.0, T, params)


def _apply_leading_edge(fields, params):
    _set_state(fields, (0, 0), params, 0.0, params.p_inf, params.t_inf)


def _apply_inflow(fields, params):
    _set_state(fields, (0, slice(1, None)), params, params.u_inf, params.p_inf, params.t_inf)


def _apply_far_field(fields, params):
    _set_state(fields, (slice(None), -1), params, params.u_inf, params.p_inf, params.t_inf)


def _apply_wall(fields, params):
    # Isothermal no-slip wall; pressure extrapolated from the interior
    p_wall = 2.0 * fields.p[1:, 1] - fields.p[1:, 2]
    _set_state(fields, (slice(1, None), 0), params, 0.0, p_wall, params.t_wall)


def _apply_outflow(fields, params):
    for f in (fields.u, fields.v, fields.p, fields.T, fields.rho, fields.e):
        f[-1, :] = 2.0 * f[-2, :] - f[-3, :]
    with np.errstate(invalid="ignore"):
        fields.M[-1, :] = mach_number(fields.u[-1, :], fields.v[-1, :], fields.T[-1, :], params)


_HANDLERS = {
    BoundaryKind.LEADING_EDGE: _apply_leading_edge,
    BoundaryKind.INFLOW: _apply_inflow,
    BoundaryKind.FAR_FIELD: _apply_far_field,
    BoundaryKind.WALL: _apply_wall,
    BoundaryKind.OUTFLOW: _apply_outflow,
}


def apply_boundary_conditions(fields, params):
    """Overwrite all boundary nodes of every field in place.

    Parameters
    ----------
    fields : PlateSolverFields
        Grid state, modified in place. Interior nodes are not touched.
    params : FlowParameters
        Non-dimensional flow constants.
    """
    for kind in BoundaryKind:
        _HANDLERS[kind](fields, params)


def boundary_kind(i, j, imax, jmax):
    """Region that finally owns node (i, j), or None for interior nodes."""
    if i == imax - 1:
        return BoundaryKind.OUTFLOW
    if j == 0 and i >= 1:
        return BoundaryKind.WALL
    if j == jmax - 1:
        return BoundaryKind.FAR_FIELD
    if i == 0 and j >= 1:
        return BoundaryKind.INFLOW
    if i == 0 and j == 0:
        return BoundaryKind.LEADING_EDGE
    return None
