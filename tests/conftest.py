"""Pytest configuration and fixtures for flat-plate solver tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def flow_params():
    """Reference free stream: M=4, 1e-5 m plate, wall at free-stream temperature."""
    from flatplate.datastructures import FlowParameters

    return FlowParameters.from_freestream()


@pytest.fixture
def small_grid_params():
    """Parameters for a small 20x20 test grid."""
    return {
        "imax": 20,
        "jmax": 20,
        "mach": 4.0,
        "plate_length": 1.0e-5,
        "safety_factor": 0.6,
        "tolerance": 1e-8,
        "max_iterations": 200,
        "report_interval": 50,
        "reporters": [],
    }


@pytest.fixture
def uniform_fields(flow_params):
    """20x20 grid uniformly at the free-stream state (no wall treatment)."""
    from flatplate.datastructures import PlateSolverFields

    f = flow_params
    fields = PlateSolverFields.allocate(20, 20)
    fields.T[:] = f.t_inf
    fields.p[:] = f.p_inf
    fields.rho[:] = f.rho_inf
    fields.u[:] = f.u_inf
    fields.v[:] = 0.0
    fields.e[:] = f.cv * f.t_inf
    fields.M[:] = f.mach_inf
    fields.snapshot_density()
    return fields


def copy_fields(fields):
    """Deep copy of every array in a PlateSolverFields."""
    from dataclasses import replace

    return replace(fields, **{
        name: np.array(getattr(fields, name), copy=True)
        for name in ("T", "u", "v", "p", "rho", "e", "M", "rho_prev")
    })


@pytest.fixture
def copy_state():
    return copy_fields
