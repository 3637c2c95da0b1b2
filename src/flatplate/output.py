"""Tabular output of final solution fields."""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

log = logging.getLogger(__name__)

# File name -> Fields attribute
OUTPUT_FIELDS = {
    "Pressure": "p",
    "Density": "rho",
    "Temperature": "T",
    "VelocityX": "u",
    "VelocityY": "v",
}


def write_field(field, dx, dy, name, directory):
    """Write one 2D field as ``<name>.csv`` with one row per grid node.

    Parameters
    ----------
    field : np.ndarray
        Field of shape (imax, jmax).
    dx, dy : float
        Grid spacing; node (i, j) is written at (i*dx, j*dy).
    name : str
        Field name, used for the file name and value column.
    directory : str or Path
        Output directory (created if missing).

    Returns
    -------
    Path
        Path of the written file.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    imax, jmax = field.shape
    x, y = np.meshgrid(np.arange(imax) * dx, np.arange(jmax) * dy, indexing="ij")
    df = pd.DataFrame({"x": x.ravel(), "y": y.ravel(), name: field.ravel()})

    path = directory / f"{name}.csv"
    df.to_csv(path, index=False)
    return path


def write_status(fields, directory):
    """Write ``Status.csv`` recording whether the fields are a converged solution."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    imax, jmax = fields.shape
    df = pd.DataFrame([{"converged": fields.converged, "imax": imax, "jmax": jmax}])
    path = directory / "Status.csv"
    df.to_csv(path, index=False)
    return path


def write_fields(fields, directory):
    """Write pressure, density, temperature, both velocity components and the run status."""
    if not fields.converged:
        log.warning(f"Writing unconverged fields to {directory}")
    paths = []
    for name, attr in OUTPUT_FIELDS.items():
        paths.append(write_field(fields.field_2d(attr), fields.dx, fields.dy, name, directory))
    paths.append(write_status(fields, directory))
    log.info(f"Wrote {len(paths)} field files to {directory}")
    return paths


class FieldWriter:
    """Output collaborator bound to a directory, for ``solver.solve(writer=...)``."""

    def __init__(self, directory):
        self.directory = Path(directory)
        self.paths = []

    def __call__(self, fields):
        self.paths = write_fields(fields, self.directory)
