"""Data structures for solver configuration and results.

This module defines the configuration and result data structures
for the supersonic flat-plate solver.

Structure:
- FlowParameters: Non-dimensional physical constants (immutable per run)
- PlateParameters: Input configuration (logged to MLflow at start)
- PlateSolverFields: Grid field store (internal solver arrays)
- Metrics: Output results (logged to MLflow at end)
- Fields: Spatial solution data
- TimeSeries: Convergence history
"""

import math
from dataclasses import dataclass, asdict, fields as dataclass_fields
from typing import Optional, List

import numpy as np
import pandas as pd

from .errors import ConfigurationError
from .physics import sutherland


def _require_positive(name, value):
    if value is None or not math.isfinite(value) or value <= 0.0:
        raise ConfigurationError(f"{name} must be finite and positive, got {value!r}")


# ========================================================
# Flow Parameters (Non-dimensional Physical Constants)
# ========================================================


@dataclass(frozen=True)
class FlowParameters:
    """Non-dimensional free-stream and gas constants.

    Reference scales are the free-stream velocity, pressure and temperature,
    density ``P_inf / u_inf**2``, viscosity ``P_inf * L / u_inf`` and the
    length ``L = sqrt(mu_inf * plate_length / (rho_inf * u_inf))``. With
    these scales the free-stream pressure and temperature are exactly 1.0.

    Use :meth:`from_freestream` to build an instance from SI inputs.
    """

    mach_inf: float
    a_inf: float
    u_inf: float
    p_inf: float
    t_inf: float
    rho_inf: float
    t_wall: float
    gamma: float
    R: float
    cv: float
    cp: float
    prandtl: float
    mu_ref: float
    t_ref: float
    sutherland_s: float
    mu_inf: float
    plate_length: float
    length_scale: float

    def __post_init__(self):
        for f in dataclass_fields(self):
            _require_positive(f.name, getattr(self, f.name))
        if self.gamma <= 1.0:
            raise ConfigurationError(f"gamma must be greater than 1, got {self.gamma}")

    @classmethod
    def from_freestream(
        cls,
        mach: float = 4.0,
        plate_length: float = 1.0e-5,
        pressure: float = 101325.0,
        temperature: float = 288.16,
        wall_temperature: Optional[float] = None,
        speed_of_sound: float = 340.28,
        gas_constant: float = 287.0,
        gamma: float = 1.4,
        prandtl: float = 0.71,
        mu_ref: float = 1.7894e-5,
        t_ref: float = 288.16,
        sutherland_constant: float = 110.0,
    ) -> "FlowParameters":
        """Non-dimensionalize SI free-stream conditions.

        Parameters
        ----------
        mach : float
            Free-stream Mach number.
        plate_length : float
            Plate length [m].
        pressure, temperature : float
            Free-stream static pressure [Pa] and temperature [K].
        wall_temperature : float, optional
            Isothermal wall temperature [K]. Defaults to the free-stream
            temperature.
        speed_of_sound : float
            Free-stream speed of sound [m/s].
        gas_constant : float
            Specific gas constant [J/(kg K)].
        gamma : float
            Ratio of specific heats.
        prandtl : float
            Prandtl number.
        mu_ref, t_ref, sutherland_constant : float
            Sutherland law reference viscosity [Pa s], reference temperature
            [K] and constant [K].

        Raises
        ------
        ConfigurationError
            If any input is non-positive, non-finite or inconsistent.
        """
        if wall_temperature is None:
            wall_temperature = temperature

        inputs = {
            "mach": mach,
            "plate_length": plate_length,
            "pressure": pressure,
            "temperature": temperature,
            "wall_temperature": wall_temperature,
            "speed_of_sound": speed_of_sound,
            "gas_constant": gas_constant,
            "gamma": gamma,
            "prandtl": prandtl,
            "mu_ref": mu_ref,
            "t_ref": t_ref,
            "sutherland_constant": sutherland_constant,
        }
        for name, value in inputs.items():
            _require_positive(name, value)
        # cv and cp below divide by gamma - 1
        if gamma <= 1.0:
            raise ConfigurationError(f"gamma must be greater than 1, got {gamma}")

        # Dimensional free stream
        u_dim = mach * speed_of_sound
        rho_dim = pressure / (temperature * gas_constant)
        mu_dim = mu_ref * sutherland(temperature, t_ref, sutherland_constant)
        L = math.sqrt(mu_dim * plate_length / (rho_dim * u_dim))

        # Reference scales
        mu_scale = pressure * L / u_dim
        R = gas_constant * temperature / u_dim**2
        p_inf = pressure / pressure
        t_inf = temperature / temperature

        return cls(
            mach_inf=mach,
            a_inf=speed_of_sound / u_dim,
            u_inf=mach * (speed_of_sound / u_dim),
            p_inf=p_inf,
            t_inf=t_inf,
            rho_inf=p_inf / (R * t_inf),
            t_wall=wall_temperature / temperature,
            gamma=gamma,
            R=R,
            cv=R / (gamma - 1.0),
            cp=gamma * R / (gamma - 1.0),
            prandtl=prandtl,
            mu_ref=mu_ref / mu_scale,
            t_ref=t_ref / temperature,
            sutherland_s=sutherland_constant / temperature,
            mu_inf=mu_dim / mu_scale,
            plate_length=plate_length / L,
            length_scale=L,
        )

    @property
    def reynolds(self) -> float:
        """Free-stream Reynolds number based on plate length."""
        return self.rho_inf * self.u_inf * self.plate_length / self.mu_inf

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class PlateParameters:
    """Run configuration for the supersonic flat-plate solver.

    Physical inputs are in SI units and converted once by
    :meth:`flow_parameters`.
    """

    imax: int = 70
    jmax: int = 70
    mach: float = 4.0
    plate_length: float = 1.0e-5
    pressure: float = 101325.0
    temperature: float = 288.16
    wall_temperature: Optional[float] = None
    speed_of_sound: float = 340.28
    gas_constant: float = 287.0
    gamma: float = 1.4
    prandtl: float = 0.71
    mu_ref: float = 1.7894e-5
    t_ref: float = 288.16
    sutherland_constant: float = 110.0
    safety_factor: float = 0.6
    tolerance: float = 1e-8
    max_iterations: int = 100000
    report_interval: int = 100
    method: str = "MacCormack"

    def __post_init__(self):
        # outflow extrapolation needs two interior columns
        if self.imax < 3 or self.jmax < 3:
            raise ConfigurationError(
                f"Grid must be at least 3x3, got {self.imax}x{self.jmax}"
            )
        if not 0.0 < self.safety_factor <= 1.0:
            raise ConfigurationError(
                f"safety_factor must be in (0, 1], got {self.safety_factor}"
            )
        _require_positive("tolerance", self.tolerance)
        if self.max_iterations < 1:
            raise ConfigurationError("max_iterations must be at least 1")
        if self.report_interval < 1:
            raise ConfigurationError("report_interval must be at least 1")

    def flow_parameters(self) -> FlowParameters:
        """Build the non-dimensional flow constants for this run."""
        return FlowParameters.from_freestream(
            mach=self.mach,
            plate_length=self.plate_length,
            pressure=self.pressure,
            temperature=self.temperature,
            wall_temperature=self.wall_temperature,
            speed_of_sound=self.speed_of_sound,
            gas_constant=self.gas_constant,
            gamma=self.gamma,
            prandtl=self.prandtl,
            mu_ref=self.mu_ref,
            t_ref=self.t_ref,
            sutherland_constant=self.sutherland_constant,
        )

    def to_dataframe(self):
        return pd.DataFrame([self.to_mlflow()])

    def to_mlflow(self) -> dict:
        """Parameters as a flat dict; None values become strings."""
        return {k: ("None" if v is None else v) for k, v in asdict(self).items()}


# ========================================================
# Grid Field Store (Internal Solver Arrays)
# ========================================================


@dataclass
class PlateSolverFields:
    """Primitive flow fields on the (imax, jmax) grid.

    Index i runs along the plate (i=0 leading edge, i=imax-1 outflow) and
    j normal to it (j=0 wall, j=jmax-1 far field).
    """

    T: np.ndarray
    u: np.ndarray
    v: np.ndarray
    p: np.ndarray
    rho: np.ndarray
    e: np.ndarray
    M: np.ndarray

    # Previous iteration density (for convergence check)
    rho_prev: np.ndarray

    @classmethod
    def allocate(cls, imax: int, jmax: int):
        """Allocate all arrays with proper sizes."""
        shape = (imax, jmax)
        return cls(
            T=np.zeros(shape),
            u=np.zeros(shape),
            v=np.zeros(shape),
            p=np.zeros(shape),
            rho=np.zeros(shape),
            e=np.zeros(shape),
            M=np.zeros(shape),
            rho_prev=np.zeros(shape),
        )

    @property
    def shape(self):
        return self.rho.shape

    def snapshot_density(self):
        """Copy the current density into rho_prev."""
        np.copyto(self.rho_prev, self.rho)


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Solver metrics - output results computed during/after solving."""

    iterations: int = 0
    converged: bool = False
    status: str = "INITIALIZING"
    final_residual: float = float("inf")
    final_time_step: float = 0.0
    simulated_time: float = 0.0
    wall_time_seconds: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        """Numeric metrics only (MLflow rejects strings)."""
        return {
            k: float(v) for k, v in asdict(self).items() if not isinstance(v, str)
        }


# ========================================================
# Fields (Spatial Solution Data)
# ========================================================


@dataclass
class Fields:
    """Final solution fields, flattened with one entry per grid node.

    Nodes are ordered with i (streamwise) as the slow index, matching
    ``np.ravel`` of an (imax, jmax) array.
    """

    x: np.ndarray
    y: np.ndarray
    p: np.ndarray
    rho: np.ndarray
    T: np.ndarray
    u: np.ndarray
    v: np.ndarray
    e: np.ndarray
    M: np.ndarray
    dx: float = 0.0
    dy: float = 0.0
    shape: tuple = (0, 0)
    # False when the run stopped at the iteration cap
    converged: bool = False

    def field_2d(self, name: str) -> np.ndarray:
        """Return a field reshaped to (imax, jmax)."""
        return getattr(self, name).reshape(self.shape)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per grid point."""
        return pd.DataFrame(
            {
                name: getattr(self, name)
                for name in ("x", "y", "p", "rho", "T", "u", "v", "e", "M")
            }
        )


# ========================================================
# Time Series (Convergence History)
# ========================================================


@dataclass
class TimeSeries:
    """Convergence history (one value per recorded iteration)."""

    iteration: List[int]
    density_change: List[float]
    time_step: List[float]

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per iteration."""
        return pd.DataFrame(asdict(self))

    def to_mlflow_batch(self):
        """Convert to a list of MLflow Metric entities for batch logging."""
        import time

        from mlflow.entities import Metric

        timestamp = int(time.time() * 1000)
        batch = []
        for step, drho, dt in zip(self.iteration, self.density_change, self.time_step):
            batch.append(Metric("density_change", float(drho), timestamp, int(step)))
            batch.append(Metric("time_step", float(dt), timestamp, int(step)))
        return batch
