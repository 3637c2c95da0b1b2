"""Abstract base solver for steady-state time marching."""

from abc import ABC, abstractmethod
from enum import Enum
import logging
import time

import numpy as np

from .datastructures import Metrics, TimeSeries
from .errors import NumericalInstabilityError
from .reporting import IterationReport, LoggingReporter, MLflowReporter

log = logging.getLogger(__name__)


class RunStatus(Enum):
    """Lifecycle of a solver run."""

    INITIALIZING = "INITIALIZING"
    ITERATING = "ITERATING"
    CONVERGED = "CONVERGED"
    MAX_ITER_REACHED = "MAX_ITER_REACHED"
    ABORTED = "ABORTED"
    DONE = "DONE"


class SteadyStateSolver(ABC):
    """Abstract base solver marching a flow field to steady state.

    Handles:
    - Parameter management (input configuration)
    - Iteration loop with convergence check and run status
    - Progress reporting through observer callbacks
    - Metrics and time series (output results)

    Subclasses must:
    - Set Parameters class attribute (e.g., PlateParameters)
    - Implement step() - advance one iteration, return the time step
    - Implement _snapshot() and _check_convergence()
    - Implement _finalize_fields() to build the output Fields
    """

    Parameters = None  # Subclasses set this to their parameters dataclass

    def __init__(self, params=None, reporters=None, **kwargs):
        """Initialize solver with parameters.

        Parameters
        ----------
        params : Parameters, optional
            Parameters object. If not provided, kwargs are used to create params.
        reporters : list of callable, optional
            Observers called with an IterationReport every
            ``params.report_interval`` iterations. Defaults to logging and
            MLflow reporters.
        **kwargs
            Configuration parameters passed to Parameters class if params is None.
        """
        if params is None:
            if self.Parameters is None:
                raise ValueError("Subclass must define Parameters class attribute")
            params = self.Parameters(**kwargs)

        self.params = params
        self.status = RunStatus.INITIALIZING
        self.metrics = Metrics()
        self.fields = None  # Populated by _finalize_fields() after solve()
        self.time_series = None  # Populated after solve()
        if reporters is None:
            reporters = [LoggingReporter(), MLflowReporter()]
        self.reporters = list(reporters)

    @abstractmethod
    def step(self) -> float:
        """Advance the solution by one iteration.

        Returns
        -------
        float
            Time step used.
        """

    @abstractmethod
    def _snapshot(self):
        """Store the state the convergence check compares against."""

    @abstractmethod
    def _check_convergence(self, tolerance):
        """Return (converged, residual) against the last snapshot."""

    @abstractmethod
    def _finalize_fields(self):
        """Copy final solution from internal arrays to self.fields."""

    def _notify(self, report):
        for reporter in self.reporters:
            reporter(report)

    def _store_results(self, history, final_iter_count, is_converged, wall_time,
                       simulated_time, max_timeseries_points: int = 1000):
        """Store solve results in self.fields, self.time_series, and self.metrics."""
        self._finalize_fields()
        self.fields.converged = is_converged

        # Downsample time series to max_timeseries_points
        if len(history) > max_timeseries_points:
            indices = np.linspace(0, len(history) - 1, max_timeseries_points, dtype=int)
            history = [history[i] for i in indices]

        self.time_series = TimeSeries(
            iteration=[h[0] for h in history],
            density_change=[h[1] for h in history],
            time_step=[h[2] for h in history],
        )

        # Final values, not downsampled
        self.metrics = Metrics(
            iterations=final_iter_count,
            converged=is_converged,
            status=self.status.value,
            final_residual=history[-1][1] if history else float("inf"),
            final_time_step=history[-1][2] if history else 0.0,
            simulated_time=simulated_time,
            wall_time_seconds=wall_time,
        )

    def solve(self, tolerance: float = None, max_iter: int = None, writer=None):
        """March the solution until it stops changing or the iteration cap.

        Stores results in solver attributes:
        - self.fields : Fields dataclass with solution fields
        - self.time_series : TimeSeries dataclass with convergence history
        - self.metrics : Metrics dataclass with solver metrics

        Parameters
        ----------
        tolerance : float, optional
            Convergence tolerance. If None, uses params.tolerance.
        max_iter : int, optional
            Maximum iterations. If None, uses params.max_iterations.
        writer : callable, optional
            Output collaborator called with the final Fields. Also called
            when the iteration cap is hit; ``fields.converged`` tells the two
            apart.

        Raises
        ------
        NumericalInstabilityError
            If the scheme diverges. Status is set to ABORTED and metrics
            are stored before the error propagates.
        """
        if tolerance is None:
            tolerance = self.params.tolerance
        if max_iter is None:
            max_iter = self.params.max_iterations
        report_interval = getattr(self.params, "report_interval", 100)

        history = []
        time_start = time.time()
        simulated_time = 0.0
        final_iter_count = 0
        is_converged = False

        self.status = RunStatus.ITERATING
        try:
            for i in range(max_iter):
                final_iter_count = i + 1

                self._snapshot()
                dt = self.step()
                simulated_time += dt

                is_converged, residual = self._check_convergence(tolerance)
                history.append((i, residual, dt))

                if i % report_interval == 0 or is_converged or i == max_iter - 1:
                    self._notify(IterationReport(
                        iteration=i,
                        density_change=residual,
                        time_step=dt,
                        simulated_time=simulated_time,
                        converged=is_converged,
                    ))

                if is_converged:
                    log.info(f"Converged at iteration {i}")
                    break
        except NumericalInstabilityError as exc:
            if exc.iteration is None:
                exc.iteration = final_iter_count - 1
            self.status = RunStatus.ABORTED
            log.error(f"Run aborted: {exc}")
            self._store_results(history, final_iter_count, False,
                                time.time() - time_start, simulated_time)
            raise

        wall_time = time.time() - time_start
        if is_converged:
            self.status = RunStatus.CONVERGED
        else:
            self.status = RunStatus.MAX_ITER_REACHED
            log.warning(f"Reached iteration cap ({max_iter}) without converging")
        log.info(f"Solver finished in {wall_time:.2f} seconds.")

        self._store_results(history, final_iter_count, is_converged, wall_time, simulated_time)

        if writer is not None:
            writer(self.fields)
        self.status = RunStatus.DONE

    def save(self, filepath):
        """Save complete solver state to HDF5 file.

        Saves params, metrics, time_series, fields and any solver-specific
        tables from _archive_tables() for later analysis.

        Parameters
        ----------
        filepath : str or Path
            Output file path (use .h5 extension).
        """
        from pathlib import Path

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        import pandas as pd
        with pd.HDFStore(filepath, mode='w', complevel=5) as store:
            store['params'] = self.params.to_dataframe()
            store['metrics'] = self.metrics.to_dataframe()
            store['time_series'] = self.time_series.to_dataframe()
            store['fields'] = self.fields.to_dataframe()
            for key, df in self._archive_tables().items():
                store[key] = df

    def _archive_tables(self):
        """Solver-specific DataFrames added to the HDF5 archive, keyed by name."""
        return {}
