"""Progress observers for the iteration loop.

The solver calls every registered reporter with an :class:`IterationReport`
at the configured cadence. Reporters are purely observational.
"""

import logging
from dataclasses import dataclass, asdict

import mlflow

log = logging.getLogger(__name__)


@dataclass
class IterationReport:
    """Snapshot of the convergence state after one iteration."""

    iteration: int
    density_change: float
    time_step: float
    simulated_time: float
    converged: bool = False


class LoggingReporter:
    """Log iteration index and convergence metric."""

    def __init__(self, logger=None, level=logging.INFO):
        self.logger = logger or log
        self.level = level

    def __call__(self, report: IterationReport):
        self.logger.log(
            self.level,
            f"Iteration {report.iteration}: max|drho|={report.density_change:.6e}, "
            f"dt={report.time_step:.4e}",
        )


class MLflowReporter:
    """Log convergence metrics to the active MLflow run, if any."""

    def __call__(self, report: IterationReport):
        if not mlflow.active_run():
            return
        metrics = asdict(report)
        metrics.pop("iteration")
        metrics["converged"] = float(metrics["converged"])
        mlflow.log_metrics(metrics, step=report.iteration)
