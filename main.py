"""
Supersonic flat plate - entry point for solving and plotting.

Usage:
    python main.py
    python main.py imax=40 jmax=40 solver.max_iterations=5000
    python main.py wall_temperature=400 mlflow.enabled=true
"""

import logging
import os
import sys
import tempfile
from contextlib import nullcontext
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from hydra.core.hydra_config import HydraConfig
from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf

load_dotenv()
sys.path.insert(0, str(Path(__file__).parent / "src"))

from flatplate import NumericalInstabilityError  # noqa: E402
from flatplate.console import report_status  # noqa: E402
from flatplate.output import FieldWriter  # noqa: E402
from flatplate.plotting import plot_convergence, plot_fields  # noqa: E402

log = logging.getLogger(__name__)


def get_experiment_name(cfg: DictConfig) -> str:
    """Build full experiment name with optional prefix."""
    name = cfg.experiment_name
    prefix = cfg.mlflow.get("project_prefix", "")
    if prefix and not name.startswith("/"):
        return f"{prefix}/{name}"
    return name


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    if str(cfg.mlflow.get("mode", "")).lower() in ("files", "local"):
        os.environ.pop("MLFLOW_TRACKING_URI", None)
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = get_experiment_name(cfg)
    try:
        mlflow.set_experiment(experiment_name)
    except Exception as exc:
        experiment_name = f"{experiment_name}-restored"
        log.warning(f"MLflow set_experiment failed ({exc}); using '{experiment_name}'")
        mlflow.set_experiment(experiment_name)

    return experiment_name


def create_solver(cfg: DictConfig):
    """Instantiate solver using Hydra's instantiate on solver subtree.

    Grid and free-stream parameters from the root config are passed to the
    solver constructor.
    """
    solver_cfg = OmegaConf.masked_copy(
        cfg.solver, [k for k in cfg.solver.keys() if k != "name"]
    )
    return instantiate(
        solver_cfg,
        imax=cfg.imax,
        jmax=cfg.jmax,
        mach=cfg.mach,
        plate_length=cfg.plate_length,
        pressure=cfg.pressure,
        temperature=cfg.temperature,
        wall_temperature=cfg.wall_temperature,
        _convert_="partial",
    )


def log_results(solver, run):
    """Log final metrics, time series and fields to the active MLflow run."""
    mlflow.log_metrics(solver.metrics.to_mlflow())
    mlflow.set_tag("status", solver.metrics.status)
    if solver.time_series:
        batch = solver.time_series.to_mlflow_batch()
        if batch:
            mlflow.tracking.MlflowClient().log_batch(run.info.run_id, metrics=batch)

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "fields.csv"
        solver.fields.to_dataframe().to_csv(path, index=False)
        mlflow.log_artifact(str(path))


def generate_outputs(cfg: DictConfig, solver, output_dir: Path):
    """Plots and archives for a finished run."""
    if cfg.output.get("plots", True):
        plot_fields(solver.fields, output_dir)
        plot_convergence(solver.time_series, output_dir)
    if cfg.output.get("save_hdf5", False):
        solver.save(output_dir / "solution.h5")


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Main entry point."""
    log.info(f"Solver: {cfg.solver.name}, grid={cfg.imax}x{cfg.jmax}, M={cfg.mach}")
    output_dir = Path(HydraConfig.get().runtime.output_dir)

    solver = create_solver(cfg)
    writer = FieldWriter(output_dir / "fields") if cfg.output.get("write_fields", True) else None

    if cfg.mlflow.get("enabled", False):
        log.info(f"MLflow experiment: {setup_mlflow(cfg)}")
        run_name = f"{cfg.solver.name}_{cfg.imax}x{cfg.jmax}"
        run_ctx = mlflow.start_run(run_name=run_name, tags={"solver": cfg.solver.name})
    else:
        run_ctx = nullcontext()

    with run_ctx as run:
        if run is not None:
            mlflow.log_params(solver.params.to_mlflow())
            mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        try:
            solver.solve(writer=writer)
        except NumericalInstabilityError as exc:
            log.error(f"Numerical instability: {exc}")
            report_status(solver)
            if run is not None:
                mlflow.set_tag("status", solver.metrics.status)
            sys.exit(1)

        if run is not None:
            log_results(solver, run)

    generate_outputs(cfg, solver, output_dir)
    report_status(solver)
    log.info(
        f"Done: {solver.metrics.iterations} iter, "
        f"converged={solver.metrics.converged}, "
        f"time={solver.metrics.wall_time_seconds:.2f}s"
    )


if __name__ == "__main__":
    main()
