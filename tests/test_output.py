"""Tests for result data structures and the field writer."""

import numpy as np
import pandas as pd
import pytest

from flatplate import SupersonicPlateSolver
from flatplate.datastructures import Metrics, TimeSeries
from flatplate.output import OUTPUT_FIELDS, FieldWriter, write_field


class TestWriteField:
    """One row per grid node with physical coordinates."""

    def test_one_row_per_node(self, tmp_path):
        field = np.arange(12, dtype=float).reshape(4, 3)
        path = write_field(field, 0.5, 0.25, "Pressure", tmp_path)

        df = pd.read_csv(path)
        assert path.name == "Pressure.csv"
        assert list(df.columns) == ["x", "y", "Pressure"]
        assert len(df) == 12

    def test_coordinates(self, tmp_path):
        field = np.arange(12, dtype=float).reshape(4, 3)
        df = pd.read_csv(write_field(field, 0.5, 0.25, "Density", tmp_path))

        # Row for node (i=2, j=1)
        row = df.iloc[2 * 3 + 1]
        assert row["x"] == pytest.approx(1.0)
        assert row["y"] == pytest.approx(0.25)
        assert row["Density"] == field[2, 1]

    def test_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "out"
        write_field(np.ones((3, 3)), 1.0, 1.0, "Temperature", target)
        assert (target / "Temperature.csv").exists()


class TestFieldWriter:
    """Solver hands its final fields to the writer."""

    def test_writes_all_fields(self, small_grid_params, tmp_path):
        params = {**small_grid_params, "max_iterations": 3}
        solver = SupersonicPlateSolver(**params)
        writer = FieldWriter(tmp_path)

        solver.solve(writer=writer)

        assert sorted(p.name for p in writer.paths) == sorted(
            [f"{name}.csv" for name in OUTPUT_FIELDS] + ["Status.csv"]
        )
        df = pd.read_csv(tmp_path / "Temperature.csv")
        np.testing.assert_allclose(df["Temperature"].to_numpy(), solver.arrays.T.ravel())

    def test_status_marks_unconverged_run(self, small_grid_params, tmp_path):
        """Fields written at the iteration cap are flagged as unconverged."""
        params = {**small_grid_params, "max_iterations": 3}
        solver = SupersonicPlateSolver(**params)
        solver.solve(writer=FieldWriter(tmp_path))

        status = pd.read_csv(tmp_path / "Status.csv")
        assert solver.metrics.status == "MAX_ITER_REACHED"
        assert not solver.fields.converged
        assert not bool(status["converged"].iloc[0])
        assert (status["imax"].iloc[0], status["jmax"].iloc[0]) == (20, 20)

    def test_status_marks_converged_run(self, small_grid_params, tmp_path, monkeypatch):
        solver = SupersonicPlateSolver(**small_grid_params)
        monkeypatch.setattr(solver, "step", lambda: 1e-3)
        solver.solve(writer=FieldWriter(tmp_path))

        status = pd.read_csv(tmp_path / "Status.csv")
        assert solver.fields.converged
        assert bool(status["converged"].iloc[0])


class TestResultStructures:
    """DataFrame and MLflow conversions."""

    def test_fields_dataframe(self, small_grid_params):
        params = {**small_grid_params, "max_iterations": 2}
        solver = SupersonicPlateSolver(**params)
        solver.solve()

        df = solver.fields.to_dataframe()
        assert len(df) == 20 * 20
        assert {"x", "y", "p", "rho", "T", "u", "v", "e", "M"} <= set(df.columns)

    def test_metrics_to_mlflow_is_numeric(self):
        logged = Metrics(iterations=3, converged=True, status="CONVERGED").to_mlflow()
        assert "status" not in logged
        assert logged["converged"] == 1.0
        assert all(isinstance(v, float) for v in logged.values())

    def test_time_series_dataframe(self):
        ts = TimeSeries(iteration=[0, 1], density_change=[1e-3, 1e-4], time_step=[0.1, 0.1])
        df = ts.to_dataframe()
        assert list(df.columns) == ["iteration", "density_change", "time_step"]
        assert len(df) == 2

    def test_save_archives_flow_constants(self, small_grid_params, tmp_path):
        """The HDF5 archive holds the non-dimensional flow constants next to the run."""
        params = {**small_grid_params, "max_iterations": 2}
        solver = SupersonicPlateSolver(**params)
        solver.solve()
        path = tmp_path / "solution.h5"

        solver.save(path)

        with pd.HDFStore(path, mode="r") as store:
            assert {"/params", "/metrics", "/time_series", "/fields", "/flow"} <= set(store.keys())
            flow = store["flow"]
            fields = store["fields"]
        assert flow["R"].iloc[0] == pytest.approx(solver.flow.R)
        assert flow["t_wall"].iloc[0] == pytest.approx(solver.flow.t_wall)
        assert len(fields) == 20 * 20
