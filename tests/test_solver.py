"""Tests for the supersonic flat-plate driver.

Unit tests for initialization, stepping, run status and reporting.
The full reference run is marked slow.
"""

import numpy as np
import pytest

from flatplate import NumericalInstabilityError, RunStatus, SupersonicPlateSolver
from flatplate.datastructures import Fields


class TestSolverInitialization:
    """Tests for solver initialization."""

    def test_solver_creates(self, small_grid_params):
        solver = SupersonicPlateSolver(**small_grid_params)
        assert solver.status is RunStatus.INITIALIZING
        assert solver.arrays.shape == (20, 20)

    def test_geometry(self, small_grid_params):
        """Node (i, j) sits at (i*dx, j*dy)."""
        solver = SupersonicPlateSolver(**small_grid_params)
        assert solver.x[7, 3] == pytest.approx(7 * solver.dx)
        assert solver.y[7, 3] == pytest.approx(3 * solver.dy)
        assert solver.dx * 20 == pytest.approx(solver.flow.plate_length)

    def test_initial_conditions(self, small_grid_params):
        solver = SupersonicPlateSolver(**small_grid_params)
        a, f = solver.arrays, solver.flow

        # Wall: no slip at wall temperature
        assert np.all(a.u[1:, 0] == 0.0)
        assert np.all(a.v[1:, 0] == 0.0)
        assert np.all(a.T[1:, 0] == f.t_wall)
        np.testing.assert_allclose(a.rho[1:, 0], f.p_inf / (f.R * f.t_wall))

        # Leading edge
        assert a.u[0, 0] == 0.0
        assert a.M[0, 0] == 0.0

        # Free stream elsewhere
        assert np.all(a.u[:, 1:] == f.mach_inf * f.a_inf)
        assert np.all(a.p == f.p_inf)
        assert np.all(a.M[:, 1:] == f.mach_inf)

    def test_hot_wall(self, small_grid_params):
        params = {**small_grid_params, "wall_temperature": 2 * 288.16}
        solver = SupersonicPlateSolver(**params)
        assert np.allclose(solver.arrays.T[1:, 0], 2.0)
        assert np.allclose(solver.arrays.rho[1:, 0], 0.5 * solver.flow.rho_inf)


class TestSolverStep:
    """Tests for a single iteration."""

    def test_step_returns_positive_time_step(self, small_grid_params):
        solver = SupersonicPlateSolver(**small_grid_params)
        dt = solver.step()
        assert np.isfinite(dt) and dt > 0.0

    def test_first_iteration_bounded(self, small_grid_params):
        """Density change after one iteration from free stream is finite and small."""
        solver = SupersonicPlateSolver(**small_grid_params)
        solver._snapshot()
        solver.step()
        converged, diff = solver._check_convergence(1e-8)

        assert not converged
        assert np.isfinite(diff)
        assert 0.0 < diff < solver.flow.rho_inf
        assert np.all(solver.arrays.rho > 0.0)
        assert np.all(solver.arrays.T > 0.0)

    def test_boundary_conditions_after_step(self, small_grid_params):
        solver = SupersonicPlateSolver(**small_grid_params)
        solver.step()
        a, f = solver.arrays, solver.flow

        assert np.all(a.u[1:, 0] == 0.0)
        assert np.all(a.T[1:, 0] == f.t_wall)
        assert np.all(a.u[0, 1:] == f.u_inf)
        assert np.all(a.p[:-1, -1] == f.p_inf)


class TestSolverRun:
    """Run status, reporting and output hand-off."""

    def test_fixed_point_converges_on_first_check(self, small_grid_params, monkeypatch):
        """If an iteration changes nothing the run converges immediately."""
        solver = SupersonicPlateSolver(**small_grid_params)
        monkeypatch.setattr(solver, "step", lambda: 1e-3)

        solver.solve()

        assert solver.metrics.converged
        assert solver.metrics.iterations == 1
        assert solver.metrics.final_residual == 0.0
        assert solver.metrics.status == "CONVERGED"
        assert solver.status is RunStatus.DONE

    def test_iteration_cap(self, small_grid_params):
        params = {**small_grid_params, "max_iterations": 30}
        solver = SupersonicPlateSolver(**params)
        received = []

        solver.solve(writer=received.append)

        assert not solver.metrics.converged
        assert solver.metrics.status == "MAX_ITER_REACHED"
        assert solver.metrics.iterations == 30
        assert solver.status is RunStatus.DONE
        assert len(solver.time_series.iteration) == 30
        assert solver.metrics.simulated_time == pytest.approx(sum(solver.time_series.time_step))

        # Output collaborator receives the unconverged fields
        assert len(received) == 1
        assert isinstance(received[0], Fields)
        assert received[0].shape == (20, 20)
        assert not received[0].converged
        np.testing.assert_array_equal(received[0].field_2d("rho"), solver.arrays.rho)

    def test_arguments_override_params(self, small_grid_params):
        solver = SupersonicPlateSolver(**small_grid_params)
        solver.solve(max_iter=5)
        assert solver.metrics.iterations == 5

    def test_reporter_cadence(self, small_grid_params):
        reports = []
        params = {**small_grid_params, "max_iterations": 25, "report_interval": 10,
                  "reporters": [reports.append]}
        solver = SupersonicPlateSolver(**params)
        solver.solve()
        assert [r.iteration for r in reports] == [0, 10, 20, 24]
        assert all(np.isfinite(r.density_change) for r in reports)

    def test_instability_aborts(self, small_grid_params, monkeypatch):
        solver = SupersonicPlateSolver(**small_grid_params)

        def diverge(*args, **kwargs):
            raise NumericalInstabilityError("Density or temperature collapsed", node=(3, 4))

        monkeypatch.setattr(solver.scheme, "update_predictor", diverge)
        written = []

        with pytest.raises(NumericalInstabilityError) as excinfo:
            solver.solve(writer=written.append)

        assert excinfo.value.iteration == 0
        assert solver.status is RunStatus.ABORTED
        assert solver.metrics.status == "ABORTED"
        assert not solver.metrics.converged
        assert written == []

    def test_wall_temperature_held_during_run(self):
        """Reference configuration, capped: the wall stays isothermal."""
        solver = SupersonicPlateSolver(max_iterations=300, reporters=[])
        solver.solve()

        a = solver.arrays
        assert solver.metrics.status in ("CONVERGED", "MAX_ITER_REACHED")
        assert np.all(a.T[1:, 0] == solver.flow.t_wall)
        assert np.all(np.isfinite(a.rho)) and np.all(a.rho > 0.0)
        # Viscous layer has formed: velocity near the wall is below free stream
        assert np.mean(a.u[5:, 1]) < solver.flow.u_inf


@pytest.mark.slow
def test_reference_run_terminates():
    """70x70, M=4, 1e-5 m plate, wall at free-stream temperature, K=0.6, tol 1e-8."""
    solver = SupersonicPlateSolver(
        imax=70, jmax=70, mach=4.0, plate_length=1e-5,
        safety_factor=0.6, tolerance=1e-8, max_iterations=100000,
        report_interval=1000,
    )
    solver.solve()

    assert solver.status is RunStatus.DONE
    assert solver.metrics.status in ("CONVERGED", "MAX_ITER_REACHED")
    assert np.all(solver.arrays.T[1:, 0] == solver.flow.t_wall)
