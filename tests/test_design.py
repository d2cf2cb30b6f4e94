"""Tests for the reinforcement design solver (lookup and root search).

Worked example: 300 x 500 mm section, d1 = d2 = 50 mm, fcd = 20 MPa,
fyd = 435 MPa.  For N = 0 and M = 30 kNm a shallow parabolic block with
its lever arm of about 0.44 m needs roughly 1.57 cm2 of bottom steel.
"""
import math
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rcsection.design import CapacityDesignSolver, DesignStatus, SolverSettings
from rcsection.geometry import SectionGeometry
from rcsection.materials import ConcreteLaw, SteelLaw
from rcsection.reinforcement import DesignLoads


@pytest.fixture(scope="module")
def solver():
    geometry = SectionGeometry(width=0.3, height=0.5, cover_top=0.05, cover_bottom=0.05)
    concrete = ConcreteLaw(fcd=-20e6, eps_c2=-0.002, eps_cu=-0.0035)
    steel = SteelLaw(fyd=435e6, Es=200e9, eps_ud=0.01)
    return CapacityDesignSolver(geometry, concrete, steel)


ROUND_TRIP = DesignLoads(N=0.0, M=30e3)


class TestLookupDesign:
    """Production path: interpolation on the precomputed diagram."""

    def test_diagram_built_once(self, solver):
        """40 steps per interval give 321 bare-concrete points."""
        assert len(solver.diagram) == 8 * 39 + 9
        assert all(pt.area_top == 0.0 and pt.area_bottom == 0.0 for pt in solver.diagram)

    def test_round_trip(self, solver):
        """N = 0, M = 30 kNm needs about 1.57 cm2 with 0 iterations."""
        result = solver.design(ROUND_TRIP)
        assert result.converged
        assert result.status is DesignStatus.CONVERGED
        assert result.iterations == 0
        assert result.error_rel < 0.01
        assert result.area_bottom * 1e4 == pytest.approx(1.57, rel=0.03)

    def test_equilibrium_closure(self, solver):
        """Achieved N and M equal concrete plus bottom steel exactly."""
        result = solver.design(ROUND_TRIP)
        force = result.area_bottom * result.sigma_s2
        assert result.N == pytest.approx(result.concrete_force + force)
        assert result.error_N < 1.0
        assert result.M == pytest.approx(
            result.concrete_moment - force * solver.geometry.x_bottom_layer
        )
        assert result.sigma_s2 == pytest.approx(solver.steel.stress(result.eps_s2))

    def test_compression_and_bending(self, solver):
        """N = -400 kN, M = 120 kNm converges within 1 %."""
        result = solver.design(DesignLoads(N=-400e3, M=120e3))
        assert result.converged
        assert result.area_bottom > 0.0
        assert result.error_rel < 0.01
        assert result.error_N < 1.0

    def test_infeasible_moment(self, solver):
        """2270 kNm is beyond the section: OUTSIDE_RANGE with NaN area."""
        result = solver.design(DesignLoads(N=0.0, M=10.0 * 227e3))
        assert not result.converged
        assert result.status is DesignStatus.OUTSIDE_RANGE
        assert math.isnan(result.area_bottom)
        assert result.strain is None

    def test_negative_moment_needs_top_steel(self, solver):
        """Hogging moment with bottom steel only is OUTSIDE_RANGE."""
        result = solver.design(DesignLoads(N=0.0, M=-30e3))
        assert result.status is DesignStatus.OUTSIDE_RANGE

    @pytest.mark.parametrize("N, M", [(-300e3, 20e3), (-800e3, 60e3)])
    def test_plain_concrete_falls_back_to_root_search(self, solver, N, M):
        """Loads the bare section carries converge with As2 ~ 0 via the root search."""
        result = solver.design(DesignLoads(N=N, M=M))
        assert result.converged
        assert result.status is DesignStatus.CONVERGED
        assert result.iterations >= 1
        assert result.message.startswith("no diagram bracket")
        assert result.area_bottom == pytest.approx(0.0, abs=1e-6)
        assert result.error_rel < 0.01

    def test_fallback_disabled(self):
        """Without the fallback a plain-concrete load is OUTSIDE_RANGE."""
        geometry = SectionGeometry(width=0.3, height=0.5, cover_top=0.05, cover_bottom=0.05)
        concrete = ConcreteLaw(fcd=-20e6, eps_c2=-0.002, eps_cu=-0.0035)
        steel = SteelLaw(fyd=435e6, Es=200e9, eps_ud=0.01)
        settings = SolverSettings(fallback_to_iterative=False)
        strict = CapacityDesignSolver(geometry, concrete, steel, settings=settings)
        result = strict.design(DesignLoads(N=-300e3, M=20e3))
        assert result.status is DesignStatus.OUTSIDE_RANGE
        assert result.iterations == 0

    def test_design_many(self, solver):
        """One solver handles a batch; the 1e9 N.m case fails alone."""
        cases = [ROUND_TRIP, DesignLoads(N=-400e3, M=120e3), DesignLoads(N=0.0, M=1e9)]
        results = solver.design_many(cases)
        assert [r.converged for r in results] == [True, True, False]
        assert results[0].area_bottom == solver.design(ROUND_TRIP).area_bottom


class TestIterativeDesign:
    """Reference path: false-position search on the top-fibre strain."""

    def test_round_trip(self, solver):
        """Root search also gives about 1.57 cm2 within the iteration budget."""
        result = solver.design_iterative(ROUND_TRIP)
        assert result.converged
        assert result.status is DesignStatus.CONVERGED
        assert 1 <= result.iterations <= solver.settings.max_iterations
        assert result.error_rel < 0.01
        assert result.area_bottom * 1e4 == pytest.approx(1.57, rel=0.03)

    def test_agrees_with_lookup(self, solver):
        """Both paths agree on As2 within 3 %."""
        lookup = solver.design(ROUND_TRIP)
        iterative = solver.design_iterative(ROUND_TRIP)
        assert iterative.area_bottom == pytest.approx(lookup.area_bottom, rel=0.03)

    def test_axial_equilibrium(self, solver):
        """Axial error stays below the inner absolute tolerance (1 N)."""
        result = solver.design_iterative(ROUND_TRIP)
        tol = solver.settings.inner_tol_abs
        assert result.error_N < tol

    def test_outside_range_returns_immediately(self, solver):
        """Infeasible target fails with 0 iterations."""
        result = solver.design_iterative(DesignLoads(N=0.0, M=10.0 * 227e3))
        assert result.status is DesignStatus.OUTSIDE_RANGE
        assert result.iterations == 0
        assert math.isnan(result.M)

    def test_iteration_budget(self):
        """A one-iteration budget with tight tolerances is NOT_CONVERGED."""
        geometry = SectionGeometry(width=0.3, height=0.5, cover_top=0.05, cover_bottom=0.05)
        concrete = ConcreteLaw(fcd=-20e6, eps_c2=-0.002, eps_cu=-0.0035)
        steel = SteelLaw(fyd=435e6, Es=200e9, eps_ud=0.01)
        settings = SolverSettings(
            points_between=2, max_iterations=1, tol_rel=1e-9, tol_abs=1e-9
        )
        tight = CapacityDesignSolver(geometry, concrete, steel, settings=settings)
        result = tight.design_iterative(ROUND_TRIP)
        assert result.status is DesignStatus.NOT_CONVERGED
        assert result.iterations == 1
