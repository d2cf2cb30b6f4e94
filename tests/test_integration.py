"""Cross-checks of the closed-form concrete integrator against the strip rule."""
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rcsection.geometry import SectionGeometry, StrainField
from rcsection.integration import (
    AnalyticalIntegrator,
    NumericalIntegrator,
    SegmentCase,
    segment_bounds,
)
from rcsection.materials import ConcreteLaw


@pytest.fixture(scope="module")
def section():
    return SectionGeometry(width=0.3, height=0.5, cover_top=0.05, cover_bottom=0.05)


@pytest.fixture(scope="module")
def concrete():
    return ConcreteLaw(fcd=-20e6, eps_c2=-0.002, eps_cu=-0.0035)


CROSS_FORM_FIELDS = [
    (-0.0035, -0.0035),   # uniform plateau
    (-0.0035, 0.0),       # full-depth compression, both branches
    (-0.002, -0.001),     # parabolic branch only
    (-0.003, 0.002),      # mixed, compression on top
    (-0.0035, 0.010),     # compression block at failure
    (-0.001, 0.005),      # shallow parabolic block
    (0.004, -0.0025),     # compression at the bottom
]


class TestCrossFormAgreement:
    """Closed form and strip rule must agree for every field type."""

    @pytest.mark.parametrize("eps_top, eps_bottom", CROSS_FORM_FIELDS)
    def test_fine_strips(self, section, concrete, eps_top, eps_bottom):
        """2000 strips match the closed form within 0.1 %."""
        strain = StrainField(eps_top, eps_bottom, section.height)
        exact = AnalyticalIntegrator().integrate(strain, section, concrete)
        approx = NumericalIntegrator(n_strips=2000).integrate(strain, section, concrete)
        assert exact.N == pytest.approx(approx.N, rel=1e-3, abs=1.0)
        assert exact.M == pytest.approx(approx.M, rel=1e-3, abs=10.0)

    @pytest.mark.parametrize("eps_top, eps_bottom", [
        (-0.0035, 0.0),
        (-0.003, 0.002),
        (-0.0035, 0.010),
    ])
    def test_default_strips_within_half_percent(self, section, concrete, eps_top, eps_bottom):
        """Default strip count matches within 0.5 %."""
        strain = StrainField(eps_top, eps_bottom, section.height)
        exact = AnalyticalIntegrator().integrate(strain, section, concrete)
        approx = NumericalIntegrator().integrate(strain, section, concrete)
        assert exact.N == pytest.approx(approx.N, rel=5e-3)
        assert exact.M == pytest.approx(approx.M, rel=5e-3)

    def test_error_shrinks_with_more_strips(self, section, concrete):
        """1000 strips beat 100 strips on N and M."""
        strain = StrainField(-0.002, -0.001, section.height)
        exact = AnalyticalIntegrator().integrate(strain, section, concrete)
        coarse = NumericalIntegrator(n_strips=100).integrate(strain, section, concrete)
        fine = NumericalIntegrator(n_strips=1000).integrate(strain, section, concrete)
        assert abs(fine.N - exact.N) < abs(coarse.N - exact.N)
        assert abs(fine.M - exact.M) < abs(coarse.M - exact.M)

    def test_near_zero_curvature(self, section, concrete):
        """Almost uniform -1.5 per mille gives 0.9375 fcd over the section."""
        strain = StrainField(-0.0015 + 1e-15, -0.0015, section.height)
        exact = AnalyticalIntegrator().integrate(strain, section, concrete)
        approx = NumericalIntegrator().integrate(strain, section, concrete)
        # 1 - (1 - 0.75)^2 = 0.9375 of fcd over the full section
        assert exact.N == pytest.approx(-20e6 * 0.9375 * 0.15)
        assert exact.N == pytest.approx(approx.N, rel=1e-9)
        assert exact.M == pytest.approx(0.0, abs=1e-6)


class TestClosedFormValues:
    """Known resultants of the parabola-rectangle block."""

    def test_zero_for_tension(self, section, concrete):
        """A fully tensioned section gives N = M = 0."""
        strain = StrainField(0.001, 0.003, section.height)
        forces = AnalyticalIntegrator().integrate(strain, section, concrete)
        assert forces.N == 0.0
        assert forces.M == 0.0
        assert NumericalIntegrator().integrate(strain, section, concrete).N == 0.0

    def test_uniform_compression_has_no_moment(self, section, concrete):
        """Uniform -3.5 per mille gives N = fcd * A and M = 0."""
        strain = StrainField(-0.0035, -0.0035, section.height)
        forces = AnalyticalIntegrator().integrate(strain, section, concrete)
        assert forces.N == pytest.approx(-20e6 * 0.15)
        assert forces.M == 0.0

    def test_full_depth_block(self, section, concrete):
        """Top at eps_cu, bottom at zero: alpha = 17/21, centroid at 0.416 h."""
        strain = StrainField(-0.0035, 0.0, section.height)
        forces = AnalyticalIntegrator().integrate(strain, section, concrete)
        assert forces.N == pytest.approx(-20e6 * 0.3 * 0.5 * 17.0 / 21.0, rel=1e-9)
        assert forces.M == pytest.approx(102_040.8, rel=1e-5)

    def test_moment_sign_follows_compressed_edge(self, section, concrete):
        """Mirrored field flips M and keeps N."""
        top = AnalyticalIntegrator().integrate(
            StrainField(-0.0035, 0.01, section.height), section, concrete
        )
        bottom = AnalyticalIntegrator().integrate(
            StrainField(0.01, -0.0035, section.height), section, concrete
        )
        assert top.M > 0.0
        assert bottom.M == pytest.approx(-top.M)
        assert bottom.N == pytest.approx(top.N)


class TestSegmentBounds:
    """Classification of strain fields into closed-form cases."""

    def test_uniform_cases(self):
        """Zero curvature classifies as tension, parabolic or plateau."""
        assert segment_bounds(0.0, 0.001, 0.5, -0.002).case is SegmentCase.UNIFORM_TENSION
        assert segment_bounds(0.0, -0.001, 0.5, -0.002).case is SegmentCase.UNIFORM_PARABOLIC
        assert segment_bounds(0.0, -0.003, 0.5, -0.002).case is SegmentCase.UNIFORM_PLATEAU

    def test_top_compressed_general(self):
        """Top at eps_cu: plateau above x_c2, parabola below."""
        # eps_top = -0.0035, eps_bottom = 0: k = -0.007, q = -0.00175
        bounds = segment_bounds(-0.007, -0.00175, 0.5, -0.002)
        assert bounds.case is SegmentCase.GENERAL
        x_c2 = (-0.002 + 0.00175) / -0.007
        # zero strain sits exactly on the bottom fibre
        assert bounds.parabolic == pytest.approx((-0.25, x_c2))
        assert bounds.plateau == pytest.approx((x_c2, 0.25))

    def test_bottom_compressed_general(self):
        """Bottom compressed: plateau from the bottom fibre."""
        bounds = segment_bounds(0.007, -0.00175, 0.5, -0.002)
        x_c2 = (-0.002 + 0.00175) / 0.007
        assert bounds.plateau == pytest.approx((-0.25, x_c2))

    def test_invalid_strip_count(self):
        """Zero strips is rejected."""
        with pytest.raises(ValueError):
            NumericalIntegrator(n_strips=0)
