"""Tests for the rcsection command-line interface."""
import math
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rcsection.cli import _format_error, main
from rcsection.design import DesignResult, DesignStatus
from rcsection.geometry import StrainField

SAMPLE = str(Path(__file__).parent.parent / "config" / "sample_input.yaml")


@pytest.fixture
def runner():
    return CliRunner()


class TestCommands:
    """Each command runs end to end on the sample input."""

    def test_template(self, runner):
        """Template output contains the section and solver blocks."""
        result = runner.invoke(main, ["template"])
        assert result.exit_code == 0
        assert "section:" in result.output
        assert "solver:" in result.output

    def test_validate(self, runner):
        """Sample input validates with 3 load case(s)."""
        result = runner.invoke(main, ["validate", SAMPLE])
        assert result.exit_code == 0
        assert "3 load case(s)" in result.output
        assert "Input file is valid." in result.output

    def test_validate_reports_errors(self, runner, tmp_path):
        """Negative width exits with status 1."""
        bad = tmp_path / "bad.yaml"
        bad.write_text("section:\n  width: -0.3\n", encoding="utf-8")
        result = runner.invoke(main, ["validate", str(bad)])
        assert result.exit_code == 1
        assert "Error parsing input" in result.output

    def test_diagram(self, runner):
        """Default density of 10 gives 81 diagram points."""
        result = runner.invoke(main, ["diagram", SAMPLE])
        assert result.exit_code == 0
        assert "pure_compression" in result.output
        assert "pure_tension" in result.output
        assert "81 points" in result.output

    def test_diagram_plot(self, runner, tmp_path):
        """--plot writes the PNG file."""
        png = tmp_path / "diagram.png"
        result = runner.invoke(main, ["diagram", SAMPLE, "--plot", str(png)])
        assert result.exit_code == 0
        assert png.exists()

    @pytest.mark.parametrize("method", ["lookup", "iterative"])
    def test_design(self, runner, method):
        """Every sample load case reports an As2 line."""
        result = runner.invoke(main, ["design", SAMPLE, "--method", method])
        assert result.exit_code == 0
        assert result.output.count("As2 =") == 3
        assert f"Method: {method}" in result.output

    def test_design_without_loads(self, runner, tmp_path):
        """A file without loads exits with status 1."""
        path = tmp_path / "no_loads.yaml"
        path.write_text(
            "section: {width: 0.3, height: 0.5, cover_top: 0.05, cover_bottom: 0.05}\n"
            "concrete: {fck: 30}\n",
            encoding="utf-8",
        )
        result = runner.invoke(main, ["design", str(path)])
        assert result.exit_code == 1
        assert "no load cases" in result.output

    def test_analyse(self, runner):
        """All three arrangements are reported at -3.5 / 10 per mille."""
        result = runner.invoke(
            main, ["analyse", SAMPLE, "--eps-top", "-3.5", "--eps-bottom", "10"]
        )
        assert result.exit_code == 0
        assert "Optimal:" in result.output
        assert "Single:" in result.output
        assert "Uniform:" in result.output

    def test_verbose_flag(self, runner):
        """--verbose is accepted before a command."""
        result = runner.invoke(main, ["--verbose", "template"])
        assert result.exit_code == 0


def _result(error_abs, error_rel):
    return DesignResult(
        converged=True, status=DesignStatus.CONVERGED, area_bottom=0.0,
        strain=StrainField(-0.0035, 0.01, 0.5), eps_s2=0.0, sigma_s2=0.0,
        concrete_force=0.0, concrete_moment=0.0, N=0.0, M=error_abs,
        error_abs=error_abs, error_rel=error_rel, error_N=0.0, iterations=1,
    )


class TestErrorFormatting:
    """Moment error shown in the design report."""

    def test_relative_error_in_percent(self):
        """0.5 % relative error prints as '0.50 %'."""
        assert _format_error(_result(150.0, 0.005)) == "0.50 %"

    def test_zero_target_moment_prints_absolute_error(self):
        """Infinite relative error (M target = 0) prints 0.050 kNm instead."""
        text = _format_error(_result(50.0, math.inf))
        assert text == "0.050 kNm"
        assert "inf" not in text
