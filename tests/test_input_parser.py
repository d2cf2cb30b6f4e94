"""Tests for YAML input parsing and model construction."""
import sys
from pathlib import Path

import pytest
import yaml

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rcsection.input_parser import (
    InputError,
    build_model,
    generate_template,
    parse_input,
    validate_config,
)

SAMPLE = Path(__file__).parent.parent / "config" / "sample_input.yaml"


def _minimal() -> dict:
    return {
        "section": {"width": 0.3, "height": 0.5, "cover_top": 0.05, "cover_bottom": 0.05},
        "concrete": {"fck": 30},
    }


class TestParseInput:
    """Schema validation."""

    def test_sample_file(self):
        """Sample file parses with 3 loads and lookup method."""
        config = parse_input(str(SAMPLE))
        assert config["section"]["width"] == 0.3
        assert config["concrete"]["gamma_c"] is None
        assert config["steel"]["fyk"] == 500.0
        assert len(config["loads"]) == 3
        assert config["solver"]["method"] == "lookup"

    def test_template_is_valid(self):
        """Generated template passes validation."""
        config = validate_config(yaml.safe_load(generate_template()))
        assert config["loads"][0]["name"] == "LC1"

    def test_defaults_applied(self):
        """Omitted sections get their defaults (10 / 40 points)."""
        config = validate_config(_minimal())
        assert config["reinforcement"] == {"area_top": 0.0, "area_bottom": 0.0}
        assert config["diagram"]["points_between"] == 10
        assert config["solver"]["points_between"] == 40
        assert config["loads"] == []

    def test_int_promoted_to_float(self):
        """fck: 30 is promoted to 30.0."""
        config = validate_config(_minimal())
        assert isinstance(config["concrete"]["fck"], float)

    def test_missing_file(self, tmp_path):
        """Missing path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            parse_input(str(tmp_path / "missing.yaml"))

    def test_root_must_be_mapping(self, tmp_path):
        """A YAML list at the root is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(InputError, match="mapping"):
            parse_input(str(path))

    def test_all_errors_reported(self):
        """Four independent errors are reported together."""
        data = _minimal()
        del data["concrete"]
        data["section"]["width"] = -1.0
        data["section"]["depth"] = 0.5
        data["steel"] = {"fyk": "B500"}
        with pytest.raises(InputError) as excinfo:
            validate_config(data)
        message = str(excinfo.value)
        assert "4 error(s)" in message
        assert "Missing required section: concrete" in message
        assert "section.width" in message
        assert "section.depth: unknown field" in message
        assert "steel.fyk: expected float" in message

    def test_invalid_method(self):
        """Unknown solver method is rejected."""
        data = _minimal()
        data["solver"] = {"method": "newton"}
        with pytest.raises(InputError, match="solver.method"):
            validate_config(data)

    def test_load_cases(self):
        """Unnamed load cases are named LC1, LC2, ..."""
        data = _minimal()
        data["loads"] = [{"N": 0, "M": 30}, {"name": "wind", "N": -100, "M": 5}]
        config = validate_config(data)
        assert [case["name"] for case in config["loads"]] == ["LC1", "wind"]
        assert config["loads"][0]["M"] == 30.0

    def test_bad_load_cases(self):
        """Missing M and non-mapping entries are both reported."""
        data = _minimal()
        data["loads"] = [{"N": 0}, "oops"]
        with pytest.raises(InputError) as excinfo:
            validate_config(data)
        assert "loads[0].M" in str(excinfo.value)
        assert "loads[1]" in str(excinfo.value)

    def test_fallback_flag(self):
        """solver.fallback defaults to true and must be a boolean."""
        assert validate_config(_minimal())["solver"]["fallback"] is True
        data = _minimal()
        data["solver"] = {"fallback": "no"}
        with pytest.raises(InputError, match="solver.fallback"):
            validate_config(data)

    def test_covers_must_fit(self):
        """Covers adding up to the height are rejected."""
        data = _minimal()
        data["section"]["cover_top"] = 0.3
        data["section"]["cover_bottom"] = 0.25
        with pytest.raises(InputError, match="cover_top \\+ cover_bottom"):
            validate_config(data)


class TestBuildModel:
    """Conversion to SI analysis objects."""

    def test_sample_model(self):
        """Sample model: fcd = -20 MPa, fyd = 434.8 MPa, As2 = 9.42 cm2."""
        model = build_model(parse_input(str(SAMPLE)))
        assert model.concrete.fcd == pytest.approx(-20e6)
        assert model.steel.fyd == pytest.approx(500e6 / 1.15)
        assert model.area_bottom == pytest.approx(9.42e-4)
        name, first = model.loads[0]
        assert name == "Pure bending"
        assert first.M == pytest.approx(30e3)
        assert model.solver_settings.points_between == 40
        assert model.solver_settings.tol_abs == pytest.approx(100.0)
        assert model.solver_settings.fallback_to_iterative is True

    def test_unknown_concrete_class(self):
        """C33 is not a tabulated class."""
        data = _minimal()
        data["concrete"]["fck"] = 33
        with pytest.raises(KeyError):
            build_model(validate_config(data))
