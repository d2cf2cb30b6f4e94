"""Parse and validate YAML input for RC section analysis and design.

Reads a project YAML file, checks that every required section and field is
present, applies defaults for optional fields, and validates value ranges.
Values in the file use engineering units (m, MPa, GPa, per mille, kN, kNm,
cm2); :func:`build_model` converts them to the SI objects the analysis
modules work with.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .design import SolverSettings
from .geometry import SectionGeometry
from .materials import ConcreteLaw, SteelLaw, concrete_from_grade, steel_from_grade
from .reinforcement import DesignLoads
from .utils import cm2_to_m2, kn_to_n, knm_to_nm


# ---------------------------------------------------------------------------
# Schema definitions
# ---------------------------------------------------------------------------
# Each leaf entry is a tuple:
#   (type, required, default, validator_or_None)
# A validator is a callable (value) -> bool; True means OK.

_VALID_METHODS = {"lookup", "iterative"}

_positive = lambda v: v > 0  # noqa: E731
_non_negative = lambda v: v >= 0  # noqa: E731
_fck_range = lambda v: 12 <= v <= 50  # noqa: E731
_fyk_range = lambda v: 400 <= v <= 600  # noqa: E731
_partial_factor = lambda v: 1.0 <= v <= 2.0  # noqa: E731
_alpha_cc_range = lambda v: 0.8 <= v <= 1.0  # noqa: E731
_fraction = lambda v: 0 < v < 1  # noqa: E731


def _in_set(valid: set[str]):
    """Return a validator that checks membership in *valid*."""
    return lambda v: v in valid


# ``None`` as default with ``required=True`` means the field is mandatory.
# ``None`` as default with ``required=False`` means "use the EC2 table value".
SCHEMA: dict[str, dict[str, tuple]] = {
    "section": {
        "width":        (float, True, None, _positive),
        "height":       (float, True, None, _positive),
        "cover_top":    (float, True, None, _positive),
        "cover_bottom": (float, True, None, _positive),
    },
    "concrete": {
        "fck":      (float, True,  None, _fck_range),
        "gamma_c":  (float, False, None, _partial_factor),
        "alpha_cc": (float, False, None, _alpha_cc_range),
    },
    "steel": {
        "fyk":    (float, False, 500.0, _fyk_range),
        "Es":     (float, False, None,  _positive),
        "eps_ud": (float, False, None,  _positive),
    },
    "reinforcement": {
        "area_top":    (float, False, 0.0, _non_negative),
        "area_bottom": (float, False, 0.0, _non_negative),
    },
    "diagram": {
        "points_between": (int, False, 10, _positive),
    },
    "solver": {
        "method":         (str,   False, "lookup", _in_set(_VALID_METHODS)),
        "points_between": (int,   False, 40,   _positive),
        "max_iterations": (int,   False, 50,   _positive),
        "tol_rel":        (float, False, 0.01, _fraction),
        "tol_abs":        (float, False, 0.1,  _positive),
        "fallback":       (bool,  False, True, None),
    },
}

_LOAD_CASE: dict[str, tuple] = {
    "name": (str,   False, "",   None),
    "N":    (float, True,  None, None),
    "M":    (float, True,  None, None),
}


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

class InputError(Exception):
    """Raised when the YAML input is invalid or incomplete."""


def _coerce(value: Any, expected_type: type) -> Any:
    """Attempt to coerce *value* to *expected_type*.

    YAML often reads ``2`` as ``int`` where a ``float`` is expected.  This
    silently promotes ints to floats when the schema says ``float``.
    """
    if isinstance(value, bool):
        if expected_type is bool:
            return value
        raise InputError(f"Expected type {expected_type.__name__}, got bool")
    if expected_type is float and isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, expected_type):
        return value
    raise InputError(
        f"Expected type {expected_type.__name__}, got "
        f"{type(value).__name__} for value {value!r}"
    )


def _validate_section(
    data: dict[str, Any],
    schema: dict[str, tuple],
    section_path: str,
    errors: list[str],
) -> dict[str, Any]:
    """Validate *data* against a flat field *schema*.

    Returns the validated fields with defaults filled in and types coerced.
    Appends a human-readable message to *errors* for every problem found.
    """
    validated: dict[str, Any] = {}
    for field, (ftype, required, default, validator) in schema.items():
        path_str = f"{section_path}.{field}"
        if field not in data:
            if required and default is None:
                errors.append(f"Missing required field: {path_str}")
                continue
            validated[field] = default
            continue

        raw = data[field]
        try:
            coerced = _coerce(raw, ftype)
        except InputError:
            errors.append(
                f"{path_str}: expected {ftype.__name__}, "
                f"got {type(raw).__name__} ({raw!r})"
            )
            continue

        if validator is not None and not validator(coerced):
            errors.append(f"{path_str}: value {coerced!r} is out of range")
            continue

        validated[field] = coerced

    unknown = sorted(set(data) - set(schema))
    for field in unknown:
        errors.append(f"{section_path}.{field}: unknown field")

    return validated


def _validate_loads(raw: Any, errors: list[str]) -> list[dict[str, Any]]:
    """Ensure ``loads`` is a list of ``{name, N, M}`` mappings."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        errors.append("loads: must be a list of load cases")
        return []
    cases: list[dict[str, Any]] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            errors.append(f"loads[{i}]: each load case must be a mapping, got {entry!r}")
            continue
        case = _validate_section(entry, _LOAD_CASE, f"loads[{i}]", errors)
        if not case.get("name"):
            case["name"] = f"LC{i + 1}"
        cases.append(case)
    return cases


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_input(yaml_path: str) -> dict[str, Any]:
    """Read and validate a project YAML file.

    Parameters
    ----------
    yaml_path:
        Filesystem path to the YAML input file.

    Returns
    -------
    dict
        A fully validated configuration dictionary with defaults applied.

    Raises
    ------
    FileNotFoundError
        If *yaml_path* does not exist.
    InputError
        If validation fails (the message lists every problem found).
    """
    path = Path(yaml_path)
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {yaml_path}")

    with open(path, "r", encoding="utf-8") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh)

    return validate_config(raw)


def validate_config(raw: Any) -> dict[str, Any]:
    """Validate an already-loaded configuration mapping.

    See :func:`parse_input`.
    """
    if not isinstance(raw, dict):
        raise InputError("YAML root must be a mapping (dict)")

    errors: list[str] = []
    config: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # 1. Flat sections
    # ------------------------------------------------------------------
    for section_name, field_schema in SCHEMA.items():
        if section_name not in raw:
            has_required = any(
                req and default is None
                for (_, req, default, _) in field_schema.values()
            )
            if has_required:
                errors.append(f"Missing required section: {section_name}")
            config[section_name] = {
                field: default
                for field, (_, _, default, _) in field_schema.items()
            }
            continue

        section_data = raw[section_name]
        if not isinstance(section_data, dict):
            errors.append(f"Section '{section_name}' must be a mapping")
            continue

        config[section_name] = _validate_section(
            section_data, field_schema, section_name, errors
        )

    # ------------------------------------------------------------------
    # 2. Load cases
    # ------------------------------------------------------------------
    config["loads"] = _validate_loads(raw.get("loads"), errors)

    # ------------------------------------------------------------------
    # 3. Cross-field sanity checks
    # ------------------------------------------------------------------
    if not errors:
        sec = config["section"]
        if sec["cover_top"] + sec["cover_bottom"] >= sec["height"]:
            errors.append(
                "section: cover_top + cover_bottom must be less than height "
                f"(covers={sec['cover_top'] + sec['cover_bottom']}, "
                f"height={sec['height']})"
            )

    # ------------------------------------------------------------------
    # Report
    # ------------------------------------------------------------------
    if errors:
        bullet_list = "\n  - ".join(errors)
        raise InputError(
            f"Input validation failed with {len(errors)} error(s):\n"
            f"  - {bullet_list}"
        )

    return config


# ---------------------------------------------------------------------------
# Model construction
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SectionModel:
    """SI analysis objects built from a validated configuration."""

    geometry: SectionGeometry
    concrete: ConcreteLaw
    steel: SteelLaw
    area_top: float                      # m2
    area_bottom: float                   # m2
    loads: tuple[tuple[str, DesignLoads], ...]
    diagram_points_between: int
    solver_method: str
    solver_settings: SolverSettings


def build_model(config: dict[str, Any]) -> SectionModel:
    """Convert a validated configuration into SI analysis objects.

    Raises
    ------
    KeyError
        If the concrete class is not in the EC2 tables.
    ValueError
        If the material or geometry values violate their invariants.
    """
    sec = config["section"]
    con = config["concrete"]
    stl = config["steel"]
    rft = config["reinforcement"]
    sol = config["solver"]

    geometry = SectionGeometry(
        width=sec["width"],
        height=sec["height"],
        cover_top=sec["cover_top"],
        cover_bottom=sec["cover_bottom"],
    )
    concrete = concrete_from_grade(
        con["fck"], gamma_c=con["gamma_c"], alpha_cc=con["alpha_cc"]
    )
    steel = steel_from_grade(stl["fyk"], Es=stl["Es"], eps_ud=stl["eps_ud"])

    loads = tuple(
        (case["name"], DesignLoads(N=kn_to_n(case["N"]), M=knm_to_nm(case["M"])))
        for case in config["loads"]
    )
    settings = SolverSettings(
        points_between=sol["points_between"],
        max_iterations=sol["max_iterations"],
        tol_rel=sol["tol_rel"],
        tol_abs=knm_to_nm(sol["tol_abs"]),
        fallback_to_iterative=sol["fallback"],
    )
    return SectionModel(
        geometry=geometry,
        concrete=concrete,
        steel=steel,
        area_top=cm2_to_m2(rft["area_top"]),
        area_bottom=cm2_to_m2(rft["area_bottom"]),
        loads=loads,
        diagram_points_between=config["diagram"]["points_between"],
        solver_method=sol["method"],
        solver_settings=settings,
    )


# ---------------------------------------------------------------------------
# Template generator
# ---------------------------------------------------------------------------

_TEMPLATE_YAML = """\
# RC Section Input File
# =====================
# Fill in the values below. Comments show units and valid options.
# Sign convention: compression negative, positive M = tension at the bottom.

section:
  width: 0.30                   # m - b
  height: 0.50                  # m - h
  cover_top: 0.05               # m - d1, top layer centroid below top fibre
  cover_bottom: 0.05            # m - d2, bottom layer centroid above bottom fibre

concrete:
  fck: 30                       # MPa - EC2 class, 12 to 50
  # gamma_c: 1.5                # partial factor (default from EC2 tables)
  # alpha_cc: 1.0               # long-term coefficient (default from EC2 tables)

steel:
  fyk: 500                      # MPa (400-600)
  # Es: 200                     # GPa (default from EC2 tables)
  # eps_ud: 10                  # per mille (default from EC2 tables)

reinforcement:                  # used by the 'diagram' command
  area_top: 0.0                 # cm2 - As1
  area_bottom: 0.0              # cm2 - As2

loads:                          # used by the 'design' command
  - name: "LC1"
    N: 0.0                      # kN - tension positive
    M: 30.0                     # kNm

diagram:
  points_between: 10            # steps between characteristic states

solver:
  method: "lookup"              # Options: lookup | iterative
  points_between: 40            # diagram density used by the lookup
  max_iterations: 50            # iterative method only
  tol_rel: 0.01                 # relative moment tolerance
  tol_abs: 0.1                  # kNm - absolute moment tolerance
  fallback: true                # lookup: root search when no diagram pair brackets M
"""


def generate_template() -> str:
    """Return a complete sample YAML input template as a string.

    The returned text is ready to be written to a file and edited by the
    user.
    """
    return _TEMPLATE_YAML
