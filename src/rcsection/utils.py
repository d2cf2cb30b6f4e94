"""Shared utilities for RC section analysis.

Provides:
- EC2 material table loading from YAML configuration
- Unit conversion helpers between the SI values used internally and the
  engineering units used in input files and reports
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


# ---------------------------------------------------------------------------
# EC2 table loading
# ---------------------------------------------------------------------------

_TABLES_FILE = "ec2_tables.yaml"

_tables_cache: dict[str, Any] | None = None


def load_ec2_tables() -> dict[str, Any]:
    """Load the EC2 material tables from the YAML config file.

    Searches for ``ec2_tables.yaml`` relative to this source file in the
    standard project layout.  The result is cached so that repeated calls do
    not re-read from disk.

    Returns
    -------
    dict
        Parsed YAML content keyed by table name (``concrete_classes``,
        ``partial_safety_factors``, ``steel``).

    Raises
    ------
    FileNotFoundError
        If the YAML file cannot be located in any of the expected paths.
    """
    global _tables_cache
    if _tables_cache is not None:
        return _tables_cache

    config_paths = [
        # src/rcsection/../../config  (standard layout)
        Path(__file__).resolve().parent.parent.parent / "config" / _TABLES_FILE,
        # Current working directory (e.g. running from the project root)
        Path.cwd() / "config" / _TABLES_FILE,
    ]
    for path in config_paths:
        if path.exists():
            with open(path, encoding="utf-8") as fh:
                _tables_cache = yaml.safe_load(fh)
            return _tables_cache

    searched = "\n  ".join(str(p) for p in config_paths)
    raise FileNotFoundError(
        f"{_TABLES_FILE} not found.  Searched:\n  {searched}"
    )


def _clear_tables_cache() -> None:
    """Reset the internal cache (useful in tests)."""
    global _tables_cache
    _tables_cache = None


# ---------------------------------------------------------------------------
# Unit conversions
# ---------------------------------------------------------------------------

def mpa_to_pa(mpa: float) -> float:
    """Convert megapascals to pascals."""
    return mpa * 1e6


def pa_to_mpa(pa: float) -> float:
    """Convert pascals to megapascals."""
    return pa / 1e6


def gpa_to_pa(gpa: float) -> float:
    """Convert gigapascals to pascals."""
    return gpa * 1e9


def per_mille_to_strain(value: float) -> float:
    """Convert a strain given in per mille to a dimensionless strain."""
    return value / 1_000.0


def strain_to_per_mille(strain: float) -> float:
    """Convert a dimensionless strain to per mille."""
    return strain * 1_000.0


def kn_to_n(kn: float) -> float:
    """Convert kilonewtons to newtons."""
    return kn * 1_000.0


def n_to_kn(n: float) -> float:
    """Convert newtons to kilonewtons."""
    return n / 1_000.0


def knm_to_nm(knm: float) -> float:
    """Convert kN.m to N.m."""
    return knm * 1_000.0


def nm_to_knm(nm: float) -> float:
    """Convert N.m to kN.m."""
    return nm / 1_000.0


def m2_to_cm2(m2: float) -> float:
    """Convert square metres to square centimetres."""
    return m2 * 1e4


def cm2_to_m2(cm2: float) -> float:
    """Convert square centimetres to square metres."""
    return cm2 / 1e4
