"""Material laws for RC section analysis per EN 1992-1-1.

Provides the parabola-rectangle law for concrete and the bilinear
elastic-plastic law for reinforcing steel, plus factory functions that build
them from the EC2 tables in ``ec2_tables.yaml``.

Key references
--------------
* EN 1992-1-1, Cl. 3.1.7 -- Parabola-rectangle diagram for concrete
* EN 1992-1-1, Table 3.1 -- Strength and deformation characteristics
* EN 1992-1-1, Cl. 3.2.7 -- Idealised bilinear diagram for reinforcing steel

Sign convention
---------------
Compression is **negative** for strains, stresses and forces.  The design
concrete strength ``fcd`` and the strains ``eps_c2`` and ``eps_cu`` are
therefore negative numbers.  All values are SI (Pa, dimensionless strain).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .utils import gpa_to_pa, load_ec2_tables, mpa_to_pa, per_mille_to_strain


# ---------------------------------------------------------------------------
# Stress-strain functions
# ---------------------------------------------------------------------------

def concrete_stress(strain: float, fcd: float, eps_c2: float) -> float:
    """Concrete stress from the parabola-rectangle law.

    Parameters
    ----------
    strain : float
        Concrete strain (negative in compression).
    fcd : float
        Design compressive strength, Pa (negative).
    eps_c2 : float
        Strain at reaching the maximum strength (negative).

    Returns
    -------
    float
        Stress in Pa (<= 0).  Tension carries no stress.
    """
    if strain >= 0.0:
        return 0.0
    if strain >= eps_c2:
        return fcd * (1.0 - (1.0 - strain / eps_c2) ** 2)
    return fcd


def steel_stress(strain: float, fyd: float, Es: float) -> float:
    """Reinforcing steel stress from the bilinear law.

    The diagram is elastic-perfectly-plastic with a horizontal top branch,
    so the result is total and has no failure modes.

    Parameters
    ----------
    strain : float
        Steel strain (positive in tension, negative in compression).
    fyd : float
        Design yield strength, Pa.
    Es : float
        Elastic modulus, Pa.

    Returns
    -------
    float
        Stress in Pa with the sign of ``strain``.
    """
    sigma = strain * Es
    if sigma > fyd:
        return fyd
    if sigma < -fyd:
        return -fyd
    return sigma


# ---------------------------------------------------------------------------
# Concrete
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConcreteLaw:
    """Design parabola-rectangle law for concrete in compression.

    Attributes
    ----------
    fcd : float
        Design compressive strength, Pa (negative).
    eps_c2 : float
        Strain at the peak of the parabola (negative).
    eps_cu : float
        Ultimate compressive strain (negative, ``eps_cu <= eps_c2``).
    """

    fcd: float
    eps_c2: float
    eps_cu: float

    def __post_init__(self) -> None:
        if not self.fcd < 0.0:
            raise ValueError(f"fcd must be negative (compression), got {self.fcd}")
        if not self.eps_c2 < 0.0:
            raise ValueError(f"eps_c2 must be negative, got {self.eps_c2}")
        if not self.eps_cu <= self.eps_c2:
            raise ValueError(
                f"strains must satisfy eps_cu <= eps_c2 < 0, "
                f"got eps_cu={self.eps_cu}, "
                f"eps_c2={self.eps_c2}"
            )

    def stress(self, strain: float) -> float:
        """Stress in Pa for the given strain."""
        return concrete_stress(strain, self.fcd, self.eps_c2)


def concrete_from_grade(
    fck: int | float,
    gamma_c: float | None = None,
    alpha_cc: float | None = None,
) -> ConcreteLaw:
    """Build a :class:`ConcreteLaw` for a concrete class.

    Parameters
    ----------
    fck : int or float
        Characteristic cylinder strength in **MPa**.  Must match a key in the
        ``concrete_classes`` section of ``ec2_tables.yaml`` (12, 16, ... 50).
    gamma_c : float, optional
        Partial factor; defaults to the table value.
    alpha_cc : float, optional
        Long-term coefficient; defaults to the table value.

    Returns
    -------
    ConcreteLaw

    Raises
    ------
    KeyError
        If ``fck`` is not found in the tables.
    """
    tables = load_ec2_tables()

    fck_key = int(fck)
    classes: dict[int, dict[str, Any]] = tables["concrete_classes"]
    if fck_key not in classes:
        available = sorted(classes.keys())
        raise KeyError(
            f"fck={fck_key} MPa not found in EC2 table.  "
            f"Available classes: {available}"
        )
    row = classes[fck_key]

    psf = tables["partial_safety_factors"]
    gamma_c = psf["gamma_c"] if gamma_c is None else gamma_c
    alpha_cc = psf["alpha_cc"] if alpha_cc is None else alpha_cc

    fcd = alpha_cc * float(fck) / gamma_c
    return ConcreteLaw(
        fcd=-mpa_to_pa(fcd),
        eps_c2=-per_mille_to_strain(float(row["epsilon_c2"])),
        eps_cu=-per_mille_to_strain(float(row["epsilon_cu2"])),
    )


# ---------------------------------------------------------------------------
# Reinforcing steel
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SteelLaw:
    """Design bilinear law for reinforcing steel.

    Attributes
    ----------
    fyd : float
        Design yield strength, Pa.
    Es : float
        Modulus of elasticity, Pa.
    eps_ud : float
        Design ultimate tensile strain.
    """

    fyd: float
    Es: float
    eps_ud: float

    def __post_init__(self) -> None:
        if self.fyd <= 0.0:
            raise ValueError(f"fyd must be positive, got {self.fyd}")
        if self.Es <= 0.0:
            raise ValueError(f"Es must be positive, got {self.Es}")
        if self.eps_ud <= 0.0:
            raise ValueError(f"eps_ud must be positive, got {self.eps_ud}")

    @property
    def eps_yd(self) -> float:
        """Design yield strain ``fyd / Es``."""
        return self.fyd / self.Es

    def stress(self, strain: float) -> float:
        """Stress in Pa for the given strain."""
        return steel_stress(strain, self.fyd, self.Es)


def steel_from_grade(
    fyk: float = 500.0,
    Es: float | None = None,
    eps_ud: float | None = None,
) -> SteelLaw:
    """Build a :class:`SteelLaw` for reinforcing steel.

    Parameters
    ----------
    fyk : float, optional
        Characteristic yield strength in MPa (default 500 for B500).
    Es : float, optional
        Modulus of elasticity in **GPa**; defaults to the table value.
    eps_ud : float, optional
        Design ultimate strain in **per mille**; defaults to the table value.

    Returns
    -------
    SteelLaw
    """
    tables = load_ec2_tables()
    gamma_s: float = tables["partial_safety_factors"]["gamma_s"]
    Es = tables["steel"]["Es"] if Es is None else Es
    eps_ud = tables["steel"]["epsilon_ud"] if eps_ud is None else eps_ud

    return SteelLaw(
        fyd=mpa_to_pa(fyk / gamma_s),
        Es=gpa_to_pa(float(Es)),
        eps_ud=per_mille_to_strain(float(eps_ud)),
    )
