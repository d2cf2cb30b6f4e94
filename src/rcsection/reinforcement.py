"""Reinforcement areas for a fixed strain state.

For a given strain field the concrete resultant and both steel stresses are
known, so the reinforcement areas follow directly from equilibrium with the
design loads ``(N, M)``:

.. math::

    N = F_c + A_{s1}\\sigma_{s1} + A_{s2}\\sigma_{s2}

    M = M_c - A_{s1}\\sigma_{s1} x_1 - A_{s2}\\sigma_{s2} x_2

where ``x1 > 0`` and ``x2 < 0`` are the local coordinates of the top and
bottom layers.  Three arrangements are offered:

* **optimal** -- both areas from force and moment equilibrium together,
* **single** -- bottom layer only, area from force equilibrium,
* **uniform** -- equal top and bottom areas, total from force equilibrium.

The single and uniform arrangements satisfy ``N`` only; the moment they
develop is reported alongside.
"""

from __future__ import annotations

from dataclasses import dataclass

from .geometry import SectionForces, SectionGeometry, StrainField
from .integration import AnalyticalIntegrator, ConcreteIntegrator
from .materials import ConcreteLaw, SteelLaw


# Stresses (Pa) and determinants below this are treated as zero
_STRESS_TOL: float = 1e-6


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DesignLoads:
    """Design axial force (N, tension positive) and moment (N.m)."""

    N: float
    M: float


@dataclass(frozen=True)
class OptimalResult:
    """Top and bottom areas satisfying both N and M."""

    area_top: float = 0.0     # m2
    area_bottom: float = 0.0  # m2
    force_top: float = 0.0    # N
    force_bottom: float = 0.0 # N
    is_valid: bool = False
    message: str = ""


@dataclass(frozen=True)
class SingleLayerResult:
    """Bottom area satisfying N, and the moment it develops."""

    area: float = 0.0    # m2
    force: float = 0.0   # N
    moment: float = 0.0  # N.m
    is_valid: bool = False
    message: str = ""


@dataclass(frozen=True)
class UniformResult:
    """Equal top and bottom areas satisfying N, and the moment they develop."""

    area_total: float = 0.0    # m2
    area_top: float = 0.0      # m2
    area_bottom: float = 0.0   # m2
    force_top: float = 0.0     # N
    force_bottom: float = 0.0  # N
    moment: float = 0.0        # N.m
    is_valid: bool = False
    message: str = ""


@dataclass(frozen=True)
class ReinforcementVariants:
    """All three arrangements for one strain state."""

    strain: StrainField
    concrete: SectionForces
    eps_s1: float
    eps_s2: float
    sigma_s1: float
    sigma_s2: float
    optimal: OptimalResult
    single: SingleLayerResult
    uniform: UniformResult


# ---------------------------------------------------------------------------
# Arrangements
# ---------------------------------------------------------------------------

def optimal_layers(
    loads: DesignLoads,
    concrete: SectionForces,
    sigma_s1: float,
    sigma_s2: float,
    x1: float,
    x2: float,
) -> OptimalResult:
    """Solve force and moment equilibrium for both layer areas (Cramer)."""
    det = sigma_s1 * sigma_s2 * (x2 - x1)
    if abs(det) < _STRESS_TOL:
        return OptimalResult(message="singular system: a layer carries no stress")

    rhs_n = loads.N - concrete.N
    rhs_m = concrete.M - loads.M

    force_top = (rhs_n * x2 - rhs_m) / (x2 - x1)
    force_bottom = (rhs_m - x1 * rhs_n) / (x2 - x1)
    return OptimalResult(
        area_top=force_top / sigma_s1,
        area_bottom=force_bottom / sigma_s2,
        force_top=force_top,
        force_bottom=force_bottom,
        is_valid=True,
    )


def single_layer(
    N: float,
    concrete: SectionForces,
    sigma_s2: float,
    x2: float,
) -> SingleLayerResult:
    """Bottom area from ``N = Fc + As * sigma_s2``; may be negative."""
    if abs(sigma_s2) < _STRESS_TOL:
        return SingleLayerResult(message="bottom reinforcement stress is zero")

    area = (N - concrete.N) / sigma_s2
    force = area * sigma_s2
    return SingleLayerResult(
        area=area,
        force=force,
        moment=concrete.M - force * x2,
        is_valid=True,
    )


def uniform_layers(
    N: float,
    concrete: SectionForces,
    sigma_s1: float,
    sigma_s2: float,
    x1: float,
    x2: float,
) -> UniformResult:
    """Total area split equally between the layers from force equilibrium."""
    sigma_sum = sigma_s1 + sigma_s2
    if abs(sigma_sum) < _STRESS_TOL:
        return UniformResult(message="sum of reinforcement stresses is zero")

    area_total = 2.0 * (N - concrete.N) / sigma_sum
    half = 0.5 * area_total
    force_top = half * sigma_s1
    force_bottom = half * sigma_s2
    return UniformResult(
        area_total=area_total,
        area_top=half,
        area_bottom=half,
        force_top=force_top,
        force_bottom=force_bottom,
        moment=concrete.M - force_top * x1 - force_bottom * x2,
        is_valid=True,
    )


def reinforcement_for_strain(
    strain: StrainField,
    loads: DesignLoads,
    geometry: SectionGeometry,
    concrete: ConcreteLaw,
    steel: SteelLaw,
    integrator: ConcreteIntegrator | None = None,
) -> ReinforcementVariants:
    """Compute all three reinforcement arrangements for one strain field."""
    integrator = integrator or AnalyticalIntegrator()
    concrete_forces = integrator.integrate(strain, geometry, concrete)

    x1 = geometry.x_top_layer
    x2 = geometry.x_bottom_layer
    eps_s1 = strain.strain_at(x1)
    eps_s2 = strain.strain_at(x2)
    sigma_s1 = steel.stress(eps_s1)
    sigma_s2 = steel.stress(eps_s2)

    return ReinforcementVariants(
        strain=strain,
        concrete=concrete_forces,
        eps_s1=eps_s1,
        eps_s2=eps_s2,
        sigma_s1=sigma_s1,
        sigma_s2=sigma_s2,
        optimal=optimal_layers(loads, concrete_forces, sigma_s1, sigma_s2, x1, x2),
        single=single_layer(loads.N, concrete_forces, sigma_s2, x2),
        uniform=uniform_layers(loads.N, concrete_forces, sigma_s1, sigma_s2, x1, x2),
    )
