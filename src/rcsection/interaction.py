"""N-M interaction diagrams for rectangular RC sections per EN 1992-1-1.

Constructs the axial force -- bending moment capacity envelope of a
rectangular section with one top (``s1``) and one bottom (``s2``)
reinforcement layer using strain compatibility.

Method
------
The envelope is traced through a fixed sequence of characteristic strain
states, ordered from pure compression to pure tension:

1. pure compression, both fibres at ``eps_cu``
2. top at ``eps_cu``, bottom at ``eps_c2``
3. top at ``eps_cu``, bottom at zero
4. top at ``eps_cu``, bottom layer at the yield strain ``eps_yd``
5. top at ``eps_cu``, bottom layer at the ultimate strain ``eps_ud``
6. top at ``eps_c2``, bottom layer at ``eps_ud``
7. top at zero, bottom layer at ``eps_ud``
8. top layer at ``eps_yd`` and bottom layer at ``eps_ud``
9. pure tension, both fibres at ``eps_ud``

Between consecutive states the two extreme-fibre strains are interpolated
linearly and each sample is evaluated: concrete by the closed-form
integrator, steel by the bilinear law at both layer depths.

Units convention
----------------
All values are SI: m, m2, Pa, N, N.m.  Compression is negative and a
positive moment produces tension at the bottom edge.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .geometry import SectionGeometry, StrainField, layer_forces
from .integration import AnalyticalIntegrator, ConcreteIntegrator
from .materials import ConcreteLaw, SteelLaw


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Default number of equal parameter steps between characteristic states
DEFAULT_POINTS_BETWEEN: int = 10

CHARACTERISTIC_NAMES: tuple[str, ...] = (
    "pure_compression",
    "top_cu_bottom_c2",
    "top_cu_bottom_zero",
    "top_cu_s2_yield",
    "top_cu_s2_ultimate",
    "top_c2_s2_ultimate",
    "top_zero_s2_ultimate",
    "s1_yield_s2_ultimate",
    "pure_tension",
)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiagramPoint:
    """A single evaluated strain state of the interaction diagram.

    Attributes
    ----------
    name : str
        Characteristic state name, or ``"<from>-<to> (j/n)"`` for an
        interpolated sample.
    eps_top, eps_bottom : float
        Extreme-fibre strains.
    eps_s1, eps_s2 : float
        Strains at the top and bottom reinforcement layers.
    sigma_s1, sigma_s2 : float
        Reinforcement stresses, Pa.
    force_s1, force_s2 : float
        Reinforcement forces, N.
    concrete_force : float
        Concrete resultant, N (<= 0).
    concrete_moment : float
        Moment of the concrete resultant about the centroid, N.m.
    N : float
        Total axial force, N.
    M : float
        Total moment about the centroid, N.m.
    area_top, area_bottom : float
        Reinforcement areas used for the point, m2.
    """

    name: str
    eps_top: float
    eps_bottom: float
    eps_s1: float
    eps_s2: float
    sigma_s1: float
    sigma_s2: float
    force_s1: float
    force_s2: float
    concrete_force: float
    concrete_moment: float
    N: float
    M: float
    area_top: float
    area_bottom: float

    @property
    def is_characteristic(self) -> bool:
        """True for the named characteristic states."""
        return self.name in CHARACTERISTIC_NAMES

    def strain_field(self, height: float) -> StrainField:
        """The strain field this point was evaluated for."""
        return StrainField(self.eps_top, self.eps_bottom, height)


@dataclass(frozen=True)
class InteractionDiagram:
    """Complete N-M interaction envelope for an RC section.

    The ``points`` tuple traces the curve from pure compression to pure
    tension in evaluation order; it is never sorted or deduplicated.

    Attributes
    ----------
    points : tuple[DiagramPoint, ...]
        Ordered sequence of evaluated points.
    N_min : float
        Pure compression capacity, N (most negative axial force).
    N_max : float
        Pure tension capacity, N.
    M_max : float
        Largest moment on the curve, N.m.
    N_balanced : float
        Axial force at the point of largest moment, N.
    """

    points: tuple[DiagramPoint, ...]
    N_min: float
    N_max: float
    M_max: float
    N_balanced: float

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __getitem__(self, index: int) -> DiagramPoint:
        return self.points[index]

    @property
    def characteristic_points(self) -> list[DiagramPoint]:
        """The named characteristic states in order."""
        return [pt for pt in self.points if pt.is_characteristic]


# ---------------------------------------------------------------------------
# Characteristic strain states
# ---------------------------------------------------------------------------

def bottom_strain_for_layer(
    eps_top: float,
    eps_layer: float,
    layer_depth: float,
    height: float,
) -> float:
    """Bottom-fibre strain that puts a layer at ``layer_depth`` (below the
    top fibre) at ``eps_layer`` when the top fibre is at ``eps_top``.

    From ``eps(d) = eps_top + (eps_bottom - eps_top) * d / h``.
    """
    return eps_top + (eps_layer - eps_top) * height / layer_depth


def characteristic_strains(
    geometry: SectionGeometry,
    concrete: ConcreteLaw,
    steel: SteelLaw,
) -> list[tuple[str, float, float]]:
    """Return ``(name, eps_top, eps_bottom)`` for the nine characteristic
    states, ordered from pure compression to pure tension."""
    h = geometry.height
    d1 = geometry.depth_top_layer
    d2 = geometry.depth_bottom_layer

    eps_cu = concrete.eps_cu
    eps_c2 = concrete.eps_c2
    eps_yd = steel.eps_yd
    eps_ud = steel.eps_ud

    # Top layer at yield, bottom layer at ultimate: slope per unit depth
    slope = (eps_ud - eps_yd) / (d2 - d1)
    eps_top_8 = eps_yd - slope * d1
    eps_bottom_8 = eps_top_8 + slope * h

    states = [
        (eps_cu, eps_cu),
        (eps_cu, eps_c2),
        (eps_cu, 0.0),
        (eps_cu, bottom_strain_for_layer(eps_cu, eps_yd, d2, h)),
        (eps_cu, bottom_strain_for_layer(eps_cu, eps_ud, d2, h)),
        (eps_c2, bottom_strain_for_layer(eps_c2, eps_ud, d2, h)),
        (0.0, bottom_strain_for_layer(0.0, eps_ud, d2, h)),
        (eps_top_8, eps_bottom_8),
        (eps_ud, eps_ud),
    ]
    return [
        (name, eps_top, eps_bottom)
        for name, (eps_top, eps_bottom) in zip(CHARACTERISTIC_NAMES, states)
    ]


# ---------------------------------------------------------------------------
# Point evaluation
# ---------------------------------------------------------------------------

def evaluate_point(
    name: str,
    strain: StrainField,
    geometry: SectionGeometry,
    concrete: ConcreteLaw,
    steel: SteelLaw,
    area_top: float = 0.0,
    area_bottom: float = 0.0,
    integrator: ConcreteIntegrator | None = None,
) -> DiagramPoint:
    """Evaluate the full section state for one strain field."""
    integrator = integrator or AnalyticalIntegrator()
    concrete_forces = integrator.integrate(strain, geometry, concrete)

    eps_s1 = strain.strain_at(geometry.x_top_layer)
    eps_s2 = strain.strain_at(geometry.x_bottom_layer)
    sigma_s1 = steel.stress(eps_s1)
    sigma_s2 = steel.stress(eps_s2)

    s1 = layer_forces(area_top, sigma_s1, geometry.x_top_layer)
    s2 = layer_forces(area_bottom, sigma_s2, geometry.x_bottom_layer)
    total = concrete_forces + s1 + s2

    return DiagramPoint(
        name=name,
        eps_top=strain.eps_top,
        eps_bottom=strain.eps_bottom,
        eps_s1=eps_s1,
        eps_s2=eps_s2,
        sigma_s1=sigma_s1,
        sigma_s2=sigma_s2,
        force_s1=s1.N,
        force_s2=s2.N,
        concrete_force=concrete_forces.N,
        concrete_moment=concrete_forces.M,
        N=total.N,
        M=total.M,
        area_top=area_top,
        area_bottom=area_bottom,
    )


# ---------------------------------------------------------------------------
# Diagram builder
# ---------------------------------------------------------------------------

class InteractionDiagramBuilder:
    """Builds interaction diagrams for one section and set of materials.

    Parameters
    ----------
    geometry : SectionGeometry
    concrete : ConcreteLaw
    steel : SteelLaw
    integrator : ConcreteIntegrator, optional
        Concrete integrator; the closed-form one by default.
    """

    def __init__(
        self,
        geometry: SectionGeometry,
        concrete: ConcreteLaw,
        steel: SteelLaw,
        integrator: ConcreteIntegrator | None = None,
    ) -> None:
        self.geometry = geometry
        self.concrete = concrete
        self.steel = steel
        self.integrator = integrator or AnalyticalIntegrator()

    def _densities(self, points_between: int | Sequence[int]) -> list[int]:
        n_intervals = len(CHARACTERISTIC_NAMES) - 1
        if isinstance(points_between, int):
            densities = [points_between] * n_intervals
        else:
            densities = [int(d) for d in points_between]
        if len(densities) != n_intervals:
            raise ValueError(
                f"expected {n_intervals} interval densities, got {len(densities)}"
            )
        if any(d < 1 for d in densities):
            raise ValueError(f"interval densities must be >= 1, got {densities}")
        return densities

    def build(
        self,
        area_top: float = 0.0,
        area_bottom: float = 0.0,
        points_between: int | Sequence[int] = DEFAULT_POINTS_BETWEEN,
    ) -> InteractionDiagram:
        """Generate the interaction diagram.

        Parameters
        ----------
        area_top, area_bottom : float
            Reinforcement areas of the top and bottom layers, m2.
        points_between : int or sequence of int
            Number of equal parameter steps per interval between consecutive
            characteristic states (``n`` steps give ``n - 1`` interpolated
            samples).  A sequence gives one density per interval.

        Returns
        -------
        InteractionDiagram
        """
        if area_top < 0.0 or area_bottom < 0.0:
            raise ValueError(
                f"reinforcement areas must be >= 0, got {area_top}, {area_bottom}"
            )
        densities = self._densities(points_between)
        h = self.geometry.height

        def _evaluate(name: str, field: StrainField) -> DiagramPoint:
            return evaluate_point(
                name, field, self.geometry, self.concrete, self.steel,
                area_top, area_bottom, self.integrator,
            )

        states = characteristic_strains(self.geometry, self.concrete, self.steel)
        points: list[DiagramPoint] = []

        for (name1, top1, bot1), (name2, top2, bot2), n in zip(
            states, states[1:], densities
        ):
            start = StrainField(top1, bot1, h)
            end = StrainField(top2, bot2, h)
            points.append(_evaluate(name1, start))
            for j in range(1, n):
                points.append(
                    _evaluate(f"{name1}-{name2} ({j}/{n})", start.interpolate(end, j / n))
                )

        last_name, last_top, last_bot = states[-1]
        points.append(_evaluate(last_name, StrainField(last_top, last_bot, h)))

        balanced = max(points, key=lambda pt: pt.M)
        diagram = InteractionDiagram(
            points=tuple(points),
            N_min=points[0].N,
            N_max=points[-1].N,
            M_max=balanced.M,
            N_balanced=balanced.N,
        )
        logger.debug(
            "Interaction diagram: %d points, N in [%.1f, %.1f] N, M_max = %.1f N.m",
            len(points), diagram.N_min, diagram.N_max, diagram.M_max,
        )
        return diagram


def build_interaction_diagram(
    geometry: SectionGeometry,
    concrete: ConcreteLaw,
    steel: SteelLaw,
    area_top: float = 0.0,
    area_bottom: float = 0.0,
    points_between: int | Sequence[int] = DEFAULT_POINTS_BETWEEN,
    integrator: ConcreteIntegrator | None = None,
) -> InteractionDiagram:
    """Generate an N-M interaction diagram for a rectangular RC section.

    Convenience wrapper around :class:`InteractionDiagramBuilder`.
    """
    builder = InteractionDiagramBuilder(geometry, concrete, steel, integrator)
    return builder.build(area_top, area_bottom, points_between)
