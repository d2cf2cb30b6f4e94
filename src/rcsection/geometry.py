"""Section geometry and strain-field description for rectangular RC sections.

The section is rectangular with one reinforcement layer near the top edge
(``s1``) and one near the bottom edge (``s2``).  Positions through the depth
are described either as a depth measured down from the top fibre or as a local
coordinate ``x`` measured from the centroid (``+h/2`` at the top fibre,
``-h/2`` at the bottom fibre).
"""

from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Section geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SectionGeometry:
    """Rectangular cross-section with a top and a bottom reinforcement layer."""

    width: float         # m  -- b
    height: float        # m  -- h
    cover_top: float     # m  -- d1, top layer centroid below the top fibre
    cover_bottom: float  # m  -- d2, bottom layer centroid above the bottom fibre

    def __post_init__(self) -> None:
        if self.width <= 0.0:
            raise ValueError(f"width must be positive, got {self.width}")
        if self.height <= 0.0:
            raise ValueError(f"height must be positive, got {self.height}")
        if not 0.0 < self.cover_top < self.height:
            raise ValueError(
                f"cover_top must lie in (0, height), got {self.cover_top}"
            )
        if not 0.0 < self.cover_bottom < self.height:
            raise ValueError(
                f"cover_bottom must lie in (0, height), got {self.cover_bottom}"
            )
        if self.cover_top + self.cover_bottom >= self.height:
            raise ValueError(
                "reinforcement layers overlap: cover_top + cover_bottom "
                f"({self.cover_top + self.cover_bottom}) >= height ({self.height})"
            )

    @property
    def area(self) -> float:
        """Gross concrete area, m2."""
        return self.width * self.height

    @property
    def depth_top_layer(self) -> float:
        """Depth of the top layer below the top fibre, m."""
        return self.cover_top

    @property
    def depth_bottom_layer(self) -> float:
        """Depth of the bottom layer below the top fibre (effective depth), m."""
        return self.height - self.cover_bottom

    @property
    def x_top_layer(self) -> float:
        """Local coordinate of the top layer (positive, above the centroid)."""
        return 0.5 * self.height - self.cover_top

    @property
    def x_bottom_layer(self) -> float:
        """Local coordinate of the bottom layer (negative, below the centroid)."""
        return self.cover_bottom - 0.5 * self.height


# ---------------------------------------------------------------------------
# Strain field
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StrainField:
    """Linear strain distribution through the section depth.

    Stored as the two extreme-fibre strains; the equivalent slope/intercept
    form ``eps(x) = k*x + q`` about the centroid is available through
    :attr:`k` and :attr:`q`.  Negative strain is compression.
    """

    eps_top: float
    eps_bottom: float
    height: float

    def __post_init__(self) -> None:
        if self.height <= 0.0:
            raise ValueError(f"height must be positive, got {self.height}")

    @classmethod
    def from_slope(cls, k: float, q: float, height: float) -> StrainField:
        """Build a field from its slope ``k`` (1/m) and centroid strain ``q``."""
        half = 0.5 * height
        return cls(eps_top=q + k * half, eps_bottom=q - k * half, height=height)

    @property
    def k(self) -> float:
        """Slope (curvature) of the field, 1/m.  Positive when the top is
        more tensioned than the bottom."""
        return (self.eps_top - self.eps_bottom) / self.height

    @property
    def q(self) -> float:
        """Strain at the centroid."""
        return 0.5 * (self.eps_top + self.eps_bottom)

    def strain_at(self, x: float) -> float:
        """Strain at local coordinate ``x`` (measured up from the centroid)."""
        return self.k * x + self.q

    def strain_at_depth(self, depth: float) -> float:
        """Strain at ``depth`` measured down from the top fibre."""
        return self.eps_top + (self.eps_bottom - self.eps_top) * depth / self.height

    def interpolate(self, other: StrainField, t: float) -> StrainField:
        """Field whose extreme-fibre strains lie a fraction ``t`` of the way
        from this field to ``other``."""
        return StrainField(
            eps_top=self.eps_top + t * (other.eps_top - self.eps_top),
            eps_bottom=self.eps_bottom + t * (other.eps_bottom - self.eps_bottom),
            height=self.height,
        )


# ---------------------------------------------------------------------------
# Force resultants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SectionForces:
    """Axial force and moment about the centroid.

    ``N`` is in N (negative in compression); ``M`` is in N.m, positive when it
    produces tension at the bottom edge.
    """

    N: float
    M: float

    def __add__(self, other: SectionForces) -> SectionForces:
        return SectionForces(N=self.N + other.N, M=self.M + other.M)


def layer_forces(area: float, stress: float, x: float) -> SectionForces:
    """Resultant of a reinforcement layer of ``area`` at local coordinate ``x``.

    A force ``F`` acting above the centroid contributes ``-F * x`` to the
    bottom-tension-positive moment.
    """
    force = area * stress
    return SectionForces(N=force, M=-force * x)
