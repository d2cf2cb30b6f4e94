"""Concrete stress-block integration over a rectangular section.

Converts a linear strain field into the compressive resultant of the
parabola-rectangle law (EN 1992-1-1, Cl. 3.1.7) and its moment about the
centroid.  Two interchangeable integrators are provided:

* :class:`NumericalIntegrator` -- midpoint strip rule over the full depth.
  Used as a reference to check the closed form; its error falls as the
  strip count rises.
* :class:`AnalyticalIntegrator` -- exact closed-form integration of the
  stress polynomial over at most two sub-intervals (parabolic branch and
  constant plateau).  This is the production integrator.

Closed form
-----------
In local coordinates (``x = 0`` at the centroid, top fibre at ``+h/2``) the
strain is ``eps(x) = k*x + q``.  With ``a = k / eps_c2`` and
``c = q / eps_c2`` the parabolic branch reads

.. math::

    \\sigma(x) = f_{cd} \\left[(2a - 2ac)\\,x + (2c - c^2) - a^2 x^2\\right]

so force and first moment over ``[xa, xb]`` are polynomials in ``x`` up to
``x^4``.  On the plateau ``sigma = fcd``.

The moment returned by both integrators is ``M = -b * integral(sigma * x)``,
i.e. positive when the resultant compression lies above the centroid, which
is the bottom-tension-positive convention used throughout the package.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .geometry import SectionForces, SectionGeometry, StrainField
from .materials import ConcreteLaw


_ZERO = SectionForces(N=0.0, M=0.0)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IntegrationSettings:
    """Small-number thresholds of the closed-form integrator.

    Attributes
    ----------
    curvature_tolerance : float
        ``|k|`` below this value (1/m) is treated as a uniform strain field.
    interval_tolerance : float
        A segment ``[lo, hi]`` contributes only if ``lo < hi - tolerance`` (m).
    """

    curvature_tolerance: float = 1e-12
    interval_tolerance: float = 1e-12


# ---------------------------------------------------------------------------
# Integrator interface
# ---------------------------------------------------------------------------

class ConcreteIntegrator(ABC):
    """Computes the concrete resultant for a strain field."""

    @abstractmethod
    def integrate(
        self,
        strain: StrainField,
        geometry: SectionGeometry,
        concrete: ConcreteLaw,
    ) -> SectionForces:
        """Return the concrete ``(N, M)`` for ``strain`` over ``geometry``."""


# ---------------------------------------------------------------------------
# Numerical strip integration
# ---------------------------------------------------------------------------

class NumericalIntegrator(ConcreteIntegrator):
    """Midpoint strip rule over the full section depth.

    Parameters
    ----------
    n_strips : int
        Number of equal strips (default 100).
    """

    def __init__(self, n_strips: int = 100) -> None:
        if n_strips < 1:
            raise ValueError(f"n_strips must be >= 1, got {n_strips}")
        self.n_strips = n_strips

    def integrate(
        self,
        strain: StrainField,
        geometry: SectionGeometry,
        concrete: ConcreteLaw,
    ) -> SectionForces:
        h = geometry.height
        dy = h / self.n_strips

        # Strip midpoints measured up from the bottom fibre
        y = (np.arange(self.n_strips) + 0.5) * dy
        eps = strain.eps_bottom + (strain.eps_top - strain.eps_bottom) * y / h

        parabola = concrete.fcd * (1.0 - (1.0 - eps / concrete.eps_c2) ** 2)
        sigma = np.where(
            eps < 0.0,
            np.where(eps >= concrete.eps_c2, parabola, concrete.fcd),
            0.0,
        )

        dF = sigma * geometry.width * dy
        y_from_centroid = y - 0.5 * h
        return SectionForces(
            N=float(dF.sum()),
            M=float((dF * -y_from_centroid).sum()),
        )


# ---------------------------------------------------------------------------
# Closed-form integration
# ---------------------------------------------------------------------------

class SegmentCase(Enum):
    """Which closed-form evaluation applies to a strain field."""

    UNIFORM_TENSION = "uniform_tension"
    UNIFORM_PARABOLIC = "uniform_parabolic"
    UNIFORM_PLATEAU = "uniform_plateau"
    GENERAL = "general"


@dataclass(frozen=True)
class SegmentBounds:
    """Parabolic and plateau sub-intervals of the depth, local coordinates.

    For the uniform cases the bounds are unused and left empty.
    """

    case: SegmentCase
    parabolic: tuple[float, float] = (0.0, 0.0)
    plateau: tuple[float, float] = (0.0, 0.0)


def segment_bounds(
    k: float,
    q: float,
    height: float,
    eps_c2: float,
    curvature_tolerance: float = 1e-12,
) -> SegmentBounds:
    """Classify a strain field ``eps(x) = k*x + q`` and return its segments.

    The parabolic segment lies between the zero-strain coordinate ``x0`` and
    the peak-strain coordinate ``x_c2``, clipped to the section.  The plateau
    covers the more compressed side of ``x_c2``, which is below it for
    ``k > 0`` and above it for ``k < 0``.
    """
    half = 0.5 * height
    bottom, top = -half, half

    if abs(k) < curvature_tolerance:
        if q >= 0.0:
            return SegmentBounds(SegmentCase.UNIFORM_TENSION)
        if q > eps_c2:
            return SegmentBounds(SegmentCase.UNIFORM_PARABOLIC)
        return SegmentBounds(SegmentCase.UNIFORM_PLATEAU)

    x0 = -q / k
    x_c2 = (eps_c2 - q) / k

    parabolic = (
        max(bottom, min(x_c2, x0)),
        min(top, max(x_c2, x0)),
    )
    if k > 0.0:
        plateau = (bottom, min(x_c2, top))
    else:
        plateau = (max(x_c2, bottom), top)

    return SegmentBounds(SegmentCase.GENERAL, parabolic=parabolic, plateau=plateau)


class AnalyticalIntegrator(ConcreteIntegrator):
    """Exact closed-form integration of the parabola-rectangle law."""

    def __init__(self, settings: IntegrationSettings | None = None) -> None:
        self.settings = settings or IntegrationSettings()

    def integrate(
        self,
        strain: StrainField,
        geometry: SectionGeometry,
        concrete: ConcreteLaw,
    ) -> SectionForces:
        if strain.eps_top >= 0.0 and strain.eps_bottom >= 0.0:
            return _ZERO
        return self.integrate_kq(
            strain.k, strain.q, geometry.width, geometry.height, concrete
        )

    def integrate_kq(
        self,
        k: float,
        q: float,
        b: float,
        h: float,
        concrete: ConcreteLaw,
    ) -> SectionForces:
        """Concrete resultant for ``eps(x) = k*x + q`` on a ``b x h`` section."""
        fcd = concrete.fcd
        eps_c2 = concrete.eps_c2
        bounds = segment_bounds(
            k, q, h, eps_c2, self.settings.curvature_tolerance
        )

        if bounds.case is SegmentCase.UNIFORM_TENSION:
            return _ZERO
        if bounds.case is SegmentCase.UNIFORM_PARABOLIC:
            ratio = q / eps_c2
            sigma = fcd * (1.0 - (1.0 - ratio) ** 2)
            return SectionForces(N=sigma * b * h, M=0.0)
        if bounds.case is SegmentCase.UNIFORM_PLATEAU:
            return SectionForces(N=fcd * b * h, M=0.0)

        tol = self.settings.interval_tolerance
        N = 0.0
        first_moment = 0.0  # b * integral(sigma * x)

        xa, xb = bounds.parabolic
        if xa < xb - tol:
            a = k / eps_c2
            c = q / eps_c2
            c1 = 2.0 * a - 2.0 * a * c   # coefficient of x
            c0 = 2.0 * c - c * c         # constant term
            c2 = a * a                   # coefficient of -x^2

            d1 = xb - xa
            d2 = (xb**2 - xa**2) / 2.0
            d3 = (xb**3 - xa**3) / 3.0
            d4 = (xb**4 - xa**4) / 4.0

            N += fcd * b * (c1 * d2 + c0 * d1 - c2 * d3)
            first_moment += fcd * b * (c1 * d3 + c0 * d2 - c2 * d4)

        xa, xb = bounds.plateau
        if xa < xb - tol:
            n_plateau = fcd * b * (xb - xa)
            N += n_plateau
            first_moment += n_plateau * 0.5 * (xa + xb)

        return SectionForces(N=N, M=-first_moment)
