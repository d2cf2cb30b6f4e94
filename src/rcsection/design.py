"""Reinforcement design of a rectangular RC section for a pair of loads.

Finds the bottom reinforcement area ``As2`` (top layer empty) that lets the
section carry a design axial force and moment.  Two strategies are offered:

* :meth:`CapacityDesignSolver.design` -- the production path.  The
  zero-reinforcement interaction diagram is built once; each load case then
  brackets the target moment between two diagram points and interpolates,
  with no iteration.
* :meth:`CapacityDesignSolver.design_iterative` -- a reference path.  An
  outer false-position search on the top-fibre strain matches ``M``; an
  inner damped Newton iteration on the bottom-fibre strain enforces ``N``.

Neither strategy raises on an unreachable target: the outcome is reported
through :attr:`DesignResult.status`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable

from .geometry import SectionForces, SectionGeometry, StrainField
from .integration import AnalyticalIntegrator, ConcreteIntegrator
from .interaction import DiagramPoint, InteractionDiagram, InteractionDiagramBuilder
from .materials import ConcreteLaw, SteelLaw
from .reinforcement import DesignLoads, single_layer


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

class DesignStatus(str, Enum):
    """Outcome of a design solve."""

    CONVERGED = "converged"
    OUTSIDE_RANGE = "outside_range"
    NOT_CONVERGED = "not_converged"


@dataclass(frozen=True)
class SolverSettings:
    """Tolerances and limits of the design solver.

    Attributes
    ----------
    points_between : int
        Interval density of the precomputed diagram.
    axial_tolerance : float
        Lookup path: a diagram pair is considered only if its mid-point
        axial force is within this fraction of ``|fcd| * b * h`` of the
        target (plus 1 N).
    max_iterations : int
        Outer iteration budget of the root search.
    tol_rel, tol_abs : float
        Root search converges when the moment error is below ``tol_rel``
        (relative) or ``tol_abs`` (N.m).
    inner_max_iterations : int
        Iteration budget of the axial equilibrium search.
    inner_tol_rel, inner_tol_abs : float
        Axial equilibrium is met when ``|N - N_target|`` is below
        ``inner_tol_rel * |N_target| + inner_tol_abs`` (N).
    damping : float
        Fraction of the Newton step taken on the bottom-fibre strain.
    strain_margin : float
        Bottom-fibre strain is kept within
        ``[margin * eps_cu, margin * eps_ud]``.
    fallback_to_iterative : bool
        Lookup path: when no diagram pair brackets the target, retry with
        the root search before reporting ``OUTSIDE_RANGE``.  Covers loads
        the plain concrete carries, where the floored area cannot close N
        at any diagram point.
    """

    points_between: int = 40
    axial_tolerance: float = 1e-3
    max_iterations: int = 50
    tol_rel: float = 0.01
    tol_abs: float = 100.0
    inner_max_iterations: int = 50
    inner_tol_rel: float = 1e-4
    inner_tol_abs: float = 1.0
    damping: float = 0.5
    strain_margin: float = 1.2
    fallback_to_iterative: bool = True


@dataclass(frozen=True)
class DesignResult:
    """Result of one design solve.

    Failed solves carry ``NaN`` for every computed quantity and
    ``strain=None``; ``status`` tells an unreachable target apart from an
    exhausted iteration budget.
    """

    converged: bool
    status: DesignStatus
    area_bottom: float          # m2, required As2
    strain: StrainField | None
    eps_s2: float
    sigma_s2: float             # Pa
    concrete_force: float       # N
    concrete_moment: float      # N.m
    N: float                    # N, achieved
    M: float                    # N.m, achieved
    error_abs: float            # N.m, |M - M_target|
    error_rel: float            # |M - M_target| / |M_target|
    error_N: float              # N, |N - N_target|
    iterations: int
    message: str = ""


@dataclass(frozen=True)
class _Trial:
    """Section state for one candidate strain field and area."""

    strain: StrainField
    area: float
    concrete: SectionForces
    eps_s2: float
    sigma_s2: float
    N: float
    M: float


def _moment_errors(M: float, M_target: float) -> tuple[float, float]:
    error_abs = abs(M - M_target)
    if abs(M_target) > 1e-6:
        return error_abs, error_abs / abs(M_target)
    return error_abs, 0.0 if error_abs == 0.0 else math.inf


def _failed(status: DesignStatus, message: str, iterations: int = 0) -> DesignResult:
    nan = math.nan
    return DesignResult(
        converged=False,
        status=status,
        area_bottom=nan,
        strain=None,
        eps_s2=nan,
        sigma_s2=nan,
        concrete_force=nan,
        concrete_moment=nan,
        N=nan,
        M=nan,
        error_abs=nan,
        error_rel=nan,
        error_N=nan,
        iterations=iterations,
        message=message,
    )


# ---------------------------------------------------------------------------
# Solver
# ---------------------------------------------------------------------------

class CapacityDesignSolver:
    """Designs the bottom reinforcement of one section for many load cases.

    The zero-reinforcement interaction diagram is built once in the
    constructor and never modified, so a solver may serve any number of
    :meth:`design` calls.

    Parameters
    ----------
    geometry : SectionGeometry
    concrete : ConcreteLaw
    steel : SteelLaw
    settings : SolverSettings, optional
    integrator : ConcreteIntegrator, optional
        Concrete integrator; the closed-form one by default.
    """

    def __init__(
        self,
        geometry: SectionGeometry,
        concrete: ConcreteLaw,
        steel: SteelLaw,
        settings: SolverSettings | None = None,
        integrator: ConcreteIntegrator | None = None,
    ) -> None:
        self.geometry = geometry
        self.concrete = concrete
        self.steel = steel
        self.settings = settings or SolverSettings()
        self.integrator = integrator or AnalyticalIntegrator()

        builder = InteractionDiagramBuilder(geometry, concrete, steel, self.integrator)
        self.diagram: InteractionDiagram = builder.build(
            points_between=self.settings.points_between
        )

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _trial(self, strain: StrainField, area: float) -> _Trial:
        x2 = self.geometry.x_bottom_layer
        conc = self.integrator.integrate(strain, self.geometry, self.concrete)
        eps_s2 = strain.strain_at(x2)
        sigma_s2 = self.steel.stress(eps_s2)
        force = area * sigma_s2
        return _Trial(
            strain=strain,
            area=area,
            concrete=conc,
            eps_s2=eps_s2,
            sigma_s2=sigma_s2,
            N=conc.N + force,
            M=conc.M - force * x2,
        )

    def _required_area(self, N_target: float, conc: SectionForces, sigma_s2: float) -> float:
        """Bottom area from axial equilibrium, floored at zero."""
        single = single_layer(N_target, conc, sigma_s2, self.geometry.x_bottom_layer)
        if not single.is_valid:
            return 0.0
        return max(single.area, 0.0)

    def _result(
        self,
        trial: _Trial,
        loads: DesignLoads,
        iterations: int,
        message: str,
    ) -> DesignResult:
        error_abs, error_rel = _moment_errors(trial.M, loads.M)
        return DesignResult(
            converged=True,
            status=DesignStatus.CONVERGED,
            area_bottom=trial.area,
            strain=trial.strain,
            eps_s2=trial.eps_s2,
            sigma_s2=trial.sigma_s2,
            concrete_force=trial.concrete.N,
            concrete_moment=trial.concrete.M,
            N=trial.N,
            M=trial.M,
            error_abs=error_abs,
            error_rel=error_rel,
            error_N=abs(trial.N - loads.N),
            iterations=iterations,
            message=message,
        )

    # ------------------------------------------------------------------
    # Lookup path
    # ------------------------------------------------------------------

    def _single_layer_point(self, pt: DiagramPoint, N_target: float) -> tuple[float, float]:
        """``(N, M)`` of a diagram point once the bottom layer needed for
        ``N_target`` is added."""
        conc = SectionForces(N=pt.concrete_force, M=pt.concrete_moment)
        area = self._required_area(N_target, conc, pt.sigma_s2)
        force = area * pt.sigma_s2
        return conc.N + force, conc.M - force * self.geometry.x_bottom_layer

    def _find_bracket(self, loads: DesignLoads) -> tuple[int, list[tuple[float, float]]] | None:
        states = [self._single_layer_point(pt, loads.N) for pt in self.diagram.points]
        n_points = len(states)

        start = min(range(n_points), key=lambda i: abs(states[i][0] - loads.N))
        n_tol = (
            self.settings.axial_tolerance * abs(self.concrete.fcd) * self.geometry.area
            + 1.0
        )

        order = list(range(start, n_points - 1)) + list(range(start - 1, -1, -1))
        for i in order:
            (n1, m1), (n2, m2) = states[i], states[i + 1]
            if abs(0.5 * (n1 + n2) - loads.N) > n_tol:
                continue
            if (m1 <= loads.M <= m2) or (m2 <= loads.M <= m1):
                return i, states
        return None

    def design(self, loads: DesignLoads) -> DesignResult:
        """Design ``As2`` for ``loads`` by interpolating on the diagram.

        Parameters
        ----------
        loads : DesignLoads
            Target axial force (N) and moment (N.m).

        Returns
        -------
        DesignResult
            ``iterations`` is 0 for an interpolated result.  When no pair of
            diagram points brackets the target the root search is tried
            (see :attr:`SolverSettings.fallback_to_iterative`); its result
            is returned as is, ``OUTSIDE_RANGE`` included.
        """
        found = self._find_bracket(loads)
        if found is None and self.settings.fallback_to_iterative:
            logger.info(
                "No diagram pair brackets (N=%.1f N, M=%.1f N.m); "
                "falling back to the root search", loads.N, loads.M,
            )
            result = self.design_iterative(loads)
            if result.converged:
                return replace(
                    result, message=f"no diagram bracket; {result.message}"
                )
            return result
        if found is None:
            logger.warning(
                "Target (N=%.1f N, M=%.1f N.m) is outside the feasible range "
                "of the interaction diagram", loads.N, loads.M,
            )
            return _failed(
                DesignStatus.OUTSIDE_RANGE,
                "target moment is outside the feasible range of the diagram",
            )

        i, states = found
        m1, m2 = states[i][1], states[i + 1][1]
        dm = m2 - m1
        t = (loads.M - m1) / dm if dm != 0.0 else 0.0
        t = min(max(t, 0.0), 1.0)

        h = self.geometry.height
        p1, p2 = self.diagram.points[i], self.diagram.points[i + 1]
        strain = p1.strain_field(h).interpolate(p2.strain_field(h), t)

        bare = self._trial(strain, 0.0)
        area = self._required_area(loads.N, bare.concrete, bare.sigma_s2)
        trial = self._trial(strain, area)

        result = self._result(
            trial, loads, iterations=0,
            message=f"interpolated between '{p1.name}' and '{p2.name}' (t={t:.3f})",
        )
        logger.info(
            "Lookup design: As2 = %.3e m2, M = %.1f N.m (error %.2f %%)",
            result.area_bottom, result.M, 100.0 * result.error_rel,
        )
        return result

    def design_many(self, loads: Iterable[DesignLoads]) -> list[DesignResult]:
        """Design every load case against the one precomputed diagram."""
        return [self.design(case) for case in loads]

    # ------------------------------------------------------------------
    # Root-search path
    # ------------------------------------------------------------------

    def _axial(self, eps_top: float, eps_bottom: float, area: float) -> float:
        return self._trial(StrainField(eps_top, eps_bottom, self.geometry.height), area).N

    def _solve_bottom_strain(
        self,
        eps_top: float,
        area: float,
        N_target: float,
        guess: float,
    ) -> float:
        """Bottom-fibre strain giving ``N = N_target`` for fixed top strain
        and area.

        ``N`` never decreases as the bottom strain grows, so each residual
        narrows a bracket; damped Newton steps that leave the bracket fall
        back to bisection.  If no root exists in the admissible range the
        nearest bound is returned.
        """
        s = self.settings
        lo = s.strain_margin * self.concrete.eps_cu
        hi = s.strain_margin * self.steel.eps_ud
        eps_bottom = min(max(guess, lo), hi)
        tol = s.inner_tol_rel * abs(N_target) + s.inner_tol_abs
        delta = 1e-7

        for _ in range(s.inner_max_iterations):
            residual = self._axial(eps_top, eps_bottom, area) - N_target
            if abs(residual) < tol:
                return eps_bottom
            if residual > 0.0:
                hi = eps_bottom
            else:
                lo = eps_bottom

            stiffness = (
                self._axial(eps_top, eps_bottom + delta, area) - N_target - residual
            ) / delta
            candidate = math.nan
            if stiffness > 0.0:
                candidate = eps_bottom - s.damping * residual / stiffness
            if not lo < candidate < hi:
                candidate = 0.5 * (lo + hi)
            eps_bottom = candidate

        return eps_bottom

    def _trial_for_top(self, eps_top: float, N_target: float) -> _Trial:
        h = self.geometry.height
        eps_bottom = self._solve_bottom_strain(eps_top, 0.0, N_target, guess=eps_top)
        bare = self._trial(StrainField(eps_top, eps_bottom, h), 0.0)
        area = self._required_area(N_target, bare.concrete, bare.sigma_s2)

        eps_bottom = self._solve_bottom_strain(eps_top, area, N_target, guess=eps_bottom)
        return self._trial(StrainField(eps_top, eps_bottom, h), area)

    def design_iterative(self, loads: DesignLoads) -> DesignResult:
        """Design ``As2`` for ``loads`` by a false-position root search.

        The outer search runs on the top-fibre strain between ``eps_cu`` and
        ``eps_ud`` (Illinois variant of regula falsi); each candidate is
        brought into axial equilibrium by :meth:`_solve_bottom_strain`.

        Returns
        -------
        DesignResult
            ``OUTSIDE_RANGE`` when the target moment is not between the two
            boundary moments, ``NOT_CONVERGED`` when the iteration budget
            runs out.
        """
        s = self.settings
        a = self.concrete.eps_cu
        b = self.steel.eps_ud
        trial_a = self._trial_for_top(a, loads.N)
        trial_b = self._trial_for_top(b, loads.N)
        f_a = trial_a.M - loads.M
        f_b = trial_b.M - loads.M

        logger.debug(
            "Root search: target M = %.1f N.m, boundary moments %.1f / %.1f N.m",
            loads.M, trial_a.M, trial_b.M,
        )
        if f_a * f_b > 0.0:
            low, high = sorted((trial_a.M, trial_b.M))
            logger.warning(
                "Target M = %.1f N.m outside the feasible range [%.1f, %.1f] N.m",
                loads.M, low, high,
            )
            return _failed(
                DesignStatus.OUTSIDE_RANGE,
                f"target moment outside the feasible range [{low:.1f}, {high:.1f}] N.m",
            )

        for iteration in range(1, s.max_iterations + 1):
            if abs(f_b - f_a) < 1e-6:
                c = 0.5 * (a + b)
            else:
                c = b - f_b * (b - a) / (f_b - f_a)

            trial = self._trial_for_top(c, loads.N)
            f_c = trial.M - loads.M
            error_abs, error_rel = _moment_errors(trial.M, loads.M)
            logger.debug(
                "Iter %2d: eps_top = %.6f, M = %.1f N.m, As2 = %.3e m2, error = %.3f %%",
                iteration, c, trial.M, trial.area, 100.0 * error_rel,
            )

            if error_abs < s.tol_abs or error_rel < s.tol_rel:
                result = self._result(
                    trial, loads, iterations=iteration,
                    message=f"converged after {iteration} iterations",
                )
                logger.info(
                    "Iterative design: As2 = %.3e m2 after %d iterations",
                    result.area_bottom, iteration,
                )
                return result

            if f_c * f_b < 0.0:
                a, f_a = b, f_b
            else:
                f_a *= 0.5
            b, f_b = c, f_c

        logger.warning("Root search did not converge after %d iterations", s.max_iterations)
        return _failed(
            DesignStatus.NOT_CONVERGED,
            f"did not converge after {s.max_iterations} iterations",
            iterations=s.max_iterations,
        )
