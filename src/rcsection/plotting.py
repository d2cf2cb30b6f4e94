"""Interaction diagram plots.

:func:`draw_interaction_diagram` returns a ``matplotlib.figure.Figure`` that
the caller can save with ``fig.savefig``.  Values are drawn in kN and kN.m
with compression negative, so pure compression sits at the bottom of the
chart and pure tension at the top.
"""

from __future__ import annotations

from typing import Sequence

import matplotlib
matplotlib.use("Agg")          # non-interactive backend for CLI use
import matplotlib.pyplot as plt

from .interaction import InteractionDiagram
from .reinforcement import DesignLoads
from .utils import n_to_kn, nm_to_knm


# ── Colours ──────────────────────────────────────────────────────────────────

_ENVELOPE = "#2980b9"
_CHARACTERISTIC = "#1f3a5f"
_APPLIED = "#e74c3c"


def draw_interaction_diagram(
    diagram: InteractionDiagram,
    loads: Sequence[DesignLoads] | None = None,
    title: str = "N-M Interaction Diagram",
    label_points: bool = True,
) -> plt.Figure:
    """Plot an N-M envelope with its characteristic states and applied loads.

    Parameters
    ----------
    diagram : InteractionDiagram
        Diagram to draw, SI values.
    loads : sequence of DesignLoads, optional
        Applied load pairs (N, N.m) drawn as markers.
    title : str
    label_points : bool
        Annotate the characteristic states with their sequence number.
    """
    fig, ax = plt.subplots(figsize=(8, 5))

    if diagram is None or len(diagram) == 0:
        ax.text(0.5, 0.5, "No interaction points", transform=ax.transAxes,
                ha="center", va="center", fontsize=12)
        ax.set_title(title)
        return fig

    Ms = [nm_to_knm(pt.M) for pt in diagram]
    Ns = [n_to_kn(pt.N) for pt in diagram]
    ax.plot(Ms, Ns, "-", color=_ENVELOPE, linewidth=1.8,
            label="Capacity envelope", zorder=2)
    ax.fill_betweenx(Ns, 0, Ms, alpha=0.08, color=_ENVELOPE)

    key = diagram.characteristic_points
    ax.plot([nm_to_knm(pt.M) for pt in key], [n_to_kn(pt.N) for pt in key],
            "s", color=_CHARACTERISTIC, markersize=5, zorder=4,
            label="Characteristic states")
    if label_points:
        for i, pt in enumerate(key, 1):
            ax.annotate(str(i), (nm_to_knm(pt.M), n_to_kn(pt.N)),
                        textcoords="offset points", xytext=(5, 3), fontsize=7)

    M_max = nm_to_knm(diagram.M_max)
    N_bal = n_to_kn(diagram.N_balanced)
    ax.plot(M_max, N_bal, "^", color=_CHARACTERISTIC, markersize=7, zorder=4)
    ax.text(M_max * 1.02, N_bal, f"M_max ({M_max:.0f}, {N_bal:.0f})",
            fontsize=7, va="center")

    all_M, all_N = list(Ms), list(Ns)
    for i, case in enumerate(loads or ()):
        M_app, N_app = nm_to_knm(case.M), n_to_kn(case.N)
        ax.plot(M_app, N_app, "o", color=_APPLIED, markersize=8, zorder=5,
                label="Applied (N, M)" if i == 0 else None)
        ax.text(M_app + abs(M_max) * 0.02, N_app, f"({M_app:.0f}, {N_app:.0f})",
                fontsize=7, color=_APPLIED, va="center")
        all_M.append(M_app)
        all_N.append(N_app)

    ax.set_xlabel("Moment M (kN.m)", fontsize=9)
    ax.set_ylabel("Axial force N (kN), compression negative", fontsize=9)
    ax.set_title(title, fontsize=11, fontweight="bold")
    ax.legend(loc="upper right", fontsize=8)
    ax.grid(True, alpha=0.3)
    ax.axhline(0, color="gray", linewidth=0.5)
    ax.axvline(0, color="gray", linewidth=0.5)

    m_range = (max(all_M) - min(all_M)) or 1.0
    n_range = (max(all_N) - min(all_N)) or 1.0
    ax.set_xlim(min(all_M) - m_range * 0.05, max(all_M) + m_range * 0.15)
    ax.set_ylim(min(all_N) - n_range * 0.05, max(all_N) + n_range * 0.1)

    fig.tight_layout()
    return fig
