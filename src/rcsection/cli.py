"""Command-line interface for RC section analysis and design.

Usage::

    rcsection diagram <input_yaml> [--plot diagram.png] [--all]
    rcsection design <input_yaml> [--method lookup|iterative]
    rcsection analyse <input_yaml> --eps-top -3.5 --eps-bottom 10
    rcsection template
    rcsection validate <input_yaml>
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

import click

from .design import CapacityDesignSolver, DesignResult, DesignStatus
from .geometry import StrainField
from .input_parser import InputError, SectionModel, build_model, generate_template, parse_input
from .interaction import build_interaction_diagram
from .reinforcement import DesignLoads, reinforcement_for_strain
from .utils import (
    m2_to_cm2,
    n_to_kn,
    nm_to_knm,
    pa_to_mpa,
    per_mille_to_strain,
    strain_to_per_mille,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _format_error(result: DesignResult) -> str:
    """Relative moment error, or the absolute one when the target M is zero."""
    if math.isinf(result.error_rel):
        return f"{nm_to_knm(result.error_abs):.3f} kNm"
    return f"{100.0 * result.error_rel:.2f} %"


def _load_model(input_file: str) -> SectionModel:
    """Parse *input_file* and build the SI model, exiting on any error."""
    try:
        config = parse_input(input_file)
        return build_model(config)
    except (InputError, FileNotFoundError, KeyError, ValueError) as exc:
        click.secho(f"Error parsing input: {exc}", fg="red", err=True)
        raise SystemExit(1) from exc


def _echo_materials(model: SectionModel) -> None:
    geo, con, stl = model.geometry, model.concrete, model.steel
    click.echo(
        f"  Section: b={geo.width:.3f} m, h={geo.height:.3f} m, "
        f"d1={geo.cover_top:.3f} m, d2={geo.cover_bottom:.3f} m"
    )
    click.echo(
        f"  Concrete: fcd={pa_to_mpa(con.fcd):.2f} MPa, "
        f"eps_c2={strain_to_per_mille(con.eps_c2):.2f}, "
        f"eps_cu={strain_to_per_mille(con.eps_cu):.2f} per mille"
    )
    click.echo(
        f"  Steel: fyd={pa_to_mpa(stl.fyd):.1f} MPa, "
        f"eps_yd={strain_to_per_mille(stl.eps_yd):.3f}, "
        f"eps_ud={strain_to_per_mille(stl.eps_ud):.2f} per mille"
    )


# ---------------------------------------------------------------------------
# Top-level group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="rcsection-design")
@click.option("-v", "--verbose", is_flag=True, help="Log solver progress.")
def main(verbose: bool) -> None:
    """RC Section Tool - EC2 N-M interaction and reinforcement design."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# diagram
# ---------------------------------------------------------------------------

@main.command()
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--plot", "plot_file", type=click.Path(), default=None,
              help="Save the diagram as an image (e.g. diagram.png).")
@click.option("--all", "show_all", is_flag=True,
              help="List interpolated points as well as characteristic states.")
def diagram(input_file: str, plot_file: str | None, show_all: bool) -> None:
    """Build the N-M interaction diagram for INPUT_FILE."""
    model = _load_model(input_file)
    click.echo(f"Reading input file: {Path(input_file)}")
    _echo_materials(model)
    click.echo(
        f"  Reinforcement: As1={m2_to_cm2(model.area_top):.2f} cm2, "
        f"As2={m2_to_cm2(model.area_bottom):.2f} cm2"
    )

    result = build_interaction_diagram(
        model.geometry, model.concrete, model.steel,
        area_top=model.area_top,
        area_bottom=model.area_bottom,
        points_between=model.diagram_points_between,
    )

    click.echo(f"\n{'Point':<40} {'eps_top':>9} {'eps_bot':>9} {'N [kN]':>11} {'M [kNm]':>10}")
    rows = result.points if show_all else result.characteristic_points
    for pt in rows:
        click.echo(
            f"{pt.name:<40} {strain_to_per_mille(pt.eps_top):9.3f} "
            f"{strain_to_per_mille(pt.eps_bottom):9.3f} "
            f"{n_to_kn(pt.N):11.1f} {nm_to_knm(pt.M):10.1f}"
        )

    click.echo(
        f"\n  {len(result)} points, N in [{n_to_kn(result.N_min):.1f}, "
        f"{n_to_kn(result.N_max):.1f}] kN, M_max = {nm_to_knm(result.M_max):.1f} kNm "
        f"at N = {n_to_kn(result.N_balanced):.1f} kN"
    )

    if plot_file:
        from .plotting import draw_interaction_diagram

        loads = [case for _, case in model.loads]
        fig = draw_interaction_diagram(result, loads)
        fig.savefig(plot_file, dpi=150)
        click.secho(f"Diagram saved to {Path(plot_file).resolve()}", fg="green")


# ---------------------------------------------------------------------------
# design
# ---------------------------------------------------------------------------

@main.command()
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--method", type=click.Choice(["lookup", "iterative"]), default=None,
              help="Solver path; overrides solver.method in the input file.")
def design(input_file: str, method: str | None) -> None:
    """Design the bottom reinforcement for every load case in INPUT_FILE."""
    model = _load_model(input_file)
    if not model.loads:
        click.secho("Error: no load cases in input file", fg="red", err=True)
        raise SystemExit(1)

    method = method or model.solver_method
    click.echo(f"Reading input file: {Path(input_file)}")
    _echo_materials(model)
    click.echo(f"  Method: {method}\n")

    solver = CapacityDesignSolver(
        model.geometry, model.concrete, model.steel, settings=model.solver_settings
    )
    for name, case in model.loads:
        if method == "iterative":
            result = solver.design_iterative(case)
        else:
            result = solver.design(case)

        header = f"{name}: N = {n_to_kn(case.N):.1f} kN, M = {nm_to_knm(case.M):.1f} kNm"
        if result.status is not DesignStatus.CONVERGED:
            click.secho(f"{header} -> {result.status.value}: {result.message}", fg="yellow")
            continue

        click.echo(header)
        click.echo(f"  As2 = {m2_to_cm2(result.area_bottom):.2f} cm2")
        click.echo(
            f"  eps_top = {strain_to_per_mille(result.strain.eps_top):.3f}, "
            f"eps_bottom = {strain_to_per_mille(result.strain.eps_bottom):.3f} per mille"
        )
        click.echo(
            f"  sigma_s2 = {pa_to_mpa(result.sigma_s2):.1f} MPa, "
            f"Fc = {n_to_kn(result.concrete_force):.1f} kN"
        )
        click.echo(
            f"  Achieved N = {n_to_kn(result.N):.1f} kN, M = {nm_to_knm(result.M):.2f} kNm "
            f"(error {_format_error(result)}, {result.iterations} iterations)"
        )


# ---------------------------------------------------------------------------
# analyse
# ---------------------------------------------------------------------------

@main.command()
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--eps-top", type=float, required=True, help="Top-fibre strain, per mille.")
@click.option("--eps-bottom", type=float, required=True, help="Bottom-fibre strain, per mille.")
def analyse(input_file: str, eps_top: float, eps_bottom: float) -> None:
    """Reinforcement arrangements for a fixed strain state."""
    model = _load_model(input_file)
    strain = StrainField(
        per_mille_to_strain(eps_top),
        per_mille_to_strain(eps_bottom),
        model.geometry.height,
    )
    cases = model.loads or (("N=0, M=0", DesignLoads(N=0.0, M=0.0)),)

    _echo_materials(model)
    for name, case in cases:
        res = reinforcement_for_strain(
            strain, case, model.geometry, model.concrete, model.steel
        )
        click.echo(f"\n{name}: N = {n_to_kn(case.N):.1f} kN, M = {nm_to_knm(case.M):.1f} kNm")
        click.echo(
            f"  Concrete: Fc = {n_to_kn(res.concrete.N):.1f} kN, "
            f"Mc = {nm_to_knm(res.concrete.M):.2f} kNm"
        )
        click.echo(
            f"  Steel: eps_s1 = {strain_to_per_mille(res.eps_s1):.3f}, "
            f"sigma_s1 = {pa_to_mpa(res.sigma_s1):.1f} MPa; "
            f"eps_s2 = {strain_to_per_mille(res.eps_s2):.3f}, "
            f"sigma_s2 = {pa_to_mpa(res.sigma_s2):.1f} MPa"
        )

        opt = res.optimal
        if opt.is_valid:
            click.echo(
                f"  Optimal: As1 = {m2_to_cm2(opt.area_top):.2f} cm2, "
                f"As2 = {m2_to_cm2(opt.area_bottom):.2f} cm2"
            )
        else:
            click.secho(f"  Optimal: {opt.message}", fg="yellow")

        single = res.single
        if single.is_valid:
            click.echo(
                f"  Single:  As2 = {m2_to_cm2(single.area):.2f} cm2, "
                f"M = {nm_to_knm(single.moment):.2f} kNm"
            )
        else:
            click.secho(f"  Single:  {single.message}", fg="yellow")

        uni = res.uniform
        if uni.is_valid:
            click.echo(
                f"  Uniform: As1 = As2 = {m2_to_cm2(uni.area_top):.2f} cm2, "
                f"M = {nm_to_knm(uni.moment):.2f} kNm"
            )
        else:
            click.secho(f"  Uniform: {uni.message}", fg="yellow")


# ---------------------------------------------------------------------------
# template
# ---------------------------------------------------------------------------

@main.command()
def template() -> None:
    """Print a sample input YAML to stdout."""
    click.echo(generate_template())


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------

@main.command()
@click.argument("input_file", type=click.Path(exists=True))
def validate(input_file: str) -> None:
    """Validate an input YAML file without running any analysis."""
    click.echo(f"Validating: {Path(input_file)}")
    model = _load_model(input_file)
    click.echo(f"  {len(model.loads)} load case(s).")
    click.secho("\nInput file is valid.", fg="green")


# ---------------------------------------------------------------------------
# Allow ``python -m rcsection.cli``
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
