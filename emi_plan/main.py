"""Command‑line interface for the EMI plan calculator.

This module uses the ``click`` library to implement a multi‑command
interface. Plans are read from JSON files in the stored plan format
(``{"typeOfLoan": ..., "loanAmount": ..., ...}`` or a saved plan
``{"id": ..., "loanPlan": {...}}``). Users can validate a plan, print its
simulation, or export it to JSON/CSV, PDF or LaTeX.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .data_models import LoanPlan, SimulationResult, default_plan
from .engine import simulate_plan
from .exporters import (
    build_amortization_pdf,
    build_complete_pdf,
    build_latex_report,
    build_pl_pdf,
    DEFAULT_BRAND,
)
from .formatter import print_entries, print_summary
from .projector import project_report
from .serialization import CSV_HEADER, entries_for_csv, plan_from_dict, plan_to_dict, result_to_dict
from .validator import validate_plan

logger = logging.getLogger(__name__)

PDF_BUILDERS = {
    "pl": build_pl_pdf,
    "amortization": build_amortization_pdf,
    "complete": build_complete_pdf,
}


def load_plan_file(path: Path) -> LoanPlan:
    """Read a plan JSON file; accepts a bare plan or a saved plan wrapper."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise click.BadParameter(f"Cannot read plan file {path}: {exc}")
    if isinstance(data, dict) and "loanPlan" in data:
        data = data["loanPlan"]
    try:
        return plan_from_dict(data)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def _validated_plan(path: Path) -> LoanPlan:
    plan = load_plan_file(path)
    error = validate_plan(plan)
    if error:
        raise click.ClickException(error)
    return plan


def export_to_json(path: Path, plan: LoanPlan, result: SimulationResult) -> None:
    """Export the plan and its simulation to a JSON file."""
    data: Dict[str, Any] = {"loanPlan": plan_to_dict(plan), "result": result_to_dict(result)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, result: SimulationResult, monthly: bool = False) -> None:
    """Export the yearly (or monthly) entries to a CSV file."""
    entries = result.monthly_avg if monthly else result.yearly_avg
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        writer.writerows(entries_for_csv(entries))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output from the engine")
def cli(verbose: bool) -> None:
    """An EMI plan calculator for loans split between a bank and own funds."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(plan_file: Path) -> None:
    """Check a plan and print the first problem found."""
    plan = load_plan_file(plan_file)
    error = validate_plan(plan)
    if error:
        raise click.ClickException(error)
    click.echo("Plan is valid.")


@cli.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--monthly", is_flag=True, help="Print the monthly table instead of the yearly one")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def simulate(plan_file: Path, monthly: bool, output: Optional[str]) -> None:
    """Simulate a plan and print the summary and P/L table."""
    plan = _validated_plan(plan_file)
    result = simulate_plan(plan)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, plan, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result, monthly)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Simulation exported to {path}")
        return
    projection = project_report(result)
    print_summary(plan, projection)
    include_own = not projection.exclude_own_columns
    if monthly:
        print_entries(result.monthly_avg, label="Month", include_own=include_own)
    else:
        print_entries(result.yearly_avg, label="Year", include_own=include_own)


@cli.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def summary(plan_file: Path) -> None:
    """Print only the summary metrics for a plan."""
    plan = _validated_plan(plan_file)
    print_summary(plan, project_report(simulate_plan(plan)))


@cli.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--kind",
    type=click.Choice(["pl", "amortization", "complete", "latex"]),
    default="complete",
    help="Report to produce",
)
@click.option("--output", "output", required=True, type=str, help="Output file path")
@click.option("--brand", default=DEFAULT_BRAND, help="Name printed in the report header")
def export(plan_file: Path, kind: str, output: str, brand: str) -> None:
    """Export a plan report as PDF or LaTeX."""
    plan = _validated_plan(plan_file)
    result = simulate_plan(plan)
    path = Path(output)
    if kind == "latex":
        path.write_text(build_latex_report(plan, result, brand=brand), encoding="utf-8")
    else:
        path.write_bytes(PDF_BUILDERS[kind](plan, result, brand=brand))
    logger.info("Wrote %s report to %s", kind, path)
    click.echo(f"Report exported to {path}")


@cli.command()
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
def template(output: Path) -> None:
    """Write a blank plan JSON file to fill in."""
    with output.open("w", encoding="utf-8") as f:
        json.dump(plan_to_dict(default_plan()), f, indent=2)
    click.echo(f"Plan template written to {output}")


if __name__ == "__main__":
    cli()
