"""Output helpers for the EMI plan calculator.

This module provides simple functions to render a simulation in a tabular
text format for the terminal. Output goes through ``click.echo`` so it can be
captured by click's test runner.
"""

from __future__ import annotations

from typing import Iterable, List

import click

from .data_models import LoanPlan, PeriodEntry
from .projector import ReportProjection
from .utils import format_amount, format_percentage


def print_summary(plan: LoanPlan, projection: ReportProjection) -> None:
    """Print the plan terms and the headline figures of its simulation."""
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Plan                 : {plan.plan_name or 'Not specified'}")
    click.echo(f"Loan amount          : {format_amount(plan.loan_amount)}")
    click.echo(f"Bank / Own split     : {format_percentage(plan.bank_percent)} / {format_percentage(plan.own_percent)}")
    click.echo(f"Bank rate / tenure   : {format_percentage(plan.interest_per_annum)} / {plan.loan_tenure} yrs")
    if not projection.exclude_own_columns:
        click.echo(
            f"Own rate / tenure    : {format_percentage(plan.own_funds_interest_rate)} / {plan.own_tenure} yrs"
        )
    if plan.gst_percentage is not None:
        click.echo(f"GST                  : {format_percentage(plan.gst_percentage)}")
    click.echo(f"Bank year 1 principal: {format_amount(projection.bank_year1_principal)}")
    click.echo(f"Bank year 1 interest : {format_amount(projection.bank_year1_interest)}")
    click.echo(f"Bank year 1 total    : {format_amount(projection.bank_year1_total)}")
    if not projection.exclude_own_columns:
        click.echo(f"Own year 1 principal : {format_amount(projection.own_year1_principal)}")
        click.echo(f"Own year 1 interest  : {format_amount(projection.own_year1_interest)}")
        click.echo(f"Own year 1 total     : {format_amount(projection.own_year1_total)}")
    click.echo(f"Total bank interest  : {format_amount(projection.total_bank_interest)}")
    if not projection.exclude_own_columns:
        click.echo(f"Total own interest   : {format_amount(projection.total_own_interest)}")
    click.echo(f"Total P/L            : {format_amount(projection.total_pl)}")
    click.echo(f"Profit / loss years  : {projection.profitable_years} / {projection.loss_years}")
    click.echo("-" * 72)


def _headers(label: str, include_own: bool) -> List[str]:
    headers = [label, "Revenue", "Expenses"]
    if include_own:
        headers += ["OwnAmt", "OwnPay", "OwnInt"]
    headers += ["LoanAmt", "LoanPay", "LoanInt", "P/L", "Status"]
    return headers


def print_entries(entries: Iterable[PeriodEntry], label: str = "Year", include_own: bool = True) -> None:
    """Print yearly or monthly entries as a tab separated table.

    Parameters
    ----------
    entries: Iterable[PeriodEntry]
        The entries to print.
    label: str
        Header of the period column (``"Year"`` or ``"Month"``).
    include_own: bool
        Whether to include the own-funds columns. Plans without own funds
        hide them.
    """
    click.echo("\t".join(_headers(label, include_own)))
    for entry in entries:
        row = [str(entry.period), format_amount(entry.revenue), format_amount(entry.expenses)]
        if include_own:
            row += [
                format_amount(entry.own_amount),
                format_amount(entry.own_repayment),
                format_amount(entry.own_interest),
            ]
        row += [
            format_amount(entry.loan_amount),
            format_amount(entry.loan_repayment),
            format_amount(entry.loan_interest),
            format_amount(entry.pl),
            "Profit" if entry.pl >= 0 else "Loss",
        ]
        click.echo("\t".join(row))
