"""Summary figures derived from a simulation.

The projector never recomputes amortization; it only reads the series and
scalars of a ``SimulationResult`` so that the terminal, the web page and the
exported documents all show the same numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .data_models import SimulationResult

ZERO = Decimal("0")


@dataclass
class MonthBreakdown:
    """Where the money of a single month goes (used by the overview table)."""

    bank_principal: Decimal
    bank_interest: Decimal
    own_principal: Decimal
    own_interest: Decimal
    expenses: Decimal
    pl: Decimal


@dataclass
class ReportProjection:
    total_bank_interest: Decimal
    total_own_interest: Decimal
    total_interest: Decimal
    bank_year1_principal: Decimal
    bank_year1_interest: Decimal
    bank_year1_total: Decimal
    own_year1_principal: Decimal
    own_year1_interest: Decimal
    own_year1_total: Decimal
    total_pl: Decimal
    profitable_years: int
    loss_years: int
    exclude_own_columns: bool
    first_month: MonthBreakdown


def exclude_own_columns(result: SimulationResult) -> bool:
    """True when no yearly entry carries any own-funds amount or interest."""
    return all(
        entry.own_amount == 0 and entry.own_interest == 0 for entry in result.yearly_avg
    )


def _first_month(result: SimulationResult) -> MonthBreakdown:
    if not result.monthly_avg:
        return MonthBreakdown(ZERO, ZERO, ZERO, ZERO, ZERO, ZERO)
    entry = result.monthly_avg[0]
    return MonthBreakdown(
        bank_principal=entry.loan_repayment - entry.loan_interest,
        bank_interest=entry.loan_interest,
        own_principal=entry.own_repayment - entry.own_interest,
        own_interest=entry.own_interest,
        expenses=entry.expenses,
        pl=entry.pl,
    )


def project_report(result: SimulationResult) -> ReportProjection:
    """Collect the scalars shown next to the P/L and amortization tables."""
    profitable = sum(1 for entry in result.yearly_avg if entry.pl >= 0)
    return ReportProjection(
        total_bank_interest=result.total_bank_interest,
        total_own_interest=result.total_own_interest,
        total_interest=result.total_bank_interest + result.total_own_interest,
        bank_year1_principal=result.bank_year1_principal,
        bank_year1_interest=result.bank_year1_interest,
        bank_year1_total=result.bank_year1_total,
        own_year1_principal=result.own_year1_principal,
        own_year1_interest=result.own_year1_interest,
        own_year1_total=result.own_year1_total,
        total_pl=sum((entry.pl for entry in result.yearly_avg), ZERO),
        profitable_years=profitable,
        loss_years=len(result.yearly_avg) - profitable,
        exclude_own_columns=exclude_own_columns(result),
        first_month=_first_month(result),
    )
