"""Core calculation engine for the EMI plan calculator.

This module simulates a blended loan month by month. The bank-financed and
own-funded portions are amortized independently with straight-line principal
(a constant principal component and interest on the balance at the start of
each month), so the payment falls as the balance shrinks. Months are rolled up
into years, and both series are combined with the plan's revenue and expense
streams into profit/loss figures. Results are returned as a
``SimulationResult``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, getcontext
from typing import Iterable, Tuple

from .data_models import (
    AmortizationRow,
    LineItem,
    LoanPlan,
    PeriodEntry,
    SimulationResult,
    YEARLY,
)

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MONTHS_PER_YEAR = 12


@dataclass
class _Track:
    """One amortizing balance (the bank loan or the own funds)."""

    principal: Decimal
    tenure_months: int
    rate_per_month: Decimal
    remaining: Decimal = ZERO
    monthly_principal: Decimal = ZERO
    total_interest: Decimal = ZERO

    def __post_init__(self) -> None:
        self.remaining = self.principal
        if self.tenure_months > 0:
            self.monthly_principal = self.principal / Decimal(self.tenure_months)

    def step(self, month: int) -> Tuple[Decimal, Decimal, Decimal]:
        """Advance one month; return (beginning balance, principal, interest)."""
        beginning = self.remaining
        if month > self.tenure_months:
            return beginning, ZERO, ZERO
        interest = self.remaining * self.rate_per_month
        self.remaining = max(ZERO, self.remaining - self.monthly_principal)
        if month == self.tenure_months:
            # division residue; the balance is retired in the final month
            self.remaining = ZERO
        self.total_interest += interest
        return beginning, self.monthly_principal, interest


def _rate_per_month(annual_percent: Decimal) -> Decimal:
    return annual_percent / Decimal(100) / Decimal(MONTHS_PER_YEAR)


def normalize_line_items(items: Iterable[LineItem]) -> Tuple[Decimal, Decimal]:
    """Return the (yearly, monthly) totals of a list of line items.

    A yearly item counts in full per year and a twelfth per month; a monthly
    item counts in full per month and twelve times per year.
    """
    yearly_total = ZERO
    monthly_total = ZERO
    for item in items:
        if item.period == YEARLY:
            yearly_total += item.amount
            monthly_total += item.amount / Decimal(MONTHS_PER_YEAR)
        else:
            yearly_total += item.amount * Decimal(MONTHS_PER_YEAR)
            monthly_total += item.amount
    return yearly_total, monthly_total


def simulate_plan(plan: LoanPlan) -> SimulationResult:
    """Simulate a validated plan and return its monthly and yearly series.

    Parameters
    ----------
    plan: LoanPlan
        A plan that passed ``validate_plan``. Zero tenures are tolerated (the
        affected track simply never pays) but are not meaningful input.

    Returns
    -------
    SimulationResult
        ``monthly_avg`` and ``amortization`` hold one entry per simulated
        month, ``yearly_avg`` one entry per year. A year closes after its 12th
        month or after the last month of the simulation. The yearly P/L also
        deducts the lifetime interest accumulated so far spread evenly over
        the longer of the two tenures.
    """
    bank_principal = plan.loan_amount * plan.bank_percent / Decimal(100)
    own_principal = plan.loan_amount * plan.own_percent / Decimal(100)

    bank = _Track(
        principal=bank_principal,
        tenure_months=plan.loan_tenure * MONTHS_PER_YEAR,
        rate_per_month=_rate_per_month(plan.interest_per_annum),
    )
    own = _Track(
        principal=own_principal,
        tenure_months=plan.own_tenure * MONTHS_PER_YEAR,
        rate_per_month=_rate_per_month(plan.own_funds_interest_rate),
    )
    max_months = max(bank.tenure_months, own.tenure_months, 1)
    smoothing_years = Decimal(max(plan.loan_tenure, plan.own_tenure, 1))

    yearly_revenue, monthly_revenue = normalize_line_items(plan.revenues)
    yearly_expenses, monthly_expenses = normalize_line_items(plan.expenses)

    result = SimulationResult()
    year = 1
    year_bank_principal = ZERO
    year_bank_interest = ZERO
    year_own_principal = ZERO
    year_own_interest = ZERO

    for month in range(1, max_months + 1):
        bank_start, bank_paid, bank_interest = bank.step(month)
        own_start, own_paid, own_interest = own.step(month)

        bank_total = bank_paid + bank_interest
        own_total = own_paid + own_interest
        result.monthly_avg.append(
            PeriodEntry(
                period=month,
                revenue=monthly_revenue,
                expenses=monthly_expenses,
                own_amount=own_principal,
                loan_amount=bank_principal,
                own_repayment=own_total,
                loan_repayment=bank_total,
                own_interest=own_interest,
                loan_interest=bank_interest,
                pl=monthly_revenue - monthly_expenses - own_total - bank_total,
            )
        )
        result.amortization.append(
            AmortizationRow(
                month=month,
                bank_beginning_principal=bank_start,
                bank_principal=bank_paid,
                bank_interest=bank_interest,
                bank_total_emi=bank_total,
                bank_ending_principal=bank.remaining,
                own_beginning_principal=own_start,
                own_principal=own_paid,
                own_interest=own_interest,
                own_total_emi=own_total,
                own_ending_principal=own.remaining,
            )
        )

        year_bank_principal += bank_paid
        year_bank_interest += bank_interest
        year_own_principal += own_paid
        year_own_interest += own_interest

        if month % MONTHS_PER_YEAR != 0 and month != max_months:
            continue

        year_bank_total = year_bank_principal + year_bank_interest
        year_own_total = year_own_principal + year_own_interest
        # Lifetime interest to date, spread over the longer tenure. This is
        # deducted on top of the interest already inside the repayments.
        interest_smoothing = (bank.total_interest + own.total_interest) / smoothing_years
        result.yearly_avg.append(
            PeriodEntry(
                period=year,
                revenue=yearly_revenue,
                expenses=yearly_expenses,
                own_amount=own_principal,
                loan_amount=bank_principal,
                own_repayment=year_own_total,
                loan_repayment=year_bank_total,
                own_interest=year_own_interest,
                loan_interest=year_bank_interest,
                pl=yearly_revenue
                - (year_bank_total + year_own_total + interest_smoothing + yearly_expenses),
            )
        )
        if year == 1:
            result.bank_year1_principal = year_bank_principal
            result.bank_year1_interest = year_bank_interest
            result.bank_year1_total = year_bank_total
            result.own_year1_principal = year_own_principal
            result.own_year1_interest = year_own_interest
            result.own_year1_total = year_own_total

        year += 1
        year_bank_principal = ZERO
        year_bank_interest = ZERO
        year_own_principal = ZERO
        year_own_interest = ZERO

    result.total_bank_interest = bank.total_interest
    result.total_own_interest = own.total_interest
    logger.debug(
        "Simulated %d months (%d years); bank interest %s, own interest %s",
        max_months,
        len(result.yearly_avg),
        result.total_bank_interest,
        result.total_own_interest,
    )
    return result
