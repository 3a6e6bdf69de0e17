"""Data models for the EMI plan calculator.

This module defines dataclasses representing the entities used by the
calculator: revenue/expense line items, the loan plan entered in the form,
the per-period entries produced by the simulator and the saved-plan wrapper
used for persistence. Using dataclasses makes it easy to construct, inspect
and serialize these structures.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

MONTHLY = "monthly"
YEARLY = "yearly"
PERIODS = (MONTHLY, YEARLY)

MANUAL_ENTRY = "Manual Entry"
LOAN_TYPE_OPTIONS = (
    "Business Loan",
    "Vehicle Loan",
    "Electronics Loan",
    "House Loan",
    "Personal Loan",
    MANUAL_ENTRY,
)

MIN_LINE_ITEMS = 2


@dataclass(frozen=True)
class LineItem:
    """A named revenue or expense stream.

    Attributes
    ----------
    name: str
        Label shown in tables and reports.
    amount: Decimal
        The amount received or spent once per ``period``.
    period: str
        ``"monthly"`` or ``"yearly"``.
    """

    name: str
    amount: Decimal
    period: str = MONTHLY


@dataclass(frozen=True)
class LoanPlan:
    """A blended loan: a bank-financed portion and an own-funds portion.

    The two portions share the loan amount according to ``bank_percent`` and
    ``own_percent`` but are amortized over independent tenures and rates.
    Plans are immutable; edits produce a new plan (see ``commands``).
    """

    loan_type: str
    custom_loan_type: str
    loan_amount: Decimal
    bank_percent: Decimal
    own_percent: Decimal
    interest_per_annum: Decimal  # bank track, annual nominal rate in percent
    own_funds_interest_rate: Decimal  # own track, annual nominal rate in percent
    loan_tenure: int  # years
    own_tenure: int  # years
    revenues: Tuple[LineItem, ...]
    expenses: Tuple[LineItem, ...]
    # Shown in reports only, never folded into the cash flow.
    gst_percentage: Optional[Decimal] = None

    @property
    def plan_name(self) -> str:
        if self.loan_type == MANUAL_ENTRY:
            return self.custom_loan_type
        return self.loan_type


@dataclass
class PeriodEntry:
    """Aggregated figures for one year or one month of the simulation.

    ``own_amount`` and ``loan_amount`` are the original principal split and
    repeat in every entry. Repayments include principal and interest.
    """

    period: int
    revenue: Decimal
    expenses: Decimal
    own_amount: Decimal
    loan_amount: Decimal
    own_repayment: Decimal
    loan_repayment: Decimal
    own_interest: Decimal
    loan_interest: Decimal
    pl: Decimal


@dataclass
class AmortizationRow:
    """Balances and payments of both tracks for a single month."""

    month: int
    bank_beginning_principal: Decimal
    bank_principal: Decimal
    bank_interest: Decimal
    bank_total_emi: Decimal
    bank_ending_principal: Decimal
    own_beginning_principal: Decimal
    own_principal: Decimal
    own_interest: Decimal
    own_total_emi: Decimal
    own_ending_principal: Decimal


@dataclass
class SimulationResult:
    yearly_avg: List[PeriodEntry] = field(default_factory=list)
    monthly_avg: List[PeriodEntry] = field(default_factory=list)
    amortization: List[AmortizationRow] = field(default_factory=list)
    bank_year1_principal: Decimal = Decimal("0")
    bank_year1_interest: Decimal = Decimal("0")
    bank_year1_total: Decimal = Decimal("0")
    own_year1_principal: Decimal = Decimal("0")
    own_year1_interest: Decimal = Decimal("0")
    own_year1_total: Decimal = Decimal("0")
    total_bank_interest: Decimal = Decimal("0")
    total_own_interest: Decimal = Decimal("0")


@dataclass(frozen=True)
class SavedPlan:
    """A plan saved by the user, keyed by the ISO-8601 time it was saved."""

    id: str
    loan_plan: LoanPlan


def default_plan() -> LoanPlan:
    """Return the blank plan the form starts from."""
    zero = Decimal("0")
    return LoanPlan(
        loan_type="",
        custom_loan_type="",
        loan_amount=zero,
        bank_percent=Decimal("70"),
        own_percent=Decimal("30"),
        interest_per_annum=zero,
        own_funds_interest_rate=zero,
        loan_tenure=0,
        own_tenure=0,
        revenues=(
            LineItem("Sales", zero, MONTHLY),
            LineItem("Other Income", zero, MONTHLY),
        ),
        expenses=(
            LineItem("Staff Salary", zero, MONTHLY),
            LineItem("Rent", zero, MONTHLY),
        ),
        gst_percentage=None,
    )
