"""Edit commands for loan plans.

Each form control maps to one command class. ``apply_edit`` takes the current
plan and a command and returns the edited plan; the original plan is left
untouched, so callers can re-validate and re-simulate the result.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional, Tuple, Union

from .data_models import LineItem, LoanPlan, MANUAL_ENTRY, MIN_LINE_ITEMS, MONTHLY, PERIODS


@dataclass(frozen=True)
class SetLoanType:
    loan_type: str


@dataclass(frozen=True)
class SetCustomLoanType:
    label: str


@dataclass(frozen=True)
class SetLoanAmount:
    amount: Decimal


@dataclass(frozen=True)
class SetBankPercent:
    percent: Decimal


@dataclass(frozen=True)
class SetOwnPercent:
    percent: Decimal


@dataclass(frozen=True)
class SetInterestPerAnnum:
    rate: Decimal


@dataclass(frozen=True)
class SetOwnFundsInterestRate:
    rate: Decimal


@dataclass(frozen=True)
class SetLoanTenure:
    years: int


@dataclass(frozen=True)
class SetOwnTenure:
    years: int


@dataclass(frozen=True)
class SetGstPercentage:
    percent: Optional[Decimal]


@dataclass(frozen=True)
class AddRevenue:
    name: str = "Others"
    amount: Decimal = Decimal("0")
    period: str = MONTHLY


@dataclass(frozen=True)
class RemoveRevenueAt:
    index: int


@dataclass(frozen=True)
class UpdateRevenue:
    """Replace the fields given (non-``None``) of the revenue at ``index``."""

    index: int
    name: Optional[str] = None
    amount: Optional[Decimal] = None
    period: Optional[str] = None


@dataclass(frozen=True)
class AddExpense:
    name: str = "Others"
    amount: Decimal = Decimal("0")
    period: str = MONTHLY


@dataclass(frozen=True)
class RemoveExpenseAt:
    index: int


@dataclass(frozen=True)
class UpdateExpense:
    """Replace the fields given (non-``None``) of the expense at ``index``."""

    index: int
    name: Optional[str] = None
    amount: Optional[Decimal] = None
    period: Optional[str] = None


EditCommand = Union[
    SetLoanType,
    SetCustomLoanType,
    SetLoanAmount,
    SetBankPercent,
    SetOwnPercent,
    SetInterestPerAnnum,
    SetOwnFundsInterestRate,
    SetLoanTenure,
    SetOwnTenure,
    SetGstPercentage,
    AddRevenue,
    RemoveRevenueAt,
    UpdateRevenue,
    AddExpense,
    RemoveExpenseAt,
    UpdateExpense,
]


def _check_period(period: str) -> str:
    if period not in PERIODS:
        raise ValueError(f"Period must be 'monthly' or 'yearly'; got {period}")
    return period


def _check_index(items: Tuple[LineItem, ...], index: int) -> None:
    if not 0 <= index < len(items):
        raise IndexError(f"No line item at position {index}")


def _remove_at(items: Tuple[LineItem, ...], index: int) -> Tuple[LineItem, ...]:
    _check_index(items, index)
    # The form offers no remove control below the minimum.
    if len(items) <= MIN_LINE_ITEMS:
        return items
    return items[:index] + items[index + 1:]


def _update_at(items: Tuple[LineItem, ...], command) -> Tuple[LineItem, ...]:
    _check_index(items, command.index)
    item = items[command.index]
    changes = {}
    if command.name is not None:
        changes["name"] = command.name
    if command.amount is not None:
        changes["amount"] = command.amount
    if command.period is not None:
        changes["period"] = _check_period(command.period)
    updated = list(items)
    updated[command.index] = replace(item, **changes)
    return tuple(updated)


def apply_edit(plan: LoanPlan, command: EditCommand) -> LoanPlan:
    """Return a copy of ``plan`` with ``command`` applied."""
    if isinstance(command, SetLoanType):
        custom = plan.custom_loan_type if command.loan_type == MANUAL_ENTRY else ""
        return replace(plan, loan_type=command.loan_type, custom_loan_type=custom)
    if isinstance(command, SetCustomLoanType):
        return replace(plan, custom_loan_type=command.label)
    if isinstance(command, SetLoanAmount):
        return replace(plan, loan_amount=command.amount)
    if isinstance(command, SetBankPercent):
        return replace(plan, bank_percent=command.percent)
    if isinstance(command, SetOwnPercent):
        return replace(plan, own_percent=command.percent)
    if isinstance(command, SetInterestPerAnnum):
        return replace(plan, interest_per_annum=command.rate)
    if isinstance(command, SetOwnFundsInterestRate):
        return replace(plan, own_funds_interest_rate=command.rate)
    if isinstance(command, SetLoanTenure):
        return replace(plan, loan_tenure=command.years)
    if isinstance(command, SetOwnTenure):
        return replace(plan, own_tenure=command.years)
    if isinstance(command, SetGstPercentage):
        return replace(plan, gst_percentage=command.percent)
    if isinstance(command, AddRevenue):
        item = LineItem(command.name, command.amount, _check_period(command.period))
        return replace(plan, revenues=plan.revenues + (item,))
    if isinstance(command, RemoveRevenueAt):
        return replace(plan, revenues=_remove_at(plan.revenues, command.index))
    if isinstance(command, UpdateRevenue):
        return replace(plan, revenues=_update_at(plan.revenues, command))
    if isinstance(command, AddExpense):
        item = LineItem(command.name, command.amount, _check_period(command.period))
        return replace(plan, expenses=plan.expenses + (item,))
    if isinstance(command, RemoveExpenseAt):
        return replace(plan, expenses=_remove_at(plan.expenses, command.index))
    if isinstance(command, UpdateExpense):
        return replace(plan, expenses=_update_at(plan.expenses, command))
    raise TypeError(f"Unknown edit command: {command!r}")


def apply_edits(plan: LoanPlan, commands) -> LoanPlan:
    for command in commands:
        plan = apply_edit(plan, command)
    return plan
