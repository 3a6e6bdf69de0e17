"""Conversion of plans and results to and from JSON-ready dictionaries.

Plans use the camelCase keys of the stored plan format (``typeOfLoan``,
``loanAmount``...) so previously saved plans load unchanged. Money values are
written as floats for JSON; they are read back through ``decimal_from_str``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .data_models import (
    AmortizationRow,
    LineItem,
    LoanPlan,
    PERIODS,
    PeriodEntry,
    SavedPlan,
    SimulationResult,
)
from .utils import decimal_from_str, parse_int


def _line_item_to_dict(item: LineItem) -> Dict[str, Any]:
    return {"name": item.name, "amount": float(item.amount), "period": item.period}


def _line_item_from_dict(data: Dict[str, Any]) -> LineItem:
    try:
        name = str(data.get("name", ""))
        amount = decimal_from_str(str(data.get("amount", 0)))
        period = str(data.get("period", "monthly"))
    except AttributeError as exc:
        raise ValueError(f"Invalid line item: {data!r}") from exc
    if period not in PERIODS:
        raise ValueError(f"Period must be 'monthly' or 'yearly'; got {period}")
    return LineItem(name=name, amount=amount, period=period)


def plan_to_dict(plan: LoanPlan) -> Dict[str, Any]:
    return {
        "typeOfLoan": plan.loan_type,
        "customLoanType": plan.custom_loan_type,
        "loanAmount": float(plan.loan_amount),
        "bankPercent": float(plan.bank_percent),
        "ownPercent": float(plan.own_percent),
        "interestPerAnnum": float(plan.interest_per_annum),
        "ownFundsInterestRate": float(plan.own_funds_interest_rate),
        "loanTenure": plan.loan_tenure,
        "ownTenure": plan.own_tenure,
        "revenues": [_line_item_to_dict(item) for item in plan.revenues],
        "expenses": [_line_item_to_dict(item) for item in plan.expenses],
        "gstPercentage": None if plan.gst_percentage is None else float(plan.gst_percentage),
    }


def plan_from_dict(data: Dict[str, Any]) -> LoanPlan:
    """Build a ``LoanPlan`` from a stored dictionary.

    Missing numeric fields default to zero, missing line-item lists to empty
    (the validator reports those). Values that are not numbers raise
    ``ValueError``.
    """
    if not isinstance(data, dict):
        raise ValueError("Plan must be a JSON object")

    def number(key: str) -> Decimal:
        return decimal_from_str(str(data.get(key) or 0))

    gst = data.get("gstPercentage")
    revenues = data.get("revenues") or []
    expenses = data.get("expenses") or []
    if not isinstance(revenues, list) or not isinstance(expenses, list):
        raise ValueError("Revenues and expenses must be lists")
    return LoanPlan(
        loan_type=str(data.get("typeOfLoan", "")),
        custom_loan_type=str(data.get("customLoanType", "")),
        loan_amount=number("loanAmount"),
        bank_percent=number("bankPercent"),
        own_percent=number("ownPercent"),
        interest_per_annum=number("interestPerAnnum"),
        own_funds_interest_rate=number("ownFundsInterestRate"),
        loan_tenure=parse_int(str(data.get("loanTenure") or 0)),
        own_tenure=parse_int(str(data.get("ownTenure") or 0)),
        revenues=tuple(_line_item_from_dict(item) for item in revenues),
        expenses=tuple(_line_item_from_dict(item) for item in expenses),
        gst_percentage=None if gst in (None, "") else decimal_from_str(str(gst)),
    )


def new_saved_plan(plan: LoanPlan, now: Optional[datetime] = None) -> SavedPlan:
    """Wrap ``plan`` with an ISO-8601 id taken from the current UTC time."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return SavedPlan(id=stamp.replace("+00:00", "Z"), loan_plan=plan)


def saved_plan_to_dict(saved: SavedPlan) -> Dict[str, Any]:
    return {"id": saved.id, "loanPlan": plan_to_dict(saved.loan_plan)}


def saved_plan_from_dict(data: Dict[str, Any]) -> SavedPlan:
    if not isinstance(data, dict) or "id" not in data or "loanPlan" not in data:
        raise ValueError("Saved plan must have 'id' and 'loanPlan'")
    return SavedPlan(id=str(data["id"]), loan_plan=plan_from_dict(data["loanPlan"]))


def _entry_to_dict(entry: PeriodEntry) -> Dict[str, Any]:
    return {
        "period": entry.period,
        "revenue": float(entry.revenue),
        "expenses": float(entry.expenses),
        "ownAmount": float(entry.own_amount),
        "loanAmount": float(entry.loan_amount),
        "ownRepayment": float(entry.own_repayment),
        "loanRepayment": float(entry.loan_repayment),
        "ownInterest": float(entry.own_interest),
        "loanInterest": float(entry.loan_interest),
        "pl": float(entry.pl),
    }


def _row_to_dict(row: AmortizationRow) -> Dict[str, Any]:
    return {
        "month": row.month,
        "bankBeginningPrincipal": float(row.bank_beginning_principal),
        "bankMonthlyPrincipal": float(row.bank_principal),
        "bankMonthlyInterest": float(row.bank_interest),
        "bankTotalEMI": float(row.bank_total_emi),
        "bankEndingPrincipal": float(row.bank_ending_principal),
        "ownBeginningPrincipal": float(row.own_beginning_principal),
        "ownMonthlyPrincipal": float(row.own_principal),
        "ownMonthlyInterest": float(row.own_interest),
        "ownTotalEMI": float(row.own_total_emi),
        "ownEndingPrincipal": float(row.own_ending_principal),
    }


def result_to_dict(result: SimulationResult) -> Dict[str, Any]:
    """Convert a simulation into JSON-serialisable dictionaries for charts."""
    return {
        "yearlyAvg": [_entry_to_dict(e) for e in result.yearly_avg],
        "monthlyAvg": [_entry_to_dict(e) for e in result.monthly_avg],
        "amortization": [_row_to_dict(r) for r in result.amortization],
        "bankYear1Principal": float(result.bank_year1_principal),
        "bankYear1Interest": float(result.bank_year1_interest),
        "bankYear1Total": float(result.bank_year1_total),
        "ownYear1Principal": float(result.own_year1_principal),
        "ownYear1Interest": float(result.own_year1_interest),
        "ownYear1Total": float(result.own_year1_total),
        "totalBankInterest": float(result.total_bank_interest),
        "totalOwnInterest": float(result.total_own_interest),
    }


def entries_for_csv(entries: List[PeriodEntry]) -> List[List[Any]]:
    return [list(_entry_to_dict(e).values()) for e in entries]


CSV_HEADER = [
    "Period",
    "Revenue",
    "Expenses",
    "Own_Amount",
    "Loan_Amount",
    "Own_Repayment",
    "Loan_Repayment",
    "Own_Interest",
    "Loan_Interest",
    "PL",
]
