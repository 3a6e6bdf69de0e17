"""Input validation for loan plans.

``validate_plan`` checks a plan against a fixed list of rules and returns the
message of the first rule that fails, or ``None`` when the plan may be
simulated, saved and exported. Only one message is ever shown at a time, so
the order of the rules below matters.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional

from .data_models import LoanPlan, MANUAL_ENTRY, MIN_LINE_ITEMS


class ValidationCategory(str, Enum):
    SELECTION_MISSING = "selection-missing"
    PERCENTAGE_IMBALANCE = "percentage-imbalance"
    OUT_OF_RANGE = "out-of-range"
    NON_POSITIVE_TENURE = "non-positive-tenure"
    NEGATIVE_AMOUNT = "negative-amount"
    INSUFFICIENT_LINE_ITEMS = "insufficient-line-items"


LOAN_TYPE_MISSING = "Type of Loan must be selected."
CUSTOM_LOAN_TYPE_MISSING = "Custom Loan Type cannot be empty."
PERCENT_IMBALANCE = "Bank and Own Funds percentages must add up to 100%."
NEGATIVE_LOAN_AMOUNT = "Loan Amount cannot be negative."
BANK_PERCENT_RANGE = "Bank percentage must be between 0 and 100."
OWN_PERCENT_RANGE = "Own Funds percentage must be between 0 and 100."
LOAN_TENURE_NOT_POSITIVE = "Loan Tenure must be greater than zero."
OWN_TENURE_NOT_POSITIVE = "Own Funds Tenure must be greater than zero."
NEGATIVE_INTEREST = "Interest Per Annum cannot be negative."
NEGATIVE_OWN_INTEREST = "Own Funds Interest Rate cannot be negative."
NEGATIVE_REVENUE = "Revenues cannot be negative."
NEGATIVE_EXPENSE = "Expenses cannot be negative."
TOO_FEW_REVENUES = "At least two revenues are required."
TOO_FEW_EXPENSES = "At least two expenses are required."
NEGATIVE_GST = "GST Percentage cannot be negative."

_CATEGORIES = {
    LOAN_TYPE_MISSING: ValidationCategory.SELECTION_MISSING,
    CUSTOM_LOAN_TYPE_MISSING: ValidationCategory.SELECTION_MISSING,
    PERCENT_IMBALANCE: ValidationCategory.PERCENTAGE_IMBALANCE,
    NEGATIVE_LOAN_AMOUNT: ValidationCategory.OUT_OF_RANGE,
    BANK_PERCENT_RANGE: ValidationCategory.OUT_OF_RANGE,
    OWN_PERCENT_RANGE: ValidationCategory.OUT_OF_RANGE,
    LOAN_TENURE_NOT_POSITIVE: ValidationCategory.NON_POSITIVE_TENURE,
    OWN_TENURE_NOT_POSITIVE: ValidationCategory.NON_POSITIVE_TENURE,
    NEGATIVE_INTEREST: ValidationCategory.OUT_OF_RANGE,
    NEGATIVE_OWN_INTEREST: ValidationCategory.OUT_OF_RANGE,
    NEGATIVE_REVENUE: ValidationCategory.NEGATIVE_AMOUNT,
    NEGATIVE_EXPENSE: ValidationCategory.NEGATIVE_AMOUNT,
    TOO_FEW_REVENUES: ValidationCategory.INSUFFICIENT_LINE_ITEMS,
    TOO_FEW_EXPENSES: ValidationCategory.INSUFFICIENT_LINE_ITEMS,
    NEGATIVE_GST: ValidationCategory.OUT_OF_RANGE,
}

_HUNDRED = Decimal("100")


def _in_percent_range(value: Decimal) -> bool:
    return Decimal("0") <= value <= _HUNDRED


def validate_plan(plan: LoanPlan) -> Optional[str]:
    """Return the first violated rule's message, or ``None`` if valid."""
    if plan.loan_type == "":
        return LOAN_TYPE_MISSING
    if plan.loan_type == MANUAL_ENTRY and plan.custom_loan_type.strip() == "":
        return CUSTOM_LOAN_TYPE_MISSING
    if plan.bank_percent + plan.own_percent != _HUNDRED:
        return PERCENT_IMBALANCE
    if plan.loan_amount < 0:
        return NEGATIVE_LOAN_AMOUNT
    if not _in_percent_range(plan.bank_percent):
        return BANK_PERCENT_RANGE
    if not _in_percent_range(plan.own_percent):
        return OWN_PERCENT_RANGE
    if plan.loan_tenure <= 0:
        return LOAN_TENURE_NOT_POSITIVE
    if plan.own_tenure <= 0:
        return OWN_TENURE_NOT_POSITIVE
    if plan.interest_per_annum < 0:
        return NEGATIVE_INTEREST
    if plan.own_funds_interest_rate < 0:
        return NEGATIVE_OWN_INTEREST
    if any(item.amount < 0 for item in plan.revenues):
        return NEGATIVE_REVENUE
    if any(item.amount < 0 for item in plan.expenses):
        return NEGATIVE_EXPENSE
    if len(plan.revenues) < MIN_LINE_ITEMS:
        return TOO_FEW_REVENUES
    if len(plan.expenses) < MIN_LINE_ITEMS:
        return TOO_FEW_EXPENSES
    if plan.gst_percentage is not None and plan.gst_percentage < 0:
        return NEGATIVE_GST
    return None


def classify_message(message: str) -> ValidationCategory:
    """Map a message returned by ``validate_plan`` to its category."""
    try:
        return _CATEGORIES[message]
    except KeyError:
        raise ValueError(f"Not a validation message: {message}") from None
