from decimal import Decimal

import pytest

from emi_plan.data_models import LineItem, LoanPlan, MONTHLY, YEARLY
from emi_plan_web.app import create_app


def make_plan(**overrides) -> LoanPlan:
    """A valid 70/30 plan: 300k, 9% bank over 7 years, 9% own over 2 years."""
    values = dict(
        loan_type="Business Loan",
        custom_loan_type="",
        loan_amount=Decimal("300000"),
        bank_percent=Decimal("70"),
        own_percent=Decimal("30"),
        interest_per_annum=Decimal("9"),
        own_funds_interest_rate=Decimal("9"),
        loan_tenure=7,
        own_tenure=2,
        revenues=(
            LineItem("Sales", Decimal("20000"), MONTHLY),
            LineItem("Grants", Decimal("1200"), YEARLY),
        ),
        expenses=(
            LineItem("Staff Salary", Decimal("5000"), MONTHLY),
            LineItem("Rent", Decimal("24000"), YEARLY),
        ),
        gst_percentage=Decimal("10"),
    )
    values.update(overrides)
    return LoanPlan(**values)


@pytest.fixture
def plan() -> LoanPlan:
    return make_plan()


@pytest.fixture
def plan_factory():
    return make_plan


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "DATABASE_URL": "sqlite://",
            "ACCESS_CODE": None,
            "BRAND": "Test Brand",
        }
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()
