from decimal import Decimal

import pytest

from emi_plan.data_models import LineItem, MONTHLY, YEARLY
from emi_plan.engine import normalize_line_items, simulate_plan


def test_scenario_principal_split_and_first_month(plan):
    result = simulate_plan(plan)
    first = result.amortization[0]
    assert first.bank_beginning_principal == Decimal("210000")
    assert first.bank_principal == Decimal("2500")
    assert first.bank_interest == Decimal("1575")
    assert first.own_beginning_principal == Decimal("90000")
    assert first.own_principal == Decimal("3750")
    assert first.own_interest == Decimal("675")
    assert first.bank_total_emi == Decimal("4075")
    assert first.own_total_emi == Decimal("4425")


def test_entry_counts(plan):
    result = simulate_plan(plan)
    assert len(result.monthly_avg) == 84
    assert len(result.amortization) == 84
    assert len(result.yearly_avg) == 7
    assert [e.period for e in result.yearly_avg] == list(range(1, 8))
    assert [e.period for e in result.monthly_avg] == list(range(1, 85))


def test_monthly_entry_figures(plan):
    first = simulate_plan(plan).monthly_avg[0]
    assert first.revenue == Decimal("20100")
    assert first.expenses == Decimal("7000")
    assert first.loan_amount == Decimal("210000")
    assert first.own_amount == Decimal("90000")
    assert first.loan_repayment == Decimal("4075")
    assert first.own_repayment == Decimal("4425")
    assert first.pl == Decimal("4600")


def test_own_track_is_zero_after_its_tenure(plan):
    result = simulate_plan(plan)
    for entry in result.monthly_avg[24:]:
        assert entry.own_repayment == 0
        assert entry.own_interest == 0
        # the static split keeps appearing
        assert entry.own_amount == Decimal("90000")
    for row in result.amortization[24:]:
        assert row.own_principal == 0
        assert row.own_ending_principal == 0
    assert result.yearly_avg[2].own_repayment == 0
    assert result.yearly_avg[2].own_amount == Decimal("90000")


def test_bank_track_is_zero_after_its_tenure(plan_factory):
    result = simulate_plan(plan_factory(loan_tenure=3, own_tenure=5))
    assert len(result.monthly_avg) == 60
    for entry in result.monthly_avg[36:]:
        assert entry.loan_repayment == 0
        assert entry.loan_interest == 0
    assert result.monthly_avg[59].own_repayment > 0


def test_principal_is_fully_retired(plan_factory):
    result = simulate_plan(plan_factory(loan_amount=Decimal("100000"), loan_tenure=3, own_tenure=7))
    bank_paid = sum(row.bank_principal for row in result.amortization)
    own_paid = sum(row.own_principal for row in result.amortization)
    assert abs(bank_paid - Decimal("70000")) < Decimal("1e-12")
    assert abs(own_paid - Decimal("30000")) < Decimal("1e-12")
    assert result.amortization[-1].bank_ending_principal < Decimal("1e-12")
    assert result.amortization[-1].own_ending_principal < Decimal("1e-12")


def test_retired_balance_is_exactly_zero(plan_factory):
    # 70,000 over 36 months does not divide evenly
    result = simulate_plan(plan_factory(loan_amount=Decimal("100000"), loan_tenure=3, own_tenure=5))
    assert result.amortization[34].bank_ending_principal > 0
    for row in result.amortization[35:]:
        assert row.bank_ending_principal == 0
        assert row.bank_beginning_principal == 0 or row.month == 36
    assert result.amortization[-1].own_ending_principal == 0


def test_balances_never_increase_or_go_negative(plan_factory):
    result = simulate_plan(plan_factory(loan_amount=Decimal("123457"), loan_tenure=4, own_tenure=6))
    previous_bank = previous_own = None
    for row in result.amortization:
        assert row.bank_ending_principal >= 0
        assert row.own_ending_principal >= 0
        if previous_bank is not None:
            assert row.bank_ending_principal <= previous_bank
            assert row.own_ending_principal <= previous_own
        previous_bank = row.bank_ending_principal
        previous_own = row.own_ending_principal


def test_year_one_snapshot_matches_first_twelve_months(plan):
    result = simulate_plan(plan)
    first_year = result.amortization[:12]
    assert result.bank_year1_principal == sum(r.bank_principal for r in first_year)
    assert result.bank_year1_interest == sum(e.loan_interest for e in result.monthly_avg[:12])
    assert result.own_year1_principal == sum(r.own_principal for r in first_year)
    assert result.own_year1_interest == sum(e.own_interest for e in result.monthly_avg[:12])
    assert result.bank_year1_principal == Decimal("30000")
    assert result.bank_year1_interest == Decimal("17662.5")
    assert result.bank_year1_total == Decimal("47662.5")
    assert result.own_year1_principal == Decimal("45000")
    assert result.own_year1_interest == Decimal("6243.75")
    assert result.own_year1_total == Decimal("51243.75")


def test_lifetime_interest(plan):
    result = simulate_plan(plan)
    assert result.total_bank_interest == Decimal("66937.5")
    assert result.total_own_interest == Decimal("8437.5")


def test_yearly_pl_includes_interest_smoothing(plan):
    # The yearly P/L deducts the lifetime interest to date, spread over the
    # longer tenure, on top of the interest already in the repayments.
    result = simulate_plan(plan)
    year1 = result.yearly_avg[0]
    assert year1.revenue == Decimal("241200")
    assert year1.expenses == Decimal("84000")
    assert year1.loan_repayment == Decimal("47662.5")
    assert year1.own_repayment == Decimal("51243.75")
    smoothing = Decimal("23906.25") / Decimal(7)
    expected = Decimal("241200") - (
        Decimal("47662.5") + Decimal("51243.75") + smoothing + Decimal("84000")
    )
    assert year1.pl == expected
    cash_only = Decimal("241200") - Decimal("84000") - Decimal("47662.5") - Decimal("51243.75")
    assert year1.pl < cash_only


def test_smoothing_uses_interest_accumulated_so_far(plan):
    result = simulate_plan(plan)
    year2 = result.yearly_avg[1]
    interest_to_date = sum(e.loan_interest + e.own_interest for e in result.monthly_avg[:24])
    expected = year2.revenue - (
        year2.loan_repayment + year2.own_repayment + interest_to_date / Decimal(7) + year2.expenses
    )
    assert abs(year2.pl - expected) < Decimal("1e-18")


def test_yearly_revenue_contributes_a_twelfth_per_month(plan_factory):
    plan = plan_factory(
        revenues=(LineItem("Licence", Decimal("1200"), YEARLY), LineItem("Other", Decimal("0"), MONTHLY))
    )
    result = simulate_plan(plan)
    assert all(entry.revenue == Decimal("100") for entry in result.monthly_avg)
    assert all(entry.revenue == Decimal("1200") for entry in result.yearly_avg)


def test_normalize_line_items():
    items = [
        LineItem("a", Decimal("1200"), YEARLY),
        LineItem("b", Decimal("50"), MONTHLY),
    ]
    yearly, monthly = normalize_line_items(items)
    assert yearly == Decimal("1800")
    assert monthly == Decimal("150")


def test_bank_only_plan_has_all_zero_own_columns(plan_factory):
    result = simulate_plan(plan_factory(bank_percent=Decimal("100"), own_percent=Decimal("0")))
    for entry in result.yearly_avg + result.monthly_avg:
        assert entry.own_amount == 0
        assert entry.own_repayment == 0
        assert entry.own_interest == 0
    assert result.total_own_interest == 0
    assert result.own_year1_total == 0


def test_zero_rate_has_no_interest(plan_factory):
    result = simulate_plan(plan_factory(interest_per_annum=Decimal("0"), own_funds_interest_rate=Decimal("0")))
    assert result.total_bank_interest == 0
    assert result.total_own_interest == 0
    assert result.yearly_avg[0].loan_repayment == Decimal("30000")


def test_zero_tenures_still_run_one_month(plan_factory):
    result = simulate_plan(plan_factory(loan_tenure=0, own_tenure=0))
    assert len(result.monthly_avg) == 1
    assert len(result.yearly_avg) == 1
    assert result.monthly_avg[0].loan_repayment == 0
    assert result.monthly_avg[0].own_repayment == 0
    # the single month closes a (partial) first year
    assert result.bank_year1_total == 0
    assert result.yearly_avg[0].pl == Decimal("241200") - Decimal("84000")


def test_simulation_is_pure(plan):
    first = simulate_plan(plan)
    second = simulate_plan(plan)
    assert first == second


@pytest.mark.parametrize("bank_years, own_years, months", [(7, 2, 84), (2, 7, 84), (5, 3, 60), (1, 1, 12)])
def test_length_follows_longest_tenure(plan_factory, bank_years, own_years, months):
    result = simulate_plan(plan_factory(loan_tenure=bank_years, own_tenure=own_years))
    assert len(result.monthly_avg) == months
    assert len(result.yearly_avg) == -(-months // 12)
