"""Unit tests for signal extraction"""

import json
import pytest
from spendsense.domain.models import Account, Liability
from spendsense.domain.rules import Thresholds
from spendsense.domain.signals import (
    compute_signals,
    dominant_amount,
    savings_growth_rate,
    utilization_flags,
)


def test_compute_signals_no_transactions_uses_defaults(data_source, as_of):
    """Test degenerate data produces defaults rather than errors"""
    source = data_source(accounts=[Account(id="chk_1", user_id="user_1", type="checking", balance_current=1200.0)])

    signals = compute_signals("user_1", 30, source, as_of=as_of)

    assert signals.total_spend == 0
    assert signals.subscription_count == 0
    assert signals.subscription_share == 0
    assert signals.emergency_months == 0
    assert signals.cash_buffer_months == 0
    assert signals.income_median_gap == 999
    assert signals.util_max == 0
    assert signals.util_flags == ""


def test_monthly_subscription_counted_once(data_source, make_txn, as_of):
    """Test Netflix charged 3 times, 30 days apart, counts once at its monthly amount"""
    source = data_source(transactions=[
        make_txn(5, -15.99, merchant="Netflix", pfc_primary="subscription"),
        make_txn(35, -15.99, merchant="Netflix", pfc_primary="subscription"),
        make_txn(65, -15.99, merchant="Netflix", pfc_primary="subscription"),
    ])

    signals = compute_signals("user_1", 180, source, as_of=as_of)

    assert signals.subscription_count == 1
    assert signals.monthly_recurring == pytest.approx(15.99)
    assert signals.total_spend == pytest.approx(47.97)


def test_category_subscriptions_add_only_unmatched_merchants(data_source, make_txn, as_of):
    """Test category pass skips merchants already credited by the pattern pass"""
    source = data_source(transactions=[
        make_txn(5, -15.99, merchant="Netflix", pfc_primary="subscription"),
        make_txn(35, -15.99, merchant="Netflix", pfc_primary="subscription"),
        make_txn(65, -15.99, merchant="Netflix", pfc_primary="subscription"),
        # Only two charges: not a pattern, but tagged as subscription
        make_txn(3, -10.99, merchant="Spotify", pfc_primary="subscription"),
        make_txn(100, -10.99, merchant="Spotify", pfc_primary="subscription"),
    ])

    signals = compute_signals("user_1", 180, source, as_of=as_of)

    assert signals.subscription_count == 2
    # 15.99 monthly from the pattern + 21.98 over a 6-month window
    assert signals.monthly_recurring == pytest.approx(15.99 + 21.98 / 6)


def test_weekly_recurring_is_scaled_to_monthly(data_source, make_txn, as_of):
    """Test weekly charges contribute 4x their amount"""
    source = data_source(transactions=[
        make_txn(days, -10.0, merchant="Gym Class") for days in (1, 8, 15, 22)
    ])

    signals = compute_signals("user_1", 30, source, as_of=as_of)

    assert signals.subscription_count == 1
    assert signals.monthly_recurring == pytest.approx(40.0)
    assert signals.subscription_share == pytest.approx(1.0)


def test_recurring_requires_consistent_amount(data_source, make_txn, as_of):
    """Test monthly cadence with scattered amounts is not a subscription"""
    source = data_source(transactions=[
        make_txn(5, -10.0, merchant="Corner Shop"),
        make_txn(35, -50.0, merchant="Corner Shop"),
        make_txn(65, -100.0, merchant="Corner Shop"),
    ])

    signals = compute_signals("user_1", 180, source, as_of=as_of)

    assert signals.subscription_count == 0
    assert signals.monthly_recurring == 0


def test_transfers_are_never_subscriptions(data_source, make_txn, as_of):
    """Test recurring transfers are excluded from pattern detection"""
    source = data_source(transactions=[
        make_txn(days, -800.0, merchant="Landlord", pfc_primary="transfer") for days in (5, 35, 65)
    ])

    signals = compute_signals("user_1", 180, source, as_of=as_of)

    assert signals.subscription_count == 0
    assert signals.total_spend == pytest.approx(2400.0)


def test_savings_inflow_growth_and_liquidity(data_source, make_txn, as_of):
    """Test savings flow, growth versus previous window, emergency and cash buffer months"""
    source = data_source(
        transactions=[
            make_txn(5, 300.0, merchant="Savings Deposit", account_id="sav_1"),
            make_txn(45, 100.0, merchant="Savings Deposit", account_id="sav_1"),  # previous window
            make_txn(10, -1500.0, merchant="Rent", pfc_primary="bills"),
        ],
        accounts=[
            Account(id="sav_1", user_id="user_1", type="savings", balance_current=3000.0),
            Account(id="chk_1", user_id="user_1", type="checking", balance_current=1500.0),
        ],
    )

    signals = compute_signals("user_1", 30, source, as_of=as_of)

    assert signals.net_savings_inflow == pytest.approx(300.0)
    assert signals.savings_growth_rate == pytest.approx(2.0)
    assert signals.total_spend == pytest.approx(1500.0)
    assert signals.emergency_months == pytest.approx(2.0)
    assert signals.cash_buffer_months == pytest.approx(3.0)


def test_savings_growth_rate_zero_previous():
    """Test growth rate when the previous window had no net savings"""
    assert savings_growth_rate(250.0, 0.0) == 1.0
    assert savings_growth_rate(-50.0, 0.0) == 0.0
    assert savings_growth_rate(0.0, 0.0) == 0.0
    assert savings_growth_rate(50.0, -100.0) == pytest.approx(1.5)


def test_credit_utilization_and_flags(data_source, as_of):
    """Test utilization max across cards and the threshold flags it meets"""
    source = data_source(accounts=[
        Account(id="cc_1", user_id="user_1", type="credit", balance_current=680.0, credit_limit=1000.0),
        Account(id="cc_2", user_id="user_1", type="credit", balance_current=100.0, credit_limit=1000.0),
    ])

    signals = compute_signals("user_1", 30, source, as_of=as_of)

    assert signals.util_max == pytest.approx(0.68)
    assert signals.util_flags == "30,50"


def test_credit_limit_floored_at_one(data_source, as_of):
    """Test a missing credit limit does not divide by zero"""
    source = data_source(accounts=[
        Account(id="cc_1", user_id="user_1", type="credit", balance_current=50.0, credit_limit=None),
    ])

    signals = compute_signals("user_1", 30, source, as_of=as_of)

    assert signals.util_max == pytest.approx(50.0)
    assert signals.util_flags == "30,50,80"


def test_utilization_flags_follow_configured_thresholds():
    """Test flags are derived from the configured threshold list"""
    custom = Thresholds(util_flags=[0.25, 0.9])
    assert utilization_flags(0.5, custom) == "25"
    assert utilization_flags(0.3) == "30"


def test_liability_flags(data_source, as_of):
    """Test minimum-payment-only, interest charges and overdue detection"""
    source = data_source(liabilities=[
        Liability(
            user_id="user_1",
            account_id="cc_1",
            apr_percent=22.9,
            min_payment=25.0,
            last_payment=-25.0,
            last_stmt_bal=500.0,
            is_overdue=False,
        ),
        Liability(user_id="user_1", account_id="cc_2", is_overdue=True),
    ])

    signals = compute_signals("user_1", 30, source, as_of=as_of)

    assert signals.min_pay_only is True
    assert signals.interest_charges is True
    assert signals.overdue is True


def test_paying_more_than_minimum_is_not_min_pay_only(data_source, as_of):
    source = data_source(liabilities=[
        Liability(user_id="user_1", account_id="cc_1", min_payment=25.0, last_payment=100.0),
    ])

    signals = compute_signals("user_1", 30, source, as_of=as_of)

    assert signals.min_pay_only is False
    assert signals.interest_charges is False
    assert signals.overdue is False


def test_income_median_gap(data_source, make_txn, as_of):
    """Test median day gap between paychecks"""
    source = data_source(transactions=[
        make_txn(days, 2000.0, merchant="Employer", pfc_primary="income") for days in (60, 46, 32, 2)
    ])

    signals = compute_signals("user_1", 180, source, as_of=as_of)

    # gaps: 14, 14, 30
    assert signals.income_median_gap == pytest.approx(14.0)


def test_income_median_gap_even_count_takes_lower(data_source, make_txn, as_of):
    source = data_source(transactions=[
        make_txn(days, 2000.0, merchant="Employer", pfc_primary="income") for days in (40, 10, 0)
    ])

    signals = compute_signals("user_1", 180, source, as_of=as_of)

    # gaps: 30, 10
    assert signals.income_median_gap == pytest.approx(10.0)


def test_single_income_event_has_no_cadence(data_source, make_txn, as_of):
    source = data_source(transactions=[make_txn(3, 2000.0, merchant="Employer", pfc_primary="income")])

    signals = compute_signals("user_1", 30, source, as_of=as_of)

    assert signals.income_median_gap == 999


def test_window_excludes_older_spend(data_source, make_txn, as_of):
    """Test the 30-day window ignores spend from the previous window"""
    source = data_source(transactions=[
        make_txn(10, -100.0),
        make_txn(40, -900.0),
    ])

    signals = compute_signals("user_1", 30, source, as_of=as_of)

    assert signals.total_spend == pytest.approx(100.0)


def test_compute_signals_is_idempotent_and_json_safe(data_source, make_txn, as_of):
    """Test identical inputs give identical, strictly JSON-serializable output"""
    source = data_source(
        transactions=[
            make_txn(5, -15.99, merchant="Netflix"),
            make_txn(35, -15.99, merchant="Netflix"),
            make_txn(65, -15.99, merchant="Netflix"),
            make_txn(12, 2500.0, merchant="Employer", pfc_primary="income"),
        ],
        accounts=[Account(id="cc_1", user_id="user_1", type="credit", balance_current=300.0, credit_limit=1000.0)],
    )

    first = compute_signals("user_1", 180, source, as_of=as_of)
    second = compute_signals("user_1", 180, source, as_of=as_of)

    assert first == second
    assert json.dumps(first.to_dict(), allow_nan=False) == json.dumps(second.to_dict(), allow_nan=False)


def test_dominant_amount_groups_within_tolerance():
    """Test amounts within 10% join the first cluster"""
    amount, count = dominant_amount([15.99, 16.49, 15.99, 40.0])
    assert amount == 15.99
    assert count == 3


def test_compute_signals_rejects_non_positive_window(data_source):
    with pytest.raises(ValueError):
        compute_signals("user_1", 0, data_source())
