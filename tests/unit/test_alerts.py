"""Unit tests for AML heuristic alerting"""

import pytest
from spendsense.domain.alerts import (
    aml_educational_alerts,
    classify_alert_severity,
    should_queue_for_review,
)


def _transfers(make_txn, count, counterparty="Acme Holdings", amount=-750.0):
    return [make_txn(i + 1, amount, merchant=counterparty, pfc_primary="transfer") for i in range(count)]


def _in_out_days(make_txn, days, amount=600.0):
    txns = []
    for day in range(days):
        txns.append(make_txn(day + 0.5, amount, merchant="Deposit", pfc_primary="income"))
        txns.append(make_txn(day + 0.25, -amount, merchant="Wire Out", pfc_primary="other"))
    return txns


def test_ten_transfers_to_one_counterparty_alerts(make_txn, as_of):
    alerts = aml_educational_alerts(_transfers(make_txn, 10), 30, as_of=as_of)

    assert len(alerts) == 1
    assert "10" in alerts[0]
    assert alerts[0] == "High volume of transfers (10) to a single counterparty in 30d."


def test_nine_transfers_do_not_alert(make_txn, as_of):
    assert aml_educational_alerts(_transfers(make_txn, 9), 30, as_of=as_of) == []


def test_savings_transfers_are_excluded(make_txn, as_of):
    txns = _transfers(make_txn, 12, counterparty="My Savings Account")
    assert aml_educational_alerts(txns, 30, as_of=as_of) == []


def test_generic_transfer_counterparties_are_excluded(make_txn, as_of):
    txns = _transfers(make_txn, 12, counterparty="Online Transfer") + _transfers(make_txn, 12, counterparty=None)
    assert aml_educational_alerts(txns, 30, as_of=as_of) == []


def test_entity_id_takes_precedence_over_merchant(make_txn, as_of):
    txns = [
        make_txn(i + 1, -700.0, merchant=f"Payee {i}", merchant_entity_id="ent_42", pfc_primary="transfer")
        for i in range(10)
    ]
    assert len(aml_educational_alerts(txns, 30, as_of=as_of)) == 1


def test_inbound_transfers_do_not_count(make_txn, as_of):
    txns = _transfers(make_txn, 12, amount=750.0)
    assert aml_educational_alerts(txns, 30, as_of=as_of) == []


def test_transfers_outside_window_do_not_count(make_txn, as_of):
    txns = [make_txn(40 + i, -750.0, merchant="Acme Holdings", pfc_primary="transfer") for i in range(10)]

    assert aml_educational_alerts(txns, 30, as_of=as_of) == []
    assert len(aml_educational_alerts(txns, 180, as_of=as_of)) == 1


def test_ten_same_day_in_out_days_alert_in_30d(make_txn, as_of):
    alerts = aml_educational_alerts(_in_out_days(make_txn, 10), 30, as_of=as_of)

    assert alerts == ["10 days with same‑day in/out flows of substantial amounts."]


def test_nine_same_day_in_out_days_do_not_alert(make_txn, as_of):
    assert aml_educational_alerts(_in_out_days(make_txn, 9), 30, as_of=as_of) == []


def test_small_amounts_are_ignored(make_txn, as_of):
    """Test $500 and under is ordinary payday spending"""
    assert aml_educational_alerts(_in_out_days(make_txn, 15, amount=500.0), 30, as_of=as_of) == []


def test_180d_window_needs_25_days(make_txn, as_of):
    assert aml_educational_alerts(_in_out_days(make_txn, 24), 180, as_of=as_of) == []
    alerts = aml_educational_alerts(_in_out_days(make_txn, 25), 180, as_of=as_of)
    assert alerts == ["25 days with same‑day in/out flows of substantial amounts."]


def test_detectors_are_independent(make_txn, as_of):
    txns = _transfers(make_txn, 10) + _in_out_days(make_txn, 10)
    alerts = aml_educational_alerts(txns, 30, as_of=as_of)

    assert len(alerts) == 2
    assert alerts[0].startswith("High volume of transfers (10)")


@pytest.mark.parametrize(
    "count,expected",
    [(0, "none"), (1, "informational"), (2, "informational"), (3, "elevated"), (4, "elevated")],
)
def test_classify_alert_severity(count, expected):
    assert classify_alert_severity(count) == expected


def test_should_queue_for_review():
    assert should_queue_for_review("elevated", persona_changed=False) is True
    assert should_queue_for_review("informational", persona_changed=True) is True
    assert should_queue_for_review("informational", persona_changed=False) is False
    assert should_queue_for_review("none", persona_changed=False) is False
