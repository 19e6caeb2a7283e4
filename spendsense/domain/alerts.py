"""
AML heuristic alerting - educational only.

These heuristics highlight patterns that could resemble known AML typologies.
They are not law-enforcement determinations or legal advice and are always
shown with AML_EDU_DISCLOSURE.
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from spendsense.domain.models import Transaction
from spendsense.utils.date_utils import day_key, utcnow, window_start

AML_EDU_DISCLOSURE = (
    "Potential AML‑like pattern detected. This is not a determination of wrongdoing, "
    "nor legal or financial advice."
)

# Concentrated transfer volume
TRANSFER_COUNTERPARTY_MIN = 10

# Same-day in/out: only amounts above this count, filtering out ordinary payday spending
SAME_DAY_MIN_AMOUNT = 500.0
SAME_DAY_DAYS_30D = 10  # 33% of a 30-day window
SAME_DAY_DAYS_DEFAULT = 25  # ~14% of a 180-day window

# Severity, summed across both windows
SEVERITY_NONE = "none"
SEVERITY_INFORMATIONAL = "informational"
SEVERITY_ELEVATED = "elevated"
ELEVATED_ALERT_COUNT = 3


def _counterparty_key(txn: Transaction) -> str:
    return txn.merchant_entity_id or txn.merchant or "unknown"


def _is_savings_transfer(txn: Transaction) -> bool:
    # Substring heuristic for internal savings moves; approximate by nature
    return "savings" in (txn.merchant or "").lower()


def top_transfer_counterparty(transactions: Sequence[Transaction]) -> Optional[tuple]:
    """
    Most frequent outbound transfer counterparty.

    Savings-labelled transfers, "unknown" and generic "...transfer..."
    counterparties are skipped as too ambiguous to attribute.

    Returns: (counterparty, count) or None
    """
    counts: Dict[str, int] = {}
    for txn in transactions:
        if txn.pfc_primary != "transfer" or txn.amount >= 0 or _is_savings_transfer(txn):
            continue
        key = _counterparty_key(txn)
        if key == "unknown" or "transfer" in key.lower():
            continue
        counts[key] = counts.get(key, 0) + 1

    if not counts:
        return None
    return max(counts.items(), key=lambda kv: kv[1])


def same_day_in_out_days(transactions: Sequence[Transaction]) -> int:
    """Count calendar days with both a large inflow and a large outflow"""
    inflows: Dict[date, float] = {}
    outflows: Dict[date, float] = {}
    for txn in transactions:
        if abs(txn.amount) <= SAME_DAY_MIN_AMOUNT:
            continue
        day = day_key(txn.date)
        if txn.amount > 0:
            inflows[day] = inflows.get(day, 0.0) + txn.amount
        else:
            outflows[day] = outflows.get(day, 0.0) + abs(txn.amount)

    return sum(1 for day in inflows if outflows.get(day, 0.0) > 0)


def same_day_threshold(window_days: int) -> int:
    """Qualifying-day cutoff, scaled to window length"""
    return SAME_DAY_DAYS_30D if window_days == 30 else SAME_DAY_DAYS_DEFAULT


def aml_educational_alerts(
    transactions: Sequence[Transaction],
    window_days: int,
    as_of: Optional[datetime] = None,
) -> List[str]:
    """
    Scan a user's transactions over the trailing window for red-flag patterns.

    Two independent detectors, each contributing at most one alert:
    - 10+ outbound transfers to a single specific counterparty
    - same-day inflow and outflow above $500 on 10+ days (30d) or 25+ days (180d)

    Args:
        transactions: All of the user's transactions; windowing happens here
        window_days: Trailing window length
        as_of: End of the window (default: now)
    """
    since = window_start(as_of or utcnow(), window_days)
    recent = [t for t in transactions if t.date > since]

    alerts: List[str] = []

    top = top_transfer_counterparty(recent)
    if top and top[1] >= TRANSFER_COUNTERPARTY_MIN:
        alerts.append(f"High volume of transfers ({top[1]}) to a single counterparty in {window_days}d.")

    same_day = same_day_in_out_days(recent)
    if same_day >= same_day_threshold(window_days):
        alerts.append(f"{same_day} days with same‑day in/out flows of substantial amounts.")

    return alerts


def classify_alert_severity(alert_count: int) -> str:
    """none (0), informational (1-2), elevated (3+) - count summed across windows"""
    if alert_count <= 0:
        return SEVERITY_NONE
    if alert_count < ELEVATED_ALERT_COUNT:
        return SEVERITY_INFORMATIONAL
    return SEVERITY_ELEVATED


def should_queue_for_review(severity: str, persona_changed: bool) -> bool:
    """Human review is warranted for elevated alert severity or a persona change"""
    return severity == SEVERITY_ELEVATED or persona_changed
