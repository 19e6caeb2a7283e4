"""Signal extraction - aggregates a user's records over a time window into behavioral signals"""

import logging
import math
from datetime import datetime
from statistics import mean
from typing import Dict, List, Optional, Sequence, Set, Tuple

from spendsense.domain.models import Account, FinancialDataSource, Liability, Signals, Transaction
from spendsense.domain.rules import THRESHOLDS, Thresholds
from spendsense.utils.date_utils import consecutive_gaps_days, utcnow, window_start

logger = logging.getLogger(__name__)

SUPPORTED_WINDOWS = (30, 180)

SAVINGS_ACCOUNT_TYPES = ("savings", "money_market", "hsa")
CHECKING_ACCOUNT_TYPE = "checking"
CREDIT_ACCOUNT_TYPE = "credit"
CREDIT_CARD_LIABILITY = "credit_card"

# Recurring charge detection
MONTHLY_GAP_DAYS = (20.0, 40.0)  # low inclusive, high exclusive
WEEKLY_GAP_DAYS = (6.0, 9.0)  # both exclusive
WEEKS_PER_MONTH = 4
RECURRING_MIN_OCCURRENCES = 3
AMOUNT_TOLERANCE = 0.1

MIN_PAYMENT_EPSILON = 1e-6
NO_INCOME_CADENCE_DAYS = 999.0


def merchant_key(txn: Transaction) -> str:
    """Merchant name, falling back to entity id, falling back to "unknown" """
    return txn.merchant or txn.merchant_entity_id or "unknown"


def months_in_window(window_days: int) -> float:
    """Divisor that turns a window total into a monthly rate (never below 1)"""
    return max(1.0, window_days / 30)


def _finite(value: float, default: float = 0.0) -> float:
    return value if math.isfinite(value) else default


def _is_monthly_gap(gap: float) -> bool:
    return MONTHLY_GAP_DAYS[0] <= gap < MONTHLY_GAP_DAYS[1]


def _is_weekly_gap(gap: float) -> bool:
    return WEEKLY_GAP_DAYS[0] < gap < WEEKLY_GAP_DAYS[1]


def dominant_amount(amounts: Sequence[float]) -> Tuple[float, int]:
    """
    Cluster amounts within a relative tolerance and return the largest cluster.

    Each cluster is anchored on the first amount that opened it; later amounts
    join the first cluster whose anchor is within AMOUNT_TOLERANCE. Ties go to
    the cluster opened first.

    Returns: (anchor_amount, occurrences)
    """
    clusters: List[List[float]] = []  # [anchor, count]
    for amount in amounts:
        for cluster in clusters:
            anchor = cluster[0]
            if anchor > 0 and abs(amount - anchor) / anchor < AMOUNT_TOLERANCE:
                cluster[1] += 1
                break
        else:
            clusters.append([amount, 1])

    best_amount, best_count = 0.0, 0
    for anchor, count in clusters:
        if count > best_count:
            best_amount, best_count = anchor, int(count)
    return best_amount, best_count


def detect_recurring_merchants(expenses: Sequence[Transaction]) -> Tuple[Set[str], float]:
    """
    Pattern-based subscription detection.

    A merchant is recurring when it has at least 3 expense transactions whose
    mean gap is monthly [20, 40) or weekly (6, 9) days, and its most frequent
    amount cluster has at least 3 occurrences. Transfers are never subscriptions.

    Returns: (recurring merchant keys, monthly-equivalent recurring total)
    """
    by_merchant: Dict[str, List[Transaction]] = {}
    for txn in expenses:
        if txn.pfc_primary == "transfer":
            continue
        by_merchant.setdefault(merchant_key(txn), []).append(txn)

    recurring: Set[str] = set()
    monthly_total = 0.0

    for key, txns in by_merchant.items():
        if len(txns) < RECURRING_MIN_OCCURRENCES:
            continue

        ordered = sorted(txns, key=lambda t: t.date)
        avg_gap = mean(consecutive_gaps_days([t.date for t in ordered]))
        monthly = _is_monthly_gap(avg_gap)
        if not (monthly or _is_weekly_gap(avg_gap)):
            continue

        amount, occurrences = dominant_amount([abs(t.amount) for t in ordered])
        if occurrences < RECURRING_MIN_OCCURRENCES:
            continue

        recurring.add(key)
        monthly_total += amount if monthly else amount * WEEKS_PER_MONTH

    return recurring, monthly_total


def category_subscription_spend(
    expenses: Sequence[Transaction],
    exclude_merchants: Set[str],
) -> Dict[str, float]:
    """Total spend per merchant tagged `subscription`, skipping pattern-matched merchants"""
    spend: Dict[str, float] = {}
    for txn in expenses:
        if txn.pfc_primary != "subscription":
            continue
        key = merchant_key(txn)
        if key in exclude_merchants:
            continue
        spend[key] = spend.get(key, 0.0) + abs(txn.amount)
    return spend


def savings_growth_rate(current_net: float, previous_net: float) -> float:
    """Relative change in net savings flow versus the preceding window"""
    if previous_net == 0:
        return 1.0 if current_net > 0 else 0.0
    return (current_net - previous_net) / abs(previous_net)


def income_median_gap(transactions: Sequence[Transaction]) -> float:
    """Lower-median day gap between income deposits; 999 when fewer than 2 deposits"""
    paydays = sorted(t.date for t in transactions if t.amount > 0 and t.pfc_primary == "income")
    gaps = sorted(consecutive_gaps_days(paydays))
    if not gaps:
        return NO_INCOME_CADENCE_DAYS
    return gaps[(len(gaps) - 1) // 2]


def credit_utilization(accounts: Sequence[Account]) -> float:
    """Highest balance/limit ratio across credit accounts (limit floored at 1)"""
    ratios = [
        (a.balance_current or 0.0) / max(1.0, a.credit_limit or 0.0)
        for a in accounts
        if a.type == CREDIT_ACCOUNT_TYPE
    ]
    return max(ratios) if ratios else 0.0


def utilization_flags(util_max: float, thresholds: Thresholds = THRESHOLDS) -> str:
    """Comma-joined integer percentages of the configured flags util_max meets"""
    return ",".join(str(round(flag * 100)) for flag in thresholds.util_flags if util_max >= flag)


def build_signals(
    transactions: Sequence[Transaction],
    previous_transactions: Sequence[Transaction],
    accounts: Sequence[Account],
    liabilities: Sequence[Liability],
    window_days: int,
    thresholds: Thresholds = THRESHOLDS,
) -> Signals:
    """
    Pure signal computation over an in-memory snapshot.

    Args:
        transactions: Records dated inside the current window
        previous_transactions: Records dated inside the preceding window of equal length
        accounts: All of the user's accounts
        liabilities: All of the user's liabilities
        window_days: Window length used to normalize totals to monthly rates
    """
    months = months_in_window(window_days)

    expenses = [t for t in transactions if t.amount < 0]
    total_spend = abs(sum(t.amount for t in expenses))
    monthly_spend = total_spend / months

    # Subscriptions: pattern pass first, category pass only credits merchants the pattern missed
    pattern_merchants, monthly_recurring = detect_recurring_merchants(expenses)
    category_spend = category_subscription_spend(expenses, pattern_merchants)
    monthly_recurring += sum(category_spend.values()) / months
    subscription_count = len(pattern_merchants) + len(category_spend)
    subscription_share = monthly_recurring / monthly_spend if monthly_spend > 0 else 0.0

    # Savings flow
    savings_ids = {a.id for a in accounts if a.type in SAVINGS_ACCOUNT_TYPES}
    current_net = sum(t.amount for t in transactions if t.account_id in savings_ids)
    previous_net = sum(t.amount for t in previous_transactions if t.account_id in savings_ids)
    net_savings_inflow = current_net / months
    growth = savings_growth_rate(current_net, previous_net)

    # Liquidity
    savings_balance = sum(a.balance_current or 0.0 for a in accounts if a.id in savings_ids)
    checking_balance = sum(a.balance_current or 0.0 for a in accounts if a.type == CHECKING_ACCOUNT_TYPE)
    emergency_months = savings_balance / monthly_spend if monthly_spend > 0 else 0.0
    cash_buffer_months = (savings_balance + checking_balance) / monthly_spend if monthly_spend > 0 else 0.0

    # Credit
    util_max = credit_utilization(accounts)
    cards = [l for l in liabilities if l.type == CREDIT_CARD_LIABILITY]
    min_pay_only = any(
        (l.min_payment or 0.0) > 0 and abs(l.last_payment or 0.0) <= (l.min_payment or 0.0) + MIN_PAYMENT_EPSILON
        for l in cards
    )
    interest_charges = any((l.apr_percent or 0.0) > 0 and (l.last_stmt_bal or 0.0) > 0 for l in cards)
    overdue = any(bool(l.is_overdue) for l in cards)

    return Signals(
        total_spend=_finite(total_spend),
        subscription_count=subscription_count,
        monthly_recurring=_finite(monthly_recurring),
        subscription_share=_finite(subscription_share),
        net_savings_inflow=_finite(net_savings_inflow),
        savings_growth_rate=_finite(growth),
        emergency_months=_finite(emergency_months),
        cash_buffer_months=_finite(cash_buffer_months),
        util_max=_finite(util_max),
        util_flags=utilization_flags(util_max, thresholds),
        min_pay_only=min_pay_only,
        interest_charges=interest_charges,
        overdue=overdue,
        income_median_gap=_finite(income_median_gap(transactions), NO_INCOME_CADENCE_DAYS),
    )


def compute_signals(
    user_id: str,
    window_days: int,
    source: FinancialDataSource,
    as_of: Optional[datetime] = None,
    thresholds: Thresholds = THRESHOLDS,
) -> Signals:
    """
    Main entry point: fetch one snapshot of the user's records and extract signals.

    The current window is [as_of - window_days, ...); the preceding window of
    equal length feeds the savings growth comparison. Passing as_of makes
    repeated calls over unchanged data return identical signals.
    """
    if window_days <= 0:
        raise ValueError(f"window_days must be positive, got {window_days}")

    as_of = as_of or utcnow()
    since = window_start(as_of, window_days)
    previous_since = window_start(since, window_days)

    records = source.get_transactions(user_id, since=previous_since)
    accounts = source.get_accounts(user_id)
    liabilities = source.get_liabilities(user_id)

    current = [t for t in records if t.date >= since]
    previous = [t for t in records if previous_since <= t.date < since]

    signals = build_signals(current, previous, accounts, liabilities, window_days, thresholds)
    logger.debug(
        "Signals computed",
        extra={"user_id": user_id, "window_days": window_days, "transaction_count": len(current)},
    )
    return signals
