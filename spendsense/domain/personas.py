"""Persona classification - ordered rule cascade over signals, first match wins"""

from dataclasses import dataclass
from typing import Callable, List

from spendsense.domain.models import Persona, Signals
from spendsense.domain.rules import THRESHOLDS, Thresholds

DEFAULT_PERSONA_KEY = "savings_builder"
DEFAULT_PRIORITY = 99
DEFAULT_REASON = "default to education on goals & automation"


@dataclass(frozen=True)
class PersonaRule:
    """One candidate in the cascade"""

    key: str
    priority: int
    matches: Callable[[Signals, Thresholds], bool]
    reason: Callable[[Signals, Thresholds], str]


def _pct(value: float, digits: int = 0) -> str:
    return f"{value * 100:.{digits}f}%"


PERSONA_RULES: List[PersonaRule] = [
    PersonaRule(
        key="high_utilization",
        priority=1,
        matches=lambda s, t: s.util_max >= t.util_high or s.interest_charges or s.min_pay_only or s.overdue,
        reason=lambda s, t: (
            f"utilMax={_pct(s.util_max)}, interest={str(s.interest_charges).lower()}, "
            f"minPayOnly={str(s.min_pay_only).lower()}, overdue={str(s.overdue).lower()}"
        ),
    ),
    PersonaRule(
        key="low_cushion_optimizer",
        priority=2,
        matches=lambda s, t: s.cash_buffer_months < t.buffer_very_low and not s.overdue,
        reason=lambda s, t: f"cashBufferMonths={s.cash_buffer_months:.2f} (< {t.buffer_very_low:g}) and not overdue",
    ),
    PersonaRule(
        key="variable_income",
        priority=3,
        matches=lambda s, t: s.income_median_gap > t.income_gap_days and s.cash_buffer_months < t.buffer_month_low,
        reason=lambda s, t: f"income gap={s.income_median_gap:g}d and buffer={s.cash_buffer_months:.2f}mo",
    ),
    PersonaRule(
        key="subscription_heavy",
        priority=4,
        matches=lambda s, t: s.subscription_count >= t.subscription_recurring_min
        and (
            s.monthly_recurring >= t.subscription_monthly_min_usd
            or s.subscription_share >= t.subscription_share_min
        ),
        reason=lambda s, t: (
            f"subs={s.subscription_count}, monthlyRecurring=${s.monthly_recurring:.0f}, "
            f"share={_pct(s.subscription_share, 1)}"
        ),
    ),
    PersonaRule(
        key="savings_builder",
        priority=5,
        matches=lambda s, t: (
            s.savings_growth_rate >= t.savings_growth_min or s.net_savings_inflow >= t.savings_net_inflow_min
        )
        and s.util_max < t.util_savings_max,
        reason=lambda s, t: (
            f"growth={_pct(s.savings_growth_rate, 1)}, inflow=${s.net_savings_inflow:.0f}/mo, "
            f"utilMax={_pct(s.util_max)}"
        ),
    ),
]


def assign_persona(signals: Signals, thresholds: Thresholds = THRESHOLDS) -> Persona:
    """
    Pick exactly one persona for a signals snapshot.

    Rules are evaluated in priority order (1 = highest) and the first match
    wins. When nothing matches the user gets the savings_builder education
    track at priority 99, so the classifier is total.

    The reason string embeds the signal values that triggered the match and
    is persisted as part of the decision trace.
    """
    for rule in sorted(PERSONA_RULES, key=lambda r: r.priority):
        if rule.matches(signals, thresholds):
            return Persona(key=rule.key, reason=rule.reason(signals, thresholds), priority=rule.priority)

    return Persona(key=DEFAULT_PERSONA_KEY, reason=DEFAULT_REASON, priority=DEFAULT_PRIORITY)


def decision_trace(persona: Persona, signals: Signals) -> dict:
    """Audit record shown to human reviewers: persona plus the full signals snapshot"""
    return {
        "persona": {"key": persona.key, "reason": persona.reason, "priority": persona.priority},
        "signals": signals.to_dict(),
    }
