"""Recommendation generation - persona-gated templates with data-grounded rationale"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from spendsense.domain.guardrails import STANDARD_DISCLOSURE, tone_check
from spendsense.domain.models import RecommendationContext, RecommendationItem, Signals

logger = logging.getLogger(__name__)

AML_REVIEW_GUIDANCE = (
    "Some recent account activity has been set aside for a routine review, so keep statements "
    "and receipts for large transfers and deposits, and consider walking through them with a "
    "licensed professional"
)


@dataclass(frozen=True)
class RecommendationTemplate:
    """Static copy plus a builder for the data-grounded sentence"""

    id: str
    kind: str
    title: str
    fact: Callable[[Signals, RecommendationContext], str]
    aml_title: Optional[str] = None


def _card(context: RecommendationContext) -> str:
    return f"card ••••{context.last4}" if context.last4 else "your card"


def _pct(value: float, digits: int = 0) -> str:
    return f"{value * 100:.{digits}f}%"


TEMPLATES: Dict[str, RecommendationTemplate] = {
    t.id: t
    for t in [
        # high_utilization
        RecommendationTemplate(
            "edu-debt-snowball",
            "education",
            "How to cut utilization under 30% fast",
            lambda s, c: f"We noticed {_card(c)} is at {_pct(s.util_max)} utilization",
            aml_title="Understanding your card balances and statements",
        ),
        RecommendationTemplate(
            "offer-bt-card",
            "offer",
            "0% balance transfer (eligibility check)",
            lambda s, c: f"Utilization is {_pct(s.util_max)} and interest charges present: {str(s.interest_charges).lower()}",
            aml_title="Balance transfer basics (eligibility check)",
        ),
        RecommendationTemplate(
            "edu-autopay",
            "education",
            "Autopay to avoid interest & fees",
            lambda s, c: f"Minimum-payment-only={str(s.min_pay_only).lower()}",
            aml_title="Autopay with a clear payment record",
        ),
        # variable_income
        RecommendationTemplate(
            "edu-percent-budget",
            "education",
            "Percent-based budgeting for uneven pay",
            lambda s, c: f"Median pay gap is {s.income_median_gap:g} days",
            aml_title="Tracking uneven income with clear records",
        ),
        RecommendationTemplate(
            "tool-buffer-calc",
            "education",
            "Emergency fund calculator (1–3 months)",
            lambda s, c: f"Cash buffer is {s.cash_buffer_months:.2f} months",
        ),
        RecommendationTemplate(
            "offer-budget-app",
            "offer",
            "Budgeting app trial (eligibility)",
            lambda s, c: "Irregular income pattern detected",
            aml_title="Budgeting app with exportable history (eligibility)",
        ),
        # subscription_heavy
        RecommendationTemplate(
            "edu-sub-audit",
            "education",
            "Monthly subscription audit checklist",
            lambda s, c: (
                f"Found {s.subscription_count} recurring merchants; "
                f"monthly recurring ≈ ${s.monthly_recurring:.0f}"
            ),
        ),
        RecommendationTemplate(
            "offer-sub-manager",
            "offer",
            "Subscription manager (alerts & cancels)",
            lambda s, c: f"Subscription share is {_pct(s.subscription_share, 1)} of spend",
        ),
        # savings_builder
        RecommendationTemplate(
            "edu-apy",
            "education",
            "Pick a high-yield savings account",
            lambda s, c: (
                f"Savings inflow ${s.net_savings_inflow:.0f}/mo; growth {_pct(s.savings_growth_rate, 1)}"
            ),
        ),
        RecommendationTemplate(
            "offer-hysa",
            "offer",
            "HYSA (eligibility)",
            lambda s, c: "Building emergency fund with no high utilization",
        ),
        RecommendationTemplate(
            "edu-automation",
            "education",
            "Automation: pay-yourself-first",
            lambda s, c: f"Emergency coverage is {s.emergency_months:.2f} months",
            aml_title="Automated transfers you can document",
        ),
        # low_cushion_optimizer
        RecommendationTemplate(
            "edu-cushion-1mo",
            "education",
            "Fast path to 1 month cushion",
            lambda s, c: f"Emergency coverage is {s.emergency_months:.2f} months (<0.5)",
        ),
        RecommendationTemplate(
            "edu-expense-triage",
            "education",
            "Cut 3 expenses this week",
            lambda s, c: f"Subscription share {_pct(s.subscription_share, 1)}",
        ),
        RecommendationTemplate(
            "offer-roundup",
            "offer",
            "Round‑up autosave (eligibility)",
            lambda s, c: f"Net inflow currently ${s.net_savings_inflow:.0f}/mo",
        ),
    ]
}

PERSONA_RECOMMENDATIONS: Dict[str, List[str]] = {
    "high_utilization": ["edu-debt-snowball", "offer-bt-card", "edu-autopay"],
    "variable_income": ["edu-percent-budget", "tool-buffer-calc", "offer-budget-app"],
    "subscription_heavy": ["edu-sub-audit", "offer-sub-manager"],
    "savings_builder": ["edu-apy", "offer-hysa", "edu-automation"],
    "low_cushion_optimizer": ["edu-cushion-1mo", "edu-expense-triage", "offer-roundup"],
}


def because(message: str) -> str:
    """Append the standard disclosure to a rationale sentence"""
    return f"{message}. {STANDARD_DISCLOSURE}"


class CopyGenerator(Protocol):
    """Produces the user-facing item for one template"""

    def generate(
        self,
        template: RecommendationTemplate,
        persona_key: str,
        signals: Signals,
        context: RecommendationContext,
    ) -> RecommendationItem:
        ...


class TemplateCopyGenerator:
    """Deterministic copy, always available"""

    def generate(
        self,
        template: RecommendationTemplate,
        persona_key: str,
        signals: Signals,
        context: RecommendationContext,
    ) -> RecommendationItem:
        fact = template.fact(signals, context)

        if context.has_aml_alerts:
            # Transparency, documentation and referral register
            return RecommendationItem(
                id=template.id,
                kind=template.kind,
                title=template.aml_title or template.title,
                rationale=because(f"{fact}. {AML_REVIEW_GUIDANCE}"),
            )

        return RecommendationItem(
            id=template.id,
            kind=template.kind,
            title=template.title,
            rationale=because(fact),
        )


def recommendations_for(
    persona_key: str,
    signals: Signals,
    context: Optional[RecommendationContext] = None,
    use_ai_copy: bool = False,
    copy_generator: Optional[CopyGenerator] = None,
) -> List[RecommendationItem]:
    """
    Build the ordered recommendation list for a persona.

    Every item carries the standard disclosure and passes tone_check; a
    ToneViolation aborts the whole call. When use_ai_copy is set and an
    enhancer is supplied it produces the copy; the enhancer owns its own
    fallback to the deterministic template.

    Unknown persona keys yield an empty list.
    """
    context = context or RecommendationContext()
    template_generator = TemplateCopyGenerator()

    generator: CopyGenerator = template_generator
    if use_ai_copy:
        if copy_generator is None:
            logger.debug("AI copy requested without a generator, using templates")
        else:
            generator = copy_generator

    items: List[RecommendationItem] = []
    for rec_id in PERSONA_RECOMMENDATIONS.get(persona_key, []):
        item = generator.generate(TEMPLATES[rec_id], persona_key, signals, context)
        tone_check(item)
        items.append(item)

    return items
