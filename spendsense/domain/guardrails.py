"""Guardrails - consent gating, eligibility filtering and tone policy for recommendations"""

import re
from typing import List, Optional, Pattern

from spendsense.domain.exceptions import ConsentRequired, ToneViolation
from spendsense.domain.models import Consent, EligibilityContext, RecommendationItem

STANDARD_DISCLOSURE = (
    "This is educational content, not financial advice. "
    "Consult a licensed advisor for personalized guidance."
)

OPTED_IN = "OPTED_IN"

# Shaming or blaming language never shown to users
BANNED_PATTERNS: List[Pattern[str]] = [
    re.compile(r"overspending", re.IGNORECASE),
    re.compile(r"irresponsible", re.IGNORECASE),
    re.compile(r"bad with money", re.IGNORECASE),
    re.compile(r"reckless", re.IGNORECASE),
    re.compile(r"wasteful", re.IGNORECASE),
]

HYSA_OFFER_ID = "offer-hysa"
BALANCE_TRANSFER_OFFER_ID = "offer-bt-card"
BALANCE_TRANSFER_MIN_UTILIZATION = 0.5


def enforce_consent(consent: Optional[Consent]) -> None:
    """
    Raise ConsentRequired unless the user has opted in.

    Must run before any recommendation reaches an end-user-facing caller.
    """
    if consent is None or consent.status != OPTED_IN:
        raise ConsentRequired()


def eligible(item: RecommendationItem, context: EligibilityContext) -> bool:
    """Drop offers that do not fit the user's situation; everything else passes"""
    if item.id == HYSA_OFFER_ID and context.has_savings_account:
        return False
    if item.id == BALANCE_TRANSFER_OFFER_ID and (
        context.overdue or context.max_utilization < BALANCE_TRANSFER_MIN_UTILIZATION
    ):
        return False
    return True


def tone_check(item: RecommendationItem) -> None:
    """Raise ToneViolation if title or rationale matches banned language"""
    for pattern in BANNED_PATTERNS:
        if pattern.search(item.title) or pattern.search(item.rationale):
            raise ToneViolation(item.id, pattern.pattern)
