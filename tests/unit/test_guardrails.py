"""Unit tests for consent, eligibility and tone guardrails"""

import pytest
from spendsense.domain.exceptions import ConsentRequired, ToneViolation
from spendsense.domain.guardrails import STANDARD_DISCLOSURE, eligible, enforce_consent, tone_check
from spendsense.domain.models import Consent, EligibilityContext, RecommendationItem


def _item(item_id: str, title: str = "Title", rationale: str = STANDARD_DISCLOSURE) -> RecommendationItem:
    return RecommendationItem(id=item_id, kind="offer", title=title, rationale=rationale)


def _ctx(**overrides) -> EligibilityContext:
    values = dict(has_savings_account=False, income_monthly=0.0, max_utilization=0.0, overdue=False)
    values.update(overrides)
    return EligibilityContext(**values)


def test_enforce_consent_opted_in_passes():
    enforce_consent(Consent(user_id="user_1", status="OPTED_IN"))


@pytest.mark.parametrize("consent", [None, Consent(user_id="user_1", status="OPTED_OUT")])
def test_enforce_consent_rejects_missing_or_opted_out(consent):
    with pytest.raises(ConsentRequired):
        enforce_consent(consent)


def test_hysa_filtered_when_savings_exists():
    """Test HYSA offer only shows to users without a savings account"""
    assert eligible(_item("offer-hysa"), _ctx(has_savings_account=True)) is False
    assert eligible(_item("offer-hysa"), _ctx(has_savings_account=False)) is True


def test_balance_transfer_requires_meaningful_utilization():
    assert eligible(_item("offer-bt-card"), _ctx(max_utilization=0.49)) is False
    assert eligible(_item("offer-bt-card"), _ctx(max_utilization=0.5)) is True


def test_balance_transfer_blocked_when_overdue():
    assert eligible(_item("offer-bt-card"), _ctx(max_utilization=0.9, overdue=True)) is False


def test_other_items_pass_through():
    assert eligible(_item("edu-apy"), _ctx(has_savings_account=True, overdue=True)) is True


@pytest.mark.parametrize("title", ["Stop overspending!", "STOP OVERSPENDING", "Don't be irresponsible", "Bad With Money?"])
def test_tone_check_rejects_shaming_titles(title):
    with pytest.raises(ToneViolation) as exc_info:
        tone_check(_item("x", title=title))
    assert exc_info.value.item_id == "x"


def test_tone_check_inspects_rationale():
    with pytest.raises(ToneViolation):
        tone_check(_item("x", rationale=f"Your overspending is a problem. {STANDARD_DISCLOSURE}"))


def test_tone_check_accepts_neutral_copy():
    tone_check(_item("edu-apy", title="Pick a high-yield savings account"))
