"""GET /v1/recommendations/{user_id} - consent-gated, eligibility-filtered recommendations"""

import logging
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from spendsense.api.v1.profile import signals_from_record
from spendsense.api.v1.schemas import RecommendationSchema, RecommendationsResponse
from spendsense.api.dependencies import get_copy_enhancer, get_request_id
from spendsense.infrastructure.clients.copywriter import AICopyEnhancer
from spendsense.infrastructure.database.session import get_db
from spendsense.infrastructure.database.repositories import (
    ConsentRepository,
    FinancialDataRepository,
    ProfileRepository,
)
from spendsense.infrastructure.observability.metrics import tone_violation_counter
from spendsense.domain.alerts import aml_educational_alerts
from spendsense.domain.exceptions import ConsentRequired, DataAccessError, ToneViolation
from spendsense.domain.guardrails import eligible, enforce_consent
from spendsense.domain.models import EligibilityContext, RecommendationContext
from spendsense.domain.recommendations import recommendations_for
from spendsense.domain.signals import CREDIT_ACCOUNT_TYPE, SUPPORTED_WINDOWS
from spendsense.utils.date_utils import utcnow

router = APIRouter()


@router.get("/recommendations/{user_id}", response_model=RecommendationsResponse)
def get_recommendations(
    user_id: str,
    request: Request,
    use_ai_copy: bool = Query(False, description="Ask the text generation collaborator for copy"),
    db: Session = Depends(get_db),
    copy_enhancer: AICopyEnhancer = Depends(get_copy_enhancer),
):
    """
    Recommendations for the user's latest persona.

    Flow:
    1. Enforce consent (403 when not opted in)
    2. Load latest profile; no profile means no items
    3. Build display context (card last4, AML alert flag)
    4. Generate copy (tone-checked) and drop ineligible offers
    """
    request_id = get_request_id(request)

    try:
        enforce_consent(ConsentRepository(db).get(user_id))
    except ConsentRequired as e:
        logging.info(f"Recommendations blocked: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=403, detail="Consent required: opt in first to receive recommendations")

    try:
        latest = ProfileRepository(db).latest_profile(user_id)
        if latest is None:
            return RecommendationsResponse(user_id=user_id, items=[])

        source = FinancialDataRepository(db)
        accounts = source.get_accounts(user_id)
        transactions = source.get_transactions(user_id)
    except DataAccessError as e:
        logging.error(f"Data access error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Data store unavailable")

    as_of = utcnow()
    credit = next((a for a in accounts if a.type == CREDIT_ACCOUNT_TYPE), None)
    last4 = ((credit.number_masked or "") if credit else "")[-4:]
    has_aml_alerts = any(aml_educational_alerts(transactions, w, as_of=as_of) for w in SUPPORTED_WINDOWS)

    signals = signals_from_record(latest)
    context = RecommendationContext(last4=last4, has_aml_alerts=has_aml_alerts)

    try:
        items = recommendations_for(
            latest.persona,
            signals,
            context,
            use_ai_copy=use_ai_copy,
            copy_generator=copy_enhancer,
        )
    except ToneViolation as e:
        tone_violation_counter.inc()
        logging.error(f"Tone policy breach: {e}", extra={"request_id": request_id, "item_id": e.item_id})
        raise HTTPException(status_code=500, detail="Recommendation copy failed content policy")

    since = as_of - timedelta(days=30)
    eligibility = EligibilityContext(
        has_savings_account=any(a.type == "savings" for a in accounts),
        income_monthly=sum(t.amount for t in transactions if t.pfc_primary == "income" and t.amount > 0 and t.date >= since),
        max_utilization=latest.util_max,
        overdue=latest.overdue,
    )

    return RecommendationsResponse(
        user_id=user_id,
        persona=latest.persona,
        items=[
            RecommendationSchema(
                id=i.id,
                kind=i.kind,
                title=i.title,
                rationale=i.rationale,
                ai_generated=i.ai_generated,
            )
            for i in items
            if eligible(i, eligibility)
        ],
    )
