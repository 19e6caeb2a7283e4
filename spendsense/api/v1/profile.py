"""POST/GET /v1/profile/{user_id} - recompute and list behavioral profiles"""

import time
import logging
from dataclasses import fields
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from spendsense.api.v1.schemas import PersonaSchema, ProfileResponse, ProfileSchema, SignalsSchema
from spendsense.api.dependencies import get_request_id
from spendsense.infrastructure.database.session import get_db
from spendsense.infrastructure.database.models import ProfileRecord
from spendsense.infrastructure.database.repositories import (
    ConsentRepository,
    FinancialDataRepository,
    ProfileRepository,
    ReviewRepository,
)
from spendsense.domain.alerts import (
    SEVERITY_ELEVATED,
    aml_educational_alerts,
    classify_alert_severity,
    should_queue_for_review,
)
from spendsense.domain.exceptions import DataAccessError
from spendsense.domain.models import Signals
from spendsense.domain.personas import assign_persona
from spendsense.domain.signals import SUPPORTED_WINDOWS, compute_signals
from spendsense.infrastructure.observability.metrics import (
    record_alert_severity,
    record_profile,
    review_enqueued_counter,
)
from spendsense.infrastructure.observability.logging import log_profile_computed
from spendsense.utils.date_utils import utcnow

router = APIRouter()


def signals_from_record(record: ProfileRecord) -> Signals:
    """Rebuild the signals value object from a stored profile row"""
    return Signals.from_mapping({f.name: getattr(record, f.name) for f in fields(Signals)})


def profile_to_schema(record: ProfileRecord) -> ProfileSchema:
    return ProfileSchema(
        profile_id=str(record.id),
        window_days=record.window_days,
        persona=PersonaSchema(**record.decision_trace["persona"]),
        signals=SignalsSchema(**signals_from_record(record).to_dict()),
        created_at=record.created_at,
    )


@router.post("/profile/{user_id}", response_model=ProfileResponse)
def recompute_profile(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Recompute signals and persona for both windows and append profile rows.

    Flow:
    1. Fetch one snapshot of the user's transactions
    2. Run AML heuristics for 30d and 180d, classify severity
    3. Per window: compute signals, assign persona, persist profile + decision trace
    4. Enqueue review on persona change or elevated alert severity
    """
    start_time = time.time()
    request_id = get_request_id(request)
    as_of = utcnow()

    source = FinancialDataRepository(db)
    profile_repo = ProfileRepository(db)
    review_repo = ReviewRepository(db)

    try:
        consent = ConsentRepository(db).get(user_id)

        # 1-2. AML heuristics run independently of persona
        transactions = source.get_transactions(user_id)
        alerts_by_window = {w: aml_educational_alerts(transactions, w, as_of=as_of) for w in SUPPORTED_WINDOWS}
        alert_count = sum(len(a) for a in alerts_by_window.values())
        severity = classify_alert_severity(alert_count)
        record_alert_severity(severity)

        # 3-4. Profiles per window
        profiles = []
        for window_days in SUPPORTED_WINDOWS:
            signals = compute_signals(user_id, window_days, source, as_of=as_of)
            persona = assign_persona(signals)

            previous = profile_repo.latest_profile(user_id, window_days)
            record = profile_repo.create_profile(user_id, window_days, signals, persona)
            profiles.append(record)
            record_profile(persona.key, window_days)

            persona_changed = previous is not None and previous.persona != persona.key
            if should_queue_for_review(severity, persona_changed):
                window_alerts = alerts_by_window[window_days]
                if severity == SEVERITY_ELEVATED and window_alerts:
                    reason = f"aml_alerts: {' | '.join(window_alerts)}"
                    review_enqueued_counter.labels(reason="aml_alerts").inc()
                else:
                    reason = "persona_change"
                    review_enqueued_counter.labels(reason="persona_change").inc()
                review_repo.enqueue(user_id, record.id, reason, severity)

            duration_ms = (time.time() - start_time) * 1000
            log_profile_computed(request_id, user_id, window_days, persona.key, alert_count, duration_ms)

        db.commit()

        return ProfileResponse(
            user_id=user_id,
            consent_status=consent.status if consent else None,
            profiles=[profile_to_schema(p) for p in profiles],
        )

    except DataAccessError as e:
        db.rollback()
        logging.error(f"Data access error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Data store unavailable")


@router.get("/profile/{user_id}", response_model=ProfileResponse)
def get_profile_history(user_id: str, db: Session = Depends(get_db)):
    """
    Retrieve recent profiles for a user, newest first.

    Returns:
        Persisted profiles with persona, reason and signals snapshot
    """
    consent = ConsentRepository(db).get(user_id)
    records = ProfileRepository(db).get_profiles_by_user(user_id, limit=20)

    return ProfileResponse(
        user_id=user_id,
        consent_status=consent.status if consent else None,
        profiles=[profile_to_schema(r) for r in records],
    )
