"""GET /v1/alerts/{user_id} - educational AML heuristic alerts"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from spendsense.api.v1.schemas import AlertsResponse
from spendsense.infrastructure.database.session import get_db
from spendsense.infrastructure.database.repositories import FinancialDataRepository
from spendsense.domain.alerts import AML_EDU_DISCLOSURE, aml_educational_alerts, classify_alert_severity
from spendsense.domain.exceptions import DataAccessError
from spendsense.utils.date_utils import utcnow

router = APIRouter()


@router.get("/alerts/{user_id}", response_model=AlertsResponse)
def get_alerts(user_id: str, db: Session = Depends(get_db)):
    """
    Run both heuristics over the 30-day and 180-day windows.

    Returns:
        Alert strings per window, severity summed across windows, and the disclosure
    """
    try:
        transactions = FinancialDataRepository(db).get_transactions(user_id)
    except DataAccessError as e:
        logging.error(f"Data access error: {e}")
        raise HTTPException(status_code=503, detail="Data store unavailable")

    as_of = utcnow()
    alerts_30 = aml_educational_alerts(transactions, 30, as_of=as_of)
    alerts_180 = aml_educational_alerts(transactions, 180, as_of=as_of)

    return AlertsResponse(
        user_id=user_id,
        alerts_30=alerts_30,
        alerts_180=alerts_180,
        severity=classify_alert_severity(len(alerts_30) + len(alerts_180)),
        disclosure=AML_EDU_DISCLOSURE,
    )
