"""POST /v1/consent - record a user's consent status"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from spendsense.api.v1.schemas import ConsentRequest, ConsentResponse
from spendsense.infrastructure.database.session import get_db
from spendsense.infrastructure.database.repositories import ConsentRepository

router = APIRouter()


@router.post("/consent", response_model=ConsentResponse)
def upsert_consent(request_body: ConsentRequest, db: Session = Depends(get_db)):
    """Opt a user in or out; recommendations require OPTED_IN"""
    record = ConsentRepository(db).upsert(request_body.user_id, request_body.status)
    db.commit()

    return ConsentResponse(user_id=record.user_id, status=record.status, updated_at=record.updated_at)
