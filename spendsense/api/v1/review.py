"""GET/POST /v1/operator/review - human review queue"""

import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from spendsense.api.v1.schemas import ReviewDecisionRequest, ReviewItemSchema, ReviewQueueResponse
from spendsense.infrastructure.database.models import ReviewItemRecord
from spendsense.infrastructure.database.session import get_db
from spendsense.infrastructure.database.repositories import ReviewRepository

router = APIRouter()


def review_to_schema(item: ReviewItemRecord) -> ReviewItemSchema:
    return ReviewItemSchema(
        id=str(item.id),
        user_id=item.user_id,
        profile_id=str(item.profile_id) if item.profile_id else None,
        reason=item.reason,
        severity=item.severity,
        status=item.status,
        notes=item.notes,
        created_at=item.created_at,
        decided_at=item.decided_at,
    )


@router.get("/operator/review", response_model=ReviewQueueResponse)
def get_review_queue(db: Session = Depends(get_db)):
    """Pending review items, oldest first (max 50)"""
    items = ReviewRepository(db).pending(limit=50)
    return ReviewQueueResponse(items=[review_to_schema(i) for i in items])


@router.post("/operator/review", response_model=ReviewItemSchema)
def decide_review_item(request_body: ReviewDecisionRequest, db: Session = Depends(get_db)):
    """Approve or override a queued item"""
    try:
        item_id = uuid.UUID(request_body.id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid review item ID format")

    item = ReviewRepository(db).decide(item_id, request_body.action, request_body.notes)
    if item is None:
        raise HTTPException(status_code=404, detail="Review item not found")

    db.commit()
    return review_to_schema(item)
