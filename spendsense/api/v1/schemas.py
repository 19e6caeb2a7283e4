"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal, Optional


class ConsentRequest(BaseModel):
    """Request body for POST /v1/consent"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    status: Literal["OPTED_IN", "OPTED_OUT"]


class ConsentResponse(BaseModel):
    """Response for POST /v1/consent"""

    user_id: str
    status: str
    updated_at: datetime


class SignalsSchema(BaseModel):
    """Flat signals snapshot"""

    total_spend: float
    subscription_count: int
    monthly_recurring: float
    subscription_share: float
    net_savings_inflow: float
    savings_growth_rate: float
    emergency_months: float
    cash_buffer_months: float
    util_max: float
    util_flags: str
    min_pay_only: bool
    interest_charges: bool
    overdue: bool
    income_median_gap: float


class PersonaSchema(BaseModel):
    """Classifier outcome"""

    key: str
    reason: str
    priority: int


class ProfileSchema(BaseModel):
    """Single persisted profile"""

    profile_id: str
    window_days: int
    persona: PersonaSchema
    signals: SignalsSchema
    created_at: datetime


class ProfileResponse(BaseModel):
    """Response for POST/GET /v1/profile/{user_id}"""

    user_id: str
    consent_status: Optional[str] = None
    profiles: List[ProfileSchema]


class RecommendationSchema(BaseModel):
    """Single recommendation item"""

    id: str
    kind: str
    title: str
    rationale: str
    ai_generated: bool = False


class RecommendationsResponse(BaseModel):
    """Response for GET /v1/recommendations/{user_id}"""

    user_id: str
    persona: Optional[str] = None
    items: List[RecommendationSchema]


class AlertsResponse(BaseModel):
    """Response for GET /v1/alerts/{user_id}"""

    user_id: str
    alerts_30: List[str]
    alerts_180: List[str]
    severity: str
    disclosure: str


class ReviewItemSchema(BaseModel):
    """Operator review queue entry"""

    id: str
    user_id: str
    profile_id: Optional[str] = None
    reason: str
    severity: str
    status: str
    notes: Optional[str] = None
    created_at: datetime
    decided_at: Optional[datetime] = None


class ReviewQueueResponse(BaseModel):
    """Response for GET /v1/operator/review"""

    items: List[ReviewItemSchema]


class ReviewDecisionRequest(BaseModel):
    """Request body for POST /v1/operator/review"""

    id: str
    action: Literal["approve", "override"]
    notes: Optional[str] = None
