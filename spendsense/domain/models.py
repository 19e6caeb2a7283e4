"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, asdict, fields
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol


PERSONA_KEYS = (
    "high_utilization",
    "low_cushion_optimizer",
    "variable_income",
    "subscription_heavy",
    "savings_builder",
)


@dataclass(frozen=True)
class Transaction:
    """Bank transaction snapshot (negative amount = expense, positive = inflow)"""

    user_id: str
    account_id: str
    date: datetime
    amount: float
    merchant: Optional[str] = None
    merchant_entity_id: Optional[str] = None
    payment_channel: str = "other"
    pfc_primary: str = "other"  # income|transfer|subscription|groceries|dining|bills|entertainment|travel|other
    pending: bool = False


@dataclass(frozen=True)
class Account:
    """Deposit or credit account snapshot"""

    id: str
    user_id: str
    type: str  # checking|savings|money_market|hsa|credit|...
    balance_current: Optional[float] = 0.0
    credit_limit: Optional[float] = None
    number_masked: Optional[str] = None


@dataclass(frozen=True)
class Liability:
    """Credit card liability snapshot"""

    user_id: str
    account_id: str
    type: str = "credit_card"
    apr_percent: Optional[float] = 0.0
    min_payment: Optional[float] = 0.0
    last_payment: Optional[float] = 0.0
    last_stmt_bal: Optional[float] = 0.0
    is_overdue: bool = False


@dataclass(frozen=True)
class Consent:
    """Data-processing consent record"""

    user_id: str
    status: str  # OPTED_IN | OPTED_OUT


@dataclass(frozen=True)
class Signals:
    """Behavioral signals for one (user, window) pair; every field always present"""

    total_spend: float = 0.0
    subscription_count: int = 0
    monthly_recurring: float = 0.0
    subscription_share: float = 0.0
    net_savings_inflow: float = 0.0
    savings_growth_rate: float = 0.0
    emergency_months: float = 0.0
    cash_buffer_months: float = 0.0
    util_max: float = 0.0
    util_flags: str = ""
    min_pay_only: bool = False
    interest_charges: bool = False
    overdue: bool = False
    income_median_gap: float = 999.0

    def to_dict(self) -> Dict[str, Any]:
        """Flat, JSON-compatible snapshot for the decision trace"""
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Signals":
        """Rebuild from a stored row or dict, defaulting missing or null fields"""
        values: Dict[str, Any] = {}
        for f in fields(cls):
            raw = data.get(f.name)
            if raw is None:
                continue
            values[f.name] = raw
        return cls(**values)


@dataclass(frozen=True)
class Persona:
    """Classifier outcome with audit reason"""

    key: str
    reason: str
    priority: int


@dataclass(frozen=True)
class RecommendationItem:
    """Single educational item or partner offer"""

    id: str
    kind: str  # "education" or "offer"
    title: str
    rationale: str
    ai_generated: bool = False


@dataclass(frozen=True)
class EligibilityContext:
    """Facts used to filter offers a user should not see"""

    has_savings_account: bool
    income_monthly: float
    max_utilization: float
    overdue: bool


@dataclass(frozen=True)
class RecommendationContext:
    """Display context for recommendation copy"""

    last4: str = ""
    has_aml_alerts: bool = False


class FinancialDataSource(Protocol):
    """Read access to a user's raw financial records"""

    def get_transactions(self, user_id: str, since: Optional[datetime] = None) -> List[Transaction]:
        ...

    def get_accounts(self, user_id: str) -> List[Account]:
        ...

    def get_liabilities(self, user_id: str) -> List[Liability]:
        ...
