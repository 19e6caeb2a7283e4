"""SQLAlchemy ORM models for financial records, profiles and the review queue"""

import uuid
from sqlalchemy import Column, String, Boolean, Float, DateTime, Integer, ForeignKey, Text, JSON, Uuid
from sqlalchemy.orm import declarative_base, relationship

from spendsense.utils.date_utils import utcnow

Base = declarative_base()


class AccountRecord(Base):
    """Deposit or credit account"""

    __tablename__ = "accounts"

    id = Column(Text, primary_key=True)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(String(32), nullable=False)
    number_masked = Column(Text, nullable=True)
    balance_current = Column(Float, nullable=True, default=0.0)
    credit_limit = Column(Float, nullable=True)

    transactions = relationship("TransactionRecord", back_populates="account", cascade="all, delete-orphan")


class TransactionRecord(Base):
    """Bank transaction (negative amount = expense)"""

    __tablename__ = "transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(Text, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    merchant = Column(Text, nullable=True)
    merchant_entity_id = Column(Text, nullable=True)
    payment_channel = Column(String(32), nullable=False, default="other")
    pfc_primary = Column(String(32), nullable=False, default="other")
    pending = Column(Boolean, nullable=False, default=False)

    account = relationship("AccountRecord", back_populates="transactions")


class LiabilityRecord(Base):
    """Credit card liability"""

    __tablename__ = "liabilities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(Text, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(32), nullable=False, default="credit_card")
    apr_percent = Column(Float, nullable=True)
    min_payment = Column(Float, nullable=True)
    last_payment = Column(Float, nullable=True)
    last_stmt_bal = Column(Float, nullable=True)
    is_overdue = Column(Boolean, nullable=False, default=False)


class ConsentRecord(Base):
    """Per-user consent status"""

    __tablename__ = "consents"

    user_id = Column(Text, primary_key=True)
    status = Column(String(16), nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class ProfileRecord(Base):
    """Append-only signals + persona snapshot per window"""

    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    window_days = Column(Integer, nullable=False)
    total_spend = Column(Float, nullable=False, default=0.0)
    subscription_count = Column(Integer, nullable=False, default=0)
    monthly_recurring = Column(Float, nullable=False, default=0.0)
    subscription_share = Column(Float, nullable=False, default=0.0)
    net_savings_inflow = Column(Float, nullable=False, default=0.0)
    savings_growth_rate = Column(Float, nullable=False, default=0.0)
    emergency_months = Column(Float, nullable=False, default=0.0)
    cash_buffer_months = Column(Float, nullable=False, default=0.0)
    util_max = Column(Float, nullable=False, default=0.0)
    util_flags = Column(Text, nullable=False, default="")
    min_pay_only = Column(Boolean, nullable=False, default=False)
    interest_charges = Column(Boolean, nullable=False, default=False)
    overdue = Column(Boolean, nullable=False, default=False)
    income_median_gap = Column(Float, nullable=False, default=999.0)
    persona = Column(String(32), nullable=False)
    persona_reason = Column(Text, nullable=False, default="")
    decision_trace = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    review_items = relationship("ReviewItemRecord", back_populates="profile")


class ReviewItemRecord(Base):
    """Operator review queue entry"""

    __tablename__ = "review_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    profile_id = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    reason = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False, default="none")
    status = Column(String(16), nullable=False, default="pending")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    decided_at = Column(DateTime, nullable=True)

    profile = relationship("ProfileRecord", back_populates="review_items")
