"""Data access layer for financial records, profiles, consent and the review queue"""

import logging
import time
import uuid
from datetime import datetime
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from spendsense.config import settings
from spendsense.domain.exceptions import DataAccessError
from spendsense.domain.models import Account, Consent, Liability, Persona, Signals, Transaction
from spendsense.domain.personas import decision_trace
from spendsense.infrastructure.database.models import (
    AccountRecord,
    ConsentRecord,
    LiabilityRecord,
    ProfileRecord,
    ReviewItemRecord,
    TransactionRecord,
)
from spendsense.infrastructure.observability.metrics import db_retry_counter
from spendsense.utils.date_utils import utcnow

T = TypeVar("T")


def with_retry(
    operation: Callable[[], T],
    max_retries: int | None = None,
    backoff_base: float | None = None,
) -> T:
    """
    Run a read with bounded retries on connection errors.

    Retry strategy:
    - Exponential backoff: 1s, 2s, 4s (base * 2^(attempt-1))
    - Only OperationalError (connection refused, timeouts) is retried
    - Raises DataAccessError after the last attempt
    """
    max_retries = max_retries or settings.db_max_retries
    backoff_base = settings.db_backoff_base if backoff_base is None else backoff_base

    attempt = 0
    while True:
        try:
            return operation()
        except OperationalError as e:
            attempt += 1
            if attempt >= max_retries:
                raise DataAccessError(f"Database unavailable after {attempt} attempts") from e

            db_retry_counter.inc()
            backoff = backoff_base * (2 ** (attempt - 1))
            logging.warning(
                f"Database attempt {attempt}/{max_retries} failed, retrying in {backoff}s"
            )
            time.sleep(backoff)


class FinancialDataRepository:
    """Read-only snapshot access to a user's accounts, transactions and liabilities"""

    def __init__(self, db: Session):
        self.db = db

    def get_transactions(self, user_id: str, since: Optional[datetime] = None) -> List[Transaction]:
        """Transactions dated on or after `since` (all when omitted), oldest first"""

        def query() -> List[TransactionRecord]:
            q = self.db.query(TransactionRecord).filter(TransactionRecord.user_id == user_id)
            if since is not None:
                q = q.filter(TransactionRecord.date >= since)
            return q.order_by(TransactionRecord.date.asc(), TransactionRecord.id.asc()).all()

        return [
            Transaction(
                user_id=r.user_id,
                account_id=r.account_id,
                date=r.date,
                amount=r.amount,
                merchant=r.merchant,
                merchant_entity_id=r.merchant_entity_id,
                payment_channel=r.payment_channel,
                pfc_primary=r.pfc_primary,
                pending=r.pending,
            )
            for r in with_retry(query)
        ]

    def get_accounts(self, user_id: str) -> List[Account]:
        """All accounts for a user"""
        records = with_retry(
            lambda: self.db.query(AccountRecord)
            .filter(AccountRecord.user_id == user_id)
            .order_by(AccountRecord.id.asc())
            .all()
        )
        return [
            Account(
                id=r.id,
                user_id=r.user_id,
                type=r.type,
                balance_current=r.balance_current,
                credit_limit=r.credit_limit,
                number_masked=r.number_masked,
            )
            for r in records
        ]

    def get_liabilities(self, user_id: str) -> List[Liability]:
        """All liabilities for a user"""
        records = with_retry(
            lambda: self.db.query(LiabilityRecord)
            .filter(LiabilityRecord.user_id == user_id)
            .order_by(LiabilityRecord.account_id.asc())
            .all()
        )
        return [
            Liability(
                user_id=r.user_id,
                account_id=r.account_id,
                type=r.type,
                apr_percent=r.apr_percent,
                min_payment=r.min_payment,
                last_payment=r.last_payment,
                last_stmt_bal=r.last_stmt_bal,
                is_overdue=r.is_overdue,
            )
            for r in records
        ]


class ConsentRepository:
    """Repository for consent records"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[Consent]:
        record = with_retry(lambda: self.db.get(ConsentRecord, user_id))
        return Consent(user_id=record.user_id, status=record.status) if record else None

    def upsert(self, user_id: str, status: str) -> ConsentRecord:
        """Create or update the consent status"""
        record = self.db.get(ConsentRecord, user_id)
        if record is None:
            record = ConsentRecord(user_id=user_id, status=status)
            self.db.add(record)
        else:
            record.status = status
            record.updated_at = utcnow()
        self.db.flush()
        return record


class ProfileRepository:
    """Repository for append-only profile snapshots"""

    def __init__(self, db: Session):
        self.db = db

    def create_profile(
        self,
        user_id: str,
        window_days: int,
        signals: Signals,
        persona: Persona,
    ) -> ProfileRecord:
        """Persist signals, persona and decision trace"""
        record = ProfileRecord(
            user_id=user_id,
            window_days=window_days,
            persona=persona.key,
            persona_reason=persona.reason,
            decision_trace=decision_trace(persona, signals),
            **signals.to_dict(),
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def latest_profile(self, user_id: str, window_days: int | None = None) -> Optional[ProfileRecord]:
        """Most recent profile, optionally restricted to one window"""
        q = self.db.query(ProfileRecord).filter(ProfileRecord.user_id == user_id)
        if window_days is not None:
            q = q.filter(ProfileRecord.window_days == window_days)
        return with_retry(lambda: q.order_by(ProfileRecord.created_at.desc()).first())

    def get_profiles_by_user(self, user_id: str, limit: int = 20) -> List[ProfileRecord]:
        """Profile history, newest first"""
        return with_retry(
            lambda: self.db.query(ProfileRecord)
            .filter(ProfileRecord.user_id == user_id)
            .order_by(ProfileRecord.created_at.desc())
            .limit(limit)
            .all()
        )


class ReviewRepository:
    """Repository for the operator review queue"""

    def __init__(self, db: Session):
        self.db = db

    def enqueue(
        self,
        user_id: str,
        profile_id: uuid.UUID | None,
        reason: str,
        severity: str,
    ) -> ReviewItemRecord:
        record = ReviewItemRecord(user_id=user_id, profile_id=profile_id, reason=reason, severity=severity)
        self.db.add(record)
        self.db.flush()
        return record

    def pending(self, limit: int = 50) -> List[ReviewItemRecord]:
        """Pending items, oldest first"""
        return with_retry(
            lambda: self.db.query(ReviewItemRecord)
            .filter(ReviewItemRecord.status == "pending")
            .order_by(ReviewItemRecord.created_at.asc())
            .limit(limit)
            .all()
        )

    def decide(self, item_id: uuid.UUID, action: str, notes: str | None = None) -> Optional[ReviewItemRecord]:
        """Mark an item approved or overridden"""
        record = self.db.get(ReviewItemRecord, item_id)
        if record is None:
            return None
        record.status = "approved" if action == "approve" else "overridden"
        record.notes = notes
        record.decided_at = utcnow()
        self.db.flush()
        return record
