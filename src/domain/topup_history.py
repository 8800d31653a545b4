"""Top-up History Domain Entity

One row per checkout attempt. Becomes a ledger credit only once the payment
provider reports completion.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text
from src.domain.base import BaseModel, BigIntPK, utcnow
from src.domain.exceptions import InvalidStatusTransitionError


class TopupStatus(str, Enum):
    """Top-up lifecycle states"""
    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"
    FAILED = "failed"
    REFUNDED = "refunded"


TOPUP_TRANSITIONS = {
    TopupStatus.PENDING: frozenset({
        TopupStatus.COMPLETED,
        TopupStatus.EXPIRED,
        TopupStatus.FAILED,
    }),
    # a declined card can be retried inside the same checkout session
    TopupStatus.FAILED: frozenset({TopupStatus.COMPLETED}),
    TopupStatus.COMPLETED: frozenset({TopupStatus.REFUNDED}),
    TopupStatus.EXPIRED: frozenset(),
    TopupStatus.REFUNDED: frozenset(),
}


class TopupHistory(BaseModel, table=True):
    """
    Top-up History - Checkout attempt for buying credits

    Domain Rules:
    - credits_received = amount_paid + bonus_credits
    - Status transitions follow TOPUP_TRANSITIONS
    - credit_transaction_id is set only on completion
    """

    __tablename__ = "credit_topup_history"
    __table_args__ = (
        Index("ix_credit_topup_history_payment_intent", "stripe_payment_intent_id"),
        Index("ix_credit_topup_history_session", "stripe_checkout_session_id"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
    )

    organization_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("organizations.id"), nullable=False, index=True),
    )

    user_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    amount_paid: int = Field(sa_column=Column(BigInteger, nullable=False))

    credits_received: int = Field(sa_column=Column(BigInteger, nullable=False))

    bonus_credits: int = Field(default=0, sa_column=Column(BigInteger, nullable=False, default=0))

    bonus_percentage: int = Field(default=0)

    status: TopupStatus = Field(default=TopupStatus.PENDING)

    stripe_checkout_session_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    stripe_payment_intent_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    credit_transaction_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True),
    )

    failure_reason: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    refunded_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    refund_reason: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

    def can_transition_to(self, target: TopupStatus) -> bool:
        return target in TOPUP_TRANSITIONS[TopupStatus(self.status)]

    def transition_to(self, target: TopupStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidStatusTransitionError(
                "Top-up", TopupStatus(self.status).value, target.value
            )
        self.status = target
        self.updated_at = utcnow()
