"""Promotion Domain Entity

A time-boxed visibility boost bought with credits for one construction.
Renewals create a new Promotion chained to the previous one.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text, text
from src.domain.base import BaseModel, BigIntPK, utcnow
from src.domain.exceptions import InvalidStatusTransitionError

SECONDS_PER_DAY = 24 * 60 * 60
ACTIVE_CONSTRUCTION_INDEX = "uq_promotions_active_construction"


class PromotionStatus(str, Enum):
    """Promotion lifecycle states"""
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    RENEWED = "renewed"


PROMOTION_TRANSITIONS = {
    PromotionStatus.ACTIVE: frozenset({
        PromotionStatus.EXPIRED,
        PromotionStatus.RENEWED,
        PromotionStatus.CANCELLED,
    }),
    PromotionStatus.EXPIRED: frozenset(),
    PromotionStatus.CANCELLED: frozenset(),
    PromotionStatus.RENEWED: frozenset(),
}


class Promotion(BaseModel, table=True):
    """
    Promotion - Credits spent to boost a construction listing

    Domain Rules:
    - At most one ACTIVE promotion per construction
    - Status transitions: active -> expired | renewed | cancelled (all terminal)
    - A renewal links old.renewed_by_promotion_id <-> new.previous_promotion_id
    - Analytics are snapshotted at start and closed out when the window ends
    - expiration_alert_sent de-duplicates the expiration reminder
    """

    __tablename__ = "promotions"
    __table_args__ = (
        Index("ix_promotions_construction_status", "construction_id", "status"),
        Index("ix_promotions_status_end_date", "status", "end_date"),
        # one ACTIVE promotion per construction; enum columns store member names
        Index(
            ACTIVE_CONSTRUCTION_INDEX,
            "construction_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique promotion identifier (auto-increment)"
    )

    construction_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("constructions.id"), nullable=False),
        description="Promoted construction"
    )

    organization_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("organizations.id"), nullable=False, index=True),
        description="Organization that paid for the promotion"
    )

    package_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("promotion_packages.id"), nullable=False),
        description="Promotion package bought"
    )

    status: PromotionStatus = Field(
        default=PromotionStatus.ACTIVE,
        description="Promotion status (active, expired, cancelled, renewed)"
    )

    credit_transaction_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True),
        description="Debit transaction that funded this promotion"
    )

    credits_spent: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Credits deducted for this promotion"
    )

    start_date: datetime = Field(sa_column=Column(DateTime, nullable=False), description="Promotion window start")

    end_date: datetime = Field(sa_column=Column(DateTime, nullable=False), description="Promotion window end")

    auto_renew: bool = Field(default=False, description="Renew automatically on expiry")

    renewal_count: int = Field(default=0, description="Number of renewals in this chain")

    previous_promotion_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True),
        description="Promotion this one renewed"
    )

    renewed_by_promotion_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True),
        description="Promotion that renewed this one"
    )

    impressions_at_start: int = Field(default=0)
    clicks_at_start: int = Field(default=0)
    impressions_at_end: Optional[int] = Field(default=None)
    clicks_at_end: Optional[int] = Field(default=None)
    impressions_gained: int = Field(default=0)
    clicks_gained: int = Field(default=0)

    cancelled_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    cancelled_by: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    cancellation_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    credits_refunded: int = Field(default=0)

    refund_transaction_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True),
    )

    expiration_alert_sent: bool = Field(
        default=False,
        description="Expiration reminder already sent"
    )

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

    def can_transition_to(self, target: PromotionStatus) -> bool:
        return target in PROMOTION_TRANSITIONS[PromotionStatus(self.status)]

    def transition_to(self, target: PromotionStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidStatusTransitionError(
                "Promotion", PromotionStatus(self.status).value, target.value
            )
        self.status = target
        self.updated_at = utcnow()

    def close_analytics(self, impressions: int, clicks: int) -> None:
        """Snapshot final counters and compute what was gained during the window."""
        self.impressions_at_end = impressions
        self.clicks_at_end = clicks
        self.impressions_gained = impressions - (self.impressions_at_start or 0)
        self.clicks_gained = clicks - (self.clicks_at_start or 0)

    def prorated_refund(self, now: datetime) -> tuple[int, int]:
        """
        Refund owed if cancelled at ``now``, prorated by whole days remaining.

        Returns:
            Tuple of (refund amount, days remaining)
        """
        total_days = math.ceil((self.end_date - self.start_date).total_seconds() / SECONDS_PER_DAY)
        days_used = math.ceil((now - self.start_date).total_seconds() / SECONDS_PER_DAY)
        days_remaining = max(0, total_days - days_used)

        if days_used <= 0 or days_remaining <= 0 or total_days <= 0:
            return 0, days_remaining

        return (days_remaining * self.credits_spent) // total_days, days_remaining
