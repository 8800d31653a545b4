"""Organization Domain Entity

Holds the billing sub-record of an organization: the credit balance, the
lifetime counters and the low-balance alert settings.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import BigInteger, DateTime, CheckConstraint, String
from src.domain.base import BaseModel, BigIntPK, utcnow

DEFAULT_LOW_BALANCE_THRESHOLD = 500_000


class Organization(BaseModel, table=True):
    """
    Organization - Owner of a credit balance

    Domain Rules:
    - credit_balance is never negative
    - credit_balance equals the signed sum of the organization's CreditTransactions
    - total_credits_loaded / total_credits_spent only grow
    - Balance fields are written by the ledger store only
    """

    __tablename__ = "organizations"
    __table_args__ = (
        CheckConstraint("credit_balance >= 0", name="credit_balance_non_negative"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique organization identifier (auto-increment)"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Organization display name"
    )

    contact_email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="General contact email (fallback for billing notifications)"
    )

    credit_balance: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Current credit balance in minor currency units"
    )

    total_credits_loaded: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Total credits ever loaded through top-ups"
    )

    total_credits_spent: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Total credits ever spent on promotions"
    )

    stripe_customer_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Payment provider customer id (assigned on first checkout)"
    )

    billing_email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Email for billing notifications"
    )

    low_balance_alert_enabled: bool = Field(
        default=True,
        description="Enable low balance email alerts"
    )

    low_balance_alert_threshold: int = Field(
        default=DEFAULT_LOW_BALANCE_THRESHOLD,
        sa_column=Column(BigInteger, nullable=False, default=DEFAULT_LOW_BALANCE_THRESHOLD),
        description="Send alert when balance drops below this amount"
    )

    last_low_balance_alert_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="When the last low balance alert was sent"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Organization creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Last update timestamp"
    )

    @property
    def notification_email(self) -> Optional[str]:
        return self.billing_email or self.contact_email
