"""Promotion Package Domain Entity

Catalog entry describing what a promotion costs and how long it lasts.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import BigInteger, DateTime, CheckConstraint, String, Text
from src.domain.base import BaseModel, BigIntPK, utcnow


class PromotionPackage(BaseModel, table=True):
    """
    Promotion Package - Immutable catalog entry

    Domain Rules:
    - cost_in_credits and duration_days are positive
    - Only packages with is_active=True can be purchased
    """

    __tablename__ = "promotion_packages"
    __table_args__ = (
        CheckConstraint("cost_in_credits > 0", name="cost_in_credits_positive"),
        CheckConstraint("duration_days > 0", name="duration_days_positive"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
    )

    name: str = Field(sa_column=Column(String(255), nullable=False))

    slug: str = Field(sa_column=Column(String(100), nullable=False, unique=True))

    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    badge: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Short marketing label such as \"Popular\""
    )

    cost_in_credits: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Price of the package in credits"
    )

    duration_days: int = Field(description="Length of the promotion window in days")

    is_active: bool = Field(default=True, description="Available for new purchases")

    auto_renewal_default: bool = Field(default=False, description="Pre-selects auto renewal at checkout")

    sort_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))
