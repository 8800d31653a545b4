"""Construction Domain Entity

The listing a promotion boosts. Owned by the listings part of the system;
the billing core only reads ownership, eligibility and analytics counters.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import BigInteger, DateTime, ForeignKey, String
from src.domain.base import BaseModel, BigIntPK, utcnow

PROMOTABLE_CATEGORY = "private"
PUBLISHED_STATUS = "published"


class Construction(BaseModel, table=True):
    __tablename__ = "constructions"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
    )

    organization_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, ForeignKey("organizations.id"), nullable=True),
    )

    title: str = Field(sa_column=Column(String(500), nullable=False))

    construction_category: str = Field(
        default="public",
        sa_column=Column(String(50), nullable=False),
        description="public (government) or private (sponsored) construction"
    )

    approval_status: str = Field(
        default="draft",
        sa_column=Column(String(50), nullable=False),
    )

    impressions: int = Field(default=0)

    clicks: int = Field(default=0)

    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

    @property
    def is_promotable(self) -> bool:
        return (
            self.construction_category == PROMOTABLE_CATEGORY
            and self.approval_status == PUBLISHED_STATUS
        )
