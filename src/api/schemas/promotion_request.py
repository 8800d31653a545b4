"""Request schemas for Promotion API"""

from typing import Optional
from pydantic import BaseModel, Field


class PurchasePromotionRequestSchema(BaseModel):
    construction_id: int = Field(..., gt=0)

    package_id: int = Field(..., gt=0)

    organization_id: int = Field(..., gt=0)

    user_id: str = Field(..., min_length=1)

    auto_renew: bool = Field(default=False)


class CancelPromotionRequestSchema(BaseModel):
    user_id: str = Field(..., min_length=1)

    reason: Optional[str] = Field(default=None, max_length=1000)


class AutoRenewRequestSchema(BaseModel):
    auto_renew: bool
