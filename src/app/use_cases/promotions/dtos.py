"""Data Transfer Objects for Promotion Use Cases"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from src.domain.promotion import Promotion, PromotionStatus
from src.domain.promotion_package import PromotionPackage


class PromotionDTO(BaseModel):
    id: int
    construction_id: int
    organization_id: int
    package_id: int
    status: str
    credits_spent: int
    start_date: datetime
    end_date: datetime
    auto_renew: bool
    renewal_count: int
    previous_promotion_id: Optional[int] = None
    renewed_by_promotion_id: Optional[int] = None
    impressions_gained: int = 0
    clicks_gained: int = 0
    credits_refunded: int = 0
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, promotion: Promotion) -> "PromotionDTO":
        return cls(
            id=promotion.id,
            construction_id=promotion.construction_id,
            organization_id=promotion.organization_id,
            package_id=promotion.package_id,
            status=PromotionStatus(promotion.status).value,
            credits_spent=promotion.credits_spent,
            start_date=promotion.start_date,
            end_date=promotion.end_date,
            auto_renew=promotion.auto_renew,
            renewal_count=promotion.renewal_count,
            previous_promotion_id=promotion.previous_promotion_id,
            renewed_by_promotion_id=promotion.renewed_by_promotion_id,
            impressions_gained=promotion.impressions_gained,
            clicks_gained=promotion.clicks_gained,
            credits_refunded=promotion.credits_refunded,
            cancelled_at=promotion.cancelled_at,
        )


class PromotionPackageDTO(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    badge: Optional[str] = None
    cost_in_credits: int
    duration_days: int
    auto_renewal_default: bool = False

    @classmethod
    def from_entity(cls, package: PromotionPackage) -> "PromotionPackageDTO":
        return cls(
            id=package.id,
            name=package.name,
            slug=package.slug,
            description=package.description,
            badge=package.badge,
            cost_in_credits=package.cost_in_credits,
            duration_days=package.duration_days,
            auto_renewal_default=package.auto_renewal_default,
        )


class PromotionPackagesResponseDTO(BaseModel):
    packages: List[PromotionPackageDTO]


class PurchasePromotionCommandDTO(BaseModel):
    """
    Command DTO for buying a promotion

    Used as input to PurchasePromotion use case.
    """

    construction_id: int = Field(..., description="Construction to promote")

    package_id: int = Field(..., description="Promotion package to buy")

    organization_id: int = Field(..., description="Paying organization")

    user_id: str = Field(..., description="User making the purchase")

    auto_renew: bool = Field(default=False, description="Renew automatically when the window ends")


class PurchasePromotionResponseDTO(BaseModel):
    promotion: PromotionDTO
    new_balance: int
    credits_spent: int


class CancelPromotionCommandDTO(BaseModel):
    promotion_id: int

    user_id: str

    reason: Optional[str] = Field(default=None, max_length=1000)


class CancelPromotionResponseDTO(BaseModel):
    promotion_id: int
    credits_refunded: int
    days_remaining: int
    new_balance: int
    refund_transaction_id: Optional[int] = None


class RenewalResultDTO(BaseModel):
    """Outcome of renewing one promotion"""

    promotion_id: int
    success: bool
    new_promotion_id: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class AutoRenewalBatchResultDTO(BaseModel):
    processed: int
    renewed: int
    failed: int
    results: List[RenewalResultDTO]


class ExpirationSweepResultDTO(BaseModel):
    expired: int = 0
    renewed: int = 0
    errors: List[str] = Field(default_factory=list)


class ExpirationAlertsResultDTO(BaseModel):
    candidates: int = 0
    alerts_sent: int = 0
    errors: List[str] = Field(default_factory=list)


class PromotionLifecycleResultDTO(BaseModel):
    """Combined report of one lifecycle run (sweep + reminders)"""

    expired: int
    renewed: int
    alerts_sent: int
    errors: List[str]
    run_at: datetime
    execution_time_ms: int
