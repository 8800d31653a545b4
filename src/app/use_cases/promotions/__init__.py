from .purchase_promotion import PurchasePromotion
from .cancel_promotion import CancelPromotion
from .update_auto_renewal import UpdateAutoRenewal
from .process_auto_renewal import ProcessAutoRenewal
from .process_all_auto_renewals import ProcessAllAutoRenewals
from .process_expired_promotions import ProcessExpiredPromotions
from .send_expiration_alerts import SendExpirationAlerts
from .run_promotion_lifecycle import RunPromotionLifecycle
from .get_promotion_packages import GetPromotionPackages
from .dtos import (
    AutoRenewalBatchResultDTO,
    CancelPromotionCommandDTO,
    CancelPromotionResponseDTO,
    ExpirationAlertsResultDTO,
    ExpirationSweepResultDTO,
    PromotionDTO,
    PromotionLifecycleResultDTO,
    PromotionPackageDTO,
    PromotionPackagesResponseDTO,
    PurchasePromotionCommandDTO,
    PurchasePromotionResponseDTO,
    RenewalResultDTO,
)

__all__ = [
    "PurchasePromotion",
    "CancelPromotion",
    "UpdateAutoRenewal",
    "ProcessAutoRenewal",
    "ProcessAllAutoRenewals",
    "ProcessExpiredPromotions",
    "SendExpirationAlerts",
    "RunPromotionLifecycle",
    "GetPromotionPackages",
    "AutoRenewalBatchResultDTO",
    "CancelPromotionCommandDTO",
    "CancelPromotionResponseDTO",
    "ExpirationAlertsResultDTO",
    "ExpirationSweepResultDTO",
    "PromotionDTO",
    "PromotionLifecycleResultDTO",
    "PromotionPackageDTO",
    "PromotionPackagesResponseDTO",
    "PurchasePromotionCommandDTO",
    "PurchasePromotionResponseDTO",
    "RenewalResultDTO",
]
