from .organization_repository import OrganizationRepository
from .credit_transaction_repository import CreditTransactionRepository
from .promotion_repository import PromotionRepository
from .promotion_package_repository import PromotionPackageRepository
from .construction_repository import ConstructionRepository
from .topup_history_repository import TopupHistoryRepository
from .notification_repository import NotificationRepository

__all__ = [
    "OrganizationRepository",
    "CreditTransactionRepository",
    "PromotionRepository",
    "PromotionPackageRepository",
    "ConstructionRepository",
    "TopupHistoryRepository",
    "NotificationRepository",
]
