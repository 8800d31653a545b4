from .organization_repository import SqlAlchemyOrganizationRepository
from .credit_transaction_repository import SqlAlchemyCreditTransactionRepository
from .promotion_repository import SqlAlchemyPromotionRepository
from .promotion_package_repository import SqlAlchemyPromotionPackageRepository
from .construction_repository import SqlAlchemyConstructionRepository
from .topup_history_repository import SqlAlchemyTopupHistoryRepository
from .notification_repository import SqlAlchemyNotificationRepository

__all__ = [
    "SqlAlchemyOrganizationRepository",
    "SqlAlchemyCreditTransactionRepository",
    "SqlAlchemyPromotionRepository",
    "SqlAlchemyPromotionPackageRepository",
    "SqlAlchemyConstructionRepository",
    "SqlAlchemyTopupHistoryRepository",
    "SqlAlchemyNotificationRepository",
]
