from .base import BaseModel
from .organization import Organization
from .credit_transaction import CreditTransaction, TransactionType, ReferenceType, CreditReference
from .construction import Construction
from .promotion_package import PromotionPackage
from .promotion import Promotion, PromotionStatus
from .topup_history import TopupHistory, TopupStatus
from .notification import Notification, NotificationStatus

__all__ = [
    "BaseModel",
    "Organization",
    "CreditTransaction",
    "TransactionType",
    "ReferenceType",
    "CreditReference",
    "Construction",
    "PromotionPackage",
    "Promotion",
    "PromotionStatus",
    "TopupHistory",
    "TopupStatus",
    "Notification",
    "NotificationStatus",
]
