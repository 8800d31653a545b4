from .check_low_balance_alert import CheckAndSendLowBalanceAlert
from .promotion_notifier import PromotionNotifier
from .dispatch_notifications import DispatchNotifications
from .dtos import AlertResultDTO, DispatchResultDTO

__all__ = [
    "CheckAndSendLowBalanceAlert",
    "PromotionNotifier",
    "DispatchNotifications",
    "AlertResultDTO",
    "DispatchResultDTO",
]
