"""Background workers for billing service"""
from .auto_renewal import AutoRenewalWorker
from .ledger_reconciler import LedgerReconcilerWorker
from .notification_dispatcher import NotificationDispatcherWorker
from .promotion_lifecycle import PromotionLifecycleWorker

__all__ = [
    "AutoRenewalWorker",
    "LedgerReconcilerWorker",
    "NotificationDispatcherWorker",
    "PromotionLifecycleWorker",
]
