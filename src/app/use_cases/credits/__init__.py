from .ledger import CreditLedgerStore, LedgerEntry
from .add_credits import AddCredits
from .deduct_credits import DeductCredits
from .adjust_credits import AdjustCredits
from .get_balance import GetBalance
from .verify_balance import VerifyBalance
from .list_transactions import ListTransactions
from .list_topup_history import ListTopupHistory
from .alert_settings import GetAlertSettings, UpdateAlertSettings
from .create_topup_checkout import CreateTopupCheckout, TOPUP_METADATA_TYPE
from .get_topup_packages import GetTopupPackages
from .reconcile_ledger import ReconcileLedger
from .dtos import (
    AddCreditsCommandDTO,
    AdjustCreditsCommandDTO,
    AlertSettingsDTO,
    BalanceDiscrepancyDTO,
    BalanceResponseDTO,
    BalanceVerificationDTO,
    CreditTransactionDTO,
    DeductCreditsCommandDTO,
    LedgerMutationResponseDTO,
    ReconciliationResultDTO,
    TopupCheckoutCommandDTO,
    TopupCheckoutResponseDTO,
    TopupHistoryDTO,
    TopupHistoryListResponseDTO,
    TopupPackagesResponseDTO,
    TransactionListResponseDTO,
    UnlinkedSpendDTO,
    UpdateAlertSettingsCommandDTO,
)

__all__ = [
    "CreditLedgerStore",
    "LedgerEntry",
    "AddCredits",
    "DeductCredits",
    "AdjustCredits",
    "GetBalance",
    "VerifyBalance",
    "ListTransactions",
    "ListTopupHistory",
    "GetAlertSettings",
    "UpdateAlertSettings",
    "CreateTopupCheckout",
    "TOPUP_METADATA_TYPE",
    "GetTopupPackages",
    "ReconcileLedger",
    "AddCreditsCommandDTO",
    "AdjustCreditsCommandDTO",
    "AlertSettingsDTO",
    "BalanceDiscrepancyDTO",
    "BalanceResponseDTO",
    "BalanceVerificationDTO",
    "CreditTransactionDTO",
    "DeductCreditsCommandDTO",
    "LedgerMutationResponseDTO",
    "ReconciliationResultDTO",
    "TopupCheckoutCommandDTO",
    "TopupCheckoutResponseDTO",
    "TopupHistoryDTO",
    "TopupHistoryListResponseDTO",
    "TopupPackagesResponseDTO",
    "TransactionListResponseDTO",
    "UnlinkedSpendDTO",
    "UpdateAlertSettingsCommandDTO",
]
