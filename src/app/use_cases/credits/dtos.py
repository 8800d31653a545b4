"""Data Transfer Objects for Credit Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from src.domain.credit_transaction import CreditReference, CreditTransaction, TransactionType
from src.domain.organization import Organization
from src.domain.topup_history import TopupHistory, TopupStatus


class CreditTransactionDTO(BaseModel):
    """Ledger entry as returned to callers"""

    id: int
    organization_id: int
    transaction_type: str
    amount: int = Field(..., description="Signed amount (positive = credit, negative = debit)")
    balance_before: int
    balance_after: int
    description: str
    performed_by: Optional[str] = None
    reference_type: Optional[str] = None
    promotion_id: Optional[int] = None
    topup_history_id: Optional[int] = None
    stripe_payment_intent_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, transaction: CreditTransaction) -> "CreditTransactionDTO":
        return cls(
            id=transaction.id,
            organization_id=transaction.organization_id,
            transaction_type=TransactionType(transaction.transaction_type).value,
            amount=transaction.amount,
            balance_before=transaction.balance_before,
            balance_after=transaction.balance_after,
            description=transaction.description,
            performed_by=transaction.performed_by,
            reference_type=transaction.reference_type.value if transaction.reference_type else None,
            promotion_id=transaction.promotion_id,
            topup_history_id=transaction.topup_history_id,
            stripe_payment_intent_id=transaction.stripe_payment_intent_id,
            created_at=transaction.created_at,
        )


class AddCreditsCommandDTO(BaseModel):
    """
    Command DTO for crediting an organization

    Used as input to AddCredits use case.
    """

    organization_id: int = Field(..., description="Organization identifier")

    amount: int = Field(..., description="Credits to add (must be > 0)")

    transaction_type: TransactionType = Field(
        default=TransactionType.TOPUP,
        description="topup, refund, adjustment or bonus"
    )

    description: str = Field(..., max_length=500)

    performed_by: Optional[str] = Field(default=None, description="User triggering the credit")

    reference: Optional[CreditReference] = Field(default=None)

    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Audit metadata")


class DeductCreditsCommandDTO(BaseModel):
    """
    Command DTO for debiting an organization

    Used as input to DeductCredits use case.
    """

    organization_id: int = Field(..., description="Organization identifier")

    amount: int = Field(..., description="Credits to deduct (must be > 0)")

    transaction_type: TransactionType = Field(
        default=TransactionType.PROMOTION,
        description="promotion, auto_renewal or adjustment"
    )

    description: str = Field(..., max_length=500)

    performed_by: Optional[str] = Field(default=None)

    reference: Optional[CreditReference] = Field(default=None)

    metadata: Optional[Dict[str, Any]] = Field(default=None)


class AdjustCreditsCommandDTO(BaseModel):
    """
    Command DTO for a manual admin adjustment

    A positive amount credits the organization, a negative amount debits it.
    """

    organization_id: int

    amount: int = Field(..., description="Signed adjustment, must not be zero")

    description: str = Field(..., min_length=1, max_length=500)

    performed_by: str = Field(..., description="Admin performing the adjustment")

    class Config:
        json_schema_extra = {
            "example": {
                "organization_id": 42,
                "amount": -250000,
                "description": "Manual reversal of refunded top-up pi_123",
                "performed_by": "admin@example.com",
            }
        }


class LedgerMutationResponseDTO(BaseModel):
    new_balance: int
    transaction: CreditTransactionDTO


class BalanceResponseDTO(BaseModel):
    """
    Response DTO for balance query
    """

    organization_id: int
    credit_balance: int
    total_credits_loaded: int
    total_credits_spent: int
    low_balance_level: Optional[str] = Field(
        default=None,
        description="critical, low, moderate or None"
    )
    last_updated: datetime


class BalanceVerificationDTO(BaseModel):
    """Stored balance compared with the signed sum of the organization's transactions"""

    organization_id: int
    is_valid: bool
    stored_balance: int
    calculated_balance: int
    difference: int = Field(..., description="stored_balance - calculated_balance")


class TransactionListResponseDTO(BaseModel):
    transactions: List[CreditTransactionDTO]
    total: int
    limit: int
    offset: int


class TopupCheckoutCommandDTO(BaseModel):
    """
    Command DTO for starting a credit top-up checkout
    """

    organization_id: int

    user_id: str

    amount: int = Field(..., description="Amount to pay in VND")

    success_url: str

    cancel_url: str


class TopupCheckoutResponseDTO(BaseModel):
    topup_history_id: int
    checkout_session_id: str
    checkout_url: Optional[str] = None
    amount: int
    bonus_credits: int
    bonus_percentage: int
    total_credits: int


class TopupPackageDTO(BaseModel):
    amount: int
    bonus_credits: int
    bonus_percentage: int
    total_credits: int


class TopupPackagesResponseDTO(BaseModel):
    packages: List[TopupPackageDTO]
    min_amount: int
    max_amount: int


class BalanceDiscrepancyDTO(BaseModel):
    """
    Single organization whose stored balance differs from its transaction sum
    """

    organization_id: int
    stored_balance: int
    calculated_balance: int
    discrepancy: int = Field(..., description="stored_balance - calculated_balance")


class UnlinkedSpendDTO(BaseModel):
    """Promotion debit that never got linked to a promotion"""

    transaction_id: int
    organization_id: int
    transaction_type: str
    amount: int
    created_at: datetime


class ReconciliationResultDTO(BaseModel):
    """
    Response DTO for ledger reconciliation
    """

    total_organizations_checked: int
    discrepancies_found: int
    discrepancies: List[BalanceDiscrepancyDTO]
    unlinked_spends: List[UnlinkedSpendDTO] = Field(default_factory=list)
    reconciliation_time: datetime
    execution_time_ms: int


class TopupHistoryDTO(BaseModel):
    id: int
    organization_id: int
    user_id: Optional[str] = None
    amount_paid: int
    bonus_credits: int
    bonus_percentage: int
    credits_received: int
    status: str
    stripe_payment_intent_id: Optional[str] = None
    credit_transaction_id: Optional[int] = None
    failure_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, topup: TopupHistory) -> "TopupHistoryDTO":
        return cls(
            id=topup.id,
            organization_id=topup.organization_id,
            user_id=topup.user_id,
            amount_paid=topup.amount_paid,
            bonus_credits=topup.bonus_credits,
            bonus_percentage=topup.bonus_percentage,
            credits_received=topup.credits_received,
            status=TopupStatus(topup.status).value,
            stripe_payment_intent_id=topup.stripe_payment_intent_id,
            credit_transaction_id=topup.credit_transaction_id,
            failure_reason=topup.failure_reason,
            refunded_at=topup.refunded_at,
            created_at=topup.created_at,
        )


class TopupHistoryListResponseDTO(BaseModel):
    topups: List[TopupHistoryDTO]
    total: int
    limit: int
    offset: int


class AlertSettingsDTO(BaseModel):
    """
    Low-balance alert preferences of an organization

    billing_email falls back to the contact email when no billing address is set.
    """

    organization_id: int
    low_balance_alert_enabled: bool
    low_balance_alert_threshold: int
    billing_email: Optional[str] = None

    @classmethod
    def from_entity(cls, organization: Organization) -> "AlertSettingsDTO":
        return cls(
            organization_id=organization.id,
            low_balance_alert_enabled=organization.low_balance_alert_enabled,
            low_balance_alert_threshold=organization.low_balance_alert_threshold,
            billing_email=organization.notification_email,
        )


class UpdateAlertSettingsCommandDTO(BaseModel):
    """Partial update; fields left as None keep their stored value"""

    organization_id: int

    low_balance_alert_enabled: Optional[bool] = None

    low_balance_alert_threshold: Optional[int] = Field(default=None, description="Credits, must be >= 0")

    billing_email: Optional[str] = None

    def has_updates(self) -> bool:
        return any(
            value is not None
            for value in (
                self.low_balance_alert_enabled,
                self.low_balance_alert_threshold,
                self.billing_email,
            )
        )
