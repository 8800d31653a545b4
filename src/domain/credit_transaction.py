"""Credit Transaction Domain Entity

Immutable append-only audit trail of all credit mutations.
Each transaction records balance changes with complete context.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel as PydanticBaseModel
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, BigInteger, DateTime, String, Text
from src.domain.base import BaseModel, BigIntPK, utcnow


class TransactionType(str, Enum):
    """Credit transaction types"""
    TOPUP = "topup"                # Credits purchased through checkout
    REFUND = "refund"              # Prorated refund of a cancelled promotion
    ADJUSTMENT = "adjustment"      # Manual admin adjustment (either sign)
    BONUS = "bonus"                # Promotional credits granted
    PROMOTION = "promotion"        # Promotion purchase
    AUTO_RENEWAL = "auto_renewal"  # Automatic promotion renewal


CREDIT_TYPES = frozenset({
    TransactionType.TOPUP,
    TransactionType.REFUND,
    TransactionType.ADJUSTMENT,
    TransactionType.BONUS,
})

DEBIT_TYPES = frozenset({
    TransactionType.PROMOTION,
    TransactionType.AUTO_RENEWAL,
    TransactionType.ADJUSTMENT,
})

SPEND_TYPES = frozenset({TransactionType.PROMOTION, TransactionType.AUTO_RENEWAL})


class ReferenceType(str, Enum):
    """What a transaction points at"""
    STRIPE_PAYMENT = "stripe_payment"
    PROMOTION = "promotion"
    ADMIN_ADJUSTMENT = "admin_adjustment"
    AUTO_RENEWAL = "auto_renewal"


class CreditReference(PydanticBaseModel):
    """Tagged reference carried by a credit transaction"""

    type: ReferenceType
    stripe_payment_intent_id: Optional[str] = None
    stripe_checkout_session_id: Optional[str] = None
    topup_history_id: Optional[int] = None
    promotion_id: Optional[int] = None


class CreditTransaction(BaseModel, table=True):
    """
    Credit Transaction - Immutable audit trail of credit mutations

    Domain Rules:
    - Transactions are immutable (append-only)
    - amount is signed: positive = credit, negative = debit
    - balance_before / balance_after are snapshots taken at write time
    - The only permitted update is back-filling promotion_id once the
      promotion funded by the transaction exists
    """

    __tablename__ = "credit_transactions"
    __table_args__ = (
        Index("ix_credit_transactions_created_at", "created_at"),
        Index("ix_credit_transactions_reference", "reference_type", "promotion_id"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique transaction identifier (auto-increment)"
    )

    organization_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True),
        description="Foreign key to Organization"
    )

    transaction_type: TransactionType = Field(
        description="Type of transaction"
    )

    amount: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Signed credit amount (positive = credit, negative = debit)"
    )

    balance_before: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Balance before the transaction"
    )

    balance_after: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Balance after the transaction"
    )

    description: str = Field(
        sa_column=Column(String(500), nullable=False),
        description="Human readable description"
    )

    performed_by: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="User who triggered the transaction (None for system jobs)"
    )

    reference_type: Optional[ReferenceType] = Field(
        default=None,
        description="Kind of entity referenced by this transaction"
    )

    stripe_payment_intent_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    stripe_checkout_session_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    topup_history_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True),
    )

    promotion_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True),
        description="Promotion funded or refunded by this transaction"
    )

    metadata_json: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="JSON metadata for additional context"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Transaction timestamp (immutable)"
    )

    def apply_reference(self, reference: Optional[CreditReference]) -> None:
        if reference is None:
            return
        self.reference_type = reference.type
        self.stripe_payment_intent_id = reference.stripe_payment_intent_id
        self.stripe_checkout_session_id = reference.stripe_checkout_session_id
        self.topup_history_id = reference.topup_history_id
        self.promotion_id = reference.promotion_id

    @property
    def reference(self) -> Optional[CreditReference]:
        if self.reference_type is None:
            return None
        return CreditReference(
            type=self.reference_type,
            stripe_payment_intent_id=self.stripe_payment_intent_id,
            stripe_checkout_session_id=self.stripe_checkout_session_id,
            topup_history_id=self.topup_history_id,
            promotion_id=self.promotion_id,
        )

    @property
    def extra(self) -> Dict[str, Any]:
        if not self.metadata_json:
            return {}
        return json.loads(self.metadata_json)
