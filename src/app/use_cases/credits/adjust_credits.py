"""AdjustCredits Use Case

Manual admin correction of a balance, in either direction.
"""

from src.domain.credit_transaction import CreditReference, ReferenceType, TransactionType
from src.domain.exceptions import InvalidAmountError
from .dtos import AdjustCreditsCommandDTO
from .ledger import LedgerEntry, LedgerMutationUseCase


class AdjustCredits(LedgerMutationUseCase):
    """
    Use Case: Admin balance adjustment

    A positive amount is recorded as an ADJUSTMENT credit, a negative amount
    as an ADJUSTMENT debit (still refused below zero). This is also the
    manual remedy for payments refunded at the provider.
    """

    FAILURE_CODE = "ADJUST_CREDITS_FAILED"
    FAILURE_MESSAGE = "Failed to adjust credits"

    async def _mutate(self, command: AdjustCreditsCommandDTO) -> LedgerEntry:
        if command.amount == 0:
            raise InvalidAmountError(command.amount)

        reference = CreditReference(type=ReferenceType.ADMIN_ADJUSTMENT)

        if command.amount > 0:
            return await self.ledger.add_credits(
                command.organization_id,
                command.amount,
                transaction_type=TransactionType.ADJUSTMENT,
                description=command.description,
                reference=reference,
                performed_by=command.performed_by,
            )

        return await self.ledger.deduct_credits(
            command.organization_id,
            -command.amount,
            transaction_type=TransactionType.ADJUSTMENT,
            description=command.description,
            reference=reference,
            performed_by=command.performed_by,
        )
