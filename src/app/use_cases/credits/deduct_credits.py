"""DeductCredits Use Case

Debits an organization's balance as a stand-alone unit of work.
"""

from .dtos import DeductCreditsCommandDTO
from .ledger import LedgerEntry, LedgerMutationUseCase


class DeductCredits(LedgerMutationUseCase):
    """
    Use Case: Deduct credits from an organization

    Business Rules:
    1. amount > 0 (INVALID_AMOUNT otherwise)
    2. balance >= amount (INSUFFICIENT_CREDITS otherwise, balance untouched)
    3. Grows total_credits_spent
    4. Retried on BALANCE_CONFLICT, up to MAX_ATTEMPTS
    """

    FAILURE_CODE = "DEDUCT_CREDITS_FAILED"
    FAILURE_MESSAGE = "Failed to deduct credits"

    async def _mutate(self, command: DeductCreditsCommandDTO) -> LedgerEntry:
        return await self.ledger.deduct_credits(
            command.organization_id,
            command.amount,
            transaction_type=command.transaction_type,
            description=command.description,
            reference=command.reference,
            performed_by=command.performed_by,
            metadata=command.metadata,
        )
