"""AddCredits Use Case

Credits an organization's balance as a stand-alone unit of work.
"""

from .dtos import AddCreditsCommandDTO
from .ledger import LedgerEntry, LedgerMutationUseCase


class AddCredits(LedgerMutationUseCase):
    """
    Use Case: Add credits to an organization

    Business Rules:
    1. amount > 0 (INVALID_AMOUNT otherwise)
    2. Only credit transaction types are accepted
    3. Topups also grow total_credits_loaded
    4. Retried on BALANCE_CONFLICT, up to MAX_ATTEMPTS
    """

    FAILURE_CODE = "ADD_CREDITS_FAILED"
    FAILURE_MESSAGE = "Failed to add credits"

    async def _mutate(self, command: AddCreditsCommandDTO) -> LedgerEntry:
        return await self.ledger.add_credits(
            command.organization_id,
            command.amount,
            transaction_type=command.transaction_type,
            description=command.description,
            reference=command.reference,
            performed_by=command.performed_by,
            metadata=command.metadata,
        )
