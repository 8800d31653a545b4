"""ListTransactions Use Case

Paginated transaction history of an organization, newest first.
"""

from libs.result import Result, Return, Error
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from .dtos import CreditTransactionDTO, TransactionListResponseDTO

MAX_PAGE_SIZE = 100


class ListTransactions:
    def __init__(
        self,
        organization_repo: OrganizationRepository,
        transaction_repo: CreditTransactionRepository,
    ):
        self.organization_repo = organization_repo
        self.transaction_repo = transaction_repo

    async def execute(
        self, organization_id: int, limit: int = 20, offset: int = 0
    ) -> Result[TransactionListResponseDTO]:
        if limit < 1 or limit > MAX_PAGE_SIZE or offset < 0:
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message=f"limit must be between 1 and {MAX_PAGE_SIZE}, offset must be >= 0",
                )
            )

        try:
            organization = await self.organization_repo.get_by_id(organization_id)
            if not organization:
                return Return.err(
                    Error(
                        code="ORGANIZATION_NOT_FOUND",
                        message=f"Organization not found: {organization_id}",
                    )
                )

            transactions, total = await self.transaction_repo.get_by_organization(
                organization_id, limit=limit, offset=offset
            )

            return Return.ok(
                TransactionListResponseDTO(
                    transactions=[CreditTransactionDTO.from_entity(t) for t in transactions],
                    total=total,
                    limit=limit,
                    offset=offset,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_TRANSACTIONS_FAILED",
                    message="Failed to list transactions",
                    reason=str(e),
                )
            )
