"""GetBalance Use Case

Read-only query of an organization's credit balance.
"""

from libs.result import Result, Return, Error
from src.app.repositories.organization_repository import OrganizationRepository
from src.domain.credit_policy import get_low_balance_level
from .dtos import BalanceResponseDTO


class GetBalance:
    """
    Use Case: Get current credit balance for an organization

    Read-only, no locking.
    """

    def __init__(self, organization_repo: OrganizationRepository):
        self.organization_repo = organization_repo

    async def execute(self, organization_id: int) -> Result[BalanceResponseDTO]:
        try:
            organization = await self.organization_repo.get_by_id(organization_id)

            if not organization:
                return Return.err(
                    Error(
                        code="ORGANIZATION_NOT_FOUND",
                        message=f"Organization not found: {organization_id}",
                    )
                )

            return Return.ok(
                BalanceResponseDTO(
                    organization_id=organization.id,
                    credit_balance=organization.credit_balance,
                    total_credits_loaded=organization.total_credits_loaded,
                    total_credits_spent=organization.total_credits_spent,
                    low_balance_level=get_low_balance_level(organization.credit_balance),
                    last_updated=organization.updated_at,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_BALANCE_FAILED",
                    message="Failed to retrieve balance",
                    reason=str(e),
                )
            )
