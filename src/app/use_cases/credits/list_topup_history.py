"""ListTopupHistory Use Case

Paginated checkout attempts of an organization, newest first, optionally
filtered by status.
"""

from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.topup_history_repository import TopupHistoryRepository
from src.domain.topup_history import TopupStatus
from .dtos import TopupHistoryDTO, TopupHistoryListResponseDTO
from .list_transactions import MAX_PAGE_SIZE


class ListTopupHistory:
    def __init__(
        self,
        organization_repo: OrganizationRepository,
        topup_repo: TopupHistoryRepository,
    ):
        self.organization_repo = organization_repo
        self.topup_repo = topup_repo

    async def execute(
        self,
        organization_id: int,
        limit: int = 20,
        offset: int = 0,
        status: Optional[TopupStatus] = None,
    ) -> Result[TopupHistoryListResponseDTO]:
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

            topups, total = await self.topup_repo.get_by_organization(
                organization_id, limit=limit, offset=offset, status=status
            )

            return Return.ok(
                TopupHistoryListResponseDTO(
                    topups=[TopupHistoryDTO.from_entity(t) for t in topups],
                    total=total,
                    limit=limit,
                    offset=offset,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_TOPUPS_FAILED",
                    message="Failed to list top-up history",
                    reason=str(e),
                )
            )
