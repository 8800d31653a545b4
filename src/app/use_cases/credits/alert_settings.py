"""Low-balance alert settings

GetAlertSettings reads an organization's alert preferences,
UpdateAlertSettings applies a partial change to them.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.organization_repository import OrganizationRepository
from src.domain.exceptions import BillingError, OrganizationNotFoundError
from .dtos import AlertSettingsDTO, UpdateAlertSettingsCommandDTO

logger = logging.getLogger(__name__)


class GetAlertSettings:

    def __init__(self, organization_repo: OrganizationRepository):
        self.organization_repo = organization_repo

    async def execute(self, organization_id: int) -> Result[AlertSettingsDTO]:
        try:
            organization = await self.organization_repo.get_by_id(organization_id)
            if not organization:
                return Return.err(OrganizationNotFoundError(organization_id).to_error())

            return Return.ok(AlertSettingsDTO.from_entity(organization))

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_ALERT_SETTINGS_FAILED",
                    message="Failed to load alert settings",
                    reason=str(e),
                )
            )


class UpdateAlertSettings:
    """
    Use Case: Change low-balance alert preferences

    Rules:
    - At least one of enabled, threshold or billing email must be given
    - The threshold cannot be negative
    - Changing the threshold does not reset the last alert timestamp
    """

    def __init__(self, uow: UnitOfWork, organization_repo: OrganizationRepository):
        self.uow = uow
        self.organization_repo = organization_repo

    async def execute(self, command: UpdateAlertSettingsCommandDTO) -> Result[AlertSettingsDTO]:
        if not command.has_updates():
            return Return.err(Error(code="VALIDATION_ERROR", message="No valid updates provided"))

        threshold = command.low_balance_alert_threshold
        if threshold is not None and threshold < 0:
            return Return.err(
                Error(code="VALIDATION_ERROR", message="Alert threshold must be >= 0")
            )

        try:
            organization = await self.organization_repo.update_alert_settings(
                command.organization_id,
                enabled=command.low_balance_alert_enabled,
                threshold=threshold,
                billing_email=command.billing_email,
            )
            if not organization:
                raise OrganizationNotFoundError(command.organization_id)

            await self.uow.commit()
            logger.info(f"Updated alert settings for organization {command.organization_id}")

            return Return.ok(AlertSettingsDTO.from_entity(organization))

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="UPDATE_ALERT_SETTINGS_FAILED",
                    message="Failed to update alert settings",
                    reason=str(e),
                )
            )
