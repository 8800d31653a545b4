"""CheckAndSendLowBalanceAlert Use Case

Emails an organization when its balance drops under its alert threshold,
at most once per cooldown window.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from libs.result import Result, Return, Error
from src.domain.base import utcnow
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import EmailMessage, NotificationSink
from src.app.repositories.organization_repository import OrganizationRepository
from src.domain.credit_policy import get_low_balance_level
from .dtos import AlertResultDTO
from .templates import low_balance_subject, render_low_balance

logger = logging.getLogger(__name__)


class CheckAndSendLowBalanceAlert:
    """
    Use Case: Low-balance alert

    Business Rules:
    1. Skipped when alerts are disabled for the organization
    2. Skipped when balance >= the organization's threshold
    3. Skipped when the previous alert is younger than the cooldown (24h)
    4. Severity: critical <= 100k, low <= 500k, moderate <= 1M, none above
    5. Recipient is the billing email, falling back to the contact email
    6. last_low_balance_alert_at is stamped only when the send succeeded
    """

    def __init__(
        self,
        uow: UnitOfWork,
        organization_repo: OrganizationRepository,
        notification_sink: NotificationSink,
        app_url: str = "",
        cooldown_hours: int = 24,
    ):
        self.uow = uow
        self.organization_repo = organization_repo
        self.notification_sink = notification_sink
        self.app_url = app_url
        self.cooldown = timedelta(hours=cooldown_hours)

    async def execute(
        self, organization_id: int, balance: int, now: Optional[datetime] = None
    ) -> Result[AlertResultDTO]:
        now = now or utcnow()

        try:
            organization = await self.organization_repo.get_by_id(organization_id)
            if not organization:
                return Return.ok(AlertResultDTO(sent=False, message="Organization not found"))

            if not organization.low_balance_alert_enabled:
                return Return.ok(AlertResultDTO(sent=False, message="Low balance alerts disabled"))

            if balance >= organization.low_balance_alert_threshold:
                return Return.ok(AlertResultDTO(sent=False, message="Balance above threshold"))

            last_alert = organization.last_low_balance_alert_at
            if last_alert and now - last_alert < self.cooldown:
                return Return.ok(AlertResultDTO(sent=False, message="Alert already sent within cooldown"))

            level = get_low_balance_level(balance)
            if not level:
                return Return.ok(AlertResultDTO(sent=False, message="Balance not low enough for alert"))

            recipient = organization.notification_email
            if not recipient:
                return Return.ok(AlertResultDTO(sent=False, level=level, message="No billing email configured"))

            sent = await self.notification_sink.send(
                EmailMessage(
                    to=recipient,
                    subject=low_balance_subject(level),
                    html=render_low_balance(
                        organization.name,
                        balance,
                        organization.low_balance_alert_threshold,
                        level,
                        self.app_url,
                    ),
                )
            )

            if not sent:
                await self.uow.rollback()
                logger.warning(f"Low balance alert for organization {organization_id} was not delivered")
                return Return.ok(AlertResultDTO(sent=False, level=level, message="Failed to send email"))

            await self.organization_repo.mark_low_balance_alert_sent(organization_id, now)
            await self.uow.commit()

            logger.info(f"Low balance alert ({level}) sent to organization {organization_id}, balance={balance}")
            return Return.ok(AlertResultDTO(sent=True, level=level))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Low balance alert failed for organization {organization_id}: {e}")
            return Return.err(
                Error(
                    code="LOW_BALANCE_ALERT_FAILED",
                    message="Failed to send low balance alert",
                    reason=str(e),
                )
            )
