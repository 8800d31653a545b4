"""Promotion lifecycle emails

Expiration reminders and auto-renewal outcome notices. Delivery failures are
logged and reported as False, never raised.
"""

import logging
from src.app.services.notification_service import EmailMessage, NotificationSink
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.construction_repository import ConstructionRepository
from src.app.repositories.promotion_package_repository import PromotionPackageRepository
from src.domain.promotion import Promotion
from . import templates

logger = logging.getLogger(__name__)


class PromotionNotifier:

    def __init__(
        self,
        organization_repo: OrganizationRepository,
        construction_repo: ConstructionRepository,
        package_repo: PromotionPackageRepository,
        notification_sink: NotificationSink,
        app_url: str = "",
    ):
        self.organization_repo = organization_repo
        self.construction_repo = construction_repo
        self.package_repo = package_repo
        self.notification_sink = notification_sink
        self.app_url = app_url

    async def send_expiration_reminder(self, promotion: Promotion, days_remaining: int) -> bool:
        context = await self._load_context(promotion)
        if context is None:
            return False
        organization, construction = context

        return await self._send(
            promotion,
            EmailMessage(
                to=organization.notification_email,
                subject=templates.expiration_subject(days_remaining),
                html=templates.render_expiration_reminder(
                    organization.name,
                    construction.title,
                    days_remaining,
                    promotion.auto_renew,
                    promotion.end_date,
                    self.app_url,
                ),
            ),
        )

    async def send_renewal_succeeded(self, promotion: Promotion, new_balance: int) -> bool:
        context = await self._load_context(promotion)
        if context is None:
            return False
        organization, construction = context

        package = await self.package_repo.get_by_id(promotion.package_id)
        package_name = package.name if package else "Promotion Package"

        return await self._send(
            promotion,
            EmailMessage(
                to=organization.notification_email,
                subject=templates.RENEWAL_SUCCESS_SUBJECT,
                html=templates.render_renewal_success(
                    organization.name,
                    construction.title,
                    package_name,
                    promotion.credits_spent,
                    new_balance,
                    self.app_url,
                ),
            ),
        )

    async def send_renewal_failed(self, promotion: Promotion, reason: str) -> bool:
        context = await self._load_context(promotion)
        if context is None:
            return False
        organization, construction = context

        return await self._send(
            promotion,
            EmailMessage(
                to=organization.notification_email,
                subject=templates.RENEWAL_FAILED_SUBJECT,
                html=templates.render_renewal_failed(
                    organization.name,
                    construction.title,
                    reason,
                    self.app_url,
                ),
            ),
        )

    async def _load_context(self, promotion: Promotion):
        organization = await self.organization_repo.get_by_id(promotion.organization_id)
        construction = await self.construction_repo.get_by_id(promotion.construction_id)

        if not organization or not construction:
            logger.warning(f"Missing organization or construction for promotion {promotion.id}")
            return None

        if not organization.notification_email:
            logger.info(f"No billing email configured for organization {organization.id}")
            return None

        return organization, construction

    async def _send(self, promotion: Promotion, message: EmailMessage) -> bool:
        try:
            sent = await self.notification_sink.send(message)
        except Exception as e:
            logger.error(f"Failed to send '{message.subject}' for promotion {promotion.id}: {e}")
            return False

        if not sent:
            logger.warning(f"'{message.subject}' for promotion {promotion.id} was not delivered")
        return sent
