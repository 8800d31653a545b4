"""CreateTopupCheckout Use Case

Starts a hosted checkout for buying credits. Credits are only granted later,
when the payment provider reports the session as completed.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_gateway import CheckoutLineItem, CheckoutSessionRequest, PaymentGateway
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.topup_history_repository import TopupHistoryRepository
from src.domain.credit_policy import MAX_TOPUP, MIN_TOPUP, calculate_bonus, validate_topup_amount
from src.domain.exceptions import BillingError, InvalidTopupAmountError, OrganizationNotFoundError
from src.domain.topup_history import TopupHistory
from .dtos import TopupCheckoutCommandDTO, TopupCheckoutResponseDTO

logger = logging.getLogger(__name__)

TOPUP_METADATA_TYPE = "credit_topup"


def with_session_placeholder(success_url: str) -> str:
    separator = "&" if "?" in success_url else "?"
    return f"{success_url}{separator}session_id={{CHECKOUT_SESSION_ID}}"


class CreateTopupCheckout:
    """
    Use Case: Create a credit top-up checkout session

    Business Rules:
    1. amount is an integer within [min_topup, max_topup]
    2. The provider customer is created once per organization and remembered
    3. Bonus credits follow the tier table (highest threshold first)
    4. A PENDING TopupHistory is created before the checkout session
    5. Session metadata carries everything the completion webhook needs

    Flow:
    1. Validate amount
    2. Resolve or create provider customer (committed on its own)
    3. Compute bonus and create pending top-up
    4. Create checkout session and store its id
    5. Commit and return checkout URL with bonus breakdown
    """

    def __init__(
        self,
        uow: UnitOfWork,
        organization_repo: OrganizationRepository,
        topup_repo: TopupHistoryRepository,
        payment_gateway: PaymentGateway,
        min_topup: int = MIN_TOPUP,
        max_topup: int = MAX_TOPUP,
        expires_in_seconds: int = 1800,
    ):
        self.uow = uow
        self.organization_repo = organization_repo
        self.topup_repo = topup_repo
        self.payment_gateway = payment_gateway
        self.min_topup = min_topup
        self.max_topup = max_topup
        self.expires_in_seconds = expires_in_seconds

    async def execute(self, command: TopupCheckoutCommandDTO) -> Result[TopupCheckoutResponseDTO]:
        try:
            # Step 1: Validate amount
            error = validate_topup_amount(command.amount, self.min_topup, self.max_topup)
            if error:
                raise InvalidTopupAmountError(error, reason=f"amount={command.amount}")

            organization = await self.organization_repo.get_by_id(command.organization_id)
            if not organization:
                raise OrganizationNotFoundError(command.organization_id)

            # Step 2: Resolve provider customer
            customer_id = organization.stripe_customer_id
            if not customer_id:
                customer_id = await self.payment_gateway.create_customer(
                    email=organization.notification_email,
                    name=organization.name,
                    metadata={"organizationId": str(organization.id)},
                )
                await self.organization_repo.set_stripe_customer_id(organization.id, customer_id)
                await self.uow.commit()
                logger.info(f"Created payment customer {customer_id} for organization {organization.id}")

            # Step 3: Bonus and pending top-up
            bonus, percentage = calculate_bonus(command.amount)
            total_credits = command.amount + bonus

            topup = await self.topup_repo.create(
                TopupHistory(
                    organization_id=command.organization_id,
                    user_id=command.user_id,
                    amount_paid=command.amount,
                    credits_received=total_credits,
                    bonus_credits=bonus,
                    bonus_percentage=percentage,
                )
            )

            # Step 4: Checkout session
            if bonus > 0:
                description = f"{command.amount:,} VND + {bonus:,} VND bonus ({percentage}%)"
            else:
                description = f"{command.amount:,} VND credits"

            session = await self.payment_gateway.create_checkout_session(
                CheckoutSessionRequest(
                    customer_id=customer_id,
                    line_item=CheckoutLineItem(description=description, unit_amount=command.amount),
                    metadata={
                        "organizationId": str(command.organization_id),
                        "userId": str(command.user_id),
                        "topupHistoryId": str(topup.id),
                        "creditsToAdd": str(total_credits),
                        "bonusCredits": str(bonus),
                        "bonusPercentage": str(percentage),
                        "type": TOPUP_METADATA_TYPE,
                    },
                    success_url=with_session_placeholder(command.success_url),
                    cancel_url=command.cancel_url,
                    expires_in_seconds=self.expires_in_seconds,
                )
            )

            topup.stripe_checkout_session_id = session.id
            await self.topup_repo.save(topup)

            # Step 5: Commit
            await self.uow.commit()

            logger.info(
                f"Checkout {session.id} created for organization {command.organization_id}: "
                f"{command.amount} + {bonus} bonus (topup {topup.id})"
            )

            return Return.ok(
                TopupCheckoutResponseDTO(
                    topup_history_id=topup.id,
                    checkout_session_id=session.id,
                    checkout_url=session.url,
                    amount=command.amount,
                    bonus_credits=bonus,
                    bonus_percentage=percentage,
                    total_credits=total_credits,
                )
            )

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to create top-up checkout for organization {command.organization_id}: {e}")
            return Return.err(
                Error(
                    code="CHECKOUT_FAILED",
                    message="Failed to create checkout session",
                    reason=str(e),
                )
            )
