"""Unit tests for CreateTopupCheckout use case"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.services.payment_gateway import CheckoutSession
from src.app.use_cases.credits import CreateTopupCheckout, TopupCheckoutCommandDTO
from src.app.use_cases.credits.create_topup_checkout import with_session_placeholder
from src.domain.organization import Organization
from src.domain.topup_history import TopupStatus


def assign_topup_id(topup):
    topup.id = 77
    return topup


@pytest.fixture
def organization():
    return Organization(
        id=42, name="Acme Builders", billing_email="billing@acme.test", stripe_customer_id="cus_existing"
    )


@pytest.fixture
def mock_organization_repo(organization):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=organization)
    repo.set_stripe_customer_id = AsyncMock()
    return repo


@pytest.fixture
def mock_topup_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=assign_topup_id)
    repo.save = AsyncMock(side_effect=lambda topup: topup)
    return repo


@pytest.fixture
def mock_gateway():
    gateway = MagicMock()
    gateway.create_customer = AsyncMock(return_value="cus_new")
    gateway.create_checkout_session = AsyncMock(
        return_value=CheckoutSession(id="cs_test_1", url="https://checkout.test/cs_test_1")
    )
    return gateway


@pytest.fixture
def use_case(mock_uow, mock_organization_repo, mock_topup_repo, mock_gateway):
    return CreateTopupCheckout(mock_uow, mock_organization_repo, mock_topup_repo, mock_gateway)


def command(amount: int) -> TopupCheckoutCommandDTO:
    return TopupCheckoutCommandDTO(
        organization_id=42,
        user_id="user_1",
        amount=amount,
        success_url="https://app.test/credits/success",
        cancel_url="https://app.test/credits",
    )


@pytest.mark.asyncio
class TestCreateTopupCheckout:

    async def test_checkout_with_bonus(self, use_case, mock_gateway, mock_topup_repo, mock_uow):
        """
        Given: A 3,000,000 VND top-up for an organization with a provider customer
        When: The checkout is created
        Then: 15% bonus, pending top-up, and metadata for the completion webhook
        """
        # Act
        result = await use_case.execute(command(3_000_000))

        # Assert
        assert result.is_ok()
        response = result.value
        assert response.topup_history_id == 77
        assert response.checkout_session_id == "cs_test_1"
        assert response.checkout_url == "https://checkout.test/cs_test_1"
        assert response.bonus_credits == 450_000
        assert response.bonus_percentage == 15
        assert response.total_credits == 3_450_000

        topup = mock_topup_repo.create.await_args.args[0]
        assert topup.status == TopupStatus.PENDING
        assert topup.amount_paid == 3_000_000
        assert topup.credits_received == 3_450_000
        assert topup.stripe_checkout_session_id == "cs_test_1"

        request = mock_gateway.create_checkout_session.await_args.args[0]
        assert request.customer_id == "cus_existing"
        assert request.line_item.unit_amount == 3_000_000
        assert request.metadata == {
            "organizationId": "42",
            "userId": "user_1",
            "topupHistoryId": "77",
            "creditsToAdd": "3450000",
            "bonusCredits": "450000",
            "bonusPercentage": "15",
            "type": "credit_topup",
        }
        assert request.success_url == "https://app.test/credits/success?session_id={CHECKOUT_SESSION_ID}"
        assert request.expires_in_seconds == 1800

        mock_gateway.create_customer.assert_not_called()
        mock_uow.commit.assert_awaited_once()

    async def test_creates_customer_once(
        self, use_case, organization, mock_gateway, mock_organization_repo, mock_uow
    ):
        # Arrange
        organization.stripe_customer_id = None

        # Act
        result = await use_case.execute(command(500_000))

        # Assert
        assert result.is_ok()
        mock_gateway.create_customer.assert_awaited_once_with(
            email="billing@acme.test", name="Acme Builders", metadata={"organizationId": "42"}
        )
        mock_organization_repo.set_stripe_customer_id.assert_awaited_once_with(42, "cus_new")
        assert mock_gateway.create_checkout_session.await_args.args[0].customer_id == "cus_new"
        assert mock_uow.commit.await_count == 2

    async def test_no_bonus_under_one_million(self, use_case):
        # Act
        result = await use_case.execute(command(999_999))

        # Assert
        assert result.value.bonus_credits == 0
        assert result.value.bonus_percentage == 0
        assert result.value.total_credits == 999_999

    @pytest.mark.parametrize("amount", [99_999, 10_000_001])
    async def test_out_of_range_amount(self, use_case, mock_gateway, amount):
        # Act
        result = await use_case.execute(command(amount))

        # Assert
        assert result.is_err()
        assert result.error.code == "INVALID_TOPUP_AMOUNT"
        mock_gateway.create_checkout_session.assert_not_called()

    async def test_unknown_organization(self, use_case, mock_organization_repo):
        # Arrange
        mock_organization_repo.get_by_id = AsyncMock(return_value=None)

        # Act
        result = await use_case.execute(command(500_000))

        # Assert
        assert result.error.code == "ORGANIZATION_NOT_FOUND"

    async def test_provider_failure_rolls_back(self, use_case, mock_gateway, mock_uow):
        # Arrange
        mock_gateway.create_checkout_session = AsyncMock(side_effect=RuntimeError("stripe down"))

        # Act
        result = await use_case.execute(command(500_000))

        # Assert
        assert result.is_err()
        assert result.error.code == "CHECKOUT_FAILED"
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_not_called()


class TestSuccessUrlPlaceholder:

    def test_appends_query(self):
        # Act & Assert
        assert with_session_placeholder("https://a.test/ok") == "https://a.test/ok?session_id={CHECKOUT_SESSION_ID}"

    def test_extends_existing_query(self):
        # Act & Assert
        assert (
            with_session_placeholder("https://a.test/ok?tab=credits")
            == "https://a.test/ok?tab=credits&session_id={CHECKOUT_SESSION_ID}"
        )
