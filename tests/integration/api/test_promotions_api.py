"""Integration tests for Promotion API endpoints"""

import pytest
from datetime import timedelta
from sqlmodel import select

from src.domain.base import utcnow
from src.adapter.repositories import (
    SqlAlchemyConstructionRepository,
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemyOrganizationRepository,
    SqlAlchemyPromotionPackageRepository,
    SqlAlchemyPromotionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.promotions import PurchasePromotion, PurchasePromotionCommandDTO
from src.app.use_cases.credits.ledger import CreditLedgerStore
from src.domain.credit_transaction import CreditTransaction, TransactionType
from src.domain.notification import Notification
from src.domain.promotion import Promotion, PromotionStatus
from src.domain.promotion_package import PromotionPackage


async def fund(db_session, organization_id: int, amount: int):
    ledger = CreditLedgerStore(
        SqlAlchemyOrganizationRepository(db_session),
        SqlAlchemyCreditTransactionRepository(db_session),
    )
    await ledger.add_credits(organization_id, amount, transaction_type=TransactionType.TOPUP, description="Seed")
    await db_session.commit()


async def current_balance(db_session, organization_id: int) -> int:
    organization = await SqlAlchemyOrganizationRepository(db_session).get_by_id(organization_id, for_update=True)
    return organization.credit_balance


async def load_promotion(db_session, promotion_id: int) -> Promotion:
    result = await db_session.execute(
        select(Promotion).where(Promotion.id == promotion_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


class StaleActiveCheckRepository(SqlAlchemyPromotionRepository):
    """Sees no active promotion, as a purchase that checked before a concurrent one committed"""

    async def get_active_by_construction(self, construction_id):
        return None


def purchase_body(organization_id, construction_id, package_id, auto_renew=False):
    return {
        "organization_id": organization_id,
        "construction_id": construction_id,
        "package_id": package_id,
        "user_id": "user_1",
        "auto_renew": auto_renew,
    }


@pytest.mark.asyncio
class TestPurchasePromotionAPI:

    async def test_purchase_debits_and_links_transaction(
        self, client, db_session, organization, construction, package
    ):
        """
        Given: Balance 1,000,000 and a 300,000 package
        When: POST /api/promotions
        Then: 201, balance 700,000, the debit is linked to the new promotion
        """
        # Arrange
        organization_id, construction_id, package_id = organization.id, construction.id, package.id
        await fund(db_session, organization_id, 1_000_000)

        # Act
        response = await client.post(
            "/api/promotions", json=purchase_body(organization_id, construction_id, package_id)
        )

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["new_balance"] == 700_000
        assert data["credits_spent"] == 300_000
        promotion_id = data["promotion"]["id"]
        assert data["promotion"]["status"] == "active"

        promotion = await load_promotion(db_session, promotion_id)
        assert promotion.end_date - promotion.start_date == timedelta(days=30)
        assert promotion.impressions_at_start == 120

        debit = (await db_session.execute(
            select(CreditTransaction).where(CreditTransaction.id == promotion.credit_transaction_id)
        )).scalar_one()
        assert debit.transaction_type == TransactionType.PROMOTION
        assert debit.amount == -300_000
        assert debit.promotion_id == promotion_id

        assert await current_balance(db_session, organization_id) == 700_000

    async def test_purchase_into_low_balance_queues_alert(
        self, client, db_session, organization, construction, package
    ):
        """
        Given: Balance 400,000
        When: A 300,000 promotion is bought
        Then: A critical low balance notification is queued for the billing email
        """
        # Arrange
        organization_id = organization.id
        await fund(db_session, organization_id, 400_000)

        # Act
        response = await client.post(
            "/api/promotions", json=purchase_body(organization_id, construction.id, package.id)
        )

        # Assert
        assert response.status_code == 201
        notifications = (await db_session.execute(select(Notification))).scalars().all()
        assert len(notifications) == 1
        assert notifications[0].recipient == "billing@acme.vn"

    async def test_insufficient_credits_returns_402(
        self, client, db_session, organization, construction, package
    ):
        # Arrange
        organization_id, construction_id, package_id = organization.id, construction.id, package.id
        await fund(db_session, organization_id, 120_000)

        # Act
        response = await client.post(
            "/api/promotions", json=purchase_body(organization_id, construction_id, package_id)
        )

        # Assert
        assert response.status_code == 402
        assert response.json()["error"]["code"] == "INSUFFICIENT_CREDITS"
        promotions = (await db_session.execute(select(Promotion))).scalars().all()
        assert promotions == []
        assert await current_balance(db_session, organization_id) == 120_000

    async def test_second_purchase_for_same_construction_returns_409(
        self, client, db_session, organization, construction, package
    ):
        # Arrange
        organization_id, construction_id, package_id = organization.id, construction.id, package.id
        await fund(db_session, organization_id, 1_000_000)
        body = purchase_body(organization_id, construction_id, package_id)

        # Act
        first = await client.post("/api/promotions", json=body)
        second = await client.post("/api/promotions", json=body)

        # Assert
        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "ALREADY_PROMOTED"
        assert await current_balance(db_session, organization_id) == 700_000

    async def test_purchase_racing_a_committed_promotion_is_refused(
        self, client, db_session, organization, construction, package
    ):
        """
        Given: A promotion bought through the API
        When: A second purchase passes its active check before that commit was visible
        Then: The insert is refused with ALREADY_PROMOTED and its debit is rolled back
        """
        # Arrange
        organization_id, construction_id, package_id = organization.id, construction.id, package.id
        await fund(db_session, organization_id, 1_000_000)
        first = await client.post("/api/promotions", json=purchase_body(organization_id, construction_id, package_id))
        use_case = PurchasePromotion(
            uow=SqlAlchemyUnitOfWork(db_session),
            organization_repo=SqlAlchemyOrganizationRepository(db_session),
            transaction_repo=SqlAlchemyCreditTransactionRepository(db_session),
            promotion_repo=StaleActiveCheckRepository(db_session),
            package_repo=SqlAlchemyPromotionPackageRepository(db_session),
            construction_repo=SqlAlchemyConstructionRepository(db_session),
        )

        # Act
        result = await use_case.execute(
            PurchasePromotionCommandDTO(**purchase_body(organization_id, construction_id, package_id))
        )

        # Assert
        assert first.status_code == 201
        assert result.is_err()
        assert result.error.code == "ALREADY_PROMOTED"
        active = (await db_session.execute(
            select(Promotion).where(
                Promotion.construction_id == construction_id,
                Promotion.status == PromotionStatus.ACTIVE,
            )
        )).scalars().all()
        assert len(active) == 1
        assert await current_balance(db_session, organization_id) == 700_000
        debits = (await db_session.execute(
            select(CreditTransaction).where(
                CreditTransaction.organization_id == organization_id,
                CreditTransaction.transaction_type == TransactionType.PROMOTION,
            )
        )).scalars().all()
        assert len(debits) == 1

    async def test_unknown_package_returns_404(self, client, organization, construction):
        # Act
        response = await client.post(
            "/api/promotions", json=purchase_body(organization.id, construction.id, 999)
        )

        # Assert
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PACKAGE_NOT_FOUND"


@pytest.mark.asyncio
class TestCancelPromotionAPI:

    async def test_cancel_refunds_unused_days(
        self, client, db_session, organization, construction, package
    ):
        """
        Given: A 30 day promotion bought for 300,000 that started 10 days and 1 hour ago
        When: POST /api/promotions/{id}/cancel
        Then: 11 days count as used and 19/30 of the cost is refunded
        """
        # Arrange
        organization_id = organization.id
        await fund(db_session, organization_id, 1_000_000)
        purchase = await client.post(
            "/api/promotions", json=purchase_body(organization_id, construction.id, package.id)
        )
        promotion_id = purchase.json()["promotion"]["id"]

        promotion = await load_promotion(db_session, promotion_id)
        promotion.start_date = utcnow() - timedelta(days=10, hours=1)
        promotion.end_date = promotion.start_date + timedelta(days=30)
        db_session.add(promotion)
        await db_session.commit()

        # Act
        response = await client.post(
            f"/api/promotions/{promotion_id}/cancel",
            json={"user_id": "user_1", "reason": "Listing sold"},
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["days_remaining"] == 19
        assert data["credits_refunded"] == 190_000
        assert data["new_balance"] == 890_000

        promotion = await load_promotion(db_session, promotion_id)
        assert promotion.status == PromotionStatus.CANCELLED
        assert promotion.cancellation_reason == "Listing sold"
        assert promotion.refund_transaction_id == data["refund_transaction_id"]
        assert await current_balance(db_session, organization_id) == 890_000

    async def test_cancel_twice_returns_409(self, client, db_session, organization, construction, package):
        # Arrange
        await fund(db_session, organization.id, 1_000_000)
        purchase = await client.post(
            "/api/promotions", json=purchase_body(organization.id, construction.id, package.id)
        )
        promotion_id = purchase.json()["promotion"]["id"]

        # Act
        await client.post(f"/api/promotions/{promotion_id}/cancel", json={"user_id": "user_1"})
        response = await client.post(f"/api/promotions/{promotion_id}/cancel", json={"user_id": "user_1"})

        # Assert
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NOT_ACTIVE"

    async def test_cancel_unknown_promotion_returns_404(self, client):
        # Act
        response = await client.post("/api/promotions/999/cancel", json={"user_id": "user_1"})

        # Assert
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PROMOTION_NOT_FOUND"


@pytest.mark.asyncio
class TestAutoRenewAPI:

    async def test_toggle_auto_renew(self, client, db_session, organization, construction, package):
        # Arrange
        await fund(db_session, organization.id, 1_000_000)
        purchase = await client.post(
            "/api/promotions", json=purchase_body(organization.id, construction.id, package.id)
        )
        promotion_id = purchase.json()["promotion"]["id"]

        # Act
        response = await client.put(f"/api/promotions/{promotion_id}/auto-renew", json={"auto_renew": True})

        # Assert
        assert response.status_code == 200
        assert response.json()["auto_renew"] is True
        assert (await load_promotion(db_session, promotion_id)).auto_renew is True


@pytest.mark.asyncio
class TestPromotionPackagesAPI:

    async def test_lists_active_packages_in_catalog_order(self, client, db_session, package):
        """
        Given: The 30-day package, a cheaper one sorted first and a retired one
        When: GET /api/promotions/packages
        Then: Only purchasable packages are listed, in sort order
        """
        # Arrange
        db_session.add(PromotionPackage(
            name="Spotlight 7 days",
            slug="spotlight-7",
            description="A week at the top of search results",
            badge="Popular",
            cost_in_credits=90_000,
            duration_days=7,
            auto_renewal_default=True,
            sort_order=-1,
        ))
        db_session.add(PromotionPackage(
            name="Legacy 90 days",
            slug="legacy-90",
            cost_in_credits=700_000,
            duration_days=90,
            is_active=False,
        ))
        await db_session.commit()

        # Act
        response = await client.get("/api/promotions/packages")

        # Assert
        assert response.status_code == 200
        packages = response.json()["packages"]
        assert [p["slug"] for p in packages] == ["spotlight-7", "featured-30"]
        assert packages[0]["badge"] == "Popular"
        assert packages[0]["auto_renewal_default"] is True
        assert packages[1]["cost_in_credits"] == 300_000
        assert packages[1]["duration_days"] == 30

    async def test_empty_catalog(self, client):
        # Act
        response = await client.get("/api/promotions/packages")

        # Assert
        assert response.status_code == 200
        assert response.json() == {"packages": []}
