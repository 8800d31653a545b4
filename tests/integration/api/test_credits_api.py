"""Integration tests for Credit API endpoints

Runs against an in-memory SQLite database through the real repositories.
"""

import pytest
from sqlmodel import select

from src.adapter.repositories import SqlAlchemyCreditTransactionRepository, SqlAlchemyOrganizationRepository
from src.app.use_cases.credits.ledger import CreditLedgerStore
from src.domain.credit_transaction import CreditTransaction, TransactionType
from src.domain.topup_history import TopupHistory, TopupStatus


async def fund(db_session, organization_id: int, amount: int):
    ledger = CreditLedgerStore(
        SqlAlchemyOrganizationRepository(db_session),
        SqlAlchemyCreditTransactionRepository(db_session),
    )
    entry = await ledger.add_credits(
        organization_id, amount, transaction_type=TransactionType.TOPUP, description="Seed top-up"
    )
    await db_session.commit()
    return entry


@pytest.mark.asyncio
class TestBalanceEndpoints:

    async def test_get_balance(self, client, db_session, organization):
        """
        Given: An organization funded with 2,000,000 credits
        When: GET /api/credits/{id}/balance
        Then: Balance and lifetime counters are returned with no low balance level
        """
        # Arrange
        await fund(db_session, organization.id, 2_000_000)

        # Act
        response = await client.get(f"/api/credits/{organization.id}/balance")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["organization_id"] == organization.id
        assert data["credit_balance"] == 2_000_000
        assert data["total_credits_loaded"] == 2_000_000
        assert data["total_credits_spent"] == 0
        assert data["low_balance_level"] is None

    async def test_balance_reports_low_level(self, client, db_session, organization):
        # Arrange
        await fund(db_session, organization.id, 80_000)

        # Act
        response = await client.get(f"/api/credits/{organization.id}/balance")

        # Assert
        assert response.json()["low_balance_level"] == "critical"

    async def test_unknown_organization_returns_404(self, client):
        # Act
        response = await client.get("/api/credits/999/balance")

        # Assert
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ORGANIZATION_NOT_FOUND"

    async def test_verify_balance_matches_transactions(self, client, db_session, organization):
        """
        Given: Several ledger mutations
        When: GET /api/credits/{id}/verify
        Then: The stored balance equals the transaction sum
        """
        # Arrange
        await fund(db_session, organization.id, 500_000)
        await fund(db_session, organization.id, 250_000)
        await client.post(
            f"/api/credits/{organization.id}/adjust",
            json={"amount": -100_000, "description": "Correction", "performed_by": "admin@example.com"},
        )

        # Act
        response = await client.get(f"/api/credits/{organization.id}/verify")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is True
        assert data["stored_balance"] == 650_000
        assert data["calculated_balance"] == 650_000
        assert data["difference"] == 0


@pytest.mark.asyncio
class TestTransactionsEndpoint:

    async def test_lists_newest_first_with_pagination(self, client, db_session, organization):
        """
        Given: Three top-ups
        When: GET /api/credits/{id}/transactions?limit=2
        Then: The two newest are returned and total counts all three
        """
        # Arrange
        await fund(db_session, organization.id, 100_000)
        await fund(db_session, organization.id, 200_000)
        await fund(db_session, organization.id, 300_000)

        # Act
        response = await client.get(f"/api/credits/{organization.id}/transactions", params={"limit": 2})

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["limit"] == 2
        assert data["offset"] == 0
        assert [t["amount"] for t in data["transactions"]] == [300_000, 200_000]
        assert data["transactions"][0]["balance_before"] == 300_000
        assert data["transactions"][0]["balance_after"] == 600_000

    async def test_invalid_limit_is_rejected(self, client, organization):
        # Act
        response = await client.get(f"/api/credits/{organization.id}/transactions", params={"limit": 0})

        # Assert
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
class TestAdjustEndpoint:

    async def test_positive_adjustment_credits(self, client, organization):
        # Act
        response = await client.post(
            f"/api/credits/{organization.id}/adjust",
            json={"amount": 150_000, "description": "Goodwill credit", "performed_by": "admin@example.com"},
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["new_balance"] == 150_000
        assert data["transaction"]["transaction_type"] == TransactionType.ADJUSTMENT.value
        assert data["transaction"]["amount"] == 150_000
        assert data["transaction"]["performed_by"] == "admin@example.com"

    async def test_debit_beyond_balance_returns_402(self, client, db_session, organization):
        """
        Given: Balance of 50,000
        When: An adjustment of -80,000 is posted
        Then: 402 INSUFFICIENT_CREDITS and nothing is written
        """
        # Arrange
        organization_id = organization.id
        await fund(db_session, organization.id, 50_000)

        # Act
        response = await client.post(
            f"/api/credits/{organization.id}/adjust",
            json={"amount": -80_000, "description": "Reverse refund", "performed_by": "admin@example.com"},
        )

        # Assert
        assert response.status_code == 402
        assert response.json()["error"]["code"] == "INSUFFICIENT_CREDITS"
        result = await db_session.execute(
            select(CreditTransaction).where(CreditTransaction.organization_id == organization_id)
        )
        assert len(result.scalars().all()) == 1

    async def test_zero_amount_is_rejected(self, client, organization):
        # Act
        response = await client.post(
            f"/api/credits/{organization.id}/adjust",
            json={"amount": 0, "description": "Nothing", "performed_by": "admin@example.com"},
        )

        # Assert
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
class TestTopupEndpoints:

    async def test_packages_include_bonus(self, client):
        # Act
        response = await client.get("/api/credits/topup/packages")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["min_amount"] == 100_000
        assert data["max_amount"] == 10_000_000
        by_amount = {p["amount"]: p for p in data["packages"]}
        assert by_amount[100_000]["bonus_credits"] == 0
        assert by_amount[1_000_000]["bonus_percentage"] == 10
        assert by_amount[10_000_000]["total_credits"] == 12_500_000

    async def test_checkout_creates_pending_topup(self, client, db_session, organization, payment_gateway):
        """
        Given: An organization without a payment customer
        When: A 3,000,000 top-up checkout is started
        Then: A customer is created, a pending top-up records the 15% bonus
              and the checkout metadata carries the credit amount
        """
        # Act
        response = await client.post(
            "/api/credits/topup/checkout",
            json={
                "organization_id": organization.id,
                "user_id": "user_1",
                "amount": 3_000_000,
                "success_url": "https://app.example.com/billing/success",
                "cancel_url": "https://app.example.com/billing",
            },
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["checkout_session_id"] == "cs_test_1"
        assert data["bonus_credits"] == 450_000
        assert data["bonus_percentage"] == 15
        assert data["total_credits"] == 3_450_000

        assert payment_gateway.customers[0]["email"] == "billing@acme.vn"
        metadata = payment_gateway.checkout_requests[0].metadata
        assert metadata["creditsToAdd"] == "3450000"
        assert metadata["type"] == "credit_topup"

        topup = (await db_session.execute(
            select(TopupHistory).where(TopupHistory.id == data["topup_history_id"])
        )).scalar_one()
        assert topup.status == TopupStatus.PENDING
        assert topup.stripe_checkout_session_id == "cs_test_1"

        organization = await SqlAlchemyOrganizationRepository(db_session).get_by_id(organization.id, for_update=True)
        assert organization.stripe_customer_id == "cus_test_1"
        assert organization.credit_balance == 0

    async def test_checkout_below_minimum_is_rejected(self, client, organization):
        # Act
        response = await client.post(
            "/api/credits/topup/checkout",
            json={
                "organization_id": organization.id,
                "user_id": "user_1",
                "amount": 50_000,
                "success_url": "https://app.example.com/ok",
                "cancel_url": "https://app.example.com/cancel",
            },
        )

        # Assert
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_TOPUP_AMOUNT"


async def add_topup(db_session, organization_id: int, amount: int, status: TopupStatus):
    topup = TopupHistory(
        organization_id=organization_id,
        user_id="user_1",
        amount_paid=amount,
        credits_received=amount,
        status=status,
    )
    db_session.add(topup)
    await db_session.commit()
    return topup.id


@pytest.mark.asyncio
class TestTopupHistoryEndpoint:

    async def test_lists_newest_first(self, client, db_session, organization):
        """
        Given: A completed, an expired and a pending top-up
        When: GET /api/credits/{id}/topups?limit=2
        Then: The two most recent are returned and total counts all three
        """
        # Arrange
        await add_topup(db_session, organization.id, 100_000, TopupStatus.COMPLETED)
        await add_topup(db_session, organization.id, 200_000, TopupStatus.EXPIRED)
        await add_topup(db_session, organization.id, 300_000, TopupStatus.PENDING)

        # Act
        response = await client.get(f"/api/credits/{organization.id}/topups", params={"limit": 2})

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [t["amount_paid"] for t in data["topups"]] == [300_000, 200_000]
        assert data["topups"][0]["status"] == "pending"

    async def test_filters_by_status(self, client, db_session, organization):
        # Arrange
        completed_id = await add_topup(db_session, organization.id, 500_000, TopupStatus.COMPLETED)
        await add_topup(db_session, organization.id, 700_000, TopupStatus.FAILED)

        # Act
        response = await client.get(
            f"/api/credits/{organization.id}/topups", params={"status": "completed"}
        )

        # Assert
        data = response.json()
        assert data["total"] == 1
        assert [t["id"] for t in data["topups"]] == [completed_id]

    async def test_unknown_status_is_rejected(self, client, organization):
        # Act
        response = await client.get(f"/api/credits/{organization.id}/topups", params={"status": "lost"})

        # Assert
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_organization_returns_404(self, client):
        # Act
        response = await client.get("/api/credits/999/topups")

        # Assert
        assert response.status_code == 404


@pytest.mark.asyncio
class TestAlertSettingsEndpoints:

    async def test_defaults(self, client, organization):
        # Act
        response = await client.get(f"/api/credits/{organization.id}/settings")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["low_balance_alert_enabled"] is True
        assert data["low_balance_alert_threshold"] == 500_000
        assert data["billing_email"] == "billing@acme.vn"

    async def test_partial_update_keeps_other_fields(self, client, db_session, organization):
        """
        Given: Default alert settings
        When: Only the threshold is patched
        Then: The threshold is stored and the flag and email are untouched
        """
        # Arrange
        organization_id = organization.id

        # Act
        response = await client.patch(
            f"/api/credits/{organization_id}/settings",
            json={"low_balance_alert_threshold": 200_000},
        )

        # Assert
        assert response.status_code == 200
        assert response.json()["low_balance_alert_threshold"] == 200_000
        stored = await SqlAlchemyOrganizationRepository(db_session).get_by_id(organization_id, for_update=True)
        assert stored.low_balance_alert_threshold == 200_000
        assert stored.low_balance_alert_enabled is True
        assert stored.billing_email == "billing@acme.vn"

    async def test_disable_and_change_email(self, client, organization):
        # Act
        response = await client.patch(
            f"/api/credits/{organization.id}/settings",
            json={"low_balance_alert_enabled": False, "billing_email": "finance@acme.vn"},
        )

        # Assert
        data = response.json()
        assert data["low_balance_alert_enabled"] is False
        assert data["billing_email"] == "finance@acme.vn"

    async def test_empty_update_is_rejected(self, client, organization):
        # Act
        response = await client.patch(f"/api/credits/{organization.id}/settings", json={})

        # Assert
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "No valid updates provided"

    async def test_negative_threshold_is_rejected(self, client, organization):
        # Act
        response = await client.patch(
            f"/api/credits/{organization.id}/settings",
            json={"low_balance_alert_threshold": -1},
        )

        # Assert
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_organization_returns_404(self, client):
        # Act
        response = await client.patch("/api/credits/999/settings", json={"low_balance_alert_enabled": False})

        # Assert
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ORGANIZATION_NOT_FOUND"
