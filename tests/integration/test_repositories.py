"""Integration tests for the SQLAlchemy repositories and ledger store"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from sqlmodel import select

from src.domain.base import utcnow
from src.adapter.repositories import (
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemyNotificationRepository,
    SqlAlchemyOrganizationRepository,
    SqlAlchemyPromotionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.alerts import DispatchNotifications
from src.app.use_cases.credits import ReconcileLedger
from src.app.use_cases.credits.ledger import CreditLedgerStore
from src.domain.construction import Construction
from src.domain.credit_transaction import CreditReference, ReferenceType, TransactionType
from src.domain.exceptions import AlreadyPromotedError, InsufficientCreditsError
from src.domain.notification import Notification, NotificationStatus
from src.domain.promotion import Promotion, PromotionStatus


def ledger_for(db_session) -> CreditLedgerStore:
    return CreditLedgerStore(
        SqlAlchemyOrganizationRepository(db_session),
        SqlAlchemyCreditTransactionRepository(db_session),
    )


def promotion_row(
    construction_id, organization_id, package, end_date, status=PromotionStatus.ACTIVE, **fields
) -> Promotion:
    return Promotion(
        construction_id=construction_id,
        organization_id=organization_id,
        package_id=package.id,
        status=status,
        credits_spent=package.cost_in_credits,
        start_date=end_date - timedelta(days=30),
        end_date=end_date,
        **fields,
    )


@pytest.mark.asyncio
class TestOrganizationBalanceUpdate:

    async def test_update_with_stale_balance_is_refused(self, db_session, organization):
        """
        Given: Stored balance 500,000
        When: update_balance expects 400,000
        Then: No row is updated and the balance is unchanged
        """
        # Arrange
        organization_id = organization.id
        await ledger_for(db_session).add_credits(organization_id, 500_000, description="Seed")
        await db_session.commit()
        repo = SqlAlchemyOrganizationRepository(db_session)

        # Act
        updated = await repo.update_balance(organization_id, expected_balance=400_000, new_balance=0)

        # Assert
        assert updated is False
        assert (await repo.get_by_id(organization_id, for_update=True)).credit_balance == 500_000

    async def test_update_with_current_balance_moves_counters(self, db_session, organization):
        # Arrange
        organization_id = organization.id
        repo = SqlAlchemyOrganizationRepository(db_session)

        # Act
        updated = await repo.update_balance(organization_id, 0, 250_000, loaded_delta=250_000)
        await db_session.commit()

        # Assert
        assert updated is True
        stored = await repo.get_by_id(organization_id, for_update=True)
        assert stored.credit_balance == 250_000
        assert stored.total_credits_loaded == 250_000


@pytest.mark.asyncio
class TestLedgerInvariant:

    async def test_balance_equals_transaction_sum_after_mixed_operations(self, db_session, organization):
        """
        Given: A sequence of credits and debits including a refused overdraft
        When: The ledger is verified and reconciled
        Then: Stored balance equals the transaction sum and every row chains
        """
        # Arrange
        organization_id = organization.id
        ledger = ledger_for(db_session)

        await ledger.add_credits(organization_id, 1_000_000, description="Top-up")
        await ledger.deduct_credits(organization_id, 300_000, description="Promotion")
        await ledger.add_credits(
            organization_id, 50_000, transaction_type=TransactionType.REFUND, description="Refund"
        )
        await db_session.commit()

        with pytest.raises(InsufficientCreditsError):
            await ledger.deduct_credits(organization_id, 5_000_000, description="Too much")
        await db_session.rollback()

        # Act
        verification = await ledger.verify_balance(organization_id)
        transactions, total = await SqlAlchemyCreditTransactionRepository(db_session).get_by_organization(
            organization_id, limit=10
        )

        # Assert
        assert verification.is_valid is True
        assert verification.stored_balance == 750_000
        assert total == 3
        for transaction in transactions:
            assert transaction.balance_after == transaction.balance_before + transaction.amount

        organization = await SqlAlchemyOrganizationRepository(db_session).get_by_id(organization_id, for_update=True)
        assert organization.total_credits_loaded == 1_000_000
        assert organization.total_credits_spent == 300_000

    async def test_reconcile_flags_unlinked_promotion_debit(self, db_session, organization):
        """
        Given: A PROMOTION debit that never got a promotion id, older than the grace period
        When: Reconciliation runs
        Then: Balances match but the debit is reported as unlinked
        """
        # Arrange
        organization_id = organization.id
        ledger = ledger_for(db_session)
        await ledger.add_credits(organization_id, 500_000, description="Top-up")
        entry = await ledger.deduct_credits(
            organization_id,
            200_000,
            description="Promotion purchase",
            reference=CreditReference(type=ReferenceType.PROMOTION),
        )
        await db_session.commit()

        # Act
        result = await ReconcileLedger(
            SqlAlchemyOrganizationRepository(db_session),
            SqlAlchemyCreditTransactionRepository(db_session),
            unlinked_grace_minutes=15,
        ).execute(now=utcnow() + timedelta(minutes=30))

        # Assert
        assert result.is_ok()
        assert result.value.discrepancies_found == 0
        assert [s.transaction_id for s in result.value.unlinked_spends] == [entry.transaction.id]


@pytest.mark.asyncio
class TestPromotionQueries:

    async def test_window_queries(self, db_session, organization, package):
        # Arrange
        now = utcnow()
        organization_id = organization.id
        listings = [
            Construction(
                organization_id=organization_id,
                title=f"Listing {i}",
                construction_category="private",
                approval_status="published",
            )
            for i in range(5)
        ]
        db_session.add_all(listings)
        await db_session.commit()
        listing_ids = [c.id for c in listings]

        repo = SqlAlchemyPromotionRepository(db_session)
        ended = await repo.create(promotion_row(listing_ids[0], organization_id, package, now - timedelta(hours=2)))
        due = await repo.create(
            promotion_row(listing_ids[1], organization_id, package, now + timedelta(minutes=20), auto_renew=True)
        )
        ending_soon = await repo.create(
            promotion_row(listing_ids[2], organization_id, package, now + timedelta(days=2))
        )
        await repo.create(
            promotion_row(
                listing_ids[3], organization_id, package, now + timedelta(days=1), expiration_alert_sent=True
            )
        )
        await repo.create(promotion_row(listing_ids[4], organization_id, package, now + timedelta(days=10)))
        await db_session.commit()

        # Act
        expired = await repo.get_expired_active(now)
        renewals = await repo.get_due_for_renewal(now, now + timedelta(minutes=60))
        expiring = await repo.get_expiring_without_alert(now, now + timedelta(days=3))

        # Assert
        assert [p.id for p in expired] == [ended.id]
        assert [p.id for p in renewals] == [due.id]
        assert [p.id for p in expiring] == [due.id, ending_soon.id]


@pytest.mark.asyncio
class TestActivePromotionUniqueness:

    async def test_second_active_promotion_for_construction_is_refused(
        self, db_session, organization, construction, package
    ):
        """
        Given: An ACTIVE promotion for a construction
        When: Another ACTIVE promotion is inserted for it
        Then: AlreadyPromotedError and only the first row survives
        """
        # Arrange
        organization_id, construction_id = organization.id, construction.id
        repo = SqlAlchemyPromotionRepository(db_session)
        await repo.create(promotion_row(construction_id, organization_id, package, utcnow() + timedelta(days=30)))
        await db_session.commit()

        # Act & Assert
        with pytest.raises(AlreadyPromotedError):
            await repo.create(
                promotion_row(construction_id, organization_id, package, utcnow() + timedelta(days=30))
            )
        await db_session.rollback()

        rows = (await db_session.execute(
            select(Promotion).where(Promotion.construction_id == construction_id)
        )).scalars().all()
        assert len(rows) == 1

    async def test_finished_promotions_do_not_block_a_new_one(
        self, db_session, organization, construction, package
    ):
        # Arrange
        organization_id, construction_id = organization.id, construction.id
        repo = SqlAlchemyPromotionRepository(db_session)
        for status in (PromotionStatus.EXPIRED, PromotionStatus.CANCELLED, PromotionStatus.RENEWED):
            await repo.create(
                promotion_row(construction_id, organization_id, package, utcnow() - timedelta(days=1), status=status)
            )
        await db_session.commit()

        # Act
        created = await repo.create(
            promotion_row(construction_id, organization_id, package, utcnow() + timedelta(days=30))
        )
        await db_session.commit()

        # Assert
        assert (await repo.get_active_by_construction(construction_id)).id == created.id


@pytest.mark.asyncio
class TestTimestampStorage:

    async def test_timestamps_round_trip_as_naive_utc(self, db_session, organization, construction, package):
        """
        Given: A promotion whose dates come from utcnow()
        When: It is written and read back
        Then: The stored values are naive and unchanged
        """
        # Arrange
        end_date = utcnow() + timedelta(days=30)
        repo = SqlAlchemyPromotionRepository(db_session)
        created = await repo.create(promotion_row(construction.id, organization.id, package, end_date))
        await db_session.commit()
        promotion_id = created.id

        # Act
        stored = (await db_session.execute(
            select(Promotion).where(Promotion.id == promotion_id).execution_options(populate_existing=True)
        )).scalar_one()

        # Assert
        assert utcnow().tzinfo is None
        assert stored.end_date.tzinfo is None
        assert stored.created_at.tzinfo is None
        assert stored.end_date == end_date


@pytest.mark.asyncio
class TestNotificationDispatch:

    async def test_dispatch_marks_sent_and_counts_failures(self, db_session):
        """
        Given: Two pending notifications, the sink accepts only the first
        When: DispatchNotifications runs
        Then: The first is SENT, the second stays PENDING with one attempt
        """
        # Arrange
        repo = SqlAlchemyNotificationRepository(db_session)
        first = await repo.create(Notification(recipient="a@acme.vn", subject="One", html="<p>1</p>"))
        second = await repo.create(Notification(recipient="b@acme.vn", subject="Two", html="<p>2</p>"))
        await db_session.commit()
        first_id, second_id = first.id, second.id

        sink = MagicMock()
        sink.send = AsyncMock(side_effect=[True, False])

        # Act
        result = await DispatchNotifications(
            uow=SqlAlchemyUnitOfWork(db_session),
            notification_repo=repo,
            delivery_sink=sink,
            max_attempts=5,
        ).execute(limit=10)

        # Assert
        assert result.is_ok()
        assert result.value.sent == 1
        assert result.value.retrying == 1

        pending = await repo.get_pending()
        assert [n.id for n in pending] == [second_id]
        assert pending[0].attempts == 1
        sent = await db_session.get(Notification, first_id)
        assert sent.status == NotificationStatus.SENT
        assert sent.sent_at is not None
