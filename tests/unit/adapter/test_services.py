"""Unit tests for adapter services

Tests cover:
- RedisIdempotencyStore key layout and redis calls
- StripePaymentGateway webhook signature verification
- Notification sinks (outbox, composite, factory)
"""

import hashlib
import hmac
import json
import time
import pytest
from unittest.mock import AsyncMock, MagicMock

from src.adapter.services.notification_service import (
    CompositeNotificationSink,
    LoggingNotificationSink,
    OutboxNotificationSink,
    ResendNotificationSink,
    WebhookNotificationSink,
    create_delivery_sink,
)
from src.adapter.services.redis_idempotency_store import RedisIdempotencyStore
from src.adapter.services.stripe_gateway import StripePaymentGateway
from src.app.services.notification_service import EmailMessage
from src.domain.exceptions import InvalidWebhookPayloadError


WEBHOOK_SECRET = "whsec_test_secret"


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header for the payload"""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.exists = AsyncMock(return_value=0)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    return client


@pytest.fixture
def message():
    return EmailMessage(to="billing@acme.vn", subject="Low balance", html="<p>Top up</p>")


@pytest.mark.asyncio
class TestRedisIdempotencyStore:

    async def test_is_processed_checks_prefixed_key(self, redis_client):
        """
        Given: The processed key exists
        When: is_processed is called
        Then: True is returned for the prefixed key
        """
        # Arrange
        redis_client.exists = AsyncMock(return_value=1)
        store = RedisIdempotencyStore(redis_client, prefix="stripe_event:")

        # Act & Assert
        assert await store.is_processed("evt_1") is True
        redis_client.exists.assert_called_once_with("stripe_event:processed:evt_1")

    async def test_acquire_uses_set_nx_with_ttl(self, redis_client):
        """
        Given: No one holds the processing lock
        When: acquire is called
        Then: SET NX EX is issued and the claim succeeds
        """
        # Arrange
        store = RedisIdempotencyStore(redis_client, prefix="stripe_event:")

        # Act & Assert
        assert await store.acquire("evt_1", 60) is True
        redis_client.set.assert_called_once_with(
            "stripe_event:processing:evt_1", "1", nx=True, ex=60
        )

    async def test_acquire_fails_when_lock_is_held(self, redis_client):
        """
        Given: Another delivery holds the lock (SET NX returns None)
        When: acquire is called
        Then: The claim fails
        """
        # Arrange
        redis_client.set = AsyncMock(return_value=None)
        store = RedisIdempotencyStore(redis_client)

        # Act & Assert
        assert await store.acquire("evt_1", 60) is False

    async def test_release_and_mark_processed(self, redis_client):
        """
        Given: A handled event
        When: mark_processed and release are called
        Then: The processed key gets the TTL and the lock is deleted
        """
        # Arrange
        store = RedisIdempotencyStore(redis_client, prefix="p:")

        # Act
        await store.mark_processed("evt_9", 604800)
        await store.release("evt_9")

        # Assert
        redis_client.set.assert_called_once_with("p:processed:evt_9", "1", ex=604800)
        redis_client.delete.assert_called_once_with("p:processing:evt_9")


class TestStripeWebhookVerification:

    def test_valid_signature_returns_event(self):
        """
        Given: A payload signed with the webhook secret
        When: construct_event is called
        Then: The event id, type and data object are returned
        """
        # Arrange
        gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)
        payload = json.dumps({
            "id": "evt_123",
            "object": "event",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "metadata": {"type": "credit_topup"}}},
        }).encode("utf-8")

        # Act
        event = gateway.construct_event(payload, sign_payload(payload))

        # Assert
        assert event.id == "evt_123"
        assert event.type == "checkout.session.completed"
        assert event.data_object["id"] == "cs_1"
        assert event.data_object["metadata"]["type"] == "credit_topup"

    def test_wrong_secret_is_rejected(self):
        """
        Given: A payload signed with a different secret
        When: construct_event is called
        Then: InvalidWebhookPayloadError "Invalid signature" is raised
        """
        # Arrange
        gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)
        payload = json.dumps({"id": "evt_1", "object": "event", "type": "x", "data": {"object": {}}}).encode()

        # Act & Assert
        with pytest.raises(InvalidWebhookPayloadError) as exc_info:
            gateway.construct_event(payload, sign_payload(payload, secret="whsec_other"))

        assert exc_info.value.message == "Invalid signature"
        assert exc_info.value.code == "INVALID_WEBHOOK_PAYLOAD"

    def test_malformed_payload_is_rejected(self):
        """
        Given: A body that is not JSON
        When: construct_event is called
        Then: InvalidWebhookPayloadError is raised
        """
        # Arrange
        gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)
        payload = b"not json"

        # Act & Assert
        with pytest.raises(InvalidWebhookPayloadError):
            gateway.construct_event(payload, sign_payload(payload))


@pytest.mark.asyncio
class TestNotificationSinks:

    async def test_outbox_sink_stores_notification(self, message):
        """
        Given: An outbox sink
        When: A message is sent
        Then: A pending notification row is created and True returned
        """
        # Arrange
        repo = MagicMock()
        repo.create = AsyncMock(side_effect=lambda n: n)
        sink = OutboxNotificationSink(repo)

        # Act & Assert
        assert await sink.send(message) is True
        stored = repo.create.call_args.args[0]
        assert stored.recipient == "billing@acme.vn"
        assert stored.subject == "Low balance"
        assert stored.html == "<p>Top up</p>"

    async def test_composite_succeeds_if_any_sink_succeeds(self, message):
        """
        Given: One failing sink and one raising sink and one working sink
        When: The composite sends
        Then: True is returned and every sink was tried
        """
        # Arrange
        failing = MagicMock()
        failing.send = AsyncMock(return_value=False)
        raising = MagicMock()
        raising.send = AsyncMock(side_effect=RuntimeError("down"))
        working = MagicMock()
        working.send = AsyncMock(return_value=True)

        sink = CompositeNotificationSink([failing, raising, working])

        # Act & Assert
        assert await sink.send(message) is True
        working.send.assert_called_once_with(message)

    async def test_composite_fails_when_all_fail(self, message):
        # Arrange
        failing = MagicMock()
        failing.send = AsyncMock(return_value=False)

        # Act & Assert
        assert await CompositeNotificationSink([failing]).send(message) is False

    async def test_logging_sink_always_succeeds(self, message):
        # Act & Assert
        assert await LoggingNotificationSink().send(message) is True


class TestCreateDeliverySink:

    def test_logging_when_nothing_configured(self):
        # Act & Assert
        assert isinstance(create_delivery_sink(), LoggingNotificationSink)

    def test_resend_requires_sender(self):
        # Act & Assert
        assert isinstance(create_delivery_sink(resend_api_key="re_123"), LoggingNotificationSink)

    def test_resend_only(self):
        # Act
        sink = create_delivery_sink(resend_api_key="re_123", email_from="Billing <billing@example.com>")

        # Assert
        assert isinstance(sink, ResendNotificationSink)
        assert sink.from_address == "Billing <billing@example.com>"

    def test_resend_and_webhook_are_combined(self):
        # Act
        sink = create_delivery_sink(
            resend_api_key="re_123",
            email_from="billing@example.com",
            webhook_url="https://hooks.example.com/billing",
        )

        # Assert
        assert isinstance(sink, CompositeNotificationSink)
        assert isinstance(sink.sinks[0], ResendNotificationSink)
        assert isinstance(sink.sinks[1], WebhookNotificationSink)
