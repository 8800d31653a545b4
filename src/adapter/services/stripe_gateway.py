"""Stripe Payment Gateway

Stripe-backed implementation of the PaymentGateway port.
"""

import asyncio
import json
import logging
import time
from typing import Dict
import stripe
from src.app.services.payment_gateway import (
    CheckoutSession,
    CheckoutSessionRequest,
    PaymentGateway,
    WebhookEvent,
)
from src.domain.exceptions import InvalidWebhookPayloadError

logger = logging.getLogger(__name__)


class StripePaymentGateway(PaymentGateway):
    """
    Payment gateway talking to Stripe

    The stripe SDK is synchronous, so API calls run in a worker thread.
    """

    def __init__(self, secret_key: str, webhook_secret: str, currency: str = "vnd"):
        stripe.api_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    async def create_customer(self, email: str, name: str, metadata: Dict[str, str]) -> str:
        customer = await asyncio.to_thread(
            stripe.Customer.create,
            email=email,
            name=name,
            metadata=metadata,
        )
        logger.info(f"Created Stripe customer {customer.id} for {email}")
        return customer.id

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSession:
        metadata = {key: str(value) for key, value in request.metadata.items()}

        session = await asyncio.to_thread(
            stripe.checkout.Session.create,
            mode="payment",
            customer=request.customer_id,
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {
                            "name": "Credits",
                            "description": request.line_item.description,
                        },
                        "unit_amount": request.line_item.unit_amount,
                    },
                    "quantity": request.line_item.quantity,
                }
            ],
            metadata=metadata,
            payment_intent_data={"metadata": metadata},
            success_url=request.success_url,
            cancel_url=request.cancel_url,
            expires_at=int(time.time()) + request.expires_in_seconds,
        )
        return CheckoutSession(id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify the Stripe-Signature header and parse the event

        Raises:
            InvalidWebhookPayloadError: payload is not JSON or the signature is wrong
        """
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as e:
            raise InvalidWebhookPayloadError("Invalid payload", reason=str(e))
        except stripe.SignatureVerificationError as e:
            raise InvalidWebhookPayloadError("Invalid signature", reason=str(e))

        event = json.loads(payload)
        return WebhookEvent(
            id=event["id"],
            type=event["type"],
            data_object=dict(event.get("data", {}).get("object") or {}),
        )
