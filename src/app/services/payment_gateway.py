"""Payment Gateway Interface

Defines the contract for the hosted-checkout payment provider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CheckoutLineItem:
    description: str
    unit_amount: int
    quantity: int = 1


@dataclass(frozen=True)
class CheckoutSessionRequest:
    customer_id: str
    line_item: CheckoutLineItem
    metadata: Dict[str, str]
    success_url: str
    cancel_url: str
    expires_in_seconds: int = 1800


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: Optional[str]


@dataclass(frozen=True)
class WebhookEvent:
    """Verified provider event, reduced to what the handlers read"""

    id: str
    type: str
    data_object: Dict[str, Any] = field(default_factory=dict)


class PaymentGateway(ABC):

    @abstractmethod
    async def create_customer(self, email: Optional[str], name: str, metadata: Dict[str, str]) -> str:
        """
        Create a provider customer

        Returns:
            Provider customer id
        """
        pass

    @abstractmethod
    async def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSession:
        pass

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify the signature of a raw webhook body and parse it

        Raises:
            InvalidWebhookPayloadError: If the signature or payload is invalid
        """
        pass
