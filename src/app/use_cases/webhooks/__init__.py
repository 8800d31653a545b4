from .handle_webhook_event import HandleWebhookEvent
from .dtos import WebhookResultDTO

__all__ = ["HandleWebhookEvent", "WebhookResultDTO"]
