"""Data Transfer Objects for Webhook Use Cases"""

from pydantic import BaseModel, Field


class WebhookResultDTO(BaseModel):
    event_id: str
    event_type: str
    status: str = Field(
        ...,
        description="processed, ignored, duplicate or in_progress"
    )
