"""Data Transfer Objects for Alert Use Cases"""

from typing import Optional
from pydantic import BaseModel


class AlertResultDTO(BaseModel):
    sent: bool
    level: Optional[str] = None
    message: Optional[str] = None


class DispatchResultDTO(BaseModel):
    """Outcome of one notification dispatch batch"""

    processed: int
    sent: int
    retrying: int
    failed: int
