"""Notification Domain Entity

Durable outbox of billing emails. Rows are written in the same unit of work
as the state change they describe and delivered by the dispatcher worker.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import DateTime, String, Text
from src.domain.base import BaseModel, BigIntPK, utcnow


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class Notification(BaseModel, table=True):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_status_created_at", "status", "created_at"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
    )

    recipient: str = Field(sa_column=Column(String(255), nullable=False))

    subject: str = Field(sa_column=Column(String(500), nullable=False))

    html: str = Field(sa_column=Column(Text, nullable=False))

    status: NotificationStatus = Field(default=NotificationStatus.PENDING)

    attempts: int = Field(default=0)

    last_error: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

    sent_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
