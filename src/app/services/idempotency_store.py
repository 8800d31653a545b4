"""Idempotency Store Interface

Short-lived keys used to process each webhook event at most once.
"""

from abc import ABC, abstractmethod


class IdempotencyStore(ABC):
    """
    Key/value store with expiry

    ``acquire`` must be atomic (set-if-absent) so that two concurrent
    deliveries of the same event cannot both claim it.
    """

    @abstractmethod
    async def is_processed(self, event_id: str) -> bool:
        pass

    @abstractmethod
    async def acquire(self, event_id: str, ttl_seconds: int) -> bool:
        """
        Claim an event for processing

        Returns:
            True if the claim was taken, False if another worker holds it
        """
        pass

    @abstractmethod
    async def release(self, event_id: str) -> None:
        pass

    @abstractmethod
    async def mark_processed(self, event_id: str, ttl_seconds: int) -> None:
        pass
