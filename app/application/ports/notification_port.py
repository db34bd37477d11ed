"""Port interface for the notification queue."""

from abc import ABC, abstractmethod

from app.domain.entities.notification_event import NotificationEvent


class NotificationQueue(ABC):
    @abstractmethod
    async def enqueue(self, event: NotificationEvent) -> None:
        """Fire-and-forget: implementations log failures instead of raising."""
        ...
