"""Notification outbox: events are stored here and delivered by a separate consumer."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.persistence.models import NotificationOutboxModel
from app.application.ports.notification_port import NotificationQueue
from app.domain.entities.notification_event import NotificationEvent

logger = logging.getLogger(__name__)

EVENT_TYPE = "case-assigned"


class SqlNotificationQueue(NotificationQueue):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def enqueue(self, event: NotificationEvent) -> None:
        try:
            async with self._session_factory() as s, s.begin():
                s.add(
                    NotificationOutboxModel(
                        user_id=event.user_id,
                        event_type=EVENT_TYPE,
                        payload=event.to_payload(),
                        status="pending",
                    )
                )
            logger.debug("Queued %s notification for user %s", event.kind.value, event.user_id)
        except Exception:
            logger.exception("Failed to queue notification for user %s", event.user_id)
