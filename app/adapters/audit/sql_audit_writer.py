"""Audit-log writer that inserts one row per event in its own transaction."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.persistence.models import AuditLogModel
from app.application.ports.audit_port import AuditWriter
from app.domain.value_objects.enums import AuditAction

logger = logging.getLogger(__name__)


class SqlAuditWriter(AuditWriter):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def record(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: str,
        actor_id: str,
        details: dict,
    ) -> None:
        try:
            async with self._session_factory() as s, s.begin():
                s.add(
                    AuditLogModel(
                        action=action.value,
                        entity_type=entity_type,
                        entity_id=entity_id,
                        actor_id=actor_id,
                        details=details,
                    )
                )
        except Exception:
            logger.exception("Failed to write audit log %s for %s %s", action.value, entity_type, entity_id)
