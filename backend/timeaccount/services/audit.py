"""Audit trail for human-authored changes to time-account inputs."""

from __future__ import annotations

import enum
import logging
import uuid
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlmodel import col

from timeaccount.models.audit import AuditLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from timeaccount.models.enums import AuditAction, AuditEntityType

logger = logging.getLogger(__name__)

# Bookkeeping columns that say nothing about the change itself.
_UNAUDITED_FIELDS = frozenset({"created_at"})


def _json_safe(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Snapshot a time entry, absence, correction or holiday for the audit trail."""
    return {
        key: _json_safe(value)
        for key, value in model.model_dump().items()
        if key not in _UNAUDITED_FIELDS
    }


async def write_audit_log(
    session: AsyncSession,
    *,
    actor_id: uuid.UUID | None,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID | str,
    action: AuditAction,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Add an audit row to the caller's transaction; the caller commits."""
    entry = AuditLog(
        actor_id=actor_id,
        entity_type=entity_type.value,
        entity_id=str(entity_id),
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    logger.debug("Audit %s %s %s by %s", action.value, entity_type.value, entity_id, actor_id)
    return entry


async def list_audit_entries(
    session: AsyncSession,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID | str | None = None,
) -> list[AuditLog]:
    """Audit rows for one entity type (optionally one entity), oldest first."""
    query = select(AuditLog).where(col(AuditLog.entity_type) == entity_type.value)
    if entity_id is not None:
        query = query.where(col(AuditLog.entity_id) == str(entity_id))
    result = await session.execute(query.order_by(col(AuditLog.created_at), col(AuditLog.id)))
    return list(result.scalars().all())
