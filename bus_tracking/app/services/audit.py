"""
Audit trail for trip lifecycle and operator actions.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from bus_tracking.app.models.audit_log import AuditLog


class AuditAction:
    TRIP_STARTED = "TRIP_STARTED"
    TRIP_COMPLETED = "TRIP_COMPLETED"
    TRACKING_STOPPED = "TRACKING_STOPPED"
    ALERT_ACKNOWLEDGED = "ALERT_ACKNOWLEDGED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Append an entry to the audit trail and commit it.
    
    Args:
        db: Database session
        action: One of the AuditAction constants
        actor_id: User who performed the action
        actor_username: Username of the actor, when known
        entity_type: Kind of row the action applied to ("trip", "alert", ...)
        entity_id: Id of that row
        metadata: Extra JSON context
    """
    entry = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_data=metadata
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def get_audit_trail(
    db: AsyncSession,
    actor_id: Optional[int] = None,
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    limit: int = 100
) -> List[AuditLog]:
    """Audit entries matching the filters, newest first."""
    filters = []
    if actor_id:
        filters.append(AuditLog.actor_id == actor_id)
    if action:
        filters.append(AuditLog.action == action)
    if entity_type:
        filters.append(AuditLog.entity_type == entity_type)
    if entity_id:
        filters.append(AuditLog.entity_id == entity_id)

    result = await db.execute(
        select(AuditLog)
        .where(*filters)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
