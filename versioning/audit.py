"""Audit entries for landing actions, linked to the versions they touched."""

from __future__ import annotations

import json
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.entities.audit_log import AuditLog


class AuditAction:
    SNAPSHOT = "snapshot"
    ROLLBACK = "rollback"
    DELETE_VERSION = "delete_version"
    UPDATE_VERSION = "update_version"
    MIGRATE = "migrate"


def new_audit_id() -> str:
    return f"audit_{uuid.uuid4().hex[:16]}"


def record_audit(
    db: AsyncSession,
    landing_id: str,
    action: str,
    actor: str = "system",
    details: str | None = None,
    version_ids: list[str] | None = None,
    entry_id: str | None = None,
) -> AuditLog:
    """Add an audit entry to the session. The caller commits."""
    entry = AuditLog(
        id=entry_id or new_audit_id(),
        landing_id=landing_id,
        action=action,
        actor=actor,
        details=details,
        version_ids_json=json.dumps(version_ids) if version_ids else None,
    )
    db.add(entry)
    return entry


def version_ids_of(entry: AuditLog) -> list[str]:
    if not entry.version_ids_json:
        return []
    try:
        parsed = json.loads(entry.version_ids_json)
    except json.JSONDecodeError:
        return []
    return [v for v in parsed if isinstance(v, str)] if isinstance(parsed, list) else []


def audit_payload(entry: AuditLog) -> dict:
    return {
        "id": entry.id,
        "landing_id": entry.landing_id,
        "action": entry.action,
        "actor": entry.actor,
        "details": entry.details,
        "version_ids": version_ids_of(entry),
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


async def list_audit(
    db: AsyncSession, landing_id: str, limit: int = 50, offset: int = 0
) -> tuple[list[AuditLog], int]:
    """Return one page of a landing's audit entries (newest first) and the total count."""
    total = await db.scalar(
        select(func.count(AuditLog.id)).where(AuditLog.landing_id == landing_id)
    )
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.landing_id == landing_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), int(total or 0)
