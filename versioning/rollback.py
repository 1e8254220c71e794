"""Rollback controller — restores a landing's live files to a stored version.

Sequence, under the landing's lock:
  1. resolve the target version and read its archive
  2. snapshot the current live files as "Backup before rollback"
  3. unpack the target into a staging directory and swap it into place
  4. point the landing at the target and record a ``rollback`` audit entry

The backup from step 2 is committed before any live file is touched, so it
survives a failure in steps 3 or 4. The rollback deadline covers steps 1-2
only; steps 3-4 are shielded so the pointer always matches the live files
when the lock is released.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from src.config import settings
from src.entities.audit_log import AuditLog
from src.entities.landing import Landing
from src.entities.version import Version
from versioning.audit import AuditAction, new_audit_id, record_audit
from versioning.live import landing_dir, replace_with_archive
from versioning.store import SnapshotStore

logger = logging.getLogger(__name__)

BACKUP_DESCRIPTION = "Backup before rollback"


@dataclass
class RollbackResult:
    target: Version
    backup: Version | None      # None when there were no live files to back up
    audit_entry: AuditLog

    @property
    def message(self) -> str:
        created = self.target.created_at.strftime("%Y-%m-%d %H:%M:%S")
        return f"Rolled back to version {self.target.sequence_number} from {created}"


async def rollback(
    store: SnapshotStore,
    landing: Landing,
    target_version_id: str,
    actor: str = "system",
    live_dir: str | os.PathLike | None = None,
    timeout: float | None = None,
) -> RollbackResult:
    """Restore ``landing`` to ``target_version_id``.

    Raises NotFoundError if the version or its archive is missing,
    CorruptArchiveError if the archive cannot be unpacked, and
    asyncio.TimeoutError if resolving the target and taking the backup
    exceed ``timeout`` seconds (default: ``settings.rollback_timeout_seconds``;
    0 disables it). The deadline does not cover the swap: once live files
    start changing, the swap and the pointer update always run to the end
    under the landing's lock, even if the caller is cancelled.
    """
    if timeout is None:
        timeout = settings.rollback_timeout_seconds
    live = Path(live_dir) if live_dir is not None else landing_dir(landing)

    async with store.locks.hold(landing.id):
        prepare = _prepare(store, landing, target_version_id, live)
        if timeout:
            target, blob, backup, audit_id = await asyncio.wait_for(prepare, timeout)
        else:
            target, blob, backup, audit_id = await prepare

        apply = asyncio.ensure_future(
            _apply(store, landing, target, blob, backup, audit_id, actor, live)
        )
        try:
            return await asyncio.shield(apply)
        except asyncio.CancelledError:
            logger.warning(
                "Rollback of landing %s cancelled mid-swap, finishing before releasing the lock",
                landing.id,
            )
            await apply
            raise


async def _prepare(
    store: SnapshotStore,
    landing: Landing,
    target_version_id: str,
    live: Path,
) -> tuple[Version, bytes, Version | None, str]:
    target = await store.get_version(landing.id, target_version_id)
    blob = await store.read_archive(target)

    audit_id = new_audit_id()
    backup = await store._create_snapshot_locked(
        landing, BACKUP_DESCRIPTION, linked_audit_id=audit_id, live_dir=live
    )
    if backup is None:
        logger.info("Landing %s has no live files, rollback starts from an empty directory", landing.id)
    return target, blob, backup, audit_id


async def _apply(
    store: SnapshotStore,
    landing: Landing,
    target: Version,
    blob: bytes,
    backup: Version | None,
    audit_id: str,
    actor: str,
    live: Path,
) -> RollbackResult:
    await asyncio.to_thread(replace_with_archive, blob, live)

    landing.current_version_id = target.id
    landing.current_version_number = target.sequence_number
    version_ids = [backup.id, target.id] if backup is not None else [target.id]
    entry = record_audit(
        store.db, landing.id, AuditAction.ROLLBACK, actor,
        details=f"Rolled back to version {target.sequence_number}",
        version_ids=version_ids,
        entry_id=audit_id,
    )
    try:
        await store.db.commit()
    except BaseException:
        logger.exception(
            "Landing %s now holds version %s but its pointer could not be saved; "
            "backup version %s is intact",
            landing.id, target.id, backup.id if backup else None,
        )
        await store.db.rollback()
        raise

    store.audit_entries.append(entry)
    logger.info(
        "Rolled back landing %s to version %d (%s), backup %s",
        landing.id, target.sequence_number, target.id, backup.id if backup else "none",
    )
    return RollbackResult(target=target, backup=backup, audit_entry=entry)
