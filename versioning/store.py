"""Snapshot store — creates, enumerates, updates and deletes landing versions.

Each version is a pair: a zip archive in the ArchiveStore and a ``Version``
row in the database. Both halves are written or removed together; when one
half fails the other is undone and the error is re-raised.

Mutations for one landing are serialised through ``unit_locks``. Sequence
numbers come from a per-landing ``VersionCounter`` row bumped in the same
transaction as the ``Version`` insert, so numbers are never handed out twice
even after deletions.
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.entities.audit_log import AuditLog
from src.entities.landing import Landing
from src.entities.version import Version
from src.entities.version_counter import VersionCounter
from versioning import archive
from versioning.audit import AuditAction, record_audit, new_audit_id
from versioning.blobs import ArchiveStore
from versioning.diff import FileDiff, diff_file_sets
from versioning.errors import NotFoundError, ProtectedVersionError
from versioning.live import landing_dir, read_live_files
from versioning.locks import UnitLocks, unit_locks

logger = logging.getLogger(__name__)

COMPARE_PREVIOUS = "previous"
COMPARE_CURRENT = "current"
NO_PREVIOUS_LABEL = "no previous version"

_MUTABLE_FIELDS = {"description", "tag"}


def new_version_id() -> str:
    return f"ver_{uuid.uuid4().hex[:16]}"


class SnapshotStore:
    def __init__(
        self,
        db: AsyncSession,
        archives: ArchiveStore | None = None,
        locks: UnitLocks = unit_locks,
    ):
        self.db = db
        self.archives = archives or ArchiveStore(settings.versions_dir)
        self.locks = locks
        # Audit entries committed by this store, for callers that forward them
        self.audit_entries: list[AuditLog] = []

    # -- lookups ------------------------------------------------------------

    async def get_landing(self, landing_id: str) -> Landing:
        landing = await self.db.get(Landing, landing_id)
        if landing is None:
            raise NotFoundError("landing", landing_id)
        return landing

    async def list_versions(self, landing_id: str) -> list[Version]:
        """All versions of a landing, newest first."""
        result = await self.db.execute(
            select(Version)
            .where(Version.landing_id == landing_id)
            .order_by(Version.created_at.desc(), Version.sequence_number.desc())
        )
        return list(result.scalars().all())

    async def get_version(self, landing_id: str, version_id: str) -> Version:
        result = await self.db.execute(
            select(Version).where(
                Version.landing_id == landing_id,
                Version.id == version_id,
            )
        )
        version = result.scalar_one_or_none()
        if version is None:
            raise NotFoundError("version", version_id)
        return version

    async def previous_version(self, landing_id: str, version: Version) -> Version | None:
        """The next-older version in newest-first order, or None for the oldest."""
        versions = await self.list_versions(landing_id)
        for idx, candidate in enumerate(versions):
            if candidate.id == version.id:
                return versions[idx + 1] if idx + 1 < len(versions) else None
        return None

    # -- archive reads ------------------------------------------------------

    async def read_archive(self, version: Version) -> bytes:
        return await asyncio.to_thread(self.archives.get, version.landing_id, version.id)

    async def version_files(self, version: Version) -> dict[str, str]:
        blob = await self.read_archive(version)
        return await asyncio.to_thread(
            archive.list_entries_text, blob, settings.binary_placeholder
        )

    async def preview(self, landing_id: str, version_id: str) -> str | None:
        """Text of the version's primary HTML entry, or None if it has none."""
        version = await self.get_version(landing_id, version_id)
        blob = await self.read_archive(version)
        return await asyncio.to_thread(archive.read_entry_text, blob, settings.preview_entry)

    # -- create -------------------------------------------------------------

    async def create_snapshot(
        self,
        landing: Landing,
        description: str = "",
        linked_audit_id: str | None = None,
        live_dir: str | os.PathLike | None = None,
        actor: str | None = None,
    ) -> Version | None:
        """Archive the landing's live files as a new version and point the landing at it.

        Returns None when the live directory does not exist. When ``actor`` is
        given a ``snapshot`` audit entry is written alongside the version.
        """
        async with self.locks.hold(landing.id):
            return await self._create_snapshot_locked(
                landing, description, linked_audit_id, live_dir, actor
            )

    async def _next_sequence(self, landing_id: str) -> int:
        counter = await self.db.get(
            VersionCounter, landing_id, with_for_update=True, populate_existing=True
        )
        if counter is None:
            # Seed from whatever versions predate the counter row
            highest = await self.db.scalar(
                select(func.max(Version.sequence_number)).where(Version.landing_id == landing_id)
            )
            counter = VersionCounter(landing_id=landing_id, last_sequence=highest or 0)
            self.db.add(counter)
        counter.last_sequence += 1
        return counter.last_sequence

    async def _create_snapshot_locked(
        self,
        landing: Landing,
        description: str = "",
        linked_audit_id: str | None = None,
        live_dir: str | os.PathLike | None = None,
        actor: str | None = None,
    ) -> Version | None:
        live = Path(live_dir) if live_dir is not None else landing_dir(landing)
        if not live.is_dir():
            logger.info("Nothing to snapshot for landing %s: %s does not exist", landing.id, live)
            return None

        landing_id = landing.id
        blob = await asyncio.to_thread(archive.pack, str(live))
        version_id = new_version_id()
        size = await asyncio.to_thread(self.archives.put, landing_id, version_id, blob)

        entry = None
        try:
            sequence = await self._next_sequence(landing_id)
            if actor is not None and linked_audit_id is None:
                linked_audit_id = new_audit_id()
            version = Version(
                id=version_id,
                landing_id=landing_id,
                sequence_number=sequence,
                description=description or "",
                size_bytes=size,
                linked_audit_id=linked_audit_id,
            )
            self.db.add(version)
            landing.current_version_id = version_id
            landing.current_version_number = sequence
            if actor is not None:
                entry = record_audit(
                    self.db, landing_id, AuditAction.SNAPSHOT, actor,
                    details=f"Created version {sequence}" + (f": {description}" if description else ""),
                    version_ids=[version_id],
                    entry_id=linked_audit_id,
                )
            await self.db.commit()
        except BaseException:
            # Includes cancellation, which would otherwise strand the archive
            logger.exception(
                "Version metadata write failed for landing %s, removing archive %s",
                landing_id, version_id,
            )
            await self.db.rollback()
            await asyncio.to_thread(self.archives.delete, landing_id, version_id)
            raise

        if entry is not None:
            self.audit_entries.append(entry)
        logger.info(
            "Created version %d (%s) for landing %s, %d bytes",
            sequence, version_id, landing_id, size,
        )
        return version

    # -- metadata -----------------------------------------------------------

    async def update_metadata(
        self, landing_id: str, version_id: str, changes: dict, actor: str = "system"
    ) -> Version:
        """Apply a partial update of description and/or tag.

        An empty or None tag lifts protection.
        """
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Immutable or unknown version fields: {sorted(unknown)}")

        async with self.locks.hold(landing_id):
            version = await self.get_version(landing_id, version_id)
            if "description" in changes:
                version.description = changes["description"] or ""
            if "tag" in changes:
                version.tag = changes["tag"] or None
            version.updated_at = datetime.now(timezone.utc)

            entry = record_audit(
                self.db, landing_id, AuditAction.UPDATE_VERSION, actor,
                details=f"Updated version {version.sequence_number}: {', '.join(sorted(changes)) or 'no fields'}",
                version_ids=[version_id],
            )
            await self.db.commit()
            self.audit_entries.append(entry)
            return version

    # -- delete -------------------------------------------------------------

    async def delete_version(self, landing_id: str, version_id: str, actor: str = "system") -> None:
        """Delete one untagged version's metadata and archive.

        Raises NotFoundError if it does not exist and ProtectedVersionError if
        it is tagged. Deleting the landing's current version clears the
        landing's pointer.
        """
        async with self.locks.hold(landing_id):
            version = await self.get_version(landing_id, version_id)
            if version.tag:
                raise ProtectedVersionError(version_id, version.tag)

            staged = await asyncio.to_thread(self.archives.stage_delete, landing_id, version_id)
            if staged is None:
                logger.warning("Version %s of landing %s had no archive", version_id, landing_id)

            try:
                landing = await self.db.get(Landing, landing_id)
                if landing is not None and landing.current_version_id == version_id:
                    landing.current_version_id = None
                    landing.current_version_number = None
                sequence = version.sequence_number
                await self.db.delete(version)
                entry = record_audit(
                    self.db, landing_id, AuditAction.DELETE_VERSION, actor,
                    details=f"Deleted version {sequence}",
                    version_ids=[version_id],
                )
                await self.db.commit()
            except BaseException:
                logger.exception("Deleting version %s failed, restoring its archive", version_id)
                await self.db.rollback()
                if staged is not None:
                    await asyncio.to_thread(self.archives.restore, staged, landing_id, version_id)
                raise

            if staged is not None:
                await asyncio.to_thread(self.archives.purge, staged)
            self.audit_entries.append(entry)
            logger.info("Deleted version %d (%s) of landing %s", sequence, version_id, landing_id)

    async def delete_all_versions(self, landing_id: str) -> int:
        """Remove every version of a landing regardless of tags. Returns the count."""
        async with self.locks.hold(landing_id):
            result = await self.db.execute(
                delete(Version).where(Version.landing_id == landing_id)
            )
            await self.db.commit()
            await asyncio.to_thread(self.archives.delete_all, landing_id)
            logger.info("Removed %d version(s) of landing %s", result.rowcount, landing_id)
            return result.rowcount or 0

    async def sweep_orphans(self, landing_id: str) -> list[str]:
        """Remove archives that have no metadata row (left by an interrupted create)."""
        async with self.locks.hold(landing_id):
            known = set(
                (await self.db.execute(
                    select(Version.id).where(Version.landing_id == landing_id)
                )).scalars().all()
            )
            stored = await asyncio.to_thread(self.archives.list_version_ids, landing_id)
            orphans = [vid for vid in stored if vid not in known]
            for vid in orphans:
                logger.warning("Removing orphan archive %s of landing %s", vid, landing_id)
                await asyncio.to_thread(self.archives.delete, landing_id, vid)
            return orphans

    # -- compare ------------------------------------------------------------

    async def compare(
        self,
        landing: Landing,
        version_id: str,
        compare_to: str = COMPARE_CURRENT,
        live_dir: str | os.PathLike | None = None,
    ) -> tuple[Version, str, list[FileDiff]]:
        """Diff a version against its predecessor or against the live files.

        Returns (version, compare_label, file_diffs). With ``previous`` the
        version is the new side; with ``current`` the live files are.
        """
        version = await self.get_version(landing.id, version_id)
        version_files = await self.version_files(version)

        if compare_to == COMPARE_PREVIOUS:
            previous = await self.previous_version(landing.id, version)
            if previous is None:
                return version, NO_PREVIOUS_LABEL, []
            previous_files = await self.version_files(previous)
            diffs = diff_file_sets(version_files, previous_files, max_cells=settings.max_diff_cells)
            return version, f"v{previous.sequence_number}", diffs

        if compare_to != COMPARE_CURRENT:
            raise ValueError(f"compare_to must be '{COMPARE_PREVIOUS}' or '{COMPARE_CURRENT}'")

        live = live_dir if live_dir is not None else landing_dir(landing)
        live_files = await asyncio.to_thread(read_live_files, live, settings.binary_placeholder)
        diffs = diff_file_sets(live_files, version_files, max_cells=settings.max_diff_cells)
        return version, COMPARE_CURRENT, diffs


async def purge_landing(db: AsyncSession, landing: Landing, archives: ArchiveStore | None = None) -> int:
    """Tear down all version state of a landing: versions, archives and counter."""
    store = SnapshotStore(db, archives)
    removed = await store.delete_all_versions(landing.id)
    await db.execute(delete(VersionCounter).where(VersionCounter.landing_id == landing.id))
    landing.current_version_id = None
    landing.current_version_number = None
    await db.commit()
    return removed
