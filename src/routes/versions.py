"""Version endpoints — snapshot, list, preview, diff, rollback, tag and delete landing versions."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.schemas.versions import (
    AuditEntryResponse,
    AuditPageResponse,
    CompareTo,
    DeleteResponse,
    DiffResponse,
    FileDiffResponse,
    PreviewResponse,
    RollbackResponse,
    VersionCreate,
    VersionResponse,
    VersionUpdate,
)
from versioning.audit import audit_payload, list_audit
from versioning.errors import (
    CorruptArchiveError,
    NotFoundError,
    ProtectedVersionError,
    VersioningError,
)
from versioning.notify import emit_audit_event
from versioning.rollback import rollback as rollback_landing
from versioning.store import SnapshotStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/versions", tags=["versions"])


def get_store(db: AsyncSession = Depends(get_db)) -> SnapshotStore:
    return SnapshotStore(db)


def _to_http(exc: VersioningError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ProtectedVersionError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, CorruptArchiveError):
        logger.error("Corrupt archive: %s", exc)
        return HTTPException(status_code=500, detail=f"Version archive is corrupt: {exc}")
    return HTTPException(status_code=500, detail=str(exc))


def _forward_audit(background_tasks: BackgroundTasks, store: SnapshotStore) -> None:
    for entry in store.audit_entries:
        background_tasks.add_task(emit_audit_event, audit_payload(entry))


@router.get("/{landing_id}", response_model=list[VersionResponse])
async def list_versions(landing_id: str, store: SnapshotStore = Depends(get_store)):
    """List all versions of a landing, newest first."""
    try:
        await store.get_landing(landing_id)
    except VersioningError as e:
        raise _to_http(e) from e
    versions = await store.list_versions(landing_id)
    return [VersionResponse.model_validate(v) for v in versions]


@router.post("/{landing_id}", response_model=VersionResponse, status_code=201)
async def create_version(
    landing_id: str,
    body: VersionCreate,
    background_tasks: BackgroundTasks,
    actor: str = Header(default="api", alias="X-Actor"),
    store: SnapshotStore = Depends(get_store),
):
    """Take a manual snapshot of the landing's live files."""
    try:
        landing = await store.get_landing(landing_id)
    except VersioningError as e:
        raise _to_http(e) from e

    version = await store.create_snapshot(
        landing, body.description or "Manual snapshot", actor=actor
    )
    if version is None:
        raise HTTPException(status_code=400, detail="Could not create version: landing has no files")

    _forward_audit(background_tasks, store)
    return VersionResponse.model_validate(version)


@router.get("/{landing_id}/audit", response_model=AuditPageResponse)
async def get_audit_log(
    landing_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: SnapshotStore = Depends(get_store),
):
    """Page through the landing's audit entries, newest first."""
    try:
        await store.get_landing(landing_id)
    except VersioningError as e:
        raise _to_http(e) from e

    entries, total = await list_audit(store.db, landing_id, limit=limit, offset=offset)
    return AuditPageResponse(
        entries=[AuditEntryResponse.model_validate(audit_payload(e)) for e in entries],
        total=total,
        has_more=offset + limit < total,
    )


@router.get("/{landing_id}/{version_id}", response_model=VersionResponse)
async def get_version(landing_id: str, version_id: str, store: SnapshotStore = Depends(get_store)):
    """Get a single version by ID."""
    try:
        version = await store.get_version(landing_id, version_id)
    except VersioningError as e:
        raise _to_http(e) from e
    return VersionResponse.model_validate(version)


@router.get("/{landing_id}/{version_id}/preview", response_model=PreviewResponse)
async def preview_version(landing_id: str, version_id: str, store: SnapshotStore = Depends(get_store)):
    """Return the primary HTML entry of a version."""
    try:
        content = await store.preview(landing_id, version_id)
    except VersioningError as e:
        raise _to_http(e) from e
    if content is None:
        raise HTTPException(status_code=404, detail="Version content not found or not HTML")
    return PreviewResponse(content=content)


@router.get("/{landing_id}/{version_id}/diff", response_model=DiffResponse)
async def diff_version(
    landing_id: str,
    version_id: str,
    compare_to: CompareTo = Query(default=CompareTo.CURRENT, alias="compareTo"),
    store: SnapshotStore = Depends(get_store),
):
    """Diff a version against its predecessor or against the live files."""
    try:
        landing = await store.get_landing(landing_id)
        version, label, diffs = await store.compare(landing, version_id, compare_to.value)
    except VersioningError as e:
        raise _to_http(e) from e

    return DiffResponse(
        version=VersionResponse.model_validate(version),
        compare_label=label,
        diffs=[FileDiffResponse.model_validate(d) for d in diffs],
    )


@router.post("/{landing_id}/{version_id}/rollback", response_model=RollbackResponse)
async def rollback_version(
    landing_id: str,
    version_id: str,
    background_tasks: BackgroundTasks,
    actor: str = Header(default="api", alias="X-Actor"),
    store: SnapshotStore = Depends(get_store),
):
    """Restore the landing's live files to a version, backing up the current state first."""
    try:
        landing = await store.get_landing(landing_id)
        result = await rollback_landing(store, landing, version_id, actor=actor)
    except VersioningError as e:
        raise _to_http(e) from e
    except asyncio.TimeoutError as e:
        raise HTTPException(status_code=504, detail="Rollback timed out") from e

    _forward_audit(background_tasks, store)
    logger.info("Rolled back landing %s to version %s", landing_id, version_id)
    return RollbackResponse(
        success=True,
        message=result.message,
        backup_version_id=result.backup.id if result.backup else None,
        current_version_id=landing.current_version_id,
        current_version_number=landing.current_version_number,
    )


@router.patch("/{landing_id}/{version_id}", response_model=VersionResponse)
async def update_version(
    landing_id: str,
    version_id: str,
    body: VersionUpdate,
    background_tasks: BackgroundTasks,
    actor: str = Header(default="api", alias="X-Actor"),
    store: SnapshotStore = Depends(get_store),
):
    """Update a version's description and/or tag. A null or empty tag lifts protection."""
    try:
        version = await store.update_metadata(
            landing_id, version_id, body.model_dump(exclude_unset=True), actor=actor
        )
    except VersioningError as e:
        raise _to_http(e) from e

    _forward_audit(background_tasks, store)
    return VersionResponse.model_validate(version)


@router.delete("/{landing_id}/{version_id}", response_model=DeleteResponse)
async def delete_version(
    landing_id: str,
    version_id: str,
    background_tasks: BackgroundTasks,
    actor: str = Header(default="api", alias="X-Actor"),
    store: SnapshotStore = Depends(get_store),
):
    """Delete an untagged version."""
    try:
        await store.delete_version(landing_id, version_id, actor=actor)
    except VersioningError as e:
        raise _to_http(e) from e

    _forward_audit(background_tasks, store)
    return DeleteResponse(success=True)
