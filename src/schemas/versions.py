"""Pydantic schemas for version endpoints.

Responses are serialised with camelCase keys (``sequenceNumber``,
``compareLabel``...) to match the JSON the landing admin UI consumes.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CompareTo(str, Enum):
    PREVIOUS = "previous"
    CURRENT = "current"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class VersionCreate(BaseModel):
    description: str | None = None


class VersionUpdate(BaseModel):
    description: str | None = None
    tag: str | None = Field(default=None, max_length=100)


class VersionResponse(CamelModel):
    id: str
    landing_id: str
    sequence_number: int
    description: str
    tag: str | None = None
    is_protected: bool = False
    created_at: datetime
    updated_at: datetime | None = None
    size_bytes: int
    linked_audit_id: str | None = None


class PreviewResponse(CamelModel):
    content: str


class DiffLineResponse(CamelModel):
    type: str           # add, remove, context
    line: str
    line_number: int


class HunkResponse(CamelModel):
    old_start: int
    new_start: int
    lines: list[DiffLineResponse] = []


class FileDiffResponse(CamelModel):
    path: str
    type: str           # added, deleted, modified
    hunks: list[HunkResponse] = []


class DiffResponse(CamelModel):
    version: VersionResponse
    compare_label: str
    diffs: list[FileDiffResponse] = []


class RollbackResponse(CamelModel):
    success: bool
    message: str
    backup_version_id: str | None = None
    current_version_id: str
    current_version_number: int


class DeleteResponse(CamelModel):
    success: bool


class AuditEntryResponse(CamelModel):
    id: str
    landing_id: str
    action: str
    actor: str
    details: str | None = None
    version_ids: list[str] = []
    created_at: datetime


class AuditPageResponse(CamelModel):
    entries: list[AuditEntryResponse] = []
    total: int
    has_more: bool
