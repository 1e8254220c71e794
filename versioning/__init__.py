"""Version snapshot, rollback and diff engine for landings."""

from versioning.archive import pack, unpack, read_entry_text, list_entries_text
from versioning.blobs import ArchiveStore
from versioning.diff import DiffLine, FileDiff, Hunk, compute_hunks, diff_file_sets
from versioning.errors import (
    CorruptArchiveError,
    NotFoundError,
    ProtectedVersionError,
    VersioningError,
)
from versioning.rollback import RollbackResult, rollback
from versioning.store import SnapshotStore, purge_landing

__all__ = [
    "pack", "unpack", "read_entry_text", "list_entries_text",
    "ArchiveStore",
    "DiffLine", "FileDiff", "Hunk", "compute_hunks", "diff_file_sets",
    "CorruptArchiveError", "NotFoundError", "ProtectedVersionError", "VersioningError",
    "RollbackResult", "rollback",
    "SnapshotStore", "purge_landing",
]
