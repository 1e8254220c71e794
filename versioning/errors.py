"""Error kinds raised by the versioning engine.

Filesystem and storage failures are not wrapped: they surface as the
built-in ``OSError`` so callers can tell them apart from the domain errors
below.
"""

from __future__ import annotations


class VersioningError(Exception):
    """Base class for versioning engine errors."""
    pass


class NotFoundError(VersioningError):
    """Raised when a landing, version, or diff target does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} {identifier} not found")


class ProtectedVersionError(VersioningError):
    """Raised when deleting a version that carries a tag."""

    def __init__(self, version_id: str, tag: str):
        self.version_id = version_id
        self.tag = tag
        super().__init__(
            f"Version {version_id} is protected by tag '{tag}' — clear the tag before deleting"
        )


class CorruptArchiveError(VersioningError):
    """Raised when an archive blob cannot be read as a zip archive."""
    pass
