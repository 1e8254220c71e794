"""Filesystem archive store: one content.zip per (landing_id, version_id)."""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path

from versioning.errors import NotFoundError

logger = logging.getLogger(__name__)

ARCHIVE_NAME = "content.zip"
_TRASH_PREFIX = ".trash-"


def _check_component(value: str) -> str:
    if not value or value in {".", ".."} or "/" in value or "\\" in value:
        raise ValueError(f"Invalid storage key component: {value!r}")
    return value


class ArchiveStore:
    """Stores archive blobs under ``root/<landing_id>/<version_id>/content.zip``."""

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root)

    def landing_dir(self, landing_id: str) -> Path:
        return self.root / _check_component(landing_id)

    def version_dir(self, landing_id: str, version_id: str) -> Path:
        return self.landing_dir(landing_id) / _check_component(version_id)

    def path_for(self, landing_id: str, version_id: str) -> Path:
        return self.version_dir(landing_id, version_id) / ARCHIVE_NAME

    def exists(self, landing_id: str, version_id: str) -> bool:
        return self.path_for(landing_id, version_id).is_file()

    def put(self, landing_id: str, version_id: str, data: bytes) -> int:
        """Write the archive atomically and return its size in bytes."""
        target = self.path_for(landing_id, version_id)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(f".{ARCHIVE_NAME}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        return target.stat().st_size

    def get(self, landing_id: str, version_id: str) -> bytes:
        path = self.path_for(landing_id, version_id)
        if not path.is_file():
            raise NotFoundError("archive", f"{landing_id}/{version_id}")
        return path.read_bytes()

    def delete(self, landing_id: str, version_id: str) -> bool:
        vdir = self.version_dir(landing_id, version_id)
        if not vdir.exists():
            return False
        shutil.rmtree(vdir)
        return True

    def stage_delete(self, landing_id: str, version_id: str) -> Path | None:
        """Move a version's archive aside so the delete can still be undone.

        Returns the staged path, or None if nothing was stored.
        """
        vdir = self.version_dir(landing_id, version_id)
        if not vdir.exists():
            return None
        staged = vdir.with_name(f"{_TRASH_PREFIX}{version_id}-{uuid.uuid4().hex[:8]}")
        os.replace(vdir, staged)
        return staged

    def restore(self, staged: Path, landing_id: str, version_id: str) -> None:
        os.replace(staged, self.version_dir(landing_id, version_id))

    def purge(self, staged: Path) -> None:
        try:
            shutil.rmtree(staged)
        except OSError as e:
            # The metadata is already gone; a leftover trash dir is inert.
            logger.warning("Could not purge staged archive %s: %s", staged, e)

    def delete_all(self, landing_id: str) -> bool:
        ldir = self.landing_dir(landing_id)
        if not ldir.exists():
            return False
        shutil.rmtree(ldir)
        return True

    def list_version_ids(self, landing_id: str) -> list[str]:
        ldir = self.landing_dir(landing_id)
        if not ldir.is_dir():
            return []
        return sorted(
            p.name for p in ldir.iterdir()
            if p.is_dir() and not p.name.startswith(".")
        )
