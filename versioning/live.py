"""Live-directory access: where a landing's current files are materialized."""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path

from src.config import settings
from versioning import archive

logger = logging.getLogger(__name__)


def landing_dir(landing, root: str | os.PathLike | None = None) -> Path:
    """Return the live directory for a landing (``landings_dir/<slug>``)."""
    slug = landing.slug
    if not slug or slug in {".", ".."} or "/" in slug or "\\" in slug:
        raise ValueError(f"Invalid landing slug: {slug!r}")
    return Path(root if root is not None else settings.landings_dir) / slug


def read_live_files(directory: str | os.PathLike, placeholder: str | None = None) -> dict[str, str]:
    """Read every file under directory as text, keyed by forward-slash relative path.

    A missing directory reads as an empty file set.
    """
    if placeholder is None:
        placeholder = settings.binary_placeholder
    directory = str(directory)
    if not os.path.isdir(directory):
        return {}

    files: dict[str, str] = {}
    for full, entry_name in archive.iter_files(directory):
        with open(full, "rb") as f:
            files[entry_name] = archive.decode_text(f.read(), placeholder)
    return files


def replace_with_archive(blob: bytes, live_dir: str | os.PathLike) -> None:
    """Make live_dir hold exactly the archive's contents.

    The archive is unpacked into a sibling temporary directory first and only
    then renamed into place, so a failed unpack leaves live_dir untouched.
    """
    live = Path(live_dir)
    live.parent.mkdir(parents=True, exist_ok=True)
    token = uuid.uuid4().hex[:8]
    staging = live.with_name(f".{live.name}.rollback-{token}")
    retired = live.with_name(f".{live.name}.old-{token}")

    try:
        archive.unpack(blob, str(staging))
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    had_live = live.exists()
    if had_live:
        os.replace(live, retired)
    try:
        os.replace(staging, live)
    except OSError:
        logger.exception("Swap into %s failed, restoring previous contents", live)
        if had_live:
            os.replace(retired, live)
        shutil.rmtree(staging, ignore_errors=True)
        raise

    if had_live:
        shutil.rmtree(retired, ignore_errors=True)
