"""Archive codec — packs a directory tree into a zip blob and back.

Entry names always use forward slashes regardless of the host platform, so
an archive written on one system unpacks identically on another.
"""

from __future__ import annotations

import io
import os
import zipfile
import zlib

from versioning.errors import CorruptArchiveError

BINARY_PLACEHOLDER = "[Binary file]"

_READ_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, ValueError)


def decode_text(data: bytes, placeholder: str = BINARY_PLACEHOLDER) -> str:
    """Decode bytes as UTF-8, or return the placeholder for binary content."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return placeholder


def iter_files(source_dir: str):
    """Yield (absolute_path, entry_name) for every regular file under source_dir, sorted."""
    for root, dirs, files in os.walk(source_dir, onerror=_raise):
        dirs.sort()
        for name in sorted(files):
            full = os.path.join(root, name)
            if os.path.islink(full) or not os.path.isfile(full):
                continue
            rel = os.path.relpath(full, source_dir)
            yield full, rel.replace(os.sep, "/")


def _raise(err: OSError) -> None:
    raise err


def pack(source_dir: str) -> bytes:
    """Serialize every regular file under source_dir into one zip blob."""
    if not os.path.isdir(source_dir):
        raise FileNotFoundError(f"Source directory {source_dir} does not exist")

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zipf:
        for full, entry_name in iter_files(source_dir):
            with open(full, "rb") as f:
                zipf.writestr(entry_name, f.read())
    return buf.getvalue()


def _open(archive: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(archive))
    except _READ_ERRORS as e:
        raise CorruptArchiveError(f"Not a readable archive: {e}") from e


def unpack(archive: bytes, dest_dir: str) -> None:
    """Extract every entry into dest_dir, creating subdirectories and overwriting files."""
    os.makedirs(dest_dir, exist_ok=True)
    with _open(archive) as zipf:
        try:
            zipf.extractall(dest_dir)
        except _READ_ERRORS as e:
            raise CorruptArchiveError(f"Archive extraction failed: {e}") from e


def read_entry_text(archive: bytes, entry_name: str) -> str | None:
    """Return the decoded text of one entry, or None if it is absent or binary."""
    with _open(archive) as zipf:
        try:
            data = zipf.read(entry_name)
        except KeyError:
            return None
        except _READ_ERRORS as e:
            raise CorruptArchiveError(f"Cannot read entry {entry_name}: {e}") from e
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def list_entries_text(archive: bytes, placeholder: str = BINARY_PLACEHOLDER) -> dict[str, str]:
    """Decode every file entry as text; binary entries map to the placeholder."""
    files: dict[str, str] = {}
    with _open(archive) as zipf:
        for info in zipf.infolist():
            if info.is_dir():
                continue
            try:
                data = zipf.read(info)
            except _READ_ERRORS as e:
                raise CorruptArchiveError(f"Cannot read entry {info.filename}: {e}") from e
            files[info.filename] = decode_text(data, placeholder)
    return files
