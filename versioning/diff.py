"""Line diff engine — compares two file sets and aligns changed files with an LCS table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_MAX_CELLS = 4_000_000


@dataclass
class DiffLine:
    type: str           # add, remove, context
    line: str
    line_number: int    # old-side number for removes, new-side number otherwise


@dataclass
class Hunk:
    old_start: int      # 1-based; 0 when the old side is empty
    new_start: int      # 1-based; 0 when the new side is empty
    lines: list[DiffLine] = field(default_factory=list)


@dataclass
class FileDiff:
    path: str
    type: str           # added, deleted, modified
    hunks: list[Hunk]


def split_lines(text: str) -> list[str]:
    return text.split("\n")


def _lcs_matches(old: list[str], new: list[str]) -> list[tuple[int, int]]:
    """Return matched (old_index, new_index) pairs in ascending order."""
    n, m = len(old), len(new)
    dp = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(1, n + 1):
        row, prev = dp[i], dp[i - 1]
        old_line = old[i - 1]
        for j in range(1, m + 1):
            if old_line == new[j - 1]:
                row[j] = prev[j - 1] + 1
            else:
                row[j] = prev[j] if prev[j] >= row[j - 1] else row[j - 1]

    matches: list[tuple[int, int]] = []
    i, j = n, m
    while i > 0 and j > 0:
        if old[i - 1] == new[j - 1]:
            matches.append((i - 1, j - 1))
            i -= 1
            j -= 1
        elif dp[i - 1][j] >= dp[i][j - 1]:
            i -= 1
        else:
            j -= 1
    matches.reverse()
    return matches


def _replace_all(old: list[str], new: list[str]) -> list[Hunk]:
    hunk = Hunk(old_start=1 if old else 0, new_start=1 if new else 0)
    hunk.lines.extend(DiffLine("remove", line, i + 1) for i, line in enumerate(old))
    hunk.lines.extend(DiffLine("add", line, i + 1) for i, line in enumerate(new))
    return [hunk]


def compute_hunks(old_text: str, new_text: str, max_cells: int = DEFAULT_MAX_CELLS) -> list[Hunk]:
    """Compute line hunks between two texts.

    Each hunk gathers a run of removed and added lines and is closed by the
    next matched line, which is kept as its single context entry. Matched
    lines that do not directly follow a change belong to no hunk and are
    left out of the result. Unmatched lines after the last match form a
    trailing hunk without context.
    """
    old = split_lines(old_text)
    new = split_lines(new_text)

    if max_cells and len(old) * len(new) > max_cells:
        logger.debug(
            "LCS table of %dx%d exceeds %d cells, diffing as full replacement",
            len(old), len(new), max_cells,
        )
        return _replace_all(old, new) if old != new else []

    hunks: list[Hunk] = []
    current: Hunk | None = None
    oi = ni = 0

    for mi, mj in _lcs_matches(old, new):
        if oi < mi or ni < mj:
            if current is None:
                current = Hunk(old_start=oi + 1, new_start=ni + 1)
            while oi < mi:
                current.lines.append(DiffLine("remove", old[oi], oi + 1))
                oi += 1
            while ni < mj:
                current.lines.append(DiffLine("add", new[ni], ni + 1))
                ni += 1
        if current is not None:
            current.lines.append(DiffLine("context", new[mj], mj + 1))
            hunks.append(current)
            current = None
        oi, ni = mi + 1, mj + 1

    if oi < len(old) or ni < len(new):
        current = Hunk(old_start=oi + 1, new_start=ni + 1)
        current.lines.extend(DiffLine("remove", old[k], k + 1) for k in range(oi, len(old)))
        current.lines.extend(DiffLine("add", new[k], k + 1) for k in range(ni, len(new)))
        hunks.append(current)

    return hunks


def diff_file_sets(
    new_files: dict[str, str],
    old_files: dict[str, str],
    max_cells: int = DEFAULT_MAX_CELLS,
) -> list[FileDiff]:
    """Compare two path→text maps. Unchanged files are omitted; output is sorted by path."""
    diffs: list[FileDiff] = []

    for path in sorted(set(new_files) | set(old_files)):
        if path not in new_files:
            lines = split_lines(old_files[path])
            hunk = Hunk(old_start=1, new_start=0, lines=[
                DiffLine("remove", line, i + 1) for i, line in enumerate(lines)
            ])
            diffs.append(FileDiff(path=path, type="deleted", hunks=[hunk]))
            continue

        if path not in old_files:
            lines = split_lines(new_files[path])
            hunk = Hunk(old_start=0, new_start=1, lines=[
                DiffLine("add", line, i + 1) for i, line in enumerate(lines)
            ])
            diffs.append(FileDiff(path=path, type="added", hunks=[hunk]))
            continue

        if new_files[path] == old_files[path]:
            continue

        hunks = compute_hunks(old_files[path], new_files[path], max_cells=max_cells)
        if hunks:
            diffs.append(FileDiff(path=path, type="modified", hunks=hunks))

    return diffs


def format_diff(diffs: list[FileDiff]) -> str:
    """Render file diffs as plain text in a unified-diff-like layout."""
    out: list[str] = []
    markers = {"add": "+", "remove": "-", "context": " "}
    for fd in diffs:
        out.append(f"=== {fd.path} ({fd.type})")
        for hunk in fd.hunks:
            out.append(f"@@ -{hunk.old_start} +{hunk.new_start} @@")
            out.extend(f"{markers[dl.type]}{dl.line}" for dl in hunk.lines)
    return "\n".join(out)
