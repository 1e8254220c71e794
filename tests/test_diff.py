"""Tests for the line diff engine."""

from versioning.diff import (
    DiffLine,
    Hunk,
    compute_hunks,
    diff_file_sets,
    format_diff,
)


def _lines(hunk, kind):
    return [dl.line for dl in hunk.lines if dl.type == kind]


class TestDiffFileSets:
    def test_identical_sets_produce_no_diffs(self):
        files = {"index.html": "<h1>A</h1>\n<p>B</p>", "css/site.css": "body {}"}
        assert diff_file_sets(files, dict(files)) == []

    def test_empty_sets(self):
        assert diff_file_sets({}, {}) == []

    def test_added_file(self):
        diffs = diff_file_sets({"a": "L1\nL2"}, {})
        assert len(diffs) == 1
        assert diffs[0].type == "added"
        assert len(diffs[0].hunks) == 1
        assert _lines(diffs[0].hunks[0], "add") == ["L1", "L2"]
        assert diffs[0].hunks[0].new_start == 1

    def test_deleted_file(self):
        diffs = diff_file_sets({}, {"a": "L1\nL2"})
        assert len(diffs) == 1
        assert diffs[0].type == "deleted"
        assert _lines(diffs[0].hunks[0], "remove") == ["L1", "L2"]
        assert diffs[0].hunks[0].old_start == 1

    def test_modified_file(self):
        diffs = diff_file_sets({"index.html": "B"}, {"index.html": "A"})
        assert len(diffs) == 1
        assert diffs[0].type == "modified"
        hunk = diffs[0].hunks[0]
        assert _lines(hunk, "remove") == ["A"]
        assert _lines(hunk, "add") == ["B"]

    def test_unchanged_files_are_omitted(self):
        new = {"index.html": "B", "about.html": "same"}
        old = {"index.html": "A", "about.html": "same"}
        diffs = diff_file_sets(new, old)
        assert [d.path for d in diffs] == ["index.html"]

    def test_output_sorted_by_path(self):
        new = {"z.txt": "1", "a.txt": "1", "m/n.txt": "2"}
        old = {"m/n.txt": "1", "b.txt": "x"}
        diffs = diff_file_sets(new, old)
        assert [d.path for d in diffs] == ["a.txt", "b.txt", "m/n.txt", "z.txt"]
        assert [d.type for d in diffs] == ["added", "deleted", "modified", "added"]

    def test_binary_placeholder_on_both_sides_is_unchanged(self):
        assert diff_file_sets({"logo.png": "[Binary file]"}, {"logo.png": "[Binary file]"}) == []


class TestComputeHunks:
    def test_identical_text(self):
        assert compute_hunks("a\nb\nc", "a\nb\nc") == []

    def test_single_line_replacement(self):
        hunks = compute_hunks("A", "B")
        assert hunks == [Hunk(old_start=1, new_start=1, lines=[
            DiffLine("remove", "A", 1),
            DiffLine("add", "B", 1),
        ])]

    def test_change_closed_by_context_line(self):
        hunks = compute_hunks("a\nb\nc", "a\nB\nc")
        assert hunks == [Hunk(old_start=2, new_start=2, lines=[
            DiffLine("remove", "b", 2),
            DiffLine("add", "B", 2),
            DiffLine("context", "c", 3),
        ])]

    def test_separate_changes_become_separate_hunks(self):
        hunks = compute_hunks("a\nb\nc\nd\ne", "a\nB\nc\nd\nE")
        assert len(hunks) == 2
        assert (hunks[0].old_start, hunks[0].new_start) == (2, 2)
        assert _lines(hunks[0], "context") == ["c"]
        assert (hunks[1].old_start, hunks[1].new_start) == (5, 5)
        assert _lines(hunks[1], "remove") == ["e"]
        assert _lines(hunks[1], "add") == ["E"]
        assert _lines(hunks[1], "context") == []

    def test_unchanged_runs_between_hunks_are_omitted(self):
        hunks = compute_hunks("a\nb\nc\nd\ne\nf", "a\nB\nc\nd\ne\nF")
        context = [dl.line for h in hunks for dl in h.lines if dl.type == "context"]
        assert context == ["c"]
        assert all(dl.line not in {"a", "d", "e"} for h in hunks for dl in h.lines)

    def test_trailing_addition(self):
        hunks = compute_hunks("a", "a\nb")
        assert hunks == [Hunk(old_start=2, new_start=2, lines=[DiffLine("add", "b", 2)])]

    def test_leading_insertion_uses_context(self):
        hunks = compute_hunks("x\ny", "new\nx\ny")
        assert hunks == [Hunk(old_start=1, new_start=1, lines=[
            DiffLine("add", "new", 1),
            DiffLine("context", "x", 2),
        ])]

    def test_removal_in_middle(self):
        hunks = compute_hunks("a\nb\nc", "a\nc")
        assert len(hunks) == 1
        assert _lines(hunks[0], "remove") == ["b"]
        assert _lines(hunks[0], "add") == []
        assert hunks[0].lines[-1] == DiffLine("context", "c", 2)

    def test_line_numbers_are_one_based(self):
        hunks = compute_hunks("1\n2\n3\n4", "1\n2\nthree\n4")
        removed = [dl for dl in hunks[0].lines if dl.type == "remove"]
        added = [dl for dl in hunks[0].lines if dl.type == "add"]
        assert removed[0].line_number == 3
        assert added[0].line_number == 3

    def test_large_input_falls_back_to_full_replacement(self):
        hunks = compute_hunks("a\nb", "a\nc", max_cells=1)
        assert len(hunks) == 1
        assert _lines(hunks[0], "remove") == ["a", "b"]
        assert _lines(hunks[0], "add") == ["a", "c"]

    def test_fallback_on_identical_text_is_empty(self):
        assert compute_hunks("a\nb", "a\nb", max_cells=1) == []


class TestFormatDiff:
    def test_renders_markers(self):
        text = format_diff(diff_file_sets({"index.html": "B"}, {"index.html": "A"}))
        assert "=== index.html (modified)" in text
        assert "@@ -1 +1 @@" in text
        assert "-A" in text
        assert "+B" in text
