"""Tests for filter-only mode."""

import os
import stat

import pytest

from sb_log_analyzer.filter_only import filter_file, filter_lines, remove_lines


class TestRemoveLines:
    def test_removes_any_listed_substring(self):
        lines = ["keep", "has foo inside", "has bar", "also keep"]
        assert list(remove_lines(lines, ["foo", "bar"])) == ["keep", "also keep"]

    def test_empty_entries_ignored(self):
        assert list(remove_lines(["a", "b"], ["", "b"])) == ["a"]

    def test_no_removals(self):
        assert list(remove_lines(["a", "", "b"], [])) == ["a", "", "b"]


class TestFilterLines:
    def test_removal_then_blank_collapse(self):
        lines = ["a", "foo", "b", "", "", "c"]
        assert list(filter_lines(lines, ["foo", "bar"])) == ["a", "b", "", "c"]

    def test_removed_line_between_blanks_collapses(self):
        lines = ["a", "", "foo", "", "b"]
        assert list(filter_lines(lines, ["foo"])) == ["a", "", "b"]


class TestFilterFile:
    def test_separate_output(self, tmp_path):
        src = tmp_path / "in.txt"
        dst = tmp_path / "out.txt"
        src.write_text("a\nfoo\nb\n\n\nc\n")

        in_place = filter_file(str(src), str(dst), ["foo", "bar"])

        assert in_place is False
        assert dst.read_text() == "a\nb\n\nc\n"
        assert src.read_text() == "a\nfoo\nb\n\n\nc\n"

    def test_in_place(self, tmp_path):
        src = tmp_path / "in.txt"
        src.write_text("x\nremove me\n\n\ny\n")
        os.chmod(src, 0o644)

        in_place = filter_file(str(src), str(src), ["remove"])

        assert in_place is True
        assert src.read_text() == "x\n\ny\n"
        assert stat.S_IMODE(os.stat(src).st_mode) == 0o644
        assert sorted(os.listdir(tmp_path)) == ["in.txt"]

    def test_missing_input(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            filter_file(str(tmp_path / "nope.txt"), str(tmp_path / "out.txt"), ["x"])
