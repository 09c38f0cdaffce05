"""Tests for the CLI entry point (__main__.py)."""

from unittest.mock import patch

import pytest

from stghunk.__main__ import _hunk_at, build_parser, main
from stghunk.git import GitError

# simple_diff, 1-based: 3 = "@@", 4 = " one", 5 = "-two", 6 = "+TWO", 7 = " three"


def _run_main(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.fixture
def work_tree(tmp_path, simple_diff):
    (tmp_path / "f.txt").write_text("one\ntwo\nthree\n")
    diff_file = tmp_path / "change.diff"
    diff_file.write_text(simple_diff)
    return tmp_path, ["--repo", str(tmp_path), "--diff-file", str(diff_file)]


class TestBuildParser:
    def test_show_defaults(self):
        args = build_parser().parse_args(["show"])
        assert args.command == "show"
        assert args.ref is None
        assert args.diff_file is None
        assert args.repo == "."

    def test_line_commands(self):
        parser = build_parser()
        for command in ("apply", "revert", "stage", "unstage", "split", "locate"):
            args = parser.parse_args([command, "--line", "7"])
            assert args.command == command
            assert args.line == 7

    def test_line_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["apply"])

    def test_ref_and_diff_file_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["show", "--ref", "diff#index", "--diff-file", "x.diff"])


class TestHunkAt:
    def test_resolves_hunk_and_header(self, simple_diff):
        hunk, header = _hunk_at(simple_diff, 5)
        assert hunk.line == 2
        assert header.target_path == "f.txt"

    def test_no_hunk(self, simple_diff, capsys):
        assert _hunk_at(simple_diff, 100) is None
        assert "No hunk at line 100" in capsys.readouterr().err


class TestPatchCommands:
    def test_apply(self, work_tree):
        root, source = work_tree
        assert _run_main(["apply", "--line", "5", *source]) == 0
        assert (root / "f.txt").read_text() == "one\nTWO\nthree\n"

    def test_apply_twice(self, work_tree, capsys):
        root, source = work_tree
        _run_main(["apply", "--line", "5", *source])
        assert _run_main(["apply", "--line", "5", *source]) == 0
        assert "already applied" in capsys.readouterr().err
        assert (root / "f.txt").read_text() == "one\nTWO\nthree\n"

    def test_revert(self, work_tree):
        root, source = work_tree
        (root / "f.txt").write_text("one\nTWO\nthree\n")
        assert _run_main(["revert", "--line", "4", *source]) == 0
        assert (root / "f.txt").read_text() == "one\ntwo\nthree\n"

    def test_text_not_found(self, work_tree, capsys):
        root, source = work_tree
        (root / "f.txt").write_text("something else\n")
        assert _run_main(["apply", "--line", "5", *source]) == 1
        assert "Failed to find text to patch" in capsys.readouterr().err

    def test_missing_target_file(self, work_tree, capsys):
        root, source = work_tree
        (root / "f.txt").unlink()
        assert _run_main(["apply", "--line", "5", *source]) == 1
        assert "Cannot open f.txt" in capsys.readouterr().err

    def test_line_outside_any_hunk(self, work_tree):
        _, source = work_tree
        assert _run_main(["apply", "--line", "100", *source]) == 1

    def test_line_must_be_positive(self, work_tree):
        _, source = work_tree
        assert _run_main(["apply", "--line", "0", *source]) == 2


class TestReadCommands:
    def test_show(self, work_tree, simple_diff, capsys):
        _, source = work_tree
        assert _run_main(["show", *source]) == 0
        assert capsys.readouterr().out == simple_diff

    def test_show_empty_diff(self, tmp_path, capsys):
        diff_file = tmp_path / "empty.diff"
        diff_file.write_text("")
        assert _run_main(["show", "--diff-file", str(diff_file)]) == 0
        assert "No changes" in capsys.readouterr().err

    def test_hunks(self, work_tree, capsys):
        _, source = work_tree
        assert _run_main(["hunks", *source]) == 0
        captured = capsys.readouterr()
        assert captured.out == "3\tf.txt\t@@ -1,3 +1,3 @@\n"
        assert "1 hunk(s) in 1 file(s)" in captured.err

    def test_locate(self, work_tree, capsys):
        root, source = work_tree
        (root / "f.txt").write_text("zero\none\ntwo\nthree\n")
        assert _run_main(["locate", "--line", "5", *source]) == 0
        assert capsys.readouterr().out == "f.txt:3\n"


class TestNavigateCommands:
    @pytest.mark.parametrize(
        "command, line, expected",
        [("next", "1", "3\n"), ("next", "2", "3\n"), ("prev", "6", "3\n"), ("next", "3", "8\n")],
    )
    def test_moves_to_hunk_header(self, work_tree, capsys, command, line, expected):
        _, source = work_tree
        assert _run_main([command, "--line", line, *source]) == 0
        assert capsys.readouterr().out == expected

    def test_no_previous_hunk(self, work_tree, capsys):
        _, source = work_tree
        assert _run_main(["prev", "--line", "3", *source]) == 1
        assert "No hunk before line 3" in capsys.readouterr().err


class TestCrlfDiffFile:
    def test_apply_keeps_line_endings(self, tmp_path):
        (tmp_path / "f.txt").write_bytes(b"one\r\ntwo\r\nthree\r\n")
        diff_file = tmp_path / "change.diff"
        diff_file.write_bytes(
            b"--- a/f.txt\n+++ b/f.txt\n@@ -1,3 +1,3 @@\n one\r\n-two\r\n+TWO\r\n three\r\n"
        )
        argv = ["apply", "--line", "3", "--repo", str(tmp_path), "--diff-file", str(diff_file)]
        assert _run_main(argv) == 0
        assert (tmp_path / "f.txt").read_bytes() == b"one\r\nTWO\r\nthree\r\n"


class TestSplitCommand:
    def test_requires_ref(self):
        assert _run_main(["split", "--line", "6"]) == 2

    def test_prints_new_identifier(self, tmp_path, simple_diff, capsys):
        with patch("stghunk.git.GitRepo.diff", return_value=simple_diff):
            code = _run_main(
                ["split", "--repo", str(tmp_path), "--ref", "diff-f.txt#file=f.txt", "--line", "6"]
            )
        assert code == 0
        assert capsys.readouterr().out == "diff-f.txt#file=f.txt,split=5\n"

    def test_removes_existing_point(self, tmp_path, simple_diff, capsys):
        with patch("stghunk.git.GitRepo.diff", return_value=simple_diff):
            code = _run_main(
                ["split", "--repo", str(tmp_path), "--ref", "diff#file=f.txt,split=5", "--line", "6"]
            )
        assert code == 0
        assert capsys.readouterr().out == "diff-f.txt#file=f.txt\n"

    def test_stale_point_is_dropped(self, tmp_path, simple_diff, capsys):
        # 2 is the hunk header, so 5 names line 4 of the shown view.
        with patch("stghunk.git.GitRepo.diff", return_value=simple_diff):
            code = _run_main(
                ["split", "--repo", str(tmp_path), "--ref", "diff#file=f.txt,split=2;5", "--line", "7"]
            )
        assert code == 0
        assert capsys.readouterr().out == "diff-f.txt#file=f.txt,split=4;6\n"

    def test_not_splittable(self, tmp_path, simple_diff, capsys):
        with patch("stghunk.git.GitRepo.diff", return_value=simple_diff):
            code = _run_main(
                ["split", "--repo", str(tmp_path), "--ref", "diff#file=f.txt", "--line", "4"]
            )
        assert code == 1
        assert "not inside a hunk body" in capsys.readouterr().err

    def test_bad_ref(self, tmp_path, capsys):
        assert _run_main(["split", "--repo", str(tmp_path), "--ref", "diff#bogus", "--line", "6"]) == 1
        assert "Unknown diff parameter" in capsys.readouterr().err


class TestMain:
    def test_main_no_command(self):
        assert _run_main([]) == 0

    def test_git_error(self, tmp_path, capsys):
        with patch("stghunk.git.GitRepo.diff", side_effect=GitError("git diff failed: boom")):
            assert _run_main(["show", "--repo", str(tmp_path)]) == 1
        assert "boom" in capsys.readouterr().err

    def test_stage_and_unstage(self, git_repo, git):
        (git_repo / "f.txt").write_text("one\ntwo\nthree\n")
        git("add", "f.txt")
        git("commit", "-q", "-m", "initial")
        (git_repo / "f.txt").write_text("one\nTWO\nthree\n")

        # 1-based line 5 is the "@@" header after "diff --git", "index", "---", "+++"
        assert _run_main(["stage", "--repo", str(git_repo), "--line", "5"]) == 0
        assert git("show", ":f.txt") == "one\nTWO\nthree\n"

        assert _run_main(["unstage", "--repo", str(git_repo), "--line", "5"]) == 0
        assert git("show", ":f.txt") == "one\ntwo\nthree\n"

    def test_show_untracked_file(self, git_repo, git, capsys):
        (git_repo / "new.txt").write_text("x\n")
        code = _run_main(["show", "--repo", str(git_repo), "--ref", "diff-new.txt#file=new.txt"])
        assert code == 0
        assert "not under version control" in capsys.readouterr().err
