"""Shared test fixtures for stghunk tests."""

import shutil
import subprocess

import pytest

from stghunk.document import LinesDocument

SIMPLE_DIFF = """\
--- a/f.txt
+++ b/f.txt
@@ -1,3 +1,3 @@
 one
-two
+TWO
 three
"""


def run_git(cwd, *args, raw=False):
    """Run git in ``cwd``; ``raw`` returns stdout as untranslated bytes."""
    return subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=not raw,
    ).stdout


@pytest.fixture
def simple_diff():
    return SIMPLE_DIFF


@pytest.fixture
def simple_diff_doc():
    return LinesDocument.from_text(SIMPLE_DIFF)


@pytest.fixture
def git_repo(tmp_path):
    """An empty git repository with a committer identity configured."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    run_git(tmp_path, "init", "-q")
    run_git(tmp_path, "config", "user.name", "Test User")
    run_git(tmp_path, "config", "user.email", "test@example.com")
    run_git(tmp_path, "config", "commit.gpgsign", "false")
    run_git(tmp_path, "config", "core.autocrlf", "false")
    return tmp_path


@pytest.fixture
def git(git_repo):
    """Run a git command inside ``git_repo`` and return its stdout."""

    def _git(*args, raw=False):
        return run_git(git_repo, *args, raw=raw)

    return _git
