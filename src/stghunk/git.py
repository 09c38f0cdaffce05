"""Git plumbing used by stghunk: diff source and index blob access."""

from __future__ import annotations

import subprocess
from pathlib import Path

from stghunk.config import StgHunkConfig
from stghunk.diff_ref import DiffRef
from stghunk.engine import BlobIndex
from stghunk.models import IndexEntry, PatchStatus


class GitError(RuntimeError):
    """A git command failed or git could not be run."""


def decode(data: bytes) -> str:
    """Decode git output; undecodable bytes survive a later :func:`encode`."""
    return data.decode("utf-8", "surrogateescape")


def encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


class GitRepo:
    """Runs git commands inside one repository working directory."""

    def __init__(
        self,
        cwd: str | Path = ".",
        executable: str = "git",
        context_lines: int = 3,
        renames: bool = False,
    ) -> None:
        self.cwd = Path(cwd)
        self.executable = executable
        self.context_lines = context_lines
        self.renames = renames

    @classmethod
    def from_config(cls, config: StgHunkConfig, cwd: str | Path = ".") -> GitRepo:
        return cls(
            cwd=cwd,
            executable=config.git_executable,
            context_lines=config.context_lines,
            renames=config.renames,
        )

    def run(
        self, args: list[str], stdin: str | None = None, check: bool = True
    ) -> subprocess.CompletedProcess[bytes]:
        """Run ``git <args>`` and capture its raw output.

        Output stays bytes so line terminators reach the caller untranslated.

        Raises:
            GitError: If git exits with an error (when ``check`` is set) or
                cannot be started.
        """
        cmd = [self.executable, *args]
        try:
            return subprocess.run(
                cmd,
                input=encode(stdin) if stdin is not None else None,
                capture_output=True,
                check=check,
                cwd=self.cwd,
            )
        except subprocess.CalledProcessError as e:
            stderr = decode(e.stderr or b"").strip()
            raise GitError(f"git {' '.join(args)} failed: {stderr}") from e
        except FileNotFoundError as e:
            raise GitError(f"{self.executable} is not installed or not in PATH") from e

    def output(self, args: list[str], stdin: str | None = None) -> str:
        return decode(self.run(args, stdin=stdin).stdout)

    def diff(self, ref: DiffRef) -> str:
        """Return the unified diff a ref addresses (without split points).

        Args:
            ref: Which diff to produce: work tree, index, commit or a merge
                stage of a conflicted file.

        Returns:
            The raw ``git diff`` output.
        """
        args = ["diff", "--no-color", "--no-ext-diff", f"--unified={self.context_lines}"]
        if not self.renames:
            args.append("--no-renames")

        if ref.diffmode in ("12", "13"):
            # Compare two stages of a conflicted index entry.
            return self.output(args + [f":1:{ref.file}", f":{ref.diffmode[1]}:{ref.file}"])

        stat = None
        if ref.diffmode is not None:
            args.append(f"-{ref.diffmode}")
        elif ref.index:
            args.append("--cached")
        elif ref.sha is not None:
            args += [f"{ref.sha}^", ref.sha]
            if ref.file is None:
                stat = self.output(["show", "--stat", ref.sha])
        if ref.file is not None:
            args += ["--", ref.file]

        diff = self.output(args)
        if stat is not None:
            return "\n".join([stat, diff])
        return diff

    def is_tracked(self, path: str) -> bool:
        result = self.run(["ls-files", "--error-unmatch", "--", path], check=False)
        return result.returncode == 0

    @property
    def index(self) -> GitIndex:
        return GitIndex(self)


class GitIndex(BlobIndex):
    """Index blob accessor backed by ``git ls-files`` / ``git update-index``."""

    def __init__(self, repo: GitRepo) -> None:
        self.repo = repo

    def stages(self, path: str) -> list[tuple[str, str, int]]:
        """Return ``(mode, sha, stage)`` for every index entry of ``path``."""
        output = self.repo.output(["ls-files", "-s", "-z", "--", path])
        entries = []
        for record in output.split("\0"):
            meta, sep, name = record.partition("\t")
            if not sep or name != path:
                continue
            mode, sha, stage = meta.split(" ")
            entries.append((mode, sha, int(stage)))
        return entries

    def read_blob(self, path: str) -> IndexEntry | PatchStatus:
        stages = self.stages(path)
        if not stages:
            return PatchStatus.NO_SUCH_FILE
        if any(stage != 0 for _, _, stage in stages):
            return PatchStatus.UNMERGED
        mode, sha, _ = stages[0]
        text = self.repo.output(["cat-file", "blob", sha])
        return IndexEntry(path=path, mode=mode, sha=sha, text=text)

    def write_blob(self, path: str, text: str, mode: str) -> None:
        sha = self.repo.output(["hash-object", "-w", "--stdin"], stdin=text).strip()
        self.repo.run(["update-index", "--cacheinfo", mode, sha, path])
