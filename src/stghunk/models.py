"""Data models for stghunk."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class LineKind(str, Enum):
    """Classification of a unified-diff body line by its prefix."""

    CONTEXT = " "
    ADDED = "+"
    REMOVED = "-"
    NO_NEWLINE = "\\"


class PatchStatus(str, Enum):
    """Outcome of a patch engine operation."""

    APPLIED = "applied"
    ALREADY_APPLIED = "already-applied"
    ALREADY_STAGED = "already-staged"
    NOT_FOUND = "not-found"
    NO_SUCH_FILE = "no-such-file"
    UNMERGED = "unmerged"


_STATUS_MESSAGES = {
    PatchStatus.APPLIED: "Hunk applied",
    PatchStatus.ALREADY_APPLIED: "Patch already applied!",
    PatchStatus.ALREADY_STAGED: "Hunk already staged!",
    PatchStatus.NOT_FOUND: "Failed to find text to patch",
    PatchStatus.NO_SUCH_FILE: "File is not in the index",
    PatchStatus.UNMERGED: "File is unmerged",
}


@dataclass(frozen=True)
class DiffHeader:
    """The ``--- / +++`` path pair preceding a run of hunks."""

    from_path: str
    to_path: str

    @property
    def target_path(self) -> str:
        """Path of the file the hunks patch (the old path for deletions)."""
        if self.to_path == "/dev/null":
            return self.from_path
        return self.to_path


@dataclass(frozen=True)
class HunkText:
    """One side (old or new) of a hunk.

    ``line_map`` holds one entry per raw body line: the index into ``text``
    that the body line projects onto, whether or not it belongs to this side.
    """

    src_line: int
    text: tuple[str, ...]
    line_map: tuple[int, ...]
    missing_newline: bool = False

    @property
    def count(self) -> int:
        return len(self.text)

    @property
    def header_start(self) -> int:
        """The 1-based start field as written in a hunk header."""
        return self.src_line if not self.text else self.src_line + 1

    @property
    def header_range(self) -> str:
        if self.count == 1:
            return str(self.header_start)
        return f"{self.header_start},{self.count}"


@dataclass(frozen=True)
class Hunk:
    """A parsed hunk.

    ``line`` is the position of the ``@@`` header in the diff text and
    ``num_hunk_lines`` counts the header plus every body line.
    """

    line: int
    from_text: HunkText
    to_text: HunkText
    num_hunk_lines: int
    section: str = ""

    @property
    def end_line(self) -> int:
        return self.line + self.num_hunk_lines

    @property
    def header(self) -> str:
        """Header rebuilt from both sides' computed starts and counts."""
        header = f"@@ -{self.from_text.header_range} +{self.to_text.header_range} @@"
        return header + self.section

    def contains(self, line: int) -> bool:
        return self.line <= line < self.end_line


@dataclass
class DiffFile:
    """A single file within a diff, with its parsed hunks."""

    header: DiffHeader
    hunks: list[Hunk] = field(default_factory=list)

    @property
    def path(self) -> str:
        return self.header.target_path


@dataclass(frozen=True)
class LineEdit:
    """Replace ``count`` lines starting at ``start`` with ``lines``."""

    start: int
    count: int
    lines: tuple[str, ...]


@dataclass(frozen=True)
class PatchResult:
    """Result of planning or performing a patch operation."""

    status: PatchStatus
    line: int | None = None
    edit: LineEdit | None = None

    @property
    def ok(self) -> bool:
        """True unless the operation failed (informational outcomes count as ok)."""
        return self.status in (
            PatchStatus.APPLIED,
            PatchStatus.ALREADY_APPLIED,
            PatchStatus.ALREADY_STAGED,
        )

    @property
    def message(self) -> str:
        return _STATUS_MESSAGES[self.status]


@dataclass(frozen=True)
class IndexEntry:
    """A stage-0 index entry together with its blob text."""

    path: str
    mode: str
    sha: str
    text: str
