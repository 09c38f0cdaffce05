"""Line-addressable documents the hunk engine reads and patches.

The same locate/patch code path serves a work-tree file and an index blob,
so both are exposed through :class:`BaseDocument`. Text is split on the
document's line terminator; text ending with a terminator therefore has a
final empty entry (``"a\\nb\\n"`` is ``["a", "b", ""]``).
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path


class BaseDocument(ABC):
    """Anything addressable as ``line_count`` + ``get_line(i)``."""

    eol: str = "\n"

    @property
    @abstractmethod
    def line_count(self) -> int:
        """Number of lines, including a trailing empty entry."""
        ...  # pragma: no cover

    @abstractmethod
    def get_line(self, index: int) -> str:
        """Return the content of line ``index`` without its terminator."""
        ...  # pragma: no cover

    @abstractmethod
    def replace_lines(self, start: int, count: int, new_lines: Sequence[str]) -> None:
        """Replace the contiguous range ``[start, start + count)`` with ``new_lines``."""
        ...  # pragma: no cover

    def lines(self) -> list[str]:
        return [self.get_line(i) for i in range(self.line_count)]

    @property
    def text(self) -> str:
        return self.eol.join(self.lines())


class LinesDocument(BaseDocument):
    """In-memory document over a list of lines."""

    def __init__(self, lines: Sequence[str] = ("",), eol: str = "\n") -> None:
        self._lines = list(lines)
        self.eol = eol

    @classmethod
    def from_text(cls, text: str, eol: str = "\n") -> LinesDocument:
        return cls(text.split(eol), eol=eol)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, index: int) -> str:
        return self._lines[index]

    def replace_lines(self, start: int, count: int, new_lines: Sequence[str]) -> None:
        if start < 0 or count < 0 or start + count > len(self._lines):
            raise IndexError(f"line range {start}+{count} outside document of {len(self._lines)}")
        self._lines[start : start + count] = list(new_lines)

    def lines(self) -> list[str]:
        return list(self._lines)


class FileDocument(LinesDocument):
    """A work-tree file loaded into memory and written back with :meth:`save`."""

    def __init__(self, path: str | Path, lines: Sequence[str], eol: str = "\n") -> None:
        super().__init__(lines, eol=eol)
        self.path = Path(path)

    @classmethod
    def load(cls, path: str | Path) -> FileDocument:
        """Read a file, keeping its bytes exactly (no newline translation)."""
        with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
            text = f.read()
        return cls(path, text.split("\n"))

    def save(self) -> None:
        """Write the document back atomically (write to tmp then rename)."""
        tmp_path = self.path.with_name(self.path.name + ".stghunk-tmp")
        with open(tmp_path, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
            f.write(self.text)
        if self.path.exists():
            shutil.copymode(self.path, tmp_path)
        tmp_path.replace(self.path)
