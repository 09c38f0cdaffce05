"""Textual identifiers for diff views.

A diff view is addressed as ``<name>#<fragment>`` where the fragment is a
comma-separated list of ``key`` or ``key=value`` parameters::

    diff-index-src/app.py#index,file=src/app.py
    diff-1a2b3-app.py#sha=1a2b3c...,file=app.py,split=7;12

The identifier alone is enough to regenerate the view, split points
included.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING
from urllib.parse import quote, unquote

from stghunk.splitter import normalize_split_points, split_diff, toggle_split_point

if TYPE_CHECKING:
    from stghunk.git import GitRepo

MERGE_DIFF_MODES = {
    "13": "Incoming Changes (base -> theirs)",
    "12": "Local Changes (base -> ours)",
    "2": "Our (ours -> work tree)",
    "3": "Theirs (theirs -> work tree)",
}

_SHA = re.compile(r"^[0-9a-fA-F]{4,64}$")


@dataclass(frozen=True)
class DiffRef:
    """Identity of a diff view: what is diffed, which file, and where it is split."""

    file: str | None = None
    index: bool = False
    sha: str | None = None
    diffmode: str | None = None
    split: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if self.sha is not None and not _SHA.match(self.sha):
            raise ValueError(f"Invalid commit sha: {self.sha!r}")
        if self.diffmode is not None:
            if self.diffmode not in MERGE_DIFF_MODES:
                raise ValueError(f"Invalid diff mode: {self.diffmode!r}")
            if self.file is None:
                raise ValueError("A merge diff mode needs a file")
        if self.index and self.sha is not None:
            raise ValueError("A diff cannot be both an index and a commit diff")
        object.__setattr__(self, "split", normalize_split_points(self.split))

    @property
    def kind(self) -> str:
        if self.diffmode is not None:
            return "merge-stage"
        if self.index:
            return "index"
        if self.sha is not None:
            return "commit"
        return "work-tree"

    @property
    def name(self) -> str:
        if self.sha is not None:
            prefix = f"diff-{self.sha[:5]}"
        elif self.index:
            prefix = "diff-index"
        elif self.file is None:
            return "diff-work-tree"
        else:
            prefix = "diff"
        return f"{prefix}-{quote(self.file)}" if self.file is not None else prefix

    @property
    def fragment(self) -> str:
        params: list[str] = []
        if self.index:
            params.append("index")
        if self.sha is not None:
            params.append(f"sha={self.sha}")
        if self.file is not None:
            params.append(f"file={quote(self.file)}")
        if self.diffmode is not None:
            params.append(f"diffmode={self.diffmode}")
        if self.split:
            params.append("split=" + ";".join(str(p) for p in self.split))
        return ",".join(params)

    @property
    def identifier(self) -> str:
        return f"{self.name}#{self.fragment}"

    @classmethod
    def parse(cls, identifier: str) -> DiffRef:
        """Parse an identifier (or a bare fragment) back into a DiffRef.

        Raises:
            ValueError: If the fragment has unknown or malformed parameters.
        """
        name, sep, fragment = identifier.partition("#")
        if not sep:
            fragment = name

        values: dict[str, str | None] = {}
        for param in fragment.split(","):
            if not param:
                continue
            key, eq, value = param.partition("=")
            if key not in ("index", "sha", "file", "diffmode", "split"):
                raise ValueError(f"Unknown diff parameter: {key!r}")
            values[key] = unquote(value) if eq else None

        split: tuple[int, ...] = ()
        if values.get("split"):
            try:
                split = tuple(int(p) for p in values["split"].split(";"))  # type: ignore[union-attr]
            except ValueError as e:
                raise ValueError(f"Invalid split points: {values['split']!r}") from e

        return cls(
            file=values.get("file"),
            index="index" in values,
            sha=values.get("sha"),
            diffmode=values.get("diffmode"),
            split=split,
        )

    def with_split_toggled(self, line: int) -> DiffRef:
        """Return the ref with a split point at ``line`` added or removed."""
        return replace(self, split=toggle_split_point(self.split, line))


def render_diff(ref: DiffRef, repo: GitRepo) -> str:
    """Produce the diff text a ref addresses, split points applied."""
    return split_diff(repo.diff(ref), ref.split)
