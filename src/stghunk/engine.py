"""Hunk patch engine: apply/revert against a document, stage/unstage against the index.

Every operation reads its target once, plans a single line-range edit and
performs at most one write. Expected failures are returned as
:class:`PatchResult` values rather than raised.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from stghunk.document import BaseDocument, LinesDocument
from stghunk.locator import find_text, matches_at
from stghunk.models import Hunk, HunkText, IndexEntry, LineEdit, PatchResult, PatchStatus


class BlobIndex(ABC):
    """Access to the staged content of files."""

    @abstractmethod
    def read_blob(self, path: str) -> IndexEntry | PatchStatus:
        """Return the stage-0 entry for ``path``.

        Returns:
            The entry, or ``PatchStatus.NO_SUCH_FILE`` / ``PatchStatus.UNMERGED``
            when the file cannot be patched in the index.
        """
        ...  # pragma: no cover

    @abstractmethod
    def write_blob(self, path: str, text: str, mode: str) -> None:
        """Replace the index entry of ``path`` with ``text`` in a single update."""
        ...  # pragma: no cover


def plan_patch(
    from_text: HunkText,
    to_text: HunkText,
    doc: BaseDocument,
    already: PatchStatus = PatchStatus.ALREADY_APPLIED,
) -> PatchResult:
    """Work out the edit turning ``from_text`` into ``to_text`` inside ``doc``.

    Args:
        from_text: The side expected in the document.
        to_text: The side to write in its place.
        doc: The target document. It is not modified.
        already: Status to report when ``to_text`` is already present.

    Returns:
        A PatchResult with an edit when the status is APPLIED.
    """
    line = find_text(from_text, doc)
    if line is None:
        if find_text(to_text, doc) is not None:
            return PatchResult(already)
        return PatchResult(PatchStatus.NOT_FOUND)

    # A pure insertion matches anywhere; look for its result in place instead.
    if not from_text.text and to_text.text and matches_at(to_text, doc, line):
        return PatchResult(already, line=line)

    count = from_text.count
    new_lines = list(to_text.text)
    at_end = line + count == doc.line_count
    if from_text.missing_newline and not to_text.missing_newline and at_end:
        new_lines.append("")
    elif to_text.missing_newline and not from_text.missing_newline:
        end = line + count
        if end == doc.line_count - 1 and doc.get_line(end) == "":
            count += 1

    current = [doc.get_line(i) for i in range(line, line + count)]
    if current == new_lines:
        return PatchResult(already, line=line)
    return PatchResult(
        PatchStatus.APPLIED,
        line=line,
        edit=LineEdit(start=line, count=count, lines=tuple(new_lines)),
    )


def _patch_document(
    from_text: HunkText,
    to_text: HunkText,
    doc: BaseDocument,
    already: PatchStatus = PatchStatus.ALREADY_APPLIED,
) -> PatchResult:
    result = plan_patch(from_text, to_text, doc, already)
    if result.edit is not None:
        doc.replace_lines(result.edit.start, result.edit.count, result.edit.lines)
    return result


def apply_hunk(hunk: Hunk, doc: BaseDocument) -> PatchResult:
    """Apply ``hunk`` forward to ``doc``."""
    return _patch_document(hunk.from_text, hunk.to_text, doc)


def revert_hunk(hunk: Hunk, doc: BaseDocument) -> PatchResult:
    """Undo ``hunk`` in ``doc``."""
    return _patch_document(hunk.to_text, hunk.from_text, doc)


def _patch_index(
    from_text: HunkText,
    to_text: HunkText,
    path: str,
    index: BlobIndex,
) -> PatchResult:
    entry = index.read_blob(path)
    if isinstance(entry, PatchStatus):
        return PatchResult(entry)

    doc = LinesDocument.from_text(entry.text)
    result = _patch_document(from_text, to_text, doc, PatchStatus.ALREADY_STAGED)
    if result.status is PatchStatus.APPLIED:
        index.write_blob(path, doc.text, entry.mode)
    return result


def stage_hunk(hunk: Hunk, path: str, index: BlobIndex) -> PatchResult:
    """Apply a work-tree hunk to the staged content of ``path``."""
    return _patch_index(hunk.from_text, hunk.to_text, path, index)


def unstage_hunk(hunk: Hunk, path: str, index: BlobIndex) -> PatchResult:
    """Remove an index hunk from the staged content of ``path``."""
    return _patch_index(hunk.to_text, hunk.from_text, path, index)
