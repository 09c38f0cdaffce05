"""Fuzzy positional search for hunk text inside a document.

Line numbers recorded in a diff drift as the target is edited or other
hunks are applied. The search starts at the recorded line and walks outward
one line at a time, preferring the earlier position when both directions
match at the same distance. Only an exact, contiguous match counts.
"""

from __future__ import annotations

from collections.abc import Callable

from stghunk.diff_parser import find_hunk
from stghunk.document import BaseDocument
from stghunk.models import Hunk, HunkText


def matches_at(hunk_text: HunkText, doc: BaseDocument, line: int) -> bool:
    """Check whether every line of ``hunk_text`` equals the document from ``line``."""
    if line < 0 or line + hunk_text.count > doc.line_count:
        return False
    return all(doc.get_line(line + i) == s for i, s in enumerate(hunk_text.text))


def find_text(hunk_text: HunkText, doc: BaseDocument) -> int | None:
    """Return the line where ``hunk_text`` appears, searching outward from its source line.

    Returns:
        The 0-based matching line, or None when no position matches.
    """
    line = max(0, min(hunk_text.src_line, doc.line_count - 1))
    if matches_at(hunk_text, doc, line):
        return line
    offset = 1
    while True:
        up, down = line - offset, line + offset
        if up < 0 and down >= doc.line_count:
            return None
        if matches_at(hunk_text, doc, up):
            return up
        if matches_at(hunk_text, doc, down):
            return down
        offset += 1


def locate_hunk(hunk: Hunk, doc: BaseDocument) -> tuple[HunkText, int] | None:
    """Find either side of ``hunk`` in ``doc``, old side first."""
    for side in (hunk.from_text, hunk.to_text):
        line = find_text(side, doc)
        if line is not None:
            return side, line
    return None


def closest_line(doc: BaseDocument, needle: str, metric: Callable[[int], int]) -> int | None:
    """Return the line equal to ``needle`` that minimises ``metric``."""
    result, lowest = None, None
    for i in range(doc.line_count):
        m = metric(i)
        if (lowest is None or m < lowest) and doc.get_line(i) == needle:
            result, lowest = i, m
    return result


def source_line_for(diff_doc: BaseDocument, cursor: int, target: BaseDocument) -> int:
    """Map a cursor position in a diff onto the matching line of the target file."""
    hunk = find_hunk(diff_doc, cursor)
    if hunk is None:
        return 0

    match = locate_hunk(hunk, target)
    if match is not None:
        side, line = match
        offset = cursor - hunk.line - 1
        if 0 <= offset < len(side.line_map):
            return line + side.line_map[offset]
        return line

    if 0 <= cursor < diff_doc.line_count and hunk.contains(cursor):
        needle = diff_doc.get_line(cursor)[1:]
        found = closest_line(
            target,
            needle,
            lambda x: min(abs(x - hunk.from_text.src_line), abs(x - hunk.to_text.src_line)),
        )
        if found is not None:
            return found
    return hunk.to_text.src_line
