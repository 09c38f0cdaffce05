"""Unified diff parser for stghunk.

Hunks are parsed on demand from a diff document and a line position; there
is no registry of parsed hunks. Parsing returns ``None`` whenever a header
is malformed or disagrees with its body, so such hunks are never patched.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence

from stghunk.document import BaseDocument, LinesDocument
from stghunk.models import DiffFile, DiffHeader, Hunk, HunkText, LineKind

# Regex patterns for parsing unified diff format
_HUNK_HEADER = re.compile(r"^@@ (-\S+) (\+\S+) @@(.*)$")
_RANGE_SPEC = re.compile(r"^([-+])(\d+)(?:,(\d+))?$")

_LINE_KINDS = {kind.value: kind for kind in LineKind}


def classify_line(line: str) -> LineKind | None:
    """Classify a diff line by its prefix; ``None`` if it is not a body line."""
    return _LINE_KINDS.get(line[:1])


def parse_hunk_header(line: str) -> tuple[str, str, str] | None:
    """Split an ``@@ -a,b +c,d @@ section`` header into its two specs and section."""
    m = _HUNK_HEADER.match(line)
    if not m:
        return None
    return m.group(1), m.group(2), m.group(3)


def parse_range(spec: str) -> tuple[str, int, int] | None:
    """Split a range spec such as ``-12,5`` into ``("-", 12, 5)``.

    A missing count means one line, as git writes single-line ranges.
    """
    m = _RANGE_SPEC.match(spec)
    if not m:
        return None
    count = int(m.group(3)) if m.group(3) is not None else 1
    return m.group(1), int(m.group(2)), count


def parse_hunk_text(body: Sequence[str], spec: str) -> HunkText | None:
    """Extract one side of a hunk from its raw body lines.

    Args:
        body: Raw hunk body lines, prefixes included.
        spec: The header's range spec for the wanted side, e.g. ``-12,5``.

    Returns:
        The side's HunkText, or None if the range is malformed or the number
        of lines collected does not equal the declared count.
    """
    parsed = parse_range(spec)
    if parsed is None:
        return None
    sign, start, count = parsed
    marker = LineKind(sign)

    kinds = [classify_line(s) for s in body]
    text: list[str] = []
    line_map: list[int] = []
    last_accepted = -1
    for i, (raw, kind) in enumerate(zip(body, kinds)):
        line_map.append(len(text))
        if kind is LineKind.CONTEXT or kind is marker:
            text.append(raw[1:])
            last_accepted = i

    if len(text) != count:
        return None

    missing_newline = 0 <= last_accepted < len(body) - 1 and (
        kinds[last_accepted + 1] is LineKind.NO_NEWLINE
    )
    # An empty side names the line it follows, so its insertion index is start.
    src_line = start if count == 0 else start - 1
    return HunkText(
        src_line=src_line,
        text=tuple(text),
        line_map=tuple(line_map),
        missing_newline=missing_newline,
    )


def parse_hunk(doc: BaseDocument, line: int) -> Hunk | None:
    """Parse the hunk whose ``@@`` header sits at ``line`` of a diff document."""
    if not 0 <= line < doc.line_count:
        return None
    parsed = parse_hunk_header(doc.get_line(line))
    if parsed is None:
        return None
    from_spec, to_spec, section = parsed

    body: list[str] = []
    for i in range(line + 1, doc.line_count):
        s = doc.get_line(i)
        if classify_line(s) is None:
            break
        body.append(s)

    from_text = parse_hunk_text(body, from_spec)
    to_text = parse_hunk_text(body, to_spec)
    if from_text is None or to_text is None:
        return None
    return Hunk(
        line=line,
        from_text=from_text,
        to_text=to_text,
        num_hunk_lines=len(body) + 1,
        section=section,
    )


def _strip_path(header_line: str) -> str:
    path = header_line[4:].split("\t")[0]
    if path.startswith("/"):
        return path
    return path[path.find("/") + 1 :]


def parse_header(doc: BaseDocument, line: int) -> DiffHeader | None:
    """Find the ``--- / +++`` pair governing ``line`` by scanning upward."""
    start = min(line, doc.line_count - 1)
    while start >= 0 and not doc.get_line(start).startswith("--- "):
        start -= 1
    if start < 0 or start + 1 >= doc.line_count:
        return None
    to_line = doc.get_line(start + 1)
    if not to_line.startswith("+++ "):
        return None
    return DiffHeader(
        from_path=_strip_path(doc.get_line(start)),
        to_path=_strip_path(to_line),
    )


def find_hunk(doc: BaseDocument, line: int) -> Hunk | None:
    """Return the hunk containing ``line``, or else the next hunk below it."""
    for i in range(min(line, doc.line_count - 1), -1, -1):
        if doc.get_line(i).startswith("@@"):
            hunk = parse_hunk(doc, i)
            if hunk and hunk.contains(line):
                return hunk
            break
    for i in range(line + 1, doc.line_count):
        if doc.get_line(i).startswith("@@"):
            return parse_hunk(doc, i)
    return None


def next_hunk_line(doc: BaseDocument, line: int, step: int = 1) -> int | None:
    """Line of the next ``@@`` header in direction ``step``.

    Moving forward stops at the last line of the document when no further
    header exists.
    """
    line += step
    while 0 <= line < doc.line_count:
        if doc.get_line(line).startswith("@@") or line == doc.line_count - 1:
            return line
        line += step
    return None


def iter_hunks(doc: BaseDocument) -> Iterator[tuple[DiffHeader | None, Hunk]]:
    """Yield every parseable hunk of a diff together with its file header."""
    i = 0
    while i < doc.line_count:
        if doc.get_line(i).startswith("@@"):
            hunk = parse_hunk(doc, i)
            if hunk is not None:
                yield parse_header(doc, i), hunk
                i = hunk.end_line
                continue
        i += 1


def parse_diff(diff_text: str) -> list[DiffFile]:
    """Parse unified diff text into a list of DiffFile objects.

    Args:
        diff_text: Raw output from ``git diff`` (unified diff format).

    Returns:
        One DiffFile per ``--- / +++`` section that has at least one
        parseable hunk. Hunks whose header disagrees with the body are left
        out.
    """
    doc = LinesDocument.from_text(diff_text)
    files: list[DiffFile] = []
    current: DiffFile | None = None

    for header, hunk in iter_hunks(doc):
        if header is None:
            continue
        if current is None or current.header != header or _header_between(doc, current, hunk):
            current = DiffFile(header=header)
            files.append(current)
        current.hunks.append(hunk)

    return files


def _header_between(doc: BaseDocument, current: DiffFile, hunk: Hunk) -> bool:
    """True if a new ``---`` header starts between the file's last hunk and ``hunk``."""
    last = current.hunks[-1]
    return any(doc.get_line(i).startswith("--- ") for i in range(last.end_line, hunk.line))
