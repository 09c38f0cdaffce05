"""Split hunks of a diff into independently addressable sub-hunks.

Split points are line offsets in the *split* diff: each one is the line
where a synthesized ``@@`` header appears. Adding a point therefore shifts
every later point down by one line and removing one shifts them back up.
A point that cannot be honoured is dropped the same way, so the points
after it keep their place in the view.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from stghunk.diff_parser import classify_line, parse_hunk_header, parse_hunk_text, parse_range
from stghunk.models import LineKind

# Never a valid diff line: a diff line cannot contain a NUL character.
SPLIT_MARKER = "\x00split"

_SPLITTABLE = (LineKind.CONTEXT, LineKind.ADDED, LineKind.REMOVED)
_OLD_SIDE = (LineKind.CONTEXT, LineKind.REMOVED)
_NEW_SIDE = (LineKind.CONTEXT, LineKind.ADDED)

_Ranges = tuple[tuple[int, int], tuple[int, int], str]


def normalize_split_points(points: Iterable[int]) -> tuple[int, ...]:
    """Return split points sorted and de-duplicated."""
    return tuple(sorted(set(points)))


def toggle_split_point(points: Iterable[int], line: int) -> tuple[int, ...]:
    """Add a split point at ``line``, or remove it if one is already there."""
    current = normalize_split_points(points)
    if line in current:
        return tuple(p if p < line else p - 1 for p in current if p != line)
    return normalize_split_points([p if p < line else p + 1 for p in current] + [line])


def _header_ranges(line: str) -> _Ranges | None:
    """Return ``((old_start, old_count), (new_start, new_count), section)``."""
    parsed = parse_hunk_header(line)
    if parsed is None:
        return None
    from_spec, to_spec, section = parsed
    old_range, new_range = parse_range(from_spec), parse_range(to_spec)
    if old_range is None or new_range is None:
        return None
    return old_range[1:], new_range[1:], section


def _in_body(line: str) -> bool:
    return line == SPLIT_MARKER or classify_line(line) is not None


def _body_end(lines: Sequence[str], start: int) -> int:
    end = start
    while end < len(lines) and _in_body(lines[end]):
        end += 1
    return end


def _hunk_is_consistent(lines: Sequence[str], header: int) -> bool:
    """Check that the hunk at ``header`` has a body matching its declared counts."""
    parsed = parse_hunk_header(lines[header])
    if parsed is None:
        return False
    from_spec, to_spec, _ = parsed
    end = _body_end(lines, header + 1)
    body = [s for s in lines[header + 1 : end] if s != SPLIT_MARKER]
    return all(parse_hunk_text(body, spec) is not None for spec in (from_spec, to_spec))


def _can_split_at(lines: Sequence[str], line: int) -> bool:
    """A split needs a body line above and a ``+``/``-``/`` `` body line at ``line``."""
    if not 1 <= line < len(lines):
        return False
    above, below = lines[line - 1], lines[line]
    if above == SPLIT_MARKER or classify_line(above) is None:
        return False
    if classify_line(below) not in _SPLITTABLE:
        return False
    i = line - 1
    while i >= 0 and _in_body(lines[i]):
        i -= 1
    return i >= 0 and _hunk_is_consistent(lines, i)


def _insert_markers(lines: Sequence[str], points: Sequence[int]) -> tuple[list[str], list[int]]:
    """Insert a marker at every valid point.

    Returns:
        The marked lines and the points actually used. A rejected point is
        removed as if toggled off, shifting the points after it up by one.
    """
    marked = list(lines)
    used: list[int] = []
    dropped = 0
    for point in points:
        point -= dropped
        if _can_split_at(marked, point):
            marked.insert(point, SPLIT_MARKER)
            used.append(point)
        else:
            dropped += 1
    return marked, used


def _format_range(start: int, count: int) -> str:
    # An empty range names the line before it.
    if count == 0:
        return f"{start - 1},0"
    if count == 1:
        return str(start)
    return f"{start},{count}"


def _renumber(ranges: _Ranges, body: Sequence[str]) -> list[str]:
    """Emit one header per marker-delimited segment of ``body``.

    Starts carry forward from the original header: each segment begins
    where the previous one ended on both sides.
    """
    (old_start, old_count), (new_start, new_count), section = ranges
    # 1-based line each side of the next segment starts at.
    old_pos = old_start + 1 if old_count == 0 else old_start
    new_pos = new_start + 1 if new_count == 0 else new_start

    segments: list[list[str]] = [[]]
    for s in body:
        if s == SPLIT_MARKER:
            segments.append([])
        else:
            segments[-1].append(s)

    out: list[str] = []
    for n, segment in enumerate(segments):
        kinds = [classify_line(s) for s in segment]
        seg_old = sum(1 for k in kinds if k in _OLD_SIDE)
        seg_new = sum(1 for k in kinds if k in _NEW_SIDE)
        new_header = f"@@ -{_format_range(old_pos, seg_old)} +{_format_range(new_pos, seg_new)} @@"
        out.append(new_header + (section if n == 0 else ""))
        out.extend(segment)
        old_pos += seg_old
        new_pos += seg_new
    return out


def effective_split_points(diff_text: str, split_points: Iterable[int]) -> tuple[int, ...]:
    """Return the split points ``split_diff`` would actually honour."""
    _, used = _insert_markers(diff_text.split("\n"), normalize_split_points(split_points))
    return tuple(used)


def split_diff(diff_text: str, split_points: Iterable[int]) -> str:
    """Rewrite ``diff_text`` so every split point starts a new hunk.

    Args:
        diff_text: Unified diff text.
        split_points: Offsets in the resulting text where sub-hunk headers
            go. Offsets that do not fall strictly inside the body of a
            well-formed hunk are dropped.

    Returns:
        The split diff. With no valid split points the input is returned
        unchanged.
    """
    points = normalize_split_points(split_points)
    if not points:
        return diff_text

    lines, used = _insert_markers(diff_text.split("\n"), points)
    if not used:
        return diff_text

    out: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        i += 1
        ranges = _header_ranges(line)
        if ranges is None:
            out.append(line)
            continue
        end = _body_end(lines, i)
        body = lines[i:end]
        if SPLIT_MARKER in body:
            out.extend(_renumber(ranges, body))
        else:
            out.append(line)
            out.extend(body)
        i = end

    return "\n".join(out)


def is_split_point(diff_text: str, split_points: Iterable[int], line: int) -> bool:
    """Check whether ``line`` of the split view can be toggled.

    True for an existing split point (it can be removed) or for a line where
    a new split may be inserted.
    """
    lines, _ = _insert_markers(diff_text.split("\n"), normalize_split_points(split_points))
    if 0 <= line < len(lines) and lines[line] == SPLIT_MARKER:
        return True
    return _can_split_at(lines, line)
