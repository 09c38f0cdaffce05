"""stghunk CLI entry point.

Usage:
    stghunk show [--ref ID | --diff-file PATH]
    stghunk hunks [--ref ID | --diff-file PATH]
    stghunk apply|revert --line N [--ref ID | --diff-file PATH]
    stghunk stage|unstage --line N [--ref ID | --diff-file PATH]
    stghunk split --line N --ref ID
    stghunk locate --line N [--ref ID | --diff-file PATH]
    stghunk next|prev --line N [--ref ID | --diff-file PATH]
    python -m stghunk <command> [options]

Line numbers are 1-based positions in the (split) diff text.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace

from stghunk.config import StgHunkConfig
from stghunk.diff_parser import find_hunk, next_hunk_line, parse_diff, parse_header
from stghunk.diff_ref import MERGE_DIFF_MODES, DiffRef, render_diff
from stghunk.document import FileDocument, LinesDocument
from stghunk.engine import apply_hunk, revert_hunk, stage_hunk, unstage_hunk
from stghunk.git import GitError, GitRepo
from stghunk.locator import source_line_for
from stghunk.models import DiffHeader, Hunk, PatchResult, PatchStatus
from stghunk.splitter import effective_split_points, is_split_point, split_diff


def _default_ref(command: str) -> DiffRef:
    if command == "unstage":
        return DiffRef(index=True)
    return DiffRef()


def _get_ref(args: argparse.Namespace) -> DiffRef:
    if args.ref:
        return DiffRef.parse(args.ref)
    return _default_ref(args.command)


def _raw_diff(args: argparse.Namespace, repo: GitRepo, ref: DiffRef) -> str:
    """Diff text before split points are applied."""
    if args.diff_file:
        with open(args.diff_file, encoding="utf-8", errors="surrogateescape", newline="") as f:
            return f.read()
    return repo.diff(ref)


def _get_diff(args: argparse.Namespace, repo: GitRepo) -> str:
    ref = _get_ref(args)
    if args.diff_file:
        return split_diff(_raw_diff(args, repo, ref), ref.split)
    return render_diff(ref, repo)


def _hunk_at(diff_text: str, line: int) -> tuple[Hunk, DiffHeader] | None:
    """Find the hunk and file header for a 1-based diff line, reporting failures."""
    doc = LinesDocument.from_text(diff_text)
    hunk = find_hunk(doc, line - 1)
    if hunk is None:
        print(f"ℹ️  No hunk at line {line}", file=sys.stderr)
        return None
    header = parse_header(doc, hunk.line)
    if header is None:
        print(f"ℹ️  No file header for the hunk at line {hunk.line + 1}", file=sys.stderr)
        return None
    return hunk, header


def _report(result: PatchResult, path: str) -> int:
    if not result.ok:
        print(f"❌ {result.message}: {path}", file=sys.stderr)
        return 1
    if result.status is PatchStatus.APPLIED:
        print(f"✅ {result.message}: {path}:{(result.line or 0) + 1}", file=sys.stderr)
    else:
        print(f"ℹ️  {result.message}", file=sys.stderr)
    return 0


def show_command(args: argparse.Namespace, repo: GitRepo) -> int:
    """Print the (split) diff for a ref or diff file."""
    diff_text = _get_diff(args, repo)
    if not diff_text.strip():
        ref = _get_ref(args)
        if ref.file is not None and not args.diff_file and ref.kind == "work-tree":
            if not repo.is_tracked(ref.file):
                print(f"ℹ️  '{ref.file}' is not under version control", file=sys.stderr)
            else:
                print(f"ℹ️  '{ref.file}' is unmodified", file=sys.stderr)
        else:
            print("ℹ️  No changes.", file=sys.stderr)
        return 0
    sys.stdout.write(diff_text)
    return 0


def hunks_command(args: argparse.Namespace, repo: GitRepo) -> int:
    """List every well-formed hunk with its diff line, file and header."""
    files = parse_diff(_get_diff(args, repo))
    count = 0
    for diff_file in files:
        for hunk in diff_file.hunks:
            print(f"{hunk.line + 1}\t{diff_file.path}\t{hunk.header}")
            count += 1
    print(f"📄 {count} hunk(s) in {len(files)} file(s)", file=sys.stderr)
    return 0


def navigate_command(args: argparse.Namespace, repo: GitRepo) -> int:
    """Print the 1-based line of the next or previous hunk header."""
    doc = LinesDocument.from_text(_get_diff(args, repo))
    step = 1 if args.command == "next" else -1
    line = next_hunk_line(doc, args.line - 1, step)
    if line is None:
        direction = "after" if step > 0 else "before"
        print(f"ℹ️  No hunk {direction} line {args.line}", file=sys.stderr)
        return 1
    print(line + 1)
    return 0


def patch_command(args: argparse.Namespace, repo: GitRepo) -> int:
    """Apply or revert the hunk under ``--line`` in the work-tree file."""
    found = _hunk_at(_get_diff(args, repo), args.line)
    if found is None:
        return 1
    hunk, header = found
    path = header.target_path
    try:
        target = FileDocument.load(repo.cwd / path)
    except OSError as e:
        print(f"❌ Cannot open {path}: {e}", file=sys.stderr)
        return 1

    operation = apply_hunk if args.command == "apply" else revert_hunk
    result = operation(hunk, target)
    if result.edit is not None:
        target.save()
    return _report(result, path)


def stage_command(args: argparse.Namespace, repo: GitRepo) -> int:
    """Stage or unstage the hunk under ``--line`` in the git index."""
    found = _hunk_at(_get_diff(args, repo), args.line)
    if found is None:
        return 1
    hunk, header = found
    operation = stage_hunk if args.command == "stage" else unstage_hunk
    result = operation(hunk, header.target_path, repo.index)
    return _report(result, header.target_path)


def split_command(args: argparse.Namespace, repo: GitRepo) -> int:
    """Toggle a split point and print the identifier of the resulting view."""
    ref = _get_ref(args)
    line = args.line - 1
    raw = _raw_diff(args, repo, ref)
    # Drop stale points so the new ref matches the view being shown.
    ref = replace(ref, split=effective_split_points(raw, ref.split))
    if not is_split_point(raw, ref.split, line):
        print(f"❌ Line {args.line} is not inside a hunk body", file=sys.stderr)
        return 1
    print(ref.with_split_toggled(line).identifier)
    return 0


def locate_command(args: argparse.Namespace, repo: GitRepo) -> int:
    """Print ``path:line`` of the target line under the diff cursor."""
    diff_text = _get_diff(args, repo)
    found = _hunk_at(diff_text, args.line)
    if found is None:
        return 1
    _, header = found
    path = header.target_path
    try:
        target = FileDocument.load(repo.cwd / path)
    except OSError as e:
        print(f"❌ Cannot open {path}: {e}", file=sys.stderr)
        return 1
    line = source_line_for(LinesDocument.from_text(diff_text), args.line - 1, target)
    print(f"{path}:{line + 1}")
    return 0


_COMMANDS = {
    "show": show_command,
    "hunks": hunks_command,
    "apply": patch_command,
    "revert": patch_command,
    "stage": stage_command,
    "unstage": stage_command,
    "split": split_command,
    "locate": locate_command,
    "next": navigate_command,
    "prev": navigate_command,
}


def _add_source_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to .stghunk.yml config file",
    )
    parser.add_argument(
        "--repo",
        type=str,
        default=".",
        help="Top-level directory of the git work tree (default: current directory)",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--ref",
        type=str,
        default=None,
        help="Diff identifier, e.g. 'diff-index#index,file=app.py,split=7'",
    )
    source.add_argument(
        "--diff-file",
        type=str,
        default=None,
        help="Path to a saved diff file (instead of git diff)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="stghunk",
        description="stghunk: apply, revert, stage and split unified-diff hunks",
        epilog="Merge diff modes: "
        + ", ".join(f"{mode} = {desc}" for mode, desc in MERGE_DIFF_MODES.items()),
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    show_parser = subparsers.add_parser("show", help="Print the diff a ref addresses")
    _add_source_args(show_parser)

    hunks_parser = subparsers.add_parser("hunks", help="List the hunks of a diff")
    _add_source_args(hunks_parser)

    for name, help_text in (
        ("apply", "Apply the hunk at --line to the work tree"),
        ("revert", "Revert the hunk at --line in the work tree"),
        ("stage", "Stage the hunk at --line"),
        ("unstage", "Unstage the hunk at --line"),
        ("split", "Toggle a split point at --line and print the new ref"),
        ("locate", "Print the work-tree position of --line"),
        ("next", "Print the line of the next hunk header after --line"),
        ("prev", "Print the line of the previous hunk header before --line"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        _add_source_args(sub)
        sub.add_argument(
            "--line",
            type=int,
            required=True,
            help="1-based line in the diff",
        )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    command = _COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "split" and not args.ref:
        parser.error("split requires --ref")
    if getattr(args, "line", 1) < 1:
        parser.error("--line must be 1 or greater")

    try:
        config = StgHunkConfig.load(args.config)
        repo = GitRepo.from_config(config, cwd=args.repo)
        exit_code = command(args, repo)
    except (GitError, ValueError, OSError) as e:
        print(f"❌ {e}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
