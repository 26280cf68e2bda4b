"""Command line entry point: compare two branches and manage ignore/remark records."""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
import webbrowser
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.prompt import Prompt

from . import annotations, git
from .config import (
    IGNORED_FILE,
    MARKDOWN_FILE,
    REMARKS_FILE,
    TIME_RANGES,
    TIMELINE_FILE,
    Settings,
    load_timezone,
)
from .errors import BranchCompareError
from .models import Comparison
from .reconcile import reconcile, summarize
from .report import format_date, generate_markdown
from .timeline import build_html, render_diff

console = Console(stderr=True)

ALL_AUTHORS = "all"


def bytes_human(n: int) -> str:
    units = ["B", "KiB", "MiB", "GiB", "TiB"]
    f = float(n)
    i = 0
    while f >= 1024.0 and i < len(units) - 1:
        f /= 1024.0
        i += 1
    return f"{int(f)} {units[i]}" if i == 0 else f"{f:.1f} {units[i]}"


def _settings(args: argparse.Namespace) -> Settings:
    s = Settings()
    if args.data_dir:
        s.data_dir = pathlib.Path(args.data_dir).expanduser()
    if args.timezone:
        s.timezone = args.timezone
    return s


# ---- compare -----------------------------------------------------------------

def choose_selection(args: argparse.Namespace) -> None:
    """Prompt for the branches, time range and author that were not given.

    Nothing is asked when both branches are on the command line; a missing
    ``--since`` then means all time and a missing ``--author`` means everyone.
    """
    interactive = args.source is None or args.target is None
    if interactive:
        branches = git.list_branches(args.repo)
        if args.source is None:
            if not branches:
                raise BranchCompareError("No branches found")
            args.source = Prompt.ask("Source branch", choices=branches, console=console)
        if args.target is None:
            # the target can't be the branch we compare against
            others = [b for b in branches if b != args.source]
            if not others:
                raise BranchCompareError(f"No other branch to compare {args.source} against")
            args.target = Prompt.ask("Target branch", choices=others, console=console)

    if args.since is None:
        args.since = "all"
        if interactive:
            args.since = Prompt.ask("Time range", choices=list(TIME_RANGES), default="all", console=console)

    if args.author is None and interactive:
        answer = Prompt.ask(
            "Author",
            choices=[ALL_AUTHORS, *git.list_authors(args.repo)],
            default=ALL_AUTHORS,
            console=console,
        )
        args.author = None if answer == ALL_AUTHORS else answer


def cmd_compare(args: argparse.Namespace) -> int:
    choose_selection(args)
    s = _settings(args)
    if args.max_diff_bytes is not None:
        s.max_diff_bytes = args.max_diff_bytes
    tz = s.tz
    repo = args.repo
    author = args.author or None

    print(
        f"📜 Reading {args.source} and {args.target} "
        f"(author: {author or 'all'}, range: {args.since})...",
        file=sys.stderr,
    )
    source_commits = git.fetch_commits(repo, args.source, tz, author=author, time_range=args.since)
    print(f"  {args.source}: {len(source_commits)} commits", file=sys.stderr)
    target_commits = git.fetch_commits(repo, args.target, tz, author=author, time_range=args.since)
    print(f"  {args.target}: {len(target_commits)} commits", file=sys.stderr)

    commits = reconcile(source_commits, target_commits, args.source, args.target)
    summary = summarize(commits)
    print(f"🧮 Merged into {summary.total} commits", file=sys.stderr)
    print(f"  only {args.source}: {summary.source}", file=sys.stderr)
    print(f"  only {args.target}: {summary.target}", file=sys.stderr)
    print(f"  common: {summary.both} ({summary.matched_by_message} matched by message)", file=sys.stderr)
    if not commits:
        print("No commits found.", file=sys.stderr)
        return 1

    comparison = Comparison(
        source_branch=args.source,
        target_branch=args.target,
        commits=commits,
        generated_at=datetime.now(tz),
        author=author,
        time_range=args.since,
        head=git.head_commit(repo),
    )
    ignored = annotations.index_by_hash(annotations.load_ignored(s.data_file(IGNORED_FILE)))
    remarks = annotations.index_by_hash(annotations.load_remarks(s.data_file(REMARKS_FILE)))

    diffs: Dict[str, Tuple[str, bool]] = {}
    if not args.no_diffs:
        cap = bytes_human(s.max_diff_bytes) if s.max_diff_bytes else "unlimited"
        print(f"🎨 Rendering diffs (per-commit cap: {cap})", file=sys.stderr)
        for c in commits:
            diffs[c.hash] = render_diff(git.show_commit(repo, c.hash), s.max_diff_bytes)

    out_dir = pathlib.Path(args.out_dir).expanduser() if args.out_dir else s.data_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    md_path = out_dir / MARKDOWN_FILE
    html_path = out_dir / TIMELINE_FILE

    print(f"💾 Writing: {md_path.resolve()}", file=sys.stderr)
    md_path.write_text(generate_markdown(comparison, ignored, tz), encoding="utf-8")
    print(f"💾 Writing: {html_path.resolve()}", file=sys.stderr)
    html_path.write_text(build_html(comparison, ignored, remarks, diffs, tz), encoding="utf-8")

    if not args.no_open:
        print("🌐 Opening in browser...", file=sys.stderr)
        if not webbrowser.open(html_path.resolve().as_uri()):
            print("Could not open a browser, open the HTML file manually.", file=sys.stderr)
    return 0


# ---- listings ----------------------------------------------------------------

def cmd_branches(args: argparse.Namespace) -> int:
    for b in git.list_branches(args.repo):
        print(b)
    return 0


def cmd_authors(args: argparse.Namespace) -> int:
    for a in git.list_authors(args.repo):
        print(a)
    return 0


# ---- annotations -------------------------------------------------------------

def _full_hash(args: argparse.Namespace) -> str:
    if args.no_resolve:
        return args.hash
    return git.resolve_commit(args.repo, args.hash)


def cmd_ignore(args: argparse.Namespace) -> int:
    s = _settings(args)
    path = s.data_file(IGNORED_FILE)
    sha = _full_hash(args)
    reason = annotations.resolve_reason(args.reason)
    records = annotations.add_ignore(annotations.load_ignored(path), sha, reason)
    annotations.save_ignored(path, records)
    print(f"✓ Ignored {sha[:8]} ({reason})", file=sys.stderr)
    return 0


def cmd_unignore(args: argparse.Namespace) -> int:
    s = _settings(args)
    path = s.data_file(IGNORED_FILE)
    sha = _full_hash(args)
    before = annotations.load_ignored(path)
    after = annotations.remove_ignore(before, sha)
    if len(after) == len(before):
        print(f"{sha[:8]} was not ignored.", file=sys.stderr)
        return 1
    annotations.save_ignored(path, after)
    print(f"✓ Removed {sha[:8]} from the ignore list", file=sys.stderr)
    return 0


def cmd_ignored(args: argparse.Namespace) -> int:
    s = _settings(args)
    tz = s.tz
    for r in annotations.load_ignored(s.data_file(IGNORED_FILE)):
        print(f"{r['hash']}\t{r.get('reason', '')}\t{_stamp(r.get('timestamp'), tz)}")
    return 0


def cmd_remark(args: argparse.Namespace) -> int:
    s = _settings(args)
    path = s.data_file(REMARKS_FILE)
    sha = _full_hash(args)
    records = annotations.set_remark(annotations.load_remarks(path), sha, args.content)
    annotations.save_remarks(path, records)
    if args.content.strip():
        print(f"✓ Saved remark for {sha[:8]}", file=sys.stderr)
    else:
        print(f"✓ Cleared remark for {sha[:8]}", file=sys.stderr)
    return 0


def cmd_remarks(args: argparse.Namespace) -> int:
    s = _settings(args)
    tz = s.tz
    for r in annotations.load_remarks(s.data_file(REMARKS_FILE)):
        print(f"{r['hash']}\t{r.get('content', '')}\t{_stamp(r.get('timestamp'), tz)}")
    return 0


def _stamp(value: Optional[str], tz) -> str:
    if not value:
        return ""
    try:
        return format_date(datetime.fromisoformat(value), tz)
    except ValueError:
        return value


# ---- main --------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="branch-compare",
        description="Compare the commits of two git branches and render an HTML timeline plus a markdown report",
    )
    ap.add_argument("--data-dir", help="Where reports and ignore/remark files live (default: ~/.config/branch-compare)")
    ap.add_argument("--timezone", help="Timezone for dates and time ranges (default: Asia/Shanghai)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    def repo_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument("--repo", default=None, help="Repository directory (default: current directory)")

    p = sub.add_parser("compare", help="Compare SOURCE against TARGET")
    p.add_argument("source", nargs="?", help="Source branch (commits to port); prompted for when omitted")
    p.add_argument("target", nargs="?", help="Target branch (where commits should land); prompted for when omitted")
    p.add_argument("--author", help="Only commits whose author matches (git log --author)")
    p.add_argument("--since", choices=list(TIME_RANGES), default=None, help="Time range preset (default: all)")
    p.add_argument("--out-dir", help="Output directory for the reports (default: data dir)")
    p.add_argument("--no-diffs", action="store_true", help="Don't embed per-commit diffs in the HTML")
    p.add_argument("--max-diff-bytes", type=int, default=None, help="Truncate per-commit diff after this many bytes (0 to disable)")
    p.add_argument("--no-open", action="store_true", help="Don't open the HTML file after generation")
    repo_arg(p)
    p.set_defaults(func=cmd_compare)

    p = sub.add_parser("branches", help="List local and remote branches")
    repo_arg(p)
    p.set_defaults(func=cmd_branches)

    p = sub.add_parser("authors", help="List commit authors")
    repo_arg(p)
    p.set_defaults(func=cmd_authors)

    p = sub.add_parser("ignore", help="Mark a commit as ignored")
    p.add_argument("hash")
    presets = ", ".join(f"{i}={r}" for i, r in enumerate(annotations.IGNORE_REASONS, 1))
    p.add_argument(
        "--reason",
        default=annotations.IGNORE_REASONS[-1],
        help=f"Why the commit is ignored: a preset number ({presets}) or any text",
    )
    p.set_defaults(func=cmd_ignore)

    p = sub.add_parser("unignore", help="Remove a commit from the ignore list")
    p.add_argument("hash")
    p.set_defaults(func=cmd_unignore)

    p = sub.add_parser("ignored", help="List ignored commits")
    p.set_defaults(func=cmd_ignored)

    p = sub.add_parser("remark", help="Attach a remark to a commit (empty text clears it)")
    p.add_argument("hash")
    p.add_argument("content")
    p.set_defaults(func=cmd_remark)

    p = sub.add_parser("remarks", help="List remarks")
    p.set_defaults(func=cmd_remarks)

    for name in ("ignore", "unignore", "remark"):
        sp = sub.choices[name]
        repo_arg(sp)
        sp.add_argument("--no-resolve", action="store_true", help="Store HASH as given instead of expanding it with git")

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s", level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        # validates --timezone before any git work
        load_timezone(_settings(args).timezone)
        return args.func(args)
    except BranchCompareError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
