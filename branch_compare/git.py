"""Read branches, authors and commits out of a local git repository."""

from __future__ import annotations

import logging
import subprocess
from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Optional

from .config import TIME_RANGES
from .errors import ConfigError, GitError
from .models import RawCommit

LOG = logging.getLogger(__name__)

# field sep 0x1f, record sep 0x1e; strict ISO author dates
LOG_FORMAT = "%H%x1f%an%x1f%s%x1f%aI%x1e"
WORKTREE_PREFIX = "+"


def run(cmd: List[str], cwd: str | None = None, check: bool = True) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(cmd, cwd=cwd, check=check, text=True, capture_output=True)
    except subprocess.CalledProcessError as e:
        raise GitError(cmd, e.returncode, e.stderr) from e
    except FileNotFoundError as e:
        raise GitError(cmd, 127, str(e)) from e


def head_commit(repo_dir: str | None = None) -> str:
    try:
        return run(["git", "rev-parse", "HEAD"], cwd=repo_dir).stdout.strip()
    except GitError:
        return "(unknown)"


def resolve_branch(name: str) -> str:
    """Strip the ``+`` marker git puts in front of branches checked out in a worktree."""
    return name[1:].strip() if name.startswith(WORKTREE_PREFIX) else name


def list_branches(repo_dir: str | None = None) -> List[str]:
    out = run(["git", "branch", "-a"], cwd=repo_dir).stdout
    branches: List[str] = []
    for line in out.splitlines():
        name = line.strip()
        if name.startswith("* "):
            name = name[2:]
        if not name or "HEAD" in name:
            continue
        if name.startswith(WORKTREE_PREFIX):
            branches.append(name)
            continue
        if name.startswith("remotes/"):
            name = name[len("remotes/"):]
        if name not in branches:
            branches.append(name)
    return branches


def list_authors(repo_dir: str | None = None) -> List[str]:
    out = run(["git", "log", "--all", "--format=%an"], cwd=repo_dir).stdout
    return sorted({a for a in out.splitlines() if a})


def since_date(time_range: str, now: datetime) -> Optional[date]:
    """Return the first day included by ``time_range``, or None for no limit."""
    if time_range not in TIME_RANGES:
        raise ConfigError(f"Unknown time range {time_range!r} (choose from {', '.join(TIME_RANGES)})")
    days = TIME_RANGES[time_range]
    if days is None:
        return None
    return (now - timedelta(days=days)).date()


def parse_log(out: str, tz: tzinfo) -> List[RawCommit]:
    commits: List[RawCommit] = []
    for rec in out.strip("\n").split("\x1e"):
        rec = rec.strip()
        if not rec:
            continue
        parts = rec.split("\x1f")
        if len(parts) < 4:
            LOG.warning("skipping malformed log record: %r", rec[:80])
            continue
        h, an, s, ad = parts[:4]
        try:
            when = datetime.fromisoformat(ad)
        except ValueError:
            LOG.warning("skipping commit %s with invalid date %r", h, ad)
            continue
        commits.append(RawCommit(hash=h, author_name=an, message=s, date=when.astimezone(tz)))
    return commits


def fetch_commits(
    repo_dir: str | None,
    branch: str,
    tz: tzinfo,
    author: Optional[str] = None,
    time_range: str = "all",
    now: Optional[datetime] = None,
) -> List[RawCommit]:
    """Return the commits reachable from ``branch``, newest first.

    ``author`` is passed to ``git log --author`` (a regex match on name or
    email). ``time_range`` is one of the presets in ``config.TIME_RANGES``;
    the window runs from midnight of the start day to the end of today, both
    in ``tz``.
    """
    now = now.astimezone(tz) if now else datetime.now(tz)
    start_day = since_date(time_range, now)

    args = ["git", "log", "--pretty=format:" + LOG_FORMAT]
    if author:
        args.append(f"--author={author}")
    since = until = None
    if start_day is not None:
        since = datetime.combine(start_day, time.min, tzinfo=tz)
        until = datetime.combine(now.date(), time(23, 59, 59), tzinfo=tz)
        args += [f"--since={since.isoformat()}", f"--until={until.isoformat()}"]
    args += [resolve_branch(branch), "--"]

    LOG.debug("running %s", " ".join(args))
    commits = parse_log(run(args, cwd=repo_dir).stdout, tz)
    if since is not None:
        kept = [c for c in commits if since <= c.date <= until]
        if len(kept) != len(commits):
            LOG.warning("dropped %d commits on %s outside %s..%s", len(commits) - len(kept), branch, since, until)
        commits = kept
    return commits


def show_commit(repo_dir: str | None, sha: str) -> str:
    cp = run(["git", "show", "--patch", "--stat", "--no-color", sha], cwd=repo_dir)
    return cp.stdout


def resolve_commit(repo_dir: str | None, rev: str) -> str:
    """Expand ``rev`` (short hash, branch, tag...) to a full commit hash."""
    return run(["git", "rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], cwd=repo_dir).stdout.strip()
