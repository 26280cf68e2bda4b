"""Markdown report and cherry-pick command generation."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional

from .config import TIME_RANGE_LABELS
from .models import STATUS_BOTH, STATUS_SOURCE, STATUS_TARGET, ClassifiedCommit, Comparison

STATUS_INDICATORS = {
    STATUS_SOURCE: "🔴",
    STATUS_TARGET: "🔵",
    STATUS_BOTH: "🔴🔵",
}


def format_date(when: datetime, tz: Optional[tzinfo] = None) -> str:
    if tz is not None:
        when = when.astimezone(tz)
    return when.strftime("%Y-%m-%d %H:%M")


def newest_first(commits: Iterable[ClassifiedCommit]) -> List[ClassifiedCommit]:
    return sorted(commits, key=lambda c: c.date, reverse=True)


def not_ignored(commits: Iterable[ClassifiedCommit], ignored: Dict[str, dict]) -> List[ClassifiedCommit]:
    return [c for c in commits if c.hash not in ignored]


def optimized_cherry_pick(commits: List[ClassifiedCommit]) -> str:
    """Collapse ``commits`` into a single range cherry-pick.

    The range runs from the oldest to the newest commit, so it only matches
    the per-commit commands when the commits are contiguous on their branch.
    """
    if not commits:
        return ""
    if len(commits) == 1:
        c = commits[0]
        return f"git cherry-pick {c.hash}  # {c.message}"
    ordered = newest_first(commits)
    oldest, newest = ordered[-1], ordered[0]
    return f"git cherry-pick {oldest.hash}^..{newest.hash}  # {len(commits)} commits"


def cherry_pick_commands(commits: List[ClassifiedCommit], from_branch: str, to_branch: str) -> List[str]:
    """Lines that port ``commits`` from ``from_branch`` onto ``to_branch``, oldest first."""
    lines = [
        f"# Switch to {to_branch}",
        f"git checkout {to_branch}",
        "",
        f"# Cherry-pick commits from {from_branch}",
    ]
    for c in reversed(newest_first(commits)):
        lines.append(f"git cherry-pick {c.hash}  # {c.message}")
    return lines


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def generate_markdown(comparison: Comparison, ignored: Dict[str, dict], tz: Optional[tzinfo] = None) -> str:
    cmp = comparison
    out: List[str] = []
    out.append("# Branch commit comparison\n")
    out.append(f"Generated: {format_date(cmp.generated_at, tz)}\n")
    out.append(f"## {cmp.source_branch} vs {cmp.target_branch}\n")
    if cmp.author:
        out.append(f"Author: {cmp.author}")
    if cmp.time_range != "all":
        out.append(f"Time range: {TIME_RANGE_LABELS.get(cmp.time_range, cmp.time_range)}")
    out.append("")

    visible = not_ignored(newest_first(cmp.commits), ignored)
    if not visible:
        out.append("_No commits found._")
    else:
        out.append("| Message | Date | Author | Status | Hash |")
        out.append("|---------|------|--------|--------|------|")
        for c in visible:
            out.append(
                f"| {_cell(c.message)} | {format_date(c.date, tz)} | {_cell(c.author_name)} "
                f"| {STATUS_INDICATORS[c.status]} | {c.hash} |"
            )

    source_only = [c for c in visible if c.status == STATUS_SOURCE]
    if source_only:
        out.append("")
        out.append("### Cherry-pick commands\n")
        out.append("```bash")
        out.extend(cherry_pick_commands(source_only, cmp.source_branch, cmp.target_branch))
        out.append("")
        out.append("# Or all at once (assumes the commits are contiguous)")
        out.append(optimized_cherry_pick(source_only))
        out.append("```")

    return "\n".join(out) + "\n"
