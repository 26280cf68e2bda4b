from datetime import datetime, timezone

from branch_compare.models import Comparison
from branch_compare.reconcile import reconcile
from branch_compare.report import (
    cherry_pick_commands,
    format_date,
    generate_markdown,
    optimized_cherry_pick,
)

from .conftest import make_commit

GENERATED = datetime(2024, 2, 1, 9, 30, tzinfo=timezone.utc)


def comparison(source, target, **kw):
    commits = reconcile(source, target, "feature", "main")
    return Comparison("feature", "main", commits, GENERATED, **kw)


def test_format_date():
    assert format_date(datetime(2024, 1, 1, 23, 5, tzinfo=timezone.utc)) == "2024-01-01 23:05"


def test_optimized_cherry_pick():
    assert optimized_cherry_pick([]) == ""
    (one,) = reconcile([make_commit("aaa", "only")], [], "a", "b")
    assert optimized_cherry_pick([one]) == "git cherry-pick aaa  # only"

    commits = reconcile(
        [make_commit("mid", "m", 1), make_commit("new", "n", 2), make_commit("old", "o", 0)], [], "a", "b"
    )
    assert optimized_cherry_pick(commits) == "git cherry-pick old^..new  # 3 commits"


def test_cherry_pick_commands_oldest_first():
    commits = reconcile([make_commit("new", "second", 2), make_commit("old", "first", 1)], [], "a", "b")
    lines = cherry_pick_commands(commits, "feature", "main")
    assert lines[:2] == ["# Switch to main", "git checkout main"]
    assert lines[-2:] == ["git cherry-pick old  # first", "git cherry-pick new  # second"]


def test_markdown_table_and_commands():
    cmp = comparison(
        [make_commit("s1", "Add login", 1), make_commit("s2", "Feature | pipes", 3), make_commit("c1", "init", 0)],
        [make_commit("c1", "init", 0), make_commit("t1", "Add login", 2), make_commit("t2", "Hotfix", 4)],
        author="Bob",
        time_range="1m",
    )
    md = generate_markdown(cmp, {})
    assert "## feature vs main" in md
    assert "Author: Bob" in md
    assert "Time range: Last month" in md
    rows = [line for line in md.splitlines() if line.startswith("| ") and "---" not in line][1:]
    assert [r.split("|")[-2].strip() for r in rows] == ["t2", "s2", "s1", "c1"]
    assert "Feature \\| pipes" in md
    assert "| 🔵 | t2 |" in md
    assert "| 🔴🔵 | s1 |" in md
    assert "| 🔴 | s2 |" in md
    assert "git checkout main" in md
    assert "git cherry-pick s2  # Feature | pipes" in md
    # only one source-only commit, so the optimized form is the single command
    assert md.count("git cherry-pick s2") == 2


def test_markdown_skips_ignored_commits():
    cmp = comparison([make_commit("s1", "a", 1), make_commit("s2", "b", 2)], [])
    md = generate_markdown(cmp, {"s2": {"hash": "s2", "reason": "Other"}})
    assert "s2" not in md
    assert "git cherry-pick s1" in md


def test_markdown_without_source_only_commits_has_no_commands():
    cmp = comparison([make_commit("c1", "x")], [make_commit("c1", "x")])
    md = generate_markdown(cmp, {})
    assert "Cherry-pick" not in md
    assert "Author:" not in md
    assert "Time range" not in md


def test_markdown_empty_comparison():
    md = generate_markdown(comparison([], []), {})
    assert "_No commits found._" in md
