import json
import re
from datetime import datetime, timezone

from branch_compare.models import Comparison
from branch_compare.reconcile import reconcile
from branch_compare.timeline import build_html, render_diff

from .conftest import make_commit

GENERATED = datetime(2024, 2, 1, 9, 30, tzinfo=timezone.utc)

DIFF = """commit abc
Author: Alice

    Add login

diff --git a/login.py b/login.py
+print('login')
-print('old')
"""


def embedded(page, element_id):
    m = re.search(rf'<script type="application/json" id="{element_id}">(.*?)</script>', page, re.S)
    return json.loads(m.group(1))


def sample():
    commits = reconcile(
        [make_commit("s1", "Add login", 1), make_commit("s2", "<b>Feature</b>", 3)],
        [make_commit("t1", "Add login", 2), make_commit("t2", "Hotfix </script>", 4)],
        "feature",
        "main",
    )
    return Comparison("feature", "main", commits, GENERATED, author="Bob", time_range="2w")


def test_render_diff_highlights_and_truncates():
    out, truncated = render_diff(DIFF, 0)
    assert truncated is False
    assert 'class="highlight"' in out
    assert "login.py" in out

    out, truncated = render_diff(DIFF, 20)
    assert truncated is True
    assert "diff truncated" in out


def test_embedded_commit_data():
    page = build_html(sample(), {}, {})
    data = embedded(page, "commit-data")
    assert [c["hash"] for c in data] == ["t2", "s2", "s1"]
    s1 = data[2]
    assert s1["status"] == "both"
    assert s1["matchedByMessage"] is True
    assert s1["targetHash"] == "t1"
    assert s1["branches"] == ["feature", "main"]
    assert data[0]["message"] == "Hotfix </script>"


def test_messages_are_escaped():
    page = build_html(sample(), {}, {})
    assert "<b>Feature</b>" not in page
    assert "&lt;b&gt;Feature&lt;/b&gt;" in page


def test_badges_and_filters():
    page = build_html(sample(), {}, {})
    assert "synced (message match)" in page
    assert 'data-status="source"' in page
    assert 'data-status="target"' in page
    assert "Bob" in page
    assert "Last two weeks" in page
    assert 'id="source-to-target"' in page
    assert 'id="target-to-source"' in page


def test_ignored_and_remarks_are_joined():
    ignored = {"s2": {"hash": "s2", "reason": "Has conflicts", "timestamp": "t"}}
    remarks = {"t2": {"hash": "t2", "content": "needs review", "timestamp": "t"}}
    page = build_html(sample(), ignored, remarks)
    assert "Has conflicts" in page
    assert "needs review" in page
    assert 'data-hash="s2" data-status="source"\n  data-ignored="1"' in page
    assert "branch-compare unignore s2" in page
    # the only source-only commit is ignored, so no source->target block
    assert 'id="source-to-target"' not in page
    assert embedded(page, "ignored-data")[0]["hash"] == "s2"
    assert embedded(page, "remark-data")[0]["content"] == "needs review"


def test_diffs_are_embedded():
    diffs = {"s1": render_diff(DIFF, 0)}
    page = build_html(sample(), {}, {}, diffs)
    assert page.count("<details class='diff'>") == 1


def test_empty_comparison():
    page = build_html(Comparison("a", "b", [], GENERATED), {}, {})
    assert "No commits found" in page
    assert embedded(page, "commit-data") == []


def test_embedded_json_has_no_raw_markup():
    commits = reconcile([make_commit("s1", "<!--<script>alert(1)</script> & co")], [], "feature", "main")
    page = build_html(Comparison("feature", "main", commits, GENERATED), {}, {})
    assert "<!--<script>" not in page
    payload = re.search(r'id="commit-data">(.*?)</script>', page, re.S).group(1)
    assert "<" not in payload
    assert ">" not in payload
    assert "&" not in payload
    assert embedded(page, "commit-data")[0]["message"] == "<!--<script>alert(1)</script> & co"


def test_filters_read_embedded_data():
    ignored = {"s2": {"hash": "s2", "reason": "Has conflicts", "timestamp": "t"}}
    remarks = {"t2": {"hash": "t2", "content": "needs review", "timestamp": "t"}}
    page = build_html(sample(), ignored, remarks)
    script = page.rsplit("<script>", 1)[1]
    for element_id in ("commit-data", "ignored-data", "remark-data"):
        assert f"loadJson('{element_id}')" in script
    assert "remark.content" in script
    # cards carry only the hash lookup key and status, not the searchable text
    assert "data-author=" not in page
    assert "data-message=" not in page
