import json

import pytest

from branch_compare import annotations
from branch_compare.errors import AnnotationError


def test_missing_files_load_as_empty(tmp_path):
    assert annotations.load_ignored(tmp_path / "ignored-commits.json") == []
    assert annotations.load_remarks(tmp_path / "commit-remarks.json") == []


def test_ignore_add_replace_remove(tmp_path):
    path = tmp_path / "data" / "ignored-commits.json"
    records = annotations.add_ignore([], "abc", "Has conflicts")
    records = annotations.add_ignore(records, "def", "Other")
    records = annotations.add_ignore(records, "abc", "Merged manually")
    annotations.save_ignored(path, records)

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert isinstance(saved, list)
    assert [(r["hash"], r["reason"]) for r in saved] == [("def", "Other"), ("abc", "Merged manually")]
    assert all("timestamp" in r for r in saved)

    loaded = annotations.load_ignored(path)
    assert annotations.remove_ignore(loaded, "def") == [loaded[1]]


def test_ignored_wrapper_form(tmp_path):
    path = tmp_path / "ignored.json"
    path.write_text(json.dumps({"ignoredCommits": [{"hash": "abc", "reason": "x", "timestamp": "t"}]}))
    assert annotations.load_ignored(path)[0]["hash"] == "abc"


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "ignored.json"
    path.write_text("{not json")
    with pytest.raises(AnnotationError):
        annotations.load_ignored(path)


def test_remarks_saved_wrapped(tmp_path):
    path = tmp_path / "commit-remarks.json"
    records = annotations.set_remark([], "abc", "ported by hand")
    annotations.save_remarks(path, records)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert list(data) == ["commitRemarks"]
    assert data["commitRemarks"][0]["content"] == "ported by hand"
    assert annotations.load_remarks(path) == records


def test_blank_remark_clears(tmp_path):
    records = annotations.set_remark([], "abc", "x")
    assert annotations.set_remark(records, "abc", "   ") == []


def test_remarks_legacy_mapping_and_bare_list(tmp_path):
    path = tmp_path / "commit-remarks.json"
    path.write_text(json.dumps({"commitRemarks": {"abc": "one", "def": None}}))
    loaded = annotations.load_remarks(path)
    assert [(r["hash"], r["content"]) for r in loaded] == [("abc", "one"), ("def", "")]

    path.write_text(json.dumps([{"hash": "x", "content": "y", "timestamp": "t"}]))
    assert annotations.load_remarks(path)[0]["hash"] == "x"


def test_records_without_hash_are_dropped(tmp_path):
    path = tmp_path / "commit-remarks.json"
    path.write_text(json.dumps({"commitRemarks": [{"hash": "", "content": "a"}, {"content": "b"}, "junk", {"hash": "ok"}]}))
    assert annotations.load_remarks(path) == [{"hash": "ok"}]


def test_index_by_hash():
    idx = annotations.index_by_hash([{"hash": "a", "reason": "1"}, {"hash": "b", "reason": "2"}])
    assert idx["b"]["reason"] == "2"


@pytest.mark.parametrize(
    "given, expected",
    [
        ("1", "Merged manually"),
        ("3", "Has conflicts"),
        (" 5 ", "Other"),
        ("6", "6"),
        ("0", "0"),
        ("blocked by #42", "blocked by #42"),
        ("   ", "Other"),
    ],
)
def test_resolve_reason(given, expected):
    assert annotations.resolve_reason(given) == expected
