"""Ignore and remark records, stored as flat JSON files keyed by commit hash.

Neither list influences reconciliation; both are joined to the classified
commits when a report is rendered.
"""

from __future__ import annotations

import json
import logging
import pathlib
from datetime import datetime, timezone
from typing import Any, Dict, List

from .errors import AnnotationError

LOG = logging.getLogger(__name__)

IGNORE_REASONS = [
    "Merged manually",
    "No need to merge",
    "Has conflicts",
    "Needs confirmation",
    "Other",
]

Record = Dict[str, Any]


def resolve_reason(reason: str) -> str:
    """Map ``1``..``5`` to the preset reasons; any other text is kept as written."""
    text = reason.strip()
    if text.isdigit() and 1 <= int(text) <= len(IGNORE_REASONS):
        return IGNORE_REASONS[int(text) - 1]
    return text or IGNORE_REASONS[-1]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _read_json(path: pathlib.Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise AnnotationError(f"Cannot read {path}: {e}") from e
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise AnnotationError(f"{path} is not valid JSON: {e}") from e


def _write_json(path: pathlib.Path, data: Any) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    except OSError as e:
        raise AnnotationError(f"Cannot write {path}: {e}") from e


def _valid(records: Any) -> List[Record]:
    if not isinstance(records, list):
        return []
    out = []
    for r in records:
        if isinstance(r, dict) and isinstance(r.get("hash"), str) and r["hash"].strip():
            out.append(r)
        else:
            LOG.debug("dropping invalid annotation record %r", r)
    return out


# ---- ignored commits ---------------------------------------------------------

def load_ignored(path: pathlib.Path) -> List[Record]:
    data = _read_json(path)
    if data is None:
        return []
    # tolerate the {"ignoredCommits": [...]} wrapper too
    if isinstance(data, dict):
        data = data.get("ignoredCommits", [])
    return _valid(data)


def save_ignored(path: pathlib.Path, records: List[Record]) -> None:
    _write_json(path, _valid(records))


def add_ignore(records: List[Record], sha: str, reason: str) -> List[Record]:
    """Return ``records`` with ``sha`` ignored for ``reason``, replacing any earlier entry."""
    out = [r for r in records if r.get("hash") != sha]
    out.append({"hash": sha, "reason": reason, "timestamp": _now_iso()})
    return out


def remove_ignore(records: List[Record], sha: str) -> List[Record]:
    return [r for r in records if r.get("hash") != sha]


# ---- remarks -----------------------------------------------------------------

def load_remarks(path: pathlib.Path) -> List[Record]:
    """Load remark records.

    Accepts ``{"commitRemarks": [...]}``, a bare list, and the older
    ``{"commitRemarks": {hash: content}}`` mapping, which is converted to
    records stamped with the current time.
    """
    data = _read_json(path)
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("commitRemarks", [])
    if isinstance(data, dict):
        stamp = _now_iso()
        data = [{"hash": h, "content": c or "", "timestamp": stamp} for h, c in data.items()]
    return _valid(data)


def save_remarks(path: pathlib.Path, records: List[Record]) -> None:
    _write_json(path, {"commitRemarks": _valid(records)})


def set_remark(records: List[Record], sha: str, content: str) -> List[Record]:
    """Return ``records`` with the remark for ``sha`` replaced; blank content removes it."""
    out = [r for r in records if r.get("hash") != sha]
    if content.strip():
        out.append({"hash": sha, "content": content, "timestamp": _now_iso()})
    return out


def index_by_hash(records: List[Record]) -> Dict[str, Record]:
    return {r["hash"]: r for r in records}
