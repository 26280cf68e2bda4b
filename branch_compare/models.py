"""Commit records passed between the git reader, the reconciler and the renderers."""

from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any, Dict, List, Optional

STATUS_SOURCE = "source"
STATUS_TARGET = "target"
STATUS_BOTH = "both"


@dataclasses.dataclass
class RawCommit:
    hash: str
    author_name: str
    message: str  # subject line only
    date: datetime


@dataclasses.dataclass
class ClassifiedCommit:
    hash: str
    author_name: str
    message: str
    date: datetime
    status: str
    branches: List[str]
    normalized_message: str
    matched_by_message: bool = False
    target_hash: Optional[str] = None  # only set for message matches

    @classmethod
    def from_raw(cls, commit: RawCommit, status: str, branches: List[str], normalized_message: str) -> "ClassifiedCommit":
        return cls(
            hash=commit.hash,
            author_name=commit.author_name,
            message=commit.message,
            date=commit.date,
            status=status,
            branches=list(branches),
            normalized_message=normalized_message,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON form embedded in the HTML timeline."""
        return {
            "hash": self.hash,
            "authorName": self.author_name,
            "message": self.message,
            "date": self.date.isoformat(),
            "status": self.status,
            "branches": list(self.branches),
            "matchedByMessage": self.matched_by_message,
            "targetHash": self.target_hash,
        }


@dataclasses.dataclass
class Comparison:
    """Everything a report needs about one source/target comparison."""

    source_branch: str
    target_branch: str
    commits: List[ClassifiedCommit]
    generated_at: datetime
    author: Optional[str] = None
    time_range: str = "all"
    head: Optional[str] = None  # HEAD of the repository the report was built in
