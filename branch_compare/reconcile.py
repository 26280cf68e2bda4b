"""Merge two branches' commit lists into one classified list.

A commit is ``both`` when the target branch has the same hash (shared history)
or, failing that, a commit whose trimmed subject equals a source commit's
trimmed subject (cherry-picked or rebased, so the hash changed). Everything
else is ``source`` or ``target`` only.

Matching by subject is greedy: one target commit promotes *every* source
commit that still has ``source`` status and shares its subject.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from typing import Dict, List

from .errors import ReconcileInputError
from .models import STATUS_BOTH, STATUS_SOURCE, STATUS_TARGET, ClassifiedCommit, RawCommit

LOG = logging.getLogger(__name__)


def normalize_message(message: str) -> str:
    return message.strip()


def _check_sequence(value, name: str) -> None:
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise ReconcileInputError(f"{name} must be a sequence of commits, got {type(value).__name__}")


def _check_branch(value, name: str) -> None:
    if not isinstance(value, str):
        raise ReconcileInputError(f"{name} must be a branch name string, got {type(value).__name__}")


def reconcile(
    source_commits: Iterable[RawCommit],
    target_commits: Iterable[RawCommit],
    source_branch: str,
    target_branch: str,
) -> List[ClassifiedCommit]:
    """Return the merged commits of both branches, source discoveries first.

    Source commits are indexed before any target commit is looked at, so
    the outcome only depends on the order within each list. Duplicate hashes
    inside one list are not deduplicated: the later record replaces the
    earlier one.
    """
    _check_sequence(source_commits, "source_commits")
    _check_sequence(target_commits, "target_commits")
    _check_branch(source_branch, "source_branch")
    _check_branch(target_branch, "target_branch")

    both = [source_branch, target_branch]
    result: Dict[str, ClassifiedCommit] = {}
    by_message: Dict[str, List[str]] = {}

    for commit in source_commits:
        normalized = normalize_message(commit.message)
        result[commit.hash] = ClassifiedCommit.from_raw(commit, STATUS_SOURCE, [source_branch], normalized)
        by_message.setdefault(normalized, []).append(commit.hash)

    for commit in target_commits:
        normalized = normalize_message(commit.message)

        existing = result.get(commit.hash)
        if existing is not None:
            existing.status = STATUS_BOTH
            existing.branches = list(both)
            continue

        source_hashes = by_message.get(normalized)
        if source_hashes:
            for source_hash in source_hashes:
                entry = result.get(source_hash)
                if entry is not None and entry.status == STATUS_SOURCE:
                    entry.status = STATUS_BOTH
                    entry.branches = list(both)
                    entry.matched_by_message = True
                    entry.target_hash = commit.hash
            # absorbed into the source entries, even if they were already promoted
            continue

        result[commit.hash] = ClassifiedCommit.from_raw(commit, STATUS_TARGET, [target_branch], normalized)

    merged = list(result.values())
    LOG.debug("reconciled %s vs %s into %d commits", source_branch, target_branch, len(merged))
    return merged


@dataclasses.dataclass
class ReconcileSummary:
    total: int = 0
    source: int = 0
    target: int = 0
    both: int = 0
    matched_by_message: int = 0


def summarize(commits: Iterable[ClassifiedCommit]) -> ReconcileSummary:
    summary = ReconcileSummary()
    for c in commits:
        summary.total += 1
        if c.status == STATUS_SOURCE:
            summary.source += 1
        elif c.status == STATUS_TARGET:
            summary.target += 1
        else:
            summary.both += 1
            if c.matched_by_message:
                summary.matched_by_message += 1
    return summary
