"""Exception hierarchy for branch-compare."""

from __future__ import annotations

from typing import List, Optional


class BranchCompareError(Exception):
    """Base class for every error the CLI reports without a traceback."""


class ReconcileInputError(BranchCompareError, TypeError):
    """Raised when reconcile() is handed something that is not a commit sequence."""


class ConfigError(BranchCompareError):
    pass


class AnnotationError(BranchCompareError):
    """An ignore/remark file exists but cannot be read or written."""


class GitError(BranchCompareError):
    def __init__(self, cmd: List[str], returncode: int, stderr: Optional[str] = None) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        msg = f"`{' '.join(cmd)}` failed with exit code {returncode}"
        if self.stderr:
            msg += f": {self.stderr}"
        super().__init__(msg)
