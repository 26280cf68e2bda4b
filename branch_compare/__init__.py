"""Compare the commit histories of two git branches."""

from .models import ClassifiedCommit, Comparison, RawCommit
from .reconcile import reconcile, summarize

__version__ = "0.1.0"

__all__ = ["ClassifiedCommit", "Comparison", "RawCommit", "reconcile", "summarize"]
