"""Settings for branch-compare.

Defaults can be overridden through environment variables; the CLI overrides
them again from its flags.
"""

from __future__ import annotations

import dataclasses
import os
import pathlib
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigError

APP_NAME = "branch-compare"
DEFAULT_DATA_DIR = pathlib.Path.home() / ".config" / APP_NAME
DEFAULT_TIMEZONE = "Asia/Shanghai"
DEFAULT_MAX_DIFF_BYTES = 512 * 1024  # 512 KiB per-commit

IGNORED_FILE = "ignored-commits.json"
REMARKS_FILE = "commit-remarks.json"
MARKDOWN_FILE = "branch-diff.md"
TIMELINE_FILE = "branch-timeline.html"

# preset -> days back from today; None means no time filter
TIME_RANGES = {
    "all": None,
    "1w": 7,
    "2w": 14,
    "1m": 30,
    "3m": 90,
    "6m": 180,
    "1y": 365,
}

TIME_RANGE_LABELS = {
    "all": "All time",
    "1w": "Last week",
    "2w": "Last two weeks",
    "1m": "Last month",
    "3m": "Last three months",
    "6m": "Last six months",
    "1y": "Last year",
}


def load_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown timezone: {name!r}") from e


@dataclasses.dataclass
class Settings:
    data_dir: pathlib.Path = dataclasses.field(
        default_factory=lambda: pathlib.Path(os.environ.get("BRANCH_COMPARE_HOME", str(DEFAULT_DATA_DIR)))
    )
    timezone: str = dataclasses.field(
        default_factory=lambda: os.environ.get("BRANCH_COMPARE_TZ", DEFAULT_TIMEZONE)
    )
    max_diff_bytes: int = DEFAULT_MAX_DIFF_BYTES

    @property
    def tz(self) -> tzinfo:
        return load_timezone(self.timezone)

    def data_file(self, filename: str) -> pathlib.Path:
        """Return the path of ``filename`` inside the data dir, creating the dir."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir / filename
