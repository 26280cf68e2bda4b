"""Shared fixtures: commit factories and a throwaway git repository."""

import os
import shutil
import subprocess
import time
from datetime import datetime, timedelta, timezone

import pytest

from branch_compare.models import RawCommit

BASE_DATE = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_commit(sha, message, days=0, author="alice"):
    return RawCommit(hash=sha, author_name=author, message=message, date=BASE_DATE + timedelta(days=days))


@pytest.fixture
def commit():
    return make_commit


def _git(repo, *args, env=None):
    return subprocess.run(["git", *args], cwd=repo, check=True, text=True, capture_output=True, env=env).stdout


@pytest.fixture
def git_repo(tmp_path):
    """Repository with branches ``main`` and ``feature``.

    main:    init, "Add login"
    feature: init, "Add login" (cherry-picked, new hash), "Feature only"
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "repo"
    repo.mkdir()
    env = dict(os.environ)
    env.update(
        GIT_AUTHOR_NAME="Alice",
        GIT_AUTHOR_EMAIL="alice@example.com",
        GIT_COMMITTER_NAME="Alice",
        GIT_COMMITTER_EMAIL="alice@example.com",
        GIT_CONFIG_NOSYSTEM="1",
        HOME=str(tmp_path),
    )

    def commit_file(name, text, message, author="Alice"):
        (repo / name).write_text(text)
        _git(repo, "add", name, env=env)
        e = dict(env, GIT_AUTHOR_NAME=author)
        _git(repo, "commit", "-q", "-m", message, env=e)
        return _git(repo, "rev-parse", "HEAD", env=env).strip()

    _git(repo, "init", "-q", "-b", "main", env=env)
    init = commit_file("README", "hello\n", "init")
    _git(repo, "checkout", "-q", "-b", "feature", env=env)
    login = commit_file("login.py", "print('login')\n", "Add login", author="Bob")
    only = commit_file("extra.py", "x = 1\n", "Feature only", author="Bob")
    _git(repo, "checkout", "-q", "main", env=env)
    # an earlier committer date makes the pick a distinct commit even within the same second
    pick_env = dict(env, GIT_COMMITTER_DATE=f"@{int(time.time()) - 3600} +0000")
    _git(repo, "cherry-pick", login, env=pick_env)
    picked = _git(repo, "rev-parse", "HEAD", env=env).strip()
    assert picked != login

    return {
        "path": str(repo),
        "env": env,
        "init": init,
        "login": login,
        "feature_only": only,
        "picked": picked,
    }
