"""RepositoryUpdater against real git repositories."""

import shutil
import subprocess
from pathlib import Path

import pytest

from dotboot.repo import RepositoryUpdater
from dotboot.types import RepoStatus

pytestmark = pytest.mark.skipif(
    shutil.which("git") is None, reason="git not installed"
)


def _git(cwd: Path, *args):
    return subprocess.run(
        ["git"] + list(args),
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )


def _configure(repo: Path):
    _git(repo, "config", "user.email", "test@test.com")
    _git(repo, "config", "user.name", "Test User")


def _commit(repo: Path, filename: str, content: str, message: str):
    (repo / filename).write_text(content)
    _git(repo, "add", filename)
    _git(repo, "commit", "-m", message)


def _head(repo: Path) -> str:
    return _git(repo, "rev-parse", "HEAD").stdout.strip()


@pytest.fixture
def remote(tmp_path):
    """A bare repo on branch main holding .bashrc and bootstrap.sh."""
    bare = tmp_path / "remote.git"
    subprocess.run(
        ["git", "init", "--bare", str(bare)], check=True, capture_output=True
    )
    _git(bare, "symbolic-ref", "HEAD", "refs/heads/main")

    seed = tmp_path / "seed"
    seed.mkdir()
    _git(seed, "init")
    _configure(seed)
    (seed / "bootstrap.sh").write_text("#!/bin/bash\n")
    _commit(seed, ".bashrc", "export EDITOR=vim\n", "init")
    _git(seed, "remote", "add", "origin", str(bare))
    _git(seed, "push", "origin", "HEAD:main")
    return bare


@pytest.fixture
def checkout(tmp_path, remote):
    """A clone of the remote that tracks origin/main."""
    dest = tmp_path / "dotfiles"
    subprocess.run(
        ["git", "clone", str(remote), str(dest)],
        check=True,
        capture_output=True,
    )
    _configure(dest)
    return dest


def _push_remote_change(tmp_path, remote, content="export EDITOR=nvim\n"):
    other = tmp_path / "other"
    subprocess.run(
        ["git", "clone", str(remote), str(other)],
        check=True,
        capture_output=True,
    )
    _configure(other)
    _commit(other, ".bashrc", content, "switch editor")
    _git(other, "push", "origin", "HEAD:main")


class TestRepositoryUpdaterGit:
    """End-to-end decisions with real repositories."""

    def test_plain_directory_is_not_a_repo(self, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()

        outcome = RepositoryUpdater().update(plain)

        assert outcome.status is RepoStatus.NOT_A_REPO

    def test_plain_directory_inside_home_repo(self, tmp_path, remote):
        """A plain ~/.dotfiles inside a git-managed home is not a repo."""
        home = tmp_path / "home"
        home.mkdir()
        _git(home, "init")
        _configure(home)
        _git(home, "remote", "add", "origin", str(remote))
        nested = home / ".dotfiles"
        nested.mkdir()

        outcome = RepositoryUpdater(timeout=5).update(nested)

        assert outcome.status is RepoStatus.NOT_A_REPO
        assert not (home / ".bashrc").exists()

    def test_subdirectory_of_checkout_is_not_a_repo(self, checkout):
        sub = checkout / "sub"
        sub.mkdir()

        outcome = RepositoryUpdater().update(sub)

        assert outcome.status is RepoStatus.NOT_A_REPO

    def test_clean_checkout_is_fast_forwarded(self, tmp_path, remote, checkout):
        _push_remote_change(tmp_path, remote)

        outcome = RepositoryUpdater().update(checkout)

        assert outcome.status is RepoStatus.UPDATED
        assert (checkout / ".bashrc").read_text() == "export EDITOR=nvim\n"

    def test_up_to_date_checkout_is_updated_noop(self, checkout):
        before = _head(checkout)

        outcome = RepositoryUpdater().update(checkout)

        assert outcome.status is RepoStatus.UPDATED
        assert _head(checkout) == before

    def test_dirty_checkout_is_left_alone(self, tmp_path, remote, checkout):
        _push_remote_change(tmp_path, remote)
        (checkout / ".bashrc").write_text("local edit\n")
        before = _head(checkout)

        outcome = RepositoryUpdater().update(checkout)

        assert outcome.status is RepoStatus.DIRTY
        assert _head(checkout) == before
        assert (checkout / ".bashrc").read_text() == "local edit\n"
        # Nothing was fetched either
        remote_ref = _git(checkout, "rev-parse", "origin/main").stdout.strip()
        assert remote_ref == before

    def test_untracked_files_do_not_make_it_dirty(self, checkout):
        (checkout / ".new_untracked").write_text("x")

        outcome = RepositoryUpdater().update(checkout)

        assert outcome.status is RepoStatus.UPDATED

    def test_unreachable_remote(self, tmp_path, checkout):
        _git(
            checkout, "remote", "set-url", "origin", str(tmp_path / "gone.git")
        )

        outcome = RepositoryUpdater(timeout=10).update(checkout)

        assert outcome.status is RepoStatus.UNREACHABLE

    def test_diverged_history_fails_fast_forward(
        self, tmp_path, remote, checkout
    ):
        _push_remote_change(tmp_path, remote)
        _commit(checkout, ".aliases", "alias ll='ls -l'\n", "local commit")
        before = _head(checkout)

        outcome = RepositoryUpdater().update(checkout)

        assert outcome.status is RepoStatus.FAST_FORWARD_FAILED
        assert _head(checkout) == before
