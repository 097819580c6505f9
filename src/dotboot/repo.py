"""Fast-forward a local dotfiles checkout when it is safe to do so."""

import logging
import subprocess
from pathlib import Path

from .types import RepoOutcome, RepoStatus

logger = logging.getLogger(__name__)


class RepositoryUpdater:
    """Updates a git checkout only if it is clean and its remote answers.

    Every check runs before anything that touches the network or the work
    tree, so a dirty checkout is never fetched into or modified.
    """

    def __init__(self, remote: str = "origin", timeout: int = 10):
        self.remote = remote
        self.timeout = timeout

    def _git(
        self, repo_path: Path, *args, timeout: int = 60
    ) -> subprocess.CompletedProcess:
        """Run a git command inside ``repo_path`` without raising on failure.

        Args:
            repo_path: Work tree to run in
            *args: Git command arguments (e.g., "status", "--porcelain")
            timeout: Command timeout in seconds

        Returns:
            CompletedProcess with stdout/stderr captured as text
        """
        cmd = ["git", "-C", str(repo_path)] + list(args)
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )

    def is_repo(self, repo_path: Path) -> bool:
        """True only if ``repo_path`` is the top of its own work tree.

        A plain directory nested inside some other checkout (``$HOME``
        kept in git, say) is not a repository.
        """
        if not repo_path.is_dir():
            return False
        try:
            result = self._git(repo_path, "rev-parse", "--show-toplevel")
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"git rev-parse failed in {repo_path}: {e}")
            return False
        toplevel = result.stdout.strip()
        if result.returncode != 0 or not toplevel:
            return False
        if Path(toplevel).resolve() != repo_path.resolve():
            logger.debug(f"{repo_path} is inside the work tree of {toplevel}")
            return False
        return True

    def is_dirty(self, repo_path: Path) -> bool:
        """True if tracked files differ from HEAD (untracked files ignored)."""
        result = self._git(
            repo_path, "status", "--porcelain", "--untracked-files=no"
        )
        if result.returncode != 0:
            # Can't tell, so treat the tree as unsafe to touch
            logger.warning(f"git status failed: {result.stderr.strip()}")
            return True
        return bool(result.stdout.strip())

    def is_reachable(self, repo_path: Path) -> bool:
        try:
            result = self._git(
                repo_path,
                "ls-remote",
                "--heads",
                self.remote,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning(
                f"Remote '{self.remote}' did not answer within "
                f"{self.timeout}s"
            )
            return False
        if result.returncode != 0:
            logger.warning(
                f"Could not contact remote '{self.remote}': "
                f"{result.stderr.strip()}"
            )
            return False
        return True

    def update(self, repo_path: Path) -> RepoOutcome:
        repo_path = Path(repo_path)

        if not self.is_repo(repo_path):
            logger.info(f"{repo_path} is not a git checkout")
            return RepoOutcome(repo_path, RepoStatus.NOT_A_REPO)

        try:
            if self.is_dirty(repo_path):
                logger.info(f"{repo_path} has uncommitted changes")
                return RepoOutcome(
                    repo_path,
                    RepoStatus.DIRTY,
                    detail="uncommitted changes to tracked files",
                )

            if not self.is_reachable(repo_path):
                return RepoOutcome(
                    repo_path,
                    RepoStatus.UNREACHABLE,
                    detail=f"remote '{self.remote}' unreachable",
                )

            result = self._git(
                repo_path, "pull", "--ff-only", self.remote,
                timeout=self.timeout * 6,
            )
        except subprocess.TimeoutExpired:
            return RepoOutcome(
                repo_path,
                RepoStatus.FAST_FORWARD_FAILED,
                detail="git timed out",
            )
        except OSError as e:
            return RepoOutcome(
                repo_path, RepoStatus.FAST_FORWARD_FAILED, detail=str(e)
            )

        if result.returncode != 0:
            detail = result.stderr.strip() or result.stdout.strip()
            logger.warning(f"Fast-forward of {repo_path} failed: {detail}")
            return RepoOutcome(
                repo_path, RepoStatus.FAST_FORWARD_FAILED, detail=detail
            )

        logger.info(f"Fast-forwarded {repo_path} from {self.remote}")
        return RepoOutcome(
            repo_path, RepoStatus.UPDATED, detail=result.stdout.strip()
        )
