"""The bootstrap pipeline: fetch, update, sync, link."""

import logging
from typing import Callable, Optional

from .config import Config
from .fetcher import Fetcher
from .linker import ProfileLinker
from .repo import RepositoryUpdater
from .syncer import TreeSyncer
from .system import Environment
from .types import (
    FetchOutcome,
    LinkOutcome,
    RepoOutcome,
    RunResult,
    SyncOutcome,
    SyncPlan,
)

logger = logging.getLogger(__name__)


class Reporter:
    """Receives each stage's outcome as soon as it is known."""

    def stage(self, title: str):
        pass

    def fetched(self, outcome: FetchOutcome):
        pass

    def verify_failed(self, result: RunResult):
        pass

    def repository(self, outcome: RepoOutcome):
        pass

    def synced(self, outcome: SyncOutcome):
        pass

    def linked(self, outcome: LinkOutcome):
        pass

    def link_failed(self, error: str):
        pass

    def cancelled(self):
        pass


class Bootstrapper:
    """Runs the stages in order and collects their outcomes.

    Stages never raise past this class except for preflight problems
    (PreconditionError). A failed fetch or sync stops the run; the
    repository update is best-effort.
    """

    def __init__(
        self,
        config: Config,
        env: Optional[Environment] = None,
        fetcher: Optional[Fetcher] = None,
        updater: Optional[RepositoryUpdater] = None,
        syncer: Optional[TreeSyncer] = None,
        linker: Optional[ProfileLinker] = None,
    ):
        self.config = config
        self.env = env or Environment()
        self.fetcher = fetcher or Fetcher(
            connect_timeout=config.get("fetch.connect_timeout", 10),
            timeout=config.get("fetch.timeout", 60),
        )
        self.updater = updater or RepositoryUpdater(
            remote=config.get("repository.remote", "origin"),
            timeout=config.get("repository.timeout", 10),
        )
        self.syncer = syncer or TreeSyncer()
        self.linker = linker or ProfileLinker(
            header=config.get("profile.header") or ""
        )

    def preflight(self):
        """Raise PreconditionError if a required tool is missing."""
        self.env.require_tools(self.config.get_required_tools())

    def run(
        self,
        force: bool = False,
        confirm: Optional[Callable[[SyncPlan], bool]] = None,
        reporter: Optional[Reporter] = None,
    ) -> RunResult:
        reporter = reporter or Reporter()
        result = RunResult()

        resources = self.config.get_resources()
        self.preflight()

        if resources:
            reporter.stage("Downloading resources")
        for resource in resources:
            outcome = self.fetcher.fetch(resource)
            result.fetches.append(outcome)
            reporter.fetched(outcome)
        if result.fetch_failed:
            return result

        result.unverified = self.fetcher.verify(resources)
        if result.unverified:
            reporter.verify_failed(result)
            return result

        if self.config.get("repository.enabled"):
            reporter.stage("Updating dotfiles repository")
            result.repository = self.updater.update(
                self.config.get_repository_path()
            )
            reporter.repository(result.repository)

        if self.config.get("sync.enabled"):
            plan = self.config.get_sync_plan()
            if not force and confirm is not None and not confirm(plan):
                result.cancelled = True
                reporter.cancelled()
                return result

            reporter.stage("Syncing dotfiles")
            result.sync = self.syncer.sync(plan)
            reporter.synced(result.sync)
            if result.sync.failed:
                return result

        entries = self.config.get_profile_entries()
        if entries:
            reporter.stage("Linking shell profile")
            try:
                for outcome in self.linker.link(entries):
                    result.links.append(outcome)
                    reporter.linked(outcome)
            except OSError as e:
                result.link_error = str(e)
                logger.error(f"Could not update shell profile: {e}")
                reporter.link_failed(result.link_error)

        return result
