"""Records and stage outcomes shared by the bootstrap pipeline."""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class Resource:
    """A remote file that is downloaded into a local path."""

    name: str
    url: str
    destination: Path
    max_age: timedelta = timedelta(days=30)


@dataclass(frozen=True)
class SyncPlan:
    """What to copy from a dotfiles checkout into the home directory."""

    source_root: Path
    destination_root: Path
    excludes: FrozenSet[str] = frozenset()
    marker: str = "bootstrap.sh"


@dataclass(frozen=True)
class ProfileEntry:
    """A line that must appear exactly once in a shell-init file."""

    line: str
    target: Path


class FetchStatus(Enum):
    SKIPPED = "skipped"
    DOWNLOADED = "downloaded"
    FAILED = "failed"


@dataclass
class FetchOutcome:
    resource: Resource
    status: FetchStatus
    reason: Optional[str] = None
    size: int = 0

    @property
    def failed(self) -> bool:
        return self.status is FetchStatus.FAILED


class RepoStatus(Enum):
    NOT_A_REPO = "not-a-repo"
    DIRTY = "dirty"
    UNREACHABLE = "unreachable"
    UPDATED = "updated"
    FAST_FORWARD_FAILED = "fast-forward-failed"


@dataclass
class RepoOutcome:
    path: Path
    status: RepoStatus
    detail: Optional[str] = None


class SyncAction(Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class SyncOutcome:
    """Per-file actions of a tree sync, or the reason it failed.

    ``actions`` keeps whatever was copied before a failure so the CLI can
    report partial progress.
    """

    actions: List[Tuple[str, SyncAction]] = field(default_factory=list)
    error: Optional[str] = None
    precondition_failed: bool = False

    @property
    def failed(self) -> bool:
        return self.error is not None

    def count(self, action: SyncAction) -> int:
        return sum(1 for _, a in self.actions if a is action)


class LinkStatus(Enum):
    ADDED = "added"
    ALREADY_PRESENT = "already-present"


@dataclass
class LinkOutcome:
    target: Path
    results: List[Tuple[str, LinkStatus]] = field(default_factory=list)

    @property
    def added(self) -> List[str]:
        return [line for line, s in self.results if s is LinkStatus.ADDED]


@dataclass
class RunResult:
    """Aggregated outcome of one bootstrap run."""

    fetches: List[FetchOutcome] = field(default_factory=list)
    unverified: List[Resource] = field(default_factory=list)
    repository: Optional[RepoOutcome] = None
    sync: Optional[SyncOutcome] = None
    links: List[LinkOutcome] = field(default_factory=list)
    link_error: Optional[str] = None
    cancelled: bool = False

    @property
    def fetch_failed(self) -> bool:
        return any(o.failed for o in self.fetches) or bool(self.unverified)

    @property
    def exit_code(self) -> int:
        if self.fetch_failed:
            return 1
        if self.sync is not None and self.sync.failed:
            return 1
        if self.link_error is not None:
            return 1
        return 0
