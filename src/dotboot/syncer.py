"""Copy the hidden entries of a dotfiles checkout into a destination tree."""

import filecmp
import fnmatch
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, List, Tuple

from .errors import PreconditionError
from .types import SyncAction, SyncOutcome, SyncPlan

logger = logging.getLogger(__name__)


def is_excluded(name: str, excludes: Iterable[str]) -> bool:
    """Match ``name`` against exact names and fnmatch-style patterns."""
    return any(name == e or fnmatch.fnmatchcase(name, e) for e in excludes)


class TreeSyncer:
    """Copies dotfiles into place without ever deleting anything.

    Files are copied by content only: an existing destination file keeps
    its permission bits, a new one gets the source bits masked by the
    process umask. Symlinks are recreated as symlinks.
    """

    def __init__(self):
        self._umask = os.umask(0)
        os.umask(self._umask)

    def check(self, plan: SyncPlan):
        """Raise PreconditionError unless the source root carries the marker."""
        if not plan.source_root.is_dir():
            raise PreconditionError(
                f"Source directory {plan.source_root} does not exist"
            )
        if not (plan.source_root / plan.marker).exists():
            raise PreconditionError(
                f"{plan.marker} not found in {plan.source_root}; "
                "refusing to sync from an unexpected directory"
            )

    def entries(self, plan: SyncPlan) -> List[Path]:
        """Top-level hidden entries of the source root, minus exclusions."""
        return sorted(
            p for p in plan.source_root.iterdir()
            if p.name.startswith(".")
            and not is_excluded(p.name, plan.excludes)
        )

    def sync(self, plan: SyncPlan) -> SyncOutcome:
        outcome = SyncOutcome()
        try:
            self.check(plan)
        except PreconditionError as e:
            logger.error(str(e))
            outcome.error = str(e)
            outcome.precondition_failed = True
            return outcome

        try:
            plan.destination_root.mkdir(parents=True, exist_ok=True)
            for entry in self.entries(plan):
                self._copy_entry(entry, plan, outcome.actions)
        except OSError as e:
            outcome.error = f"Copy into {plan.destination_root} failed: {e}"
            logger.error(outcome.error)
            return outcome

        logger.info(
            f"Synced {len(outcome.actions)} file(s) from {plan.source_root} "
            f"to {plan.destination_root}"
        )
        return outcome

    def _copy_entry(
        self,
        src: Path,
        plan: SyncPlan,
        actions: List[Tuple[str, SyncAction]],
    ):
        rel = src.relative_to(plan.source_root)
        dest = plan.destination_root / rel

        if src.is_symlink():
            actions.append((rel.as_posix(), self._copy_link(src, dest)))
        elif src.is_dir():
            if dest.exists() and not dest.is_dir():
                raise OSError(f"{dest} exists and is not a directory")
            dest.mkdir(exist_ok=True)
            for child in sorted(src.iterdir()):
                if is_excluded(child.name, plan.excludes):
                    continue
                self._copy_entry(child, plan, actions)
        else:
            actions.append((rel.as_posix(), self._copy_file(src, dest)))

    def _copy_link(self, src: Path, dest: Path) -> SyncAction:
        target = os.readlink(src)
        if dest.is_symlink():
            if os.readlink(dest) == target:
                return SyncAction.UNCHANGED
            action = SyncAction.UPDATED
        elif dest.exists():
            if dest.is_dir():
                raise OSError(f"{dest} is a directory, cannot replace with link")
            action = SyncAction.UPDATED
        else:
            action = SyncAction.CREATED

        tmp = dest.with_name(f".{dest.name}.dotboot-link")
        if tmp.is_symlink() or tmp.exists():
            tmp.unlink()
        os.symlink(target, tmp)
        os.replace(tmp, dest)
        logger.debug(f"{action.value}: {dest} -> {target}")
        return action

    def _copy_file(self, src: Path, dest: Path) -> SyncAction:
        if dest.is_symlink():
            # Write through to the link target like a plain copy would
            dest = dest.resolve()
        if dest.is_dir():
            raise OSError(f"{dest} is a directory, cannot replace with file")

        if dest.exists():
            if filecmp.cmp(src, dest, shallow=False):
                return SyncAction.UNCHANGED
            action = SyncAction.UPDATED
            mode = dest.stat().st_mode & 0o7777
        else:
            action = SyncAction.CREATED
            mode = src.stat().st_mode & 0o777 & ~self._umask

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as out, open(src, "rb") as f:
                shutil.copyfileobj(f, out)
            tmp_path.chmod(mode)
            os.replace(tmp_path, dest)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        logger.debug(f"{action.value}: {dest}")
        return action
