"""Append ``source`` lines to shell-init files, at most once each."""

import logging
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from .types import LinkOutcome, LinkStatus, ProfileEntry

logger = logging.getLogger(__name__)

DEFAULT_HEADER = "# Git completion and prompt"


class ProfileLinker:
    """Makes sure exact lines exist in a shell-init file.

    The target is only ever appended to. Membership is exact full-line
    equality, so ``source ~/.bash-prompt`` is not satisfied by
    ``# source ~/.bash-prompt``.
    """

    def __init__(self, header: str = DEFAULT_HEADER):
        self.header = header

    def ensure_lines(self, target: Path, lines: Sequence[str]) -> LinkOutcome:
        target = Path(target)
        if not target.exists():
            logger.info(f"{target} not found, creating it")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.touch()

        content = target.read_text(encoding="utf-8", errors="surrogateescape")
        existing = set(content.splitlines())

        outcome = LinkOutcome(target)
        to_add: List[str] = []
        for line in lines:
            if line in existing:
                outcome.results.append((line, LinkStatus.ALREADY_PRESENT))
                logger.debug(f"Already in {target}: {line}")
            else:
                outcome.results.append((line, LinkStatus.ADDED))
                existing.add(line)
                to_add.append(line)

        if not to_add:
            return outcome

        block = []
        if content and not content.endswith("\n"):
            block.append("")
        block.append("")
        if self.header:
            block.append(self.header)
        block.extend(to_add)

        with open(
            target, "a", encoding="utf-8", errors="surrogateescape"
        ) as f:
            f.write("\n".join(block) + "\n")
        logger.info(f"Added {len(to_add)} line(s) to {target}")
        return outcome

    def link(self, entries: Iterable[ProfileEntry]) -> List[LinkOutcome]:
        """Ensure every entry, one append batch per target file."""
        by_target: Dict[Path, List[str]] = OrderedDict()
        for entry in entries:
            by_target.setdefault(entry.target, []).append(entry.line)
        return [
            self.ensure_lines(target, lines)
            for target, lines in by_target.items()
        ]
