import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, List

from .errors import PreconditionError

logger = logging.getLogger(__name__)


class Environment:
    """The invoking user, their home directory and the tools on PATH."""

    def __init__(self):
        self.home = Path.home()
        self.user = (
            os.environ.get("USER")
            or os.environ.get("LOGNAME")
            or self.home.name
        )

    def is_installed(self, command_name: str) -> bool:
        return shutil.which(command_name) is not None

    def missing_tools(self, tools: Iterable[str]) -> List[str]:
        """Return the tools from ``tools`` that are not on PATH."""
        return [t for t in tools if not self.is_installed(t)]

    def require_tools(self, tools: Iterable[str]):
        """Raise PreconditionError if any of ``tools`` is not installed."""
        tools = list(tools)
        missing = self.missing_tools(tools)
        if missing:
            raise PreconditionError(
                f"Required tool(s) not installed: {', '.join(missing)}"
            )
        logger.debug(f"All required tools present: {tools}")

    def __repr__(self) -> str:
        return f"Environment(home={self.home}, user={self.user})"
