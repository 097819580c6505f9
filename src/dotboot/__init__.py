"""dotboot - bootstrap a shell environment from your dotfiles."""

from .bootstrap import Bootstrapper
from .cli import main
from .config import Config
from .fetcher import Fetcher
from .linker import ProfileLinker
from .repo import RepositoryUpdater
from .syncer import TreeSyncer
from .system import Environment
from .utils import get_version

__all__ = [
    "Bootstrapper",
    "Config",
    "Environment",
    "Fetcher",
    "ProfileLinker",
    "RepositoryUpdater",
    "TreeSyncer",
    "get_version",
    "main",
]
