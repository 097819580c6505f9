"""Utility functions for dotboot."""

import importlib.metadata
import logging
import sys


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI.

    Component modules log through ``logging.getLogger(__name__)``; the
    user-facing status lines are printed separately by the CLI, so the
    default level only lets warnings through.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("dotboot").setLevel(level)


def get_version() -> str:
    """Get the installed version of dotboot."""
    try:
        return importlib.metadata.version("dotboot")
    except importlib.metadata.PackageNotFoundError:
        return "(development)"
