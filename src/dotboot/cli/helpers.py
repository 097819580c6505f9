"""Shared helper functions for CLI commands."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
import typer

from ..config import Config
from ..system import Environment
from ..types import SyncPlan

# Global environment instance
env = Environment()
logger = logging.getLogger(__name__)

# Supported config filenames (in order of preference)
CONFIG_FILENAMES: List[str] = [".dotboot.yaml", ".dotboot.yml"]


def get_config_path(home: Optional[Path] = None) -> Path:
    """Find the config file path, checking both .yaml and .yml extensions.

    Returns the first existing config file, or the default (.dotboot.yaml)
    if none exist yet.
    """
    home_dir = home or env.home
    for filename in CONFIG_FILENAMES:
        path = home_dir / filename
        if path.exists():
            return path
    return home_dir / CONFIG_FILENAMES[0]


def get_config(config_path: Optional[Path] = None) -> Config:
    """Load config from --config, or ~/.dotboot.yaml / ~/.dotboot.yml."""
    return Config(config_path or get_config_path(), env=env)


def read_key() -> str:
    """Read a single character, without waiting for Enter on a terminal."""
    if sys.stdin.isatty():
        return click.getchar()
    return sys.stdin.read(1)


def confirm_sync(plan: SyncPlan) -> bool:
    """Ask before overwriting files in the destination; only y/Y proceeds."""
    typer.echo(
        f"This may overwrite existing files in {plan.destination_root}. "
        "Are you sure? (y/n) ",
        nl=False,
    )
    answer = read_key()
    typer.echo("")
    return answer in ("y", "Y")
