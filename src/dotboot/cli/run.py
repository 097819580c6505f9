"""The bootstrap command."""

from pathlib import Path
from typing import Optional

import typer

from ..bootstrap import Bootstrapper, Reporter
from ..errors import ConfigError, PreconditionError
from ..types import (
    FetchOutcome,
    FetchStatus,
    LinkOutcome,
    LinkStatus,
    RepoOutcome,
    RepoStatus,
    RunResult,
    SyncAction,
    SyncOutcome,
)
from ..utils import get_version, setup_logging
from .helpers import confirm_sync, env, get_config
from .output import error, info, muted, plain, success, warning


def register(app: typer.Typer) -> None:
    """Register the bootstrap command with the app."""
    app.command()(run)


class ConsoleReporter(Reporter):
    """Prints one status line per stage item."""

    def stage(self, title: str):
        info(f"{title}...")

    def fetched(self, outcome: FetchOutcome):
        resource = outcome.resource
        if outcome.status is FetchStatus.SKIPPED:
            info(
                f"{resource.name} is up to date at {resource.destination}, "
                "skipping download"
            )
        elif outcome.status is FetchStatus.DOWNLOADED:
            info(
                f"Downloaded {resource.name} to {resource.destination} "
                f"({outcome.size} bytes)"
            )
        else:
            error(f"Failed to download {resource.name}: {outcome.reason}")

    def verify_failed(self, result: RunResult):
        for resource in result.unverified:
            error(f"{resource.destination} is missing or empty")

    def repository(self, outcome: RepoOutcome):
        path = outcome.path
        if outcome.status is RepoStatus.UPDATED:
            info(f"Updated {path} from remote")
        elif outcome.status is RepoStatus.NOT_A_REPO:
            warning(f"{path} is not a git repository, skipping update")
        elif outcome.status is RepoStatus.DIRTY:
            warning(f"{path} has uncommitted changes, skipping update")
        elif outcome.status is RepoStatus.UNREACHABLE:
            warning(f"Remote for {path} is unreachable, skipping update")
        else:
            warning(f"Could not fast-forward {path}: {outcome.detail}")

    def synced(self, outcome: SyncOutcome):
        for path, action in outcome.actions:
            if action is not SyncAction.UNCHANGED:
                muted(f"{action.value}: {path}")
        if outcome.failed:
            error(f"Sync failed: {outcome.error}")
            return
        info(
            f"Synced dotfiles: {outcome.count(SyncAction.CREATED)} created, "
            f"{outcome.count(SyncAction.UPDATED)} updated, "
            f"{outcome.count(SyncAction.UNCHANGED)} unchanged"
        )

    def linked(self, outcome: LinkOutcome):
        for line, status in outcome.results:
            if status is LinkStatus.ADDED:
                info(f"Added '{line}' to {outcome.target}")
            else:
                warning(f"'{line}' already in {outcome.target}, skipping")

    def link_failed(self, message: str):
        error(f"Could not update shell profile: {message}")

    def cancelled(self):
        warning("Cancelled, no files were synced")


def _version_callback(value: bool):
    if value:
        typer.echo(f"dotboot version {get_version()}")
        raise typer.Exit()


def run(
    force: bool = typer.Option(
        False, "--force", "-f", help="Sync dotfiles without asking first"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to the configuration file"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging output."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """Download shell helpers, update and sync dotfiles, wire up .bashrc.

    Examples:
        dotboot            # Ask before syncing dotfiles
        dotboot --force    # Sync without asking
    """
    setup_logging(verbose=verbose)

    try:
        config = get_config(config_path)
        bootstrapper = Bootstrapper(config, env=env)
        result = bootstrapper.run(
            force=force, confirm=confirm_sync, reporter=ConsoleReporter()
        )
    except (ConfigError, PreconditionError) as e:
        error(str(e))
        raise typer.Exit(1)

    if result.exit_code != 0:
        raise typer.Exit(result.exit_code)
    if result.cancelled:
        return

    success("Setup complete!")
    if any(outcome.added for outcome in result.links):
        targets = sorted({str(o.target) for o in result.links if o.added})
        plain("")
        plain("To activate the changes in your current session, run:")
        for target in targets:
            plain(f"  source {target}")
        plain("")
        plain("Or simply open a new terminal window.")
