"""dotboot CLI - bootstrap a shell environment from a dotfiles checkout."""

from typing import List, Optional

import click
import typer

from . import run

# Create the main app
app = typer.Typer(
    name="dotboot",
    help="Bootstrap your shell: completion, prompt and dotfiles.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

run.register(app)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the dotboot CLI.

    Usage errors exit with 1 rather than click's usual 2.
    """
    try:
        rv = app(args=argv, prog_name="dotboot", standalone_mode=False)
    except click.UsageError as e:
        typer.echo(f"Error: {e.format_message()}", err=True)
        if e.ctx is not None:
            typer.echo(e.ctx.get_usage(), err=True)
            typer.echo(
                f"Try '{e.ctx.command_path} -h' for help.", err=True
            )
        return 1
    except click.Abort:
        typer.echo("Aborted!", err=True)
        return 1
    return rv if isinstance(rv, int) else 0
