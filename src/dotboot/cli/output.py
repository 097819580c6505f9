"""Console output helpers for status lines."""

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)


def plain(message: str = ""):
    console.print(escape(message))


def muted(message: str, prefix: str = "  "):
    console.print(f"[dim]{escape(prefix)}{escape(message)}[/dim]")


def info(message: str, prefix: str = "[INFO]"):
    console.print(f"[green]{escape(prefix)}[/green] {escape(message)}")


def success(message: str, prefix: str = "✓"):
    console.print(f"[green]{escape(prefix)} {escape(message)}[/green]")


def warning(message: str, prefix: str = "[WARNING]"):
    console.print(f"[yellow]{escape(prefix)}[/yellow] {escape(message)}")


def error(message: str, prefix: str = "[ERROR]"):
    err_console.print(f"[red]{escape(prefix)}[/red] {escape(message)}")
