"""
Human-readable output formatting.

Centralizes all CLI output formatting so commands only orchestrate
repository calls.
"""
from __future__ import annotations

from typing import List, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..charm import Charm
from ..runtime_types import CharmRevision
from ..url import CharmURL, Reference

_console = Console(highlight=False, soft_wrap=True)
_err_console = Console(stderr=True, highlight=False, soft_wrap=True)


def print_charm(url: CharmURL, charm: Charm) -> None:
    """
    Print a fetched charm.

    Args:
        url: URL the charm was requested with
        charm: Charm returned by the repository
    """
    _console.print(f"[bold]Charm:[/] {escape(charm.name)}")
    _console.print(f"[bold]URL:[/] {escape(str(url))}")
    _console.print(f"[bold]Revision:[/] {charm.revision}")
    _console.print(f"[bold]Path:[/] {escape(str(charm.path))}")
    if charm.meta.summary:
        _console.print(f"[bold]Summary:[/] [dim]{escape(charm.meta.summary)}[/]")


def print_resolved(ref: Reference, url: CharmURL) -> None:
    """Print the result of resolving a reference."""
    _console.print(f"[bold]Reference:[/] {escape(str(ref))}")
    _console.print(f"[bold]Resolved:[/] {escape(str(url))}")


def print_revisions(urls: Sequence[CharmURL], revisions: List[CharmRevision]) -> None:
    """
    Print latest revisions, one row per requested URL.

    Failed lookups are shown inline rather than aborting the listing.
    """
    table = Table(title="Latest revisions")
    table.add_column("Charm", style="cyan")
    table.add_column("Revision", style="yellow")
    table.add_column("SHA256", style="dim")

    for url, rev in zip(urls, revisions):
        if rev.err is not None:
            table.add_row(str(url), "[red]error[/]", escape(str(rev.err)))
        else:
            table.add_row(str(url), str(rev.revision), rev.sha256[:12] if rev.sha256 else "-")

    _console.print(table)


def print_error(exc: BaseException) -> None:
    """Print an error message to stderr."""
    _err_console.print(f"[red]error:[/] {escape(str(exc))}")
