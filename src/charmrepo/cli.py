"""
charmrepo CLI

Thin commands over the charm repositories:
- get: Fetch a charm (through the verified cache for cs: URLs)
- latest: Show the latest revision of one or more charms
- resolve: Resolve a partial reference to a full charm URL
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import typer

from .charmstore import CharmStore
from .cli_context import CLIContext
from .operations import run_and_exit
from .operations.printers import print_charm, print_resolved, print_revisions
from .runtime_types import CharmRevision
from .url import parse_reference

app = typer.Typer(name="charmrepo", help="Charm repository client")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Charm repository client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def get(
    charm_ref: str = typer.Argument(..., help="Charm reference, e.g. cs:trusty/wordpress"),
    repository: Optional[str] = typer.Option(None, "--repository", "-r", envvar="CHARMREPO_REPOSITORY", help="Local repository root"),
    series: Optional[str] = typer.Option(None, "--series", help="Default series if the reference has none"),
    test_mode: bool = typer.Option(False, "--test-mode", help="Do not increase store download stats"),
) -> None:
    """Fetch a charm."""

    def _get() -> None:
        ref = parse_reference(charm_ref)
        with CLIContext.from_env() as context:
            repo = context.repository_for(ref, repository)
            if test_mode and isinstance(repo, CharmStore):
                repo = repo.with_test_mode()

            if ref.series or series:
                url = ref.url(series or "")
            else:
                url = repo.resolve(ref)
            print_charm(url, repo.get(url))

    run_and_exit(_get)


@app.command()
def latest(
    charm_refs: List[str] = typer.Argument(..., help="Charm references"),
    repository: Optional[str] = typer.Option(None, "--repository", "-r", envvar="CHARMREPO_REPOSITORY", help="Local repository root"),
    series: Optional[str] = typer.Option(None, "--series", help="Default series for references without one"),
) -> None:
    """Show the latest revision of each charm."""

    def _latest() -> None:
        urls = [parse_reference(r).url(series or "") for r in charm_refs]
        with CLIContext.from_env() as context:
            # One batch per repository, results put back in argument order
            by_schema: Dict[str, List[int]] = {}
            for i, url in enumerate(urls):
                by_schema.setdefault(url.schema, []).append(i)

            revisions: List[Optional[CharmRevision]] = [None] * len(urls)
            for indexes in by_schema.values():
                repo = context.repository_for(urls[indexes[0]], repository)
                batch = repo.latest(*[urls[i] for i in indexes])
                for i, rev in zip(indexes, batch):
                    revisions[i] = rev

            print_revisions(urls, revisions)

    run_and_exit(_latest)


@app.command()
def resolve(
    charm_ref: str = typer.Argument(..., help="Charm reference to resolve"),
    repository: Optional[str] = typer.Option(None, "--repository", "-r", envvar="CHARMREPO_REPOSITORY", help="Local repository root"),
) -> None:
    """Resolve a charm reference to a fully qualified URL."""

    def _resolve() -> None:
        ref = parse_reference(charm_ref)
        with CLIContext.from_env() as context:
            repo = context.repository_for(ref, repository)
            print_resolved(ref, repo.resolve(ref))

    run_and_exit(_resolve)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
