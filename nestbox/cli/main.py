"""Nestbox CLI.

A command-line client for the Nestbox admin API.
"""

from __future__ import annotations

from typing import Optional

import typer

from nestbox import __version__
from nestbox.cli import auth, compute, documents, images, projects
from nestbox.cli.common import console
from nestbox.observability import setup_logging
from nestbox.settings import get_settings

app = typer.Typer(
    name="nestbox",
    help="CLI tool for the Nestbox AI platform",
    no_args_is_help=True,
)
app.command("login")(auth.login)
app.command("logout")(auth.logout)
app.command("accounts")(auth.accounts)
app.add_typer(projects.app, name="project")
app.add_typer(compute.app, name="compute")
app.add_typer(documents.app, name="document")
app.add_typer(images.app, name="image")


def _print_version(value: bool) -> None:
    if value:
        console.print(f"nestbox {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """Nestbox AI command line client."""
    setup_logging(get_settings(), verbose=verbose)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
