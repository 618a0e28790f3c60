"""`nestbox image` commands."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from nestbox.api import AdminApiClient
from nestbox.cli.common import PROJECT_OPTION_HELP, call_api, console, project_store, run
from nestbox.projects.resolver import resolve_project

app = typer.Typer(help="Manage Nestbox images", no_args_is_help=True)


def images_table(images: list[dict]) -> Table:
    table = Table(title="Available Images")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("License")
    table.add_column("Category", style="magenta")
    table.add_column("Pricing", style="yellow")
    table.add_column("Source", style="dim")
    for image in images:
        metadata = image.get("metadata") or {}
        table.add_row(
            str(image.get("name") or "N/A"),
            str(image.get("type") or "N/A"),
            str(metadata.get("License") or "N/A"),
            str(metadata.get("Type") or "N/A"),
            str(metadata.get("Pricing") or "N/A"),
            str(image.get("source") or "N/A"),
        )
    return table


@app.command("list")
def list_images(
    project: Optional[str] = typer.Option(None, "--project", help=PROJECT_OPTION_HELP),
):
    """List images for a project."""

    async def _list(api: AdminApiClient):
        resolved = await resolve_project(api, project_store(), project)
        with console.status(f"Listing images for project {resolved.name}..."):
            return resolved, await api.list_images()

    resolved, images = run(call_api(_list))
    if not images:
        console.print(f"[yellow]No images found for project {resolved.name}.[/yellow]")
        return
    console.print(images_table(images))
