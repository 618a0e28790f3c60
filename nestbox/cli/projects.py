"""`nestbox project` commands."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from nestbox.api import AdminApiClient
from nestbox.cli.common import call_api, console, project_store, run
from nestbox.projects.config_store import add_project, aliases_for, set_default

app = typer.Typer(help="Manage Nestbox projects", no_args_is_help=True)


@app.command("add")
def add(
    project_name: str = typer.Argument(..., help="Canonical project name"),
    alias: Optional[str] = typer.Argument(None, help="Optional short name"),
):
    """Add a project with optional alias."""

    async def _add() -> None:
        store = project_store()
        config = store.read()
        became_default = add_project(config, project_name, alias)
        store.write(config)

        if alias:
            console.print(f"[green]Added project '{project_name}' with alias '{alias}'[/green]")
        else:
            console.print(f"[green]Added project '{project_name}'[/green]")
        if became_default:
            console.print(f"[green]Set '{project_name}' as the default project[/green]")

    run(_add())


@app.command("use")
def use(project_name: str = typer.Argument(..., help="Project to make the default")):
    """Set default project for all commands."""

    async def _check(api: AdminApiClient) -> bool:
        projects = await api.list_projects()
        return any(p.get("name") == project_name for p in projects)

    exists = run(call_api(_check))
    if not exists:
        console.print(f"[red]Project '{project_name}' does not exist.[/red]")
        raise typer.Exit(1)

    store = project_store()
    config = store.read()
    set_default(config, project_name)
    store.write(config)
    console.print(f"[green]Default project set to '{project_name}'[/green]")


@app.command("list")
def list_projects():
    """List all projects."""
    projects = run(call_api(lambda api: api.list_projects()))

    if not projects:
        console.print("[yellow]No projects found.[/yellow]")
        return

    config = project_store().read()
    default = config.default

    table = Table(title="Available Projects")
    table.add_column("Name", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Aliases", style="magenta")
    table.add_column("Default", justify="center")

    for project in projects:
        name = project.get("name", "")
        table.add_row(
            name,
            str(project.get("id", "")),
            ", ".join(aliases_for(config, name)),
            "[green]✓[/green]" if name == default else "",
        )

    console.print(table)
    if default:
        console.print(f"[dim]Default project: {default}[/dim]")
    else:
        console.print(
            '[dim]No default project set. Use "nestbox project use <project-name>" to set one.[/dim]'
        )
