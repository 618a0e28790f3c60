"""`nestbox compute` commands."""

from __future__ import annotations

from typing import Any, Optional

import typer
from rich.prompt import Confirm, Prompt
from rich.table import Table

from nestbox.api import AdminApiClient
from nestbox.cli.common import PROJECT_OPTION_HELP, call_api, console, project_store, run
from nestbox.exceptions import ValidationError
from nestbox.projects.resolver import resolve_project

app = typer.Typer(help="Manage Nestbox computes", no_args_is_help=True)

STATUS_MAPPINGS = {
    "Job Scheduled": "Scheduled",
    "Job Executed": "Ready",
    "Job in Progress": "Initializing",
    "Job Failed": "Failed",
    "Deleting": "Deleting",
}

STATUS_STYLES = {
    "ready": "green",
    "failed": "red",
    "initializing": "yellow",
    "scheduled": "blue",
    "deleting": "red",
}


def display_status(raw: str | None) -> str:
    """Map a backend job status to a styled display label."""
    status = STATUS_MAPPINGS.get(raw or "unknown", raw or "unknown")
    style = STATUS_STYLES.get(status.lower(), "dim")
    return f"[{style}]{status}[/{style}]"


def prompt_provisioning_params(image: dict[str, Any]) -> dict[str, Any]:
    """Ask for the image's required provisioning parameters.

    The image carries a JSON schema under ``provisioningParameters`` and
    optional UI hints under ``provisioningParametersUI``.
    """
    schema = image.get("provisioningParameters") or {}
    properties = schema.get("properties") or {}
    required = set(schema.get("required") or [])
    ui_hints = image.get("provisioningParametersUI") or {}

    params: dict[str, Any] = {}
    for name, prop in properties.items():
        if name not in required:
            continue
        hint = ui_hints.get(name) or {}
        message = hint.get("ui:title") or f"Enter {name}"
        if hint.get("ui:help"):
            message += f" ({hint['ui:help']})"

        kind = prop.get("type")
        if kind == "string" and prop.get("enum"):
            params[name] = Prompt.ask(message, choices=list(prop["enum"]))
        elif kind == "string" and hint.get("ui:widget") == "password":
            params[name] = Prompt.ask(message, password=True)
        elif kind == "array" and (prop.get("items") or {}).get("enum"):
            choices = list(prop["items"]["enum"])
            while True:
                raw = Prompt.ask(f"{message} [comma-separated: {', '.join(choices)}]")
                picked = [c.strip() for c in raw.split(",") if c.strip()]
                if picked and all(c in choices for c in picked):
                    params[name] = picked
                    break
                console.print("[red]Please select at least one valid option[/red]")
        else:
            params[name] = Prompt.ask(message)
    return params


@app.command("list")
def list_instances(
    project: Optional[str] = typer.Option(None, "--project", help=PROJECT_OPTION_HELP),
):
    """List all compute instances."""

    async def _list(api: AdminApiClient):
        resolved = await resolve_project(api, project_store(), project)
        with console.status(f"Fetching compute instances for project: {resolved.name}"):
            return resolved, await api.list_instances(resolved.id, page=0, limit=10)

    resolved, instances = run(call_api(_list))

    if not instances:
        console.print("[yellow]No compute instances found for this project.[/yellow]")
        return

    table = Table(title=f"Compute instances in [bold]{resolved.name}[/bold]")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("API Key", style="dim")
    for instance in instances:
        table.add_row(
            str(instance.get("id") or "N/A"),
            str(instance.get("instanceName") or "N/A"),
            display_status(instance.get("runningStatus")),
            str(instance.get("instanceApiKey") or "N/A"),
        )
    console.print(table)


@app.command("create")
def create(
    image: str = typer.Option(..., "--image", help="Image ID to use for the compute instance"),
    project: Optional[str] = typer.Option(None, "--project", help=PROJECT_OPTION_HELP),
    name: Optional[str] = typer.Option(None, "--name", help="Name for the compute instance"),
):
    """Create a new compute instance."""

    async def _create(api: AdminApiClient) -> str:
        resolved = await resolve_project(api, project_store(), project)
        with console.status("Fetching available images..."):
            images = await api.list_images()

        selected = next((img for img in images if str(img.get("id")) == image), None)
        if selected is None:
            console.print("[yellow]Available image IDs:[/yellow]")
            for img in images:
                console.print(f"  [cyan]{img.get('id')}[/cyan] - {img.get('name')} ({img.get('type')})")
            raise ValidationError("--image", f"image ID '{image}' does not exist")
        console.print(f"Found image: {selected.get('name')}")

        instance_name = name or ""
        while not instance_name.strip():
            instance_name = Prompt.ask("Enter a name for this compute instance")

        if (selected.get("provisioningParameters") or {}).get("properties"):
            console.print(f"\n[blue]Please provide the required parameters for {selected.get('name')}:[/blue]")
        params = prompt_provisioning_params(selected)

        user = await api.get_current_user()
        payload = {
            "userId": user.get("id"),
            "machineId": selected["id"],
            "machineTitle": selected.get("name"),
            "instanceName": instance_name,
            **params,
        }
        with console.status("Creating compute instance..."):
            await api.create_instance(resolved.id, payload)
        return instance_name

    instance_name = run(call_api(_create))
    console.print(f"[green]Instance '{instance_name}' is now being provisioned[/green]")
    console.print("[dim]You can check the status with: nestbox compute list[/dim]")


@app.command("delete")
def delete(
    project: Optional[str] = typer.Option(None, "--project", help=PROJECT_OPTION_HELP),
    instance_ids: Optional[list[str]] = typer.Option(
        None, "--instance", help="Instance ID to delete (repeatable)"
    ),
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
):
    """Delete one or more compute instances."""

    async def _delete(api: AdminApiClient) -> int:
        resolved = await resolve_project(api, project_store(), project)
        with console.status(f"Fetching compute instances for project: {resolved.name}"):
            instances = await api.list_instances(resolved.id, page=0, limit=50)

        if not instances:
            console.print("[yellow]No compute instances found for this project.[/yellow]")
            return 0

        by_id = {str(inst.get("id")): inst for inst in instances}
        if instance_ids:
            unknown = [i for i in instance_ids if i not in by_id]
            if unknown:
                raise ValidationError("--instance", f"unknown instance ID(s): {', '.join(unknown)}")
            selected = list(dict.fromkeys(instance_ids))
        else:
            for idx, inst in enumerate(instances, start=1):
                console.print(f"  {idx}. {inst.get('instanceName') or 'Unnamed'} ({inst.get('id')})")
            raw = Prompt.ask("Select compute instances to delete (comma-separated numbers)")
            try:
                picks = {int(p) for p in raw.split(",") if p.strip()}
            except ValueError as e:
                raise ValidationError("selection", "expected comma-separated numbers") from e
            if not picks or not all(1 <= p <= len(instances) for p in picks):
                raise ValidationError("selection", "please select at least one listed instance")
            selected = [str(instances[p - 1].get("id")) for p in sorted(picks)]

        console.print("[yellow]\nSelected instances for deletion:[/yellow]")
        for inst_id in selected:
            console.print(f"  - [cyan]{by_id[inst_id].get('instanceName') or 'Unnamed'}[/cyan] ({inst_id})")

        if not force and not Confirm.ask(
            "[red]Are you sure you want to delete these instances? This cannot be undone.[/red]",
            default=False,
        ):
            console.print("[yellow]Deletion cancelled.[/yellow]")
            return 0

        with console.status(f"Deleting {len(selected)} instance(s)..."):
            await api.delete_instances(resolved.id, [by_id[i].get("id") for i in selected])
        return len(selected)

    deleted = run(call_api(_delete))
    if deleted:
        console.print(f"[green]Successfully deleted {deleted} instance(s)[/green]")
