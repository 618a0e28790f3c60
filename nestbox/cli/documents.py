"""`nestbox document` commands: collections and the documents in them."""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from nestbox.api import AdminApiClient
from nestbox.cli.common import (
    PROJECT_OPTION_HELP,
    call_api,
    console,
    parse_json_option,
    print_json,
    project_store,
    run,
)
from nestbox.projects.resolver import ResolvedProject, resolve_project

app = typer.Typer(help="Manage Nestbox documents and document collections", no_args_is_help=True)
collection_app = typer.Typer(help="Manage document collections", no_args_is_help=True)
doc_app = typer.Typer(help="Manage documents in a collection", no_args_is_help=True)
app.add_typer(collection_app, name="collection")
app.add_typer(doc_app, name="doc")

InstanceOption = typer.Option(..., "--instance", help="Instance ID")
CollectionOption = typer.Option(..., "--collection", help="Collection ID")
DocOption = typer.Option(..., "--doc", help="Document ID")
ProjectOption = typer.Option(None, "--project", help=PROJECT_OPTION_HELP)


async def _project(api: AdminApiClient, project: str | None) -> ResolvedProject:
    return await resolve_project(api, project_store(), project)


# ============================================================================
# Collections
# ============================================================================


@collection_app.command("list")
def collection_list(
    instance: str = InstanceOption,
    project: Optional[str] = ProjectOption,
):
    """List document collections for a specific instance."""

    async def _list(api: AdminApiClient):
        resolved = await _project(api, project)
        with console.status(
            f"Listing document collections for instance {instance} in project {resolved.name}..."
        ):
            return resolved, await api.list_collections(resolved.id, instance)

    resolved, collections = run(call_api(_list))
    if not collections:
        console.print(
            f"[yellow]No document collections found for instance {instance} "
            f"in project {resolved.name}[/yellow]"
        )
        return

    console.print(
        f"[blue]\nDocument collections for instance {instance} in project {resolved.name}:\n[/blue]"
    )
    for collection in collections:
        if isinstance(collection, str):
            name = collection
        else:
            name = (collection or {}).get("name") or "Unnamed Collection"
        console.print(f"[bold]{name}[/bold]")


@collection_app.command("get")
def collection_get(
    instance: str = InstanceOption,
    collection: str = typer.Option(..., "--collection", help="ID of the document collection to get"),
    project: Optional[str] = ProjectOption,
):
    """Get details of a specific document collection for a specific instance."""

    async def _get(api: AdminApiClient) -> Any:
        resolved = await _project(api, project)
        return await api.get_collection(resolved.id, instance, collection)

    print_json(run(call_api(_get)))


@collection_app.command("update")
def collection_update(
    instance: str = InstanceOption,
    collection: str = typer.Option(
        ..., "--collection", help="ID of the document collection to update"
    ),
    name: Optional[str] = typer.Option(None, "--name", help="New name of the document collection"),
    metadata: Optional[str] = typer.Option(
        None, "--metadata", help="New metadata for the document collection in JSON format"
    ),
    project: Optional[str] = ProjectOption,
):
    """Update a document collection for a specific instance."""

    async def _update(api: AdminApiClient) -> None:
        metadata_obj = parse_json_option(metadata, "--metadata")
        resolved = await _project(api, project)
        await api.update_collection(
            resolved.id, instance, collection, name=name, metadata=metadata_obj
        )

    run(call_api(_update))
    console.print(f'[green]Document collection "{collection}" updated successfully.[/green]')


@collection_app.command("delete")
def collection_delete(
    instance: str = InstanceOption,
    collection: str = typer.Option(
        ..., "--collection", help="ID of the document collection to delete"
    ),
    project: Optional[str] = ProjectOption,
):
    """Delete a document collection for a specific instance."""

    async def _delete(api: AdminApiClient) -> None:
        resolved = await _project(api, project)
        await api.delete_collection(resolved.id, instance, collection)

    run(call_api(_delete))
    console.print(f'[green]Document collection "{collection}" deleted successfully.[/green]')


# ============================================================================
# Documents
# ============================================================================


@doc_app.command("add")
def doc_add(
    instance: str = InstanceOption,
    collection: str = CollectionOption,
    doc_id: str = typer.Option(..., "--id", help="Document ID"),
    document: str = typer.Option(..., "--document", help="Document content in JSON format"),
    metadata: Optional[str] = typer.Option(
        None, "--metadata", help="Document metadata in JSON format (optional)"
    ),
    project: Optional[str] = ProjectOption,
):
    """Add a new document to a collection."""

    async def _add(api: AdminApiClient) -> None:
        content = parse_json_option(document, "--document")
        metadata_obj = parse_json_option(metadata, "--metadata")
        resolved = await _project(api, project)
        await api.add_document(
            resolved.id, instance, collection, doc_id, json.dumps(content), metadata=metadata_obj
        )

    run(call_api(_add))
    console.print(f'[green]Document "{doc_id}" added to collection "{collection}".[/green]')


@doc_app.command("get")
def doc_get(
    instance: str = InstanceOption,
    collection: str = CollectionOption,
    doc: str = DocOption,
    project: Optional[str] = ProjectOption,
):
    """Get a document from a collection."""

    async def _get(api: AdminApiClient) -> Any:
        resolved = await _project(api, project)
        return await api.get_document(resolved.id, instance, collection, doc)

    print_json(run(call_api(_get)))


@doc_app.command("update")
def doc_update(
    instance: str = InstanceOption,
    collection: str = CollectionOption,
    doc: str = DocOption,
    document: str = typer.Option(
        ..., "--document", help="Updated document content as a string"
    ),
    metadata: Optional[str] = typer.Option(
        None, "--metadata", help="Updated document metadata in JSON format (optional)"
    ),
    project: Optional[str] = ProjectOption,
):
    """Update a document in a collection."""

    async def _update(api: AdminApiClient) -> None:
        metadata_obj = parse_json_option(metadata, "--metadata")
        resolved = await _project(api, project)
        await api.update_document(
            resolved.id, instance, collection, doc, document, metadata=metadata_obj
        )

    run(call_api(_update))
    console.print(f'[green]Document "{doc}" updated successfully.[/green]')


@doc_app.command("delete")
def doc_delete(
    instance: str = InstanceOption,
    collection: str = CollectionOption,
    doc: str = DocOption,
    project: Optional[str] = ProjectOption,
):
    """Delete a document from a collection."""

    async def _delete(api: AdminApiClient) -> None:
        resolved = await _project(api, project)
        await api.delete_document(resolved.id, instance, collection, doc)

    run(call_api(_delete))
    console.print(f'[green]Document "{doc}" deleted successfully.[/green]')


@doc_app.command("search")
def doc_search(
    instance: str = InstanceOption,
    collection: str = CollectionOption,
    query: str = typer.Option(..., "--query", help="Search query"),
    filter: Optional[str] = typer.Option(None, "--filter", help="Filter criteria as JSON string"),
    project: Optional[str] = ProjectOption,
):
    """Search for documents in a collection."""

    async def _search(api: AdminApiClient) -> Any:
        filter_obj = parse_json_option(filter, "--filter")
        resolved = await _project(api, project)
        with console.status(
            f'Searching for documents in collection "{collection}" in instance {instance}...'
        ):
            return await api.search_documents(
                resolved.id, instance, collection, query, filter=filter_obj
            )

    results = run(call_api(_search))
    console.print(
        f'[blue]\nSearch results for query "{query}" in collection "{collection}":\n[/blue]'
    )
    print_json(results)


@doc_app.command("upload-file")
def doc_upload_file(
    instance: str = InstanceOption,
    collection: str = CollectionOption,
    file: str = typer.Option(..., "--file", help="Path or URL of the file to upload"),
    file_type: Optional[str] = typer.Option(
        None, "--type", help="Type of the file (e.g., pdf, txt, doc)"
    ),
    options: Optional[str] = typer.Option(
        None, "--options", help="Additional options for file processing in JSON format"
    ),
    project: Optional[str] = ProjectOption,
):
    """Add documents by file chunking."""

    async def _upload(api: AdminApiClient) -> None:
        options_obj = parse_json_option(options, "--options")
        resolved = await _project(api, project)
        with console.status(
            f'Processing file "{file}" for collection "{collection}" in instance {instance}...'
        ):
            await api.add_documents_from_file(
                resolved.id, instance, collection, file, file_type=file_type, options=options_obj
            )

    run(call_api(_upload))
    console.print(
        f'[green]File "{file}" processed successfully for collection "{collection}".[/green]'
    )
