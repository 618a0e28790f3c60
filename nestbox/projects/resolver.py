"""Resolve a user-supplied project identifier to a remote project."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import structlog

from nestbox.exceptions import NoProjectSpecifiedError, ProjectNotFoundError
from nestbox.projects.config_store import ProjectConfigStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolvedProject:
    """Canonical remote project."""

    id: str
    name: str


class ProjectsApi(Protocol):
    async def list_projects(self) -> list[dict]: ...


async def resolve_project(
    api: ProjectsApi,
    store: ProjectConfigStore,
    project: str | None = None,
) -> ResolvedProject:
    """Find the project a command should act on.

    ``project`` (or the configured default when omitted) is looked up in
    the local alias mapping once; aliases are not followed transitively.
    The result is matched exactly against remote project IDs, then names.

    Args:
        api: Client exposing ``list_projects``
        store: Local project config
        project: Project ID, name or alias from ``--project``

    Raises:
        NoProjectSpecifiedError: If neither ``project`` nor a default is set.
        ProjectNotFoundError: If no remote project matches; flagged
            ``from_default`` when the configured default was used.
    """
    config = store.read()

    candidate = project or config.default
    if not candidate:
        raise NoProjectSpecifiedError()

    identifier = config.projects.get(candidate, candidate)
    if identifier != candidate:
        logger.debug("Expanded project alias", alias=candidate, project=identifier)

    projects = await api.list_projects()
    match = next((p for p in projects if str(p.get("id", "")) == identifier), None)
    if match is None:
        match = next((p for p in projects if p.get("name") == identifier), None)
    if match is None:
        raise ProjectNotFoundError(identifier, from_default=not project)

    resolved = ResolvedProject(id=str(match["id"]), name=str(match.get("name", "")))
    logger.debug("Resolved project", project_id=resolved.id, project_name=resolved.name)
    return resolved
