"""Local project aliases and project resolution."""

from nestbox.projects.config_store import (
    FileProjectConfigStore,
    InMemoryProjectConfigStore,
    ProjectConfig,
    ProjectConfigStore,
    add_project,
    aliases_for,
    set_default,
)
from nestbox.projects.resolver import ResolvedProject, resolve_project

__all__ = [
    "FileProjectConfigStore",
    "InMemoryProjectConfigStore",
    "ProjectConfig",
    "ProjectConfigStore",
    "ResolvedProject",
    "add_project",
    "aliases_for",
    "resolve_project",
    "set_default",
]
