"""Local project alias config (.nestboxrc).

The file lives in the working directory and maps aliases or canonical
project names to canonical project names. The reserved key ``default``
names the project used when a command gets no ``--project``.

Example::

    {
      "projects": {
        "acme-prod": "acme-prod",
        "prod": "acme-prod",
        "default": "acme-prod"
      }
    }
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import structlog

from nestbox.exceptions import ConfigConflictError, ConfigReadError

logger = structlog.get_logger(__name__)

DEFAULT_KEY = "default"
PROJECT_CONFIG_FILENAME = ".nestboxrc"


@dataclass
class ProjectConfig:
    """Alias mapping plus the designated default project.

    Content the CLI does not understand is carried through a read-modify-write
    untouched: other top-level keys in ``extra`` and non-string entries of
    ``projects`` in ``opaque_projects``.
    """

    projects: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    opaque_projects: dict[str, Any] = field(default_factory=dict)

    @property
    def default(self) -> str | None:
        return self.projects.get(DEFAULT_KEY)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {**self.extra, "projects": {**self.opaque_projects, **self.projects}}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectConfig:
        """Create from dictionary.

        Non-string entries cannot name a project; they are kept aside and
        written back as they were. A ``projects`` value that is not an object
        is discarded.
        """
        raw = data.get("projects") or {}
        if not isinstance(raw, dict):
            raw = {}
        projects = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        opaque = {str(k): v for k, v in raw.items() if not isinstance(v, str)}
        extra = {k: v for k, v in data.items() if k != "projects"}
        return cls(projects=projects, extra=extra, opaque_projects=opaque)


class ProjectConfigStore(Protocol):
    """Read/write access to the project alias config."""

    def read(self) -> ProjectConfig: ...

    def write(self, config: ProjectConfig) -> None: ...


class FileProjectConfigStore:
    """Project config persisted as pretty-printed JSON in a directory.

    There is no locking: concurrent writers race and the last one wins.
    """

    def __init__(self, directory: Path | None = None, filename: str = PROJECT_CONFIG_FILENAME):
        self.directory = directory if directory is not None else Path.cwd()
        self.filename = filename

    @property
    def path(self) -> Path:
        return self.directory / self.filename

    def read(self, *, strict: bool = False) -> ProjectConfig:
        """Read the config file.

        Args:
            strict: Raise ConfigReadError on a corrupt file instead of
                falling back to an empty config.

        Returns:
            The parsed config, or an empty one when the file is absent
            or unparsable.
        """
        path = self.path
        if not path.exists():
            return ProjectConfig()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
        except (OSError, ValueError) as e:
            if strict:
                raise ConfigReadError(str(path), str(e)) from e
            logger.debug("Ignoring unreadable project config", path=str(path), error=str(e))
            return ProjectConfig()

        return ProjectConfig.from_dict(data)

    def write(self, config: ProjectConfig) -> None:
        """Overwrite the config file with ``config``."""
        self.path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
        logger.debug("Wrote project config", path=str(self.path))


class InMemoryProjectConfigStore:
    """Project config kept in memory, for tests and embedding."""

    def __init__(self, config: ProjectConfig | None = None):
        self._data = (config or ProjectConfig()).to_dict()

    def read(self) -> ProjectConfig:
        return ProjectConfig.from_dict(copy.deepcopy(self._data))

    def write(self, config: ProjectConfig) -> None:
        self._data = copy.deepcopy(config.to_dict())


def add_project(config: ProjectConfig, project_name: str, alias: str | None = None) -> bool:
    """Register ``project_name`` (optionally under ``alias``) in ``config``.

    The first project added becomes the default.

    Args:
        config: Config to mutate in place
        project_name: Canonical project name
        alias: Optional short name for the project

    Returns:
        True if ``project_name`` was set as the default.

    Raises:
        ConfigConflictError: If the project or alias key already exists.
    """
    taken = config.projects.keys() | config.opaque_projects.keys()
    if project_name in taken:
        raise ConfigConflictError(project_name, kind="Project")
    if alias and alias in taken:
        raise ConfigConflictError(alias, kind="Alias")

    config.projects[alias or project_name] = project_name

    if not config.default:
        config.projects[DEFAULT_KEY] = project_name
        return True
    return False


def set_default(config: ProjectConfig, project_name: str) -> None:
    """Make ``project_name`` the default project."""
    config.projects[DEFAULT_KEY] = project_name


def aliases_for(config: ProjectConfig, project_name: str) -> list[str]:
    """Aliases that point at ``project_name``, excluding itself and the default key."""
    return [
        key
        for key, value in config.projects.items()
        if value == project_name and key not in (DEFAULT_KEY, project_name)
    ]
