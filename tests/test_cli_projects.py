"""Tests for `nestbox project` commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from nestbox.cli.main import app

runner = CliRunner()


def _text(result) -> str:
    """Command output with rich's line wrapping undone."""
    return " ".join(result.output.split())


def _rc(workdir: Path) -> dict:
    return json.loads((workdir / ".nestboxrc").read_text())["projects"]


@pytest.mark.cli
class TestProjectAdd:
    """Test `project add`."""

    def test_first_project_becomes_default(self, isolated_env: Path):
        """Test adding to an empty config creates the file and sets the default."""
        result = runner.invoke(app, ["project", "add", "acme-prod", "prod"])

        assert result.exit_code == 0, result.output
        assert "Added project 'acme-prod' with alias 'prod'" in _text(result)
        assert "Set 'acme-prod' as the default project" in _text(result)
        assert _rc(isolated_env) == {"prod": "acme-prod", "default": "acme-prod"}

    def test_second_project_keeps_default(self, isolated_env: Path):
        """Test a later project does not replace the default."""
        runner.invoke(app, ["project", "add", "acme-prod"])

        result = runner.invoke(app, ["project", "add", "acme-staging"])

        assert result.exit_code == 0, result.output
        assert "default project" not in _text(result)
        assert _rc(isolated_env)["default"] == "acme-prod"
        assert _rc(isolated_env)["acme-staging"] == "acme-staging"

    def test_duplicate_alias(self, isolated_env: Path):
        """Test an existing alias is rejected without touching the file."""
        runner.invoke(app, ["project", "add", "acme-prod", "prod"])
        before = (isolated_env / ".nestboxrc").read_text()

        result = runner.invoke(app, ["project", "add", "acme-staging", "prod"])

        assert result.exit_code == 1
        assert "Alias 'prod' already exists." in _text(result)
        assert (isolated_env / ".nestboxrc").read_text() == before

    def test_corrupt_config_is_replaced(self, isolated_env: Path):
        """Test an unparsable file is treated as empty."""
        (isolated_env / ".nestboxrc").write_text("not json")

        result = runner.invoke(app, ["project", "add", "acme-prod"])

        assert result.exit_code == 0, result.output
        assert _rc(isolated_env) == {"acme-prod": "acme-prod", "default": "acme-prod"}


@pytest.mark.cli
class TestProjectUse:
    """Test `project use`."""

    def test_sets_default(self, isolated_env: Path, cli_api: MagicMock):
        """Test an existing remote project becomes the default."""
        runner.invoke(app, ["project", "add", "acme-prod"])

        result = runner.invoke(app, ["project", "use", "acme-staging"])

        assert result.exit_code == 0, result.output
        assert "Default project set to 'acme-staging'" in _text(result)
        assert _rc(isolated_env)["default"] == "acme-staging"
        cli_api.close.assert_awaited()

    def test_unknown_project(self, isolated_env: Path, cli_api: MagicMock):
        """Test a project missing remotely is refused."""
        result = runner.invoke(app, ["project", "use", "nope"])

        assert result.exit_code == 1
        assert "Project 'nope' does not exist." in _text(result)
        assert not (isolated_env / ".nestboxrc").exists()

    def test_requires_login(self, isolated_env: Path):
        """Test commands that reach the API need saved credentials."""
        result = runner.invoke(app, ["project", "use", "acme-prod"])

        assert result.exit_code == 1
        assert "No authentication token found. Please login first." in _text(result)


@pytest.mark.cli
class TestProjectList:
    """Test `project list`."""

    def test_lists_with_aliases_and_default(self, isolated_env: Path, cli_api: MagicMock):
        """Test aliases and the default marker are shown."""
        runner.invoke(app, ["project", "add", "acme-prod", "prod"])

        result = runner.invoke(app, ["project", "list"])

        assert result.exit_code == 0, result.output
        text = _text(result)
        assert "acme-prod" in text
        assert "acme-staging" in text
        assert "Default project: acme-prod" in text

    def test_no_default(self, cli_api: MagicMock):
        """Test the hint shown when no default is configured."""
        result = runner.invoke(app, ["project", "list"])

        assert result.exit_code == 0, result.output
        assert "No default project set." in _text(result)

    def test_empty(self, cli_api: MagicMock):
        """Test an account without projects."""
        cli_api.list_projects.return_value = []

        result = runner.invoke(app, ["project", "list"])

        assert result.exit_code == 0
        assert "No projects found." in _text(result)
