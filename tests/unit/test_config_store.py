"""Unit tests for the local project config store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from nestbox.exceptions import ConfigConflictError, ConfigReadError
from nestbox.projects.config_store import (
    DEFAULT_KEY,
    FileProjectConfigStore,
    InMemoryProjectConfigStore,
    ProjectConfig,
    add_project,
    aliases_for,
    set_default,
)


@pytest.mark.unit
class TestProjectConfig:
    """Test ProjectConfig conversion."""

    def test_default_property(self):
        """Test default comes from the reserved key."""
        config = ProjectConfig(projects={"acme": "acme", DEFAULT_KEY: "acme"})
        assert config.default == "acme"
        assert ProjectConfig().default is None

    def test_from_dict_sets_aside_non_string_values(self):
        """Test entries that cannot name a project are kept out of the mapping."""
        config = ProjectConfig.from_dict({"projects": {"a": "acme", "b": 3, "c": None}})
        assert config.projects == {"a": "acme"}
        assert config.opaque_projects == {"b": 3, "c": None}

    def test_unknown_content_round_trips(self):
        """Test other keys and non-string entries are written back unchanged."""
        data = {"projects": {"a": "acme", "b": 3}, "editor": {"theme": "dark"}}
        config = ProjectConfig.from_dict(data)
        assert config.extra == {"editor": {"theme": "dark"}}
        assert config.to_dict() == data

    def test_from_dict_without_projects(self):
        """Test a missing or malformed projects key gives an empty mapping."""
        assert ProjectConfig.from_dict({}).projects == {}
        assert ProjectConfig.from_dict({"projects": ["acme"]}).projects == {}


@pytest.mark.unit
class TestFileProjectConfigStore:
    """Test FileProjectConfigStore persistence."""

    def test_read_absent_file(self, tmp_path: Path):
        """Test a missing file reads as an empty config."""
        store = FileProjectConfigStore(tmp_path)
        assert store.read().projects == {}

    def test_write_then_read(self, tmp_path: Path):
        """Test written state reads back unchanged."""
        store = FileProjectConfigStore(tmp_path)
        config = ProjectConfig(projects={"acme-prod": "acme-prod", "prod": "acme-prod"})
        set_default(config, "acme-prod")

        store.write(config)

        assert store.read() == config

    def test_write_is_pretty_printed(self, tmp_path: Path):
        """Test the file is two-space indented JSON under a projects key."""
        store = FileProjectConfigStore(tmp_path)
        store.write(ProjectConfig(projects={"acme": "acme"}))

        text = (tmp_path / ".nestboxrc").read_text()
        assert text == json.dumps({"projects": {"acme": "acme"}}, indent=2)

    def test_add_keeps_unknown_content(self, tmp_path: Path):
        """Test adding a project preserves content the CLI does not use."""
        path = tmp_path / ".nestboxrc"
        path.write_text(json.dumps({"projects": {"legacy": 1}, "version": 2}))
        store = FileProjectConfigStore(tmp_path)

        config = store.read()
        add_project(config, "acme-prod")
        store.write(config)

        assert json.loads(path.read_text()) == {
            "version": 2,
            "projects": {"legacy": 1, "acme-prod": "acme-prod", "default": "acme-prod"},
        }

    def test_corrupt_file_reads_empty(self, tmp_path: Path):
        """Test unparsable content falls back to an empty config."""
        (tmp_path / ".nestboxrc").write_text("{not json")
        store = FileProjectConfigStore(tmp_path)
        assert store.read().projects == {}

    def test_non_object_reads_empty(self, tmp_path: Path):
        """Test a JSON array is treated as corrupt."""
        (tmp_path / ".nestboxrc").write_text("[1, 2]")
        assert FileProjectConfigStore(tmp_path).read().projects == {}

    def test_corrupt_file_strict(self, tmp_path: Path):
        """Test strict reads surface corruption."""
        (tmp_path / ".nestboxrc").write_text("{not json")
        store = FileProjectConfigStore(tmp_path)

        with pytest.raises(ConfigReadError) as exc_info:
            store.read(strict=True)

        assert exc_info.value.details["path"] == str(tmp_path / ".nestboxrc")

    def test_defaults_to_working_directory(self, isolated_env: Path):
        """Test the store looks in the current directory by default."""
        store = FileProjectConfigStore()
        assert store.path == isolated_env / ".nestboxrc"

    def test_custom_filename(self, tmp_path: Path):
        """Test the file name can be overridden."""
        store = FileProjectConfigStore(tmp_path, filename=".altrc")
        store.write(ProjectConfig(projects={"acme": "acme"}))
        assert (tmp_path / ".altrc").exists()


@pytest.mark.unit
class TestInMemoryProjectConfigStore:
    """Test InMemoryProjectConfigStore isolation."""

    def test_read_returns_copy(self):
        """Test mutating a read result does not change stored state."""
        store = InMemoryProjectConfigStore(ProjectConfig(projects={"acme": "acme"}))

        config = store.read()
        config.projects["other"] = "other"

        assert store.read().projects == {"acme": "acme"}

    def test_write_replaces_state(self):
        """Test write stores a snapshot."""
        store = InMemoryProjectConfigStore()
        config = ProjectConfig(projects={"acme": "acme"})
        store.write(config)
        config.projects.clear()

        assert store.read().projects == {"acme": "acme"}


@pytest.mark.unit
class TestAddProject:
    """Test add_project rules."""

    def test_first_project_becomes_default(self):
        """Test adding to an empty config sets the default."""
        config = ProjectConfig()

        became_default = add_project(config, "acme-prod")

        assert became_default is True
        assert config.projects == {"acme-prod": "acme-prod", DEFAULT_KEY: "acme-prod"}

    def test_alias_maps_to_canonical_name(self):
        """Test an alias key points at the canonical name."""
        config = ProjectConfig()

        add_project(config, "acme-prod", "prod")

        assert config.projects["prod"] == "acme-prod"
        assert "acme-prod" not in config.projects
        assert config.default == "acme-prod"

    def test_second_project_keeps_default(self):
        """Test later additions do not move the default."""
        config = ProjectConfig()
        add_project(config, "acme-prod")

        became_default = add_project(config, "acme-staging", "staging")

        assert became_default is False
        assert config.default == "acme-prod"

    def test_duplicate_project_rejected(self):
        """Test re-adding a canonical name fails."""
        config = ProjectConfig()
        add_project(config, "acme-prod")

        with pytest.raises(ConfigConflictError) as exc_info:
            add_project(config, "acme-prod")

        assert exc_info.value.message == "Project 'acme-prod' already exists."

    def test_duplicate_alias_rejected(self):
        """Test an alias already in use fails and leaves config untouched."""
        config = ProjectConfig()
        add_project(config, "acme-prod", "prod")
        before = dict(config.projects)

        with pytest.raises(ConfigConflictError) as exc_info:
            add_project(config, "other", "prod")

        assert exc_info.value.details["kind"] == "alias"
        assert config.projects == before

    def test_unrecognised_entry_blocks_key(self):
        """Test a key held by a non-string entry is not overwritten."""
        config = ProjectConfig.from_dict({"projects": {"legacy": 1}})

        with pytest.raises(ConfigConflictError):
            add_project(config, "legacy")

        assert config.to_dict() == {"projects": {"legacy": 1}}


@pytest.mark.unit
class TestAliasesFor:
    """Test aliases_for lookups."""

    def test_excludes_default_and_self(self):
        """Test only real aliases are listed."""
        config = ProjectConfig(
            projects={
                "acme-prod": "acme-prod",
                "prod": "acme-prod",
                "p": "acme-prod",
                "staging": "acme-staging",
                DEFAULT_KEY: "acme-prod",
            }
        )
        assert aliases_for(config, "acme-prod") == ["prod", "p"]
        assert aliases_for(config, "acme-staging") == ["staging"]
        assert aliases_for(config, "missing") == []
