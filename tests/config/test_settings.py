"""Tests for PmSettings — unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from pmgraph.config.settings import PmSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MEMORY_FILE_PATH", raising=False)
    monkeypatch.delenv("PMGRAPH_CONFIG", raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = PmSettings.from_cli(workspace_root=tmp_path)
        assert settings.workspace_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.verbose is False
        assert settings.storage.path == "memory.json"
        assert settings.analytics.dependency_depth == 2
        assert settings.analytics.related_depth == 1
        assert settings.analytics.upcoming_window_days == 7
        assert settings.graph_path == tmp_path / "memory.json"

    def test_frozen(self, tmp_path: Path) -> None:
        settings = PmSettings.from_cli(workspace_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]

    def test_cli_flags(self, tmp_path: Path) -> None:
        settings = PmSettings.from_cli(workspace_root=tmp_path, json_output=True, verbose=True)
        assert settings.json_output is True
        assert settings.verbose is True


class TestTomlSource:
    def test_sparse_override(self, tmp_path: Path) -> None:
        """Only overridden fields change; the rest keep defaults."""
        (tmp_path / "pmgraph.toml").write_text(
            '[storage]\npath = "data/graph.json"\n[analytics]\nrelated_depth = 3\n'
        )
        settings = PmSettings.from_cli(workspace_root=tmp_path)
        assert settings.config_path == (tmp_path / "pmgraph.toml").resolve()
        assert settings.storage.path == "data/graph.json"
        assert settings.storage.indent == 2
        assert settings.analytics.related_depth == 3
        assert settings.analytics.dependency_depth == 2
        assert settings.graph_path == tmp_path / "data" / "graph.json"

    def test_root_from_config_parent(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "pmgraph.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings = PmSettings.from_cli()
        assert settings.workspace_root == tmp_path.resolve()
        assert settings.graph_path == tmp_path.resolve() / "memory.json"

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        config = tmp_path / "custom.toml"
        config.write_text("[storage]\nindent = 4\n")
        settings = PmSettings.from_cli(config_path=str(config))
        assert settings.storage.indent == 4
        assert settings.workspace_root == tmp_path

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "pmgraph.toml").write_text("[storage\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            PmSettings.from_cli(workspace_root=tmp_path)


class TestEnvironment:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "pmgraph.toml").write_text("[analytics]\nschedule_slack = 5\n")
        monkeypatch.setenv("PMGRAPH_ANALYTICS__SCHEDULE_SLACK", "25")
        settings = PmSettings.from_cli(workspace_root=tmp_path)
        assert settings.analytics.schedule_slack == 25

    def test_memory_file_path_absolute(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        target = tmp_path / "other" / "mem.json"
        monkeypatch.setenv("MEMORY_FILE_PATH", str(target))
        assert PmSettings.from_cli(workspace_root=tmp_path).graph_path == target

    def test_memory_file_path_relative(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MEMORY_FILE_PATH", "kg.json")
        assert PmSettings.from_cli(workspace_root=tmp_path).graph_path == tmp_path / "kg.json"
