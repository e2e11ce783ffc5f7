"""Tests for pmgraph.toml discovery."""

from pathlib import Path

import pytest

from pmgraph.config.discovery import find_config


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PMGRAPH_CONFIG", raising=False)


class TestFindConfig:
    def test_in_start_dir(self, tmp_path: Path) -> None:
        (tmp_path / "pmgraph.toml").write_text("")
        assert find_config(tmp_path) == (tmp_path / "pmgraph.toml").resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        (tmp_path / "pmgraph.toml").write_text("")
        deep = tmp_path / "x" / "y"
        deep.mkdir(parents=True)
        assert find_config(deep) == (tmp_path / "pmgraph.toml").resolve()

    def test_env_var_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "pmgraph.toml").write_text("")
        other = tmp_path / "elsewhere.toml"
        other.write_text("")
        monkeypatch.setenv("PMGRAPH_CONFIG", str(other))
        assert find_config(tmp_path) == other

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PMGRAPH_CONFIG", str(tmp_path / "nope.toml"))
        assert find_config(tmp_path) is None
