"""Shared pytest fixtures for pmgraph tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from pmgraph.config.settings import PmSettings
from pmgraph.infrastructure.workspace import Workspace
from pmgraph.services.graph import GraphService
from pmgraph.services.telemetry import disable_telemetry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Iterator[None]:
    """Telemetry is a context-wide switch; never let it leak between tests."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Restore root logger state after each test (every CLI run reconfigures it)."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    pm = logging.getLogger("pmgraph")
    pm_level = pm.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    pm.setLevel(pm_level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def workspace_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary workspace directory with graph-location overrides cleared.

    This is the single source of truth for where the test graph lives.
    All workspace fixtures (workspace, _isolated_workspace) build on it.
    """
    monkeypatch.delenv("MEMORY_FILE_PATH", raising=False)
    monkeypatch.delenv("PMGRAPH_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def settings(workspace_root: Path) -> PmSettings:
    return PmSettings.from_cli(workspace_root=workspace_root)


@pytest.fixture
def workspace(settings: PmSettings) -> Workspace:
    """Workspace whose graph file is ``<tmp>/memory.json`` (not yet created)."""
    return Workspace(settings)


@pytest.fixture
def _isolated_workspace(workspace_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp workspace so the CLI writes an isolated graph.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.chdir(workspace_root)


# ---------------------------------------------------------------------------
# Graph builder (used across service test modules)
# ---------------------------------------------------------------------------


class GraphBuilder:
    """Seed a workspace through GraphService, asserting every write succeeds."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace
        self.service = GraphService(workspace)

    def entity(self, name: str, entity_type: str, *observations: str) -> GraphBuilder:
        result = self.service.create_entities(
            [{"name": name, "entityType": entity_type, "observations": list(observations)}]
        )
        assert result.ok, result.error
        return self

    def relate(self, source: str, target: str, relation_type: str) -> GraphBuilder:
        result = self.service.create_relations(
            [{"from": source, "to": target, "relationType": relation_type}]
        )
        assert result.ok, result.error
        return self

    def status(self, name: str, value: str) -> GraphBuilder:
        result = self.service.set_entity_status(name, value)
        assert result.ok, result.error
        return self

    def priority(self, name: str, value: str) -> GraphBuilder:
        result = self.service.set_entity_priority(name, value)
        assert result.ok, result.error
        return self


@pytest.fixture
def build(workspace: Workspace) -> GraphBuilder:
    """Fluent helper: ``build.entity("P1", "project").relate("T1", "P1", "part_of")``."""
    return GraphBuilder(workspace)
