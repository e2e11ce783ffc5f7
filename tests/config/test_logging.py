"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from pmgraph.config.logging import configure_logging, operation_context
from pmgraph.infrastructure.workspace import Workspace
from pmgraph.services.graph import GraphService


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("pmgraph").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("pmgraph").level == logging.WARNING

    def test_single_stderr_handler(self) -> None:
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("pmgraph.test")
        log.warning("json test", answer=42)
        captured = capfd.readouterr()
        assert captured.out == ""
        parsed = json.loads(captured.err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "pmgraph.test"
        assert "timestamp" in parsed

    def test_stdlib_pmgraph_logger_is_structured(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("pmgraph.infrastructure.store").debug("Saved graph to %s", "x.json")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "Saved graph to x.json"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "pmgraph.infrastructure.store"

    def test_debug_suppressed_without_verbose(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True)
        logging.getLogger("pmgraph.services.graph").debug("quiet")
        assert capfd.readouterr().err == ""


class TestOperationContext:
    def test_binds_and_restores(self) -> None:
        with operation_context("overview"):
            assert structlog.contextvars.get_contextvars()["op"] == "overview"
            with operation_context("task_dependencies", depth=2):
                bound = structlog.contextvars.get_contextvars()
                assert bound == {"op": "task_dependencies", "depth": 2}
            assert structlog.contextvars.get_contextvars() == {"op": "overview"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_records_carry_op_and_extra(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        with operation_context("create_entities"):
            logging.getLogger("pmgraph.infrastructure.store").debug(
                "Saved graph to %s", "x.json", extra={"entities": 3}
            )
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["op"] == "create_entities"
        assert parsed["entities"] == 3

    def test_service_call_tags_store_records(
        self, workspace: Workspace, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)
        GraphService(workspace).create_entities([{"name": "T1", "entityType": "task"}])
        records = [json.loads(line) for line in capfd.readouterr().err.splitlines()]
        saved = [r for r in records if r["event"].startswith("Saved graph to")]
        assert len(saved) == 1
        assert saved[0]["op"] == "create_entities"
        assert saved[0]["entities"] == 1
        assert saved[0]["relations"] == 0
