"""Unit tests for structured logging setup."""
from __future__ import annotations

import asyncio
import json
import logging
import uuid

import pytest
import structlog
from structlog.testing import capture_logs

from appendlog.application.event_sourcing import AppendCoordinator, InMemoryPersistenceGateway
from appendlog.config.settings import EventStoreSettings
from appendlog.observability.logging import JsonLoggerFactory, get_logger


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


class TestJsonLoggerFactory:
    def test_emits_json_lines(self, capsys: pytest.CaptureFixture[str]) -> None:
        JsonLoggerFactory.configure("INFO")
        get_logger("appendlog.test").info("hello", stream_id="s-1")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "hello"
        assert payload["stream_id"] == "s-1"
        assert payload["level"] == "info"
        assert payload["logger"] == "appendlog.test"
        assert "timestamp" in payload

    def test_level_filters_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        JsonLoggerFactory.configure(logging.WARNING)
        get_logger("appendlog.test").info("hidden")
        assert "hidden" not in capsys.readouterr().err

    def test_console_renderer(self, capsys: pytest.CaptureFixture[str]) -> None:
        JsonLoggerFactory.configure("DEBUG", json_output=False)
        get_logger("appendlog.test").debug("plain")
        assert "plain" in capsys.readouterr().err


class TestGetLogger:
    def test_initial_values_are_bound(self) -> None:
        with capture_logs() as logs:
            get_logger("x", component="store").info("ping")
        assert logs == [{"component": "store", "event": "ping", "log_level": "info"}]


class TestAppendLogging:
    def test_conflict_and_commit_are_logged(self) -> None:
        coordinator = AppendCoordinator(InMemoryPersistenceGateway())
        sid = uuid.uuid4()

        async def run() -> None:
            await coordinator.append("Order", sid, "E", b"{}", 0)
            await coordinator.append("Order", sid, "E", b"{}", 0)

        with capture_logs() as logs:
            asyncio.run(run())

        events = [entry["event"] for entry in logs]
        assert events == ["append.committed", "append.conflict"]
        conflict = logs[1]
        assert conflict["stream_id"] == str(sid)
        assert conflict["expected_version"] == 0
        assert conflict["actual_version"] == 1


class TestConfigureFromSettings:
    def test_uses_level_and_renderer_from_settings(self, capsys: pytest.CaptureFixture[str]) -> None:
        JsonLoggerFactory.configure_from_settings(EventStoreSettings(log_level="ERROR", log_json=True))
        log = get_logger("appendlog.test")
        log.warning("quiet")
        log.error("loud")

        err = capsys.readouterr().err
        assert "quiet" not in err
        assert json.loads(err.strip().splitlines()[-1])["event"] == "loud"
