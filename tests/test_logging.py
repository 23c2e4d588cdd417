"""Test structured JSON logging."""
import io
import json
import logging

import pytest

from spend_monitor.shared.infrastructure.logging import (
    CustomJsonFormatter,
    get_context_logger,
    log_latency,
)


@pytest.fixture
def captured():
    """Logger writing JSON lines into a buffer."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="staging"))
    logger = logging.getLogger("spend_monitor.tests.logging")
    logger.handlers = [handler]
    logger.setLevel(logging.INFO)
    logger.propagate = False

    def lines():
        return [json.loads(line) for line in stream.getvalue().splitlines()]

    yield logger, lines
    logger.handlers = []


class TestCustomJsonFormatter:
    def test_adds_timestamp_and_environment(self, captured):
        logger, lines = captured
        logger.info("hello", extra={"customer": "acme"})

        record = lines()[0]
        assert record["message"] == "hello"
        assert record["customer"] == "acme"
        assert record["environment"] == "staging"
        assert "timestamp" in record

    def test_redacts_secrets(self, captured):
        logger, lines = captured
        logger.info("config", extra={"slack_bot_token": "xoxb-1", "tableau_pat_secret": "s", "path": "/x"})

        record = lines()[0]
        assert record["slack_bot_token"] == "***REDACTED***"
        assert record["tableau_pat_secret"] == "***REDACTED***"
        assert record["path"] == "/x"


class TestContextLogger:
    def test_correlation_id_and_call_site_extra(self, captured):
        logger, lines = captured
        context = get_context_logger(logger.name, "run-1")

        context.info("processing", extra={"customer": "acme"})

        record = lines()[0]
        assert record["correlation_id"] == "run-1"
        assert record["customer"] == "acme"

    def test_log_latency(self, captured):
        logger, lines = captured
        with log_latency(logger, "monitor_run", customers=2):
            pass

        record = lines()[0]
        assert record["operation"] == "monitor_run"
        assert record["customers"] == 2
        assert record["latency_ms"] >= 0
