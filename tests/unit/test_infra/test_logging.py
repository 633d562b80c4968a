"""Tests for structured log formatting."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from gateway_service.infra.logging import JSONFormatter


def _record(msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "gateway_service.features.gateway.builder", logging.INFO, __file__, 1, msg, args, None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestJSONFormatter:
    """One JSON object per record."""

    def test_message_and_extra_fields(self) -> None:
        formatter = JSONFormatter(static={"service": "graphql-gateway"})

        line = formatter.format(_record("Found %d local package(s)", 2, packages=["hello"]))

        data = json.loads(line)
        assert data["message"] == "Found 2 local package(s)"
        assert data["level"] == "INFO"
        assert data["service"] == "graphql-gateway"
        assert data["packages"] == ["hello"]
        assert data["timestamp"].endswith("Z")
        assert "trace_id" not in data

    def test_exception_is_single_line(self) -> None:
        formatter = JSONFormatter()
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record("failed")
            record.exc_info = sys.exc_info()

        line = formatter.format(record)

        assert "\n" not in line
        assert "ValueError: boom" in json.loads(line)["exception"]
