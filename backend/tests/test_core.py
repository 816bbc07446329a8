"""
Tests for settings, structured logging and error formatting helpers.
"""
from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError as SettingsValidationError

from arbdash.core.exception_handlers import format_field_errors
from arbdash.core.exceptions import DuplicateKeyError, NotFoundError, StoreError, create_safe_error_dict
from arbdash.core.logging import StructuredFormatter
from arbdash.core.settings import Settings, get_settings, reload_settings


def _record(message: str, extra_data=None) -> logging.LogRecord:
    record = logging.LogRecord("arbdash.test", logging.INFO, __file__, 1, message, None, None)
    if extra_data is not None:
        record.extra_data = extra_data
    record.trace_id = "trace-1"
    return record


class TestStructuredFormatter:

    def test_json_output(self):
        line = StructuredFormatter().format(_record("hello", {"status": 1}))
        data = json.loads(line)

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["trace_id"] == "trace-1"
        assert data["status"] == 1

    def test_sensitive_keys_redacted(self):
        line = StructuredFormatter().format(_record("login", {"password": "hunter2", "username": "demo"}))
        data = json.loads(line)

        assert data["password"] == "[REDACTED]"
        assert data["username"] == "demo"


class TestErrorHelpers:

    def test_status_codes(self):
        assert NotFoundError("x").status_code == 404
        assert StoreError("x").status_code == 500
        assert DuplicateKeyError("x").error_code == "DUPLICATE_KEY"

    def test_safe_error_dict_includes_cause(self):
        try:
            try:
                raise ValueError("UNIQUE constraint failed")
            except ValueError as e:
                raise DuplicateKeyError("Failed to create transaction") from e
        except DuplicateKeyError as err:
            error = err

        data = create_safe_error_dict(error, "trace-2")

        assert data["error_code"] == "DUPLICATE_KEY"
        assert data["trace_id"] == "trace-2"
        assert "UNIQUE constraint failed" in data["cause"]

    def test_format_field_errors_strips_location(self):
        errors = [
            {"loc": ("body", "txHash"), "msg": "Field required", "type": "missing"},
            {"loc": ("query", "limit"), "msg": "too small", "type": "greater_than_equal"},
            {"loc": ("body",), "msg": "bad json", "type": "json_invalid"},
        ]

        assert format_field_errors(errors) == [
            {"field": "txHash", "message": "Field required", "type": "missing"},
            {"field": "limit", "message": "too small", "type": "greater_than_equal"},
            {"field": "body", "message": "bad json", "type": "json_invalid"},
        ]


class TestSettings:

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("MOCK_FALLBACK_ENABLED", "false")
        monkeypatch.setenv("STATUS_POLL_SECONDS", "15")

        settings = Settings()

        assert settings.mock_fallback_enabled is False
        assert settings.status_poll_seconds == 15
        assert settings.client_timeout_seconds is None

    def test_invalid_values_rejected(self):
        with pytest.raises(SettingsValidationError):
            Settings(environment="qa")
        with pytest.raises(SettingsValidationError):
            Settings(gas_price_poll_seconds=0)

    def test_reload_settings(self, monkeypatch):
        original = get_settings()
        monkeypatch.setenv("CHAIN_NAME", "Holesky")
        try:
            reloaded = reload_settings()
            assert reloaded.chain_name == "Holesky"
            assert get_settings() is reloaded
        finally:
            monkeypatch.delenv("CHAIN_NAME")
            reload_settings()

        assert get_settings() is not original
