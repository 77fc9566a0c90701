"""
Tests for intake_core/config/logging_config.py: structlog setup and PHI masking.
"""

import json
import logging
import logging.handlers

import pytest
import structlog

from intake_core.config.logging_config import (
    PHIFilter,
    add_service_info,
    configure_logging,
    get_logger,
    mask_phi,
    mask_text,
    shared_processors,
)
from intake_core.config.settings import Settings


@pytest.fixture
def restore_logging():
    """Restore root handlers and structlog defaults after configuring."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def read_json_lines(capsys) -> list[dict]:
    out = capsys.readouterr().out
    return [json.loads(line) for line in out.splitlines() if line.strip()]


# ---------------------------------------------------------------------------
# PHI masking
# ---------------------------------------------------------------------------


class TestMaskText:

    def test_masks_ssn(self):
        assert mask_text("ssn 123-45-6789") == "ssn [SSN-MASKED]"

    def test_masks_npi_before_phone(self):
        assert mask_text("NPI: 1234567893") == "[NPI-MASKED]"

    def test_masks_phone(self):
        assert mask_text("call 555-123-4567") == "call [PHONE-MASKED]"

    def test_masks_email(self):
        assert mask_text("mail jane@example.com") == "mail [EMAIL-MASKED]"

    def test_masks_mrn(self):
        assert mask_text("MRN: 123456") == "[MRN-MASKED]"

    def test_leaves_plain_text(self):
        assert mask_text("duplicate_check_complete") == "duplicate_check_complete"


class TestMaskPhi:

    def test_masks_nested_values(self):
        event = {
            "event": "lookup",
            "contact": {"email": "jane@example.com"},
            "ids": ["123-45-6789", 7],
        }

        masked = mask_phi(None, "info", event)

        assert masked["event"] == "lookup"
        assert masked["contact"]["email"] == "[EMAIL-MASKED]"
        assert masked["ids"] == ["[SSN-MASKED]", 7]

    def test_metadata_keys_untouched(self):
        event = {"event": "x", "_note": "123-45-6789"}

        assert mask_phi(None, "info", event)["_note"] == "123-45-6789"

    def test_disabled_masking(self, monkeypatch):
        monkeypatch.setenv("HIPAA_PHI_MASKING_ENABLED", "false")
        event = {"event": "ssn 123-45-6789"}

        assert mask_phi(None, "info", event) == event


class TestPHIFilter:

    def test_masks_message_and_args(self):
        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="patient ssn %s at 123-45-6789",
            args=("987-65-4321",),
            exc_info=None,
        )

        assert PHIFilter().filter(record) is True
        assert record.msg == "patient ssn %s at [SSN-MASKED]"
        assert record.args == ("[SSN-MASKED]",)


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------


class TestProcessors:

    def test_add_service_info(self):
        event = add_service_info(None, "info", {})
        assert event["service"] == "patient-intake-core"
        assert event["environment"] == "development"

    def test_caller_processor_only_when_enabled(self, monkeypatch):
        def has_callsite(settings):
            return any(
                isinstance(p, structlog.processors.CallsiteParameterAdder)
                for p in shared_processors(settings)
            )

        assert has_callsite(Settings()) is False

        monkeypatch.setenv("LOG_INCLUDE_CALLER", "true")
        assert has_callsite(Settings()) is True


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_stdout_handler_only_by_default(self, restore_logging):
        configure_logging()

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert any(isinstance(f, PHIFilter) for f in handlers[0].filters)

    def test_rotating_file_handler(self, restore_logging, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_FILE_PATH", str(tmp_path / "logs" / "intake.log"))

        configure_logging()

        handlers = logging.getLogger().handlers
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in handlers)

    def test_console_format(self, restore_logging, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "console")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        configure_logging()

        assert logging.getLogger().level == logging.DEBUG

    def test_json_event_rendered_once(self, restore_logging, capsys):
        configure_logging()
        logger = get_logger("intake_core.test")

        logger.info("candidate_set_truncated", limit=100)

        payload = read_json_lines(capsys)[-1]
        assert payload["event"] == "candidate_set_truncated"
        assert payload["limit"] == 100
        assert payload["level"] == "info"
        assert payload["logger"] == "intake_core.test"
        assert payload["service"] == "patient-intake-core"
        assert "timestamp" in payload

    def test_stdlib_record_rendered_as_json(self, restore_logging, capsys):
        configure_logging()

        logging.getLogger("intake_core.stdlib").warning("store %s slow", "primary")

        payload = read_json_lines(capsys)[-1]
        assert payload["event"] == "store primary slow"
        assert payload["level"] == "warning"
        assert payload["logger"] == "intake_core.stdlib"

    def test_phi_masked_in_output(self, restore_logging, capsys):
        configure_logging()

        get_logger("intake_core.test").info("lookup", contact="jane@example.com")

        payload = read_json_lines(capsys)[-1]
        assert payload["contact"] == "[EMAIL-MASKED]"

    def test_caller_fields_when_enabled(self, restore_logging, capsys, monkeypatch):
        monkeypatch.setenv("LOG_INCLUDE_CALLER", "true")
        configure_logging()

        get_logger("intake_core.test").info("with_caller")
        logging.getLogger("intake_core.stdlib").info("stdlib_with_caller")

        structlog_event, stdlib_event = read_json_lines(capsys)[-2:]
        for payload in (structlog_event, stdlib_event):
            assert payload["func_name"] == "test_caller_fields_when_enabled"
            assert payload["module"] == "test_logging_config"
            assert isinstance(payload["lineno"], int)

    def test_no_caller_fields_by_default(self, restore_logging, capsys):
        configure_logging()

        get_logger("intake_core.test").info("without_caller")

        payload = read_json_lines(capsys)[-1]
        assert "func_name" not in payload
