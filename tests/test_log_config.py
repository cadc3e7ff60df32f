"""
Tests for logging configuration.

Tests cover:
- Redaction of secrets, prompts and image payloads
- JSON line formatting
- Daily level files and retention cleanup
- configure_logging handler installation
"""

import json
import logging
from datetime import date

import pytest

from AYA_Libs.log_config import (
    PACKAGE_LOGGER,
    TRACE,
    DailyLevelFileHandler,
    JsonLineFormatter,
    RedactingFilter,
    cleanup_old_logs,
    configure_logging,
    level_name,
    mask_secret,
    sanitize_value,
)


def make_record(message, level=logging.INFO, context=None, name="AYA_Libs.test"):
    record = logging.LogRecord(name, level, __file__, 1, message, None, None)
    if context is not None:
        record.context = context
    return record


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    yield logger
    for handler in list(logger.handlers):
        if getattr(handler, "_aya_installed", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.NOTSET)


class TestRedaction:
    def test_mask_secret(self):
        assert mask_secret("sk-1234567890") == "sk***90"
        assert mask_secret("abc") == "***"
        assert mask_secret("") == ""

    def test_sensitive_keys(self):
        result = sanitize_value({"apiKey": "sk-1234567890", "Authorization": "Bearer abcdefgh"})
        assert result == {"apiKey": "sk***90", "Authorization": "Be***gh"}

    def test_prompt_truncated(self):
        result = sanitize_value({"prompt": "x" * 500})
        assert result["prompt"] == "x" * 120 + "..."

    def test_data_uri_replaced(self):
        result = sanitize_value({"url": "data:image/png;base64,QUJDRA=="})
        assert result["url"] == {"base64Length": 8}

    def test_long_base64_field(self):
        payload = "A" * 100
        assert sanitize_value({"inputImageBase64": payload}) == {
            "inputImageBase64": {"base64Length": 100}
        }
        assert sanitize_value({"inputImageBase64": "short"}) == {"inputImageBase64": "short"}

    def test_nested_and_depth_limit(self):
        deep = {"a": {"b": {"c": {"d": {"e": {"f": {"g": {"h": 1}}}}}}}}
        result = sanitize_value(deep)
        assert result["a"]["b"]["c"]["d"]["e"]["f"] == {"g": "[MaxDepth]"}

    def test_exception_value(self):
        assert sanitize_value(ValueError("bad")) == {"name": "ValueError", "message": "bad"}

    def test_plain_values_untouched(self):
        assert sanitize_value({"status": 200, "ok": True, "ids": [1, 2]}) == {
            "status": 200, "ok": True, "ids": [1, 2]
        }


class TestFormatting:
    def test_level_names(self):
        assert level_name(logging.ERROR) == "error"
        assert level_name(logging.WARNING) == "warn"
        assert level_name(logging.INFO) == "info"
        assert level_name(logging.DEBUG) == "debug"
        assert level_name(TRACE) == "trace"

    def test_event_record(self):
        record = make_record("request.start", context={"provider": "gemini", "apiKey": "sk-1234567890"})
        RedactingFilter(True).filter(record)

        line = json.loads(JsonLineFormatter().format(record))

        assert line["event"] == "request.start"
        assert line["level"] == "info"
        assert line["context"] == {"provider": "gemini", "apiKey": "sk***90"}
        assert "timestamp" in line

    def test_plain_message_uses_logger_name(self):
        record = make_record("Saved 10 bytes")
        line = json.loads(JsonLineFormatter().format(record))
        assert line["event"] == "AYA_Libs.test"
        assert line["context"] == {}

    def test_redaction_disabled(self):
        record = make_record("request.start", context={"apiKey": "sk-1234567890"})
        RedactingFilter(False).filter(record)
        line = json.loads(JsonLineFormatter().format(record))
        assert line["context"] == {"apiKey": "sk-1234567890"}

    def test_original_context_untouched(self):
        context = {"apiKey": "sk-1234567890"}
        record = make_record("request.start", context=context)
        RedactingFilter(True).filter(record)
        assert record.context["apiKey"] == "sk-1234567890"


class TestFileOutput:
    def test_cleanup_retention(self, tmp_path):
        for name in ("info-2026-10-19.log", "info-2026-10-13.log",
                     "error-2026-10-12.log", "notes.txt", "info-2026-13-40.log"):
            (tmp_path / name).write_text("x")

        deleted = cleanup_old_logs(tmp_path, 7, today=date(2026, 10, 19))

        assert [p.name for p in deleted] == ["error-2026-10-12.log"]
        remaining = sorted(p.name for p in tmp_path.iterdir())
        assert remaining == ["info-2026-10-13.log", "info-2026-10-19.log",
                             "info-2026-13-40.log", "notes.txt"]

    def test_cleanup_keeps_only_today(self, tmp_path):
        (tmp_path / "debug-2026-10-18.log").write_text("x")
        (tmp_path / "debug-2026-10-19.log").write_text("x")
        cleanup_old_logs(tmp_path, 1, today=date(2026, 10, 19))
        assert [p.name for p in tmp_path.iterdir()] == ["debug-2026-10-19.log"]

    def test_cleanup_missing_dir(self, tmp_path):
        assert cleanup_old_logs(tmp_path / "missing") == []

    def test_handler_writes_level_files(self, tmp_path):
        handler = DailyLevelFileHandler(tmp_path / "logs")
        info = make_record("request.success", context={"imageCount": 1})
        error = make_record("request.failed", level=logging.ERROR)

        handler.handle(info)
        handler.handle(error)
        handler.handle(make_record("request.start"))

        info_lines = handler.file_for(info).read_text(encoding="utf-8").splitlines()
        assert len(info_lines) == 2
        assert json.loads(info_lines[0])["context"] == {"imageCount": 1}
        assert handler.file_for(error).name.startswith("error-")
        assert handler.file_for(error).exists()


class TestConfigureLogging:
    def test_console_only_by_default(self, package_logger):
        configure_logging({"log_level": "warn"})
        installed = [h for h in package_logger.handlers if getattr(h, "_aya_installed", False)]
        assert len(installed) == 1
        assert package_logger.level == logging.WARNING

    def test_reconfigure_replaces_handlers(self, package_logger):
        configure_logging()
        configure_logging()
        installed = [h for h in package_logger.handlers if getattr(h, "_aya_installed", False)]
        assert len(installed) == 1

    def test_debug_dump_writes_files(self, package_logger, tmp_path):
        configure_logging({
            "debug_enabled": True,
            "log_level": "debug",
            "log_dir": str(tmp_path),
        }, console=False)

        logging.getLogger("AYA_Libs.ProvidersLib.dispatch").info(
            "request.start", extra={"context": {"apiKey": "sk-1234567890"}}
        )

        files = sorted(p.name for p in tmp_path.iterdir())
        assert any(name.startswith("info-") for name in files)
        info_file = next(p for p in tmp_path.iterdir() if p.name.startswith("info-"))
        line = json.loads(info_file.read_text(encoding="utf-8").splitlines()[-1])
        assert line["event"] == "request.start"
        assert line["context"]["apiKey"] == "sk***90"

    def test_dump_disabled(self, package_logger, tmp_path):
        configure_logging({
            "debug_enabled": True,
            "log_dump_enabled": False,
            "log_dir": str(tmp_path),
        }, console=False)
        logging.getLogger("AYA_Libs.test").error("request.failed")
        assert list(tmp_path.iterdir()) == []
