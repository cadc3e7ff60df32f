"""
Logging configuration for Aya Image Edit.

Modules log through `logging.getLogger(__name__)`. Structured events are
logged with the event name as the message and their data under the
`context` extra:

    logger.info("request.start", extra={"context": {"provider": "gemini"}})

`configure_logging` installs a console handler on the package logger and,
when debug dumps are enabled, a DailyLevelFileHandler writing one JSON line
per record into `<level>-<YYYY-MM-DD>.log`. File output is redacted by
RedactingFilter unless redaction is switched off.

Functions:
    configure_logging: Apply logging settings (idempotent)
    sanitize_value: Redact a context value
    cleanup_old_logs: Delete level log files outside the retention window
"""

import json
import logging
import re
import threading
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from AYA_Libs.constants import (
    BASE64_LOG_THRESHOLD,
    DATA_DIR_NAME,
    DEFAULT_LOG_RETENTION_DAYS,
    LOG_DIR_NAME,
    MESSAGE_LOG_LIMIT,
    PROMPT_LOG_LIMIT,
    REDACTION_MAX_DEPTH,
)

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

PACKAGE_LOGGER = "AYA_Libs"

LEVELS_BY_NAME = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

LOG_FILE_RE = re.compile(r"^(error|warn|info|debug|trace)-(\d{4}-\d{2}-\d{2})\.log$")
EVENT_RE = re.compile(r"^[A-Za-z_][\w]*(\.[\w]+)+$")
SENSITIVE_KEY_RE = re.compile(r"api[-_]?key|authorization|token|secret", re.IGNORECASE)
PROMPT_KEY_RE = re.compile(r"prompt", re.IGNORECASE)
BASE64_KEY_RE = re.compile(r"base64|imageData|inline_data|inlineData|image", re.IGNORECASE)

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def level_name(levelno: int) -> str:
    """Map a numeric level to one of error/warn/info/debug/trace."""
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    if levelno >= logging.INFO:
        return "info"
    if levelno >= logging.DEBUG:
        return "debug"
    return "trace"


def mask_secret(value: Any) -> str:
    text = str(value if value is not None else "").strip()
    if not text:
        return ""
    if len(text) <= 6:
        return "***"
    return f"{text[:2]}***{text[-2:]}"


def truncate_text(value: Any, limit: int) -> str:
    text = str(value if value is not None else "")
    return f"{text[:limit]}..." if len(text) > limit else text


def _data_uri_base64_length(value: str) -> Optional[int]:
    if not value.startswith("data:"):
        return None
    marker = ";base64,"
    index = value.find(marker)
    if index < 0:
        return None
    return len(re.sub(r"\s+", "", value[index + len(marker):]))


def sanitize_value(value: Any, key: str = "", depth: int = 0) -> Any:
    """
    Redact a log context value.

    Secrets are masked, prompts truncated, data URIs and long Base64 strings
    replaced by {"base64Length": n}. Containers are walked up to a fixed depth.
    """
    if value is None:
        return None
    if depth > REDACTION_MAX_DEPTH:
        return "[MaxDepth]"
    if isinstance(value, BaseException):
        return {"name": type(value).__name__, "message": str(value)}
    if isinstance(value, str):
        data_uri_length = _data_uri_base64_length(value)
        if data_uri_length is not None:
            return {"base64Length": data_uri_length}
        if SENSITIVE_KEY_RE.search(key):
            return mask_secret(value)
        if PROMPT_KEY_RE.search(key):
            return truncate_text(value, PROMPT_LOG_LIMIT)
        if BASE64_KEY_RE.search(key) and len(value) > BASE64_LOG_THRESHOLD:
            return {"base64Length": len(re.sub(r"\s+", "", value))}
        return value
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        return [sanitize_value(item, key, depth + 1) for item in value]
    if isinstance(value, dict):
        return {
            str(child_key): sanitize_value(child_value, str(child_key), depth + 1)
            for child_key, child_value in value.items()
        }
    return str(value)


class RedactingFilter(logging.Filter):
    """
    Attaches redacted copies of the message and context to each record.

    The original `msg` and `context` are left untouched so other handlers
    still see them.
    """

    def __init__(self, enabled: bool = True):
        super().__init__()
        self.enabled = enabled

    def filter(self, record: logging.LogRecord) -> bool:
        context = getattr(record, "context", None) or {}
        message = record.getMessage()
        if self.enabled:
            record.safe_context = sanitize_value(context)
            record.safe_message = truncate_text(message, MESSAGE_LOG_LIMIT)
        else:
            record.safe_context = context
            record.safe_message = message
        return True


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, event, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        message = getattr(record, "safe_message", None)
        if message is None:
            message = record.getMessage()
        context = getattr(record, "safe_context", None)
        if context is None:
            context = getattr(record, "context", None) or {}
        event = message if EVENT_RE.match(message) else record.name
        return json.dumps({
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": level_name(record.levelno),
            "event": event,
            "message": message,
            "context": context,
        }, ensure_ascii=False, default=str)


def cleanup_old_logs(log_dir: Path, retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
                     today: Optional[date] = None) -> List[Path]:
    """
    Delete level log files dated before the retention window.

    The window includes today, so retention_days=1 keeps only today's files.

    Returns:
        Paths that were deleted
    """
    log_dir = Path(log_dir)
    if not log_dir.is_dir():
        return []
    today = today or date.today()
    cutoff = today - timedelta(days=max(1, int(retention_days)) - 1)

    deleted = []
    for entry in log_dir.iterdir():
        match = LOG_FILE_RE.match(entry.name)
        if not match or not entry.is_file():
            continue
        try:
            file_date = datetime.strptime(match.group(2), "%Y-%m-%d").date()
        except ValueError:
            continue
        if file_date < cutoff:
            try:
                entry.unlink()
                deleted.append(entry)
            except OSError:
                continue
    return deleted


class DailyLevelFileHandler(logging.Handler):
    """
    Appends JSON lines to `<level>-<YYYY-MM-DD>.log` in `log_dir`.

    Old files are cleaned up once per day, on the first record of that day.
    """

    def __init__(self, log_dir: Path, retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
                 level: int = logging.NOTSET):
        super().__init__(level)
        self.log_dir = Path(log_dir)
        self.retention_days = retention_days
        self._cleaned_day: Optional[date] = None
        self._write_lock = threading.Lock()
        self.setFormatter(JsonLineFormatter())

    def file_for(self, record: logging.LogRecord) -> Path:
        day = datetime.fromtimestamp(record.created).date()
        return self.log_dir / f"{level_name(record.levelno)}-{day.isoformat()}.log"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            day = datetime.fromtimestamp(record.created).date()
            with self._write_lock:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                if self._cleaned_day != day:
                    self._cleaned_day = day
                    cleanup_old_logs(self.log_dir, self.retention_days, day)
                with open(self.file_for(record), "a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
        except Exception:
            self.handleError(record)


def default_log_dir() -> Path:
    return Path.home() / DATA_DIR_NAME / LOG_DIR_NAME


def _remove_installed_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, "_aya_installed", False):
            logger.removeHandler(handler)
            handler.close()


def configure_logging(settings: Optional[Dict[str, Any]] = None,
                      console: bool = True) -> logging.Logger:
    """
    Configure the package logger from settings.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        settings: Settings dict (log_level, debug_enabled, log_dump_enabled,
            log_dir, log_retention_days, log_redaction_enabled)
        console: Whether to attach a console handler

    Returns:
        The configured package logger
    """
    from AYA_Libs.PipelineLib.settings_store import normalize_settings

    normalized = normalize_settings(settings)
    level = LEVELS_BY_NAME.get(normalized["log_level"], logging.INFO)

    logger = logging.getLogger(PACKAGE_LOGGER)
    _remove_installed_handlers(logger)
    logger.setLevel(level)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console_handler._aya_installed = True
        logger.addHandler(console_handler)

    if normalized["debug_enabled"] and normalized["log_dump_enabled"]:
        log_dir = Path(normalized["log_dir"]) if normalized["log_dir"] else default_log_dir()
        file_handler = DailyLevelFileHandler(log_dir, normalized["log_retention_days"], level)
        file_handler.addFilter(RedactingFilter(normalized["log_redaction_enabled"]))
        file_handler._aya_installed = True
        logger.addHandler(file_handler)
        logger.debug(f"Writing debug logs to {log_dir}")

    return logger
