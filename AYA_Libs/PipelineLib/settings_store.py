"""
Settings store.

Settings are a flat JSON object. Reading never fails: a missing or
unreadable file yields defaults, and every value is normalized so stale or
hand-edited files cannot break the pipeline. Keys written by older versions
in camelCase are mapped to their current names.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from AYA_Libs.constants import (
    AUTO_SEND_MODES,
    AUTO_SEND_OFF,
    DATA_DIR_NAME,
    DEFAULT_DASHSCOPE_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_RETENTION_DAYS,
    DEFAULT_PROVIDER,
    GEMINI_ASPECT_RATIOS,
    GEMINI_IMAGE_SIZES,
    LOG_LEVELS,
    MAX_LOG_RETENTION_DAYS,
    PROVIDER_DASHSCOPE,
    PROVIDER_GEMINI,
    SETTINGS_FILE_NAME,
)
from AYA_Libs.errors import FilePermissionError, FileWriteError
from AYA_Libs.ProvidersLib.dashscope_provider import clamp_image_count

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "provider": DEFAULT_PROVIDER,
    "dashscope_api_key": "",
    "dashscope_model": DEFAULT_DASHSCOPE_MODEL,
    "gemini_api_key": "",
    "gemini_model": DEFAULT_GEMINI_MODEL,
    "gemini_aspect_ratio": "",
    "gemini_image_size": "",
    "n": 1,
    "negative_prompt": "",
    "prompt_extend": True,
    "watermark": False,
    "size": "",
    "auto_send_mode": AUTO_SEND_OFF,
    "last_prompt": "",
    "debug_enabled": False,
    "log_level": DEFAULT_LOG_LEVEL,
    "log_dump_enabled": True,
    "log_dir": "",
    "log_retention_days": DEFAULT_LOG_RETENTION_DAYS,
    "log_redaction_enabled": True,
}

LEGACY_KEYS = {
    "apiKey": "dashscope_api_key",
    "model": "dashscope_model",
    "geminiApiKey": "gemini_api_key",
    "geminiModel": "gemini_model",
    "geminiAspectRatio": "gemini_aspect_ratio",
    "geminiImageSize": "gemini_image_size",
    "autoSendMode": "auto_send_mode",
    "lastPrompt": "last_prompt",
    "debugEnabled": "debug_enabled",
    "logLevel": "log_level",
    "logDumpEnabled": "log_dump_enabled",
    "logRetentionDays": "log_retention_days",
    "logRedactionEnabled": "log_redaction_enabled",
}


def default_settings() -> Dict[str, Any]:
    return dict(DEFAULT_SETTINGS)


def get_settings_path(base_dir: Optional[Path] = None) -> Path:
    """Settings file inside `base_dir`, or inside ~/.aya_image_edit by default."""
    if base_dir is None:
        base_dir = Path.home() / DATA_DIR_NAME
    return Path(base_dir) / SETTINGS_FILE_NAME


def _retention_days(value: Any) -> int:
    try:
        days = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LOG_RETENTION_DAYS
    return max(1, min(MAX_LOG_RETENTION_DAYS, days))


def normalize_settings(settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Return a complete settings dict built from `settings`.

    Legacy camelCase keys are mapped (current names win when both exist).
    Missing keys, unknown keys and values of the wrong type fall back to
    defaults.
    """
    source: Dict[str, Any] = {}
    if isinstance(settings, dict):
        for legacy, current in LEGACY_KEYS.items():
            if legacy in settings and current not in settings:
                source[current] = settings[legacy]
        source.update({k: v for k, v in settings.items() if k in DEFAULT_SETTINGS})

    result = default_settings()
    for key, default in DEFAULT_SETTINGS.items():
        if key not in source:
            continue
        value = source[key]
        if isinstance(default, bool):
            if isinstance(value, bool):
                result[key] = value
        elif isinstance(default, str):
            if isinstance(value, str):
                result[key] = value

    provider = str(source.get("provider") or "").strip().lower()
    result["provider"] = provider if provider in (PROVIDER_DASHSCOPE, PROVIDER_GEMINI) else DEFAULT_PROVIDER
    if result["auto_send_mode"] not in AUTO_SEND_MODES:
        result["auto_send_mode"] = AUTO_SEND_OFF
    if result["log_level"] not in LOG_LEVELS:
        result["log_level"] = DEFAULT_LOG_LEVEL
    if result["gemini_aspect_ratio"] not in GEMINI_ASPECT_RATIOS:
        result["gemini_aspect_ratio"] = ""
    if result["gemini_image_size"] not in GEMINI_IMAGE_SIZES:
        result["gemini_image_size"] = ""
    if not result["dashscope_model"].strip():
        result["dashscope_model"] = DEFAULT_DASHSCOPE_MODEL
    if not result["gemini_model"].strip():
        result["gemini_model"] = DEFAULT_GEMINI_MODEL
    result["n"] = clamp_image_count(source.get("n", DEFAULT_SETTINGS["n"]))
    result["log_retention_days"] = _retention_days(
        source.get("log_retention_days", DEFAULT_LOG_RETENTION_DAYS)
    )
    return result


def read_settings(path: Path) -> Dict[str, Any]:
    """Read and normalize settings; any read or parse failure yields defaults."""
    path = Path(path)
    if not path.exists():
        return default_settings()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read settings from {path}, using defaults: {e}")
        return default_settings()
    return normalize_settings(payload)


def write_settings(path: Path, settings: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize and write settings as indented JSON.

    Returns:
        The normalized settings that were written

    Raises:
        FilePermissionError: If the file cannot be written for lack of permission
        FileWriteError: If the file cannot be written for another reason
    """
    path = Path(path)
    normalized = normalize_settings(settings)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(normalized, indent=2), encoding="utf-8")
    except PermissionError as e:
        raise FilePermissionError(
            f"Permission denied writing settings to {path}",
            "Check the permissions of the settings folder",
        ) from e
    except OSError as e:
        raise FileWriteError(f"Could not write settings to {path}: {e.strerror or e}") from e
    return normalized
