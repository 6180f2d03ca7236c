"""
Centralized logging configuration for the TGN site backend.

Console output is colored and human-readable; the log file holds one JSON
object per line and rotates at 10 MB. Structured fields travel on
``record.extra_fields``.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


SENSITIVE_KEYS = [
    'password', 'token', 'secret', 'authorization', 'cookie',
    'api_key', 'api-key', 'x-goog-api-key',
]
FILTERED = "***FILTERED***"

CONSOLE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
PLAIN_FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Libraries that log every connection or statement at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite", "sqlalchemy.engine", "uvicorn.access")

_LEVEL_COLORS = {
    logging.DEBUG: '\033[36m',
    logging.INFO: '\033[32m',
    logging.WARNING: '\033[33m',
    logging.ERROR: '\033[31m',
    logging.CRITICAL: '\033[35m',
}
_RESET = '\033[0m'


class ColoredFormatter(logging.Formatter):
    """Console formatter: colored level name, structured fields appended as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, _RESET)
        levelname = record.levelname
        record.levelname = f"{color}{levelname:<8}{_RESET}"
        try:
            line = super().format(record)
        finally:
            # Other handlers format the same record
            record.levelname = levelname

        fields = getattr(record, 'extra_fields', None)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items()
                                   if value is not None and key not in ("request_body", "response_body"))
        return line


class JSONFormatter(logging.Formatter):
    """One JSON document per record, tagged with the app name and version."""

    def __init__(self, app_name: str = "", app_version: str = ""):
        super().__init__()
        self.app_name = app_name
        self.app_version = app_version

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "where": f"{record.funcName}:{record.lineno}",
            "msg": record.getMessage(),
            "app": self.app_name,
            "version": self.app_version,
        }
        log_data.update(getattr(record, 'extra_fields', None) or {})
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False, default=str)


def _file_handler(config: Any, level: int) -> logging.Handler:
    log_path = Path(config.log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding='utf-8'
    )
    handler.setLevel(level)
    if config.log_json_format:
        handler.setFormatter(JSONFormatter(config.app_name, config.app_version))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(config: Any) -> None:
    """
    Configure the root logger from settings. Safe to call more than once.

    Args:
        config: Settings object with the ``log_*`` fields
    """
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    if config.log_console_enabled:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(console_handler)

    if config.log_file_enabled:
        root_logger.addHandler(_file_handler(config, level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Per-call LLM timing/usage lines are INFO; errors are always kept
    logging.getLogger("tgnsite.llm").setLevel(
        logging.NOTSET if config.log_llm_calls else logging.WARNING
    )

    root_logger.info(
        f"Logging initialized: level={logging.getLevelName(level)}, "
        f"console={config.log_console_enabled}, file={config.log_file_enabled}, "
        f"llm_calls={config.log_llm_calls}"
    )


def filter_sensitive_data(data: Any, sensitive_keys: Optional[list] = None) -> Any:
    """
    Mask values whose key contains a sensitive fragment, in nested dicts/lists.

    Args:
        data: Parsed JSON-like value
        sensitive_keys: Key fragments to mask (default: SENSITIVE_KEYS)
    """
    keys = SENSITIVE_KEYS if sensitive_keys is None else sensitive_keys

    if isinstance(data, list):
        return [filter_sensitive_data(item, keys) for item in data]
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        lowered = str(key).lower()
        if any(fragment in lowered for fragment in keys):
            filtered[key] = FILTERED
        else:
            filtered[key] = filter_sensitive_data(value, keys)
    return filtered


def truncate_large_data(data: str, max_length: int = 5000) -> str:
    """Cut long strings so a single record cannot flood the log."""
    if len(data) <= max_length:
        return data
    return f"{data[:max_length]}... (truncated, total length: {len(data)})"
