"""
Logging configuration for the Silicon Friends session client.

This module provides:
- Console output with colored level names and the session handle
- Optional rotating file output with JSON structured records
- A filter stamping every record with the session handle and asyncio task
- A LoggerAdapter that attaches per-call context to records
- Redaction of credentials before request bodies reach the logs
"""

import asyncio
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Transport libraries that are chatty below WARNING
QUIET_LOGGERS = ("httpx", "httpcore", "socketio", "engineio", "aiohttp")

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(session_tag)s%(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(agent_id)s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SessionContextFilter(logging.Filter):
    """
    Stamp records with `agent_id`, `session_tag` and `task`.

    Applies to every logger under the handler, including the REST client and
    the realtime channel, which log through plain module loggers.
    """

    def __init__(self, agent_id: Optional[str] = None):
        super().__init__()
        self.agent_id = agent_id

    def filter(self, record: logging.LogRecord) -> bool:
        fields = getattr(record, "extra_fields", {})
        agent_id = fields.get("agent_id", self.agent_id)
        record.agent_id = agent_id or "-"
        record.session_tag = f"@{agent_id} " if agent_id else ""
        record.task = _current_task_name()
        return True


def _current_task_name() -> Optional[str]:
    try:
        task = asyncio.current_task()
    except RuntimeError:
        return None
    return task.get_name() if task else None


class ColoredFormatter(logging.Formatter):
    """Console formatter with colored level names."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        # Copy so other handlers still see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname:8s}{self.RESET}"
        if not hasattr(colored, "session_tag"):
            colored.session_tag = ""
        return super().format(colored)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with session context at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "location": f"{record.funcName}:{record.lineno}",
            "message": record.getMessage(),
        }

        agent_id = getattr(record, "agent_id", None)
        if agent_id and agent_id != "-":
            log_data["agent_id"] = agent_id
        task = getattr(record, "task", None)
        if task:
            log_data["task"] = task

        context = getattr(record, "extra_fields", None)
        if context:
            log_data.update(filter_sensitive_data(context))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def _console_handler(level: int, context: SessionContextFilter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(context)
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(config: Any, level: int, context: SessionContextFilter) -> logging.Handler:
    log_path = Path(config.log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # 10MB per file, 5 backups
    handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.addFilter(context)
    if config.log_json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(config: Any) -> None:
    """
    Configure the root logger for a session process.

    Args:
        config: SiliconFriendsSettings; the log_* fields pick the outputs and
            the credentials' agent_id becomes the default session context
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    credentials = getattr(config, "credentials", None)
    context = SessionContextFilter(getattr(credentials, "agent_id", None))

    if config.log_console_enabled:
        root_logger.addHandler(_console_handler(log_level, context))
    if config.log_file_enabled:
        root_logger.addHandler(_file_handler(config, log_level, context))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(
        f"Logging initialized: level={config.log_level.upper()}, "
        f"console={config.log_console_enabled}, "
        f"file={config.log_file_enabled}, "
        f"agent={context.agent_id}"
    )


class LoggerAdapter(logging.LoggerAdapter):
    """
    Attach context fields to every record logged through the adapter.

    Usage:
        logger = LoggerAdapter(logging.getLogger(__name__), {"agent_id": "alice"})
        logger.info("Session ready", extra={"extra_fields": {"conversation_id": "c-1"}})
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.setdefault('extra', {})
        extra['extra_fields'] = {**self.extra, **extra.get('extra_fields', {})}
        return msg, kwargs


def filter_sensitive_data(data: Any, sensitive_keys: Optional[list] = None) -> Any:
    """
    Mask credentials in data before it is logged.

    Args:
        data: Data to filter (dict, list, or primitive)
        sensitive_keys: Key fragments to mask (default: password, token, secret,
            authorization, api key)

    Returns:
        Filtered data with sensitive values replaced by "***FILTERED***"
    """
    if sensitive_keys is None:
        sensitive_keys = ['password', 'token', 'secret', 'authorization', 'apikey', 'api_key', 'api-key']

    if isinstance(data, dict):
        return {
            key: "***FILTERED***" if any(sensitive in key.lower() for sensitive in sensitive_keys)
            else filter_sensitive_data(value, sensitive_keys)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [filter_sensitive_data(item, sensitive_keys) for item in data]
    else:
        return data


def truncate_large_data(data: str, max_length: int = 2000) -> str:
    """Truncate long strings so response bodies don't flood the logs."""
    if len(data) <= max_length:
        return data
    return data[:max_length] + f"... (truncated, total length: {len(data)})"
