"""
Structured Logging - Monitoring Layer

Standard-library logging for the storage backend, with:
- A caller-supplied request ID and the running storage operation carried
  in context variables and stamped on every record
- Keyword fields attached to individual records
- JSON lines or aligned text output
- One preset per deployment environment

@.architecture
Incoming: data/storage/local.py, scripts/filestore_cli.py, All modules via get_logger() --- {str log_level, str format_type, Optional[Path] log_file, str request_id, str operation}
Processing: configure_logging(), configure_from_preset(), JSONFormatter.format(), ContextFilter.filter(), operation_context(), StructuredLogger._emit() --- {4 jobs: context_injection, formatting, log_configuration, structured_logging}
Outgoing: sys.stderr, Log files, All modules --- {StructuredLogger instances, JSON or text formatted logs, context variables}
"""

import logging
import json
import sys
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

request_id_ctx: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
operation_ctx: ContextVar[Optional[str]] = ContextVar('operation', default=None)

TEXT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-24s | [%(request_id)s:%(operation)s] | %(message)s'
TEXT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def current_context() -> Dict[str, str]:
    """Request ID and operation currently in effect, omitting unset ones."""
    context = {'request_id': request_id_ctx.get(), 'operation': operation_ctx.get()}
    return {key: value for key, value in context.items() if value}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Keys: timestamp (UTC, ``Z`` suffix), level, logger, message, location,
    then request_id/operation when set, ``exception`` when the record carries
    exc_info and ``extra`` for keyword fields.
    """

    def __init__(self, include_traceback: bool = True):
        super().__init__()
        self.include_traceback = include_traceback

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            'timestamp': timestamp.isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }
        payload.update(current_context())

        if record.exc_info and self.include_traceback:
            exc_type, exc_value, exc_tb = record.exc_info
            payload['exception'] = {
                'type': exc_type.__name__,
                'message': str(exc_value),
                'traceback': traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        fields = getattr(record, 'extra_fields', None)
        if fields:
            payload['extra'] = fields

        return json.dumps(payload, default=str)


class ContextFilter(logging.Filter):
    """Copy request_id/operation onto the record ("-" when unset) for TEXT_FORMAT."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = current_context()
        record.request_id = context.get('request_id', '-')
        record.operation = context.get('operation', '-')
        return True


class StructuredLogger:
    """
    Logger facade taking keyword fields.

        logger.info("Deleted file", path="/srv/a.txt")

    stores ``{"path": "/srv/a.txt"}`` on the record as ``extra_fields``.
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def _emit(self, level: int, message: str, fields: Dict[str, Any], exc_info: bool = False) -> None:
        extra = {'extra_fields': fields} if fields else None
        # stacklevel 3 reports the caller of debug()/info()/..., not this wrapper
        self._logger.log(level, message, exc_info=exc_info, extra=extra, stacklevel=3)

    def debug(self, message: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit(logging.ERROR, message, fields)

    def exception(self, message: str, **fields: Any) -> None:
        """ERROR with the active exception's traceback."""
        self._emit(logging.ERROR, message, fields, exc_info=True)


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return JSONFormatter()
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def configure_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_file: Optional[Path] = None,
    enable_console: bool = True,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Replace the root logger's handlers.

    Args:
        level: Root level name (DEBUG ... CRITICAL); unknown names mean INFO
        format_type: "json" or "text"
        log_file: Also append to this file, creating its directory
        enable_console: Write to stderr, leaving stdout to CLI output
        module_levels: Per-logger levels, e.g. {"data.storage": "DEBUG"}
    """
    formatter = _build_formatter(format_type)
    handlers = []

    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    root_logger = logging.getLogger()
    root_logger.setLevel(_level(level))
    root_logger.handlers = []

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(ContextFilter())
        root_logger.addHandler(handler)

    for module_name, module_level in (module_levels or {}).items():
        logging.getLogger(module_name).setLevel(_level(module_level))


def get_logger(name: str) -> StructuredLogger:
    """Structured logger for ``name`` (usually ``__name__``)."""
    return StructuredLogger(name)


def set_request_context(request_id: Optional[str] = None) -> None:
    """
    Tag subsequent records with the caller's request ID.

    Upload handlers call this before invoking storage operations so a
    failure can be traced back to the request that caused it.
    """
    if request_id:
        request_id_ctx.set(request_id)


def clear_request_context() -> None:
    request_id_ctx.set(None)
    operation_ctx.set(None)


@contextmanager
def operation_context(operation: str) -> Iterator[None]:
    """Tag log records emitted inside the block with ``operation``."""
    token = operation_ctx.set(operation)
    try:
        yield
    finally:
        operation_ctx.reset(token)


# Keyed by Settings.environment
LOGGING_PRESETS: Dict[str, Dict[str, Any]] = {
    'development': {'level': 'DEBUG', 'format_type': 'text'},
    'production': {'level': 'INFO', 'format_type': 'json'},
    'test': {'level': 'WARNING', 'format_type': 'text'},
}


def configure_from_preset(preset: str = 'development', **overrides: Any) -> None:
    """
    Configure logging from an environment preset.

    Args:
        preset: 'development', 'production' or 'test'
        **overrides: configure_logging() arguments that win over the preset

    Raises:
        ValueError: If the preset is unknown
    """
    if preset not in LOGGING_PRESETS:
        raise ValueError(f"Unknown preset: {preset}. Available: {list(LOGGING_PRESETS)}")

    configure_logging(**{**LOGGING_PRESETS[preset], **overrides})
