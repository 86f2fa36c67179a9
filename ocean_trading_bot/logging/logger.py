"""
Structured logging with rotation and secret redaction.

Every handler installed by ``LoggerManager`` carries a
``SecretRedactingFilter`` so registered secrets (the signing key) never
reach a log file or the console, whatever module logged them.
"""

import json
import logging
import logging.handlers
import sys
import threading
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Set


REDACTED = "[REDACTED]"

# Shorter values are not registered
MIN_SECRET_LENGTH = 16

_STANDARD_RECORD_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage',
    'exc_info', 'exc_text', 'stack_info', 'taskName', 'message',
])

_secrets: Set[str] = set()
_secrets_lock = threading.Lock()


def register_secret(secret: str) -> None:
    """
    Register a value that must never appear in log output.

    Hex secrets are registered with and without their ``0x`` prefix and in
    both letter cases.
    """
    if not secret or len(secret) < MIN_SECRET_LENGTH:
        return

    bare = secret[2:] if secret[:2] in ('0x', '0X') else secret
    variants = {secret, bare, bare.lower(), bare.upper()}
    with _secrets_lock:
        _secrets.update(v for v in variants if len(v) >= MIN_SECRET_LENGTH)


def clear_secrets() -> None:
    with _secrets_lock:
        _secrets.clear()


def redact(text: str) -> str:
    """Replace every registered secret in ``text``."""
    with _secrets_lock:
        secrets = sorted(_secrets, key=len, reverse=True)
    for secret in secrets:
        if secret in text:
            text = text.replace(secret, REDACTED)
    return text


def _scrub(value: Any) -> Any:
    """Return ``value`` with secrets redacted, or the same object if none occur."""
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return redact(value)
    if isinstance(value, dict):
        pairs = [(k, v, _scrub(k), _scrub(v)) for k, v in value.items()]
        if all(new_k is k and new_v is v for k, v, new_k, new_v in pairs):
            return value
        return {new_k: new_v for _, _, new_k, new_v in pairs}
    if isinstance(value, (list, tuple)):
        items = [_scrub(v) for v in value]
        if all(new is old for new, old in zip(items, value)):
            return value
        return items if isinstance(value, list) else tuple(items)

    text = str(value)
    scrubbed = redact(text)
    return value if scrubbed == text else scrubbed


class SecretRedactingFilter(logging.Filter):
    """Scrubs registered secrets from the message and extra fields of a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not _secrets:
            return True

        try:
            message = record.getMessage()
        except Exception:
            # Left for the handler to report through handleError
            return True

        scrubbed = redact(message)
        if scrubbed != message:
            record.msg = scrubbed
            record.args = ()

        for key, value in list(record.__dict__.items()):
            if key in _STANDARD_RECORD_ATTRS:
                continue
            scrubbed_value = _scrub(value)
            if scrubbed_value is not value:
                record.__dict__[key] = scrubbed_value

        if record.exc_info and record.exc_info[1] is not None:
            trace = ''.join(traceback.format_exception(*record.exc_info))
            scrubbed_trace = redact(trace)
            if scrubbed_trace != trace:
                record.exc_text = scrubbed_trace
                record.exc_info = None

        return True


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured logging with JSON output."""

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': traceback.format_exception(*record.exc_info)
            }
        elif record.exc_text:
            log_data['exception'] = {'traceback': record.exc_text}

        if self.include_extra:
            extra_fields = {
                k: v for k, v in record.__dict__.items()
                if k not in _STANDARD_RECORD_ATTRS
            }
            if extra_fields:
                log_data['extra'] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


class LoggerManager:
    """
    Centralized logging manager.

    Installs rotating file handlers (all records and errors only) plus an
    optional console handler on the root logger, each with the redaction
    filter attached.
    """

    def __init__(self,
                 log_dir: str = "logs",
                 log_level: str = "INFO",
                 max_file_size: int = 10 * 1024 * 1024,  # 10MB
                 backup_count: int = 30,
                 console_output: bool = True,
                 structured_format: bool = True):
        """
        Initialize logging manager.

        Args:
            log_dir: Directory for log files
            log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            max_file_size: Maximum size per log file in bytes
            backup_count: Number of rotated files to keep
            console_output: Whether to output logs to console
            structured_format: Whether to use structured JSON format
        """
        self.log_dir = Path(log_dir)
        self.log_level = getattr(logging, log_level.upper())
        self.max_file_size = max_file_size
        self.backup_count = backup_count
        self.console_output = console_output
        self.structured_format = structured_format
        self.redaction_filter = SecretRedactingFilter()

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._setup_logging()

        self._loggers: Dict[str, logging.Logger] = {}

        self.logger = self.get_logger(__name__)
        self.logger.info("LoggerManager initialized", extra={
            'log_dir': str(self.log_dir),
            'log_level': log_level,
            'max_file_size': max_file_size,
            'backup_count': backup_count
        })

    def _setup_logging(self) -> None:
        """Setup logging configuration with handlers and formatters."""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(self.log_level)

        if self.structured_format:
            formatter: logging.Formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

        file_handler = logging.handlers.RotatingFileHandler(
            filename=self.log_dir / "ocean_trading_bot.log",
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(self.log_level)

        error_handler = logging.handlers.RotatingFileHandler(
            filename=self.log_dir / "errors.log",
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)

        handlers = [file_handler, error_handler]
        if self.console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(self.log_level)
            handlers.append(console_handler)

        for handler in handlers:
            handler.setFormatter(formatter)
            handler.addFilter(self.redaction_filter)
            root_logger.addHandler(handler)

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get or create a logger instance.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Configured logger instance
        """
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]

    def shutdown(self) -> None:
        """Detach and close the handlers installed by this manager."""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            if self.redaction_filter in handler.filters:
                root_logger.removeHandler(handler)
                handler.close()


# Global logger manager instance
_logger_manager: Optional[LoggerManager] = None


def initialize_logging(log_dir: str = "logs",
                       log_level: str = "INFO",
                       **kwargs) -> LoggerManager:
    """
    Initialize global logging system.

    Args:
        log_dir: Directory for log files
        log_level: Minimum log level
        **kwargs: Additional LoggerManager arguments

    Returns:
        LoggerManager instance
    """
    global _logger_manager
    if _logger_manager is not None:
        _logger_manager.shutdown()
    _logger_manager = LoggerManager(log_dir=log_dir, log_level=log_level, **kwargs)
    return _logger_manager

