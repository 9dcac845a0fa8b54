"""
Centralized Logging Configuration for Dependency Management
===========================================================

Provides unified logging across the resolver, container and POM configurer
with either human-readable or structured JSON output.

Features:
- Structured JSON logging with metadata
- Component loggers under the ``dependency_management`` hierarchy
- Timed operation logging
"""
import json
import logging
import os
import sys
import threading
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "dependency_management"


class StructuredFormatter(logging.Formatter):
    """Formatter producing one JSON document per record."""

    def __init__(self):
        super().__init__()
        self.hostname = os.environ.get('HOSTNAME', 'localhost')
        self.format_count = 0
        self._lock = threading.RLock()

    def format(self, record):
        with self._lock:
            self.format_count += 1
            sequence = self.format_count

        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'hostname': self.hostname,
            'process_id': os.getpid(),
            'log_sequence': sequence,
        }

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        extra_fields = getattr(record, 'extra_fields', None)
        if isinstance(extra_fields, dict):
            for key, value in extra_fields.items():
                try:
                    json.dumps(value)
                    log_entry[key] = value
                except (TypeError, ValueError):
                    log_entry[key] = str(value)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ComponentLogger:
    """Logger wrapper that attaches the component name and extra fields to every record."""

    def __init__(self, component_name: str):
        self.component_name = component_name
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}")

    def _log(self, level: int, message: str, **extra):
        if not self.logger.isEnabledFor(level):
            return
        fields = {'component': self.component_name, **extra}
        self.logger.log(level, message, extra={'extra_fields': fields})

    def debug(self, message: str, **extra):
        self._log(logging.DEBUG, message, **extra)

    def info(self, message: str, **extra):
        self._log(logging.INFO, message, **extra)

    def warning(self, message: str, **extra):
        self._log(logging.WARNING, message, **extra)

    def error(self, message: str, **extra):
        self._log(logging.ERROR, message, **extra)


_component_loggers: Dict[str, ComponentLogger] = {}
_registry_lock = threading.Lock()


def setup_logging(log_level: str = "INFO", json_output: bool = False, stream=None) -> logging.Logger:
    """
    Setup logging for the ``dependency_management`` logger hierarchy.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_output: Emit structured JSON records instead of plain text
        stream: Output stream, defaults to stderr so generated POMs can go to stdout

    Returns:
        The configured root logger of the hierarchy
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(getattr(logging, log_level.upper()))
    if json_output:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)8s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
    root_logger.addHandler(handler)
    root_logger.propagate = False

    return root_logger


def get_logger(component: str) -> ComponentLogger:
    """Get or create the logger for a component."""
    with _registry_lock:
        if component not in _component_loggers:
            _component_loggers[component] = ComponentLogger(component)
        return _component_loggers[component]


def log_performance(component: str, operation: str, duration: float, **metadata):
    """Log a timed operation."""
    logger = get_logger(component)
    logger.debug(
        f"{operation} completed in {duration * 1000:.2f}ms",
        operation=operation,
        duration_ms=duration * 1000,
        **metadata
    )


@contextmanager
def timed_operation(component: str, operation: str, **metadata):
    """Context manager that logs the duration of the wrapped block."""
    start_time = time.perf_counter()
    try:
        yield
    finally:
        log_performance(component, operation, time.perf_counter() - start_time, **metadata)


def log_error_with_context(component: str, error: Exception, context: Optional[Dict[str, Any]] = None):
    """Log an error together with its serialized details."""
    logger = get_logger(component)
    details: Dict[str, Any] = {'error_type': type(error).__name__}
    to_dict = getattr(error, 'to_dict', None)
    if callable(to_dict):
        details['error'] = to_dict()
    if context:
        details.update(context)
    logger.error(str(error), **details)
