"""
Structured Logging Module

Provides JSON-based structured logging for the rating engine.
Every record carries the request id and the symbol being rated, when set.
"""

import logging
import sys
import traceback
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Any, Iterator, Optional
from contextvars import ContextVar
from pathlib import Path
import os

from pythonjsonlogger import jsonlogger


# Context variables for request tracing
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
symbol_var: ContextVar[Optional[str]] = ContextVar('symbol', default=None)

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
JSON_FORMAT = '%(timestamp)s %(level)s %(service_name)s %(logger)s %(message)s'


class ContextFilter(logging.Filter):
    """Filter that adds contextual information to log records"""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context variables to the log record"""
        # Values passed explicitly through extra= take precedence
        if getattr(record, 'request_id', None) is None:
            record.request_id = request_id_var.get()
        if getattr(record, 'symbol', None) is None:
            record.symbol = symbol_var.get()
        record.service_name = os.getenv('SERVICE_NAME', 'rating_engine')
        record.environment = os.getenv('ENVIRONMENT', 'development')
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        """Add custom fields to the log record"""
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['file'] = f"{record.filename}:{record.lineno}"
        log_record['function'] = record.funcName

        # Context from ContextFilter
        if getattr(record, 'request_id', None):
            log_record['request_id'] = record.request_id

        if getattr(record, 'symbol', None):
            log_record['symbol'] = record.symbol

        if hasattr(record, 'service_name'):
            log_record['service_name'] = record.service_name

        if hasattr(record, 'environment'):
            log_record['environment'] = record.environment

        if record.exc_info:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return CustomJsonFormatter(JSON_FORMAT)
    return logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')


class StructuredLogger:
    """
    Structured logger with JSON output and contextual information

    Usage:
        logger = StructuredLogger.get_logger("rating_engine")
        with StructuredLogger.symbol_context("AAPL"):
            logger.info("Rating computed", extra={"score": 0.71, "stars": 3.6})
    """

    _loggers: Dict[str, logging.Logger] = {}

    @classmethod
    def get_logger(
        cls,
        name: str,
        level: int = logging.INFO,
        log_file: Optional[Path] = None,
        json_format: bool = True
    ) -> logging.Logger:
        """
        Get or create a structured logger

        Handlers are attached once per name; later calls return the cached
        logger unchanged. An empty name configures the root logger so that
        module loggers propagate into it.

        Args:
            name: Logger name (typically service name)
            level: Logging level (default: INFO)
            log_file: Optional file path for file logging
            json_format: Use JSON format (default: True)

        Returns:
            Configured logger instance
        """
        if name in cls._loggers:
            return cls._loggers[name]

        logger = logging.getLogger(name or None)
        logger.setLevel(level)

        # Drop only handlers installed by a previous configuration
        for handler in list(logger.handlers):
            if getattr(handler, '_structured', False):
                logger.removeHandler(handler)

        formatter = _build_formatter(json_format)
        context_filter = ContextFilter()

        # Logs go to stderr; stdout is reserved for command output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(context_filter)
        console_handler._structured = True
        logger.addHandler(console_handler)

        if log_file:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(context_filter)
            file_handler._structured = True
            logger.addHandler(file_handler)

        cls._loggers[name] = logger
        return logger

    @classmethod
    def set_context(
        cls,
        request_id: Optional[str] = None,
        symbol: Optional[str] = None
    ):
        """Set context variables for request tracing"""
        if request_id:
            request_id_var.set(request_id)
        if symbol:
            symbol_var.set(symbol)

    @classmethod
    def clear_context(cls):
        """Clear context variables"""
        request_id_var.set(None)
        symbol_var.set(None)

    @classmethod
    @contextmanager
    def symbol_context(cls, symbol: str) -> Iterator[None]:
        """Tag every record logged inside the block with `symbol`."""
        token = symbol_var.set(symbol)
        try:
            yield
        finally:
            symbol_var.reset(token)

    @classmethod
    def reset(cls):
        """Forget cached loggers so the next call reconfigures them."""
        cls._loggers.clear()


def get_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    json_format: bool = True
) -> logging.Logger:
    """
    Convenience function to get a structured logger

    Args:
        name: Logger name (typically service name)
        level: Logging level (default: INFO)
        log_file: Optional file path for file logging
        json_format: Use JSON format (default: True)

    Returns:
        Configured logger instance
    """
    return StructuredLogger.get_logger(name, level, log_file, json_format)


def setup_service_logger(
    service_name: str,
    level: str = "INFO",
    log_file: Optional[Path] = None,
    json_format: bool = True
) -> logging.Logger:
    """
    Set up logging for a service with standard configuration

    The root logger receives the handlers so records from every module
    (services.*, shared.*) are formatted the same way.

    Args:
        service_name: Name of the service
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        json_format: Use JSON format

    Returns:
        Logger named after the service

    Example:
        logger = setup_service_logger("rating_engine", level="INFO", json_format=False)
    """
    os.environ['SERVICE_NAME'] = service_name

    log_level = getattr(logging, level.upper(), logging.INFO)
    get_logger("", log_level, log_file, json_format)
    return logging.getLogger(service_name)


# Convenience functions for common log patterns

def log_performance(logger: logging.Logger, operation: str, duration_ms: float, **kwargs):
    """Log performance metrics"""
    logger.info(
        f"Performance: {operation}",
        extra={
            "operation": operation,
            "duration_ms": duration_ms,
            "metric_type": "performance",
            **kwargs
        }
    )


def log_error(logger: logging.Logger, error: Exception, context: Optional[Dict[str, Any]] = None):
    """Log errors with full context"""
    extra = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "metric_type": "error"
    }

    if context:
        extra.update(context)

    logger.error(
        f"Error occurred: {str(error)}",
        exc_info=True,
        extra=extra
    )
