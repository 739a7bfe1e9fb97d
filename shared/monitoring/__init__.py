"""
Monitoring Module

Structured logging for the rating engine:
- JSON or text output
- Request id and symbol context on every record
- Helpers for performance and error records
"""

from .structured_logger import (
    StructuredLogger,
    get_logger,
    setup_service_logger,
    log_performance,
    log_error,
)

__all__ = [
    "StructuredLogger",
    "get_logger",
    "setup_service_logger",
    "log_performance",
    "log_error",
]
