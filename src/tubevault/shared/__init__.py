"""Shared utilities package."""

from tubevault.shared.logging import setup_logger, get_logger, LoggerAdapter
from tubevault.shared.retry import retry_with_backoff, RetryStrategy
from tubevault.shared.metrics import MetricsCollector

__all__ = [
    "setup_logger",
    "get_logger",
    "LoggerAdapter",
    "retry_with_backoff",
    "RetryStrategy",
    "MetricsCollector",
]
