"""
Error handling helpers
Exception logging context manager and safe conversions for command input
"""

import logging

logger = logging.getLogger(__name__)


def safe_int(value, default=0):
    """
    Safely convert value to integer with fallback

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        int: Converted value or default
    """
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


class log_exceptions:
    """
    Context manager that logs exceptions with custom context

    Usage:
        with log_exceptions("loading giveaway state", path="state.json"):
            store.load()
    """
    def __init__(self, operation, **context):
        self.operation = operation
        self.context = context

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and issubclass(exc_type, Exception):
            context_str = ', '.join(f"{k}={v}" for k, v in self.context.items())
            logger.error(f"Error during {self.operation} [{context_str}]: {exc_val}", exc_info=(exc_type, exc_val, exc_tb))
        return False  # Don't suppress exception
