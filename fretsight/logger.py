"""Cached logger lookup shared by every fretsight module."""
import logging
from typing import Dict

# Module-level cache for loggers
_logger_cache: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """
    Get a lazily created logger with the given name.

    Levels and handlers are applied later by ``logging_config.setup_logging``,
    so importing a module never configures logging on its own.

    Args:
        name: The full module name (e.g., 'fretsight.resolver')

    Returns:
        A logger instance
    """
    if name not in _logger_cache:
        _logger_cache[name] = logging.getLogger(name)
    return _logger_cache[name]
