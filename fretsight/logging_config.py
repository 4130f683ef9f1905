"""Centralized logging configuration for fretsight.

Every module logs through ``fretsight.logger.get_logger(__name__)``; this module
decides levels and where the output goes.
"""

import logging
import sys
from typing import Optional

# Log levels for different modules
MODULE_LOG_LEVELS = {
    # Core modules
    "fretsight": logging.INFO,
    "fretsight.core": logging.INFO,
    "fretsight.core.state": logging.INFO,
    "fretsight.core.storage": logging.INFO,
    "fretsight.core.config": logging.INFO,
    "fretsight.core.scheduler": logging.INFO,
    "fretsight.core.factory": logging.INFO,
    "fretsight.core.events": logging.WARNING,
    # Fusion components
    "fretsight.resolver": logging.INFO,  # Set to DEBUG to trace every resolution
    "fretsight.calibration": logging.INFO,
    "fretsight.hand_tracking": logging.INFO,
    # Sensor pipelines, noisy at DEBUG since they run every frame
    "fretsight.audio": logging.INFO,
    "fretsight.vision": logging.INFO,
    "fretsight.cli": logging.INFO,
    # Libraries/third-party
    "aubio": logging.ERROR,
    "mediapipe": logging.ERROR,
    "absl": logging.ERROR,
    # Root logger
    "": logging.ERROR,
}

# Shared console handler
_console_handler: Optional[logging.Handler] = None


def setup_logging(level: Optional[str] = None) -> None:
    """Set up logging configuration for the application.

    Args:
        level: If provided, override all 'fretsight' log levels with this level (e.g., "DEBUG").
    """
    global _console_handler

    if _console_handler is None:
        _console_handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        _console_handler.setFormatter(formatter)

    log_levels = MODULE_LOG_LEVELS.copy()
    if level:
        numeric_level = logging.getLevelName(level.upper())
        if isinstance(numeric_level, int):
            for module_name in log_levels:
                if module_name.startswith("fretsight"):
                    log_levels[module_name] = numeric_level
        else:
            logging.getLogger(__name__).error(f"Invalid log level: {level}")

    # Module loggers propagate to the root logger, which owns the shared handler
    for module_name, module_level in log_levels.items():
        logger = logging.getLogger(module_name)
        logger.setLevel(module_level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.propagate = True

    logging.getLogger().addHandler(_console_handler)

    logging.getLogger("fretsight").debug("Logging configuration complete")
