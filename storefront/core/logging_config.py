"""
logging_config.py: centralized logging configuration for the storefront.

All modules log through loggers obtained from `get_logger(__name__)` so that
format and level are controlled in one place.
"""

import logging
import sys
from typing import Optional

from storefront.core.config import settings


def setup_logging(level: Optional[str] = None):
    """
    Configures the root logger for the application.

    - Level: settings.LOG_LEVEL unless overridden
    - Format: timestamp, level, process ID, logger name and message
    - Output: stdout (Docker/Kubernetes compatible)
    - Reduced verbosity for chatty third-party loggers
    """
    log_format = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(name)s - %(message)s'

    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name):
    """Returns a logger for the given module name."""
    return logging.getLogger(name)
