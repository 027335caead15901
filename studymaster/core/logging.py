"""
Logging configuration shared by the Streamlit client and the schema script.
"""

import logging
import sys
from typing import Optional

from studymaster.core.config import settings


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger with a timestamped console handler."""
    root_logger = logging.getLogger()
    # Streamlit reruns the script on every interaction; avoid stacking handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger.setLevel(level or settings.LOG_LEVEL)
    root_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
