"""
Logging configuration for the user service.
"""
import logging
import os
import sys

from ..config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(log_dir: str = None, level: str = None) -> None:
    """
    Configure stdout and file logging for the service.

    Args:
        log_dir: Directory for the service log file (defaults to LOG_DIR)
        level: Log level name (defaults to LOG_LEVEL)
    """
    log_dir = log_dir or settings.LOG_DIR
    level = (level or settings.LOG_LEVEL).upper()

    handlers = [logging.StreamHandler(sys.stdout)]

    # Try to add file handler, but continue without it if directory creation fails
    try:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(log_dir, f"{settings.SERVICE_NAME}.log")))
    except (OSError, PermissionError) as e:
        print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )
