"""Logging setup shared by the API process and the offline scripts."""

import logging

from leave_planner.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s — %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    resolved = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.setLevel(resolved)
