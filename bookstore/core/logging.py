"""Process-wide logging setup."""

import logging

from bookstore.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def configure_logging(level: str | None = None) -> None:
    """Apply basicConfig from LOG_LEVEL. Safe to call more than once."""
    logging.basicConfig(
        level=getattr(logging, level or settings.LOG_LEVEL),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
