"""
Logging setup shared by the API process and the seed script.

Modules log through ``logging.getLogger(__name__)``; passwords and
tokens are never logged.
"""
import logging
import sys
from typing import Optional

from brokerage.core.config import settings

# request lines and SQL echo, raised to WARNING unless running at DEBUG
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "passlib")


def configure_logging(level: Optional[str] = None) -> int:
    """
    Route every log record to stdout at ``level`` (default: settings.log_level).

    Returns:
        The numeric level that was applied

    Raises:
        ValueError: If ``level`` is not a logging level name
    """
    name = (level or settings.log_level).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {name}")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric)

    noisy_level = logging.NOTSET if numeric <= logging.DEBUG else logging.WARNING
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(noisy_level)
    return numeric
