"""Console logging setup shared by the API process."""
import logging
import sys

from app.core.config import settings

_configured = False


def configure_logging(level: str = None) -> None:
    """Install a single console handler on the root logger. Idempotent."""
    global _configured
    if _configured:
        return
    _configured = True

    log_level = (level or settings.LOG_LEVEL).upper()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    root.addHandler(handler)
