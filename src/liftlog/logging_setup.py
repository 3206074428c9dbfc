"""Logging configuration.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
:func:`setup_logging` once at startup.
"""

import logging
import logging.handlers
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    log_level: str = "WARNING",
    log_file: Path | None = None,
    max_bytes: int = 2_000_000,
    backup_count: int = 3,
) -> None:
    """Configure the ``liftlog`` logger.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ...)
        log_file: Optional path for a rotating log file
        max_bytes: Rotation size for the log file
        backup_count: Number of rotated files to keep
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    logger = logging.getLogger("liftlog")
    logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=str(log_file),
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # httpx logs every request at INFO
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
