import logging
import sys
from typing import IO, Optional

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int = logging.INFO, stream: Optional[IO[str]] = None) -> logging.Logger:
    """
    Configures the ``parapix`` logger with a single stream handler.

    Calling it again only updates the level, so the CLI and tests can both
    call it without stacking handlers.
    """
    logger = logging.getLogger("parapix")
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Sub-logger under ``parapix``; module ``__name__`` values pass through.
    """
    if not name:
        return logging.getLogger("parapix")
    if name == "parapix" or name.startswith("parapix."):
        return logging.getLogger(name)
    return logging.getLogger(f"parapix.{name}")
