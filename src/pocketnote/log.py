"""Application logging setup."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from pocketnote.config import get_log_path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    config: dict[str, Any] | None = None,
    log_path: Path | None = None,
    stream: bool = False,
) -> logging.Logger:
    """
    Configure the ``pocketnote`` logger once per process.

    Logs go to a rotating file in the data directory. The CLI keeps stdout
    clean; long-running processes (the bot) also pass ``stream=True``.
    """
    logger = logging.getLogger("pocketnote")
    if logger.handlers:
        return logger

    level_name = (config or {}).get("logging", {}).get("level", "INFO")
    logger.setLevel(getattr(logging, str(level_name).upper(), logging.INFO))

    formatter = logging.Formatter(LOG_FORMAT)

    log_path = log_path or get_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=1_048_576,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    if stream:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    return logger
