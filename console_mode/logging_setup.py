from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import AppConfig


def setup_logging(config: AppConfig, verbose: bool = False) -> None:
    """Configure rotating file logging with console fallback.

    Attempts to write to `console-mode.log` under the configured log directory.
    If that fails, falls back to stderr-only logging to ensure visibility.
    """

    level = logging.DEBUG if verbose else logging.INFO
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler first so early failures are visible
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level if verbose else logging.WARNING)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    log_file: Path = config.logs_dir / "console-mode.log"
    try:
        config.ensure_log_dir()
        file_handler = RotatingFileHandler(str(log_file), maxBytes=2_000_000, backupCount=3)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logging.getLogger(__name__).debug("File logging enabled at %s", log_file)
    except OSError as exc:
        logging.getLogger(__name__).warning("File logging unavailable (%s); using console only", exc)
