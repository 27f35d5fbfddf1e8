"""Logger setup for the catalog CLI and ingestion runs.

``setup_logger("src")`` is called once by the entry point. Module
loggers (``logging.getLogger(__name__)``) under ``src`` then share its
console handler and its dated log file.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.settings import settings

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOG_DATE_FORMAT = "%H:%M:%S"
_LOGGERS_CACHE: dict[str, logging.Logger] = {}


def setup_logger(
    name: str,
    level: int | str | None = None,
    log_dir: Path | None = None,
) -> logging.Logger:
    """Attach console and file handlers to the ``name`` logger.

    Repeated calls with the same name return the already configured
    logger untouched.

    Args:
        name: Logger name, usually a package root such as 'src'.
        level: Numeric level or level name; LOG_LEVEL when omitted.
        log_dir: Log file directory; LOG_DIR when omitted.

    Returns:
        The configured logger.
    """
    cached = _LOGGERS_CACHE.get(name)
    if cached is not None:
        return cached

    numeric_level = _resolve_level(level)
    formatter = logging.Formatter(_LOG_FORMAT, _LOG_DATE_FORMAT)

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.handlers.clear()
    logger.propagate = False
    logger.addHandler(_create_console_handler(formatter, numeric_level))

    file_handler = _create_file_handler(name, formatter, numeric_level, log_dir)
    if file_handler is not None:
        logger.addHandler(file_handler)

    _LOGGERS_CACHE[name] = logger
    return logger


def _resolve_level(level: int | str | None) -> int:
    """Numeric level; unknown names degrade to INFO."""
    if level is None:
        level = settings.logging.level
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _create_console_handler(formatter: logging.Formatter, level: int) -> logging.StreamHandler:
    # stdout is reserved for CLI results
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _create_file_handler(
    name: str,
    formatter: logging.Formatter,
    level: int,
    log_dir: Path | None,
) -> logging.FileHandler | None:
    """Open the dated log file, or return None when it cannot be written."""
    try:
        handler = logging.FileHandler(_get_log_file_path(name, log_dir), encoding="utf-8")
    except OSError as e:
        print(f"Warning: logging to console only, cannot open log file: {e}", file=sys.stderr)
        return None
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _get_log_file_path(name: str, log_dir: Path | None) -> Path:
    """``<log_dir>/<name>_<YYYYMMDD>.log`` with dots in ``name`` replaced."""
    directory = log_dir if log_dir is not None else Path(settings.logging.log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stem = name.replace(".", "_").replace("/", "_")
    return directory / f"{stem}_{datetime.now():%Y%m%d}.log"
