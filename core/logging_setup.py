"""
Daily logs via TimedRotatingFileHandler (midnight) plus console.
Log: reachability transitions (OFFLINE->ONLINE, ONLINE->OFFLINE), probe results,
notification failures, app and monitor start/stop, config problems.
"""
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.config import get_config_dir

LOG_FILE_NAME = "portwatch.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(threadName)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
BACKUP_DAYS = 30

# Marks handlers installed here so a second setup replaces only its own.
_OWNED = "_portwatch_handler"


def get_log_file(log_path: str | None = None) -> Path:
    """log_path is a directory; defaults to <config dir>/logs."""
    log_dir = Path(log_path) if log_path else get_config_dir() / "logs"
    return log_dir / LOG_FILE_NAME


def _own(handler: logging.Handler, level: int, fmt: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(fmt)
    setattr(handler, _OWNED, True)
    return handler


def setup_logging(log_path: str | None = None, verbose: bool = False) -> logging.Logger:
    """
    Route everything to a daily file at DEBUG and to stdout at INFO (DEBUG when verbose).
    asyncio's own chatter is kept at WARNING. Returns the 'portwatch' logger.
    """
    log_file = get_log_file(log_path)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    teardown_logging()
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    fmt = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    root.addHandler(_own(
        TimedRotatingFileHandler(log_file, when="midnight", backupCount=BACKUP_DAYS, encoding="utf-8"),
        logging.DEBUG,
        fmt,
    ))
    root.addHandler(_own(logging.StreamHandler(sys.stdout), logging.DEBUG if verbose else logging.INFO, fmt))

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logger = logging.getLogger("portwatch")
    logger.setLevel(logging.DEBUG)
    logger.debug("Logging to %s", log_file)
    return logger


def teardown_logging() -> None:
    """Close and detach the handlers installed by setup_logging."""
    root = logging.getLogger()
    for h in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(h)
        h.close()
