import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.core.config import settings

LOG_FILE_NAME = "ims_api.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers and the level they run at when LOG_LEVEL is above DEBUG
NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiomysql": logging.WARNING,
    "multipart": logging.WARNING,
    "matplotlib": logging.WARNING,
    "PIL": logging.WARNING,
}

# Uvicorn installs its own handlers; records must not reach ours a second time
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

# Per-request schema checks and pool messages, shown only at DEBUG
CHATTY_APP_LOGGERS = ("app.db.connection", "app.db.schema_prober")

log_dir = Path(settings.LOG_DIR)
log_dir.mkdir(parents=True, exist_ok=True)


def _build_handlers(level: int):
    formatter = logging.Formatter(LOG_FORMAT)

    stream = logging.StreamHandler(sys.stdout)
    rotating = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
    )
    for handler in (stream, rotating):
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return stream, rotating


def setup_logging():
    """Route all application logging to stdout and a rotating file under LOG_DIR.

    Safe to call more than once: existing root handlers are replaced.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    debug = level <= logging.DEBUG

    root = logging.getLogger()
    root.setLevel(level)
    for old_handler in list(root.handlers):
        root.removeHandler(old_handler)
    for handler in _build_handlers(level):
        root.addHandler(handler)

    for name, quiet_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(logging.INFO if debug and name == "httpx" else quiet_level)

    for name in UVICORN_LOGGERS:
        uvicorn_log = logging.getLogger(name)
        uvicorn_log.setLevel(level)
        uvicorn_log.propagate = False

    logging.getLogger("app").setLevel(level)
    for name in CHATTY_APP_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.INFO)

    return root
