import logging
import os
import sys

# Output goes to stderr only; nothing is written to disk.

LEVEL_ENV = "CUTOUT_VIEWER_LOG_LEVEL"
CATS_ENV = "CUTOUT_VIEWER_LOG_CATS"

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class _CategoryFilter(logging.Filter):
    """Pass only records whose last logger-name segment is in ``allowed``."""

    def __init__(self, allowed: set[str]) -> None:
        super().__init__()
        self.allowed = allowed

    def filter(self, record: logging.LogRecord) -> bool:
        # record.name like: cutout_viewer.transform, cutout_viewer.backend
        return (record.name or "").rsplit(".", 1)[-1] in self.allowed


def _stderr_handler(logger: logging.Logger) -> logging.StreamHandler:
    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr:
            return h
    handler = logging.StreamHandler(stream=sys.stderr)
    logger.addHandler(handler)
    return handler


def setup_logger(level: int = logging.INFO, name: str = "cutout_viewer") -> logging.Logger:
    """Create or update the project logger.

    Env overrides (CUTOUT_VIEWER_LOG_LEVEL, CUTOUT_VIEWER_LOG_CATS) are read on
    every call, so options parsed late on the command line still apply. The base
    logger keeps exactly one stderr handler whose formatter and category filter
    are refreshed in place.
    """
    logger = logging.getLogger(name)

    env_level = (os.getenv(LEVEL_ENV) or "").strip().lower()
    logger.setLevel(LEVELS.get(env_level, level))

    handler = _stderr_handler(logger)
    handler.setFormatter(logging.Formatter(fmt="[%(asctime)s] %(levelname)s: %(message)s", datefmt="%H:%M:%S"))

    handler.filters.clear()
    cats = {c.strip() for c in (os.getenv(CATS_ENV) or "").split(",") if c.strip()}
    if cats:
        handler.addFilter(_CategoryFilter(cats))

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
