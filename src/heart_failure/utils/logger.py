import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_NAME = "heart_failure"


def set_level(level: int | str) -> None:
    """Set the level shared by every pipeline logger."""
    logging.getLogger(ROOT_NAME).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a timestamped console logger namespaced under ``heart_failure``."""
    root = logging.getLogger(ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return logging.getLogger(f"{ROOT_NAME}.{name}")
