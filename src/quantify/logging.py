"""Logger factory shared by every quantify module.

Loggers live under the ``quantify.`` namespace and do not propagate to the
root logger, so embedding apps (uvicorn, pytest) keep their own output.
LOG_LEVEL picks the level (default INFO); LOG_FILE, when set, mirrors every
record to that file.
"""

import logging
import os
from typing import List, Optional, Union

NAMESPACE = "quantify"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED_FLAG = "_quantify_configured"


def resolve_level(value: Union[str, int, None]) -> int:
    """Map a level name ("debug", "WARN", ...) or number to a logging level.

    Unknown names fall back to INFO.
    """
    if isinstance(value, int):
        return value
    name = (value or "").strip().upper()
    if name == "WARN":
        name = "WARNING"
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _open_file_handler(path: str) -> Optional[logging.Handler]:
    try:
        return logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return None


def get_logger(name: str) -> logging.Logger:
    """Return ``quantify.<name>``, attaching handlers on first use only."""
    logger = logging.getLogger(f"{NAMESPACE}.{name}")
    if getattr(logger, _CONFIGURED_FLAG, False):
        return logger

    level = resolve_level(os.environ.get("LOG_LEVEL"))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    log_file = os.environ.get("LOG_FILE")
    file_handler = _open_file_handler(log_file) if log_file else None
    if file_handler is not None:
        handlers.append(file_handler)

    logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    setattr(logger, _CONFIGURED_FLAG, True)

    if log_file and file_handler is None:
        logger.warning(f"LOG_FILE {log_file} could not be opened; logging to stderr only")
    return logger
