from __future__ import annotations

import logging
from typing import Optional

ROOT_LOGGER = "captionit"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def resolve_level(level: str | None, default: int = logging.INFO) -> int:
    if not level:
        return default
    return getattr(logging, level.upper(), default)


def configure_logging(level: str = "INFO") -> int:
    """Configure the root handler once per CLI invocation and return the level used."""
    resolved = resolve_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, force=True)
    logging.getLogger(ROOT_LOGGER).setLevel(resolved)
    return resolved


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(resolve_level(level, logger.level))
    return logger
