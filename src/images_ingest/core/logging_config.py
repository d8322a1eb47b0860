"""Logging for the ingestion pipeline.

Everything logs beneath one ``images-ingest`` logger. Only that root logger
owns a handler; stage, processor and structured loggers are its children and
propagate to it, so one ``LOG_LEVEL``/``LOG_FORMAT`` setting governs them all.
"""

import os
import sys
import logging
from typing import Optional

ROOT_LOGGER = "images-ingest"

FORMATS = {
    "structured": (
        "%(asctime)s | %(name)s | %(levelname)-8s | "
        "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
    ),
    "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def _level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def qualified_name(name: Optional[str]) -> str:
    """Place ``name`` under the package root (``processor`` -> ``images-ingest.processor``)."""
    if not name or name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return name or ROOT_LOGGER
    return f"{ROOT_LOGGER}.{name}"


def setup_logger(
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure the package root logger and return it.

    Args:
        level: Log level override (defaults to env var or INFO)
        format_type: Logging format ("structured" or "simple")

    Environment Variables:
        LOG_LEVEL: Set logging level (DEBUG, INFO, WARNING, ERROR)
        LOG_FORMAT: Set format type ("structured" or "simple")

    Calling it again only changes the level; the stdout handler is added once.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(_level(level))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        env_format = os.getenv("LOG_FORMAT", format_type).lower()
        handler.setFormatter(
            logging.Formatter(
                FORMATS.get(env_format, FORMATS["structured"]),
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(handler)

    root.propagate = False
    return root


def get_logger(
    name: Optional[str] = None, level: Optional[str] = None
) -> logging.Logger:
    """
    Get a logger in the package hierarchy.

    The root is configured on first use. ``level`` is set on the returned
    logger only when given; otherwise it inherits the root's level.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        setup_logger()

    logger = logging.getLogger(qualified_name(name))
    if level:
        logger.setLevel(_level(level))
    return logger
