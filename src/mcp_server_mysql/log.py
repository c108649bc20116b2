"""Logging setup. Stdout belongs to the MCP stdio transport, so logs go to stderr."""

from __future__ import annotations

import sys

from loguru import logger


def configure_logging(enabled: bool, level: str = "INFO") -> None:
    logger.remove()
    if enabled:
        logger.add(sys.stderr, level=level.upper())
