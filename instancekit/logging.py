"""Logging configuration for instancekit.

Logging is disabled for the ``instancekit`` namespace until a host process
opts in. ``AWSInstancePlugin.from_config`` does so with ``PluginConfig.log``;
embedders that build the plugin directly can call ``setup_logging`` themselves.

Example:
    from instancekit.logging import LogConfig, setup_logging, teardown_logging

    handler_ids = setup_logging(LogConfig(level="DEBUG", file="instancekit.log"))
    ...
    teardown_logging(handler_ids)
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from loguru import logger

PACKAGE = "instancekit"

logger.disable(PACKAGE)

type LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} | {extra[component]} - {message}"
)


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Logging configuration, read from the ``[logging]`` TOML section.

    Attributes:
        level: Minimum level for the console handler.
        file: Optional log file path. Parent directories are created.
        file_level: Minimum level for the file handler.
        console: Whether to log to stderr.
        rotation: File rotation policy (e.g., "50 MB", "1 day").
        retention: Number of rotated files to keep.
    """

    level: LogLevel = "INFO"
    file: str | None = None
    file_level: LogLevel = "DEBUG"
    console: bool = True
    rotation: str = "50 MB"
    retention: int = 10


def _with_component(record) -> bool:
    # Records logged without ``bind(component=...)`` still render.
    record["extra"].setdefault("component", "-")
    return record["name"] is not None and record["name"].startswith(PACKAGE)


def setup_logging(config: LogConfig) -> list[int]:
    """Enable instancekit logging and return the added handler ids."""
    handler_ids: list[int] = []

    if config.console:
        handler_ids.append(
            logger.add(
                sys.stderr,
                level=config.level,
                format=CONSOLE_FORMAT,
                colorize=True,
                filter=_with_component,
            )
        )

    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        handler_ids.append(
            logger.add(
                config.file,
                level=config.file_level,
                format=FILE_FORMAT,
                rotation=config.rotation,
                retention=config.retention,
                compression="zip",
                diagnose=False,
                enqueue=True,
                filter=_with_component,
            )
        )

    if handler_ids:
        logger.enable(PACKAGE)
    return handler_ids


def teardown_logging(handler_ids: list[int]) -> None:
    """Remove the given handlers and disable instancekit logging again."""
    for hid in handler_ids:
        logger.remove(hid)
    logger.disable(PACKAGE)
