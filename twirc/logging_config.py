r"""
Logging configuration for host applications.

Provides a console setup using the colorlog library that matches the
library's own structured event output.
"""

import logging
import os
import sys

import colorlog

from .logs.logger import logger as library_logger

LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s"


def build_formatter() -> colorlog.ColoredFormatter:
    """Create the colored formatter shared by the root and library handlers."""
    return colorlog.ColoredFormatter(
        LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "magenta",
        },
        secondary_log_colors={
            "message": {
                "ERROR": "red",
                "CRITICAL": "magenta",
            }
        },
        reset=True,
    )


class LoggerConfigurator:
    """Handles logging configuration cleanly using colorlog.

    Supports environment variable configuration for log levels.
    """

    def __init__(self, config=None):
        """Initialize the configurator.

        Args:
            config: Optional dict; ``level`` overrides the DEBUG environment
                switch and ``stream`` replaces stderr.
        """
        self.config = config or {}

    def resolve_level(self) -> int:
        if "level" in self.config:
            return int(self.config["level"])
        debug_env = os.environ.get("DEBUG", "").lower()
        return logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

    def configure(self) -> int:
        """Configure the root logger and the library logger; returns the level."""
        log_level = self.resolve_level()
        formatter = build_formatter()

        handler = logging.StreamHandler(self.config.get("stream", sys.stderr))
        handler.setFormatter(formatter)

        logging.basicConfig(level=log_level, handlers=[handler], format="%(message)s")
        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        # The library logger keeps its own console handler; give it the same look.
        for h in library_logger.logger.handlers:
            if type(h) is logging.StreamHandler:
                h.setFormatter(formatter)
        library_logger.set_level(log_level)

        library_logger.log_event(
            "app", "logging_configured", level=logging.DEBUG, level_name=logging.getLevelName(log_level)
        )
        return log_level
