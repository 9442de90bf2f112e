"""Configuration and logging setup for the NodeTree MCP server."""

import logging
import sys
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_LOGGER = "nodetree_mcp"


class ServerConfig(BaseSettings):
    """Server settings, read from NODETREE_* environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="NODETREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level name")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    # Raise NodeNotFoundError instead of returning the forest unchanged
    strict_lookups: bool = False

    # Checkbox (True) vs radio (False) selection
    multiple_selection: bool = True

    # When > 0 the server starts with generated sample data
    sample_roots: int = Field(default=0, ge=0)
    sample_children: int = Field(default=10, ge=0)

    max_depth: int = Field(default=1000, ge=1, description="Deepest nesting the validator accepts")

    def get_log_level(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """Configure the package logger.

    Logs go to stderr; stdout is reserved for the MCP stdio transport.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to also write logs to.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Avoid duplicate handlers when called again (tests, server restarts)
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized")
