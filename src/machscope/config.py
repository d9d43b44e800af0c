"""
Machscope Configuration
=======================

Runtime configuration for the disassembly tools. Configuration can come from:
- Default values (defined here)
- Environment variables

Environment variables (all optional):
    MACHSCOPE_COUNT: Default number of instructions to list
    MACHSCOPE_STRING_LIMIT: Maximum length of strings read from the target
    MACHSCOPE_LOG_LEVEL: Logging level name (DEBUG, INFO, WARNING, ...)
    MACHSCOPE_FORMAT: Listing format ("text" or "json")

Copyright (c) 2025-2026 Machscope Contributors
"""

from dataclasses import dataclass
from typing import Optional
import logging
import os


DEFAULT_COUNT = 100
DEFAULT_STRING_LIMIT = 1024
OUTPUT_FORMATS = ("text", "json")


@dataclass
class DisasmConfig:
    """
    Configuration for disassembly runs.

    Attributes:
        default_count: Instructions listed when no count is given (default: 100)
        string_limit: Longest C/UTF-16 string read from the target (default: 1024)
        log_level: Logging level used by the command-line tools
        output_format: "text" listing or "json" records
    """

    default_count: int = DEFAULT_COUNT
    string_limit: int = DEFAULT_STRING_LIMIT
    log_level: str = "WARNING"
    output_format: str = "text"

    @classmethod
    def from_env(cls) -> "DisasmConfig":
        """
        Create DisasmConfig from environment variables.

        Invalid values are ignored and the default is kept.

        Returns:
            DisasmConfig with values from environment variables
        """
        config = cls()

        if count := os.environ.get("MACHSCOPE_COUNT"):
            try:
                value = int(count)
            except ValueError:
                value = 0
            if value > 0:
                config.default_count = value

        if limit := os.environ.get("MACHSCOPE_STRING_LIMIT"):
            try:
                value = int(limit)
            except ValueError:
                value = 0
            if value > 0:
                config.string_limit = value

        if level := os.environ.get("MACHSCOPE_LOG_LEVEL"):
            if isinstance(logging.getLevelName(level.upper()), int):
                config.log_level = level.upper()

        if output_format := os.environ.get("MACHSCOPE_FORMAT"):
            if output_format in OUTPUT_FORMATS:
                config.output_format = output_format

        return config

    @property
    def logging_level(self) -> int:
        """Numeric logging level for logging.basicConfig()."""
        return logging.getLevelName(self.log_level)


# =============================================================================
# Default Configuration Instance
# =============================================================================

_default_config: Optional[DisasmConfig] = None


def get_default_config() -> DisasmConfig:
    """
    Get the default configuration.

    Created from environment variables on first access; can be overridden
    with set_default_config().
    """
    global _default_config
    if _default_config is None:
        _default_config = DisasmConfig.from_env()
    return _default_config


def set_default_config(config: Optional[DisasmConfig]) -> None:
    """Replace the default configuration (None re-reads the environment)."""
    global _default_config
    _default_config = config
