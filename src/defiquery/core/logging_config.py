"""
Logging configuration for defiquery.

All modules log through loguru's global ``logger``; this module only decides
where records go. Library users who never call ``setup_logging`` keep loguru's
default stderr sink.
"""

import sys
from typing import Dict, Optional, Callable

from loguru import logger

from defiquery.config import LoggingConfig


def create_module_filter(module_levels: Dict[str, str]) -> Callable[[Dict], bool]:
    """
    Create a filter function based on module-specific log levels.

    Args:
        module_levels: Dict mapping module name prefixes to log levels

    Returns:
        Filter function for loguru
    """
    def filter_func(record):
        module = record["name"]
        for pattern, level in module_levels.items():
            if module.startswith(pattern):
                return record["level"].no >= logger.level(level).no
        return True

    return filter_func


def setup_logging(config: Optional[LoggingConfig] = None,
                  console_filter: Optional[Callable[[Dict], bool]] = None) -> None:
    """
    Install console and (optionally) file sinks.

    Args:
        config: LoggingConfig instance, defaults used when omitted
        console_filter: Optional filter function for console output
    """
    config = config or LoggingConfig()

    logger.remove()

    if config.enable_console:
        logger.add(
            sys.stderr,
            format=config.format,
            level=config.level,
            colorize=True,
            filter=console_filter,
            backtrace=True,
            diagnose=False,
        )

    if config.enable_file:
        log_path = config.get_log_file_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_format = (
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name: <32} | "
            "{function: <20} | "
            "{message}"
        )

        logger.add(
            str(log_path),
            format=file_format,
            level=config.level,
            rotation=config.file_rotation,
            retention=config.file_retention,
            backtrace=True,
            diagnose=False,  # No variable values in production logs
            enqueue=True,
        )

    logger.debug(f"Logging configured: level={config.level}")
