"""
Loguru configuration for command-line runs.

Library code only calls ``logger``; sinks are installed here by the CLI or
by scripts that want console/file output.
"""

from typing import Optional
import sys

from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<blue>{function}</blue> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logger(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Replace loguru's default sink with a console sink and an optional file sink.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ...)
        log_file: Optional path of a plain-text log file
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=sys.stderr.isatty(),
    )
    if log_file:
        logger.add(log_file, level=level, format=FILE_FORMAT, encoding="utf-8")
    logger.debug("Logger initialised (level={}, file={})", level, log_file)
