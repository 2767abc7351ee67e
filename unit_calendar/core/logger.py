"""Loguru setup for the calendar service.

Every line carries a ``job`` tag: ``-`` for request handling, the scheduler
job id for background runs (set with ``logger.contextualize(job=...)``).
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[job]}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[job]} | {name}:{function}:{line} - {message}"


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "00:00",
    retention: str = "14 days",
) -> None:
    """Replace loguru's default handler with the service sinks.

    Args:
        level: Minimum level for all sinks
        log_file: Optional file path; rotated daily at midnight by default
        rotation: Loguru rotation spec (size or time of day)
        retention: How long rotated files are kept
    """
    logger.remove()
    logger.configure(extra={"job": "-"})

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logger.debug(f"Logger initialized with level={level} file={log_file or '-'}")
