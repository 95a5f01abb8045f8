"""Loguru sinks for the command line.

Library code only emits through ``loguru.logger``; scans bind ``scan_id`` and
``user_id`` with ``logger.contextualize`` and the sinks below render them.
"""

import sys
from pathlib import Path

from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[user_id]}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[scan_id]} {extra[user_id]} | {name}:{line} - {message}"


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """Replace loguru's default sink with a console sink and an optional rotating file."""
    logger.remove()
    logger.configure(extra={"scan_id": "-", "user_id": "-"})

    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT, colorize=True)
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level, format=_FILE_FORMAT, rotation="10 MB", retention=5)

    logger.debug(f"Logging configured: level={level} file={log_file}")
