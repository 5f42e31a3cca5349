"""loguru sink configuration shared by the API and the CLI."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from config import Settings

CONSOLE_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def configure_logging(settings: "Settings", level: str | None = None, file_sink: bool = True) -> None:
    """
    Replace the default loguru sink.

    Args:
        settings: Application settings (log_level, log_file)
        level: Console level override, e.g. WARNING for the CLI
        file_sink: Also write a rotating log file when settings.log_file is set
    """
    logger.remove()
    logger.add(sys.stderr, level=level or settings.log_level, format=CONSOLE_FORMAT)

    if file_sink and settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            settings.log_file,
            level=settings.log_level,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="14 days",
            enqueue=True,
        )
