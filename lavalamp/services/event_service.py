"""
Service layer for the diagnostic activity log.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional
import logging
import time

logger = logging.getLogger("lavalamp.events")


class EventService:
    """
    Append-only diagnostic sink. Lines go to the activity log file and to
    the ``lavalamp.events`` logger. Writing is best effort: a failing log
    file never aborts the invocation.
    """

    def __init__(self, log_file: Optional[Path] = None) -> None:
        self.log_file = Path(log_file) if log_file else None

    def emit(self, message: str) -> None:
        logger.info(message)
        if self.log_file is None:
            return
        try:
            with self.log_file.open("a", encoding="utf-8") as fh:
                fh.write(f"{time.ctime()}: {message}\n")
        except OSError as exc:
            logger.debug("events.emit failed path=%s error=%s", self.log_file, exc)
