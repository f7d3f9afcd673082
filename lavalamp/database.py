"""
Durable, lock-protected storage for the lamp history.

The history lives in a single JSON file which is always replaced as a whole.
An exclusive ``flock`` on a sidecar ``.lock`` file serialises invocations
running in separate processes (cron watchdog, alert handlers).
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, IO, Optional
import fcntl
import logging
import os
import stat
import tempfile

from pydantic import ValidationError

from .repositories import HistoryLog
from .schemas import HistoryFile

logger = logging.getLogger(__name__)


class HistoryStoreError(OSError):
    """
    History file cannot be opened, read, written or parsed.
    """


class HistoryStore:
    """
    Create-if-absent, load and atomically persist the history log.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self._lock_fh: Optional[IO[str]] = None

    @property
    def locked(self) -> bool:
        return self._lock_fh is not None

    @contextmanager
    def lock_exclusive(self) -> Generator[None, None, None]:
        """
        Hold an exclusive advisory lock for the duration of the block.
        Blocks until the lock is available and always releases it.
        """
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            fh = self.lock_path.open("a")
        except OSError as exc:
            raise HistoryStoreError(f"Cannot open lock file {self.lock_path}: {exc}") from exc
        try:
            fcntl.flock(fh, fcntl.LOCK_EX)
            self._lock_fh = fh
            logger.debug("history.lock acquired path=%s", self.lock_path)
            yield
        finally:
            self._lock_fh = None
            try:
                fcntl.flock(fh, fcntl.LOCK_UN)
            finally:
                fh.close()
            logger.debug("history.lock released path=%s", self.lock_path)

    def open(self) -> HistoryLog:
        """
        Load the persisted log, creating (and persisting) an empty one first
        if there is none yet.
        """
        if not self.path.exists():
            log = HistoryLog()
            self.persist(log)
            logger.info("history.create path=%s", self.path)
            return log

        try:
            with self.path.open("r", encoding="utf-8") as fh:
                raw = fh.read()
            if not os.access(self.path, os.W_OK):
                raise HistoryStoreError(f"History file {self.path} is not writable")
        except HistoryStoreError:
            raise
        except OSError as exc:
            raise HistoryStoreError(f"Cannot read {self.path}: {exc}") from exc

        try:
            stored = HistoryFile.model_validate_json(raw)
        except ValidationError as exc:
            raise HistoryStoreError(f"Cannot parse {self.path}: {exc}") from exc

        logger.debug("history.load entries=%s path=%s", len(stored.entries), self.path)
        return HistoryLog(stored.entries)

    def persist(self, log: HistoryLog) -> None:
        """
        Replace the stored history with ``log``. The new content is written
        to a temporary file and renamed over the old one, so readers only
        ever see the old or the complete new content.
        """
        payload = HistoryFile(entries=log.entries()).model_dump_json(indent=1)
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                os.fchmod(fh.fileno(), self._file_mode())
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise HistoryStoreError(f"Cannot write {self.path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        logger.info("history.persist entries=%s path=%s", len(log), self.path)

    def _file_mode(self) -> int:
        """
        Mode for the replacement file: that of the current store, or the
        umask default for a new one (mkstemp always creates 0600).
        """
        try:
            return stat.S_IMODE(os.stat(self.path).st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    @contextmanager
    def session(self) -> Generator[HistoryLog, None, None]:
        """
        Lock the store and yield the loaded log. Persisting is up to the
        caller; leaving the block without calling ``persist`` keeps the
        stored history untouched.
        """
        with self.lock_exclusive():
            yield self.open()
