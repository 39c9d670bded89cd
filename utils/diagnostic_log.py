"""
Append-only diagnostic trail for the /ask pipeline.

One ``ISO8601 - message`` line per event. The file is only meant for offline
debugging: nothing reads it back, and a failed write never fails a request.
Lines are queued and written by a background listener so the event loop
never waits on the disk.
"""

import atexit
import logging
import queue
from datetime import datetime, timezone
from logging.handlers import QueueListener
from pathlib import Path
from typing import Union

from utils.structured_logging import get_logger, LogCategory

logger = get_logger("diagnostics")


class DiagnosticLog:
    """Log sink injected into the pipeline"""

    def write(self, message: str) -> None:
        raise NotImplementedError


class NullDiagnosticLog(DiagnosticLog):
    def write(self, message: str) -> None:
        return None


class _DiagnosticFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        return FileDiagnosticLog.format_line(record.getMessage(), created)[:-1]


class _DiagnosticFileHandler(logging.FileHandler):
    """Creates the parent directory on first use and reports one failure only"""

    def __init__(self, path: Path):
        super().__init__(path, mode="a", encoding="utf-8", delay=True)
        self.failure_reported = False

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()

    def emit(self, record: logging.LogRecord) -> None:
        # FileHandler opens the file outside its own error handling
        try:
            super().emit(record)
        except Exception:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        # Reported once so a read-only disk doesn't flood stdout
        if self.failure_reported:
            return
        self.failure_reported = True
        logger.warning(
            "Diagnostic log unavailable",
            category=LogCategory.PIPELINE,
            extra={"path": self.baseFilename},
        )


class FileDiagnosticLog(DiagnosticLog):
    """Queue-backed appender; concurrent requests interleave whole lines only"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._queue: "queue.Queue[logging.LogRecord]" = queue.Queue()
        self._handler = _DiagnosticFileHandler(self.path)
        self._handler.setFormatter(_DiagnosticFormatter())
        self._listener = QueueListener(self._queue, self._handler)
        self._listener.start()
        self._closed = False
        atexit.register(self.close)

    @staticmethod
    def format_line(message: str, now: datetime = None) -> str:
        timestamp = (now or datetime.now(timezone.utc)).isoformat()
        return f"{timestamp} - {message}\n"

    @property
    def failure_reported(self) -> bool:
        return self._handler.failure_reported

    def write(self, message: str) -> None:
        if self._closed:
            return
        self._queue.put_nowait(logging.makeLogRecord({"msg": message, "levelno": logging.INFO, "levelname": "INFO"}))

    def close(self) -> None:
        """Flush queued lines and stop the listener thread"""
        if self._closed:
            return
        self._closed = True
        self._listener.stop()
        self._handler.close()
