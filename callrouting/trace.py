"""Diagnostic trace sink for routing decisions.

Records ENUM and HSS traffic and iFC evaluation outcomes as structured
events keyed by a per-call trail id. Events go to standard logging, an
optional dated JSONL file, and an in-memory ring buffer that operators
can query. Tracing is best effort: a failure to record an event is
logged and never reaches the routing path.
"""

import json
import logging
import time
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from callrouting.config import TRACE_BUFFER_SIZE, TRACE_LOG_DIR

log = logging.getLogger(__name__)

# Event names
ENUM_START = "enum.start"
ENUM_DNS_REQUEST = "enum.dns_request"
ENUM_DNS_RESPONSE = "enum.dns_response"
ENUM_DNS_ERROR = "enum.dns_error"
ENUM_MATCH = "enum.match"
ENUM_INCOMPLETE = "enum.incomplete"
ENUM_COMPLETE = "enum.complete"
ENUM_FAILED = "enum.failed"
HSS_REQUEST = "hss.request"
HSS_RESPONSE = "hss.response"
HSS_ERROR = "hss.error"
IFC_EVALUATED = "ifc.evaluated"


class TraceLogger:
    """Structured trace logger for routing events.

    Logs to standard logging, an optional trace file, and an in-memory
    ring buffer.
    """

    def __init__(
        self,
        max_buffer_size: int = TRACE_BUFFER_SIZE,
        log_dir: Optional[str] = TRACE_LOG_DIR,
    ):
        """Initialize trace logger.

        Args:
            max_buffer_size: Number of recent events kept in memory
            log_dir: Directory for dated JSONL trace files (empty disables)
        """
        self._max_buffer_size = max_buffer_size
        self._buffer: deque[dict] = deque(maxlen=max_buffer_size)
        self._file_handler: Optional[logging.FileHandler] = None
        self._start_time = time.time()
        if log_dir:
            self._setup_file_logging(Path(log_dir))

    def _setup_file_logging(self, log_dir: Path) -> None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            date_str = datetime.now().strftime("%Y-%m-%d")
            log_file = log_dir / f"trace-{date_str}.jsonl"

            self._file_handler = logging.FileHandler(log_file)
            self._file_handler.setLevel(logging.INFO)
            self._file_handler.setFormatter(logging.Formatter("%(message)s"))

            log.info(f"Trace logging to {log_file}")

        except OSError as e:
            log.warning(f"Failed to set up trace file logging: {e}")
            self._file_handler = None

    def log(
        self,
        event: str,
        trail: int = 0,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Record a trace event.

        Args:
            event: Event name (e.g., "enum.start", "hss.error")
            trail: Trail id correlating the events of one call
            details: Event payload
        """
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "trail": trail,
        }
        if details:
            entry["details"] = details

        self._buffer.append(entry)

        try:
            json_entry = json.dumps(entry, default=str)
        except (TypeError, ValueError) as e:
            log.warning(f"Unserialisable trace event {event}: {e}")
            return

        log.debug(f"TRACE: {json_entry}")

        if self._file_handler:
            try:
                record = logging.LogRecord(
                    name="trace",
                    level=logging.INFO,
                    pathname="",
                    lineno=0,
                    msg=json_entry,
                    args=(),
                    exc_info=None,
                )
                self._file_handler.emit(record)
            except Exception as e:
                log.warning(f"Failed to write trace log: {e}")

    def get_recent_events(
        self,
        limit: int = 100,
        event_filter: Optional[str] = None,
        trail: Optional[int] = None,
    ) -> list[dict]:
        """Get recent trace events from buffer.

        Args:
            limit: Max events to return
            event_filter: Filter by event prefix (e.g., "enum.")
            trail: Only return events for this trail

        Returns:
            List of trace event dicts, newest first
        """
        events = list(self._buffer)
        events.reverse()

        if event_filter:
            events = [e for e in events if e["event"].startswith(event_filter)]

        if trail is not None:
            events = [e for e in events if e["trail"] == trail]

        return events[:limit]

    def get_buffer_stats(self) -> dict:
        return {
            "buffer_size": len(self._buffer),
            "max_buffer_size": self._max_buffer_size,
            "uptime_seconds": time.time() - self._start_time,
        }

    def clear(self) -> None:
        self._buffer.clear()

    def close(self) -> None:
        """Close the trace file; later events are only buffered."""
        if self._file_handler:
            self._file_handler.close()
            self._file_handler = None


# Global trace logger instance
_trace_logger: Optional[TraceLogger] = None


def get_trace_logger() -> TraceLogger:
    """Get or create the global trace logger."""
    global _trace_logger
    if _trace_logger is None:
        _trace_logger = TraceLogger()
    return _trace_logger


def reset_trace_logger() -> None:
    """Close and drop the global trace logger (tests)."""
    global _trace_logger
    if _trace_logger is not None:
        _trace_logger.close()
    _trace_logger = None
