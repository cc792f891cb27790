"""Logging setup for the call-routing core.

Plain text by default; JSON lines when ROUTING_LOG_FORMAT=json so log
shippers can index the trail id.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from callrouting.config import LOG_FORMAT, LOG_LEVEL

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in ("trail", "served_user", "number"):
            if hasattr(record, k):
                payload[k] = getattr(record, k)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """Configure root logging.

    Args:
        log_level: Log level name. Defaults to ROUTING_LOG_LEVEL.
        log_format: "text" or "json". Defaults to ROUTING_LOG_FORMAT.
    """
    handler = logging.StreamHandler(sys.stdout)
    if (log_format or LOG_FORMAT).lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT))

    root = logging.getLogger()
    level = (log_level or LOG_LEVEL).upper()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers = [handler]
