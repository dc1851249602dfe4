"""Structured JSON logging with correlation IDs.

Every log line is one JSON object. A correlation_id set around a batch
(e.g. one placements file) ties together the lines from resolving the
configuration, building the catalog and classifying each record.
"""

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import TextIO

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Extra fields copied from logger.info("msg", extra={...}) into the JSON line
EXTRA_FIELDS = ("reference_id", "setting", "step", "count", "duration_ms")


def get_correlation_id() -> str:
    """Return the current correlation ID, or empty string if not set."""
    return correlation_id.get()


@contextmanager
def correlation_scope(cid: str | None = None):
    """Set a correlation ID (a fresh one by default) for the enclosed block."""
    token = correlation_id.set(cid or uuid.uuid4().hex[:12])
    try:
        yield correlation_id.get()
    finally:
        correlation_id.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per record: time, level, logger, message, then context.

    Context is the active correlation ID, the traceback if any, and
    whichever EXTRA_FIELDS the call site passed in `extra`.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if cid := correlation_id.get():
            entry["correlation_id"] = cid
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(
            (key, getattr(record, key))
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        return json.dumps(entry, default=str)


TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers capped at WARNING; mlflow reports every tracking store
# and experiment lookup at INFO.
QUIET_LOGGERS = ("mlflow", "alembic")


def setup_logging(json_format: bool = True, level: str = "INFO", stream: TextIO | None = None) -> None:
    """Send all log output to one handler on `stream` (stderr by default).

    The CLI writes its CSV to stdout, so logs stay on stderr unless a stream
    is given. Any handlers already on the root logger are replaced. Unknown
    level names fall back to INFO.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
