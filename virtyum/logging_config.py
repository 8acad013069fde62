"""
Logging setup for the API process.

``setup_logging`` attaches a single stream handler to the root logger,
either human-readable or one JSON object per line.  It is idempotent so
repeated app construction (tests, reloads) does not duplicate output.
"""
import json
import logging
from datetime import datetime, timezone

_EXTRA_FIELDS = ("method", "path", "status_code", "duration_ms", "service_id", "task_id")


class JSONFormatter(logging.Formatter):
    """Render records as JSON, surfacing known ``extra`` fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
