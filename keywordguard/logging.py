"""
Structured Logging — Screening Events as JSON Lines

Every keywordguard.* logger writes one JSON object per event. Besides
timestamp, level, logger and message, a line carries whichever screening
fields the call passed in `extra`:

  job_id, phase            which job and which side of extraction
  total_detected,          scan outcome counts
  critical_detected
  missing_critical,        keyword ids; never the resume text itself
  lost_keywords
  errors_count,            validation outcome counts
  warnings_count
  retry_attempted          guarded extraction re-ran the provider

Anything not in the whitelist below is dropped, so stray document
content passed through `extra` never reaches the log stream.

KEYWORDGUARD_LOG_FORMAT=text switches to a plain one-line format for
local runs.

Usage:
    from keywordguard.logging import get_logger
    logger = get_logger("scanner")
    logger.warning("Critical keywords missing", extra={"missing_critical": ["shopify"]})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone


LOG_LEVEL = os.getenv("KEYWORDGUARD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("KEYWORDGUARD_LOG_FORMAT", "json")  # "json" or "text"

# Extra fields copied from the record into the JSON line
_EXTRA_FIELDS = (
    "job_id", "phase", "keyword_id", "missing_critical", "lost_keywords",
    "total_detected", "critical_detected", "errors_count", "warnings_count",
    "registry_version", "retry_attempted", "error", "error_type",
    "duration_ms", "status_code", "method", "path",
)


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging():
    """Configure the keywordguard logger tree. Call once at app startup."""
    root = logging.getLogger("keywordguard")
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if LOG_FORMAT == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the keywordguard namespace."""
    return logging.getLogger(f"keywordguard.{name}")
