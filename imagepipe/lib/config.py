"""
Logging setup and boot banner for ImagePipe.

LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
LOG_FORMAT: json, text (default: text)
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log drains."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(level: str = None, format_type: str = None) -> None:
    """
    Configure the root logger once at startup.

    Args:
        level: Log level name, defaults to LOG_LEVEL
        format_type: "json" or "text", defaults to LOG_FORMAT
    """
    log_level = (level or LOG_LEVEL).upper()
    log_format = (format_type or LOG_FORMAT).lower()
    numeric_level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)-7s [%(name)s] %(message)s", "%H:%M:%S")

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def boot_banner(settings) -> None:
    log = logging.getLogger("imagepipe")
    log.info("[boot] ImagePipe starting env=%s", settings.ENV or "unknown")
    log.info(
        "[boot] fetch: retries=%s timeout_ms=%s backoff_ms=%s",
        settings.FETCH_MAX_RETRIES, settings.FETCH_TIMEOUT_MS, settings.FETCH_BACKOFF_MS,
    )
    log.info(
        "[boot] compress: skip_below=%sB max_input=%sMB",
        settings.COMPRESS_SKIP_BELOW_BYTES, settings.COMPRESS_MAX_INPUT_MB,
    )
