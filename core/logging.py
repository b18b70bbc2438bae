import json
import logging
import sys
import time
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Structured context fields passed through `extra=` that end up in the JSON line
CONTEXT_FIELDS = (
    "trace_id",
    "job",
    "channel_id",
    "primary_channel_id",
    "days_ago",
    "video_type",
    "latency_ms",
    "error_code",
    "error_type",
    "error_message",
)

# Chatty third-party loggers held at WARNING unless debugging
QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler", "sqlalchemy.engine")


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"


class JsonFormatter(logging.Formatter):
    """JSON line formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON line"""
        payload = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # datetimes and enums in `extra` are rendered with str()
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_json_logging(level: Optional[int] = None) -> None:
    """Route all logging through one stdout handler emitting JSON lines.

    The level comes from LOG_LEVEL when not given explicitly.
    """
    if level is None:
        level = logging.getLevelName(LoggingSettings().log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    if level > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.info("JSON logging initialized", extra={"trace_id": "system_init"})
