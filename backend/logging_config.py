import json
import logging
from logging.config import dictConfig

STANDARD_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        """Return the given record serialized as a JSON string."""
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt or DATE_FORMAT),
            "level": record.levelname,
            "name": record.name,
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Install console logging for the app, uvicorn and httpx."""
    level = level.upper()
    formatter = "json" if json_output else "standard"
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": STANDARD_FORMAT, "datefmt": DATE_FORMAT},
                "json": {"()": JsonFormatter, "datefmt": DATE_FORMAT},
            },
            "handlers": {
                "console": {
                    "level": level,
                    "class": "logging.StreamHandler",
                    "formatter": formatter,
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "": {"handlers": ["console"], "level": level},
                "uvicorn.access": {"handlers": ["console"], "level": "INFO", "propagate": False},
                # httpx logs every request at INFO
                "httpx": {"handlers": ["console"], "level": "WARNING", "propagate": False},
            },
        }
    )
