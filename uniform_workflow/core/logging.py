import logging
import sys
from contextvars import ContextVar
from logging.config import dictConfig

from uniform_workflow.core.config import APP_ENV, DB_ECHO

LOG_LEVEL = "DEBUG" if APP_ENV == "development" else "INFO"

# set per request by the request logging middleware
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

_RECORD_ATTRS = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime", "request_id"}


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


class WorkflowFormatter(logging.Formatter):
    """Appends the `extra={...}` context (entity ids, statuses, steps) as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in sorted(context.items()))
        return line


def setup_logging():
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,

            # -----------------
            # FILTERS
            # -----------------
            "filters": {
                "request_id": {"()": RequestIdFilter},
            },

            # -----------------
            # FORMATTERS
            # -----------------
            "formatters": {
                "workflow": {
                    "()": WorkflowFormatter,
                    "format": (
                        "%(asctime)s | %(levelname)s | %(request_id)s | "
                        "%(name)s | %(message)s"
                    ),
                },
                "access": {
                    "format": (
                        "%(asctime)s | ACCESS | %(request_id)s | "
                        "%(client_addr)s | %(actor_id)s:%(actor_role)s | %(method)s | "
                        "%(path)s | %(status_code)s | "
                        "%(process_time_ms)sms"
                    ),
                },
            },

            # -----------------
            # HANDLERS
            # -----------------
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "workflow",
                    "filters": ["request_id"],
                },
                "access_console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "access",
                    "filters": ["request_id"],
                },
            },

            # -----------------
            # LOGGERS
            # -----------------
            "loggers": {
                "workflow.access": {
                    "handlers": ["access_console"],
                    "level": "INFO",
                    "propagate": False,
                },
                "sqlalchemy.engine": {
                    "level": "INFO" if DB_ECHO else "WARNING",
                },
                "apscheduler": {
                    "level": LOG_LEVEL if APP_ENV == "development" else "WARNING",
                },
            },

            # -----------------
            # ROOT LOGGER
            # -----------------
            "root": {
                "level": LOG_LEVEL,
                "handlers": ["console"],
            },
        }
    )
