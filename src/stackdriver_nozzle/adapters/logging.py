"""Python logging handler adapter for the nozzle's own logs.

This adapter bridges Python's standard library logging module to a
LogAdapterPort, so the nozzle's diagnostics land in the same backend as
the firehose logs it forwards.
"""

import logging
import traceback
from typing import Any

from stackdriver_nozzle.core.models import LogRecord, Severity
from stackdriver_nozzle.core.ports import LogAdapterPort

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# HTTP client loggers log every request, including the ones this handler makes
_SELF_LOGGERS = ("httpx", "httpcore")


class LogAdapterHandler(logging.Handler):
    """Logging handler that posts log records through a LogAdapterPort.

    Example:
        ```python
        handler = LogAdapterHandler(HttpLogAdapter(client, "my-project", "nozzle"))
        logging.getLogger("stackdriver_nozzle").addHandler(handler)
        ```
    """

    def __init__(
        self,
        adapter: LogAdapterPort,
        labels: dict[str, str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler with a log adapter.

        Args:
            adapter: Destination implementing LogAdapterPort.
            labels: Labels attached to every forwarded record.
            level: Minimum level to forward.
        """
        super().__init__(level)
        self._adapter = adapter
        self._labels = dict(labels or {})

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(_SELF_LOGGERS):
            return False
        return super().filter(record)

    def emit(self, record: logging.LogRecord) -> None:
        """Translate and post a log record."""
        payload: dict[str, Any] = {
            "message": record.getMessage(),
            "level": record.levelname,
            "logger": record.name,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
            "pathname": record.pathname,
            "eventType": "nozzle",
        }

        # Add any extra attributes passed via logging call
        for key, value in record.__dict__.items():
            if key not in _STANDARD_LOGRECORD_ATTRS and key not in payload:
                payload[key] = value if isinstance(value, (str, int, float, bool)) else repr(value)

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)
            if exc_tb is not None:
                payload["exc_traceback"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )

        severity = Severity.ERROR if record.levelno >= logging.ERROR else Severity.DEFAULT
        try:
            self._adapter.post_log(
                LogRecord(payload=payload, labels=dict(self._labels), severity=severity)
            )
        except Exception:
            self.handleError(record)
