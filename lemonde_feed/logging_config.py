"""JSON log lines tagged with the execution and component that wrote them."""

import json
import logging
import sys
import time
from datetime import UTC, datetime
from typing import Any

PACKAGE_LOGGER = "lemonde_feed"


class StructuredFormatter(logging.Formatter):
    """Render each record as one JSON object."""

    CONTEXT_FIELDS = ("execution_id", "component", "feed_url", "section", "generation", "metrics")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(
            (name, getattr(record, name))
            for name in self.CONTEXT_FIELDS
            if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ExecutionLogger:
    """Attaches an execution id and component name to every record."""

    def __init__(self, execution_id: str, component: str = "main"):
        self.execution_id = execution_id
        self.component = component
        self.logger = logging.getLogger(f"{PACKAGE_LOGGER}.{component}")
        self._started: float | None = None

    def log(self, level: int, message: str, **fields) -> None:
        fields.update(execution_id=self.execution_id, component=self.component)
        self.logger.log(level, message, extra=fields)

    def info(self, message: str, **fields) -> None:
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields) -> None:
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields) -> None:
        self.log(logging.ERROR, message, **fields)

    def log_execution_start(self, **fields) -> None:
        self._started = time.monotonic()
        self.info(f"Starting {self.component} execution", **fields)

    def log_execution_end(self, success: bool = True, **fields) -> None:
        """Log the outcome, with the elapsed time when the start was logged."""
        if self._started is not None:
            fields["duration_seconds"] = round(time.monotonic() - self._started, 3)
        self.info(f"Completed {self.component} execution", success=success, **fields)

    def log_feed_processing(self, feed_url: str, items_count: int) -> None:
        self.info(
            f"Processed feed: {items_count} items found",
            feed_url=feed_url,
            items_count=items_count,
        )

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        self.info("Execution metrics", metrics=metrics)


def setup_structured_logging(log_level: str = "INFO") -> None:
    """Send every record to stdout as JSON at the given level."""
    level = getattr(logging, log_level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def create_execution_logger(component: str, execution_id: str | None = None) -> ExecutionLogger:
    """Build a component logger, generating an execution id when none is given."""
    if not execution_id:
        execution_id = f"exec_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    return ExecutionLogger(execution_id, component)
