"""Structured logging module with JSON output support."""

import json
import sys
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.utils.trace_context import get_current_trace

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _exception_details(exception: Exception) -> dict[str, Any]:
    """Describe an exception with its type, message and stack trace."""
    return {
        "type": type(exception).__name__,
        "message": str(exception),
        "stack_trace": "".join(
            traceback.format_exception(type(exception), exception, exception.__traceback__)
        ),
    }


class StructuredLogger:
    """Logger that outputs JSON-formatted log entries."""

    def __init__(self, component: str, file_path: str | None = None):
        """
        Initialize the structured logger.

        Args:
            component: Name of the component using this logger
            file_path: Optional path to write logs to file
        """
        self.component = component
        self.file_path = file_path
        if file_path:
            Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    def _format_log_entry(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
        exception: dict[str, Any] | None = None,
    ) -> str:
        """
        Format a log entry as JSON.

        The current trace ID is added to the context when one is active and
        the caller did not supply its own.

        Returns:
            JSON-formatted log entry
        """
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level,
            "component": self.component,
            "message": message,
        }

        trace_id = get_current_trace()
        if trace_id and (context is None or "trace_id" not in context):
            context = {**(context or {}), "trace_id": trace_id}

        if context:
            entry["context"] = context

        if exception:
            entry["exception"] = exception

        return json.dumps(entry, default=str)

    def _write_log(self, log_entry: str) -> None:
        """Write log entry to stdout and optional file."""
        try:
            print(log_entry, file=sys.stdout)
            if self.file_path:
                with open(self.file_path, "a") as f:
                    f.write(log_entry + "\n")
        except OSError as e:
            print(f"Failed to write log: {e}", file=sys.stderr)

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Log a debug message."""
        self._write_log(self._format_log_entry("DEBUG", message, context))

    def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Log an info message."""
        self._write_log(self._format_log_entry("INFO", message, context))

    def warning(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Log a warning message."""
        self._write_log(self._format_log_entry("WARNING", message, context))

    def error(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: Exception | None = None,
    ) -> None:
        """Log an error message with optional exception details."""
        exc_dict = _exception_details(exception) if exception else None
        self._write_log(self._format_log_entry("ERROR", message, context, exc_dict))

    def critical(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: Exception | None = None,
    ) -> None:
        """Log a critical message with optional exception details."""
        exc_dict = _exception_details(exception) if exception else None
        self._write_log(self._format_log_entry("CRITICAL", message, context, exc_dict))

    def log(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
        exception: Exception | None = None,
    ) -> None:
        """
        Log a message with specified level.

        Unknown levels are logged as INFO.
        """
        level = level.upper()
        if level in ("ERROR", "CRITICAL"):
            getattr(self, level.lower())(message, context, exception)
        elif level in LEVELS:
            getattr(self, level.lower())(message, context)
        else:
            self.info(message, context)
