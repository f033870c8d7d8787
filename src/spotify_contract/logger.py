"""Append-only JSON-lines event log for contract test runs.

Every call writes one JSON object per line to the run's log file and mirrors a
condensed line to the console. A failed write is reported through `logging`
and counted; it never raises into the calling test.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from rich.console import Console
from rich.markup import escape


logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    METRIC = "METRIC"


_LEVEL_STYLE: dict[LogLevel, str] = {
    LogLevel.INFO: "cyan",
    LogLevel.SUCCESS: "green",
    LogLevel.ERROR: "red",
    LogLevel.METRIC: "magenta",
}


class LogEntry(BaseModel):
    """One persisted log record.

    Attributes
    ----------
    timestamp
        ISO-8601 time the entry was written.
    level
        INFO, SUCCESS, ERROR or METRIC.
    test_case
        Test case id, serialized as ``testCase``.
    action
        Event name (for METRIC entries, the metric name).
    details
        Arbitrary JSON payload; absent on METRIC entries.
    value
        Metric value; only present on METRIC entries.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    timestamp: str
    level: LogLevel
    test_case: str = Field(alias="testCase")
    action: str
    details: Any = None
    value: Any = None

    def to_line(self) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "testCase": self.test_case,
            "action": self.action,
        }
        if self.level is LogLevel.METRIC:
            payload["value"] = self.value
        else:
            payload["details"] = self.details if self.details is not None else {}
        return json.dumps(payload, ensure_ascii=False, default=str)


def _jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


class RunLogger:
    """Structured event stream persisted as JSON lines."""

    def __init__(self, log_path: Path | str, console: Console | None = None) -> None:
        self.log_path = Path(log_path)
        self.console = console or Console(file=sys.__stdout__)
        self.write_failures = 0
        self.last_write_error: OSError | None = None
        self._lock = threading.Lock()
        self._dir_ready = False

    def info(self, test_case: str, action: str, details: Any = None) -> LogEntry:
        return self._write(LogLevel.INFO, test_case, action, details=details)

    def success(self, test_case: str, action: str, details: Any = None) -> LogEntry:
        return self._write(LogLevel.SUCCESS, test_case, action, details=details)

    def error(self, test_case: str, action: str, details: Any = None) -> LogEntry:
        return self._write(LogLevel.ERROR, test_case, action, details=details)

    def metric(self, test_case: str, metric_name: str, value: Any) -> LogEntry:
        return self._write(LogLevel.METRIC, test_case, metric_name, value=value)

    def _write(
        self,
        level: LogLevel,
        test_case: str,
        action: str,
        *,
        details: Any = None,
        value: Any = None,
    ) -> LogEntry:
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            test_case=test_case,
            action=action,
            details=_jsonable(details),
            value=value,
        )
        line = entry.to_line() + "\n"

        with self._lock:
            try:
                if not self._dir_ready:
                    self.log_path.parent.mkdir(parents=True, exist_ok=True)
                    self._dir_ready = True
                with self.log_path.open("a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as exc:
                self.write_failures += 1
                self.last_write_error = exc
                logger.warning("Could not write log entry to %s: %s", self.log_path, exc)

        self._echo(entry)
        return entry

    def _echo(self, entry: LogEntry) -> None:
        style = _LEVEL_STYLE[entry.level]
        extra = entry.value if entry.level is LogLevel.METRIC else entry.details
        suffix = ""
        if extra not in (None, {}):
            suffix = f" [dim]{escape(json.dumps(extra, ensure_ascii=False, default=str))}[/dim]"
        self.console.print(
            f"[{style}]\\[{entry.level.value}][/{style}] {escape(entry.test_case)} - {escape(entry.action)}{suffix}"
        )
