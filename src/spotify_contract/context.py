"""Run-scoped state for one invocation of the contract suite.

A `TestRunContext` holds the bearer token, the pass/fail/skip counters and the
per-test-case metrics recorded while the suite runs. One instance is created
per run and bound with `run_context_scope`; code that cannot receive it as an
argument looks it up through `get_run_context`.
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx

from spotify_contract.fixtures import API_CONFIG, ERROR_CODES, TEST_DATA, VALIDATIONS


def format_success_rate(passed: int, total: int) -> str:
    """Percentage with two decimals, or ``"N/A"`` when nothing ran."""
    if total <= 0:
        return "N/A"
    return f"{passed / total * 100:.2f}%"


@dataclass
class ExecutionData:
    """Mutable counters and metrics of a run."""

    passed_tests: int = 0
    failed_tests: int = 0
    skipped_tests: int = 0
    metrics: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Snapshot returned by `TestRunContext.get_summary`.

    ``total_tests`` counts passed and failed tests only; skipped tests are
    reported separately and do not affect ``success_rate``.
    """

    passed_tests: int
    failed_tests: int
    skipped_tests: int
    metrics: dict[str, dict[str, Any]]
    total_time: int | None
    total_tests: int
    success_rate: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class EnvironmentInfo:
    logs_dir: Path
    start_time: str
    environment: str


@dataclass(frozen=True, slots=True)
class ResponseValidation:
    is_valid: bool
    validations: dict[str, bool]


class TestRunContext:
    """Authoritative holder of run-scoped mutable state."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    def __init__(
        self,
        *,
        logs_dir: Path | str = "logs",
        environment: str | None = None,
    ) -> None:
        self.logs_dir = Path(logs_dir)
        self.environment = environment
        self.test_data = TEST_DATA
        self.api_config = API_CONFIG
        self.error_codes = ERROR_CODES
        self.validations = VALIDATIONS

        self._lock = threading.RLock()
        self.token: str | None = None
        self.user_id: str | None = None
        self.start_time: float | None = None
        self.execution_data = ExecutionData()

    def set_token(self, token: str | None) -> None:
        self.token = token

    def is_token_set(self) -> bool:
        return bool(self.token)

    def set_user_id(self, user_id: str | None) -> None:
        self.user_id = user_id

    def start_timer(self) -> None:
        """Record the wall-clock start of the run; a second call restarts it."""
        self.start_time = time.time()

    def get_elapsed_time(self) -> int | None:
        """Milliseconds since `start_timer`, or None if the timer never started."""
        if self.start_time is None:
            return None
        return int((time.time() - self.start_time) * 1000)

    def setup_environment(self) -> EnvironmentInfo:
        """Make sure the log directory exists and describe the environment."""
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        started = self.start_time if self.start_time is not None else time.time()
        return EnvironmentInfo(
            logs_dir=self.logs_dir,
            start_time=datetime.fromtimestamp(started, tz=timezone.utc).isoformat(),
            environment=self.environment or os.environ.get("SPOTIFY_ENVIRONMENT", "test"),
        )

    def record_metric(self, test_case: str, metric_name: str, value: Any) -> None:
        """Store a metric for a test case; the last write for a name wins."""
        with self._lock:
            self.execution_data.metrics.setdefault(test_case, {})[metric_name] = value

    def record_pass(self) -> None:
        with self._lock:
            self.execution_data.passed_tests += 1

    def record_fail(self) -> None:
        with self._lock:
            self.execution_data.failed_tests += 1

    def record_skip(self) -> None:
        with self._lock:
            self.execution_data.skipped_tests += 1

    def get_summary(self) -> RunSummary:
        with self._lock:
            data = self.execution_data
            total = data.passed_tests + data.failed_tests
            return RunSummary(
                passed_tests=data.passed_tests,
                failed_tests=data.failed_tests,
                skipped_tests=data.skipped_tests,
                metrics={case: dict(values) for case, values in data.metrics.items()},
                total_time=self.get_elapsed_time(),
                total_tests=total,
                success_rate=format_success_rate(data.passed_tests, total),
            )

    def get_test_data(self, category: str) -> Mapping[str, Any] | None:
        return self.test_data.get(category)

    def get_api_config(self) -> Mapping[str, Any]:
        return self.api_config

    def validate_http_response(
        self, response: httpx.Response, expected_status: int = 200
    ) -> ResponseValidation:
        """Evaluate status, JSON content type and body presence independently."""
        content_type = response.headers.get("content-type", "")
        validations = {
            "status_code": response.status_code == expected_status,
            "content_type": self.validations["content_type_json"] in content_type,
            "has_data": bool(response.content),
        }
        return ResponseValidation(is_valid=all(validations.values()), validations=validations)

    def reset(self) -> None:
        """Return all mutable state to construction defaults."""
        with self._lock:
            self.token = None
            self.user_id = None
            self.start_time = None
            self.execution_data = ExecutionData()


RUN_CONTEXT: ContextVar[TestRunContext | None] = ContextVar("run_context", default=None)


def get_run_context() -> TestRunContext | None:
    """Get the current run context, or None outside a run."""
    return RUN_CONTEXT.get()


@contextmanager
def run_context_scope(ctx: TestRunContext) -> Iterator[TestRunContext]:
    """Temporarily set `RUN_CONTEXT` for the duration of the ``with`` block."""
    token = RUN_CONTEXT.set(ctx)
    try:
        yield ctx
    finally:
        RUN_CONTEXT.reset(token)
