from __future__ import annotations

import json
import logging
import math
import threading
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from spotify_contract.context import format_success_rate


logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def calculate_percentile(samples: Sequence[float], percentile: float) -> float:
    """Nearest-rank percentile of ``samples``.

    The index is ``ceil(p/100 * n) - 1`` over a sorted copy, clamped to the
    valid range. An empty sequence yields 0.
    """
    if not samples:
        return 0
    ordered = sorted(samples)
    index = math.ceil(percentile / 100 * len(ordered)) - 1
    return ordered[min(max(0, index), len(ordered) - 1)]


@dataclass(slots=True)
class EndpointMetric:
    """Samples recorded for one endpoint plus incrementally-updated aggregates."""

    response_times: list[float] = field(default_factory=list)
    status_codes: list[int] = field(default_factory=list)
    count: int = 0
    total_time: float = 0
    min_time: float = math.inf
    max_time: float = 0

    def add(self, response_time: float, status_code: int) -> None:
        self.response_times.append(response_time)
        self.status_codes.append(status_code)
        self.count += 1
        self.total_time += response_time
        self.min_time = min(self.min_time, response_time)
        self.max_time = max(self.max_time, response_time)


@dataclass(frozen=True, slots=True)
class EndpointStats:
    endpoint: str
    count: int
    avg: int
    min: float
    max: float
    p95: int
    p99: int
    status_codes: list[int]


@dataclass(frozen=True, slots=True)
class TestResultRecord:
    """Outcome of one test, appended once and never mutated."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    test_name: str
    passed: bool
    duration: float
    timestamp: str


@dataclass(frozen=True, slots=True)
class TestSummary:
    __test__ = False  # Prevent pytest from collecting this as a test class

    total: int
    passed: int
    failed: int
    success_rate: str
    total_duration: float
    average_duration: int


@dataclass(frozen=True, slots=True)
class MetricsReport:
    timestamp: str
    test_summary: TestSummary
    endpoint_metrics: list[EndpointStats]
    test_results: list[TestResultRecord]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Timing:
    """Elapsed time of a `measure` block, in milliseconds."""

    started_at: float = 0
    elapsed_ms: float = 0


@contextmanager
def measure() -> Iterator[Timing]:
    """Time the enclosed block; ``elapsed_ms`` is set even if it raises."""
    timing = Timing(started_at=time.perf_counter())
    try:
        yield timing
    finally:
        timing.elapsed_ms = round_half_up((time.perf_counter() - timing.started_at) * 1000)


class MetricsCollector:
    """Aggregates response times per endpoint and test outcomes across a run."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._metrics: dict[str, EndpointMetric] = {}
        self._test_results: list[TestResultRecord] = []

    @property
    def test_results(self) -> list[TestResultRecord]:
        with self._lock:
            return list(self._test_results)

    @property
    def endpoints(self) -> list[str]:
        with self._lock:
            return list(self._metrics)

    def record_metric(self, endpoint: str, response_time: float, status_code: int = 200) -> None:
        with self._lock:
            bucket = self._metrics.get(endpoint)
            if bucket is None:
                bucket = self._metrics[endpoint] = EndpointMetric()
            bucket.add(response_time, status_code)

    def record_test_result(self, test_name: str, passed: bool, duration: float) -> None:
        record = TestResultRecord(
            test_name=test_name,
            passed=passed,
            duration=duration,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._test_results.append(record)

    def calculate_percentile(self, samples: Sequence[float], percentile: float) -> float:
        return calculate_percentile(samples, percentile)

    def get_endpoint_stats(self, endpoint: str) -> EndpointStats | None:
        with self._lock:
            metric = self._metrics.get(endpoint)
            if metric is None:
                return None
            samples = list(metric.response_times)
            return EndpointStats(
                endpoint=endpoint,
                count=metric.count,
                avg=round_half_up(metric.total_time / metric.count),
                min=metric.min_time,
                max=metric.max_time,
                p95=round_half_up(calculate_percentile(samples, 95)),
                p99=round_half_up(calculate_percentile(samples, 99)),
                status_codes=list(dict.fromkeys(metric.status_codes)),
            )

    def get_all_endpoint_stats(self) -> list[EndpointStats]:
        with self._lock:
            return [stats for name in self._metrics if (stats := self.get_endpoint_stats(name))]

    def generate_report(self) -> MetricsReport:
        with self._lock:
            results = list(self._test_results)
            endpoint_metrics = self.get_all_endpoint_stats()

        total = len(results)
        passed = sum(1 for r in results if r.passed)
        total_duration = sum(r.duration for r in results)
        return MetricsReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            test_summary=TestSummary(
                total=total,
                passed=passed,
                failed=total - passed,
                success_rate=format_success_rate(passed, total),
                total_duration=total_duration,
                average_duration=round_half_up(total_duration / total) if total else 0,
            ),
            endpoint_metrics=endpoint_metrics,
            test_results=results,
        )

    def to_json(self) -> str:
        return json.dumps(self.generate_report().to_dict(), indent=2)

    def save(self, path: Path | str) -> Path:
        """Write the current report as JSON, replacing any previous file."""
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(self.to_json(), encoding="utf-8")
        logger.info("Metrics report written to %s", out)
        return out

    def reset(self) -> None:
        with self._lock:
            self._metrics = {}
            self._test_results = []
