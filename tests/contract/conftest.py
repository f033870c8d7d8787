from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import pytest

from spotify_contract.client import RequestManager
from spotify_contract.context import TestRunContext
from spotify_contract.errors import RequestFailedError
from spotify_contract.logger import RunLogger
from spotify_contract.metrics import MetricsCollector, measure


CallApi = Callable[..., Awaitable[httpx.Response]]


@pytest.fixture
def call_api(
    request_manager: RequestManager,
    run_context: TestRunContext,
    run_logger: RunLogger,
    metrics_collector: MetricsCollector,
) -> CallApi:
    """Issue a GET through the shared manager, timing and logging it.

    ``endpoint`` labels the metrics bucket and defaults to the path. Failed
    requests are logged and re-raised for the test to assert on.
    """

    def record(label: str, test_case: str, elapsed_ms: float, status: int | None) -> None:
        if status is not None:
            metrics_collector.record_metric(label, elapsed_ms, status)
        run_context.record_metric(test_case, "responseTime_ms", elapsed_ms)
        run_logger.metric(test_case, "responseTime_ms", elapsed_ms)

    async def call(test_case: str, path: str, *, endpoint: str | None = None, **options: Any) -> httpx.Response:
        label = endpoint or path
        run_logger.info(test_case, "REQUEST_START", {"path": path, "params": options.get("params")})
        try:
            with measure() as timing:
                response = await request_manager.get(path, **options)
        except RequestFailedError as exc:
            record(label, test_case, timing.elapsed_ms, exc.status)
            run_logger.error(test_case, "REQUEST_FAILED", {"status": exc.status, "body": exc.body})
            raise

        record(label, test_case, timing.elapsed_ms, response.status_code)
        run_logger.success(test_case, "REQUEST_SUCCESS", {"status": response.status_code})
        return response

    return call
