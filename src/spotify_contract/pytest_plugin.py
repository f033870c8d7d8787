"""pytest wiring for contract suites.

Load it from a conftest with ``pytest_plugins = ["spotify_contract.pytest_plugin"]``.
Session fixtures build one run context, logger and metrics collector per
invocation; tests that request `run_context` (directly or through
`request_manager`) are counted as passed, failed or skipped automatically.
Skips reported before the first test set the context up are carried over
once it exists, so the skip count does not depend on test order.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv

from spotify_contract.auth import fetch_access_token
from spotify_contract.client import RequestManager, RequestManagerFactory
from spotify_contract.config import HarnessSettings
from spotify_contract.context import TestRunContext, get_run_context, run_context_scope
from spotify_contract.errors import HarnessError
from spotify_contract.logger import RunLogger
from spotify_contract.metrics import MetricsCollector, round_half_up


SETUP_CASE = "TC-SETUP"
SUMMARY_CASE = "TC-SUMMARY"

# skips reported before the session context exists
PENDING_SKIPS = pytest.StashKey[int]()


def pytest_configure(config: pytest.Config) -> None:
    load_dotenv(Path.cwd() / ".env")
    config.addinivalue_line("markers", "live: calls the real catalog API; needs client credentials")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if HarnessSettings().has_credentials:
        return
    skip_live = pytest.mark.skip(reason="SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET not set")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]):
    outcome = yield
    report = outcome.get_result()

    if "run_context" not in getattr(item, "fixturenames", ()):
        return
    counted = report.when == "call" or (report.when == "setup" and not report.passed)
    if not counted:
        return
    ctx = get_run_context()
    if ctx is None:
        if report.skipped:
            stash = item.session.stash
            stash[PENDING_SKIPS] = stash.get(PENDING_SKIPS, 0) + 1
        return

    if report.skipped:
        ctx.record_skip()
        return
    if report.passed:
        ctx.record_pass()
    else:
        ctx.record_fail()

    collector = getattr(item, "funcargs", {}).get("metrics_collector")
    if isinstance(collector, MetricsCollector):
        collector.record_test_result(item.name, report.passed, round_half_up(report.duration * 1000))


@pytest.fixture(scope="session")
def harness_settings() -> HarnessSettings:
    return HarnessSettings()


@pytest.fixture(scope="session")
def run_logger(harness_settings: HarnessSettings) -> RunLogger:
    return RunLogger(harness_settings.log_path)


@pytest.fixture(scope="session")
def metrics_collector(harness_settings: HarnessSettings) -> Iterator[MetricsCollector]:
    collector = MetricsCollector()
    yield collector
    if collector.endpoints or collector.test_results:
        collector.save(harness_settings.metrics_path)
    collector.reset()


@pytest.fixture(scope="session")
def run_context(
    request: pytest.FixtureRequest,
    harness_settings: HarnessSettings,
    run_logger: RunLogger,
    metrics_collector: MetricsCollector,
) -> Iterator[TestRunContext]:
    ctx = TestRunContext(logs_dir=harness_settings.log_dir, environment=harness_settings.environment)
    ctx.start_timer()
    ctx.setup_environment()
    for _ in range(request.session.stash.get(PENDING_SKIPS, 0)):
        ctx.record_skip()
    request.session.stash[PENDING_SKIPS] = 0
    with run_context_scope(ctx):
        yield ctx
        run_logger.info(SUMMARY_CASE, "EXECUTION_COMPLETE", ctx.get_summary())
    ctx.reset()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def request_manager(
    harness_settings: HarnessSettings,
    run_context: TestRunContext,
    run_logger: RunLogger,
) -> AsyncIterator[RequestManager]:
    run_logger.info(SETUP_CASE, "FETCH_TOKEN")
    factory = RequestManagerFactory(harness_settings)
    try:
        token = await fetch_access_token(harness_settings)
    except HarnessError as exc:
        run_logger.error(SETUP_CASE, "INVALID_TOKEN", {"message": str(exc)})
        raise

    manager = await factory.get()
    run_context.set_token(token)
    manager.set_token(token)
    run_logger.success(SETUP_CASE, "TOKEN_APPLIED")
    yield manager
    await factory.aclose()
