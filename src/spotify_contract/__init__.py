"""spotify_contract - API-contract test harness for the Spotify Web API."""

from .auth import fetch_access_token
from .client import (
    RequestManager,
    RequestManagerFactory,
    close_request_manager,
    get_request_manager,
)
from .config import HarnessSettings
from .context import TestRunContext, get_run_context, run_context_scope
from .errors import (
    ConfigurationError,
    CredentialExchangeError,
    HarnessError,
    HTTPResponseError,
    MissingCredentialsError,
    ReportGenerationError,
    RequestFailedError,
    TokenNotSetError,
    TransportError,
)
from .logger import LogEntry, LogLevel, RunLogger
from .metrics import MetricsCollector, calculate_percentile, measure
from .report import LogReportGenerator
from .version import __version__


__all__ = [
    # Client
    "RequestManager",
    "RequestManagerFactory",
    "get_request_manager",
    "close_request_manager",
    "fetch_access_token",
    "HarnessSettings",
    # Run state
    "TestRunContext",
    "get_run_context",
    "run_context_scope",
    "MetricsCollector",
    "calculate_percentile",
    "measure",
    # Logging and reports
    "LogEntry",
    "LogLevel",
    "RunLogger",
    "LogReportGenerator",
    # Errors
    "HarnessError",
    "ConfigurationError",
    "MissingCredentialsError",
    "TokenNotSetError",
    "RequestFailedError",
    "HTTPResponseError",
    "TransportError",
    "CredentialExchangeError",
    "ReportGenerationError",
    "__version__",
]
