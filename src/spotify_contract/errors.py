"""Exception hierarchy for the harness.

Transport failures and HTTP error responses share `RequestFailedError`; callers
tell them apart by ``error.response is None``.
"""

from __future__ import annotations

from typing import Any

import httpx


class HarnessError(Exception):
    """Base class for every error raised by the harness."""


class ConfigurationError(HarnessError):
    """The harness is not configured well enough to issue a request."""


class MissingCredentialsError(ConfigurationError):
    """Client id or client secret is missing from the environment."""


class TokenNotSetError(ConfigurationError):
    """A request was issued before a bearer token was installed."""


class RequestFailedError(HarnessError):
    """A request did not produce a 2xx response."""

    def __init__(self, message: str, response: httpx.Response | None = None) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status(self) -> int | None:
        return self.response.status_code if self.response is not None else None

    @property
    def body(self) -> Any:
        """Decoded JSON body when possible, otherwise the raw text."""
        if self.response is None:
            return None
        try:
            return self.response.json()
        except ValueError:
            return self.response.text


class HTTPResponseError(RequestFailedError):
    """The remote service answered with a non-2xx status."""

    def __init__(self, response: httpx.Response, message: str | None = None) -> None:
        if message is None:
            try:
                request = response.request
                message = f"{request.method} {request.url} returned {response.status_code}"
            except RuntimeError:
                # response built without a request (e.g. in tests)
                message = f"request returned {response.status_code}"
        super().__init__(message, response=response)


class TransportError(RequestFailedError):
    """Timeout, DNS or connection failure; no response is available."""

    def __init__(self, message: str) -> None:
        super().__init__(message, response=None)


class CredentialExchangeError(HTTPResponseError):
    """The token endpoint rejected the credentials or returned no token."""


class ReportGenerationError(HarnessError):
    """Log files needed for the HTML report are missing."""
