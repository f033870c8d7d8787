from __future__ import annotations

"""Shared HTTP client for the catalog API."""

import asyncio
import logging
from typing import Any

import httpx

from spotify_contract.config import HarnessSettings
from spotify_contract.errors import HTTPResponseError, TokenNotSetError, TransportError


logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"


class RequestManager:
    """Thin wrapper around an httpx.AsyncClient carrying the bearer token.

    The token is stored as a client-level default header, so replacing it
    affects every request issued afterwards through the same instance.
    """

    def __init__(self, http: httpx.AsyncClient, *, require_token: bool = True) -> None:
        """Initialize the manager.

        Parameters
        ----------
        http
            Pre-configured async HTTP client (base URL and timeout applied).
        require_token
            Reject calls made before `set_token` instead of sending them
            unauthenticated.
        """

        self._http = http
        self._token: str | None = None
        self.require_token = require_token

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_token_set(self) -> bool:
        return bool(self._token)

    def set_token(self, token: str) -> None:
        """Replace the ``Authorization`` header used for all subsequent requests."""

        self._token = token
        self._http.headers[AUTHORIZATION_HEADER] = f"Bearer {token}"

    def clear_token(self) -> None:
        self._token = None
        self._http.headers.pop(AUTHORIZATION_HEADER, None)

    async def get(self, path: str, **options: Any) -> httpx.Response:
        return await self.request("GET", path, **options)

    async def post(self, path: str, body: Any = None, **options: Any) -> httpx.Response:
        return await self.request("POST", path, body=body, **options)

    async def put(self, path: str, body: Any = None, **options: Any) -> httpx.Response:
        return await self.request("PUT", path, body=body, **options)

    async def delete(self, path: str, body: Any = None, **options: Any) -> httpx.Response:
        return await self.request("DELETE", path, body=body, **options)

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Issue a request relative to the configured base URL.

        Parameters
        ----------
        method
            HTTP verb.
        path
            Path relative to the base URL, e.g. ``/albums/{id}``.
        body
            Optional JSON body.
        params
            Query parameters.
        headers
            Per-request headers, merged over the client defaults.

        Returns
        -------
        httpx.Response
            The full response for any 2xx status.

        Raises
        ------
        TokenNotSetError
            If ``require_token`` is set and no token was installed.
        HTTPResponseError
            For any non-2xx status; the response is attached.
        TransportError
            For timeouts and connection failures.
        """

        if self.require_token and not self.is_token_set:
            raise TokenNotSetError(f"{method} {path} issued before a bearer token was set")

        kwargs: dict[str, Any] = {"params": params, "headers": headers}
        if body is not None:
            kwargs["json"] = body

        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            logger.debug("%s %s failed: %s", method, path, exc)
            raise TransportError(f"{method} {path} failed: {exc!r}") from exc

        logger.debug("%s %s -> %s", method, path, resp.status_code)
        if not resp.is_success:
            raise HTTPResponseError(resp)
        return resp


class RequestManagerFactory:
    """Lazy, reusable factory for `RequestManager`.

    The factory owns a single underlying `httpx.AsyncClient` and returns a
    shared `RequestManager` while the HTTP client remains open.
    """

    def __init__(
        self,
        settings: HarnessSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a factory.

        Parameters
        ----------
        settings
            Optional settings override; loaded from the environment otherwise.
        transport
            Optional transport, used to substitute the network in tests.
        """

        self._settings = settings or HarnessSettings()
        self._transport = transport
        self._lock = asyncio.Lock()
        self._http: httpx.AsyncClient | None = None
        self._manager: RequestManager | None = None

    async def aclose(self) -> None:
        """Close the underlying `httpx.AsyncClient` (if any) and reset state."""

        async with self._lock:
            if self._http and not self._http.is_closed:
                await self._http.aclose()
            self._http = None
            self._manager = None

    async def get(self) -> RequestManager:
        """Return the shared `RequestManager`, creating it if needed."""

        manager = self._manager
        http = self._http
        if manager is not None and http is not None and not http.is_closed:
            return manager

        async with self._lock:
            if self._http is None or self._http.is_closed:
                s = self._settings
                self._http = httpx.AsyncClient(
                    base_url=s.api_base_url.rstrip("/") + "/",
                    timeout=s.timeout,
                    transport=self._transport,
                )
                self._manager = RequestManager(self._http)

            if self._manager is None:
                raise RuntimeError("RequestManagerFactory failed to initialize")

            return self._manager


_default_factory: RequestManagerFactory | None = None


async def get_request_manager() -> RequestManager:
    """Return a process-wide shared RequestManager (lazy init)."""

    global _default_factory
    if _default_factory is None:
        _default_factory = RequestManagerFactory()
    return await _default_factory.get()


async def close_request_manager() -> None:
    """Close the shared client and reset the default factory."""

    global _default_factory
    if _default_factory is None:
        return
    await _default_factory.aclose()
    _default_factory = None
