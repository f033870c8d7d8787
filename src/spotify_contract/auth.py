"""Client-credentials token exchange."""

from __future__ import annotations

import base64
import logging

import httpx

from spotify_contract.config import HarnessSettings
from spotify_contract.errors import CredentialExchangeError, MissingCredentialsError, TransportError


logger = logging.getLogger(__name__)


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """Build the ``Basic`` authorization value for the token endpoint."""
    credentials = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
    return f"Basic {credentials}"


async def fetch_access_token(
    settings: HarnessSettings,
    http: httpx.AsyncClient | None = None,
) -> str:
    """Exchange the configured client id/secret for a bearer token.

    Args:
        settings: Harness settings holding credentials and the token endpoint.
        http: Optional client to issue the request with; a short-lived one is
            created otherwise.

    Returns:
        The access token string.

    Raises:
        MissingCredentialsError: If either credential is empty. No request is sent.
        CredentialExchangeError: On a non-2xx answer or a body without a token.
        TransportError: On timeout or connection failure.
    """
    client_id = settings.client_id or ""
    client_secret = settings.client_secret.get_secret_value() if settings.client_secret else ""
    if not client_id or not client_secret:
        raise MissingCredentialsError(
            "Missing client credentials: set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET"
        )

    headers = {
        "Authorization": basic_auth_header(client_id, client_secret),
        "Content-Type": "application/x-www-form-urlencoded",
    }
    data = {"grant_type": "client_credentials"}

    owns_client = http is None
    client = http or httpx.AsyncClient(timeout=settings.timeout)
    try:
        resp = await client.post(settings.auth_url, data=data, headers=headers)
    except httpx.TransportError as exc:
        raise TransportError(f"token request to {settings.auth_url} failed: {exc!r}") from exc
    finally:
        if owns_client:
            await client.aclose()

    if not resp.is_success:
        raise CredentialExchangeError(resp, f"token endpoint returned {resp.status_code}: {resp.text}")

    try:
        payload = resp.json()
    except ValueError:
        payload = None
    token = payload.get("access_token") if isinstance(payload, dict) else None
    if not token:
        raise CredentialExchangeError(resp, "token endpoint response has no access_token")

    logger.info("Obtained access token from %s", settings.auth_url)
    return token
