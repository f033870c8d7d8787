"""Harness configuration."""

from __future__ import annotations

from pathlib import Path

import httpx
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_API_BASE_URL = "https://api.spotify.com/v1"
DEFAULT_AUTH_URL = "https://accounts.spotify.com/api/token"
DEFAULT_TIMEOUT_MS = 5000


class HarnessSettings(BaseSettings):
    """Configuration for the request client, credential exchange and artifacts.

    Loads from environment variables prefixed with ``SPOTIFY_``:
        SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SPOTIFY_API_BASE_URL,
        SPOTIFY_AUTH_URL, SPOTIFY_TIMEOUT_MS, SPOTIFY_LOG_DIR, ...

    Credentials are optional here; `fetch_access_token` reports their absence.
    """

    client_id: str | None = Field(default=None, description="OAuth client id")
    client_secret: SecretStr | None = Field(default=None, description="OAuth client secret")
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Base URL of the catalog API")
    auth_url: str = Field(default=DEFAULT_AUTH_URL, description="Token endpoint for client credentials")
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0, description="Per-request timeout")
    log_dir: Path = Path("logs")
    log_file: str = "test-execution.log"
    report_path: Path = Path("logs/report.html")
    metrics_path: Path = Path("reports/metrics.json")
    environment: str = "test"

    model_config = SettingsConfigDict(
        extra="forbid",
        env_prefix="SPOTIFY_",
    )

    @property
    def has_credentials(self) -> bool:
        secret = self.client_secret.get_secret_value() if self.client_secret else ""
        return bool(self.client_id) and bool(secret)

    @property
    def log_path(self) -> Path:
        return self.log_dir / self.log_file

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.timeout_ms / 1000)
