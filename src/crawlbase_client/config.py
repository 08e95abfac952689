"""Runtime configuration model."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .validation import validate_client_config

DEFAULT_BASE_URL = "https://api.crawlbase.com"
DEFAULT_USER_AGENT = "crawlbase-client/1.0 (+https://crawlbase.com)"
DEFAULT_REQUEST_TIMEOUT = 90.0
TOKEN_ENV_VAR = "CRAWLBASE_TOKEN"
BASE_URL_ENV_VAR = "CRAWLBASE_BASE_URL"


@dataclass(frozen=True)
class ClientConfig:
    """Validated settings shared by every endpoint client."""

    token: str
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        validate_client_config(
            token=self.token,
            base_url=self.base_url,
            request_timeout=self.request_timeout,
        )

    @classmethod
    def from_env(
        cls,
        token: str | None = None,
        *,
        base_url: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> ClientConfig:
        """Build a config, falling back to environment variables for token and base URL."""
        return cls(
            token=token or os.getenv(TOKEN_ENV_VAR) or "",
            base_url=base_url or os.getenv(BASE_URL_ENV_VAR) or DEFAULT_BASE_URL,
            request_timeout=request_timeout,
            user_agent=user_agent,
        )
