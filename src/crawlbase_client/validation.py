"""Validation and runtime guardrails."""

from __future__ import annotations

import os
import re
import tempfile
import uuid
from urllib.parse import urlparse

from .errors import ConfigError, InvalidArgument

INVALID_TOKEN = "Token is required"
SCREENSHOT_PATH_PATTERN = re.compile(r".+\.(jpg|jpeg)$", re.IGNORECASE)
INVALID_SCREENSHOT_PATH = "Filename must end with .jpg or .jpeg"


def require_token(token: str | None) -> str:
    """Return the token or raise InvalidArgument when it is empty."""
    if not token:
        raise InvalidArgument(INVALID_TOKEN)
    return token


def require_value(value: str | None, name: str) -> str:
    """Return a required identifier (URL, RID, domain) or raise InvalidArgument."""
    if value is None or not str(value):
        raise InvalidArgument(f"{name} is required")
    return str(value)


def is_supported_url(url: str) -> bool:
    """Allow only absolute HTTP(S) URLs with a hostname."""
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def generate_screenshot_path() -> str:
    """Return a fresh .jpg path inside the system temp directory."""
    return os.path.join(tempfile.gettempdir(), f"{uuid.uuid4()}.jpg")


def validate_screenshot_path(path: str) -> str:
    """Reject screenshot destinations that are not .jpg/.jpeg files."""
    if not SCREENSHOT_PATH_PATTERN.match(path or ""):
        raise InvalidArgument(INVALID_SCREENSHOT_PATH)
    return path


def validate_client_config(*, token: str, base_url: str, request_timeout: float) -> None:
    """Validate client configuration and raise ConfigError on invalid values."""
    if not token:
        raise ConfigError("Provide --token or set CRAWLBASE_TOKEN.")
    if not is_supported_url(base_url):
        raise ConfigError("--base-url must be an absolute http(s) URL.")
    if request_timeout <= 0:
        raise ConfigError("--timeout must be > 0.")
