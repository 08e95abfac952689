"""Request URL and POST body encoding."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from .validation import require_token, require_value

TOKEN_PARAM = "token"


def render_value(value: Any) -> str:
    """Render an option value the way the API expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def merge_options(
    options: Mapping[str, Any] | None,
    *,
    token: str,
    target_param: str | None = None,
    target_value: str | None = None,
) -> dict[str, str]:
    """Return rendered options with the target and token appended last.

    Caller keys that collide with the target parameter or ``token`` are
    dropped, so the injected values are the only occurrence of each.
    """
    reserved = {TOKEN_PARAM}
    if target_param:
        reserved.add(target_param)
    merged = {
        key: render_value(value)
        for key, value in (options or {}).items()
        if key not in reserved and value is not None
    }
    if target_param:
        merged[target_param] = quote(require_value(target_value, target_param), safe="")
    merged[TOKEN_PARAM] = require_token(token)
    return merged


def build_url(
    base_url: str,
    target_param: str | None,
    target_value: str | None,
    token: str,
    options: Mapping[str, Any] | None = None,
) -> str:
    """Build the request URL with a deterministic query string."""
    merged = merge_options(
        options, token=token, target_param=target_param, target_value=target_value
    )
    query = "&".join(f"{key}={value}" for key, value in merged.items())
    return f"{base_url}?{query}"


def encode_form(data: Mapping[str, Any]) -> bytes:
    """Encode POST fields as application/x-www-form-urlencoded."""
    pairs = [f"{key}={quote(render_value(value), safe='')}" for key, value in data.items()]
    return "&".join(pairs).encode("ascii")


def encode_json(data: Mapping[str, Any]) -> bytes:
    """Encode a POST body as application/json."""
    return json.dumps(dict(data), indent=2).encode("utf-8")


def mask_token(url: str, token: str) -> str:
    """Hide the token before a URL is logged."""
    return url.replace(f"{TOKEN_PARAM}={token}", f"{TOKEN_PARAM}=***")
