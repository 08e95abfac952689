"""Projection of response headers into typed result fields."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from requests.structures import CaseInsensitiveDict

from .coerce import to_bool, to_datetime, to_int

RID_PATTERN = re.compile(r"rid=(\w+)")
SERVICE_STATUS_HEADERS = ("cb_status", "pc_status")


@dataclass(frozen=True)
class HeaderFields:
    """Optional fields recovered from response headers."""

    original_status: int | None = None
    service_status: int | None = None
    url: str | None = None
    storage_url: str | None = None
    rid: str | None = None
    stored_at: datetime | None = None
    success: bool | None = None
    remaining_requests: int | None = None
    screenshot_url: str | None = None


def derive_rid(storage_url: str | None) -> str | None:
    """Return the RID embedded in a storage URL, if any."""
    if not storage_url:
        return None
    match = RID_PATTERN.search(storage_url)
    return match.group(1) if match else None


def service_status(headers: Mapping[str, str]) -> int | None:
    """Resolve the service status from ``cb_status``, falling back to ``pc_status``."""
    for name in SERVICE_STATUS_HEADERS:
        value = to_int(headers.get(name))
        if value is not None:
            return value
    return None


def project_headers(headers: Mapping[str, str]) -> HeaderFields:
    """Pull every known field out of a response header map."""
    if not isinstance(headers, CaseInsensitiveDict):
        headers = CaseInsensitiveDict(headers)
    storage_url = headers.get("storage_url")
    return HeaderFields(
        original_status=to_int(headers.get("original_status")),
        service_status=service_status(headers),
        url=headers.get("url"),
        storage_url=storage_url,
        rid=headers.get("rid") or derive_rid(storage_url),
        stored_at=to_datetime(headers.get("stored_at")),
        success=to_bool(headers.get("success")),
        remaining_requests=to_int(headers.get("remaining_requests")),
        screenshot_url=headers.get("screenshot_url"),
    )
