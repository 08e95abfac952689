"""Protocols and lightweight model types."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO, Protocol


class Transport(Protocol):
    """Contract for the HTTP collaborator."""

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> RawResponse:
        """Issue one request and return the undrained response."""


@dataclass
class RawResponse:
    """Transport output: status, case-insensitive headers, and a single-use body stream."""

    status_code: int
    headers: Mapping[str, str]
    stream: BinaryIO

    def close(self) -> None:
        self.stream.close()


@dataclass(frozen=True)
class LeadRecord:
    """One email discovered for a domain, with the pages it was seen on."""

    email: str | None
    sources: tuple[str, ...] = ()


@dataclass(frozen=True)
class StorageRecord:
    """One stored page returned by a bulk storage lookup."""

    original_status: int | None = None
    service_status: int | None = None
    url: str | None = None
    rid: str | None = None
    stored_at: datetime | None = None
    body: str | None = None


@dataclass
class ExtractedResult:
    """Fields projected out of a single endpoint response."""

    status_code: int
    original_status: int | None = None
    service_status: int | None = None
    url: str | None = None
    storage_url: str | None = None
    rid: str | None = None
    stored_at: datetime | None = None
    body: str | None = None
    remaining_requests: int | None = None
    success: bool | None = None
    screenshot_path: str | None = None
    screenshot_url: str | None = None
    domain: str | None = None
    total_count: int | None = None
    records: tuple[Any, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LeadsResult:
    """Outcome of a leads lookup for one domain.

    ``body`` is the full response envelope as returned by the service, not
    only the ``leads`` array.
    """

    status_code: int
    success: bool
    remaining_requests: int | None
    domain: str | None
    leads: tuple[LeadRecord, ...]
    body: str | None
