"""Response extraction pipeline shared by every endpoint.

Each endpoint is described by an immutable :class:`EndpointProfile`; a single
:func:`extract_response` turns a raw transport response into an
:class:`ExtractedResult` according to that profile:

1. acquire the body, either as text or by saving the bytes to a file and
   returning them base64-encoded;
2. project fields from the JSON body when the effective format is JSON,
   otherwise from the response headers;
3. derive the storage RID from the storage URL when it is still unset.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping
from contextlib import closing
from dataclasses import dataclass, field, fields
from typing import Any

from .coerce import to_bool, to_datetime, to_int, to_presence, to_text
from .errors import ProjectionFailure, UnsupportedOperation
from .headers import HeaderFields, derive_rid, project_headers
from .models import ExtractedResult, LeadRecord, RawResponse, StorageRecord
from .projection import (
    FieldRule,
    RecordSpec,
    iter_tokens,
    project_document,
    project_records,
    project_strings,
)
from .transport import copy_stream_to_file, read_file_bytes

FORMAT_CALLER = "caller"
FORMAT_JSON = "json"
FORMAT_HEADERS = "headers"

SHAPE_FIELDS = "fields"
SHAPE_RECORDS = "records"
SHAPE_STRINGS = "strings"

BASE_RULES: Mapping[str, FieldRule] = {
    "original_status": FieldRule("original_status", to_int),
    "cb_status": FieldRule("service_status", to_int, priority=0),
    "pc_status": FieldRule("service_status", to_int, priority=1),
    "url": FieldRule("url"),
    "storage_url": FieldRule("storage_url"),
}

SCRAPER_RULES: Mapping[str, FieldRule] = {
    **BASE_RULES,
    "remaining_requests": FieldRule("remaining_requests", to_int, root_only=True),
    "body": FieldRule("body", root_only=True, capture=True),
}

LEADS_RULES: Mapping[str, FieldRule] = {
    "success": FieldRule("success", to_bool, root_only=True),
    "remaining_requests": FieldRule("remaining_requests", to_int, root_only=True),
    "domain": FieldRule("domain", root_only=True),
}

DELETE_RULES: Mapping[str, FieldRule] = {
    "success": FieldRule("success", to_presence, root_only=True),
}

TOTAL_COUNT_RULES: Mapping[str, FieldRule] = {
    "totalCount": FieldRule("total_count", to_int, root_only=True),
}


def _build_lead(values: dict[str, Any]) -> LeadRecord:
    return LeadRecord(email=values.get("email"), sources=tuple(values.get("sources", ())))


def _build_storage_record(values: dict[str, Any]) -> StorageRecord:
    return StorageRecord(**values)


LEAD_RECORDS = RecordSpec(
    fields={"email": FieldRule("email")},
    sequences={"sources": "sources"},
    build=_build_lead,
    anchor="leads",
)

STORAGE_RECORDS = RecordSpec(
    fields={
        "original_status": FieldRule("original_status", to_int),
        "pc_status": FieldRule("service_status", to_int),
        "url": FieldRule("url", to_text),
        "rid": FieldRule("rid", to_text),
        "stored_at": FieldRule("stored_at", to_datetime),
        "body": FieldRule("body", to_text),
    },
    build=_build_storage_record,
)


@dataclass(frozen=True)
class EndpointProfile:
    """Everything that differs between endpoints, as data."""

    name: str
    path: str
    methods: frozenset[str]
    format_mode: str = FORMAT_CALLER
    rules: Mapping[str, FieldRule] = field(default_factory=lambda: BASE_RULES)
    shape: str = SHAPE_FIELDS
    record_spec: RecordSpec | None = None
    binary: bool = False
    best_effort: bool = False

    def endpoint_url(self, base_url: str) -> str:
        return base_url.rstrip("/") + self.path

    def ensure_method(self, method: str) -> None:
        if method not in self.methods:
            allowed = ", ".join(sorted(self.methods))
            raise UnsupportedOperation(f"Only {allowed} is allowed for the {self.name}")

    def resolve_format(self, requested: str | None) -> str:
        """Return the projection source: ``json`` or ``headers``."""
        if self.format_mode == FORMAT_CALLER:
            return FORMAT_JSON if requested == FORMAT_JSON else FORMAT_HEADERS
        return self.format_mode


CRAWLING = EndpointProfile("Crawling API", "/", frozenset({"GET", "POST"}))
SCRAPER = EndpointProfile(
    "Scraper API", "/scraper", frozenset({"GET"}), FORMAT_JSON, SCRAPER_RULES
)
SCREENSHOTS = EndpointProfile(
    "Screenshots API", "/screenshots", frozenset({"GET"}), FORMAT_HEADERS, binary=True
)
STORAGE = EndpointProfile("Storage API", "/storage", frozenset({"GET"}), FORMAT_HEADERS)
STORAGE_DELETE = EndpointProfile(
    "Storage API", "/storage", frozenset({"DELETE"}), FORMAT_JSON, DELETE_RULES
)
STORAGE_BULK = EndpointProfile(
    "Storage API",
    "/storage/bulk",
    frozenset({"POST"}),
    FORMAT_JSON,
    shape=SHAPE_RECORDS,
    record_spec=STORAGE_RECORDS,
    best_effort=True,
)
STORAGE_RIDS = EndpointProfile(
    "Storage API", "/storage/rids", frozenset({"GET"}), FORMAT_JSON, shape=SHAPE_STRINGS
)
STORAGE_TOTAL_COUNT = EndpointProfile(
    "Storage API", "/storage/total_count", frozenset({"GET"}), FORMAT_JSON, TOTAL_COUNT_RULES
)
LEADS = EndpointProfile(
    "Leads API",
    "/leads",
    frozenset({"GET"}),
    FORMAT_JSON,
    LEADS_RULES,
    record_spec=LEAD_RECORDS,
    best_effort=True,
)


def read_text_body(raw: RawResponse) -> str:
    return raw.stream.read().decode("utf-8", errors="replace")


def read_binary_body(raw: RawResponse, save_to: str) -> str:
    """Save the body to ``save_to`` and return the stored bytes base64-encoded."""
    copy_stream_to_file(raw.stream, save_to)
    return base64.b64encode(read_file_bytes(save_to)).decode("ascii")


def apply_header_fields(result: ExtractedResult, header_fields: HeaderFields) -> None:
    for item in fields(header_fields):
        value = getattr(header_fields, item.name)
        if value is not None:
            setattr(result, item.name, value)


def _project_json(result: ExtractedResult, body: str, profile: EndpointProfile) -> None:
    tokens = iter_tokens(body)
    if profile.shape == SHAPE_STRINGS:
        result.records = tuple(project_strings(tokens))
        return
    if profile.shape == SHAPE_RECORDS and profile.record_spec is not None:
        result.records = tuple(project_records(tokens, profile.record_spec))
        return
    projection = project_document(tokens, profile.rules, profile.record_spec)
    for slot, value in projection.fields.items():
        setattr(result, slot, value)
    result.records = tuple(projection.records)


def extract_response(
    raw: RawResponse,
    profile: EndpointProfile,
    *,
    logger: logging.Logger,
    requested_format: str | None = None,
    save_to: str | None = None,
) -> ExtractedResult:
    """Turn a raw response into the fields the profile asks for."""
    with closing(raw):
        if profile.binary:
            if not save_to:
                raise ValueError("save_to is required for binary endpoints.")
            body = read_binary_body(raw, save_to)
        else:
            body = read_text_body(raw)

    result = ExtractedResult(status_code=raw.status_code, body=body)
    if profile.binary:
        result.screenshot_path = save_to

    if profile.resolve_format(requested_format) == FORMAT_JSON:
        try:
            _project_json(result, body, profile)
        except ProjectionFailure as exc:
            if not profile.best_effort:
                raise
            logger.warning("Ignoring malformed %s response: %s", profile.name, exc)
            result.success = False
            result.records = ()
    else:
        apply_header_fields(result, project_headers(raw.headers))

    if result.rid is None:
        result.rid = derive_rid(result.storage_url)
    return result
