"""Endpoint clients sharing one token and one extraction pipeline."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from functools import partial
from typing import Any, TypeVar

from .coerce import to_text
from .config import DEFAULT_BASE_URL, DEFAULT_REQUEST_TIMEOUT, DEFAULT_USER_AGENT, ClientConfig
from .errors import InvalidArgument
from .logging_utils import get_logger
from .models import ExtractedResult, LeadsResult, StorageRecord, Transport
from .pipeline import (
    CRAWLING,
    FORMAT_JSON,
    LEADS,
    SCRAPER,
    SCREENSHOTS,
    STORAGE,
    STORAGE_BULK,
    STORAGE_DELETE,
    STORAGE_RIDS,
    STORAGE_TOTAL_COUNT,
    EndpointProfile,
    extract_response,
)
from .query import build_url, encode_form, encode_json, mask_token
from .transport import RequestsTransport, make_session
from .validation import generate_screenshot_path, require_token, validate_screenshot_path

T = TypeVar("T")
APIType = TypeVar("APIType", bound="BaseAPI")

SAVE_TO_PATH_KEY = "save_to_path"
INVALID_RID_LIST = "One or more RIDs are required"


async def run_blocking(fn: Callable[..., T], *args: Any) -> T:
    """Run a blocking call on the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(fn, *args))


class BaseAPI:
    """Token holder and request plumbing shared by every endpoint client."""

    def __init__(
        self,
        token: str,
        *,
        transport: Transport | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._token = require_token(token)
        self._base_url = base_url
        self._logger = logger or get_logger("api")
        self._transport = transport or RequestsTransport(
            session=make_session(user_agent), timeout=timeout, logger=self._logger
        )

    @classmethod
    def from_config(
        cls: type[APIType],
        config: ClientConfig,
        *,
        transport: Transport | None = None,
        logger: logging.Logger | None = None,
    ) -> APIType:
        return cls(
            config.token,
            transport=transport,
            base_url=config.base_url,
            timeout=config.request_timeout,
            user_agent=config.user_agent,
            logger=logger,
        )

    @property
    def token(self) -> str:
        return self._token

    def _call(
        self,
        profile: EndpointProfile,
        method: str,
        *,
        target_param: str | None = None,
        target_value: str | None = None,
        options: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        requested_format: str | None = None,
        save_to: str | None = None,
    ) -> ExtractedResult:
        profile.ensure_method(method)
        url = build_url(
            profile.endpoint_url(self._base_url), target_param, target_value, self._token, options
        )
        self._logger.debug("%s %s", method, mask_token(url, self._token))
        raw = self._transport.send(method, url, headers=headers, body=body)
        result = extract_response(
            raw,
            profile,
            logger=self._logger,
            requested_format=requested_format,
            save_to=save_to,
        )
        self._logger.debug(
            "%s responded %s (service status %s)",
            profile.name,
            result.status_code,
            result.service_status,
        )
        return result


class CrawlingAPI(BaseAPI):
    """Generic fetch endpoint; the ``format`` option picks JSON or header projection."""

    profile: EndpointProfile = CRAWLING

    def get(self, url: str, options: Mapping[str, Any] | None = None) -> ExtractedResult:
        self.profile.ensure_method("GET")
        options = dict(options or {})
        return self._call(
            self.profile,
            "GET",
            target_param="url",
            target_value=url,
            options=options,
            requested_format=to_text(options.get("format")),
        )

    def post(
        self,
        url: str,
        data: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> ExtractedResult:
        self.profile.ensure_method("POST")
        options = dict(options or {})
        requested_format = to_text(options.get("format"))
        headers: dict[str, str] | None = None
        body: bytes | None = None
        if data:
            if requested_format == FORMAT_JSON:
                headers = {"Content-Type": "application/json"}
                body = encode_json(data)
            else:
                headers = {"Content-Type": "application/x-www-form-urlencoded"}
                body = encode_form(data)
        return self._call(
            self.profile,
            "POST",
            target_param="url",
            target_value=url,
            options=options,
            headers=headers,
            body=body,
            requested_format=requested_format,
        )

    async def get_async(
        self, url: str, options: Mapping[str, Any] | None = None
    ) -> ExtractedResult:
        return await run_blocking(self.get, url, options)

    async def post_async(
        self,
        url: str,
        data: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> ExtractedResult:
        self.profile.ensure_method("POST")
        return await run_blocking(self.post, url, data, options)


class ScraperAPI(CrawlingAPI):
    """Structured scraping endpoint: always JSON, body unwrapped from the envelope."""

    profile = SCRAPER


class ScreenshotsAPI(CrawlingAPI):
    """Screenshot endpoint: the JPEG is saved to disk and returned base64-encoded."""

    profile = SCREENSHOTS

    def get(self, url: str, options: Mapping[str, Any] | None = None) -> ExtractedResult:
        self.profile.ensure_method("GET")
        options = dict(options or {})
        if SAVE_TO_PATH_KEY in options:
            save_to = to_text(options.pop(SAVE_TO_PATH_KEY)) or ""
        else:
            save_to = generate_screenshot_path()
        validate_screenshot_path(save_to)
        return self._call(
            self.profile,
            "GET",
            target_param="url",
            target_value=url,
            options=options,
            save_to=save_to,
        )


class StorageAPI(BaseAPI):
    """Access to pages previously stored by the crawling endpoints."""

    def get_by_url(self, url: str, format: str = "html") -> ExtractedResult:
        return self._call(
            STORAGE, "GET", target_param="url", target_value=url, options={"format": format}
        )

    def get_by_rid(self, rid: str, format: str = "html") -> ExtractedResult:
        return self._call(
            STORAGE, "GET", target_param="rid", target_value=rid, options={"format": format}
        )

    def delete(self, rid: str) -> bool:
        result = self._call(STORAGE_DELETE, "DELETE", target_param="rid", target_value=rid)
        return result.success is True

    def bulk(self, rids: Sequence[str]) -> list[StorageRecord]:
        if not rids:
            raise InvalidArgument(INVALID_RID_LIST)
        result = self._call(
            STORAGE_BULK,
            "POST",
            headers={"Content-Type": "application/json"},
            body=encode_json({"rids": list(rids)}),
        )
        return list(result.records)

    def rids(self, limit: int | None = None) -> list[str]:
        options = {"limit": limit} if limit is not None and limit >= 0 else None
        result = self._call(STORAGE_RIDS, "GET", options=options)
        return list(result.records)

    def total_count(self) -> int:
        result = self._call(STORAGE_TOTAL_COUNT, "GET")
        return result.total_count or 0

    async def get_by_url_async(self, url: str, format: str = "html") -> ExtractedResult:
        return await run_blocking(self.get_by_url, url, format)

    async def get_by_rid_async(self, rid: str, format: str = "html") -> ExtractedResult:
        return await run_blocking(self.get_by_rid, rid, format)

    async def delete_async(self, rid: str) -> bool:
        return await run_blocking(self.delete, rid)

    async def bulk_async(self, rids: Sequence[str]) -> list[StorageRecord]:
        return await run_blocking(self.bulk, rids)

    async def rids_async(self, limit: int | None = None) -> list[str]:
        return await run_blocking(self.rids, limit)

    async def total_count_async(self) -> int:
        return await run_blocking(self.total_count)


class LeadsAPI(BaseAPI):
    """Email leads discovered for a domain."""

    def get(self, domain: str) -> LeadsResult:
        """Look up leads for ``domain``; ``body`` on the result is the raw JSON envelope."""
        result = self._call(LEADS, "GET", target_param="domain", target_value=domain)
        return LeadsResult(
            status_code=result.status_code,
            success=result.success is True,
            remaining_requests=result.remaining_requests,
            domain=result.domain,
            leads=tuple(result.records),
            body=result.body,
        )

    async def get_async(self, domain: str) -> LeadsResult:
        return await run_blocking(self.get, domain)
