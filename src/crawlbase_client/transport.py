"""HTTP transport and file helpers."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import BinaryIO

from requests import Response, Session
from requests.exceptions import RequestException
from requests.structures import CaseInsensitiveDict
from urllib3.exceptions import HTTPError

from .errors import TransportError
from .models import RawResponse

COPY_CHUNK_SIZE = 64 * 1024


def make_session(user_agent: str) -> Session:
    """Create a requests session carrying the client user agent."""
    session = Session()
    session.headers.update({"User-Agent": user_agent})
    return session


def last_value_headers(response: Response) -> CaseInsensitiveDict:
    """Collapse repeated response headers so the last occurrence wins."""
    headers: CaseInsensitiveDict = CaseInsensitiveDict()
    raw_headers = response.raw.headers
    for name in raw_headers:
        values = raw_headers.getlist(name)
        if values:
            headers[name] = values[-1]
    return headers


class ResponseStream:
    """Single-use reader over a streamed requests response."""

    def __init__(self, response: Response) -> None:
        self._response = response

    def read(self, size: int = -1) -> bytes:
        amount = None if size is None or size < 0 else size
        try:
            return bytes(self._response.raw.read(amount, decode_content=True))
        except (HTTPError, OSError) as exc:
            raise TransportError(f"Failed reading response body: {exc}") from exc

    def close(self) -> None:
        self._response.close()


class RequestsTransport:
    """requests-based transport returning undrained responses."""

    def __init__(self, *, session: Session, timeout: float, logger: logging.Logger) -> None:
        self._session = session
        self._timeout = timeout
        self._logger = logger

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> RawResponse:
        try:
            response = self._session.request(
                method,
                url,
                headers=dict(headers or {}),
                data=body,
                timeout=self._timeout,
                stream=True,
            )
        except RequestException as exc:
            self._logger.debug("%s request failed: %s", method, exc)
            raise TransportError(f"{method} request failed: {exc}") from exc
        return RawResponse(
            status_code=response.status_code,
            headers=last_value_headers(response),
            stream=ResponseStream(response),  # type: ignore[arg-type]
        )


def copy_stream_to_file(stream: BinaryIO, path: str) -> None:
    """Write a byte stream to ``path``, closing the file before returning."""
    with open(path, "wb") as file_obj:
        shutil.copyfileobj(stream, file_obj, COPY_CHUNK_SIZE)


def read_file_bytes(path: str) -> bytes:
    return Path(path).read_bytes()
