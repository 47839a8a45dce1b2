from __future__ import annotations

import io
import json
import logging
from http.client import HTTPException
from typing import Any, BinaryIO, Iterable, Mapping, Optional, Tuple, Union

from starlette.datastructures import Headers

from restgate.errors import TransportError
from restgate.extension.media_types import charset_of
from restgate.extension.status import StatusInfo, status_from_code

log = logging.getLogger("restgate.client")

RawHeaders = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


class HttpResponse:
    """
    Outcome of one completed HTTP round-trip.

    Ownership
    - The response owns its body stream. Whoever holds it must close it, either
      through close() or by using the response as a context manager.
    - close() is idempotent; the stream is released at most once.
    - read() buffers the body on first call; later calls return the same bytes
      even after close().

    Security notes:
    - Treat the body and headers as untrusted.
    """

    def __init__(
        self,
        status: int,
        *,
        reason: Optional[str] = None,
        headers: Optional[RawHeaders] = None,
        stream: Optional[BinaryIO] = None,
    ):
        self.status = int(status)
        self.reason = reason if reason is not None else status_from_code(self.status).reason_phrase
        self.headers = _to_headers(headers)
        self._stream = stream if stream is not None else io.BytesIO(b"")
        self._body: Optional[bytes] = None
        self._closed = False

    @staticmethod
    def of(
        status: int,
        body: bytes = b"",
        *,
        reason: Optional[str] = None,
        headers: Optional[RawHeaders] = None,
    ) -> "HttpResponse":
        """Build a fully-buffered response (synthetic outcomes, tests, copies)."""

        return HttpResponse(status, reason=reason, headers=headers, stream=io.BytesIO(bytes(body)))

    @staticmethod
    def request_timeout() -> "HttpResponse":
        return HttpResponse.of(408)

    @property
    def status_info(self) -> StatusInfo:
        return status_from_code(self.status)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    @property
    def charset(self) -> str:
        return charset_of(self.content_type)

    def read(self) -> bytes:
        """Read (once) and return the whole body.

        Raises
        - TransportError: if the stream fails mid-read or was closed unread.
        """

        if self._body is not None:
            return self._body
        if self._closed:
            raise TransportError("response body already released")
        try:
            self._body = self._stream.read()
        except (OSError, HTTPException) as e:
            raise TransportError(f"failed reading response body: {e}") from e
        return self._body

    def text(self) -> str:
        return self.read().decode(self.charset, errors="replace")

    def json(self) -> Any:
        """Decode body as JSON."""

        return json.loads(self.read().decode(self.charset, errors="strict"))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._stream.close()
        except OSError as e:
            log.debug("response_close_failed", extra={"status": self.status, "error": str(e)})

    def __enter__(self) -> "HttpResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"HttpResponse(status={self.status}, reason={self.reason!r})"


def is_successful(response: HttpResponse) -> bool:
    return 200 <= response.status <= 299


def buffer_response(response: HttpResponse) -> HttpResponse:
    """Copy a response into a fully-buffered one and release the original.

    Repeated header values are joined with ``;`` into a single value.
    """

    try:
        body = response.read()
        joined = {}
        for name in response.headers.keys():
            if name not in joined:
                joined[name] = ";".join(response.headers.getlist(name))
        return HttpResponse.of(response.status, body, reason=response.reason, headers=joined)
    finally:
        response.close()


def _to_headers(raw: Optional[RawHeaders]) -> Headers:
    if raw is None:
        return Headers()
    if isinstance(raw, Headers):
        return raw
    items = raw.items() if isinstance(raw, Mapping) else raw
    encoded = [
        (str(k).lower().encode("latin-1"), str(v).encode("latin-1", errors="replace"))
        for k, v in items
    ]
    return Headers(raw=encoded)
